#!/usr/bin/env python3
"""
Compute missing paper embeddings for the configured model.

Reads DATABASE_URL / EMBEDDING_* / GCP_* from .env.local or .env.
Papers whose embedding is missing or came from another model are embedded
in batches until none remain, or the same papers keep failing (or --once
is given).
"""

import asyncio
import logging
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from paperhunter.config import load_env_files, load_settings
from paperhunter.database import PaperDB
from paperhunter.embedding import create_embedder
from paperhunter.logging_config import setup_logging
from paperhunter.searcher import UnifiedSearcher


async def backfill(batch_size: int, once: bool) -> int:
    """Run backfill batches; returns total embedded papers."""
    settings = load_settings()
    embedder = create_embedder(settings)
    if embedder is None:
        print("Embedding service not configured (EMBEDDING_PROVIDER / GCP_PROJECT_ID)", file=sys.stderr)
        sys.exit(1)

    db = PaperDB(settings.database_url)
    await db.connect()
    try:
        searcher = UnifiedSearcher(db=db, embedder=embedder)
        return await searcher.backfill_all(batch_size, max_batches=1 if once else None)
    finally:
        embedder.close()
        await db.disconnect()


def main():
    """Main entry point."""
    args = sys.argv[1:]
    if "-h" in args or "--help" in args:
        print("Usage:")
        print("  python scripts/backfill_embeddings.py [BATCH_SIZE] [--once]")
        print("\nExamples:")
        print("  python scripts/backfill_embeddings.py")
        print("  python scripts/backfill_embeddings.py 50 --once")
        sys.exit(0)

    once = "--once" in args
    positional = [a for a in args if not a.startswith("--")]

    load_env_files(project_root)
    setup_logging(console_level=logging.INFO)

    try:
        batch_size = int(positional[0]) if positional else load_settings().backfill_batch_size
    except ValueError as e:
        print(f"Invalid batch size: {e}", file=sys.stderr)
        sys.exit(1)
    if batch_size < 1:
        print(f"Batch size must be at least 1, got {batch_size}", file=sys.stderr)
        sys.exit(1)

    total = asyncio.run(backfill(batch_size, once))
    print(f"\nEmbedded {total} papers")


if __name__ == "__main__":
    main()
