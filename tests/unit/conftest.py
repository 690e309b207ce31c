"""Unit test configuration - sample papers and mocked storage"""

import os
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

# Unit tests never load the developer's .env files or talk to real services
os.environ.setdefault("EMBEDDING_PROVIDER", "none")

from paperhunter.models import Paper


@pytest.fixture
def sample_papers():
    """
    Three small papers used across the IR tests.

    "learning" occurs in every paper; "vision" only in the third.
    """
    return [
        Paper(
            id=101,
            source="arxiv",
            source_id="2401.00001",
            title="Deep Learning for Language",
            abstract="We study learning of language models with transformers.",
            first_announced_at=datetime(2024, 1, 2, tzinfo=timezone.utc),
        ),
        Paper(
            id=102,
            source="acl",
            source_id="2024.acl-long.1",
            title="Reinforcement Learning Agents",
            abstract="Agents trained with reinforcement learning play games.",
            first_announced_at=datetime(2024, 2, 3, tzinfo=timezone.utc),
        ),
        Paper(
            id=103,
            source="arxiv",
            source_id="2403.00003",
            title="Vision Transformers",
            abstract="Self-supervised learning for computer vision.",
            first_announced_at=datetime(2024, 3, 4, tzinfo=timezone.utc),
        ),
    ]


@pytest.fixture
def mock_pool():
    """
    asyncpg pool double: `async with pool.acquire() as conn` yields `pool.conn`.
    """
    conn = MagicMock()
    conn.execute = AsyncMock()
    conn.fetch = AsyncMock(return_value=[])
    conn.fetchrow = AsyncMock(return_value=None)
    conn.fetchval = AsyncMock(return_value=None)

    acquire_ctx = MagicMock()
    acquire_ctx.__aenter__ = AsyncMock(return_value=conn)
    acquire_ctx.__aexit__ = AsyncMock(return_value=False)

    pool = MagicMock()
    pool.acquire = MagicMock(return_value=acquire_ctx)
    pool.close = AsyncMock()
    pool.conn = conn
    return pool


def _paper_row(paper: Paper, embedding: bytes = None) -> dict:
    row = {
        "id": paper.id,
        "source": paper.source,
        "source_id": paper.source_id,
        "url": paper.url,
        "title": paper.title,
        "title_translated": paper.title_translated,
        "authors": list(paper.authors),
        "abstract": paper.abstract,
        "abstract_translated": paper.abstract_translated,
        "categories": list(paper.categories),
        "comments": paper.comments,
        "first_submitted_at": paper.first_submitted_at,
        "first_announced_at": paper.first_announced_at,
        "updated_at": paper.updated_at,
    }
    if embedding is not None:
        row["embedding"] = embedding
    return row


@pytest.fixture
def paper_row():
    """Factory: database row (dict stands in for asyncpg.Record) for a Paper"""
    return _paper_row
