"""
Unified paper search: one entry point, three modes.

- IR: BM25 / TF-IDF ranking over an in-memory index, built lazily from all
  stored papers on the first IR query
- Keyword: case-insensitive literal substring filter in storage, similarity = 1.0
- Semantic (default): query vector from free text, or the centroid of example
  papers, ranked against stored embeddings by cosine similarity

Also owns embedding backfill for papers that lack a vector for the active model.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from .database import PaperDB
from .embedding import EmbeddingService, build_embedding_text
from .exceptions import ConfigurationError, EmbeddingError, InvalidQueryError
from .ir import IRSearcher, SearchOptions
from .ir.searcher import DEFAULT_TOP_K
from .models import Paper, SearchCondition, SimilarPaper
from .vectors import average_vectors

logger = logging.getLogger(__name__)

IR_ALL_ALGORITHMS = "all"


@dataclass
class SearchRequest:
    """Search parameters"""
    query: str = ""
    examples: List[Paper] = field(default_factory=list)   # Semantic mode only
    condition: SearchCondition = field(default_factory=SearchCondition)
    top_k: int = DEFAULT_TOP_K
    semantic: bool = True
    ir: bool = False                                      # Takes precedence over semantic
    ir_algorithm: str = "bm25"                            # "tfidf" | "bm25" | "all"


class UnifiedSearcher:
    """Dispatches search requests to the IR, keyword or semantic path"""

    def __init__(
        self,
        db: PaperDB,
        embedder: Optional[EmbeddingService] = None,
        ir_searcher: Optional[IRSearcher] = None,
        ir_snapshot_limit: int = 10000,
    ):
        """
        Args:
            db: Paper storage
            embedder: Embedding service (None = semantic search unavailable)
            ir_searcher: Lexical engine (default: fresh IRSearcher)
            ir_snapshot_limit: Max papers fetched when building the IR index
        """
        self.db = db
        self.embedder = embedder
        self.ir_searcher = ir_searcher or IRSearcher()
        self.ir_snapshot_limit = ir_snapshot_limit
        self._ir_build_lock = asyncio.Lock()

    async def search(self, request: SearchRequest) -> List[SimilarPaper]:
        """
        Execute a search.

        Raises:
            InvalidQueryError: missing query text (or examples, semantic mode)
            ConfigurationError: semantic search without an embedding service
            EmbeddingError: embedding service failure
        """
        if request.ir:
            return await self._search_with_ir(request)

        if not request.semantic:
            return await self._search_keywords(request)

        return await self._search_semantic(request)

    async def _search_keywords(self, request: SearchRequest) -> List[SimilarPaper]:
        if not request.query:
            raise InvalidQueryError("Keyword search requires query text")

        logger.info(f"Keyword search: {request.query!r}")
        papers = await self.db.search_by_keywords(request.query, request.condition)

        results = [SimilarPaper(paper=p, similarity=1.0) for p in papers]
        if request.top_k > 0:
            results = results[:request.top_k]

        logger.info(f"Keyword search returned {len(results)} papers")
        return results

    async def _search_semantic(self, request: SearchRequest) -> List[SimilarPaper]:
        if self.embedder is None:
            raise ConfigurationError(
                "Semantic search requires an embedding service (check EMBEDDING_PROVIDER / GCP_PROJECT_ID)"
            )

        if request.examples:
            query_vector = await self.embed_from_examples(request.examples)
        elif request.query:
            logger.info(f"Semantic search: {request.query!r}")
            query_vector = await self.embedder.embed_query(request.query)
        else:
            raise InvalidQueryError("Provide query text or example papers")

        logger.debug(f"Query vector dimension: {len(query_vector)}")

        results = await self.db.search_by_embedding(
            query_vector,
            self.embedder.model_name,
            request.condition,
            request.top_k,
        )
        logger.info(f"Semantic search returned {len(results)} papers")
        return results

    async def embed_from_examples(self, examples: List[Paper]) -> np.ndarray:
        """Centroid (component-wise mean) of the example papers' embeddings"""
        texts = [build_embedding_text(p) for p in examples]

        logger.debug(f"Embedding {len(texts)} example papers")
        vectors = await self.embedder.embed_batch(texts)
        if not vectors:
            raise EmbeddingError("No embeddings returned for example papers")

        try:
            centroid = average_vectors(vectors)
        except ValueError as e:
            raise EmbeddingError(f"Cannot combine example embeddings: {e}") from e

        logger.debug(f"Centroid vector from {len(vectors)} examples, dimension {len(centroid)}")
        return centroid

    async def _ensure_ir_index(self):
        if not self.ir_searcher.is_empty():
            return

        async with self._ir_build_lock:
            if not self.ir_searcher.is_empty():
                return
            logger.info("IR index is empty, building from storage...")
            await self.build_ir_index()

    async def build_ir_index(self) -> int:
        """
        (Re)build the IR index from a snapshot of all stored papers.

        Returns:
            Number of indexed papers

        Raises:
            InvalidQueryError: storage holds no papers
        """
        papers = await self.db.get_papers(limit=self.ir_snapshot_limit)
        if not papers:
            raise InvalidQueryError("No papers in storage to index")

        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self.ir_searcher.build_index, papers)

        logger.info(f"IR index built with {len(papers)} papers")
        return len(papers)

    async def _search_with_ir(self, request: SearchRequest) -> List[SimilarPaper]:
        if not request.query:
            raise InvalidQueryError("IR search requires query text")

        await self._ensure_ir_index()

        top_k = request.top_k if request.top_k > 0 else DEFAULT_TOP_K
        algorithm = request.ir_algorithm or "bm25"
        loop = asyncio.get_running_loop()

        if algorithm == IR_ALL_ALGORITHMS:
            # Compare all algorithms, BM25 ranking is returned
            by_algorithm = await loop.run_in_executor(
                None, self.ir_searcher.search_multiple, request.query, top_k, None
            )
            ranked = by_algorithm.get("bm25", [])
        else:
            options = SearchOptions(query=request.query, top_k=top_k, algorithm=algorithm)
            ranked = await loop.run_in_executor(None, self.ir_searcher.search, options)

        results = [
            SimilarPaper(paper=r.document, similarity=r.score)
            for r in ranked
            if r.document is not None
        ]
        logger.info(f"IR search ({algorithm}) returned {len(results)} papers")
        return results

    async def compute_missing_embeddings(self, batch_size: int) -> int:
        """
        Embed up to batch_size papers that have no embedding for the active model.

        Per-paper failures are logged and skipped; the batch continues.
        Cancellation stops further embedding calls but keeps saved vectors.

        Returns:
            Number of papers embedded and saved

        Raises:
            ConfigurationError: no embedding service
            InvalidQueryError: batch_size < 1
        """
        model = self._check_backfill(batch_size)
        papers = await self.db.get_papers_needing_embedding(model, batch_size)

        if not papers:
            logger.info("No papers need embeddings")
            return 0

        return await self._embed_papers(papers, model)

    async def backfill_all(self, batch_size: int, max_batches: Optional[int] = None) -> int:
        """
        Run backfill batches until no paper needs an embedding.

        Stops early when a batch selects exactly the papers of the previous
        batch (they keep failing and would block everything behind them),
        or after max_batches batches.

        Returns:
            Total number of papers embedded and saved
        """
        model = self._check_backfill(batch_size)

        total = 0
        batches = 0
        last_ids = None
        while max_batches is None or batches < max_batches:
            papers = await self.db.get_papers_needing_embedding(model, batch_size)
            if not papers:
                break

            ids = [p.id for p in papers]
            if ids == last_ids:
                logger.warning(f"Backfill stopped: {len(ids)} papers keep failing (ids {ids[0]}..{ids[-1]})")
                break
            last_ids = ids

            total += await self._embed_papers(papers, model)
            batches += 1

        logger.info(f"Backfill finished: {total} papers embedded in {batches} batches")
        return total

    def _check_backfill(self, batch_size: int) -> str:
        if self.embedder is None:
            raise ConfigurationError("Embedding service is not configured")
        if batch_size < 1:
            raise InvalidQueryError(f"Batch size must be at least 1, got {batch_size}")
        return self.embedder.model_name

    async def _embed_papers(self, papers: List[Paper], model: str) -> int:
        logger.info(f"Computing embeddings for {len(papers)} papers (model={model})")

        count = 0
        for i, paper in enumerate(papers, start=1):
            text = build_embedding_text(paper)
            try:
                vector = await self.embedder.embed_query(text)
            except Exception as e:
                logger.warning(f"[{i}/{len(papers)}] Embedding failed (paper_id={paper.id}): {e}")
                continue

            try:
                await self.db.save_embedding(paper.id, model, text, vector)
            except Exception as e:
                logger.warning(f"[{i}/{len(papers)}] Saving embedding failed (paper_id={paper.id}): {e}")
                continue

            logger.debug(f"[{i}/{len(papers)}] Saved embedding: paper_id={paper.id}, dim={len(vector)}")
            count += 1

        logger.info(f"Embeddings computed: {count}/{len(papers)} succeeded")
        return count

    def ir_stats(self) -> dict:
        stats = self.ir_searcher.stats()
        stats["initialized"] = not self.ir_searcher.is_empty()
        return stats

    def set_bm25_parameters(self, k1: float, b: float):
        self.ir_searcher.set_bm25_parameters(k1, b)
        logger.info(f"BM25 parameters updated: k1={k1:.2f}, b={b:.2f}")

    def add_paper_to_ir(self, paper: Paper) -> Optional[int]:
        """
        Add a freshly stored paper to a live IR index.

        An empty index is left alone (the next IR query builds it from storage,
        which includes this paper). A paper already indexed under the same
        storage id is not added twice: unchanged text keeps the existing
        document, changed text clears the index so the next IR query rebuilds
        it from storage. Failures are logged, not raised.

        Returns:
            IR document ID of the paper, or None when the index was not touched
            or was cleared
        """
        if self.ir_searcher.is_empty():
            return None

        if paper.id is not None:
            existing = self.ir_searcher.find_document(lambda doc: doc.id == paper.id)
            if existing is not None:
                doc_id, indexed = existing
                if (indexed.title, indexed.abstract) == (paper.title, paper.abstract):
                    logger.debug(f"Paper {paper.id} already indexed as doc {doc_id}")
                    return doc_id
                # Index documents are immutable
                logger.info(f"Paper {paper.id} text changed, IR index cleared for rebuild")
                self.ir_searcher.clear()
                return None

        try:
            return self.ir_searcher.add_document(paper)
        except Exception as e:
            logger.warning(f"Failed to add paper to IR index (paper_id={paper.id}): {e}")
            return None

    def clear_ir_index(self):
        self.ir_searcher.clear()
