"""
IR search orchestrator: owns one inverted index, the scorers bound to it and
the live document list used to join results back to records.

Locking:
    build_index() / add_document() / clear() / set_bm25_parameters() take the
    write side of the orchestrator lock, search() / search_multiple() / stats()
    the read side. The index has its own finer-grained lock underneath.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from ..exceptions import EmptyIndexError, InvalidQueryError, UnknownAlgorithmError
from .base import BaseScorer, ScoredDocument
from .bm25 import BM25Scorer
from .index import InvertedIndex
from .locks import ReadWriteLock
from .tfidf import TFIDFScorer
from .tokenizer import Tokenizer

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 10
DEFAULT_ALGORITHM = "bm25"


@dataclass
class SearchOptions:
    """Lexical search request"""
    query: str
    top_k: int = DEFAULT_TOP_K
    algorithm: str = DEFAULT_ALGORITHM


class IRSearcher:
    """
    Lexical search engine over an in-memory index.

    Scorers are looked up by name, so another ranking function only needs
    register_scorer() and no change here.
    """

    def __init__(
        self,
        tokenizer: Optional[Tokenizer] = None,
        k1: float = 1.5,
        b: float = 0.75,
    ):
        self.tokenizer = tokenizer or Tokenizer()
        self._lock = ReadWriteLock()
        self._index = InvertedIndex(self.tokenizer)
        self._documents: Dict[int, Any] = {}
        self._bm25 = BM25Scorer(self._index, self.tokenizer, k1=k1, b=b)
        self._scorers: Dict[str, BaseScorer] = {
            TFIDFScorer.name: TFIDFScorer(self._index, self.tokenizer),
            BM25Scorer.name: self._bm25,
        }

    @property
    def index(self) -> InvertedIndex:
        return self._index

    @property
    def algorithms(self) -> List[str]:
        return list(self._scorers)

    def register_scorer(self, name: str, scorer: BaseScorer):
        """Add (or replace) a named ranking function bound to this index and tokenizer"""
        with self._lock.write_locked():
            scorer.index = self._index
            scorer.tokenizer = self.tokenizer
            self._scorers[name] = scorer

    def build_index(self, documents: Sequence[Any]):
        """
        Replace the index with one built from documents.

        Args:
            documents: Records with `title` and `abstract` attributes

        Raises:
            InvalidQueryError: documents is empty
        """
        if not documents:
            raise InvalidQueryError("Cannot build index from an empty document list")

        with self._lock.write_locked():
            self._reset_index()
            doc_ids = self._index.add_documents(documents)
            self._documents = dict(zip(doc_ids, documents))

        logger.info(
            f"IR index built: {len(documents)} documents, "
            f"{self._index.vocabulary_size()} terms, "
            f"avg length {self._index.average_document_length():.1f}"
        )

    def add_document(self, document: Any) -> int:
        """
        Append one document to the index.

        Returns:
            Assigned document ID
        """
        if document is None:
            raise InvalidQueryError("Document must not be None")

        with self._lock.write_locked():
            doc_id = self._index.add_document(document.title, document.abstract)
            self._documents[doc_id] = document

        logger.debug(f"Added document {doc_id} to IR index")
        return doc_id

    def _scorer(self, algorithm: str) -> BaseScorer:
        scorer = self._scorers.get(algorithm)
        if scorer is None:
            raise UnknownAlgorithmError(algorithm, self._scorers)
        return scorer

    def _validate(self, query: str):
        if not query or not query.strip():
            raise InvalidQueryError("Query must not be empty")
        if not self._documents:
            raise EmptyIndexError("Index is empty, build it first")

    def search(self, options: SearchOptions) -> List[ScoredDocument]:
        """
        Rank documents with one algorithm.

        Defaults: top_k <= 0 → 10, empty algorithm → "bm25".

        Raises:
            InvalidQueryError: empty query
            EmptyIndexError: nothing indexed
            UnknownAlgorithmError: algorithm not registered
        """
        top_k = options.top_k if options.top_k > 0 else DEFAULT_TOP_K
        algorithm = options.algorithm or DEFAULT_ALGORITHM

        with self._lock.read_locked():
            self._validate(options.query)
            scorer = self._scorer(algorithm)
            return scorer.search_with_documents(options.query, top_k, self._documents)

    def search_multiple(
        self,
        query: str,
        top_k: int = DEFAULT_TOP_K,
        algorithms: Optional[Iterable[str]] = None,
    ) -> Dict[str, List[ScoredDocument]]:
        """
        Run several algorithms on the same query (comparison / debugging).

        Args:
            algorithms: Names to run (default: every registered scorer)

        Returns:
            algorithm → ranked results
        """
        top_k = top_k if top_k > 0 else DEFAULT_TOP_K

        with self._lock.read_locked():
            self._validate(query)
            names = list(algorithms) if algorithms else list(self._scorers)
            scorers = [(name, self._scorer(name)) for name in names]
            return {
                name: scorer.search_with_documents(query, top_k, self._documents)
                for name, scorer in scorers
            }

    def _reset_index(self):
        # Caller holds the write lock
        self._index = InvertedIndex(self.tokenizer)
        for scorer in self._scorers.values():
            scorer.index = self._index
        self._documents = {}

    def clear(self):
        """Discard all documents; BM25 parameters are kept"""
        with self._lock.write_locked():
            self._reset_index()
        logger.info("IR index cleared")

    def set_bm25_parameters(self, k1: float, b: float):
        if k1 <= 0:
            raise InvalidQueryError(f"k1 must be positive, got {k1}")
        if not 0.0 <= b <= 1.0:
            raise InvalidQueryError(f"b must be within [0, 1], got {b}")
        with self._lock.write_locked():
            self._bm25.set_parameters(k1, b)

    def get_bm25_parameters(self) -> Tuple[float, float]:
        with self._lock.read_locked():
            return self._bm25.get_bm25_parameters()

    def stats(self) -> dict:
        with self._lock.read_locked():
            k1, b = self._bm25.get_bm25_parameters()
            return {
                "total_papers": len(self._documents),
                "vocabulary_size": self._index.vocabulary_size(),
                "total_docs": self._index.total_docs(),
                "average_doc_length": self._index.average_document_length(),
                "bm25_k1": k1,
                "bm25_b": b,
                "algorithms": list(self._scorers),
            }

    def get_documents(self) -> List[Any]:
        """Indexed records in document ID order"""
        with self._lock.read_locked():
            return [self._documents[doc_id] for doc_id in sorted(self._documents)]

    def get_document(self, doc_id: int) -> Optional[Any]:
        with self._lock.read_locked():
            return self._documents.get(doc_id)

    def find_document(self, predicate: Callable[[Any], bool]) -> Optional[Tuple[int, Any]]:
        """First (doc_id, record) whose record satisfies predicate, in document ID order"""
        with self._lock.read_locked():
            for doc_id in sorted(self._documents):
                document = self._documents[doc_id]
                if predicate(document):
                    return doc_id, document
            return None

    def is_empty(self) -> bool:
        with self._lock.read_locked():
            return not self._documents
