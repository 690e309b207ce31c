"""
Abstract base class for lexical scorers.

All scorers share the same search skeleton and only differ in how one
candidate document is scored, so a new ranking function plugs into
IRSearcher without touching its dispatch logic.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Union

from .index import InvertedIndex
from .tokenizer import Tokenizer


@dataclass
class ScoredDocument:
    """Single ranked result"""
    doc_id: int
    score: float
    document: Optional[Any] = None  # Joined original record (search_with_documents only)


class BaseScorer(ABC):
    """
    Shared search skeleton:
    1. Tokenize query
    2. Candidates = union of documents in the query terms' posting lists
    3. Score each candidate (subclass)
    4. Sort by score descending, document ID ascending on ties
    5. Truncate to top_k
    """

    name: str = "base"

    def __init__(self, index: InvertedIndex, tokenizer: Optional[Tokenizer] = None):
        self.index = index
        self.tokenizer = tokenizer or index.tokenizer

    @abstractmethod
    def score_document(self, query_terms: List[str], doc_id: int) -> float:
        """
        Score one candidate document.

        Args:
            query_terms: Tokenized query (duplicates count once per occurrence)
            doc_id: Candidate document ID

        Returns:
            Relevance score (higher = more relevant)
        """
        pass

    def get_parameters(self) -> dict:
        """Tunable parameters (for stats output)"""
        return {}

    def search(self, query: str, top_k: int) -> List[ScoredDocument]:
        """
        Rank indexed documents against query.

        Returns:
            At most top_k results sorted by score (descending).
            top_k <= 0 or a query without index terms returns [].
        """
        if top_k <= 0:
            return []

        query_terms = self.tokenizer.tokenize(query)
        if not query_terms:
            return []

        candidates = set()
        for term in query_terms:
            for posting in self.index.posting_list(term):
                candidates.add(posting.doc_id)

        results = [
            ScoredDocument(doc_id=doc_id, score=self.score_document(query_terms, doc_id))
            for doc_id in candidates
        ]
        results.sort(key=lambda r: (-r.score, r.doc_id))

        return results[:top_k]

    def search_with_documents(
        self,
        query: str,
        top_k: int,
        corpus: Union[Mapping, Sequence],
    ) -> List[ScoredDocument]:
        """
        Search and attach the original records to the results.

        Args:
            corpus: doc_id → record mapping, or a sequence where position i
                holds document ID i + 1 (batch-built index)
        """
        if not isinstance(corpus, Mapping):
            corpus = {doc_id: doc for doc_id, doc in enumerate(corpus, start=1)}

        results = self.search(query, top_k)
        for result in results:
            result.document = corpus.get(result.doc_id)
        return results
