"""
In-memory inverted index over paper titles and abstracts.

Structure:
    term → {doc_id: Posting}

Each posting keeps title and abstract frequencies separately so scorers can
weight title matches higher. Documents are immutable once added; the only
way to remove one is clear() and rebuild.

Document IDs come from a single monotonic counter owned by the index
(1, 2, 3, ...), so single adds and batch adds can be mixed freely.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from .locks import ReadWriteLock
from .tokenizer import Tokenizer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Posting:
    """Occurrences of one term in one document"""
    doc_id: int
    term_freq: int       # title_freq + abstract_freq
    title_freq: int
    abstract_freq: int


class InvertedIndex:
    """
    Term → postings mapping plus the length statistics BM25 needs.

    Thread safety: every accessor takes the read side of a reader-writer lock,
    add_document()/clear() take the write side, so readers never observe a
    half-added document.
    """

    def __init__(self, tokenizer: Optional[Tokenizer] = None):
        self.tokenizer = tokenizer or Tokenizer()
        self._lock = ReadWriteLock()
        self._reset()

    def _reset(self):
        self._index: Dict[str, Dict[int, Posting]] = {}
        self._doc_lengths: Dict[int, int] = {}
        self._title_lengths: Dict[int, int] = {}
        self._abstract_lengths: Dict[int, int] = {}
        self._total_docs = 0
        self._avg_doc_length = 0.0
        self._last_doc_id = 0

    def add_document(self, title: str, abstract: str, doc_id: Optional[int] = None) -> int:
        """
        Index one document.

        Args:
            title: Document title
            abstract: Document abstract (may be empty)
            doc_id: Explicit ID (optional). Must not be indexed already.
                Default: next value of the index counter.

        Returns:
            The document ID used in postings

        Raises:
            ValueError: doc_id is not positive or already indexed
        """
        title_tokens = self.tokenizer.tokenize(title or "")
        abstract_tokens = self.tokenizer.tokenize(abstract or "")

        title_counts = Counter(title_tokens)
        abstract_counts = Counter(abstract_tokens)

        with self._lock.write_locked():
            if doc_id is None:
                doc_id = self._last_doc_id + 1
            elif doc_id <= 0:
                raise ValueError(f"Document ID must be positive, got {doc_id}")
            elif doc_id in self._doc_lengths:
                raise ValueError(f"Document {doc_id} is already indexed")

            # Title terms first, then abstract-only terms (dict keeps order)
            for term in dict.fromkeys(title_tokens + abstract_tokens):
                title_freq = title_counts[term]
                abstract_freq = abstract_counts[term]
                self._index.setdefault(term, {})[doc_id] = Posting(
                    doc_id=doc_id,
                    term_freq=title_freq + abstract_freq,
                    title_freq=title_freq,
                    abstract_freq=abstract_freq,
                )

            self._title_lengths[doc_id] = len(title_tokens)
            self._abstract_lengths[doc_id] = len(abstract_tokens)
            self._doc_lengths[doc_id] = len(title_tokens) + len(abstract_tokens)

            self._total_docs += 1
            self._last_doc_id = max(self._last_doc_id, doc_id)
            self._update_average_document_length()

        logger.debug(
            f"Indexed doc {doc_id}: {len(title_tokens)} title + {len(abstract_tokens)} abstract tokens"
        )
        return doc_id

    def add_documents(self, documents: Iterable) -> List[int]:
        """
        Index documents in input order.

        Args:
            documents: Objects with `title` and `abstract` attributes

        Returns:
            Assigned document IDs, same order as input
        """
        return [self.add_document(doc.title, doc.abstract) for doc in documents]

    def _update_average_document_length(self):
        # Full pass on every add (caller holds the write lock)
        if self._total_docs == 0:
            self._avg_doc_length = 0.0
            return
        self._avg_doc_length = sum(self._doc_lengths.values()) / self._total_docs

    def posting_list(self, term: str) -> List[Posting]:
        """Postings of term in insertion order (empty list for unknown terms)"""
        with self._lock.read_locked():
            postings = self._index.get(term)
            return list(postings.values()) if postings else []

    def get_posting(self, term: str, doc_id: int) -> Optional[Posting]:
        with self._lock.read_locked():
            postings = self._index.get(term)
            return postings.get(doc_id) if postings else None

    def document_frequency(self, term: str) -> int:
        """Number of documents containing term in title or abstract"""
        with self._lock.read_locked():
            return len(self._index.get(term, ()))

    def term_frequency(self, term: str, doc_id: int) -> int:
        posting = self.get_posting(term, doc_id)
        return posting.term_freq if posting else 0

    def document_length(self, doc_id: int) -> int:
        with self._lock.read_locked():
            return self._doc_lengths.get(doc_id, 0)

    def title_length(self, doc_id: int) -> int:
        with self._lock.read_locked():
            return self._title_lengths.get(doc_id, 0)

    def abstract_length(self, doc_id: int) -> int:
        with self._lock.read_locked():
            return self._abstract_lengths.get(doc_id, 0)

    def average_document_length(self) -> float:
        with self._lock.read_locked():
            return self._avg_doc_length

    def total_docs(self) -> int:
        with self._lock.read_locked():
            return self._total_docs

    def vocabulary_size(self) -> int:
        with self._lock.read_locked():
            return len(self._index)

    def terms(self) -> List[str]:
        with self._lock.read_locked():
            return list(self._index)

    def clear(self):
        """Drop all postings and statistics; the ID counter restarts at 1"""
        with self._lock.write_locked():
            self._reset()
