"""
BM25 (Best Match 25) scorer over the in-memory inverted index.

BM25 is a probabilistic ranking function: term frequency saturates (k1) and
long documents are penalized (b).

Formula (per query term t, document d):
    score(t, d) = idf(t) × (tf × (k1 + 1)) / (tf + k1 × (1 - b + b × dl/avgdl))

Where:
    tf = occurrences of t in d (title + abstract)
    k1 = term frequency saturation parameter (default: 1.5)
    b = length normalization parameter (default: 0.75)
    dl = document length in tokens (title + abstract)
    avgdl = average document length across the index

IDF:
    idf(t) = ln(N / df)
    If t occurs in every document (df == N) idf is clamped to 0.1 instead of 0,
    so ubiquitous terms still contribute a small positive score.

Field boosting:
    After the base score, multiply by 1 + (title_weight - 1) × title_freq/tf
    when the term occurs in the title, and by
    1 + (abstract_weight - 1) × abstract_freq/tf when it occurs in the abstract.
    With title_weight = 2.0 and abstract_weight = 1.0 only title hits are boosted.
"""

import math
from typing import List, Optional, Tuple

from .base import BaseScorer
from .index import InvertedIndex
from .tokenizer import Tokenizer

# IDF used for terms that occur in every document
UBIQUITOUS_TERM_IDF = 0.1


class BM25Scorer(BaseScorer):
    """
    BM25 with corpus IDF and title/abstract field boosting.
    """

    name = "bm25"

    def __init__(
        self,
        index: InvertedIndex,
        tokenizer: Optional[Tokenizer] = None,
        k1: float = 1.5,
        b: float = 0.75,
        title_weight: float = 2.0,
        abstract_weight: float = 1.0,
    ):
        """
        Initialize BM25 scorer.

        Args:
            index: Inverted index to score against
            tokenizer: Query tokenizer (default: the index tokenizer)
            k1: Term frequency saturation parameter
                Higher = more weight to term frequency
                Range: 1.2 - 2.0
            b: Length normalization parameter
                Higher = more penalty for long documents
                Range: 0.0 - 1.0
            title_weight: Boost for occurrences in the title
            abstract_weight: Boost for occurrences in the abstract
        """
        super().__init__(index, tokenizer)
        self.k1 = k1
        self.b = b
        self.title_weight = title_weight
        self.abstract_weight = abstract_weight

    def set_parameters(self, k1: float, b: float):
        self.k1 = k1
        self.b = b

    def get_bm25_parameters(self) -> Tuple[float, float]:
        return self.k1, self.b

    def idf(self, term: str) -> float:
        df = self.index.document_frequency(term)
        total_docs = self.index.total_docs()

        if df == 0 or total_docs == 0:
            return 0.0
        if df == total_docs:
            return UBIQUITOUS_TERM_IDF
        return math.log(total_docs / df)

    def score_document(self, query_terms: List[str], doc_id: int) -> float:
        doc_length = self.index.document_length(doc_id)
        if doc_length == 0:
            return 0.0

        avg_doc_length = self.index.average_document_length()
        if avg_doc_length == 0:
            return 0.0

        length_norm = 1 - self.b + self.b * (doc_length / avg_doc_length)
        score = 0.0

        for term in query_terms:
            posting = self.index.get_posting(term, doc_id)
            if posting is None or posting.term_freq == 0:
                continue

            idf = self.idf(term)
            if idf == 0:
                continue

            tf = posting.term_freq
            numerator = tf * (self.k1 + 1)
            denominator = tf + self.k1 * length_norm
            term_score = idf * (numerator / denominator)

            # Field boosting by share of occurrences
            if posting.title_freq > 0:
                term_score *= 1 + (self.title_weight - 1) * (posting.title_freq / tf)
            if posting.abstract_freq > 0:
                term_score *= 1 + (self.abstract_weight - 1) * (posting.abstract_freq / tf)

            score += term_score

        return score

    def get_parameters(self) -> dict:
        return {
            "k1": self.k1,
            "b": self.b,
            "title_weight": self.title_weight,
            "abstract_weight": self.abstract_weight,
        }
