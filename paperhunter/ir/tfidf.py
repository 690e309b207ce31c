"""
TF-IDF scorer with title boosting.

Formula (per query term t, document d):
    idf(t) = ln(N / df(t))
    score(t, d) = Σ_field (1 + ln(tf_field)) × idf(t) × weight_field

Where:
    N = total indexed documents
    df(t) = documents containing t
    tf_field = occurrences of t in the field (fields with tf = 0 are skipped)
    weight_title = 2.0, weight_abstract = 1.0

A term present in no document contributes 0 (never ln(N/0)).
"""

import math
from typing import List, Optional

from .base import BaseScorer
from .index import InvertedIndex
from .tokenizer import Tokenizer


class TFIDFScorer(BaseScorer):
    """Log-scaled TF-IDF, summed over title and abstract fields"""

    name = "tfidf"

    def __init__(
        self,
        index: InvertedIndex,
        tokenizer: Optional[Tokenizer] = None,
        title_weight: float = 2.0,
        abstract_weight: float = 1.0,
    ):
        super().__init__(index, tokenizer)
        self.title_weight = title_weight
        self.abstract_weight = abstract_weight

    def idf(self, term: str) -> float:
        df = self.index.document_frequency(term)
        total_docs = self.index.total_docs()
        if df == 0 or total_docs == 0:
            return 0.0
        return math.log(total_docs / df)

    def score_document(self, query_terms: List[str], doc_id: int) -> float:
        score = 0.0

        for term in query_terms:
            posting = self.index.get_posting(term, doc_id)
            if posting is None or posting.term_freq == 0:
                continue

            idf = self.idf(term)

            if posting.title_freq > 0:
                score += (1 + math.log(posting.title_freq)) * idf * self.title_weight
            if posting.abstract_freq > 0:
                score += (1 + math.log(posting.abstract_freq)) * idf * self.abstract_weight

        return score

    def get_parameters(self) -> dict:
        return {
            "title_weight": self.title_weight,
            "abstract_weight": self.abstract_weight,
        }
