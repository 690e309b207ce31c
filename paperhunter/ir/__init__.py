"""
Lexical information retrieval over paper titles and abstracts.

Components:
- tokenizer: Lowercase, punctuation/hyphen split, stopword removal (no stemming)
- index: In-memory inverted index with per-field term frequencies
- tfidf: Log-scaled TF-IDF with title boosting
- bm25: BM25 with corpus IDF and title boosting
- searcher: Orchestrator owning the index and scorers

The index lives in memory only; it is rebuilt from storage on demand.
"""

from .tokenizer import Tokenizer, tokenize, tokenize_with_counts
from .index import InvertedIndex, Posting
from .base import BaseScorer, ScoredDocument
from .tfidf import TFIDFScorer
from .bm25 import BM25Scorer
from .searcher import IRSearcher, SearchOptions

__all__ = [
    "Tokenizer",
    "tokenize",
    "tokenize_with_counts",
    "InvertedIndex",
    "Posting",
    "BaseScorer",
    "ScoredDocument",
    "TFIDFScorer",
    "BM25Scorer",
    "IRSearcher",
    "SearchOptions",
]
