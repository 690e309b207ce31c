"""
Domain models shared by storage, retrieval and the HTTP layer.

Paper mirrors the normalized record produced by the per-platform crawlers
(arXiv, ACL, OpenReview, SSRN). Only title and abstract take part in scoring;
source and dates are used for filtering.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass
class Paper:
    """Normalized paper record, independent of the source platform"""
    title: str
    abstract: str = ""
    source: str = ""                 # Platform tag: "arxiv", "acl", "openreview", "ssrn"
    source_id: str = ""              # Platform-local ID, e.g. arXiv ID
    url: str = ""
    id: Optional[int] = None         # Storage ID (assigned by the database)
    title_translated: str = ""
    abstract_translated: str = ""
    authors: List[str] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)
    comments: str = ""
    first_submitted_at: Optional[datetime] = None
    first_announced_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class SearchCondition:
    """
    Pre-filter applied before ranking (keyword and semantic search).

    Date bounds apply to first_announced_at and are inclusive on both ends.
    """
    sources: List[str] = field(default_factory=list)
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    limit: int = 0                   # 0 = no limit


@dataclass
class SimilarPaper:
    """
    Paper with a relevance score.

    similarity meaning depends on search mode:
    - semantic: cosine similarity in [-1, 1]
    - ir: raw BM25 / TF-IDF score (unbounded)
    - keyword: constant 1.0
    """
    paper: Paper
    similarity: float
