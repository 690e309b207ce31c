"""
PaperHunter search API - FastAPI surface over the hybrid retrieval core

Exposes:
- One search endpoint with three modes (semantic, keyword, ir)
- IR index lifecycle (build, clear, stats) and BM25 tuning
- Embedding backfill for papers without a vector for the active model
- Paper upsert for ingestion clients (crawlers)

Storage: PostgreSQL (asyncpg), embeddings stored as float32 blobs per paper.
"""

import dataclasses
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import List, Literal, Optional

from fastapi import FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .config import load_env_files, load_settings
from .database import PaperDB
from .embedding import create_embedder
from .exceptions import ConfigurationError, EmbeddingError, InvalidQueryError
from .logging_config import setup_logging
from .models import Paper, SearchCondition
from .searcher import SearchRequest, UnifiedSearcher

load_env_files()
settings = load_settings()

logger = logging.getLogger(__name__)

APP_VERSION = "0.1.0"
APP_START_TIME = datetime.utcnow()

paper_db = PaperDB(settings.database_url)
searcher: Optional[UnifiedSearcher] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize and cleanup resources"""
    global searcher

    setup_logging(
        log_file=settings.log_file,
        console_level=getattr(logging, settings.log_level, logging.INFO),
        file_level=logging.DEBUG,  # Always DEBUG in file for troubleshooting
    )

    logger.info("Connecting to database...")
    await paper_db.connect()
    await paper_db.init_schema()

    embedder = create_embedder(settings)
    searcher = UnifiedSearcher(
        db=paper_db,
        embedder=embedder,
        ir_snapshot_limit=settings.ir_snapshot_limit,
    )
    searcher.set_bm25_parameters(settings.bm25_k1, settings.bm25_b)
    logger.info("Searcher initialized")

    yield

    logger.info("Shutting down...")
    if embedder is not None:
        embedder.close()
    await paper_db.disconnect()
    searcher = None


app = FastAPI(
    title="PaperHunter Search API",
    description="Hybrid paper retrieval: BM25 / TF-IDF, keyword and semantic search",
    version=APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure properly in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request/Response models
class PaperModel(BaseModel):
    id: Optional[int] = None
    source: str = ""
    source_id: str = ""
    url: str = ""
    title: str = Field(..., min_length=1)
    title_translated: str = ""
    abstract: str = ""
    abstract_translated: str = ""
    authors: List[str] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)
    comments: str = ""
    first_submitted_at: Optional[datetime] = None
    first_announced_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_paper(self) -> Paper:
        return Paper(**self.model_dump())

    @classmethod
    def from_paper(cls, paper: Paper) -> "PaperModel":
        return cls(**dataclasses.asdict(paper))


class SearchRequestModel(BaseModel):
    query: str = Field(default="", description="Free-text query")
    examples: List[PaperModel] = Field(
        default_factory=list,
        description="Example papers; their embedding centroid is the query (semantic mode)"
    )
    mode: Literal["semantic", "keyword", "ir"] = "semantic"
    ir_algorithm: str = Field(default="bm25", description="tfidf | bm25 | all")
    top_k: int = Field(default=10, ge=1, le=1000)
    sources: List[str] = Field(default_factory=list, description="Source allow-list")
    date_from: Optional[datetime] = Field(default=None, description="Announced on or after")
    date_to: Optional[datetime] = Field(default=None, description="Announced on or before")
    limit: int = Field(default=0, ge=0, description="Storage-side limit for keyword search (0 = none)")

    def to_search_request(self) -> SearchRequest:
        return SearchRequest(
            query=self.query,
            examples=[e.to_paper() for e in self.examples],
            condition=SearchCondition(
                sources=self.sources,
                date_from=self.date_from,
                date_to=self.date_to,
                limit=self.limit,
            ),
            top_k=self.top_k,
            semantic=self.mode == "semantic",
            ir=self.mode == "ir",
            ir_algorithm=self.ir_algorithm,
        )


class SearchResultItem(BaseModel):
    paper: PaperModel
    similarity: float


class SearchResponse(BaseModel):
    query: str
    mode: str
    results: List[SearchResultItem]
    total: int


class BM25ParametersRequest(BaseModel):
    k1: float = Field(..., gt=0)
    b: float = Field(..., ge=0.0, le=1.0)


class BackfillRequest(BaseModel):
    batch_size: Optional[int] = Field(default=None, ge=1, le=10000)


class BackfillResponse(BaseModel):
    embedded: int
    model: str


class IndexBuildResponse(BaseModel):
    indexed: int
    stats: dict


class PaperUpsertResponse(BaseModel):
    id: int
    ir_doc_id: Optional[int] = None


def _get_searcher() -> UnifiedSearcher:
    if searcher is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Searcher not initialized",
        )
    return searcher


# Routes
@app.get("/", response_model=dict)
async def root():
    """Root endpoint"""
    return {
        "service": "PaperHunter Search API",
        "version": APP_VERSION,
        "status": "running",
        "docs": "/docs",
    }


@app.get("/health")
async def health():
    """Health check"""
    uptime = (datetime.utcnow() - APP_START_TIME).total_seconds()
    current = searcher
    return {
        "status": "healthy",
        "version": APP_VERSION,
        "started_at": APP_START_TIME.isoformat() + "Z",
        "uptime_seconds": round(uptime, 2),
        "semantic_search": current is not None and current.embedder is not None,
        "ir_index_documents": current.ir_searcher.index.total_docs() if current else 0,
    }


@app.post("/v1/search", response_model=SearchResponse)
async def search_papers(request: SearchRequestModel):
    """
    Search papers.

    **Modes:**
    - `semantic` (default): embed `query` (or the centroid of `examples`) and rank
      stored embeddings by cosine similarity
    - `keyword`: case-insensitive literal substring match on title/abstract, similarity = 1.0
    - `ir`: BM25 / TF-IDF ranking (`ir_algorithm`), index built on first use

    **Filters** (`sources`, `date_from`, `date_to`) apply before ranking
    in keyword and semantic mode.
    """
    results = await _get_searcher().search(request.to_search_request())

    return SearchResponse(
        query=request.query,
        mode=request.mode,
        results=[
            SearchResultItem(paper=PaperModel.from_paper(r.paper), similarity=r.similarity)
            for r in results
        ],
        total=len(results),
    )


@app.post("/v1/index/build", response_model=IndexBuildResponse)
async def build_index():
    """Rebuild the IR index from all stored papers"""
    current = _get_searcher()
    indexed = await current.build_ir_index()
    return IndexBuildResponse(indexed=indexed, stats=current.ir_stats())


@app.post("/v1/index/clear")
async def clear_index():
    """Drop the in-memory IR index (rebuilt on the next IR query)"""
    current = _get_searcher()
    current.clear_ir_index()
    return {"message": "IR index cleared", "stats": current.ir_stats()}


@app.get("/v1/index/stats")
async def index_stats():
    return _get_searcher().ir_stats()


@app.put("/v1/index/bm25")
async def set_bm25_parameters(request: BM25ParametersRequest):
    current = _get_searcher()
    current.set_bm25_parameters(request.k1, request.b)
    k1, b = current.ir_searcher.get_bm25_parameters()
    return {"k1": k1, "b": b}


@app.post("/v1/embeddings/backfill", response_model=BackfillResponse)
async def backfill_embeddings(request: BackfillRequest):
    """Embed papers that lack a vector for the active model (partial success is normal)"""
    current = _get_searcher()
    batch_size = request.batch_size or settings.backfill_batch_size
    embedded = await current.compute_missing_embeddings(batch_size)
    return BackfillResponse(embedded=embedded, model=current.embedder.model_name)


@app.post("/v1/papers", response_model=PaperUpsertResponse)
async def upsert_paper(request: PaperModel):
    """Store a paper (insert or update by source + source_id)"""
    current = _get_searcher()
    paper = request.to_paper()
    paper.id = await current.db.upsert_paper(paper)
    ir_doc_id = current.add_paper_to_ir(paper)
    return PaperUpsertResponse(id=paper.id, ir_doc_id=ir_doc_id)


@app.exception_handler(InvalidQueryError)
async def invalid_query_handler(request, exc):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request", "detail": str(exc)},
    )


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request, exc):
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"error": "Service not configured", "detail": str(exc)},
    )


@app.exception_handler(EmbeddingError)
async def embedding_error_handler(request, exc):
    logger.error(f"Embedding service error: {exc}")
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"error": "Embedding service error", "detail": str(exc)},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler"""
    logger.exception(f"Unhandled error: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "detail": str(exc),
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "paperhunter.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=True,  # Development only
    )
