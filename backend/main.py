"""Main entry point for the content search API."""
import logging
from typing import Optional
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from config import (
    PORT,
    LOG_LEVEL,
    CORS_ORIGINS,
    CONTENT_DIR,
    EMBEDDINGS_DIR,
    EMBEDDING_MODEL,
    SEARCH_DEFAULT_LIMIT,
)
from models.api import TextSearchRequest, VectorSearchRequest
from services.content_loader import ContentLoader
from services.chunking_engine import ChunkingEngine
from services.embedding_model import OpenAIEmbeddingModel
from services.embedding_store import EmbeddingStore
from services.search_index import SearchIndex
from services.search_engine import SearchEngine
from services.retrieval_engine import RetrievalEngine

# Initialize logging
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Content Search API",
    description="Text, vector and hybrid search over articles, docs and labs",
    version="1.0.0"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Initialize services (will be done on startup)
search_index: SearchIndex = None
retrieval_engine: RetrievalEngine = None


@app.on_event("startup")
async def startup_event():
    """Load content and stored embeddings into the search index."""
    global search_index, retrieval_engine

    logger.info("Initializing content search services...")

    try:
        try:
            embedding_model = OpenAIEmbeddingModel()
            logger.info("Initialized embedding model")
        except ValueError as e:
            # Without an API key hybrid search still works, text-only
            logger.warning(f"Embedding model unavailable: {e}")
            embedding_model = None

        model_name = embedding_model.get_model_name() if embedding_model else EMBEDDING_MODEL
        store = EmbeddingStore(EMBEDDINGS_DIR, model_name=model_name)
        documents = ContentLoader(CONTENT_DIR).load_documents()

        search_index = SearchIndex()
        search_index.init(documents, ChunkingEngine(), store)

        retrieval_engine = RetrievalEngine(SearchEngine(search_index), embedding_model)
        logger.info("All services initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize services: {e}", exc_info=True)
        raise


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "message": "Content Search API"}


@app.get("/health")
async def health():
    """Detailed health check."""
    return {
        "status": "healthy",
        "service": "content-search",
        "version": "1.0.0",
        "sections": len(search_index) if search_index is not None else 0,
    }


def _run_search(search_type: str, search):
    """Run a search call, turning unexpected failures into a 500."""
    try:
        return search().to_dict()
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"{search_type.capitalize()} search error: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to perform {search_type} search")


@app.get("/api/search/text")
async def text_search_get(q: Optional[str] = None, limit: int = SEARCH_DEFAULT_LIMIT):
    """Keyword search via query string."""
    if not q:
        raise HTTPException(status_code=400, detail="query parameter is required")
    return _run_search("text", lambda: retrieval_engine.text_search(q, limit=limit))


@app.post("/api/search/text")
async def text_search_post(request: TextSearchRequest):
    """Keyword search via JSON body."""
    if not request.query:
        raise HTTPException(status_code=400, detail="query string is required")
    return _run_search("text", lambda: retrieval_engine.text_search(request.query, limit=request.limit))


@app.post("/api/search/vector")
async def vector_search_post(request: VectorSearchRequest):
    """Similarity search with a caller-supplied embedding."""
    if not request.embedding:
        raise HTTPException(status_code=400, detail="embedding array is required")
    return _run_search(
        "vector",
        lambda: retrieval_engine.vector_search(request.embedding, limit=request.limit)
    )


@app.get("/api/search/hybrid")
async def hybrid_search_get(q: Optional[str] = None, limit: int = SEARCH_DEFAULT_LIMIT):
    """Hybrid search; the query is embedded server-side when a provider is configured."""
    if not q:
        raise HTTPException(status_code=400, detail="query parameter is required")
    return _run_search("hybrid", lambda: retrieval_engine.hybrid_search(q, limit=limit))


@app.get("/api/search/stats")
async def search_stats():
    """Index statistics."""
    if search_index is None:
        raise HTTPException(status_code=503, detail="Search index is not initialized")
    return search_index.get_stats()


if __name__ == "__main__":
    import uvicorn
    from logger import setup_logging
    setup_logging(LOG_LEVEL)
    logger.info(f"Starting Content Search API on port {PORT}")
    uvicorn.run(app, host="0.0.0.0", port=PORT)
