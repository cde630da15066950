"""Retrieval engine serving the text, vector and hybrid query interfaces."""
import logging
from typing import List, Optional

from models.search import SearchResponse
from services.search_engine import SearchEngine
from services.embedding_model import EmbeddingProvider
from exceptions import ProviderError

logger = logging.getLogger(__name__)


class RetrievalEngine:
    """Wrap search results in response envelopes and embed queries for hybrid search."""

    def __init__(self, search_engine: SearchEngine, embedding_model: Optional[EmbeddingProvider] = None):
        """
        Initialize the retrieval engine.

        Args:
            search_engine: SearchEngine over the current index
            embedding_model: Provider used to embed hybrid queries; text-only when None
        """
        self.search_engine = search_engine
        self.embedding_model = embedding_model
        logger.info("Initialized RetrievalEngine")

    def text_search(self, query: str, limit: int = 10) -> SearchResponse:
        """Keyword search; an empty query yields an empty response."""
        if not query or not query.strip():
            logger.warning("Empty query string provided, returning empty results")
            return SearchResponse(query=query, results=[], search_type="text")

        results = self.search_engine.text_search(query, limit=limit)
        logger.info(f"Text search returned {len(results)} results")
        return SearchResponse(query=query, results=results, search_type="text")

    def vector_search(self, query_embedding: List[float], limit: int = 10) -> SearchResponse:
        """Similarity search with a caller-supplied query embedding."""
        results = self.search_engine.vector_search(query_embedding, limit=limit)
        logger.info(f"Vector search returned {len(results)} results")
        return SearchResponse(query=query_embedding, results=results, search_type="vector")

    def hybrid_search(
        self,
        query: str,
        limit: int = 10,
        query_embedding: Optional[List[float]] = None
    ) -> SearchResponse:
        """
        Hybrid search for a query string.

        The query is embedded with the configured provider unless an embedding
        is supplied. If the provider fails, the search degrades to text-only
        fusion instead of failing the whole query.
        """
        if not query or not query.strip():
            logger.warning("Empty query string provided, returning empty results")
            return SearchResponse(query=query, results=[], search_type="hybrid")

        if query_embedding is None and self.embedding_model is not None:
            try:
                query_embedding = self.embedding_model.embed_text(query)
            except ProviderError as e:
                logger.warning(f"Query embedding failed, falling back to text-only search: {e}")

        results = self.search_engine.hybrid_search(query, query_vector=query_embedding, limit=limit)
        logger.info(
            f"Hybrid search returned {len(results)} results "
            f"({'with' if query_embedding is not None else 'without'} vector scores)"
        )
        return SearchResponse(query=query, results=results, search_type="hybrid")
