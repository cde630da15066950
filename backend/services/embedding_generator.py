"""Embedding generation orchestration: chunk, embed, bundle and persist."""
import time
import logging
import threading
from typing import Dict, Optional

from models.chunk import ArticleEmbedding, ChunkEmbedding, EmbeddingModelInfo, EmbeddingVector
from models.content import ContentDocument, utc_now
from services.chunking_engine import ChunkingEngine
from services.embedding_model import EmbeddingProvider
from services.embedding_store import EmbeddingStore
from exceptions import CountMismatchError, ProviderError
from config import EMBEDDING_MAX_RETRIES, EMBEDDING_RETRY_DELAY

logger = logging.getLogger(__name__)


class EmbeddingGenerator:
    """Generate and persist chunk embeddings for content items."""

    def __init__(
        self,
        provider: EmbeddingProvider,
        store: EmbeddingStore,
        chunker: Optional[ChunkingEngine] = None,
        max_attempts: int = EMBEDDING_MAX_RETRIES,
        initial_delay: float = EMBEDDING_RETRY_DELAY
    ):
        """
        Initialize the generator.

        Args:
            provider: Embedding provider adapter
            store: Store that receives generated bundles
            chunker: Chunking engine (default: ChunkingEngine())
            max_attempts: Provider attempts per generation run
            initial_delay: First backoff delay in seconds, doubled after each failure
        """
        self.provider = provider
        self.store = store
        self.chunker = chunker or ChunkingEngine()
        self.max_attempts = max_attempts
        self.initial_delay = initial_delay

        self._item_locks: Dict[str, threading.Lock] = {}
        self._item_locks_guard = threading.Lock()

    def generate_for_item(self, item_id: str, document: ContentDocument) -> ArticleEmbedding:
        """
        Chunk a document and embed every chunk in one provider call.

        Args:
            item_id: Content item identifier (slug)
            document: Validated content document

        Returns:
            ArticleEmbedding with chunks paired 1:1 with vectors in chunk order

        Raises:
            ProviderError: If the provider call fails
            CountMismatchError: If the provider returns the wrong number of vectors
        """
        start_time = time.time()

        chunks = self.chunker.chunk_document(document)
        texts = [chunk.content for chunk in chunks]
        total_tokens = sum(chunk.token_count for chunk in chunks)
        logger.info(f"Generating embeddings for {item_id}: {len(chunks)} chunks, ~{total_tokens} tokens")

        vectors = self.provider.generate_embeddings(texts)
        if len(vectors) != len(chunks):
            raise CountMismatchError(expected=len(chunks), actual=len(vectors))

        model_name = self.provider.get_model_name()
        dimension = self.provider.get_dimension()
        created_at = utc_now().isoformat()

        chunk_embeddings = [
            ChunkEmbedding(
                chunk=chunk,
                embedding=EmbeddingVector(
                    values=[float(v) for v in values],
                    dimension=dimension,
                    model=model_name,
                    created_at=created_at,
                ),
            )
            for chunk, values in zip(chunks, vectors)
        ]

        processing_time_ms = int((time.time() - start_time) * 1000)
        logger.info(f"Generated embeddings for {item_id} in {processing_time_ms}ms")

        return ArticleEmbedding(
            article_id=item_id,
            title=document.metadata.title,
            generated_at=utc_now().isoformat(),
            model=EmbeddingModelInfo(
                name=model_name,
                provider=self.provider.get_provider_name(),
                dimension=dimension,
            ),
            chunks=chunk_embeddings,
            total_chunks=len(chunk_embeddings),
            total_tokens=total_tokens,
            processing_time_ms=processing_time_ms,
        )

    def generate_with_retry(self, item_id: str, document: ContentDocument) -> ArticleEmbedding:
        """
        Run generate_for_item with exponential backoff on provider failures.

        CountMismatchError is not retried.

        Raises:
            ProviderError: If every attempt fails
            CountMismatchError: If the provider returns the wrong number of vectors
        """
        delay = self.initial_delay
        for attempt in range(1, self.max_attempts + 1):
            try:
                return self.generate_for_item(item_id, document)
            except ProviderError as e:
                if attempt == self.max_attempts:
                    logger.error(
                        f"Embedding generation for {item_id} failed after {attempt} attempts: {e}"
                    )
                    raise
                logger.warning(
                    f"Provider error for {item_id} on attempt {attempt}/{self.max_attempts}: {e}. "
                    f"Retrying in {delay}s..."
                )
                time.sleep(delay)
                delay *= 2

        # max_attempts < 1
        raise ValueError("max_attempts must be at least 1")

    def refresh_item(
        self,
        item_id: str,
        document: ContentDocument,
        force: bool = False
    ) -> Optional[ArticleEmbedding]:
        """
        Regenerate and save an item's embeddings if they are stale.

        Runs for the same item are serialized; a failed run leaves the stored
        file untouched.

        Returns:
            The new ArticleEmbedding, or None if the stored one is still fresh
        """
        with self._lock_for(item_id):
            if not force and not self.store.needs_regeneration(document, item_id):
                logger.info(f"Embeddings for {item_id} are up to date")
                return None

            article_embedding = self.generate_with_retry(item_id, document)
            self.store.save(article_embedding)
            return article_embedding

    def estimate_cost(self, document: ContentDocument) -> Optional[float]:
        """Estimated USD cost of embedding a document, if the provider can tell."""
        estimate = getattr(self.provider, "estimate_cost", None)
        if estimate is None:
            return None
        chunks = self.chunker.chunk_document(document)
        return estimate([chunk.content for chunk in chunks])

    def _lock_for(self, item_id: str) -> threading.Lock:
        with self._item_locks_guard:
            lock = self._item_locks.get(item_id)
            if lock is None:
                lock = threading.Lock()
                self._item_locks[item_id] = lock
            return lock
