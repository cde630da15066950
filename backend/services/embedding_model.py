"""Embedding provider adapters for OpenAI-compatible embedding APIs."""
import time
import logging
from abc import ABC, abstractmethod
from typing import List, Optional
import httpx

from config import OPENAI_API_KEY, OPENAI_BASE_URL, EMBEDDING_MODEL, EMBEDDING_TIMEOUT
from exceptions import ProviderError
from models.chunk import estimate_tokens

logger = logging.getLogger(__name__)

MODEL_DIMENSIONS = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}
DEFAULT_DIMENSION = 1536

# USD per 1M tokens
MODEL_PRICING = {
    "text-embedding-3-large": 0.13,
}
DEFAULT_PRICE_PER_MILLION = 0.02


class EmbeddingProvider(ABC):
    """Seam for swapping embedding backends without touching chunking or search."""

    @abstractmethod
    def generate_embeddings(self, texts: List[str]) -> List[List[float]]:
        """Return one vector per input text, in input order."""

    @abstractmethod
    def get_dimension(self) -> int:
        """Dimension of every vector this provider returns."""

    @abstractmethod
    def get_model_name(self) -> str:
        """Model identifier recorded with generated embeddings."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Backend name, e.g. "openai"."""

    def embed_text(self, text: str) -> List[float]:
        """
        Generate embedding for a single text string.

        Raises:
            ValueError: If text is empty
            ProviderError: If the provider call fails
        """
        if not text or not text.strip():
            raise ValueError("Text cannot be empty")
        embeddings = self.generate_embeddings([text])
        if len(embeddings) != 1:
            raise ProviderError(f"Expected 1 embedding, got {len(embeddings)}")
        return embeddings[0]


class OpenAIEmbeddingModel(EmbeddingProvider):
    """Client for the OpenAI /embeddings endpoint (or any compatible server)."""

    def __init__(
        self,
        api_key: Optional[str] = OPENAI_API_KEY,
        model_name: str = EMBEDDING_MODEL,
        base_url: str = OPENAI_BASE_URL,
        timeout: float = EMBEDDING_TIMEOUT
    ):
        """
        Initialize the embedding client.

        Args:
            api_key: OpenAI API key
            model_name: Embedding model identifier (default: text-embedding-3-small)
            base_url: API base URL, without the /embeddings suffix
            timeout: Request timeout in seconds

        Raises:
            ValueError: If no API key is available
        """
        if not api_key:
            raise ValueError("OPENAI_API_KEY environment variable is required")

        self.api_key = api_key
        self.model_name = model_name
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.api_url = f"{self.base_url}/embeddings"
        self.dimension = MODEL_DIMENSIONS.get(model_name, DEFAULT_DIMENSION)

        logger.info(f"Initialized OpenAIEmbeddingModel with model: {model_name}")

    def get_dimension(self) -> int:
        return self.dimension

    def get_model_name(self) -> str:
        return self.model_name

    def get_provider_name(self) -> str:
        return "openai"

    def generate_embeddings(self, texts: List[str]) -> List[List[float]]:
        """
        Generate embeddings for a batch of texts in a single API call.

        The adapter does not retry; retry policy belongs to the caller.

        Args:
            texts: Texts to embed

        Returns:
            List of embedding vectors, one per text

        Raises:
            ProviderError: On timeout, network failure, non-200 status or a malformed response
        """
        if not texts:
            return []

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }
        payload = {
            "model": self.model_name,
            "input": texts,
            "encoding_format": "float",
        }

        start_time = time.time()
        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(self.api_url, headers=headers, json=payload)
        except httpx.TimeoutException:
            logger.error(f"Embedding request timed out after {self.timeout}s")
            raise ProviderError(f"Request timeout after {self.timeout}s")
        except httpx.RequestError as e:
            logger.error(f"Network error calling embedding API: {e}")
            raise ProviderError(f"Network error: {e}")

        if response.status_code == 401:
            logger.error("Authentication failed for embedding API")
            raise ProviderError("Invalid API key", status_code=401)

        if response.status_code == 429:
            logger.error("Rate limit exceeded for embedding API")
            raise ProviderError("Rate limit exceeded. Please try again later.", status_code=429)

        if response.status_code != 200:
            error_msg = f"OpenAI API error ({response.status_code}): {response.text}"
            logger.error(error_msg)
            raise ProviderError(error_msg, status_code=response.status_code)

        try:
            data = response.json()
        except ValueError:
            raise ProviderError("Invalid response format from OpenAI API")

        items = data.get("data") if isinstance(data, dict) else None
        if not isinstance(items, list):
            raise ProviderError("Invalid response format from OpenAI API")

        # The API may return items out of order; "index" is authoritative when present
        items = sorted(items, key=lambda item: item.get("index", 0))

        embeddings = []
        for item in items:
            embedding = item.get("embedding")
            if not isinstance(embedding, list):
                raise ProviderError("Invalid embedding format in response")
            if len(embedding) != self.dimension:
                raise ProviderError(
                    f"Embedding dimension {len(embedding)} does not match expected {self.dimension}"
                )
            embeddings.append(embedding)

        elapsed = time.time() - start_time
        logger.debug(f"Generated embeddings for {len(texts)} texts in {elapsed:.2f}s")
        return embeddings

    def estimate_cost(self, texts: List[str]) -> float:
        """Estimated USD cost of embedding the given texts."""
        total_tokens = sum(estimate_tokens(text) for text in texts)
        price = MODEL_PRICING.get(self.model_name, DEFAULT_PRICE_PER_MILLION)
        return total_tokens / 1_000_000 * price
