"""Services for the content search service."""
from .content_loader import ContentLoader
from .chunking_engine import ChunkingEngine
from .embedding_model import EmbeddingProvider, OpenAIEmbeddingModel
from .embedding_store import EmbeddingStore
from .embedding_generator import EmbeddingGenerator
from .search_index import SearchIndex, item_metadata_for
from .search_engine import SearchEngine, cosine_similarity
from .retrieval_engine import RetrievalEngine

__all__ = ['ContentLoader', 'ChunkingEngine', 'EmbeddingProvider', 'OpenAIEmbeddingModel', 'EmbeddingStore', 'EmbeddingGenerator', 'SearchIndex', 'item_metadata_for', 'SearchEngine', 'cosine_similarity', 'RetrievalEngine']
