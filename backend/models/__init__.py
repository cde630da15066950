"""Data models for the content search service."""
from .content import (
    ContentDocument,
    ContentMetadata,
    ContentSection,
    ContentFooter,
    CodeSnippet,
    Practice,
)
from .chunk import (
    ContentChunk,
    EmbeddingVector,
    ChunkEmbedding,
    ArticleEmbedding,
    EmbeddingModelInfo,
    estimate_tokens,
)
from .search import (
    ItemMetadata,
    SearchableSection,
    TextSearchResult,
    VectorSearchResult,
    HybridSearchResult,
    SearchResponse,
)

__all__ = [
    "ContentDocument",
    "ContentMetadata",
    "ContentSection",
    "ContentFooter",
    "CodeSnippet",
    "Practice",
    "ContentChunk",
    "EmbeddingVector",
    "ChunkEmbedding",
    "ArticleEmbedding",
    "EmbeddingModelInfo",
    "estimate_tokens",
    "ItemMetadata",
    "SearchableSection",
    "TextSearchResult",
    "VectorSearchResult",
    "HybridSearchResult",
    "SearchResponse",
]
