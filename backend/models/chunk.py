"""Chunk and embedding data models."""
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

CHUNK_TYPES = ("metadata", "introduction", "section", "code", "footer")


def estimate_tokens(text: str) -> int:
    """Rough token estimate: ~4 characters per token for English text."""
    return math.ceil(len(text) / 4)


@dataclass(frozen=True)
class ContentChunk:
    """Represents an independently embeddable piece of a content item."""
    chunk_id: str  # Unique within the item, e.g. "section-intro" or "code-intro"
    content: str
    chunk_type: str
    order: float
    section_id: Optional[str] = None
    section_title: Optional[str] = None
    token_count: int = field(init=False)

    def __post_init__(self):
        if self.chunk_type not in CHUNK_TYPES:
            raise ValueError(f"Unknown chunk type: {self.chunk_type!r}")
        object.__setattr__(self, "token_count", estimate_tokens(self.content))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.chunk_id,
            "content": self.content,
            "type": self.chunk_type,
            "sectionId": self.section_id,
            "sectionTitle": self.section_title,
            "order": self.order,
            "tokenCount": self.token_count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContentChunk":
        return cls(
            chunk_id=data["id"],
            content=data.get("content") or "",
            chunk_type=data["type"],
            order=data["order"],
            section_id=data.get("sectionId"),
            section_title=data.get("sectionTitle"),
        )


@dataclass(frozen=True)
class EmbeddingVector:
    """A fixed-dimension embedding with its provenance."""
    values: List[float]
    dimension: int
    model: str
    created_at: str  # ISO-8601

    def __post_init__(self):
        if self.dimension <= 0:
            raise ValueError(f"Embedding dimension must be positive, got {self.dimension}")
        if len(self.values) != self.dimension:
            raise ValueError(
                f"Embedding has {len(self.values)} values but dimension {self.dimension}"
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dimension": self.dimension,
            "model": self.model,
            "createdAt": self.created_at,
            "values": [float(v) for v in self.values],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EmbeddingVector":
        return cls(
            values=[float(v) for v in data["values"]],
            dimension=int(data["dimension"]),
            model=data["model"],
            created_at=str(data["createdAt"]),
        )


@dataclass(frozen=True)
class ChunkEmbedding:
    """A chunk permanently paired with its embedding."""
    chunk: ContentChunk
    embedding: EmbeddingVector


@dataclass(frozen=True)
class EmbeddingModelInfo:
    """Model descriptor recorded with a generation run."""
    name: str
    provider: str
    dimension: int


@dataclass
class ArticleEmbedding:
    """All chunk embeddings produced for one content item by one generation run."""
    article_id: str
    title: str
    generated_at: str  # ISO-8601
    model: EmbeddingModelInfo
    chunks: List[ChunkEmbedding]
    total_chunks: int
    total_tokens: int
    processing_time_ms: int

    def to_dict(self) -> Dict[str, Any]:
        """Mapping form used by the on-disk embedding file."""
        return {
            "articleId": self.article_id,
            "title": self.title,
            "generatedAt": self.generated_at,
            "model": {
                "name": self.model.name,
                "provider": self.model.provider,
                "dimension": self.model.dimension,
            },
            "metadata": {
                "totalChunks": self.total_chunks,
                "totalTokens": self.total_tokens,
                "processingTimeMs": self.processing_time_ms,
            },
            "chunks": [
                {"chunk": item.chunk.to_dict(), "embedding": item.embedding.to_dict()}
                for item in self.chunks
            ],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ArticleEmbedding":
        model = data["model"]
        metadata = data.get("metadata") or {}
        chunks = [
            ChunkEmbedding(
                chunk=ContentChunk.from_dict(item["chunk"]),
                embedding=EmbeddingVector.from_dict(item["embedding"]),
            )
            for item in data.get("chunks") or []
        ]
        return cls(
            article_id=data["articleId"],
            title=data.get("title") or "",
            generated_at=str(data["generatedAt"]),
            model=EmbeddingModelInfo(
                name=model["name"],
                provider=model["provider"],
                dimension=int(model["dimension"]),
            ),
            chunks=chunks,
            total_chunks=int(metadata.get("totalChunks", len(chunks))),
            total_tokens=int(metadata.get("totalTokens", 0)),
            processing_time_ms=int(metadata.get("processingTimeMs", 0)),
        )
