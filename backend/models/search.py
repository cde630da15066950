"""Search-time data models."""
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np

from models.chunk import ContentChunk, EmbeddingVector

# Markdown stripping, applied in order
_MARKDOWN_PATTERNS = [
    (re.compile(r"#{1,6}\s+"), ""),               # headers
    (re.compile(r"\*\*(.*?)\*\*"), r"\1"),         # bold
    (re.compile(r"\*(.*?)\*"), r"\1"),             # italic
    (re.compile(r"`(.*?)`"), r"\1"),               # inline code
    (re.compile(r"\[([^\]]+)\]\([^)]+\)"), r"\1"),  # links
    (re.compile(r"\n+"), " "),                     # newlines
]


def strip_markdown(markdown: str) -> str:
    """Convert markdown to plain text (simple implementation)."""
    text = markdown
    for pattern, replacement in _MARKDOWN_PATTERNS:
        text = pattern.sub(replacement, text)
    return text.strip()


@dataclass(frozen=True)
class ItemMetadata:
    """Parent item metadata joined onto every searchable section."""
    slug: str
    title: str
    tags: List[str] = field(default_factory=list)
    author: str = ""
    kind: str = "article"
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "slug": self.slug,
            "title": self.title,
            "tags": list(self.tags),
            "author": self.author,
            "kind": self.kind,
            "description": self.description,
        }


@dataclass(frozen=True)
class SearchMetadata:
    """Search-oriented flags derived from a chunk."""
    has_code_snippet: bool
    has_practices: bool
    content_length: int
    estimated_tokens: int


@dataclass(frozen=True)
class SearchableSection:
    """Denormalized view of a chunk joined to its parent item's metadata."""
    section_id: str  # Format: "{item_slug}:{chunk_id}"
    section_title: str
    section_type: str
    section_order: int
    item: ItemMetadata
    markdown_content: str
    text_content: str
    search_metadata: SearchMetadata
    embedding: Optional[EmbeddingVector] = None
    vector: Optional[np.ndarray] = field(default=None, repr=False, compare=False)

    @classmethod
    def from_chunk(
        cls,
        item: ItemMetadata,
        chunk: ContentChunk,
        position: int,
        embedding: Optional[EmbeddingVector] = None,
        owns_practices: bool = False,
        owns_code_snippet: bool = False
    ) -> "SearchableSection":
        """
        Project a stored chunk (and optional embedding) into its search form.

        owns_practices and owns_code_snippet flag a section's main chunk
        when its practices or code example were split into sibling chunks.
        """
        return cls(
            section_id=f"{item.slug}:{chunk.chunk_id}",
            section_title=chunk.section_title or chunk.chunk_type,
            section_type=chunk.chunk_type,
            section_order=position,
            item=item,
            markdown_content=chunk.content,
            text_content=strip_markdown(chunk.content),
            search_metadata=SearchMetadata(
                has_code_snippet=owns_code_snippet or chunk.chunk_type == "code" or "```" in chunk.content,
                has_practices=owns_practices or chunk.chunk_id.startswith("practice-"),
                content_length=len(chunk.content),
                estimated_tokens=chunk.token_count,
            ),
            embedding=embedding,
            vector=np.asarray(embedding.values, dtype=float) if embedding else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sectionId": self.section_id,
            "sectionTitle": self.section_title,
            "sectionType": self.section_type,
            "sectionOrder": self.section_order,
            "item": self.item.to_dict(),
            "markdownContent": self.markdown_content,
            "textContent": self.text_content,
            "hasEmbedding": self.embedding is not None,
            "searchMetadata": {
                "hasCodeSnippet": self.search_metadata.has_code_snippet,
                "hasPractices": self.search_metadata.has_practices,
                "contentLength": self.search_metadata.content_length,
                "estimatedTokens": self.search_metadata.estimated_tokens,
            },
        }


@dataclass
class TextSearchResult:
    """Keyword match with its relevance score."""
    section: SearchableSection
    score: float

    @property
    def result_type(self) -> str:
        return "text"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.result_type, "score": self.score, "section": self.section.to_dict()}


@dataclass
class VectorSearchResult:
    """Similarity match against a stored embedding."""
    section: SearchableSection
    similarity: float

    @property
    def result_type(self) -> str:
        return "vector"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.result_type,
            "similarity": self.similarity,
            "section": self.section.to_dict(),
        }


@dataclass
class HybridSearchResult:
    """
    Fused result from hybrid search.

    Reported as "merged" when both text and vector contributed, otherwise
    it degenerates to "text" or "vector" depending on which sub-score is set.
    """
    section: SearchableSection
    score: float
    text_score: Optional[float] = None
    vector_score: Optional[float] = None

    @property
    def result_type(self) -> str:
        if self.text_score is not None and self.vector_score is not None:
            return "merged"
        if self.text_score is not None:
            return "text"
        return "vector"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "type": self.result_type,
            "score": self.score,
            "section": self.section.to_dict(),
        }
        if self.text_score is not None:
            data["textScore"] = self.text_score
        if self.vector_score is not None:
            data["vectorScore"] = self.vector_score
        return data


@dataclass
class SearchResponse:
    """Envelope returned by the query interfaces."""
    query: Any
    results: List[Any]
    search_type: str

    @property
    def total(self) -> int:
        return len(self.results)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query": self.query,
            "results": [result.to_dict() for result in self.results],
            "total": self.total,
            "searchType": self.search_type,
        }
