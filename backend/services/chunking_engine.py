"""Chunking engine that splits content documents along their section structure."""
import logging
from typing import List

from models.content import ContentDocument, ContentSection
from models.chunk import ContentChunk
from config import MAX_TOKENS_PER_CHUNK

logger = logging.getLogger(__name__)

METADATA_ORDER = -1
INTRODUCTION_ORDER = 0
FOOTER_ORDER = 1000
CODE_ORDER_OFFSET = 0.5
PRACTICE_ORDER_OFFSET = 0.1
PRACTICE_ORDER_STEP = 0.01


class ChunkingEngine:
    """Segments content documents into ordered, typed chunks for embedding."""

    def __init__(self, max_tokens_per_chunk: int = MAX_TOKENS_PER_CHUNK, preserve_code_blocks: bool = True):
        """
        Initialize ChunkingEngine.

        Args:
            max_tokens_per_chunk: Size above which a chunk is reported (never split)
            preserve_code_blocks: Emit code snippets as their own chunks
        """
        self.max_tokens_per_chunk = max_tokens_per_chunk
        self.preserve_code_blocks = preserve_code_blocks

    def chunk_document(self, document: ContentDocument) -> List[ContentChunk]:
        """
        Chunk a complete content document.

        Order layout: metadata (-1), introduction (0), section i at i + 1 with
        its practice chunks at +0.1 + 0.01*j (the step shrinks for sections with
        40 or more practices so they stay below +0.5) and its code chunk at +0.5,
        footer last.

        Args:
            document: Validated content document

        Returns:
            Chunks sorted by order ascending
        """
        chunks = [self._metadata_chunk(document)]

        if document.introduction:
            chunks.append(ContentChunk(
                chunk_id="introduction",
                content=f"Introduction\n{document.introduction}",
                chunk_type="introduction",
                order=INTRODUCTION_ORDER,
            ))

        for index, section in enumerate(document.sections):
            chunks.extend(self._chunk_section(section, index + 1))

        if document.footer:
            chunks.append(ContentChunk(
                chunk_id="footer",
                content=f"{document.footer.title}\n{document.footer.content}",
                chunk_type="footer",
                order=max(FOOTER_ORDER, len(document.sections) + 1),
            ))

        chunks.sort(key=lambda chunk: chunk.order)

        for chunk in chunks:
            if chunk.token_count > self.max_tokens_per_chunk:
                logger.debug(
                    f"Chunk {document.slug}:{chunk.chunk_id} exceeds max tokens "
                    f"({chunk.token_count} > {self.max_tokens_per_chunk})"
                )

        logger.info(f"Created {len(chunks)} chunks for {document.slug}")
        return chunks

    def _metadata_chunk(self, document: ContentDocument) -> ContentChunk:
        metadata = document.metadata
        lines = [
            metadata.title,
            metadata.description,
            f"Tags: {', '.join(metadata.tags)}",
            f"Author: {metadata.author}",
        ]
        if metadata.published_at:
            lines.append(f"Published: {metadata.published_at.isoformat()}")

        return ContentChunk(
            chunk_id="metadata",
            content="\n".join(lines),
            chunk_type="metadata",
            order=METADATA_ORDER,
        )

    def _chunk_section(self, section: ContentSection, order: int) -> List[ContentChunk]:
        """Main section chunk followed by its practice and code sub-chunks."""
        parts = [section.title]
        if section.subtitle:
            parts.append(section.subtitle)
        parts.append(section.content)

        chunks = [ContentChunk(
            chunk_id=f"section-{section.id}",
            content="\n".join(parts),
            chunk_type="section",
            order=order,
            section_id=section.id,
            section_title=section.title,
        )]

        # Practices share the span between the section and its code chunk
        step = PRACTICE_ORDER_STEP
        if section.practices:
            step = min(step, (CODE_ORDER_OFFSET - PRACTICE_ORDER_OFFSET) / len(section.practices))

        for index, practice in enumerate(section.practices):
            chunks.append(ContentChunk(
                chunk_id=f"practice-{section.id}-{index}",
                content=f"{practice.title}: {practice.description}",
                chunk_type="section",
                order=order + PRACTICE_ORDER_OFFSET + index * step,
                section_id=section.id,
                section_title=f"{section.title} - {practice.title}",
            ))

        if section.code_snippet and self.preserve_code_blocks:
            chunks.append(ContentChunk(
                chunk_id=f"code-{section.id}",
                content=self._format_code(section),
                chunk_type="code",
                order=order + CODE_ORDER_OFFSET,
                section_id=section.id,
                section_title=f"{section.title} - Code Example",
            ))

        return chunks

    @staticmethod
    def _format_code(section: ContentSection) -> str:
        snippet = section.code_snippet
        lines = [f"{section.title} - Code Example"]
        if section.subtitle:
            lines.append(section.subtitle)
        if snippet.filename:
            lines.append(f"File: {snippet.filename}")
        lines.append(f"Language: {snippet.language}")
        lines.append("")
        lines.append(f"```{snippet.language}")
        lines.append(snippet.code)
        lines.append("```")
        return "\n".join(lines)
