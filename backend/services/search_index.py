"""In-memory search index of searchable sections."""
import logging
import threading
from collections import Counter
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Sequence

from models.chunk import ArticleEmbedding, ContentChunk, EmbeddingVector
from models.content import ContentDocument
from models.search import ItemMetadata, SearchableSection

logger = logging.getLogger(__name__)


class _Snapshot(NamedTuple):
    sections: Dict[str, SearchableSection]  # section key -> section, in item order
    keys_by_item: Dict[str, List[str]]       # item slug -> section keys in chunk order


def item_metadata_for(document: ContentDocument) -> ItemMetadata:
    """Search-time metadata of a content document."""
    return ItemMetadata(
        slug=document.slug,
        title=document.metadata.title,
        tags=list(document.metadata.tags),
        author=document.metadata.author,
        kind=document.kind,
        description=document.metadata.description,
    )


def _is_main_chunk(chunk: ContentChunk) -> bool:
    return chunk.section_id is not None and chunk.chunk_id == f"section-{chunk.section_id}"


class SearchIndex:
    """
    Query-time projection of stored chunks and embeddings.

    Not the system of record: it is rebuilt from the embedding store with
    init(). Readers always see a complete snapshot; registering an item
    builds a new snapshot and swaps it in with a single assignment.
    """

    def __init__(self):
        self._snapshot = _Snapshot(sections={}, keys_by_item={})
        self._write_lock = threading.Lock()

    def init(self, documents: Iterable[ContentDocument], chunker, store=None) -> None:
        """
        Rebuild the index from content documents.

        Items with fresh stored embeddings are registered from the store;
        the rest are chunked on the spot and registered without embeddings,
        which keeps them reachable by text search.

        Args:
            documents: Content documents to index
            chunker: ChunkingEngine used for items without fresh embeddings
            store: Optional EmbeddingStore
        """
        self.clear()
        embedded = 0
        total = 0

        for document in documents:
            total += 1
            item = item_metadata_for(document)
            if store is not None:
                try:
                    stored = None
                    if not store.needs_regeneration(document, document.slug):
                        stored = store.load(document.slug)
                    if stored is not None:
                        self.register_article_embedding(item, stored)
                        embedded += 1
                        continue
                except ValueError as e:
                    logger.error(f"Unreadable embeddings for {document.slug}: {e}")

                logger.warning(f"Embeddings for {document.slug} are missing or stale; indexing text only")

            self.register_sections(item, chunker.chunk_document(document))

        logger.info(
            f"Search index initialized: {total} items ({embedded} with embeddings), "
            f"{len(self._snapshot.sections)} sections"
        )

    def register_sections(
        self,
        item: ItemMetadata,
        chunks: Sequence[ContentChunk],
        embeddings: Optional[Sequence[Optional[EmbeddingVector]]] = None
    ) -> None:
        """
        Register an item's chunks, replacing any previous registration wholesale.

        Args:
            item: Parent item metadata
            chunks: The item's chunks, in order
            embeddings: Optional embeddings aligned with chunks by position
        """
        if embeddings is not None and len(embeddings) != len(chunks):
            raise ValueError(
                f"Got {len(embeddings)} embeddings for {len(chunks)} chunks of {item.slug}"
            )

        chunk_ids = [chunk.chunk_id for chunk in chunks]
        if len(set(chunk_ids)) != len(chunk_ids):
            raise ValueError(f"Duplicate chunk ids in {item.slug}")

        practice_owners = {chunk.section_id for chunk in chunks if chunk.chunk_id.startswith("practice-")}
        code_owners = {chunk.section_id for chunk in chunks if chunk.chunk_type == "code"}

        new_sections = [
            SearchableSection.from_chunk(
                item,
                chunk,
                position,
                embeddings[position] if embeddings is not None else None,
                owns_practices=_is_main_chunk(chunk) and chunk.section_id in practice_owners,
                owns_code_snippet=_is_main_chunk(chunk) and chunk.section_id in code_owners,
            )
            for position, chunk in enumerate(chunks)
        ]

        with self._write_lock:
            current = self._snapshot
            keys_by_item = dict(current.keys_by_item)
            keys_by_item[item.slug] = [section.section_id for section in new_sections]
            replaced = {section.section_id: section for section in new_sections}
            self._snapshot = self._rebuild(current, keys_by_item, item.slug, replaced)

        logger.debug(f"Registered {len(new_sections)} sections for {item.slug}")

    def register_article_embedding(self, item: ItemMetadata, article_embedding: ArticleEmbedding) -> None:
        """Register an item from a stored embedding bundle."""
        self.register_sections(
            item,
            [pair.chunk for pair in article_embedding.chunks],
            [pair.embedding for pair in article_embedding.chunks],
        )

    def remove_item(self, slug: str) -> bool:
        """Drop an item's sections. Returns False if the item was not registered."""
        with self._write_lock:
            current = self._snapshot
            if slug not in current.keys_by_item:
                return False
            keys_by_item = dict(current.keys_by_item)
            del keys_by_item[slug]
            self._snapshot = self._rebuild(current, keys_by_item, slug, {})
        return True

    def get_all_sections(self) -> List[SearchableSection]:
        return list(self._snapshot.sections.values())

    def get_sections_by_item(self, slug: str) -> List[SearchableSection]:
        snapshot = self._snapshot
        return [snapshot.sections[key] for key in snapshot.keys_by_item.get(slug, [])]

    def get_section_by_id(self, section_id: str) -> Optional[SearchableSection]:
        return self._snapshot.sections.get(section_id)

    def get_sections_with_embeddings(self) -> List[SearchableSection]:
        return [section for section in self.get_all_sections() if section.embedding is not None]

    def get_stats(self) -> Dict[str, Any]:
        """Summary counts for monitoring and the stats endpoint."""
        snapshot = self._snapshot
        sections = list(snapshot.sections.values())
        total_length = sum(section.search_metadata.content_length for section in sections)
        return {
            "totalSections": len(sections),
            "sectionsWithEmbeddings": sum(1 for section in sections if section.embedding is not None),
            "totalItems": len(snapshot.keys_by_item),
            "avgSectionLength": total_length / len(sections) if sections else 0.0,
            "sectionTypeDistribution": dict(Counter(section.section_type for section in sections)),
        }

    def clear(self) -> None:
        """Drop all state."""
        with self._write_lock:
            self._snapshot = _Snapshot(sections={}, keys_by_item={})

    def __len__(self) -> int:
        return len(self._snapshot.sections)

    @staticmethod
    def _rebuild(
        current: _Snapshot,
        keys_by_item: Dict[str, List[str]],
        changed_slug: str,
        replaced: Dict[str, SearchableSection]
    ) -> _Snapshot:
        """New snapshot with one item's sections swapped, preserving item order."""
        sections: Dict[str, SearchableSection] = {}
        for slug, keys in keys_by_item.items():
            source = replaced if slug == changed_slug else current.sections
            for key in keys:
                sections[key] = source[key]
        return _Snapshot(sections=sections, keys_by_item=keys_by_item)
