"""File-backed store for per-item embedding bundles."""
import logging
import os
import tempfile
from pathlib import Path
from typing import List, Optional
import yaml

from models.chunk import ArticleEmbedding
from models.content import ContentDocument, parse_timestamp
from config import EMBEDDINGS_DIR, EMBEDDING_MODEL

logger = logging.getLogger(__name__)

EMBEDDING_FILE_SUFFIX = ".embedding.yml"


class EmbeddingStore:
    """Persist one human-readable YAML file of chunk embeddings per content item."""

    def __init__(self, directory: str = EMBEDDINGS_DIR, model_name: str = EMBEDDING_MODEL):
        """
        Initialize the embedding store.

        Args:
            directory: Directory holding the embedding files
            model_name: Current embedding model; stored bundles from another model are stale
        """
        self.directory = Path(directory)
        self.model_name = model_name

        logger.info(f"Initialized EmbeddingStore at: {self.directory}")

    def path_for(self, item_id: str) -> Path:
        """Location of the embedding file for an item."""
        return self.directory / f"{item_id}{EMBEDDING_FILE_SUFFIX}"

    def save(self, article_embedding: ArticleEmbedding) -> None:
        """
        Write an item's embedding bundle, replacing any previous file.

        The file is written next to its destination and renamed into place,
        so readers never see a partially written bundle.

        Raises:
            OSError: If the file cannot be written
        """
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.path_for(article_embedding.article_id)

        fd, tmp_path = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                yaml.safe_dump(
                    article_embedding.to_dict(),
                    handle,
                    sort_keys=False,
                    allow_unicode=True,
                    width=float("inf"),
                )
            os.replace(tmp_path, path)
        except Exception:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

        logger.info(
            f"Saved {article_embedding.total_chunks} chunk embeddings for "
            f"{article_embedding.article_id} to {path}"
        )

    def load(self, item_id: str) -> Optional[ArticleEmbedding]:
        """
        Load an item's embedding bundle.

        Returns:
            ArticleEmbedding, or None if nothing has been generated yet

        Raises:
            ValueError: If the file exists but is not a valid embedding bundle
        """
        path = self.path_for(item_id)
        if not path.exists():
            return None

        try:
            with open(path, "r", encoding="utf-8") as handle:
                data = yaml.safe_load(handle)
            return ArticleEmbedding.from_dict(data)
        except (KeyError, TypeError, ValueError, yaml.YAMLError) as e:
            raise ValueError(f"Invalid embedding file {path}: {e}")

    def needs_regeneration(self, document: ContentDocument, item_id: str) -> bool:
        """
        Decide whether an item's stored embeddings are stale.

        Stale when nothing is stored, when the content changed after the
        embeddings were generated, or when the embedding model changed.
        An unreadable stored file is stale too.
        """
        try:
            existing = self.load(item_id)
            generated_at = parse_timestamp(existing.generated_at) if existing else None
        except ValueError as e:
            logger.warning(f"Treating embeddings for {item_id} as stale: {e}")
            return True

        if existing is None:
            logger.debug(f"No stored embeddings for {item_id}")
            return True

        updated_at = document.updated_at
        if updated_at is not None and updated_at > generated_at:
            logger.debug(f"Content for {item_id} updated after embeddings were generated")
            return True

        if existing.model.name != self.model_name:
            logger.debug(
                f"Embedding model changed for {item_id}: {existing.model.name} -> {self.model_name}"
            )
            return True

        return False

    def list_item_ids(self) -> List[str]:
        """Item ids that have a stored embedding file."""
        if not self.directory.exists():
            return []
        return sorted(
            path.name[:-len(EMBEDDING_FILE_SUFFIX)]
            for path in self.directory.glob(f"*{EMBEDDING_FILE_SUFFIX}")
        )
