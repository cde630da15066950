"""Content loading service for structured content documents."""
import json
import logging
import os
from typing import List
import yaml

from models.content import ContentDocument
from exceptions import ContentValidationError

logger = logging.getLogger(__name__)

CONTENT_EXTENSIONS = (".yml", ".yaml", ".json")


class ContentLoader:
    """Loads and validates content documents from a directory of YAML/JSON files."""

    def __init__(self, content_directory: str = "content"):
        """
        Initialize ContentLoader.

        Args:
            content_directory: Path to directory containing content files
        """
        self.content_directory = content_directory

    def load_documents(self) -> List[ContentDocument]:
        """
        Load every content file in the content directory.

        Files that fail to parse or validate are logged and skipped.

        Returns:
            List of validated ContentDocument objects, ordered by filename
        """
        documents = []

        if not os.path.exists(self.content_directory):
            logger.error(f"Content directory not found: {self.content_directory}")
            return documents

        content_files = [
            f for f in os.listdir(self.content_directory)
            if f.endswith(CONTENT_EXTENSIONS)
        ]
        logger.info(f"Found {len(content_files)} content files in {self.content_directory}")

        for filename in sorted(content_files):
            filepath = os.path.join(self.content_directory, filename)

            try:
                document = self.load_document(filepath)
                documents.append(document)
                logger.info(f"Loaded {filename}: {len(document.sections)} sections")
            except (OSError, ValueError, yaml.YAMLError) as e:
                logger.error(f"Error loading {filename}: {str(e)}")
                # Skip malformed file and continue
                continue

        logger.info(f"Successfully loaded {len(documents)} documents")
        return documents

    def load_document(self, filepath: str) -> ContentDocument:
        """
        Load a single content file; the slug defaults to the file name stem.

        Raises:
            ContentValidationError: If the document is missing required fields
        """
        with open(filepath, "r", encoding="utf-8") as handle:
            if filepath.endswith(".json"):
                data = json.load(handle)
            else:
                data = yaml.safe_load(handle)

        slug = os.path.splitext(os.path.basename(filepath))[0]
        try:
            return ContentDocument.from_dict(data, slug=slug)
        except ContentValidationError as e:
            raise ContentValidationError(f"{os.path.basename(filepath)}: {e}")
