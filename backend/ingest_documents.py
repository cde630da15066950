"""
Embedding Ingestion Script for the content search service.

This script:
1. Loads all content documents from the content directory
2. Checks each item's stored embeddings for staleness
3. Chunks stale items and generates embeddings through the provider
4. Writes one embedding file per item to the embeddings directory

Usage:
    python ingest_documents.py [--content-dir DIR] [--embeddings-dir DIR] [--item SLUG] [--force]
"""
import sys
import argparse
import logging
from pathlib import Path
from typing import List, Optional

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent))

from services.content_loader import ContentLoader
from services.chunking_engine import ChunkingEngine
from services.embedding_model import OpenAIEmbeddingModel
from services.embedding_store import EmbeddingStore
from services.embedding_generator import EmbeddingGenerator
from exceptions import ContentSearchError
from logger import setup_logging
from config import CONTENT_DIR, EMBEDDINGS_DIR, LOG_LEVEL

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate embeddings for stale content items")
    parser.add_argument("--content-dir", default=CONTENT_DIR, help="Directory of content YAML/JSON files")
    parser.add_argument("--embeddings-dir", default=EMBEDDINGS_DIR, help="Directory for embedding files")
    parser.add_argument("--item", help="Only process the item with this slug")
    parser.add_argument("--force", action="store_true", help="Regenerate even if embeddings are fresh")
    return parser.parse_args(argv)


def run(args: argparse.Namespace, generator: EmbeddingGenerator, loader: ContentLoader) -> int:
    """
    Refresh embeddings for every loaded item.

    Returns:
        Number of items whose embedding generation failed
    """
    documents = loader.load_documents()
    if args.item:
        documents = [doc for doc in documents if doc.slug == args.item]
        if not documents:
            logger.error(f"Item not found: {args.item}")
            return 1

    generated = skipped = failed = 0
    for document in documents:
        cost = generator.estimate_cost(document)
        if cost is not None:
            logger.info(f"{document.slug}: estimated cost ${cost:.4f}")

        try:
            result = generator.refresh_item(document.slug, document, force=args.force)
        except ContentSearchError as e:
            logger.error(f"{document.slug}: embedding generation failed: {e}")
            failed += 1
            continue

        if result is None:
            skipped += 1
        else:
            generated += 1
            logger.info(
                f"{document.slug}: {result.total_chunks} chunks, "
                f"{result.total_tokens} tokens in {result.processing_time_ms}ms"
            )

    logger.info(
        f"Ingestion complete: {len(documents)} items, {generated} generated, "
        f"{skipped} up to date, {failed} failed"
    )
    return failed


def main(argv: Optional[List[str]] = None):
    """Main ingestion process."""
    setup_logging(LOG_LEVEL)
    args = parse_args(argv)

    try:
        embedding_model = OpenAIEmbeddingModel()
        store = EmbeddingStore(args.embeddings_dir, model_name=embedding_model.get_model_name())
        generator = EmbeddingGenerator(embedding_model, store, ChunkingEngine())
        loader = ContentLoader(args.content_dir)

        failed = run(args, generator, loader)
    except KeyboardInterrupt:
        logger.warning("Ingestion interrupted by user")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Ingestion failed: {str(e)}", exc_info=True)
        sys.exit(1)

    if failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
