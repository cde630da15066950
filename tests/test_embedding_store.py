"""Unit tests for EmbeddingStore."""
import sys
from datetime import timedelta
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

import pytest
import yaml
from models.content import ContentDocument, utc_now
from services.embedding_generator import EmbeddingGenerator
from services.embedding_store import EmbeddingStore


@pytest.fixture
def store(tmp_path):
    return EmbeddingStore(str(tmp_path / "embeddings"), model_name="test-model")


@pytest.fixture
def generator(mock_provider, store):
    return EmbeddingGenerator(mock_provider, store)


class TestEmbeddingStore:
    """Test suite for EmbeddingStore."""

    def test_load_missing_returns_none(self, store):
        assert store.load("nothing-here") is None

    def test_save_and_load(self, store, generator, sample_document):
        article = generator.generate_for_item(sample_document.slug, sample_document)
        store.save(article)

        loaded = store.load(sample_document.slug)

        assert loaded.article_id == article.article_id
        assert loaded.generated_at == article.generated_at
        assert loaded.total_chunks == article.total_chunks
        assert [pair.chunk for pair in loaded.chunks] == [pair.chunk for pair in article.chunks]
        assert [pair.embedding.values for pair in loaded.chunks] == [
            pair.embedding.values for pair in article.chunks
        ]

    def test_file_layout(self, store, generator, sample_document):
        """One human-readable YAML file per item with the documented keys."""
        store.save(generator.generate_for_item(sample_document.slug, sample_document))

        path = store.path_for(sample_document.slug)
        assert path.name == "typescript-generics.embedding.yml"

        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        assert list(data.keys()) == ["articleId", "title", "generatedAt", "model", "metadata", "chunks"]
        assert data["model"] == {"name": "test-model", "provider": "test", "dimension": 3}
        assert set(data["metadata"]) == {"totalChunks", "totalTokens", "processingTimeMs"}
        first = data["chunks"][0]
        assert first["chunk"]["id"] == "metadata"
        assert set(first["embedding"]) == {"dimension", "model", "createdAt", "values"}

    def test_save_leaves_no_temp_files(self, store, generator, sample_document):
        store.save(generator.generate_for_item(sample_document.slug, sample_document))
        assert [p.name for p in store.directory.iterdir()] == ["typescript-generics.embedding.yml"]

    def test_save_failure_keeps_previous_file(self, store, generator, sample_document):
        article = generator.generate_for_item(sample_document.slug, sample_document)
        store.save(article)
        before = store.path_for(sample_document.slug).read_text(encoding="utf-8")

        with pytest.MonkeyPatch.context() as mp:
            def broken_dump(*args, **kwargs):
                raise yaml.YAMLError("disk on fire")
            mp.setattr("services.embedding_store.yaml.safe_dump", broken_dump)
            with pytest.raises(yaml.YAMLError):
                store.save(article)

        assert store.path_for(sample_document.slug).read_text(encoding="utf-8") == before
        assert len(list(store.directory.iterdir())) == 1

    def test_invalid_file(self, store):
        store.directory.mkdir(parents=True)
        store.path_for("broken").write_text("articleId: broken\n", encoding="utf-8")

        with pytest.raises(ValueError, match="Invalid embedding file"):
            store.load("broken")

    def test_malformed_yaml(self, store):
        store.directory.mkdir(parents=True)
        store.path_for("broken").write_text("chunks: [unclosed\n", encoding="utf-8")

        with pytest.raises(ValueError, match="Invalid embedding file"):
            store.load("broken")

    def test_list_item_ids(self, store, generator, sample_document):
        assert store.list_item_ids() == []
        store.save(generator.generate_for_item(sample_document.slug, sample_document))
        assert store.list_item_ids() == ["typescript-generics"]


class TestStaleness:
    """Test suite for needs_regeneration."""

    def test_missing_is_stale(self, store, sample_document):
        assert store.needs_regeneration(sample_document, sample_document.slug) is True

    def test_fresh_after_generate_and_save(self, store, generator, sample_document):
        store.save(generator.generate_for_item(sample_document.slug, sample_document))
        assert store.needs_regeneration(sample_document, sample_document.slug) is False

    def test_stale_after_content_update(self, store, generator, sample_data):
        document = ContentDocument.from_dict(sample_data)
        store.save(generator.generate_for_item(document.slug, document))

        sample_data["metadata"]["updatedAt"] = (utc_now() + timedelta(minutes=5)).isoformat()
        updated = ContentDocument.from_dict(sample_data)

        assert store.needs_regeneration(updated, updated.slug) is True

    @pytest.mark.parametrize("contents", [
        "articleId: typescript-generics\n",
        "chunks: [unclosed\n",
        "",
    ])
    def test_unreadable_file_is_stale(self, store, sample_document, contents):
        store.directory.mkdir(parents=True)
        store.path_for(sample_document.slug).write_text(contents, encoding="utf-8")

        assert store.needs_regeneration(sample_document, sample_document.slug) is True

    def test_bad_generated_at_is_stale(self, store, generator, sample_document):
        store.save(generator.generate_for_item(sample_document.slug, sample_document))
        path = store.path_for(sample_document.slug)
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        data["generatedAt"] = "not a timestamp"
        path.write_text(yaml.safe_dump(data), encoding="utf-8")

        assert store.needs_regeneration(sample_document, sample_document.slug) is True

    def test_stale_after_model_change(self, store, generator, sample_document):
        store.save(generator.generate_for_item(sample_document.slug, sample_document))

        other = EmbeddingStore(str(store.directory), model_name="another-model")
        assert other.needs_regeneration(sample_document, sample_document.slug) is True
