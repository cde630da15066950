"""Unit tests for ChunkingEngine."""
import math
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

import pytest
from models.content import ContentDocument
from models.chunk import ContentChunk
from services.chunking_engine import ChunkingEngine


class TestChunkingEngine:
    """Test suite for ChunkingEngine."""

    def test_best_practices_document_yields_seven_chunks(self):
        """Intro and Best Practices sections with two practices give 7 ordered chunks."""
        document = ContentDocument.from_dict({
            "slug": "guide",
            "metadata": {"title": "Guide", "tags": ["typescript"]},
            "introduction": "Welcome to the guide.",
            "sections": [
                {"id": "intro", "title": "Intro", "content": "Getting started."},
                {
                    "id": "best-practices",
                    "title": "Best Practices",
                    "content": "Follow these.",
                    "practices": [
                        {"title": "One", "description": "First practice"},
                        {"title": "Two", "description": "Second practice"},
                    ],
                },
            ],
            "footer": {"title": "Wrap up", "content": "Thanks for reading."},
        })

        chunks = ChunkingEngine().chunk_document(document)

        assert [chunk.chunk_id for chunk in chunks] == [
            "metadata",
            "introduction",
            "section-intro",
            "section-best-practices",
            "practice-best-practices-0",
            "practice-best-practices-1",
            "footer",
        ]
        assert [chunk.chunk_type for chunk in chunks] == [
            "metadata", "introduction", "section", "section", "section", "section", "footer"
        ]

    def test_chunks_sorted_by_order(self, sample_document):
        """Chunks come back sorted by order ascending."""
        chunks = ChunkingEngine().chunk_document(sample_document)
        orders = [chunk.order for chunk in chunks]
        assert orders == sorted(orders)

    def test_sub_chunks_follow_their_section(self, sample_document):
        """Code and practice chunks sit right after their section's main chunk."""
        chunks = ChunkingEngine().chunk_document(sample_document)
        ids = [chunk.chunk_id for chunk in chunks]

        assert ids.index("code-basics") == ids.index("section-basics") + 1
        main = ids.index("section-best-practices")
        assert ids[main + 1:main + 3] == ["practice-best-practices-0", "practice-best-practices-1"]

    def test_token_count_invariant(self, sample_document):
        """Every chunk's token count is ceil(len(content) / 4)."""
        for chunk in ChunkingEngine().chunk_document(sample_document):
            assert chunk.token_count == math.ceil(len(chunk.content) / 4)

    def test_metadata_chunk_content(self, sample_document):
        """Metadata chunk carries title, description, tags, author and publication date."""
        chunk = ChunkingEngine().chunk_document(sample_document)[0]

        assert chunk.chunk_type == "metadata"
        assert chunk.order == -1
        lines = chunk.content.split("\n")
        assert lines[0] == "TypeScript Generics"
        assert lines[1] == "Writing reusable typed code"
        assert "Tags: typescript, generics" in lines
        assert "Author: Jane Doe" in lines
        assert lines[-1].startswith("Published: 2024-01-10")

    def test_code_chunk_format(self, sample_document):
        """Code chunk wraps the snippet in a fenced block with file and language lines."""
        chunks = {chunk.chunk_id: chunk for chunk in ChunkingEngine().chunk_document(sample_document)}
        code = chunks["code-basics"]

        assert code.chunk_type == "code"
        assert code.order == 1.5
        assert code.section_id == "basics"
        assert code.section_title == "Generic Basics - Code Example"
        assert "File: identity.ts" in code.content
        assert "Language: typescript" in code.content
        assert "```typescript\nfunction identity<T>" in code.content
        assert code.content.endswith("```")

    def test_practice_chunks(self, sample_document):
        """Practice chunks combine title and description and name the practice."""
        chunks = {chunk.chunk_id: chunk for chunk in ChunkingEngine().chunk_document(sample_document)}
        practice = chunks["practice-best-practices-1"]

        assert practice.content == "Constrain: Use extends to constrain inputs."
        assert practice.section_title == "Best Practices - Constrain"
        assert practice.order == pytest.approx(2.11)

    def test_section_chunk_includes_subtitle(self, sample_document):
        """Main section chunk is title, subtitle and content on separate lines."""
        chunks = {chunk.chunk_id: chunk for chunk in ChunkingEngine().chunk_document(sample_document)}
        assert chunks["section-basics"].content == (
            "Generic Basics\nType parameters\nA **generic** function takes a `type parameter`."
        )

    def test_code_blocks_not_preserved(self, sample_document):
        """Code chunks are skipped when preserve_code_blocks is off."""
        chunks = ChunkingEngine(preserve_code_blocks=False).chunk_document(sample_document)
        assert all(chunk.chunk_type != "code" for chunk in chunks)

    def test_minimal_document(self):
        """A document with only metadata yields a single metadata chunk."""
        document = ContentDocument.from_dict({"slug": "empty", "metadata": {"title": "Empty"}})
        chunks = ChunkingEngine().chunk_document(document)

        assert len(chunks) == 1
        assert chunks[0].chunk_id == "metadata"

    def test_footer_is_last(self, sample_document):
        """Footer sorts after every section."""
        chunks = ChunkingEngine().chunk_document(sample_document)
        assert chunks[-1].chunk_id == "footer"
        assert chunks[-1].content == "Summary\nGenerics make code reusable."

    @pytest.mark.parametrize("count", [3, 40, 120])
    def test_many_practices_stay_before_code(self, count):
        """Practice chunks keep between their section and its code chunk however many there are."""
        document = ContentDocument.from_dict({
            "slug": "many",
            "metadata": {"title": "Many"},
            "sections": [
                {
                    "id": "a",
                    "title": "A",
                    "content": "First section.",
                    "practices": [
                        {"title": f"P{i}", "description": f"Practice {i}"} for i in range(count)
                    ],
                    "codeSnippet": {"language": "python", "code": "pass"},
                },
                {"id": "b", "title": "B", "content": "Second section."},
            ],
        })

        ids = [chunk.chunk_id for chunk in ChunkingEngine().chunk_document(document)]

        practice_ids = [f"practice-a-{i}" for i in range(count)]
        assert ids[1:] == ["section-a"] + practice_ids + ["code-a", "section-b"]

    def test_oversized_chunk_is_kept_whole(self):
        """Chunks above the token limit are reported, never split."""
        document = ContentDocument.from_dict({
            "slug": "long",
            "metadata": {"title": "Long"},
            "sections": [{"id": "big", "title": "Big", "content": "word " * 200}],
        })
        chunks = ChunkingEngine(max_tokens_per_chunk=10).chunk_document(document)

        big = [chunk for chunk in chunks if chunk.chunk_id == "section-big"]
        assert len(big) == 1
        assert big[0].token_count > 10


class TestContentChunk:
    """Test suite for the ContentChunk model."""

    def test_token_count_computed(self):
        chunk = ContentChunk(chunk_id="x", content="abcde", chunk_type="section", order=1)
        assert chunk.token_count == 2

    def test_unknown_chunk_type(self):
        with pytest.raises(ValueError, match="Unknown chunk type"):
            ContentChunk(chunk_id="x", content="abc", chunk_type="sidebar", order=1)

    def test_dict_form(self):
        chunk = ContentChunk(
            chunk_id="section-a",
            content="Hello",
            chunk_type="section",
            order=1,
            section_id="a",
            section_title="A",
        )
        data = chunk.to_dict()

        assert data == {
            "id": "section-a",
            "content": "Hello",
            "type": "section",
            "sectionId": "a",
            "sectionTitle": "A",
            "order": 1,
            "tokenCount": 2,
        }
        assert ContentChunk.from_dict(data) == chunk
