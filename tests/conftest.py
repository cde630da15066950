"""Shared fixtures for the content search tests."""
import copy
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

import pytest
from unittest.mock import Mock

from models.content import ContentDocument
from services.embedding_model import EmbeddingProvider


SAMPLE_DOCUMENT = {
    "slug": "typescript-generics",
    "metadata": {
        "title": "TypeScript Generics",
        "description": "Writing reusable typed code",
        "tags": ["typescript", "generics"],
        "author": "Jane Doe",
        "publishedAt": "2024-01-10T00:00:00Z",
        "updatedAt": "2024-02-01T00:00:00Z",
    },
    "introduction": "Generics let functions work over many types.",
    "sections": [
        {
            "id": "basics",
            "title": "Generic Basics",
            "subtitle": "Type parameters",
            "content": "A **generic** function takes a `type parameter`.",
            "codeSnippet": {
                "language": "typescript",
                "code": "function identity<T>(value: T): T {\n  return value;\n}",
                "filename": "identity.ts",
            },
        },
        {
            "id": "best-practices",
            "title": "Best Practices",
            "content": "Keep type parameters few and meaningful.",
            "practices": [
                {"title": "Name clearly", "description": "Prefer TItem over T when it helps."},
                {"title": "Constrain", "description": "Use extends to constrain inputs."},
            ],
        },
    ],
    "footer": {"title": "Summary", "content": "Generics make code reusable."},
}


def fake_vector(text: str, dimension: int = 3):
    """Deterministic non-zero vector for a text."""
    return [float(len(text) % 7 + 1), float(text.count("e") + 1), float(dimension)][:dimension]


@pytest.fixture
def sample_data():
    """Raw mapping of a complete content document."""
    return copy.deepcopy(SAMPLE_DOCUMENT)


@pytest.fixture
def sample_document(sample_data):
    """Validated content document with code, practices and footer."""
    return ContentDocument.from_dict(sample_data)


@pytest.fixture
def mock_provider():
    """Embedding provider double returning 3-dimensional vectors."""
    provider = Mock(spec=EmbeddingProvider)
    provider.get_dimension.return_value = 3
    provider.get_model_name.return_value = "test-model"
    provider.get_provider_name.return_value = "test"
    provider.generate_embeddings.side_effect = lambda texts: [fake_vector(t) for t in texts]
    return provider
