"""Request models for the search API."""
from typing import List, Optional

from pydantic import BaseModel, Field


class TextSearchRequest(BaseModel):
    """Body of POST /api/search/text."""
    query: Optional[str] = None
    limit: int = Field(default=10)


class VectorSearchRequest(BaseModel):
    """Body of POST /api/search/vector."""
    embedding: Optional[List[float]] = None
    limit: int = Field(default=10)
