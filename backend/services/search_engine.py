"""Text, vector and hybrid ranking over the search index."""
import logging
import re
from typing import Dict, List, Optional, Sequence

import numpy as np

from models.search import HybridSearchResult, SearchableSection, TextSearchResult, VectorSearchResult
from services.search_index import SearchIndex
from config import (
    SEARCH_DEFAULT_LIMIT,
    VECTOR_SEARCH_THRESHOLD,
    HYBRID_TEXT_WEIGHT,
    HYBRID_VECTOR_WEIGHT,
    HYBRID_THRESHOLD,
)

logger = logging.getLogger(__name__)

SECTION_TITLE_WEIGHT = 3
ITEM_TITLE_WEIGHT = 2
TAG_WEIGHT = 2


def cosine_similarity(vector_a, vector_b) -> float:
    """
    Cosine similarity of two vectors.

    Vectors of different length, or with zero magnitude, score 0.
    """
    a = np.asarray(vector_a, dtype=float)
    b = np.asarray(vector_b, dtype=float)
    if a.shape != b.shape or a.size == 0:
        return 0.0

    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0:
        return 0.0

    similarity = float(np.dot(a, b) / (norm_a * norm_b))
    return max(-1.0, min(1.0, similarity))


def relevance_score(section: SearchableSection, query: str) -> int:
    """Keyword relevance of a section for a lowercase query."""
    score = 0
    section_title = section.section_title.lower()
    item_title = section.item.title.lower()
    text = section.text_content.lower()
    tags = [tag.lower() for tag in section.item.tags]

    for word in query.split():
        # Title matches are worth more
        if word in section_title:
            score += SECTION_TITLE_WEIGHT
        if word in item_title:
            score += ITEM_TITLE_WEIGHT

        score += len(re.findall(re.escape(word), text))

        if any(word in tag for tag in tags):
            score += TAG_WEIGHT

    return score


class SearchEngine:
    """Stateless query handler over the index's current snapshot."""

    def __init__(
        self,
        index: SearchIndex,
        default_limit: int = SEARCH_DEFAULT_LIMIT,
        vector_threshold: float = VECTOR_SEARCH_THRESHOLD,
        text_weight: float = HYBRID_TEXT_WEIGHT,
        vector_weight: float = HYBRID_VECTOR_WEIGHT,
        hybrid_threshold: float = HYBRID_THRESHOLD
    ):
        """
        Initialize the search engine.

        Args:
            index: Search index to query
            default_limit: Result limit when a call does not pass one
            vector_threshold: Minimum similarity for vector search
            text_weight: Weight of the rank-decay text score in hybrid fusion
            vector_weight: Weight of the cosine similarity in hybrid fusion
            hybrid_threshold: Minimum fused score for hybrid results
        """
        self.index = index
        self.default_limit = default_limit
        self.vector_threshold = vector_threshold
        self.text_weight = text_weight
        self.vector_weight = vector_weight
        self.hybrid_threshold = hybrid_threshold

    def text_search(
        self,
        query: str,
        limit: Optional[int] = None,
        item_slug: Optional[str] = None,
        section_type: Optional[str] = None
    ) -> List[TextSearchResult]:
        """
        Keyword search across section text, section titles, item titles and tags.

        Args:
            query: Search query; matched as a case-insensitive substring
            limit: Maximum results (default: default_limit)
            item_slug: Only search this item's sections
            section_type: Only search sections of this type

        Returns:
            Results sorted by relevance score, ties in index order
        """
        limit = self.default_limit if limit is None else limit
        if not query or not query.strip() or limit <= 0:
            return []

        lowercase_query = query.strip().lower()
        results = []
        for section in self._candidates(item_slug, section_type):
            if not self._matches(section, lowercase_query):
                continue
            results.append(TextSearchResult(
                section=section,
                score=relevance_score(section, lowercase_query),
            ))

        # sorted() is stable, so equal scores keep index order
        results = sorted(results, key=lambda result: result.score, reverse=True)
        logger.debug(f"Text search for {lowercase_query!r}: {len(results)} matches")
        return results[:limit]

    def vector_search(
        self,
        query_vector: Optional[Sequence[float]],
        limit: Optional[int] = None,
        threshold: Optional[float] = None,
        item_slug: Optional[str] = None,
        section_type: Optional[str] = None
    ) -> List[VectorSearchResult]:
        """
        Cosine-similarity search over sections that have an embedding.

        Args:
            query_vector: Query embedding
            limit: Maximum results (default: default_limit)
            threshold: Minimum similarity (default: vector_threshold)
            item_slug: Only search this item's sections
            section_type: Only search sections of this type

        Returns:
            Results sorted by similarity descending
        """
        limit = self.default_limit if limit is None else limit
        threshold = self.vector_threshold if threshold is None else threshold
        if query_vector is None or len(query_vector) == 0 or limit <= 0:
            return []

        query = np.asarray(query_vector, dtype=float)
        results = []
        mismatched = 0
        for section in self._candidates(item_slug, section_type):
            if section.vector is None:
                continue
            if section.vector.shape != query.shape:
                mismatched += 1
            similarity = cosine_similarity(query, section.vector)
            if similarity >= threshold:
                results.append(VectorSearchResult(section=section, similarity=similarity))

        if mismatched:
            logger.warning(
                f"Query vector has dimension {query.shape[0]} but {mismatched} sections "
                f"have a different dimension; they scored 0"
            )

        results = sorted(results, key=lambda result: result.similarity, reverse=True)
        return results[:limit]

    def hybrid_search(
        self,
        query: str,
        query_vector: Optional[Sequence[float]] = None,
        limit: Optional[int] = None,
        text_weight: Optional[float] = None,
        vector_weight: Optional[float] = None,
        threshold: Optional[float] = None,
        item_slug: Optional[str] = None,
        section_type: Optional[str] = None
    ) -> List[HybridSearchResult]:
        """
        Weighted fusion of text and vector search.

        Text hits are scored by linear rank decay (the i-th of N hits scores
        1 - i/N); vector hits keep their raw cosine similarity. Each side is
        asked for limit * 2 candidates, vector search without a threshold.

        Args:
            query: Search query
            query_vector: Query embedding; text-only fusion when omitted
            limit: Maximum results (default: default_limit)
            text_weight: Weight of the text score (default: engine setting)
            vector_weight: Weight of the vector score (default: engine setting)
            threshold: Minimum fused score (default: hybrid_threshold)
            item_slug: Only search this item's sections
            section_type: Only search sections of this type

        Returns:
            Results sorted by fused score descending
        """
        limit = self.default_limit if limit is None else limit
        text_weight = self.text_weight if text_weight is None else text_weight
        vector_weight = self.vector_weight if vector_weight is None else vector_weight
        threshold = self.hybrid_threshold if threshold is None else threshold
        if not query or not query.strip() or limit <= 0:
            return []

        text_results = self.text_search(
            query, limit=limit * 2, item_slug=item_slug, section_type=section_type
        )
        text_scores: Dict[str, float] = {}
        for rank, result in enumerate(text_results):
            text_scores[result.section.section_id] = max(0.0, 1 - rank / len(text_results))

        vector_scores: Dict[str, float] = {}
        if query_vector is not None:
            vector_results = self.vector_search(
                query_vector,
                limit=limit * 2,
                threshold=0,
                item_slug=item_slug,
                section_type=section_type,
            )
            for result in vector_results:
                vector_scores[result.section.section_id] = result.similarity

        sections: Dict[str, SearchableSection] = {}
        for result in text_results:
            sections[result.section.section_id] = result.section
        if query_vector is not None:
            for result in vector_results:
                sections.setdefault(result.section.section_id, result.section)

        results = []
        for section_id, section in sections.items():
            text_score = text_scores.get(section_id, 0.0)
            vector_score = vector_scores.get(section_id, 0.0)
            combined = text_score * text_weight + vector_score * vector_weight
            if combined < threshold:
                continue
            results.append(HybridSearchResult(
                section=section,
                score=combined,
                text_score=text_score or None,
                vector_score=vector_score or None,
            ))

        results = sorted(results, key=lambda result: result.score, reverse=True)
        return results[:limit]

    def _candidates(self, item_slug: Optional[str], section_type: Optional[str]) -> List[SearchableSection]:
        if item_slug:
            sections = self.index.get_sections_by_item(item_slug)
        else:
            sections = self.index.get_all_sections()
        if section_type:
            sections = [section for section in sections if section.section_type == section_type]
        return sections

    @staticmethod
    def _matches(section: SearchableSection, lowercase_query: str) -> bool:
        return (
            lowercase_query in section.text_content.lower()
            or lowercase_query in section.section_title.lower()
            or lowercase_query in section.item.title.lower()
            or any(lowercase_query in tag.lower() for tag in section.item.tags)
        )
