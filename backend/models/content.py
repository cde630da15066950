"""Content document models validated at the system boundary."""
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from exceptions import ContentValidationError

CONTENT_KINDS = ("article", "doc", "lab")


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> datetime:
    """
    Parse an ISO-8601 timestamp (or pass through a datetime).

    Naive values are taken to be UTC so they compare with aware ones.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        # YAML loads bare dates such as 2024-05-01 as date objects
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            raise ContentValidationError(f"Invalid timestamp: {value!r}")
    else:
        raise ContentValidationError(f"Invalid timestamp: {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _require(data: Dict[str, Any], key: str, where: str) -> Any:
    value = data.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ContentValidationError(f"Missing required field '{key}' in {where}")
    return value


def _optional_timestamp(data: Dict[str, Any], key: str) -> Optional[datetime]:
    value = data.get(key)
    if value in (None, ""):
        return None
    return parse_timestamp(value)


@dataclass(frozen=True)
class ContentMetadata:
    """Descriptive metadata for a content item."""
    title: str
    description: str = ""
    tags: List[str] = field(default_factory=list)
    author: str = ""
    published_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class CodeSnippet:
    """Code example attached to a section."""
    language: str
    code: str
    filename: Optional[str] = None


@dataclass(frozen=True)
class Practice:
    """A single titled practice inside a section."""
    title: str
    description: str


@dataclass(frozen=True)
class ContentSection:
    """A named section of a content item."""
    id: str
    title: str
    content: str
    subtitle: Optional[str] = None
    code_snippet: Optional[CodeSnippet] = None
    practices: List[Practice] = field(default_factory=list)


@dataclass(frozen=True)
class ContentFooter:
    """Closing block of a content item."""
    title: str
    content: str


@dataclass(frozen=True)
class ContentDocument:
    """A structured content item (article, doc page or lab) ready for chunking."""
    slug: str
    metadata: ContentMetadata
    sections: List[ContentSection] = field(default_factory=list)
    introduction: Optional[str] = None
    footer: Optional[ContentFooter] = None
    kind: str = "article"

    @property
    def updated_at(self) -> Optional[datetime]:
        """Last content modification, falling back to the publication date."""
        return self.metadata.updated_at or self.metadata.published_at

    @classmethod
    def from_dict(cls, data: Dict[str, Any], slug: Optional[str] = None) -> "ContentDocument":
        """
        Build a validated document from its camelCase mapping form.

        Args:
            data: Parsed document mapping (as read from YAML/JSON)
            slug: Item slug, used when the mapping does not carry one

        Returns:
            ContentDocument

        Raises:
            ContentValidationError: If a required field is missing or malformed
        """
        if not isinstance(data, dict):
            raise ContentValidationError("Content document must be a mapping")

        raw_meta = _require(data, "metadata", "document")
        if not isinstance(raw_meta, dict):
            raise ContentValidationError("'metadata' must be a mapping")

        tags = raw_meta.get("tags") or []
        if not isinstance(tags, list):
            raise ContentValidationError("'metadata.tags' must be a list")

        metadata = ContentMetadata(
            title=_require(raw_meta, "title", "metadata"),
            description=raw_meta.get("description") or "",
            tags=[str(tag) for tag in tags],
            author=raw_meta.get("author") or "",
            published_at=_optional_timestamp(raw_meta, "publishedAt"),
            updated_at=_optional_timestamp(raw_meta, "updatedAt"),
        )

        item_slug = data.get("slug") or raw_meta.get("slug") or slug
        if not item_slug:
            raise ContentValidationError("Missing required field 'slug' in document")

        kind = data.get("kind") or raw_meta.get("kind") or "article"
        if kind not in CONTENT_KINDS:
            raise ContentValidationError(f"Unknown content kind: {kind!r}")

        sections = [
            cls._parse_section(raw, index)
            for index, raw in enumerate(data.get("sections") or [])
        ]

        seen_ids = set()
        for index, section in enumerate(sections):
            if section.id in seen_ids:
                raise ContentValidationError(f"Duplicate section id '{section.id}' in sections[{index}]")
            seen_ids.add(section.id)

        footer = None
        raw_footer = data.get("footer")
        if raw_footer:
            footer = ContentFooter(
                title=_require(raw_footer, "title", "footer"),
                content=_require(raw_footer, "content", "footer"),
            )

        return cls(
            slug=str(item_slug),
            metadata=metadata,
            sections=sections,
            introduction=data.get("introduction") or None,
            footer=footer,
            kind=kind,
        )

    @staticmethod
    def _parse_section(raw: Dict[str, Any], index: int) -> ContentSection:
        where = f"sections[{index}]"
        if not isinstance(raw, dict):
            raise ContentValidationError(f"{where} must be a mapping")

        snippet = None
        raw_snippet = raw.get("codeSnippet")
        if raw_snippet:
            snippet = CodeSnippet(
                language=_require(raw_snippet, "language", f"{where}.codeSnippet"),
                code=_require(raw_snippet, "code", f"{where}.codeSnippet"),
                filename=raw_snippet.get("filename") or None,
            )

        practices = [
            Practice(
                title=_require(practice, "title", f"{where}.practices[{i}]"),
                description=_require(practice, "description", f"{where}.practices[{i}]"),
            )
            for i, practice in enumerate(raw.get("practices") or [])
        ]

        return ContentSection(
            id=str(_require(raw, "id", where)),
            title=_require(raw, "title", where),
            content=_require(raw, "content", where),
            subtitle=raw.get("subtitle") or None,
            code_snippet=snippet,
            practices=practices,
        )
