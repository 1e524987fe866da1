"""Domain objects and wire models for the query pipeline.

Domain state that the pipeline builds and compares (schemas, aliases, field
constraints, requests) is held in frozen dataclasses so every snapshot is
immutable and hashable. Payloads parsed from the server (responses, hits,
highlights) are pydantic models, validated once at the backend boundary.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..constants import NUMERIC_FIELD_TYPES, STRING_FIELD_TYPES


# ============================================================================
# Schema and alias snapshots
# ============================================================================


@dataclass(frozen=True)
class SchemaField:
    """One declared field of an index schema."""

    name: str
    type: str
    facet: bool = False
    optional: bool = False
    index: bool = True
    sort: Optional[bool] = None

    @property
    def is_numeric(self) -> bool:
        return self.type in NUMERIC_FIELD_TYPES

    @property
    def is_string(self) -> bool:
        return self.type in STRING_FIELD_TYPES

    @property
    def is_array(self) -> bool:
        return "[]" in self.type

    @property
    def is_sortable(self) -> bool:
        return not self.is_array

    @classmethod
    def from_wire(cls, data: Dict[str, Any]) -> SchemaField:
        return cls(
            name=data["name"],
            type=data.get("type", "string"),
            facet=bool(data.get("facet", False)),
            optional=bool(data.get("optional", False)),
            index=bool(data.get("index", True)),
            sort=data.get("sort"),
        )


@dataclass(frozen=True)
class IndexSchema:
    """Read-only schema of a remote index (a Typesense collection).

    Attributes:
        name: Index name
        fields: Declared fields in declaration order
        default_sorting_field: Server-side default sort, if any
        num_documents: Document count at fetch time
    """

    name: str
    fields: Tuple[SchemaField, ...] = ()
    default_sorting_field: Optional[str] = None
    num_documents: int = 0

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("name field cannot be empty")

    @property
    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]

    def get_field(self, name: str) -> Optional[SchemaField]:
        for schema_field in self.fields:
            if schema_field.name == name:
                return schema_field
        return None

    def numeric_fields(self) -> List[SchemaField]:
        """Numeric fields sorted by name."""
        return sorted((f for f in self.fields if f.is_numeric), key=lambda f: f.name)

    def string_fields(self) -> List[SchemaField]:
        """String fields sorted by name."""
        return sorted((f for f in self.fields if f.is_string), key=lambda f: f.name)

    def sortable_fields(self) -> List[SchemaField]:
        """Non-array fields sorted by name."""
        return sorted((f for f in self.fields if f.is_sortable), key=lambda f: f.name)

    def searchable_fields(self) -> List[str]:
        """Indexed string fields in declaration order, the default ``query_by``."""
        return [f.name for f in self.fields if f.is_string and f.index]

    @classmethod
    def from_wire(cls, data: Dict[str, Any]) -> IndexSchema:
        return cls(
            name=data["name"],
            fields=tuple(SchemaField.from_wire(f) for f in data.get("fields", [])),
            default_sorting_field=data.get("default_sorting_field") or None,
            num_documents=int(data.get("num_documents", 0)),
        )


@dataclass(frozen=True)
class Alias:
    """An alternate name resolving to an index at query time."""

    name: str
    collection_name: str

    @classmethod
    def from_wire(cls, data: Dict[str, Any]) -> Alias:
        return cls(name=data["name"], collection_name=data["collection_name"])


# ============================================================================
# Field constraints (structured filter draft)
# ============================================================================


@dataclass(frozen=True)
class NumericRange:
    """Inclusive numeric bounds typed into a min/max widget pair.

    Values are kept as entered; an empty string or None means unset.
    """

    min: Optional[Union[str, int, float]] = None
    max: Optional[Union[str, int, float]] = None

    @staticmethod
    def _is_set(value: Optional[Union[str, int, float]]) -> bool:
        if value is None:
            return False
        if isinstance(value, str):
            return value.strip() != ""
        return True

    @property
    def has_min(self) -> bool:
        return self._is_set(self.min)

    @property
    def has_max(self) -> bool:
        return self._is_set(self.max)

    @property
    def is_empty(self) -> bool:
        return not (self.has_min or self.has_max)


@dataclass(frozen=True)
class StringPrefix:
    """A prefix typed into a string field widget."""

    value: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.value.strip()


FieldConstraint = Union[NumericRange, StringPrefix]


# ============================================================================
# Requests
# ============================================================================


@dataclass(frozen=True)
class SearchRequest:
    """Everything needed to run one search against one index.

    ``index_name`` is the name the operator selected and may be an alias;
    the executor resolves it before calling the server.
    """

    index_name: Optional[str]
    text: str = ""
    query_by_fields: Tuple[str, ...] = ()
    filter_by: Optional[str] = None
    sort_by: Optional[str] = None
    page: int = 1
    per_page: int = 25
    facet_by: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError(f"page must be >= 1, got {self.page}")
        if self.per_page <= 0:
            raise ValueError(f"per_page must be > 0, got {self.per_page}")


# ============================================================================
# Wire models
# ============================================================================


class DictAccessibleModel(BaseModel):
    """Base model that also supports dict-style access."""

    def __getitem__(self, key: str) -> Any:
        try:
            return getattr(self, key)
        except AttributeError:
            raise KeyError(key)

    def get(self, key: str, default: Any = None) -> Any:
        return getattr(self, key, default)

    def __contains__(self, key: str) -> bool:
        return hasattr(self, key)


class Highlight(DictAccessibleModel):
    """Server highlight metadata for one field of a hit.

    Array fields carry ``snippets`` and per-element token lists; those lists
    are flattened into ``matched_tokens``.
    """

    model_config = ConfigDict(frozen=True)

    field: str
    snippet: Optional[str] = None
    snippets: List[str] = Field(default_factory=list)
    matched_tokens: List[str] = Field(default_factory=list)

    @field_validator("matched_tokens", mode="before")
    @classmethod
    def _flatten_tokens(cls, value: Any) -> List[str]:
        if value is None:
            return []
        flat: List[str] = []
        for item in value:
            if isinstance(item, list):
                flat.extend(str(token) for token in item)
            else:
                flat.append(str(item))
        return flat


class Hit(DictAccessibleModel):
    """One matching document."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    document: Dict[str, Any]
    relevance_score: Union[int, float] = Field(default=0, alias="text_match")
    highlights: List[Highlight] = Field(default_factory=list)

    def highlight_for(self, field_name: str) -> Optional[Highlight]:
        for highlight in self.highlights:
            if highlight.field == field_name:
                return highlight
        return None


class SearchResponse(DictAccessibleModel):
    """One page of search results."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    found: int = Field(default=0, ge=0)
    hits: List[Hit] = Field(default_factory=list)
    elapsed_ms: float = Field(default=0, alias="search_time_ms")
    out_of: int = 0
    page: int = 1
    facet_counts: List[Dict[str, Any]] = Field(default_factory=list)

    @classmethod
    def from_wire(cls, data: Dict[str, Any]) -> SearchResponse:
        return cls.model_validate(data)
