"""Filter compilation for structured and raw authoring modes.

Structured mode keeps one constraint per field and compiles them into a single
``filter_by`` expression:

    numeric, both bounds   ->  price:[10..20]
    numeric, min only      ->  price:>=10
    numeric, max only      ->  price:<=20
    string prefix          ->  brand:Nik*

Fragments are joined with `` && ``; numeric fields come first, then string
fields, each group ordered by field name, so the same constraints always
compile to the same string.

Raw mode edits the wire strings (``q``, ``query_by``, ``filter_by``,
``sort_by``) directly. The two modes keep separate drafts: switching modes
never rewrites the other mode's draft, so leaving raw mode and compiling the
structured draft again yields exactly the filter it produced before.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ...constants import FILTER_JOINER
from ..models import FieldConstraint, IndexSchema, NumericRange, StringPrefix

logger = logging.getLogger(__name__)


class FilterMode(Enum):
    """Which draft drives the active request."""

    STRUCTURED = "structured"
    RAW = "raw"


def parse_query_by(text: str) -> Tuple[str, ...]:
    """Split a comma-separated ``query_by`` string, dropping blanks.

    >>> parse_query_by(" title, description,, ")
    ('title', 'description')
    """
    return tuple(part.strip() for part in text.split(",") if part.strip())


def format_query_by(fields: Iterable[str]) -> str:
    """Join fields the way the raw editor displays them.

    >>> format_query_by(["title", "description"])
    'title, description'
    """
    return ", ".join(fields)


@dataclass(frozen=True)
class StructuredDraft:
    """Per-field constraints typed into the structured widgets."""

    constraints: Dict[str, FieldConstraint] = field(default_factory=dict)

    def with_constraint(self, field_name: str, constraint: Optional[FieldConstraint]) -> StructuredDraft:
        """Return a draft with ``field_name`` set, or removed when ``constraint`` is None."""
        constraints = dict(self.constraints)
        if constraint is None:
            constraints.pop(field_name, None)
        else:
            constraints[field_name] = constraint
        return StructuredDraft(constraints)

    def get(self, field_name: str) -> Optional[FieldConstraint]:
        return self.constraints.get(field_name)

    @property
    def is_empty(self) -> bool:
        return all(constraint.is_empty for constraint in self.constraints.values())


@dataclass(frozen=True)
class RawDraft:
    """Literal wire strings typed into the raw editor."""

    text: str = ""
    query_by: str = ""
    filter_by: str = ""
    sort_by: str = ""

    @property
    def query_by_fields(self) -> Tuple[str, ...]:
        return parse_query_by(self.query_by)


@dataclass(frozen=True)
class FilterDrafts:
    """Both drafts plus the discriminator saying which one is applied."""

    mode: FilterMode = FilterMode.STRUCTURED
    structured: StructuredDraft = field(default_factory=StructuredDraft)
    raw: RawDraft = field(default_factory=RawDraft)

    @property
    def is_raw(self) -> bool:
        return self.mode is FilterMode.RAW

    def enter_raw(
        self,
        text: str,
        query_by_fields: Sequence[str],
        filter_by: str,
        sort_by: str,
    ) -> FilterDrafts:
        """Switch to raw mode, seeding the raw draft from the active values."""
        if self.is_raw:
            return self
        seeded = RawDraft(
            text=text,
            query_by=format_query_by(query_by_fields),
            filter_by=filter_by,
            sort_by=sort_by,
        )
        return replace(self, mode=FilterMode.RAW, raw=seeded)

    def leave_raw(self) -> FilterDrafts:
        """Switch back to structured mode; the structured draft is untouched."""
        if not self.is_raw:
            return self
        return replace(self, mode=FilterMode.STRUCTURED)

    def with_constraint(self, field_name: str, constraint: Optional[FieldConstraint]) -> FilterDrafts:
        return replace(self, structured=self.structured.with_constraint(field_name, constraint))

    def with_raw(self, **changes: str) -> FilterDrafts:
        return replace(self, raw=replace(self.raw, **changes))

    def clear_structured(self) -> FilterDrafts:
        return replace(self, structured=StructuredDraft())


class FilterCompiler:
    """Compile a structured draft against an index schema.

    When a schema is supplied only constraints on fields the schema declares
    with a matching type contribute; this drops leftovers from a previously
    selected index. Without a schema every constraint contributes according to
    its own kind.
    """

    def __init__(self, schema: Optional[IndexSchema] = None):
        self.schema = schema

    @staticmethod
    def _format_bound(value) -> str:
        if isinstance(value, str):
            return value.strip()
        return str(value)

    def numeric_fragment(self, field_name: str, constraint: NumericRange) -> Optional[str]:
        if constraint.has_min and constraint.has_max:
            return f"{field_name}:[{self._format_bound(constraint.min)}..{self._format_bound(constraint.max)}]"
        if constraint.has_min:
            return f"{field_name}:>={self._format_bound(constraint.min)}"
        if constraint.has_max:
            return f"{field_name}:<={self._format_bound(constraint.max)}"
        return None

    @staticmethod
    def string_fragment(field_name: str, constraint: StringPrefix) -> Optional[str]:
        if constraint.is_empty:
            return None
        return f"{field_name}:{constraint.value.strip()}*"

    def _ordered_names(self, draft: StructuredDraft, kind: type) -> List[str]:
        names = [name for name, constraint in draft.constraints.items() if isinstance(constraint, kind)]
        if self.schema is not None:
            declared = self.schema.numeric_fields() if kind is NumericRange else self.schema.string_fields()
            allowed = {f.name for f in declared}
            names = [name for name in names if name in allowed]
        return sorted(names)

    def fragments(self, draft: StructuredDraft) -> List[str]:
        """Non-empty fragments in output order."""
        fragments: List[str] = []

        for name in self._ordered_names(draft, NumericRange):
            fragment = self.numeric_fragment(name, draft.constraints[name])
            if fragment:
                fragments.append(fragment)

        for name in self._ordered_names(draft, StringPrefix):
            fragment = self.string_fragment(name, draft.constraints[name])
            if fragment:
                fragments.append(fragment)

        return fragments

    def compile(self, draft: StructuredDraft) -> str:
        """Return the AND-joined filter expression; empty when nothing is set."""
        compiled = FILTER_JOINER.join(self.fragments(draft))
        logger.debug(f"Compiled structured filter: {compiled!r}")
        return compiled

    def effective_filter(self, drafts: FilterDrafts, applied_raw_filter: str) -> str:
        """The filter driving the active request for the current mode."""
        if drafts.is_raw:
            return applied_raw_filter
        return self.compile(drafts.structured)

    def sort_options(self) -> List[str]:
        """``field:asc`` / ``field:desc`` pairs for every sortable field."""
        if self.schema is None:
            return []
        options: List[str] = []
        for schema_field in self.schema.sortable_fields():
            options.append(f"{schema_field.name}:asc")
            options.append(f"{schema_field.name}:desc")
        return options
