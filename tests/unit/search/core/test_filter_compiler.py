"""Tests for structured filter compilation and mode drafts."""

from __future__ import annotations

import pytest

from index_browser.search.core.filter_compiler import (
    FilterCompiler,
    FilterDrafts,
    FilterMode,
    RawDraft,
    StructuredDraft,
    format_query_by,
    parse_query_by,
)
from index_browser.search.models import NumericRange, StringPrefix
from tests.helpers import products_schema


class TestFragments:
    """Fragment syntax for single constraints."""

    def setup_method(self):
        self.compiler = FilterCompiler(products_schema())

    def compile_one(self, name, constraint):
        return self.compiler.compile(StructuredDraft({name: constraint}))

    def test_numeric_range_with_both_bounds(self):
        assert self.compile_one("age", NumericRange(min="18", max="65")) == "age:[18..65]"

    def test_numeric_min_only(self):
        assert self.compile_one("age", NumericRange(min="18")) == "age:>=18"

    def test_numeric_max_only(self):
        assert self.compile_one("price", NumericRange(max=99.5)) == "price:<=99.5"

    def test_numeric_bounds_are_trimmed(self):
        assert self.compile_one("age", NumericRange(min=" 18 ", max="")) == "age:>=18"

    def test_zero_is_a_bound(self):
        assert self.compile_one("age", NumericRange(min=0)) == "age:>=0"

    def test_empty_numeric_range_contributes_nothing(self):
        assert self.compile_one("age", NumericRange(min="", max="  ")) == ""

    def test_string_prefix(self):
        assert self.compile_one("name", StringPrefix("Mar")) == "name:Mar*"

    def test_blank_string_prefix_contributes_nothing(self):
        assert self.compile_one("name", StringPrefix("   ")) == ""


class TestCompile:
    """Ordering and determinism of the joined expression."""

    def test_numeric_fields_first_then_strings_each_sorted_by_name(self):
        draft = StructuredDraft(
            {
                "name": StringPrefix("Mar"),
                "price": NumericRange(max="100"),
                "brand": StringPrefix("Nik"),
                "age": NumericRange(min="18", max="65"),
            }
        )

        compiled = FilterCompiler(products_schema()).compile(draft)

        assert compiled == "age:[18..65] && price:<=100 && brand:Nik* && name:Mar*"

    def test_compile_is_idempotent(self):
        draft = StructuredDraft({"name": StringPrefix("Mar"), "age": NumericRange(min="18")})
        compiler = FilterCompiler(products_schema())

        assert compiler.compile(draft) == compiler.compile(draft)

    def test_empty_draft_compiles_to_empty_string(self):
        assert FilterCompiler(products_schema()).compile(StructuredDraft()) == ""

    def test_constraints_on_undeclared_fields_are_ignored(self):
        draft = StructuredDraft({"color": StringPrefix("red"), "age": NumericRange(min="1")})

        assert FilterCompiler(products_schema()).compile(draft) == "age:>=1"

    def test_constraint_kind_must_match_field_type(self):
        draft = StructuredDraft({"age": StringPrefix("1"), "name": NumericRange(min="1")})

        assert FilterCompiler(products_schema()).compile(draft) == ""

    def test_without_schema_every_constraint_contributes(self):
        draft = StructuredDraft({"color": StringPrefix("red"), "size": NumericRange(max="4")})

        assert FilterCompiler().compile(draft) == "size:<=4 && color:red*"


class TestSortOptions:
    def test_sortable_fields_produce_asc_and_desc(self):
        options = FilterCompiler(products_schema()).sort_options()

        assert "price:asc" in options
        assert "price:desc" in options
        assert not any(option.startswith("tags:") for option in options)
        assert options[:2] == ["age:asc", "age:desc"]

    def test_no_schema_no_options(self):
        assert FilterCompiler().sort_options() == []


class TestDrafts:
    """Switching modes never rewrites the other mode's draft."""

    def test_structured_draft_set_and_remove(self):
        draft = StructuredDraft().with_constraint("age", NumericRange(min="1"))
        assert draft.get("age") == NumericRange(min="1")

        removed = draft.with_constraint("age", None)
        assert removed.get("age") is None
        assert draft.get("age") is not None

    def test_enter_raw_seeds_from_active_values(self):
        drafts = FilterDrafts().enter_raw(
            text="shoe", query_by_fields=("name", "description"), filter_by="age:>=18", sort_by="price:asc"
        )

        assert drafts.mode is FilterMode.RAW
        assert drafts.raw == RawDraft("shoe", "name, description", "age:>=18", "price:asc")

    def test_enter_raw_twice_keeps_raw_edits(self):
        drafts = FilterDrafts().enter_raw("", (), "", "").with_raw(filter_by="price:>5")

        assert drafts.enter_raw("x", ("name",), "age:>=1", "").raw.filter_by == "price:>5"

    def test_round_trip_restores_structured_filter_exactly(self):
        compiler = FilterCompiler(products_schema())
        structured = FilterDrafts().with_constraint("age", NumericRange(min="18", max="65")).with_constraint(
            "name", StringPrefix("Mar")
        )
        before = compiler.effective_filter(structured, "")

        raw = structured.enter_raw("", ("name",), before, "").with_raw(filter_by="price:>5")
        assert compiler.effective_filter(raw, "price:>5") == "price:>5"

        back = raw.leave_raw()
        assert back.mode is FilterMode.STRUCTURED
        assert compiler.effective_filter(back, "price:>5") == before == "age:[18..65] && name:Mar*"

    def test_clear_structured(self):
        drafts = FilterDrafts().with_constraint("age", NumericRange(min="1")).clear_structured()

        assert drafts.structured.is_empty


class TestQueryBy:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("title, description", ("title", "description")),
            (" title ,,description, ", ("title", "description")),
            ("", ()),
            (" , ", ()),
        ],
    )
    def test_parse(self, text, expected):
        assert parse_query_by(text) == expected

    def test_format(self):
        assert format_query_by(("title", "description")) == "title, description"
