"""
Unit tests for the collision resolver.
"""

import logging

import pytest

from tsforge.assembler.resolver import (
    CollisionResolver,
    RenameEntry,
    RenameTable,
    is_self_module,
    module_of,
)
from tsforge.members.symbols import SymbolReference


def _refs(*specs: str) -> list[SymbolReference]:
    return [SymbolReference.parse(s) for s in specs]


def _aliases(resolution) -> dict[str, str | None]:
    return {str(spec.reference): spec.alias for spec in resolution.imports}


@pytest.fixture
def resolver():
    return CollisionResolver()


class TestModulePaths:
    """Test self-module detection."""

    def test_module_of_strips_extension(self):
        assert module_of("foo/bar.ts") == "foo/bar"
        assert module_of("./foo/bar.tsx") == "foo/bar"
        assert module_of("foo/bar.js") == "foo/bar.js"

    def test_is_self_module(self):
        assert is_self_module("./foo/bar", "foo/bar.ts")
        assert is_self_module("./foo/bar", "./foo/bar.ts")
        assert not is_self_module("./foo/baz", "foo/bar.ts")
        assert not is_self_module("./bar", "foo/bar.ts")

    def test_package_specifier_is_never_self(self):
        assert not is_self_module("long", "long.ts")
        assert not is_self_module("foo/bar", "foo/bar.ts")
        assert not is_self_module("rxjs", "./rxjs.ts")


class TestCollisionResolver:
    """Test rename decisions."""

    def test_empty(self, resolver):
        resolution = resolver.resolve([], "x.ts")
        assert resolution.imports == []
        assert len(resolution.renames) == 0
        assert not resolution.renames

    def test_no_collision(self, resolver):
        resolution = resolver.resolve(_refs("Bar@./a", "Baz@./b"), "x.ts")
        assert _aliases(resolution) == {"Bar@./a": None, "Baz@./b": None}
        assert not resolution.renames

    def test_first_claimant_keeps_name(self, resolver):
        resolution = resolver.resolve(_refs("Bar@./a", "Bar@./b"), "x.ts")

        assert _aliases(resolution) == {"Bar@./a": None, "Bar@./b": "Bar_autoresolved_1"}
        entry = resolution.renames.entries()[0]
        assert entry.reference == SymbolReference.parse("Bar@./b")
        assert entry.claimant == SymbolReference.parse("Bar@./a")

    def test_discovery_order_decides(self, resolver):
        resolution = resolver.resolve(_refs("Bar@./b", "Bar@./a"), "x.ts")
        assert _aliases(resolution) == {"Bar@./b": None, "Bar@./a": "Bar_autoresolved_1"}

    def test_three_way_collision(self, resolver):
        resolution = resolver.resolve(_refs("Bar@./a", "Bar@./b", "Bar@./c"), "x.ts")
        assert _aliases(resolution) == {
            "Bar@./a": None,
            "Bar@./b": "Bar_autoresolved_1",
            "Bar@./c": "Bar_autoresolved_2",
        }

    def test_counters_are_per_name(self, resolver):
        resolution = resolver.resolve(
            _refs("Bar@./a", "Baz@./a", "Bar@./b", "Baz@./b"), "x.ts"
        )
        assert _aliases(resolution)["Bar@./b"] == "Bar_autoresolved_1"
        assert _aliases(resolution)["Baz@./b"] == "Baz_autoresolved_1"

    def test_identical_references_collapse(self, resolver):
        resolution = resolver.resolve(_refs("Bar@./a", "Bar@./a", "Bar@./a"), "x.ts")
        assert len(resolution.imports) == 1
        assert not resolution.renames

    def test_self_reference_never_imported_or_claims(self, resolver):
        resolution = resolver.resolve(_refs("Bar@./x", "Bar@./a"), "x.ts")

        # The file's own Bar takes no name, so ./a keeps it
        assert _aliases(resolution) == {"Bar@./a": None}
        assert not resolution.renames

    def test_package_named_like_the_file_is_imported(self, resolver):
        resolution = resolver.resolve(_refs("Long@long"), "long.ts")
        assert _aliases(resolution) == {"Long@long": None}

    def test_alias_skips_names_already_bound(self, resolver):
        resolution = resolver.resolve(
            _refs("Bar@./a", "Bar_autoresolved_1@./c", "Bar@./b"), "x.ts"
        )
        assert _aliases(resolution) == {
            "Bar@./a": None,
            "Bar_autoresolved_1@./c": None,
            "Bar@./b": "Bar_autoresolved_2",
        }

    def test_display_name_matching_an_alias_is_renamed(self, resolver):
        resolution = resolver.resolve(
            _refs("Bar@./a", "Bar@./b", "Bar_autoresolved_1@./c"), "x.ts"
        )
        aliases = _aliases(resolution)
        assert aliases["Bar@./b"] == "Bar_autoresolved_1"
        assert aliases["Bar_autoresolved_1@./c"] == "Bar_autoresolved_1_autoresolved_1"
        local_names = [spec.local_name for spec in resolution.imports]
        assert len(local_names) == len(set(local_names))

    def test_custom_suffix(self):
        resolver = CollisionResolver(suffix="_")
        resolution = resolver.resolve(_refs("Bar@./a", "Bar@./b"), "x.ts")
        assert _aliases(resolution)["Bar@./b"] == "Bar_1"

    def test_deterministic(self, resolver):
        refs = _refs("Bar@./a", "Bar@./b", "Baz@./c", "Bar@./c")
        first = resolver.resolve(refs, "x.ts")
        second = resolver.resolve(refs, "x.ts")
        assert first.imports == second.imports
        assert first.renames.entries() == second.renames.entries()


class TestMergeUnrenamed:
    """Test code-block imports."""

    def test_adds_missing_imports_without_renaming(self, resolver):
        resolution = resolver.resolve(_refs("Bar@./a"), "x.ts")
        resolver.merge_unrenamed(resolution, _refs("Long@long", "Bar@./a"), "x.ts")

        assert _aliases(resolution) == {"Bar@./a": None, "Long@long": None}

    def test_name_clash_is_logged(self, resolver, caplog):
        resolution = resolver.resolve(_refs("Bar@./a"), "x.ts")

        with caplog.at_level(logging.WARNING):
            resolver.merge_unrenamed(resolution, _refs("Bar@./b"), "x.ts")

        assert "shares its name" in caplog.text
        assert _aliases(resolution)["Bar@./b"] is None

    def test_skips_self_module(self, resolver):
        resolution = resolver.resolve([], "x.ts")
        resolver.merge_unrenamed(resolution, _refs("Local@./x"), "x.ts")
        assert resolution.imports == []


class TestRenameTable:
    """Test the rename table."""

    def test_lookup_and_report(self):
        table = RenameTable()
        a, b = _refs("Bar@./a", "Bar@./b")
        table.add(RenameEntry(reference=b, alias="Bar_autoresolved_1", claimant=a))

        assert b in table
        assert a not in table
        assert table.alias_for(b) == "Bar_autoresolved_1"
        assert table.alias_for(a) is None
        assert "`Bar_autoresolved_1`" in table.export_mapping_table()
