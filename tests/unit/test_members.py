"""
Unit tests for the code-member model.

Tests for:
- SymbolReference parsing and identity
- Type expression shorthand
- CodeBlock format parsing and validation
- Loading models from JSON and YAML
"""

import pytest
from pydantic import ValidationError

from tsforge.members.declarations import (
    CodeBlock,
    GeneratedFile,
    InterfaceSpec,
    PropertySpec,
    load_generated_files,
    parse_format,
)
from tsforge.members.symbols import (
    ArrayType,
    NamedType,
    SymbolReference,
    UnionType,
    type_ref,
)


# =============================================================================
# Symbol References
# =============================================================================


class TestSymbolReference:
    """Test symbol reference identity and parsing."""

    def test_parse(self):
        ref = SymbolReference.parse("Bar@./a")
        assert ref.display_name == "Bar"
        assert ref.module_path == "./a"

    def test_parse_scoped_package(self):
        ref = SymbolReference.parse("Metadata@@grpc/grpc-js")
        assert ref.display_name == "Metadata"
        assert ref.module_path == "@grpc/grpc-js"

    def test_parse_rejects_missing_module(self):
        with pytest.raises(ValueError):
            SymbolReference.parse("Bar")
        with pytest.raises(ValueError):
            SymbolReference.parse("Bar@")

    def test_identity_is_name_and_module(self):
        a = SymbolReference.parse("Bar@./a")
        assert a == SymbolReference(display_name="Bar", module_path="./a")
        assert len({a, SymbolReference.parse("Bar@./a")}) == 1
        assert a != SymbolReference.parse("Bar@./b")

    def test_collides_with(self):
        a = SymbolReference.parse("Bar@./a")
        assert a.collides_with(SymbolReference.parse("Bar@./b"))
        assert not a.collides_with(SymbolReference.parse("Bar@./a"))
        assert not a.collides_with(SymbolReference.parse("Baz@./b"))

    def test_str(self):
        assert str(SymbolReference.parse("Long@long")) == "Long@long"


class TestTypeShorthand:
    """Test string shorthand for type expressions."""

    def test_string_with_module_is_reference(self):
        assert type_ref("Bar@./a") == SymbolReference.parse("Bar@./a")

    def test_bare_string_is_named_type(self):
        assert type_ref("string") == NamedType(name="string")

    def test_nested_shorthand_in_models(self):
        prop = PropertySpec(
            name="value",
            type={"kind": "union", "choices": ["Bar@./a", "string"]},
        )
        assert isinstance(prop.type, UnionType)
        assert prop.type.choices[0] == SymbolReference.parse("Bar@./a")
        assert prop.type.choices[1] == NamedType(name="string")

    def test_array_shorthand(self):
        prop = PropertySpec(name="items", type={"kind": "array", "element": "Bar@./a"})
        assert isinstance(prop.type, ArrayType)
        assert prop.type.element == SymbolReference.parse("Bar@./a")

    def test_empty_union_rejected(self):
        with pytest.raises(ValidationError):
            PropertySpec(name="value", type={"kind": "union", "choices": []})


# =============================================================================
# Code Blocks
# =============================================================================


class TestCodeBlock:
    """Test CodeBlock format handling."""

    def test_parse_format(self):
        assert parse_format("a %T b %L%%") == [
            ("text", "a "),
            ("T", None),
            ("text", " b "),
            ("L", None),
            ("text", "%"),
        ]

    def test_unknown_placeholder(self):
        with pytest.raises(ValueError, match="Unknown placeholder"):
            parse_format("%X")

    def test_dangling_percent(self):
        with pytest.raises(ValueError, match="Dangling"):
            parse_format("100%")

    def test_argument_count_checked(self):
        with pytest.raises(ValidationError):
            CodeBlock(format="%T and %T", args=["Bar@./a"])

    def test_type_argument_must_be_a_type(self):
        with pytest.raises(ValidationError):
            CodeBlock(format="%T", args=[42])

    def test_segments_bind_arguments(self):
        block = CodeBlock(format="new %T(%L, %S)", args=["Bar@./a", 3, "x"])
        assert list(block.segments()) == [
            ("text", "new "),
            ("T", SymbolReference.parse("Bar@./a")),
            ("text", "("),
            ("L", 3),
            ("text", ", "),
            ("S", "x"),
            ("text", ")"),
        ]


# =============================================================================
# Generated Files
# =============================================================================


class TestGeneratedFile:
    """Test member ordering and model loading."""

    def test_emission_order_puts_code_blocks_last(self):
        block = CodeBlock(format="init();")
        iface = InterfaceSpec(name="I")
        const = PropertySpec(name="K", initializer=CodeBlock(format="1"))
        file = GeneratedFile(path="x.ts", members=[block, iface, const])

        assert file.emission_order() == [iface, const, block]
        assert file.code_blocks == [block]

    def test_members_discriminated_by_kind(self):
        file = GeneratedFile.model_validate(
            {
                "path": "x.ts",
                "members": [
                    {"kind": "interface", "name": "I"},
                    {"kind": "enum", "name": "E", "constants": [{"name": "A", "value": 0}]},
                    {"kind": "code_block", "format": "init();"},
                ],
            }
        )
        assert [m.kind for m in file.members] == ["interface", "enum", "code_block"]

    def test_load_yaml_files_list(self, tmp_path):
        model = tmp_path / "model.yaml"
        model.write_text(
            "files:\n"
            "  - path: a.ts\n"
            "    members:\n"
            "      - kind: interface\n"
            "        name: Foo\n"
            "  - path: b.ts\n"
        )

        files = load_generated_files(model)

        assert [f.path for f in files] == ["a.ts", "b.ts"]
        assert files[0].members[0].name == "Foo"

    def test_load_json_single_file(self, tmp_path):
        model = tmp_path / "model.json"
        model.write_text('{"path": "a.ts", "members": []}')

        files = load_generated_files(model)

        assert len(files) == 1
        assert files[0].path == "a.ts"

    def test_load_empty_yaml(self, tmp_path):
        model = tmp_path / "empty.yaml"
        model.write_text("")
        assert load_generated_files(model) == []

    def test_load_unknown_extension(self, tmp_path):
        model = tmp_path / "model.txt"
        model.write_text("{}")
        with pytest.raises(ValueError, match="Unsupported"):
            load_generated_files(model)
