"""
Code-member model: the declarations that make up one generated file.

This is the input of the assembly stage. It is produced upstream (by the
descriptor generator or loaded from a YAML/JSON model file) and is never
mutated during assembly.
"""

from pathlib import Path
from typing import Annotated, Any, Iterator, Literal, Union

import orjson
import yaml
from pydantic import BaseModel, Field, model_validator

from tsforge.members.symbols import StrictTypeRef, TypeRef, type_ref

# Placeholders understood by CodeBlock formats
TYPE_PLACEHOLDER = "T"
LITERAL_PLACEHOLDER = "L"
STRING_PLACEHOLDER = "S"

CodeArgument = Union[StrictTypeRef, str, int, float, bool]


def parse_format(fmt: str) -> list[tuple[str, str | None]]:
    """Split a CodeBlock format into ("text", chunk) and (placeholder, None) parts.

    Raises:
        ValueError: On an unknown or dangling ``%`` placeholder
    """
    parts: list[tuple[str, str | None]] = []
    buffer: list[str] = []
    i = 0
    while i < len(fmt):
        char = fmt[i]
        if char != "%":
            buffer.append(char)
            i += 1
            continue
        if i + 1 >= len(fmt):
            raise ValueError(f"Dangling '%' at end of format {fmt!r}")
        code = fmt[i + 1]
        if code == "%":
            buffer.append("%")
        elif code in (TYPE_PLACEHOLDER, LITERAL_PLACEHOLDER, STRING_PLACEHOLDER):
            if buffer:
                parts.append(("text", "".join(buffer)))
                buffer = []
            parts.append((code, None))
        else:
            raise ValueError(f"Unknown placeholder '%{code}' in format {fmt!r}")
        i += 2
    if buffer:
        parts.append(("text", "".join(buffer)))
    return parts


class CodeBlock(BaseModel):
    """Free-form code with ``%T`` (type), ``%L`` (literal) and ``%S`` (string) slots."""

    kind: Literal["code_block"] = "code_block"
    format: str
    args: list[CodeArgument] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_arguments(self) -> "CodeBlock":
        slots = [code for code, _ in parse_format(self.format) if code != "text"]
        if len(slots) != len(self.args):
            raise ValueError(
                f"Format {self.format!r} has {len(slots)} placeholders "
                f"but {len(self.args)} arguments were given"
            )
        for code, arg in zip(slots, self.args):
            if code == TYPE_PLACEHOLDER and not isinstance(arg, (str, BaseModel)):
                raise ValueError(f"%T expects a type, got {arg!r}")
        return self

    def segments(self) -> Iterator[tuple[str, Any]]:
        """Yield (kind, value) pairs with arguments bound to their placeholders.

        ``%T`` arguments given as strings are read as type shorthand.
        """
        args = iter(self.args)
        for code, text in parse_format(self.format):
            if code == "text":
                yield "text", text
            elif code == TYPE_PLACEHOLDER:
                yield code, type_ref(next(args))
            else:
                yield code, next(args)


class PropertySpec(BaseModel):
    """A property of an interface or class, or a top-level ``export const``."""

    kind: Literal["property"] = "property"
    name: str
    type: TypeRef | None = None
    optional: bool = False
    readonly: bool = False
    static: bool = False
    initializer: CodeBlock | None = None
    doc: str | None = None
    exported: bool = True


class ParameterSpec(BaseModel):
    name: str
    type: TypeRef | None = None
    optional: bool = False
    default: str | None = Field(default=None, description="Default value as source text")


class FunctionSpec(BaseModel):
    """A free function, or a method when nested in an interface or class."""

    kind: Literal["function"] = "function"
    name: str
    parameters: list[ParameterSpec] = Field(default_factory=list)
    return_type: TypeRef | None = None
    body: CodeBlock | None = None
    is_async: bool = False
    doc: str | None = None
    exported: bool = True


class InterfaceSpec(BaseModel):
    kind: Literal["interface"] = "interface"
    name: str
    extends: list[TypeRef] = Field(default_factory=list)
    properties: list[PropertySpec] = Field(default_factory=list)
    methods: list[FunctionSpec] = Field(default_factory=list)
    doc: str | None = None
    exported: bool = True


class ClassSpec(BaseModel):
    kind: Literal["class"] = "class"
    name: str
    extends: TypeRef | None = None
    implements: list[TypeRef] = Field(default_factory=list)
    properties: list[PropertySpec] = Field(default_factory=list)
    methods: list[FunctionSpec] = Field(default_factory=list)
    doc: str | None = None
    exported: bool = True
    abstract: bool = False


class EnumConstant(BaseModel):
    name: str
    value: int | str | None = None
    doc: str | None = None


class EnumSpec(BaseModel):
    kind: Literal["enum"] = "enum"
    name: str
    constants: list[EnumConstant] = Field(default_factory=list)
    doc: str | None = None
    exported: bool = True
    const: bool = False


class TypeAliasSpec(BaseModel):
    kind: Literal["type_alias"] = "type_alias"
    name: str
    type: TypeRef
    doc: str | None = None
    exported: bool = True


Declaration = Annotated[
    Union[
        InterfaceSpec,
        ClassSpec,
        EnumSpec,
        FunctionSpec,
        PropertySpec,
        TypeAliasSpec,
        CodeBlock,
    ],
    Field(discriminator="kind"),
]


class GeneratedFile(BaseModel):
    """One output file: its path, header comment and ordered declarations."""

    path: str = Field(description="Output path relative to the generation root (e.g. 'foo/bar.ts')")
    comment: str | None = Field(default=None, description="Header comment")
    members: list[Declaration] = Field(default_factory=list)

    @property
    def typed_members(self) -> list[Any]:
        return [m for m in self.members if not isinstance(m, CodeBlock)]

    @property
    def code_blocks(self) -> list[CodeBlock]:
        return [m for m in self.members if isinstance(m, CodeBlock)]

    def emission_order(self) -> list[Any]:
        """Typed declarations in their original order, then code blocks."""
        return self.typed_members + self.code_blocks


def load_generated_files(path: Path) -> list[GeneratedFile]:
    """Load code-member models from a JSON or YAML file.

    The document is either a single file model, a list of them, or a mapping
    with a ``files`` list.
    """
    suffix = path.suffix.lower()
    if suffix == ".json":
        raw = orjson.loads(path.read_bytes())
    elif suffix in (".yaml", ".yml"):
        with open(path) as f:
            raw = yaml.safe_load(f)
    else:
        raise ValueError(f"Unsupported model file type: {path}")

    if raw is None:
        return []
    if isinstance(raw, dict) and "files" in raw:
        entries = raw["files"]
    elif isinstance(raw, list):
        entries = raw
    else:
        entries = [raw]

    return [GeneratedFile.model_validate(entry) for entry in entries]
