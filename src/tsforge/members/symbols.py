"""
Symbol reference and type expression models.

A ``SymbolReference`` is an import dependency: the name a module exports and
the module path it is imported from. Every other type expression is built out
of references and bare names.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


class SymbolReference(BaseModel):
    """A (display name, originating module) pair.

    Two references are the same symbol iff both fields match. They collide
    iff the display names match and the modules differ.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["symbol"] = "symbol"
    display_name: str = Field(description="Name the symbol is exported under")
    module_path: str = Field(description="Module the symbol is imported from (e.g. './a')")

    @classmethod
    def parse(cls, spec: str) -> "SymbolReference":
        """Parse ``Name@module`` (e.g. ``Bar@./a``, ``Metadata@@grpc/grpc-js``)."""
        name, sep, module = spec.partition("@")
        if not sep or not name or not module:
            raise ValueError(f"Expected 'Name@module', got {spec!r}")
        return cls(display_name=name, module_path=module)

    def collides_with(self, other: "SymbolReference") -> bool:
        return (
            self.display_name == other.display_name
            and self.module_path != other.module_path
        )

    def __str__(self) -> str:
        return f"{self.display_name}@{self.module_path}"


class NamedType(BaseModel):
    """A bare type name that needs no import (``string``, a local interface)."""

    kind: Literal["named"] = "named"
    name: str


class UnionType(BaseModel):
    """Type choices: ``A | B | C``."""

    kind: Literal["union"] = "union"
    choices: list["TypeRef"] = Field(min_length=1)


class ArrayType(BaseModel):
    kind: Literal["array"] = "array"
    element: "TypeRef"


class GenericType(BaseModel):
    """A parameterized type: ``Promise<Foo>``, ``Record<string, Bar>``."""

    kind: Literal["generic"] = "generic"
    base: "TypeRef"
    args: list["TypeRef"] = Field(default_factory=list)


def type_ref(spec: Any) -> Any:
    """Coerce the ``Name@module`` / ``name`` shorthand into a type model.

    Non-string values are returned unchanged.
    """
    if isinstance(spec, str):
        if "@" in spec:
            return SymbolReference.parse(spec)
        return NamedType(name=spec)
    return spec


StrictTypeRef = Annotated[
    Union[SymbolReference, NamedType, UnionType, ArrayType, GenericType],
    Field(discriminator="kind"),
]

# Accepts the string shorthand as well as the tagged models
TypeRef = Annotated[StrictTypeRef, BeforeValidator(type_ref)]

UnionType.model_rebuild()
ArrayType.model_rebuild()
GenericType.model_rebuild()
