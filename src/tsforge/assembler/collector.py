"""
Member Traversal for file assembly.

Walks a file's declarations and harvests every symbol reference they use,
in the order the emitter prints them. Pure reads; nothing is mutated.
"""

from typing import Any, Iterable, Iterator

from tsforge.members.declarations import (
    ClassSpec,
    CodeBlock,
    EnumSpec,
    FunctionSpec,
    InterfaceSpec,
    PropertySpec,
    TYPE_PLACEHOLDER,
    TypeAliasSpec,
)
from tsforge.members.symbols import (
    ArrayType,
    GenericType,
    NamedType,
    SymbolReference,
    UnionType,
)


def iter_type_symbols(type_ref: Any) -> Iterator[SymbolReference]:
    """Yield the symbol references inside a type expression, left to right.

    Every alternative of a union ("type choices") is yielded.
    """
    if type_ref is None or isinstance(type_ref, NamedType):
        return
    if isinstance(type_ref, SymbolReference):
        yield type_ref
    elif isinstance(type_ref, UnionType):
        for choice in type_ref.choices:
            yield from iter_type_symbols(choice)
    elif isinstance(type_ref, ArrayType):
        yield from iter_type_symbols(type_ref.element)
    elif isinstance(type_ref, GenericType):
        yield from iter_type_symbols(type_ref.base)
        for arg in type_ref.args:
            yield from iter_type_symbols(arg)


def iter_code_symbols(block: CodeBlock | None) -> Iterator[SymbolReference]:
    if block is None:
        return
    for code, value in block.segments():
        if code == TYPE_PLACEHOLDER:
            yield from iter_type_symbols(value)


class MemberCollector:
    """Harvests symbol references from a file's declarations."""

    def collect(self, members: Iterable[Any]) -> list[SymbolReference]:
        """References used by the typed declarations, in discovery order.

        Duplicates are kept; free-standing code blocks are skipped.
        """
        found: list[SymbolReference] = []
        for member in members:
            if isinstance(member, CodeBlock):
                continue
            found.extend(self._member_symbols(member))
        return found

    def collect_code_blocks(self, members: Iterable[Any]) -> list[SymbolReference]:
        """References used by free-standing code blocks only."""
        found: list[SymbolReference] = []
        for member in members:
            if isinstance(member, CodeBlock):
                found.extend(iter_code_symbols(member))
        return found

    def _member_symbols(self, member: Any) -> Iterator[SymbolReference]:
        if isinstance(member, InterfaceSpec):
            for base in member.extends:
                yield from iter_type_symbols(base)
            for prop in member.properties:
                yield from self._property_symbols(prop)
            for method in member.methods:
                yield from self._function_symbols(method)
        elif isinstance(member, ClassSpec):
            yield from iter_type_symbols(member.extends)
            for iface in member.implements:
                yield from iter_type_symbols(iface)
            for prop in member.properties:
                yield from self._property_symbols(prop)
            for method in member.methods:
                yield from self._function_symbols(method)
        elif isinstance(member, FunctionSpec):
            yield from self._function_symbols(member)
        elif isinstance(member, PropertySpec):
            yield from self._property_symbols(member)
        elif isinstance(member, TypeAliasSpec):
            yield from iter_type_symbols(member.type)
        elif isinstance(member, EnumSpec):
            # Enum constants carry plain values only
            return

    def _property_symbols(self, prop: PropertySpec) -> Iterator[SymbolReference]:
        yield from iter_type_symbols(prop.type)
        yield from iter_code_symbols(prop.initializer)

    def _function_symbols(self, func: FunctionSpec) -> Iterator[SymbolReference]:
        for param in func.parameters:
            yield from iter_type_symbols(param.type)
        yield from iter_type_symbols(func.return_type)
        yield from iter_code_symbols(func.body)
