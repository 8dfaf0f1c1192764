"""
Token stream for deferred symbol substitution.

The emitter never writes an alias directly. It records *where* a symbol is
used and *where* it is bound by an import, and a single linear pass over the
stream turns those tokens into text once the rename table is final.
"""

from dataclasses import dataclass
from typing import Iterable, Union

from tsforge.assembler.resolver import RenameTable
from tsforge.members.symbols import SymbolReference


@dataclass(frozen=True)
class Text:
    value: str


@dataclass(frozen=True)
class SymbolUsage:
    """A place where a symbol's name is printed (type annotation, code)."""

    reference: SymbolReference


@dataclass(frozen=True)
class ImportBinding:
    """A name inside an import statement's braces."""

    reference: SymbolReference


Token = Union[Text, SymbolUsage, ImportBinding]


def resolve_tokens(tokens: Iterable[Token], renames: RenameTable | None = None) -> str:
    """Render a token stream to text.

    Usages print the alias when the reference was renamed, otherwise the
    original name. Bindings print ``Name as Alias`` for renamed references so
    the module's real export name is kept. A stream of plain ``Text`` tokens
    renders to its concatenation, so resolving already-resolved text is a
    no-op.
    """
    out: list[str] = []
    for token in tokens:
        if isinstance(token, Text):
            out.append(token.value)
            continue

        ref = token.reference
        alias = renames.alias_for(ref) if renames is not None else None
        if isinstance(token, SymbolUsage):
            out.append(alias or ref.display_name)
        elif alias:
            out.append(f"{ref.display_name} as {alias}")
        else:
            out.append(ref.display_name)
    return "".join(out)
