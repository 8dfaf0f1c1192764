"""
Collision Resolver for file assembly.

Given every symbol reference a file's typed declarations use, decides which
imports must be renamed so that no two imported symbols share a name.

The scan is linear and in discovery order:

1. Identical references (same name, same module) collapse into one import.
2. References to the file's own module are never imported, never renamed,
   and never claim a name.
3. The first module to claim a display name keeps it. Each later module
   claiming the same name is renamed to ``<name>_autoresolved_<k>``, with
   ``k`` counting from 1 per display name and skipping any local name
   already bound in the file.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable

from tsforge.members.symbols import SymbolReference

logger = logging.getLogger(__name__)

DEFAULT_SUFFIX = "_autoresolved_"
DEFAULT_EXTENSIONS = (".ts", ".tsx")


def module_of(file_path: str, extensions: Iterable[str] = DEFAULT_EXTENSIONS) -> str:
    """The module specifier a file is known by: its path minus the source extension."""
    path = file_path.removeprefix("./")
    for ext in extensions:
        if path.endswith(ext):
            return path[: -len(ext)]
    return path


def is_self_module(
    module_path: str,
    file_path: str,
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
) -> bool:
    """Whether ``module_path`` points at the file being assembled.

    Only project-local specifiers (``./...``) can name the file itself;
    package specifiers such as ``long`` never do.
    """
    if not module_path.startswith("./"):
        return False
    return module_path[2:] == module_of(file_path, extensions)


@dataclass
class RenameEntry:
    """One resolved collision."""

    reference: SymbolReference
    alias: str
    claimant: SymbolReference  # the reference holding the colliding name


class RenameTable:
    """Per-file mapping from colliding references to their aliases."""

    def __init__(self) -> None:
        self._entries: dict[SymbolReference, RenameEntry] = {}

    def add(self, entry: RenameEntry) -> None:
        self._entries[entry.reference] = entry

    def alias_for(self, reference: SymbolReference) -> str | None:
        entry = self._entries.get(reference)
        return entry.alias if entry else None

    def entries(self) -> list[RenameEntry]:
        return list(self._entries.values())

    def export_mapping_table(self) -> str:
        """Markdown table of the renames, for reports."""
        lines = [
            "| Symbol | Module | Alias | Kept by |",
            "|--------|--------|-------|---------|",
        ]
        for entry in self._entries.values():
            lines.append(
                f"| `{entry.reference.display_name}` | `{entry.reference.module_path}` | "
                f"`{entry.alias}` | `{entry.claimant.module_path}` |"
            )
        return "\n".join(lines)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, reference: SymbolReference) -> bool:
        return reference in self._entries

    def __bool__(self) -> bool:
        return bool(self._entries)


@dataclass
class ImportSpec:
    """A resolved import: the reference and the local name it is bound to."""

    reference: SymbolReference
    alias: str | None = None

    @property
    def local_name(self) -> str:
        return self.alias or self.reference.display_name


@dataclass
class SeenNames:
    """Which reference holds each local name, and how many renames followed.

    Local names are claimed display names and issued aliases alike.
    """

    bound: dict[str, SymbolReference] = field(default_factory=dict)
    counters: dict[str, int] = field(default_factory=dict)

    def next_index(self, name: str) -> int:
        self.counters[name] = self.counters.get(name, 0) + 1
        return self.counters[name]

    def next_alias(self, name: str, suffix: str) -> str:
        """The next ``<name><suffix><k>`` not already bound."""
        while True:
            alias = f"{name}{suffix}{self.next_index(name)}"
            if alias not in self.bound:
                return alias


@dataclass
class Resolution:
    """Output of the resolver for one file."""

    renames: RenameTable
    imports: list[ImportSpec]


class CollisionResolver:
    """Computes the rename table and the import set for one file.

    Stateless between calls; all counters live in the ``SeenNames`` of a
    single ``resolve`` call.
    """

    def __init__(
        self,
        suffix: str = DEFAULT_SUFFIX,
        extensions: Iterable[str] = DEFAULT_EXTENSIONS,
    ):
        self.suffix = suffix
        self.extensions = tuple(extensions)

    def resolve(
        self,
        references: Iterable[SymbolReference],
        file_path: str,
    ) -> Resolution:
        """Resolve collisions among ``references`` (in discovery order).

        Args:
            references: Symbol references as discovered, duplicates allowed
            file_path: Path of the file being assembled

        Returns:
            Resolution with the rename table and the imports to emit
        """
        renames = RenameTable()
        imports: list[ImportSpec] = []
        seen = SeenNames()
        unique: set[SymbolReference] = set()

        for ref in references:
            if ref in unique:
                continue
            unique.add(ref)

            if is_self_module(ref.module_path, file_path, self.extensions):
                continue

            claimant = seen.bound.get(ref.display_name)
            if claimant is None:
                seen.bound[ref.display_name] = ref
                imports.append(ImportSpec(ref))
                continue

            alias = seen.next_alias(ref.display_name, self.suffix)
            seen.bound[alias] = ref
            renames.add(RenameEntry(reference=ref, alias=alias, claimant=claimant))
            imports.append(ImportSpec(ref, alias))
            logger.debug(f"Renamed {ref} to {alias} (name kept by {claimant})")

        return Resolution(renames=renames, imports=imports)

    def merge_unrenamed(
        self,
        resolution: Resolution,
        references: Iterable[SymbolReference],
        file_path: str,
    ) -> None:
        """Add imports for references that take no part in collision renaming.

        Used for free-standing code blocks: their references are imported
        under their own names. A reference already imported is skipped.
        """
        present = {spec.reference for spec in resolution.imports}
        bound = {spec.local_name: spec.reference for spec in resolution.imports}

        for ref in references:
            if ref in present or is_self_module(ref.module_path, file_path, self.extensions):
                continue
            present.add(ref)
            holder = bound.get(ref.display_name)
            if holder is not None:
                logger.warning(
                    f"{file_path}: code block import {ref} shares its name with {holder}"
                )
            else:
                bound[ref.display_name] = ref
            resolution.imports.append(ImportSpec(ref))
