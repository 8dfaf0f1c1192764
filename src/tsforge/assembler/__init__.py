"""
File assembly: turns code-member models into TypeScript source text.

Collects the symbol references a file uses, renames colliding imports,
and renders declarations and the import block through a token stream.
"""

from tsforge.assembler.collector import MemberCollector
from tsforge.assembler.emitter import (
    AssemblyError,
    CodeWriter,
    TypeScriptEmitter,
    UnhandledDeclarationError,
)
from tsforge.assembler.orchestrator import AssembledFile, FileAssembler, FileMetadata
from tsforge.assembler.resolver import (
    CollisionResolver,
    ImportSpec,
    RenameEntry,
    RenameTable,
    Resolution,
)
from tsforge.assembler.tokens import resolve_tokens

__all__ = [
    "AssembledFile",
    "AssemblyError",
    "CodeWriter",
    "CollisionResolver",
    "FileAssembler",
    "FileMetadata",
    "ImportSpec",
    "MemberCollector",
    "RenameEntry",
    "RenameTable",
    "Resolution",
    "TypeScriptEmitter",
    "UnhandledDeclarationError",
    "resolve_tokens",
]
