"""
File Assembler: per-file assembly pipeline.

Coordinates the assembly of one generated file:
1. Load optional side metadata (best effort)
2. Collect symbol references from the typed declarations
3. Resolve collisions into a rename table and an import set
4. Emit the token stream
5. Resolve the tokens into final text

Files share no state, so many files can be assembled on a thread pool.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Iterable

from tsforge.assembler.collector import MemberCollector
from tsforge.assembler.emitter import TypeScriptEmitter
from tsforge.assembler.resolver import CollisionResolver, ImportSpec, RenameEntry
from tsforge.assembler.tokens import resolve_tokens
from tsforge.config.models import AssemblyConfig
from tsforge.members.declarations import GeneratedFile

logger = logging.getLogger(__name__)


@dataclass
class FileMetadata:
    """Optional side information about a file's source."""

    comments: dict[str, str] = field(default_factory=dict)  # declaration name -> comment


MetadataLoader = Callable[[GeneratedFile], FileMetadata | None]


@dataclass
class AssembledFile:
    """Final text for one file plus what assembly decided along the way."""

    path: str
    content: str
    imports: list[ImportSpec] = field(default_factory=list)
    renames: list[RenameEntry] = field(default_factory=list)


class FileAssembler:
    """Turns GeneratedFiles into (path, text) results."""

    def __init__(self, config: AssemblyConfig | None = None):
        self.config = config or AssemblyConfig()
        self.collector = MemberCollector()
        self.resolver = CollisionResolver(
            suffix=self.config.autoresolve_suffix,
            extensions=self.config.source_extensions,
        )
        self.emitter = TypeScriptEmitter(indent=self.config.indent)

    def assemble(
        self,
        file: GeneratedFile,
        metadata_loader: MetadataLoader | None = None,
    ) -> AssembledFile:
        """Assemble one file.

        Args:
            file: The code-member model of the file
            metadata_loader: Optional best-effort source of side metadata

        Returns:
            AssembledFile with the path and final text

        Raises:
            UnhandledDeclarationError: If a declaration cannot be rendered
        """
        metadata = self._load_metadata(file, metadata_loader)

        # Pass 1: the rename table must be complete before any usage is rendered
        references = self.collector.collect(file.members)
        resolution = self.resolver.resolve(references, file.path)
        self.resolver.merge_unrenamed(
            resolution, self.collector.collect_code_blocks(file.members), file.path
        )

        # Pass 2
        tokens = self.emitter.emit_file(file, resolution.imports, metadata.comments)
        content = resolve_tokens(tokens, resolution.renames)

        logger.debug(
            f"Assembled {file.path}: {len(file.members)} declarations, "
            f"{len(resolution.imports)} imports, {len(resolution.renames)} renames"
        )

        return AssembledFile(
            path=file.path,
            content=content,
            imports=resolution.imports,
            renames=resolution.renames.entries(),
        )

    def assemble_all(
        self,
        files: Iterable[GeneratedFile],
        metadata_loader: MetadataLoader | None = None,
        workers: int | None = None,
    ) -> list[AssembledFile]:
        """Assemble many files, returning results in input order.

        The first failure propagates; no partial result list is returned.
        """
        files = list(files)
        workers = workers or self.config.workers

        if workers <= 1 or len(files) <= 1:
            return [self.assemble(f, metadata_loader) for f in files]

        with ThreadPoolExecutor(max_workers=workers) as executor:
            return list(executor.map(lambda f: self.assemble(f, metadata_loader), files))

    def _load_metadata(
        self,
        file: GeneratedFile,
        metadata_loader: MetadataLoader | None,
    ) -> FileMetadata:
        if metadata_loader is None:
            return FileMetadata()
        try:
            return metadata_loader(file) or FileMetadata()
        except Exception as e:
            logger.debug(f"No metadata for {file.path}: {e}")
            return FileMetadata()
