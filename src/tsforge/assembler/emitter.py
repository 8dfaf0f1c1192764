"""
Textual Emitter for file assembly.

Renders a file's declarations and import block as TypeScript. Output is a
token stream (see ``assembler.tokens``): symbol names are recorded as usage
and binding tokens and only become text when the stream is resolved against
the file's rename table.
"""

import posixpath
from collections import defaultdict
from typing import Any

from tsforge.assembler.resolver import ImportSpec
from tsforge.assembler.tokens import ImportBinding, SymbolUsage, Text, Token
from tsforge.members.declarations import (
    LITERAL_PLACEHOLDER,
    STRING_PLACEHOLDER,
    TYPE_PLACEHOLDER,
    ClassSpec,
    CodeBlock,
    EnumSpec,
    FunctionSpec,
    GeneratedFile,
    InterfaceSpec,
    ParameterSpec,
    PropertySpec,
    TypeAliasSpec,
)
from tsforge.members.symbols import (
    ArrayType,
    GenericType,
    NamedType,
    SymbolReference,
    UnionType,
)


DOCUMENTED_DECLARATIONS = (
    InterfaceSpec,
    ClassSpec,
    EnumSpec,
    FunctionSpec,
    PropertySpec,
    TypeAliasSpec,
)


class AssemblyError(Exception):
    """Raised when a file cannot be assembled."""

    pass


class UnhandledDeclarationError(AssemblyError):
    """A declaration (or type expression) of a kind the emitter cannot render."""

    pass


def scrub_comment(text: str) -> str:
    """Keep comment text from closing the surrounding block comment."""
    return text.replace("*/", "* /")


def quote_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("'", "\\'").replace("\n", "\\n")
    return f"'{escaped}'"


def relative_specifier(module_path: str, file_path: str) -> str:
    """Rewrite a root-relative module specifier relative to the importing file.

    Package specifiers (anything not starting with ``./``) pass through.
    """
    if not module_path.startswith("./"):
        return module_path
    directory = posixpath.dirname(file_path.removeprefix("./")) or "."
    relative = posixpath.relpath(module_path[2:], directory)
    if relative.startswith("../"):
        return relative
    return f"./{relative}"


class CodeWriter:
    """Accumulates tokens, indenting every non-empty line at the current level."""

    def __init__(self, indent: str = "  "):
        self.tokens: list[Token] = []
        self.indent_unit = indent
        self._level = 0
        self._line_start = True

    def emit(self, text: str) -> "CodeWriter":
        for i, line in enumerate(text.split("\n")):
            if i > 0:
                self._append("\n")
                self._line_start = True
            if line:
                self._begin_line()
                self._append(line)
        return self

    def emit_symbol(self, reference: SymbolReference) -> "CodeWriter":
        self._begin_line()
        self.tokens.append(SymbolUsage(reference))
        return self

    def emit_binding(self, reference: SymbolReference) -> "CodeWriter":
        self._begin_line()
        self.tokens.append(ImportBinding(reference))
        return self

    def indent(self) -> "CodeWriter":
        self._level += 1
        return self

    def unindent(self) -> "CodeWriter":
        self._level = max(0, self._level - 1)
        return self

    def ensure_newline(self) -> "CodeWriter":
        if not self._line_start:
            self.emit("\n")
        return self

    def _begin_line(self) -> None:
        if self._line_start:
            self._line_start = False
            if self._level:
                self._append(self.indent_unit * self._level)

    def _append(self, text: str) -> None:
        if self.tokens and isinstance(self.tokens[-1], Text):
            self.tokens[-1] = Text(self.tokens[-1].value + text)
        else:
            self.tokens.append(Text(text))


class TypeScriptEmitter:
    """Renders a GeneratedFile to a token stream."""

    def __init__(self, indent: str = "  "):
        self.indent = indent

    def emit_file(
        self,
        file: GeneratedFile,
        imports: list[ImportSpec],
        docs: dict[str, str] | None = None,
    ) -> list[Token]:
        """Render header, import block, typed declarations, then code blocks.

        Args:
            file: The file to render
            imports: Resolved imports (self-module references already excluded)
            docs: Fallback doc comments keyed by declaration name

        Raises:
            UnhandledDeclarationError: On a declaration kind with no rendering
        """
        writer = CodeWriter(self.indent)
        docs = docs or {}
        sections = 0

        if file.comment:
            for line in file.comment.splitlines():
                writer.emit(f"// {line}".rstrip() + "\n")
            sections += 1

        if imports:
            if sections:
                writer.emit("\n")
            self.emit_imports(writer, imports, file.path)
            sections += 1

        for member in file.emission_order():
            if sections:
                writer.emit("\n")
            self.emit_declaration(writer, member, docs)
            writer.ensure_newline()
            sections += 1

        return writer.tokens

    # =========================================================================
    # Imports
    # =========================================================================

    def emit_imports(
        self,
        writer: CodeWriter,
        imports: list[ImportSpec],
        file_path: str = "",
    ) -> None:
        """One ``import { ... } from '<module>';`` per module, sorted by specifier."""
        by_module: dict[str, list[ImportSpec]] = defaultdict(list)
        for spec in imports:
            by_module[relative_specifier(spec.reference.module_path, file_path)].append(spec)

        for module in sorted(by_module):
            specs = sorted(
                by_module[module],
                key=lambda s: (s.reference.display_name, s.alias or ""),
            )
            writer.emit("import { ")
            for i, spec in enumerate(specs):
                if i:
                    writer.emit(", ")
                writer.emit_binding(spec.reference)
            writer.emit(f" }} from {quote_string(module)};\n")

    # =========================================================================
    # Declarations
    # =========================================================================

    def emit_declaration(self, writer: CodeWriter, member: Any, docs: dict[str, str]) -> None:
        if isinstance(member, CodeBlock):
            self.emit_code(writer, member)
            return

        if not isinstance(member, DOCUMENTED_DECLARATIONS):
            raise UnhandledDeclarationError(
                f"Unhandled declaration kind: {type(member).__name__}"
            )

        self.emit_doc(writer, member.doc or docs.get(member.name))
        if isinstance(member, InterfaceSpec):
            self.emit_interface(writer, member)
        elif isinstance(member, ClassSpec):
            self.emit_class(writer, member)
        elif isinstance(member, EnumSpec):
            self.emit_enum(writer, member)
        elif isinstance(member, FunctionSpec):
            self.emit_function(writer, member)
        elif isinstance(member, PropertySpec):
            self.emit_const(writer, member)
        else:
            self.emit_type_alias(writer, member)

    def emit_interface(self, writer: CodeWriter, iface: InterfaceSpec) -> None:
        writer.emit(f"{self._export(iface.exported)}interface {iface.name}")
        if iface.extends:
            writer.emit(" extends ")
            self._emit_type_list(writer, iface.extends)
        if not iface.properties and not iface.methods:
            writer.emit(" {}\n")
            return

        writer.emit(" {\n").indent()
        for prop in iface.properties:
            self.emit_member_property(writer, prop)
        for method in iface.methods:
            self.emit_doc(writer, method.doc)
            self._emit_signature(writer, method)
            writer.emit(";\n")
        writer.unindent().emit("}\n")

    def emit_class(self, writer: CodeWriter, cls: ClassSpec) -> None:
        abstract = "abstract " if cls.abstract else ""
        writer.emit(f"{self._export(cls.exported)}{abstract}class {cls.name}")
        if cls.extends is not None:
            writer.emit(" extends ")
            self.emit_type(writer, cls.extends)
        if cls.implements:
            writer.emit(" implements ")
            self._emit_type_list(writer, cls.implements)
        if not cls.properties and not cls.methods:
            writer.emit(" {}\n")
            return

        writer.emit(" {\n").indent()
        for prop in cls.properties:
            self.emit_member_property(writer, prop)
        for i, method in enumerate(cls.methods):
            if i or cls.properties:
                writer.emit("\n")
            self.emit_doc(writer, method.doc)
            if method.is_async:
                writer.emit("async ")
            self._emit_signature(writer, method)
            if method.body is None:
                writer.emit(";\n")
            else:
                self._emit_body(writer, method.body)
        writer.unindent().emit("}\n")

    def emit_enum(self, writer: CodeWriter, enum: EnumSpec) -> None:
        const = "const " if enum.const else ""
        writer.emit(f"{self._export(enum.exported)}{const}enum {enum.name} {{\n").indent()
        for constant in enum.constants:
            self.emit_doc(writer, constant.doc)
            if constant.value is None:
                writer.emit(f"{constant.name},\n")
            elif isinstance(constant.value, str):
                writer.emit(f"{constant.name} = {quote_string(constant.value)},\n")
            else:
                writer.emit(f"{constant.name} = {constant.value},\n")
        writer.unindent().emit("}\n")

    def emit_function(self, writer: CodeWriter, func: FunctionSpec) -> None:
        writer.emit(self._export(func.exported))
        if func.is_async:
            writer.emit("async ")
        writer.emit("function ")
        self._emit_signature(writer, func)
        if func.body is None:
            writer.emit(" {}\n")
        else:
            self._emit_body(writer, func.body)

    def emit_const(self, writer: CodeWriter, prop: PropertySpec) -> None:
        """A top-level property: ``export const name: T = init;``."""
        declare = "" if prop.initializer is not None else "declare "
        writer.emit(f"{self._export(prop.exported)}{declare}const {prop.name}")
        if prop.type is not None:
            writer.emit(": ")
            self.emit_type(writer, prop.type)
        if prop.initializer is not None:
            writer.emit(" = ")
            self.emit_code(writer, prop.initializer)
        writer.emit(";\n")

    def emit_type_alias(self, writer: CodeWriter, alias: TypeAliasSpec) -> None:
        writer.emit(f"{self._export(alias.exported)}type {alias.name} = ")
        self.emit_type(writer, alias.type)
        writer.emit(";\n")

    def emit_member_property(self, writer: CodeWriter, prop: PropertySpec) -> None:
        """A property inside an interface or class body."""
        self.emit_doc(writer, prop.doc)
        if prop.static:
            writer.emit("static ")
        if prop.readonly:
            writer.emit("readonly ")
        writer.emit(prop.name)
        if prop.optional:
            writer.emit("?")
        if prop.type is not None:
            writer.emit(": ")
            self.emit_type(writer, prop.type)
        if prop.initializer is not None:
            writer.emit(" = ")
            self.emit_code(writer, prop.initializer)
        writer.emit(";\n")

    # =========================================================================
    # Building blocks
    # =========================================================================

    def emit_type(self, writer: CodeWriter, type_ref: Any, in_array: bool = False) -> None:
        if isinstance(type_ref, SymbolReference):
            writer.emit_symbol(type_ref)
        elif isinstance(type_ref, NamedType):
            writer.emit(type_ref.name)
        elif isinstance(type_ref, UnionType):
            wrap = in_array and len(type_ref.choices) > 1
            if wrap:
                writer.emit("(")
            for i, choice in enumerate(type_ref.choices):
                if i:
                    writer.emit(" | ")
                self.emit_type(writer, choice)
            if wrap:
                writer.emit(")")
        elif isinstance(type_ref, ArrayType):
            self.emit_type(writer, type_ref.element, in_array=True)
            writer.emit("[]")
        elif isinstance(type_ref, GenericType):
            self.emit_type(writer, type_ref.base)
            writer.emit("<")
            self._emit_type_list(writer, type_ref.args)
            writer.emit(">")
        else:
            raise UnhandledDeclarationError(
                f"Unhandled type expression: {type(type_ref).__name__}"
            )

    def emit_code(self, writer: CodeWriter, block: CodeBlock) -> None:
        for code, value in block.segments():
            if code == "text":
                writer.emit(value)
            elif code == TYPE_PLACEHOLDER:
                self.emit_type(writer, value)
            elif code == STRING_PLACEHOLDER:
                writer.emit(quote_string(str(value)))
            elif code == LITERAL_PLACEHOLDER:
                if isinstance(value, bool):
                    writer.emit("true" if value else "false")
                else:
                    writer.emit(str(value))

    def emit_doc(self, writer: CodeWriter, doc: str | None) -> None:
        if not doc:
            return
        lines = scrub_comment(doc).strip().splitlines()
        if len(lines) == 1:
            writer.emit(f"/** {lines[0]} */\n")
            return
        writer.emit("/**\n")
        for line in lines:
            writer.emit(f" * {line}".rstrip() + "\n")
        writer.emit(" */\n")

    def _emit_signature(self, writer: CodeWriter, func: FunctionSpec) -> None:
        writer.emit(f"{func.name}(")
        for i, param in enumerate(func.parameters):
            if i:
                writer.emit(", ")
            self._emit_parameter(writer, param)
        writer.emit(")")
        if func.return_type is not None:
            writer.emit(": ")
            self.emit_type(writer, func.return_type)

    def _emit_parameter(self, writer: CodeWriter, param: ParameterSpec) -> None:
        writer.emit(param.name)
        if param.optional and param.default is None:
            writer.emit("?")
        if param.type is not None:
            writer.emit(": ")
            self.emit_type(writer, param.type)
        if param.default is not None:
            writer.emit(f" = {param.default}")

    def _emit_body(self, writer: CodeWriter, body: CodeBlock) -> None:
        writer.emit(" {\n").indent()
        self.emit_code(writer, body)
        writer.ensure_newline()
        writer.unindent().emit("}\n")

    def _emit_type_list(self, writer: CodeWriter, types: list[Any]) -> None:
        for i, type_ref in enumerate(types):
            if i:
                writer.emit(", ")
            self.emit_type(writer, type_ref)

    @staticmethod
    def _export(exported: bool) -> str:
        return "export " if exported else ""
