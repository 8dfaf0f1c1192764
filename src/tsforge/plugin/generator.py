"""
Descriptor generator: one FileDescriptorProto to one GeneratedFile.

Decides which declarations a .proto file becomes (interfaces for messages
and services, enums for enums) and which types their slots hold. Import
handling and naming collisions are left to the assembler.
"""

import logging

from google.protobuf.descriptor_pb2 import (
    DescriptorProto,
    EnumDescriptorProto,
    FieldDescriptorProto,
    FileDescriptorProto,
    ServiceDescriptorProto,
)

from tsforge.config.models import LongOption, PluginOptions
from tsforge.members.declarations import (
    CodeBlock,
    EnumConstant,
    EnumSpec,
    FunctionSpec,
    GeneratedFile,
    InterfaceSpec,
    ParameterSpec,
    PropertySpec,
)
from tsforge.members.symbols import ArrayType, GenericType, NamedType, SymbolReference
from tsforge.plugin.type_map import TypeMap, module_name

logger = logging.getLogger(__name__)

F = FieldDescriptorProto

SCALAR_TYPES = {
    F.TYPE_DOUBLE: "number",
    F.TYPE_FLOAT: "number",
    F.TYPE_INT32: "number",
    F.TYPE_UINT32: "number",
    F.TYPE_SINT32: "number",
    F.TYPE_FIXED32: "number",
    F.TYPE_SFIXED32: "number",
    F.TYPE_BOOL: "boolean",
    F.TYPE_STRING: "string",
    F.TYPE_BYTES: "Uint8Array",
}

LONG_TYPES = {
    F.TYPE_INT64,
    F.TYPE_UINT64,
    F.TYPE_SINT64,
    F.TYPE_FIXED64,
    F.TYPE_SFIXED64,
}

TIMESTAMP = ".google.protobuf.Timestamp"

LONG = SymbolReference(display_name="Long", module_path="long")
OBSERVABLE = SymbolReference(display_name="Observable", module_path="rxjs")
PROTOBUF_UTIL = SymbolReference(display_name="util", module_path="protobufjs/minimal")
PROTOBUF_CONFIGURE = SymbolReference(display_name="configure", module_path="protobufjs/minimal")


def snake_to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def lower_first(name: str) -> str:
    return name[:1].lower() + name[1:]


class FileGenerator:
    """Builds the code-member model for one .proto file."""

    def __init__(self, type_map: TypeMap, options: PluginOptions):
        self.type_map = type_map
        self.options = options
        self._uses_long = False

    def generate(self, file: FileDescriptorProto) -> GeneratedFile:
        self._uses_long = False
        members: list = [
            PropertySpec(
                name="protobufPackage",
                initializer=CodeBlock(format="%S", args=[file.package]),
            )
        ]

        prefix = f".{file.package}" if file.package else ""
        self._add_enums(members, file.enum_type, "")
        self._add_messages(members, file.message_type, prefix, "")
        for service in file.service:
            members.append(self._service(service))

        if self._uses_long and self.options.force_long == LongOption.LONG:
            members.append(
                CodeBlock(
                    format="if (%T.Long !== %T) {\n  %T.Long = %T as any;\n  %T();\n}",
                    args=[PROTOBUF_UTIL, LONG, PROTOBUF_UTIL, LONG, PROTOBUF_CONFIGURE],
                )
            )

        return GeneratedFile(
            path=f"{module_name(file.name)}.ts",
            comment=f"Code generated by protoc-gen-tsforge. DO NOT EDIT.\nsource: {file.name}",
            members=members,
        )

    # =========================================================================
    # Enums and messages
    # =========================================================================

    def _add_enums(self, members: list, enums, ts_prefix: str) -> None:
        for enum in enums:
            members.append(self._enum(enum, f"{ts_prefix}{enum.name}"))

    def _enum(self, enum: EnumDescriptorProto, ts_name: str) -> EnumSpec:
        constants = []
        for value in enum.value:
            constants.append(
                EnumConstant(
                    name=value.name,
                    value=value.name if self.options.string_enums else value.number,
                )
            )
        if self.options.add_unrecognized_enum:
            constants.append(
                EnumConstant(
                    name="UNRECOGNIZED",
                    value="UNRECOGNIZED" if self.options.string_enums else -1,
                )
            )
        return EnumSpec(name=ts_name, constants=constants)

    def _add_messages(self, members: list, messages, proto_prefix: str, ts_prefix: str) -> None:
        for message in messages:
            if message.options.map_entry:
                continue
            proto_name = f"{proto_prefix}.{message.name}"
            ts_name = f"{ts_prefix}{message.name}"
            members.append(self._message(message, proto_name, ts_name))
            self._add_enums(members, message.enum_type, f"{ts_name}_")
            self._add_messages(members, message.nested_type, proto_name, f"{ts_name}_")

    def _message(self, message: DescriptorProto, proto_name: str, ts_name: str) -> InterfaceSpec:
        map_entries = {
            f"{proto_name}.{nested.name}": nested
            for nested in message.nested_type
            if nested.options.map_entry
        }

        properties = []
        for field in message.field:
            name = snake_to_camel(field.name) if self.options.snake_to_camel else field.name
            entry = map_entries.get(field.type_name)
            if entry is not None:
                key, value = entry.field[0], entry.field[1]
                properties.append(
                    PropertySpec(
                        name=name,
                        type=GenericType(
                            base=NamedType(name="Record"),
                            args=[self._map_key_type(key), self._field_type(value)],
                        ),
                    )
                )
                continue

            field_type = self._field_type(field)
            repeated = field.label == F.LABEL_REPEATED
            if repeated:
                field_type = ArrayType(element=field_type)
            optional = not repeated and (
                field.proto3_optional
                or self.options.use_optionals
                or field.HasField("oneof_index")
            )
            properties.append(PropertySpec(name=name, type=field_type, optional=optional))

        return InterfaceSpec(name=ts_name, properties=properties)

    def _field_type(self, field: FieldDescriptorProto):
        if field.type in SCALAR_TYPES:
            return NamedType(name=SCALAR_TYPES[field.type])
        if field.type in LONG_TYPES:
            self._uses_long = True
            if self.options.force_long == LongOption.LONG:
                return LONG
            if self.options.force_long == LongOption.STRING:
                return NamedType(name="string")
            return NamedType(name="number")
        if field.type_name == TIMESTAMP and self.options.use_date:
            return NamedType(name="Date")
        return self._lookup(field.type_name)

    def _map_key_type(self, key: FieldDescriptorProto) -> NamedType:
        if SCALAR_TYPES.get(key.type) == "number":
            return NamedType(name="number")
        return NamedType(name="string")

    def _lookup(self, type_name: str) -> SymbolReference:
        try:
            return self.type_map[type_name]
        except KeyError:
            raise ValueError(f"Unknown type referenced: {type_name}") from None

    # =========================================================================
    # Services
    # =========================================================================

    def _service(self, service: ServiceDescriptorProto) -> InterfaceSpec:
        methods = []
        for rpc in service.method:
            name = lower_first(rpc.name) if self.options.lower_case_service_methods else rpc.name
            output = self._lookup(rpc.output_type)
            if self.options.return_observable or rpc.server_streaming:
                return_type = GenericType(base=OBSERVABLE, args=[output])
            else:
                return_type = GenericType(base=NamedType(name="Promise"), args=[output])
            methods.append(
                FunctionSpec(
                    name=name,
                    parameters=[
                        ParameterSpec(name="request", type=self._lookup(rpc.input_type))
                    ],
                    return_type=return_type,
                )
            )
        return InterfaceSpec(name=service.name, methods=methods)


def generate_file(
    type_map: TypeMap,
    file: FileDescriptorProto,
    options: PluginOptions,
) -> GeneratedFile:
    """Build the code-member model for one .proto file."""
    generated = FileGenerator(type_map, options).generate(file)
    logger.debug(f"Generated {len(generated.members)} declarations for {file.name}")
    return generated
