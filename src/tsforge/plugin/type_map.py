"""
Type map: fully qualified protobuf names to the TypeScript symbols they become.

Nested messages and enums are flattened into ``Outer_Inner`` names, and every
symbol is imported from the module generated for its defining .proto file.
"""

from typing import Iterable

from google.protobuf.descriptor_pb2 import (
    DescriptorProto,
    EnumDescriptorProto,
    FileDescriptorProto,
)

from tsforge.members.symbols import SymbolReference

TypeMap = dict[str, SymbolReference]


def module_name(proto_name: str) -> str:
    """``foo/bar.proto`` -> ``foo/bar``."""
    return proto_name.removesuffix(".proto")


def create_type_map(files: Iterable[FileDescriptorProto]) -> TypeMap:
    """Map every message and enum in ``files`` to its SymbolReference.

    Keys are fully qualified with a leading dot (``.pkg.Outer.Inner``), the
    form used in ``FieldDescriptorProto.type_name``.
    """
    type_map: TypeMap = {}
    for file in files:
        module = f"./{module_name(file.name)}"
        prefix = f".{file.package}" if file.package else ""
        _add_types(type_map, module, prefix, "", file.message_type, file.enum_type)
    return type_map


def _add_types(
    type_map: TypeMap,
    module: str,
    proto_prefix: str,
    ts_prefix: str,
    messages: Iterable[DescriptorProto],
    enums: Iterable[EnumDescriptorProto],
) -> None:
    for enum in enums:
        type_map[f"{proto_prefix}.{enum.name}"] = SymbolReference(
            display_name=f"{ts_prefix}{enum.name}", module_path=module
        )

    for message in messages:
        proto_name = f"{proto_prefix}.{message.name}"
        ts_name = f"{ts_prefix}{message.name}"
        type_map[proto_name] = SymbolReference(display_name=ts_name, module_path=module)
        _add_types(
            type_map,
            module,
            proto_name,
            f"{ts_name}_",
            message.nested_type,
            message.enum_type,
        )
