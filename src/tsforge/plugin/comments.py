"""
Best-effort lookup of .proto source comments.

Reads ``source_code_info`` from a file descriptor and returns the leading (or
trailing) comment of each message, enum and service, keyed by the name the
declaration gets in the generated file.
"""

from google.protobuf.descriptor_pb2 import FileDescriptorProto

from tsforge.assembler.orchestrator import FileMetadata, MetadataLoader

# Field numbers from descriptor.proto
FILE_MESSAGE_TYPE = 4
FILE_ENUM_TYPE = 5
FILE_SERVICE = 6
MESSAGE_NESTED_TYPE = 3
MESSAGE_ENUM_TYPE = 4


def declaration_name(file: FileDescriptorProto, path: list[int]) -> str | None:
    """The generated declaration name for a source location path, if it names one."""
    if len(path) < 2:
        return None

    kind, index = path[0], path[1]
    if kind == FILE_SERVICE and len(path) == 2:
        return file.service[index].name
    if kind == FILE_ENUM_TYPE and len(path) == 2:
        return file.enum_type[index].name
    if kind != FILE_MESSAGE_TYPE:
        return None

    message = file.message_type[index]
    name = message.name
    rest = path[2:]
    while rest:
        if len(rest) < 2:
            return None
        kind, index = rest[0], rest[1]
        if kind == MESSAGE_NESTED_TYPE:
            message = message.nested_type[index]
            name = f"{name}_{message.name}"
            rest = rest[2:]
        elif kind == MESSAGE_ENUM_TYPE and len(rest) == 2:
            return f"{name}_{message.enum_type[index].name}"
        else:
            return None
    return name


def source_comments(file: FileDescriptorProto) -> dict[str, str]:
    """Comments attached to the file's declarations, keyed by generated name."""
    comments: dict[str, str] = {}
    for location in file.source_code_info.location:
        text = (location.leading_comments or location.trailing_comments).strip()
        if not text:
            continue
        name = declaration_name(file, list(location.path))
        if name is not None:
            comments.setdefault(name, text)
    return comments


def comment_loader(files_by_path: dict[str, FileDescriptorProto]) -> MetadataLoader:
    """A metadata loader reading comments from the descriptor of each output file.

    Raises KeyError for files it has no descriptor for; the assembler treats
    that as "no metadata".
    """

    def load(generated):
        return FileMetadata(comments=source_comments(files_by_path[generated.path]))

    return load
