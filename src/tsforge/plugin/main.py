"""
protoc plugin entry point.

protoc writes a serialized CodeGeneratorRequest to stdin and reads a
CodeGeneratorResponse from stdout. Diagnostics go to stderr only.
"""

import logging
import sys
import traceback
from typing import BinaryIO, TextIO

from google.protobuf.compiler import plugin_pb2 as plugin

from tsforge.assembler.orchestrator import FileAssembler
from tsforge.config.loader import options_from_parameter
from tsforge.config.models import TsForgeConfig
from tsforge.plugin.comments import comment_loader
from tsforge.plugin.generator import generate_file
from tsforge.plugin.type_map import create_type_map

logger = logging.getLogger(__name__)


def generate_response(
    request: plugin.CodeGeneratorRequest,
    config: TsForgeConfig | None = None,
) -> plugin.CodeGeneratorResponse:
    """Generate and assemble one output file per requested .proto file.

    Files named in ``file_to_generate`` are generated; when that list is
    empty every file in the request is. Options come from the request
    parameter when one is given, otherwise from ``config``.
    """
    config = config or TsForgeConfig()
    options = (
        options_from_parameter(request.parameter) if request.parameter else config.options
    )

    type_map = create_type_map(request.proto_file)
    wanted = set(request.file_to_generate)
    targets = [f for f in request.proto_file if not wanted or f.name in wanted]

    generated = [generate_file(type_map, f, options) for f in targets]
    descriptors = {g.path: f for g, f in zip(generated, targets)}

    assembler = FileAssembler(config.assembly)
    results = assembler.assemble_all(generated, comment_loader(descriptors))

    response = plugin.CodeGeneratorResponse()
    response.supported_features = plugin.CodeGeneratorResponse.FEATURE_PROTO3_OPTIONAL
    for result in results:
        out = response.file.add()
        out.name = result.path
        out.content = result.content

    logger.info(f"Generated {len(results)} files")
    return response


def run_plugin(stdin: BinaryIO, stdout: BinaryIO, stderr: TextIO) -> int:
    """Run one plugin invocation. Returns the process exit code.

    Nothing is written to ``stdout`` unless every file assembled.
    """
    try:
        request = plugin.CodeGeneratorRequest()
        request.ParseFromString(stdin.read())
        response = generate_response(request)
        data = response.SerializeToString()
    except Exception as e:
        stderr.write("FAILED!\n")
        stderr.write(f"{e}\n")
        stderr.write(traceback.format_exc())
        return 1

    stdout.write(data)
    stdout.flush()
    return 0


def main():
    """Console script entry point for ``protoc-gen-tsforge``."""
    logging.basicConfig(level=logging.WARNING, format="%(name)s: %(message)s", stream=sys.stderr)
    sys.exit(run_plugin(sys.stdin.buffer, sys.stdout.buffer, sys.stderr))


if __name__ == "__main__":
    main()
