"""
Integration tests for the protoc plugin and the CLI.

Builds CodeGeneratorRequests in memory and runs them through the full
generate -> assemble -> respond pipeline.
"""

import io

import pytest
from google.protobuf.compiler import plugin_pb2 as plugin
from google.protobuf.descriptor_pb2 import FieldDescriptorProto, FileDescriptorProto
from typer.testing import CliRunner

from tsforge.cli.main import app
from tsforge.plugin.main import generate_response, run_plugin

F = FieldDescriptorProto


def _message_file(name: str, package: str, message: str) -> FileDescriptorProto:
    file = FileDescriptorProto(name=name, package=package, syntax="proto3")
    msg = file.message_type.add(name=message)
    msg.field.add(name="id", number=1, type=F.TYPE_STRING, label=F.LABEL_OPTIONAL)
    return file


def _holder_file() -> FileDescriptorProto:
    """c.proto: a message using Bar from two packages."""
    file = FileDescriptorProto(name="c.proto", package="holder", syntax="proto3")
    file.dependency.extend(["a.proto", "b.proto"])
    holder = file.message_type.add(name="Holder")
    holder.field.add(name="a", number=1, type=F.TYPE_MESSAGE, type_name=".pkg.Bar", label=F.LABEL_OPTIONAL)
    holder.field.add(name="b", number=2, type=F.TYPE_MESSAGE, type_name=".other.Bar", label=F.LABEL_OPTIONAL)
    location = file.source_code_info.location.add()
    location.path.extend([4, 0])
    location.leading_comments = " Holds two bars.\n"
    return file


@pytest.fixture
def request_message():
    request = plugin.CodeGeneratorRequest()
    request.proto_file.extend(
        [
            _message_file("a.proto", "pkg", "Bar"),
            _message_file("b.proto", "other", "Bar"),
            _holder_file(),
        ]
    )
    request.file_to_generate.append("c.proto")
    return request


def test_colliding_imports_are_renamed(request_message):
    """A file importing two different Bars gets one aliased import."""
    response = generate_response(request_message)

    assert [f.name for f in response.file] == ["c.ts"]
    assert response.file[0].content == (
        "// Code generated by protoc-gen-tsforge. DO NOT EDIT.\n"
        "// source: c.proto\n"
        "\n"
        "import { Bar } from './a';\n"
        "import { Bar as Bar_autoresolved_1 } from './b';\n"
        "\n"
        "export const protobufPackage = 'holder';\n"
        "\n"
        "/** Holds two bars. */\n"
        "export interface Holder {\n"
        "  a: Bar;\n"
        "  b: Bar_autoresolved_1;\n"
        "}\n"
    )
    assert response.supported_features == plugin.CodeGeneratorResponse.FEATURE_PROTO3_OPTIONAL


def test_all_files_generated_without_file_to_generate(request_message):
    del request_message.file_to_generate[:]

    response = generate_response(request_message)

    assert [f.name for f in response.file] == ["a.ts", "b.ts", "c.ts"]
    assert "import" not in response.file[0].content


def test_parameter_selects_options(request_message):
    request_message.parameter = "snakeToCamel=false,useOptionals=true"

    response = generate_response(request_message)

    assert "  a?: Bar;\n" in response.file[0].content


def test_run_plugin_round_trip(request_message):
    stdin = io.BytesIO(request_message.SerializeToString())
    stdout = io.BytesIO()
    stderr = io.StringIO()

    assert run_plugin(stdin, stdout, stderr) == 0

    response = plugin.CodeGeneratorResponse()
    response.ParseFromString(stdout.getvalue())
    assert response.file[0].name == "c.ts"
    assert stderr.getvalue() == ""


def test_run_plugin_failure(request_message):
    # Drop b.proto so .other.Bar is unknown
    del request_message.proto_file[1]
    stdin = io.BytesIO(request_message.SerializeToString())
    stdout = io.BytesIO()
    stderr = io.StringIO()

    assert run_plugin(stdin, stdout, stderr) == 1

    assert stdout.getvalue() == b""
    assert stderr.getvalue().startswith("FAILED!\n")
    assert ".other.Bar" in stderr.getvalue()


# =============================================================================
# CLI
# =============================================================================


MODEL = """
files:
  - path: x.ts
    comment: Generated
    members:
      - kind: interface
        name: I
        properties:
          - name: a
            type: Bar@./a
          - name: b
            type: Bar@./b
  - path: nested/y.ts
    members:
      - kind: type_alias
        name: Alias
        type: Bar@./a
"""


@pytest.fixture
def model_file(tmp_path):
    path = tmp_path / "model.yaml"
    path.write_text(MODEL)
    return path


def test_cli_assemble_writes_files(model_file, tmp_path):
    out = tmp_path / "out"
    result = CliRunner().invoke(app, ["assemble", str(model_file), "-o", str(out)])

    assert result.exit_code == 0, result.output
    assert "import { Bar as Bar_autoresolved_1 } from './b';" in (out / "x.ts").read_text()
    assert (out / "nested" / "y.ts").read_text() == (
        "import { Bar } from '../a';\n"
        "\n"
        "export type Alias = Bar;\n"
    )


def test_cli_assemble_dry_run(model_file, tmp_path):
    out = tmp_path / "out"
    result = CliRunner().invoke(
        app, ["assemble", str(model_file), "-o", str(out), "--dry-run", "--show-renames"]
    )

    assert result.exit_code == 0, result.output
    assert "Bar_autoresolved_1" in result.output
    assert not out.exists()


def test_cli_assemble_bad_model(tmp_path):
    model = tmp_path / "model.yaml"
    model.write_text("path: x.ts\nmembers:\n  - kind: nonsense\n")

    result = CliRunner().invoke(app, ["assemble", str(model)])

    assert result.exit_code == 1


def test_cli_init_config(tmp_path):
    target = tmp_path / "tsforge.yaml"
    result = CliRunner().invoke(app, ["init-config", "-o", str(target)])

    assert result.exit_code == 0
    assert "autoresolve_suffix" in target.read_text()
