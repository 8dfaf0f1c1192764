"""
Core configuration models for tsforge.

Defines the plugin options parsed from the protoc parameter string and the
assembly settings, using Pydantic for validation.
"""

from enum import Enum
from pydantic import BaseModel, Field


class LongOption(str, Enum):
    """How 64-bit integer fields are typed in generated code."""

    NUMBER = "number"
    LONG = "long"
    STRING = "string"


# ============================================================================
# Plugin Options
# ============================================================================


class PluginOptions(BaseModel):
    """Options that shape the generated declarations.

    Populated from the flat ``key=value,key=value`` parameter string protoc
    passes to the plugin (see ``config.loader.options_from_parameter``).
    """

    snake_to_camel: bool = Field(default=True, description="Camel-case field names")
    force_long: LongOption = Field(
        default=LongOption.NUMBER, description="Type used for 64-bit integers"
    )
    use_optionals: bool = Field(
        default=False, description="Mark every message field as optional"
    )
    use_date: bool = Field(
        default=True, description="Map google.protobuf.Timestamp to Date"
    )
    lower_case_service_methods: bool = Field(
        default=False, description="Lower-case the first letter of rpc method names"
    )
    string_enums: bool = Field(default=False, description="Emit string-valued enums")
    return_observable: bool = Field(
        default=False, description="Service methods return Observable instead of Promise"
    )
    nest_js: bool = Field(default=False, description="NestJS-flavoured service interfaces")
    add_unrecognized_enum: bool = Field(
        default=True, description="Add an UNRECOGNIZED = -1 constant to every enum"
    )


# ============================================================================
# Assembly Configuration
# ============================================================================


class AssemblyConfig(BaseModel):
    """Configuration for the file assembly stage."""

    indent: str = Field(default="  ", description="Indentation unit for nested blocks")
    autoresolve_suffix: str = Field(
        default="_autoresolved_",
        description="Infix placed between a colliding name and its counter",
    )
    source_extensions: list[str] = Field(
        default_factory=lambda: [".ts", ".tsx"],
        description="Extensions stripped from a file path before self-import checks",
    )
    workers: int = Field(default=1, ge=1, description="Files assembled in parallel")


# ============================================================================
# Main Configuration
# ============================================================================


class TsForgeConfig(BaseModel):
    """Root configuration model for tsforge."""

    options: PluginOptions = Field(default_factory=PluginOptions)
    assembly: AssemblyConfig = Field(default_factory=AssemblyConfig)
