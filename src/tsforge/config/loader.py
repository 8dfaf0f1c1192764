"""
Configuration loader for tsforge.

Handles loading configuration from YAML files and from the parameter string
protoc hands to the plugin.
"""

from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import LongOption, PluginOptions, TsForgeConfig


class ConfigurationError(Exception):
    """Raised when configuration is invalid."""

    pass


def params_from_string(parameter: str | None) -> dict[str, str]:
    """Split a ``key=value,key=value`` parameter string into a dict.

    A key given without ``=`` maps to an empty string; later keys win.
    """
    params: dict[str, str] = {}
    if not parameter:
        return params

    for item in parameter.split(","):
        item = item.strip()
        if not item:
            continue
        key, _, value = item.partition("=")
        params[key.strip()] = value.strip()
    return params


def options_from_parameter(parameter: str | None) -> PluginOptions:
    """Build plugin options from the protoc parameter string."""
    params = params_from_string(parameter)
    options = PluginOptions()

    if params.get("snakeToCamel") == "false":
        options.snake_to_camel = False
    if params.get("forceLong") in ("true", "long"):
        options.force_long = LongOption.LONG
    elif params.get("forceLong") == "string":
        options.force_long = LongOption.STRING
    if params.get("useOptionals") == "true":
        options.use_optionals = True
    if params.get("useDate") == "false":
        options.use_date = False
    if params.get("lowerCaseServiceMethods") == "true":
        options.lower_case_service_methods = True
    if params.get("stringEnums") == "true":
        options.string_enums = True

    # NestJS implies its own naming and date conventions
    if params.get("nestJs") == "true":
        options.nest_js = True
        options.lower_case_service_methods = True
        options.use_date = False
        if params.get("returnObservable") == "true":
            options.return_observable = True

    if params.get("unrecognizedEnum") == "false":
        options.add_unrecognized_enum = False
    elif params.get("unrecognizedEnum") == "true":
        options.add_unrecognized_enum = True

    return options


def load_config_from_yaml(config_path: Path) -> TsForgeConfig:
    """Load configuration from a YAML file."""
    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    with open(config_path) as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file: {e}")

    if raw_config is None:
        raise ConfigurationError("Configuration file is empty")

    try:
        return TsForgeConfig(**raw_config)
    except ValidationError as e:
        raise ConfigurationError(f"Configuration validation failed:\n{e}")


def generate_default_config(output_path: Path) -> None:
    """Generate a default configuration file."""
    default_config = {
        "options": {
            "snake_to_camel": True,
            "force_long": "number",
            "use_optionals": False,
            "use_date": True,
            "lower_case_service_methods": False,
            "string_enums": False,
            "return_observable": False,
            "nest_js": False,
            "add_unrecognized_enum": True,
        },
        "assembly": {
            "indent": "  ",
            "autoresolve_suffix": "_autoresolved_",
            "source_extensions": [".ts", ".tsx"],
            "workers": 1,
        },
    }

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        yaml.dump(default_config, f, default_flow_style=False, sort_keys=False)
