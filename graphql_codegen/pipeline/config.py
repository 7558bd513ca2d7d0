"""
Configuration for the code generator pipeline.

A configuration file maps output patterns to the plugins generating them:

    directory: schema
    config:
      header_comment: "Generated code"
    generates:
      "generated/types.py":
        input: "**/*.graphql"
        plugins:
          graphql_codegen.plugins.graphql_types#plugin:
            scalars:
              DateTime: str
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from ..errors import ConfigError, ConfigNotFoundError, PluginConfigError

logger = logging.getLogger(__name__)

CONFIG_SEARCH_PLACES = ("codegen.yml", "codegen.yaml", "codegen.json")

DEFAULT_INPUT_PATTERN = "**/*.graphql"

DEFAULT_HEADER_COMMENT = "THIS FILE IS GENERATED BY graphql_codegen\nDO NOT EDIT DIRECTLY, YOUR CHANGES WILL BE OVERWRITTEN"


@dataclass
class GenerateOptions:
    """Options shared by the code emitting plugins."""

    # Comment placed at the top of every generated file
    header_comment: str = DEFAULT_HEADER_COMMENT

    # Python type for each custom scalar (unmapped scalars become Any)
    scalars: dict[str, str] = field(default_factory=dict)

    # Convert camelCase field and argument names to snake_case
    snake_case_fields: bool = False

    @staticmethod
    def from_dict(d: dict) -> GenerateOptions:
        """Create options from a dictionary, ignoring unknown keys."""
        options = GenerateOptions()
        for k, v in d.items():
            if hasattr(options, k):
                setattr(options, k, v)
        if not isinstance(options.scalars, dict):
            raise PluginConfigError(f"'scalars' must be a mapping of scalar name to Python type, got {options.scalars!r}")
        return options

    def to_dict(self) -> dict:
        return {
            "header_comment": self.header_comment,
            "scalars": self.scalars,
            "snake_case_fields": self.snake_case_fields,
        }


def _normalize_plugins(output: str, plugins: Any) -> dict[str, dict]:
    """Accept plugins as a mapping or as a list of identifiers / single entry mappings."""
    if plugins is None:
        return {}

    if isinstance(plugins, dict):
        entries = list(plugins.items())
    elif isinstance(plugins, list):
        entries = []
        for item in plugins:
            if isinstance(item, str):
                entries.append((item, None))
            elif isinstance(item, dict):
                entries.extend(item.items())
            else:
                raise ConfigError(f"Invalid plugin entry for output '{output}': {item!r}")
    else:
        raise ConfigError(f"Invalid plugins for output '{output}', expected a mapping or a list")

    normalized: dict[str, dict] = {}
    for identifier, plugin_config in entries:
        if plugin_config is None:
            plugin_config = {}
        if not isinstance(plugin_config, dict):
            raise ConfigError(f"Invalid config for plugin '{identifier}' of output '{output}', expected a mapping")
        if identifier in normalized:
            raise ConfigError(f"Duplicate plugin '{identifier}' for output '{output}'")
        normalized[identifier] = plugin_config
    return normalized


@dataclass
class OutputTarget:
    """One entry of `generates`: an output pattern and the plugins writing it."""

    output: str
    directory: str = ""
    input: str = DEFAULT_INPUT_PATTERN
    config: dict[str, Any] = field(default_factory=dict)
    plugins: dict[str, dict] = field(default_factory=dict)

    @staticmethod
    def from_dict(output: str, d: dict | None, directory: str = "") -> OutputTarget:
        """
        Create an output target from its configuration entry.

        Args:
            output: The output pattern (the `generates` key)
            d: The entry
            directory: Inherited base directory

        Raises:
            ConfigError: If the entry is malformed
        """
        d = d or {}
        if not isinstance(d, dict):
            raise ConfigError(f"Invalid entry for output '{output}', expected a mapping")

        config = d.get("config")
        if config is None:
            config = {}
        if not isinstance(config, dict):
            raise ConfigError(f"Invalid config for output '{output}', expected a mapping")

        input_pattern = d.get("input", DEFAULT_INPUT_PATTERN)
        if not isinstance(input_pattern, str) or not input_pattern:
            raise ConfigError(f"Invalid input pattern for output '{output}': {input_pattern!r}")

        return OutputTarget(
            output=output,
            directory=str(d.get("directory", directory) or ""),
            input=input_pattern,
            config=config,
            plugins=_normalize_plugins(output, d.get("plugins")),
        )

    def to_dict(self) -> dict:
        return {
            "directory": self.directory,
            "input": self.input,
            "config": self.config,
            "plugins": self.plugins,
        }


@dataclass
class CodegenConfig:
    """Top level configuration."""

    debug: bool = False

    # Base directory for inputs, relative to the configuration file
    directory: str = ""

    # Global plugin config, merged under every output target config
    config: dict[str, Any] = field(default_factory=dict)

    generates: list[OutputTarget] = field(default_factory=list)

    # Directory relative paths are resolved against
    root: Path | None = None

    @staticmethod
    def from_dict(d: dict, root: Path | None = None) -> CodegenConfig:
        """
        Create a config from a dictionary.

        Raises:
            ConfigError: If the dictionary is malformed
        """
        if not isinstance(d, dict):
            raise ConfigError("Invalid configuration, expected a mapping at the top level")

        global_config = d.get("config")
        if global_config is None:
            global_config = {}
        if not isinstance(global_config, dict):
            raise ConfigError("Invalid global config, expected a mapping")

        generates = d.get("generates")
        if not isinstance(generates, dict) or not generates:
            raise ConfigError("Invalid configuration, 'generates' must map output patterns to plugins")

        directory = str(d.get("directory") or "")
        return CodegenConfig(
            debug=bool(d.get("debug", global_config.get("debug", False))),
            directory=directory,
            config=global_config,
            generates=[OutputTarget.from_dict(output, entry, directory) for output, entry in generates.items()],
            root=root,
        )

    def to_dict(self) -> dict:
        return {
            "debug": self.debug,
            "directory": self.directory,
            "config": self.config,
            "generates": {target.output: target.to_dict() for target in self.generates},
        }


def find_config_file(search_dir: str | Path | None = None) -> Path:
    """
    Find the configuration file in a directory.

    Raises:
        ConfigNotFoundError: If none of the search places exists
    """
    directory = Path(search_dir) if search_dir is not None else Path.cwd()
    for name in CONFIG_SEARCH_PLACES:
        candidate = directory / name
        if candidate.is_file():
            return candidate
    raise ConfigNotFoundError(f"Config file not found in {directory} (looked for {', '.join(CONFIG_SEARCH_PLACES)})")


def load_config(path: str | Path | None = None, search_dir: str | Path | None = None) -> CodegenConfig:
    """
    Load the configuration.

    Args:
        path: Explicit configuration file
        search_dir: Directory searched for codegen.yml / codegen.yaml / codegen.json
            when no path is given (defaults to the current directory)

    Returns:
        The parsed configuration, rooted at the configuration file's directory

    Raises:
        ConfigNotFoundError: If the configuration file does not exist
        ConfigError: If it cannot be parsed
    """
    config_path = Path(path) if path is not None else find_config_file(search_dir)
    if not config_path.is_file():
        raise ConfigNotFoundError(f"Config file not found: {config_path}")

    text = config_path.read_text(encoding="utf-8")
    try:
        if config_path.suffix == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"Could not parse {config_path}: {e}") from e

    logger.debug("Loaded configuration from %s", config_path)
    return CodegenConfig.from_dict(data, root=config_path.resolve().parent)
