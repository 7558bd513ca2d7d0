"""
Phase scoped plugin context.

Every task gets its own PluginContext. Each operation may only be used while
the task holds control of the matching phase.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterator
from typing import Any

from ..errors import PhaseError, PluginConfigError, SchemaError
from .config import OutputTarget
from .filesystem import Filesystem, is_wildcard_path
from .output_stream import AtomicOutputStream
from .phases import Phase
from .schema import SchemaContext, create_context, load_source_file

PLUGIN_LOGGER = "graphql_codegen.plugin"


class PluginContext:
    """What a plugin task sees of the run."""

    def __init__(
        self,
        name: str,
        target: OutputTarget,
        filesystem: Filesystem,
        global_config: dict[str, Any] | None = None,
        plugin_config: dict[str, Any] | None = None,
    ):
        """
        Initialize the context.

        Args:
            name: Task name, used for logging and failure reports
            target: The output target the task is bound to
            filesystem: Shared filesystem collaborator
            global_config: Top level `config` of the configuration file
            plugin_config: Raw config of this plugin in the output target
        """
        self.name = name
        self.target = target
        self.filesystem = filesystem
        self.global_config = dict(global_config or {})
        self.plugin_config = dict(plugin_config or {})
        self.phase = Phase.SETUP
        self.logger = logging.getLogger(PLUGIN_LOGGER).getChild(name)
        self.config: Any = None
        self.input_files: list[str] = []
        self._streams: dict[str, AtomicOutputStream] = {}

    def _require_phase(self, phase: Phase, operation: str) -> None:
        if self.phase is not phase:
            raise PhaseError(
                f"{operation} is only available during {phase.label}, task {self.name} is in {self.phase.label}"
            )

    @property
    def raw_config(self) -> dict[str, Any]:
        """Global, output target and plugin config merged, later wins."""
        return {**self.global_config, **self.target.config, **self.plugin_config}

    def validate_config(self, validator: Callable[[dict[str, Any]], Any] | None = None) -> Any:
        """
        Validate the merged raw config and store the result in `config`.

        Args:
            validator: Callable receiving the merged config, or a class with a
                `from_dict` constructor. Without a validator the merged dict is kept.

        Raises:
            PluginConfigError: If the validator rejects the config
        """
        self._require_phase(Phase.VALIDATE_CONFIG, "validate_config")

        raw_config = self.raw_config
        if validator is None:
            self.config = raw_config
            return self.config

        convert = getattr(validator, "from_dict", validator)
        try:
            self.config = convert(raw_config)
        except PluginConfigError:
            raise
        except (ValueError, TypeError, KeyError) as e:
            raise PluginConfigError(f"Invalid config for {self.name}: {e}") from e

        self.logger.debug("Validated config %s", raw_config)
        return self.config

    def load_input(self) -> Iterator[str]:
        """
        Enumerate the input files of the bound output target.

        Returns:
            Lazy single pass iterator over paths relative to the target directory
        """
        self._require_phase(Phase.LOAD_INPUT, "load_input")
        return self.filesystem.load_files(self.target.directory, self.target.input, self.target.output)

    async def load_schema(self) -> SchemaContext:
        """
        Parse every input file and build a validated schema context.

        Files are read and parsed off the event loop thread so that sibling
        tasks loading their own inputs overlap.

        Raises:
            SchemaError: If no input file matched
            SchemaValidationError: If the merged schema is invalid
            GraphQLError: On syntax errors
        """
        self._require_phase(Phase.LOAD_INPUT, "load_schema")

        self.input_files = list(self.load_input())
        if not self.input_files:
            raise SchemaError(f"No schema files matched '{self.target.input}' in '{self.target.directory or '.'}'")

        documents = await asyncio.gather(
            *(
                asyncio.to_thread(load_source_file, self.filesystem.input_path(self.target.directory, input_file))
                for input_file in self.input_files
            )
        )
        self.logger.debug("Loaded %d schema file(s)", len(documents))
        return create_context(list(documents))

    def open_output_streams(self) -> dict[str, AtomicOutputStream]:
        """
        Open the output streams of the bound output target.

        Returns:
            Mapping of resolved output path to stream
        """
        self._require_phase(Phase.EMIT, "open_output_streams")
        if not self._streams:
            # Static outputs need no prior load_input
            self.filesystem.register_pattern(self.target.directory, self.target.input, self.target.output)
            self._streams = self.filesystem.create_output_streams(
                self.target.directory, self.target.input, self.target.output
            )
        return dict(self._streams)

    def write_output(self, content: str, input_path: str | None = None) -> None:
        """
        Write content to the stream matching the declared output pattern.

        Args:
            content: Serialized output
            input_path: Input file the output belongs to, required when the
                output pattern has a wildcard

        Raises:
            ValueError: If the output pattern is a wildcard and no input path is given
            KeyError: If no stream was recorded for the resolved output path
        """
        self._require_phase(Phase.EMIT, "write_output")
        streams = self.open_output_streams()

        if input_path is None:
            if is_wildcard_path(self.target.output):
                raise ValueError(f"Output pattern '{self.target.output}' has a wildcard, an input path is required")
            output_path = self.target.output
        else:
            output_path = self.filesystem.resolve_output_path(input_path, self.target.input, self.target.output)

        if output_path not in streams:
            raise KeyError(f"No output stream for '{output_path}'")
        streams[output_path].write(content)

    def release(self, discard: bool = False) -> None:
        """Release every held stream, committing it unless discarded."""
        streams, self._streams = self._streams, {}
        for stream in streams.values():
            stream.release(discard=discard)
