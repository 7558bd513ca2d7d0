"""
Filesystem collaborator.

Enumerates input files from glob patterns, templates output paths from
input paths and hands out output streams keyed by resolved output path.
"""

from __future__ import annotations

import glob
import logging
import os
import posixpath
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from ..errors import OutputPatternError
from .output_stream import AtomicOutputStream

logger = logging.getLogger(__name__)

# Characters that turn a path into a glob pattern
WILDCARD_CHARS = frozenset("*?[")

RECURSIVE_WILDCARD = "**"


def is_wildcard_path(path: str) -> bool:
    """Check whether a path contains at least one glob wildcard token."""
    return any(char in WILDCARD_CHARS for char in path)


def is_recursive_wildcard_path(path: str) -> bool:
    """Check whether a path contains a recursive (double star) wildcard token."""
    return RECURSIVE_WILDCARD in path


def validate_output_pattern(output_pattern: str) -> None:
    """
    Check that an output pattern can be templated from an input path.

    Args:
        output_pattern: The output pattern

    Raises:
        OutputPatternError: If the pattern uses a recursive wildcard, more than
            one wildcard, or a directory separator after its wildcard
    """
    if is_recursive_wildcard_path(output_pattern):
        raise OutputPatternError(f"Illegal output pattern, recursive wildcard is not supported: '{output_pattern}'")

    if "?" in output_pattern or "[" in output_pattern:
        raise OutputPatternError(f"Illegal output pattern, only '*' wildcards are supported: '{output_pattern}'")

    wildcard_count = output_pattern.count("*")
    if wildcard_count > 1:
        raise OutputPatternError(f"Illegal output pattern, only a single wildcard is supported: '{output_pattern}'")

    if wildcard_count == 1 and "/" in output_pattern.split("*", 1)[1]:
        raise OutputPatternError(
            f"Illegal output pattern, directory separators are not allowed after wildcards: '{output_pattern}'"
        )


def _static_prefix(input_pattern: str) -> str:
    """Return the directory part of a pattern that precedes its first wildcard."""
    for index, char in enumerate(input_pattern):
        if char in WILDCARD_CHARS:
            head = input_pattern[:index]
            return head[: head.rfind("/") + 1]

    directory = posixpath.dirname(input_pattern)
    return f"{directory}/" if directory and not directory.endswith("/") else directory


def compile_output_path(input_path: str, input_pattern: str, output_pattern: str) -> str:
    """
    Resolve the output path for an input file.

    The part of the input path matched by the input pattern (without its
    static directory prefix and its extension) replaces the single wildcard
    of the output pattern. The output suffix replaces the input extension;
    when the output pattern ends with the wildcard the input extension is kept.

    Examples:
        ("/input/file/sub/path.graphql", "/input/file/**/*.graphql", "/output/file/*.ts")
            -> "/output/file/sub/path.ts"
        ("/input/file/path.graphql", "/input/**/*.graphql", "/output/*")
            -> "/output/file/path.graphql"

    Args:
        input_path: The matched input file path
        input_pattern: The glob pattern the input was matched with
        output_pattern: The output pattern (at most one wildcard)

    Returns:
        The resolved output path

    Raises:
        OutputPatternError: If the output pattern is illegal
    """
    validate_output_pattern(output_pattern)

    if not is_wildcard_path(output_pattern):
        return output_pattern

    output_prefix, output_suffix = output_pattern.split("*", 1)

    prefix = _static_prefix(input_pattern)
    matched = input_path[len(prefix) :] if prefix and input_path.startswith(prefix) else input_path
    stem, extension = posixpath.splitext(matched)

    return f"{output_prefix}{stem}{output_suffix or extension}"


@dataclass(frozen=True)
class PatternKey:
    """A registered (directory, input pattern, output pattern) triple."""

    directory: str
    input_pattern: str
    output_pattern: str


class Filesystem:
    """Tracks input and output files for every registered pattern triple."""

    def __init__(self, root: str | Path | None = None):
        """
        Initialize the filesystem.

        Args:
            root: Directory relative output paths are resolved against
                (defaults to the current working directory)
        """
        self.root = Path(root) if root is not None else Path.cwd()
        self.input_files: dict[PatternKey, dict[str, str]] = {}
        self.output_files: dict[PatternKey, set[str]] = {}
        self._streams: dict[Path, AtomicOutputStream] = {}

    def register_pattern(self, directory: str, input_pattern: str, output_pattern: str) -> PatternKey:
        """
        Register a pattern triple.

        Raises:
            OutputPatternError: If the output pattern is illegal
        """
        validate_output_pattern(output_pattern)

        key = PatternKey(directory, input_pattern, output_pattern)
        self.input_files.setdefault(key, {})
        outputs = self.output_files.setdefault(key, set())

        if not is_wildcard_path(output_pattern):
            outputs.add(output_pattern)

        return key

    def resolve_output_path(self, input_file: str, input_pattern: str, output_pattern: str) -> str:
        return compile_output_path(input_file, input_pattern, output_pattern)

    def load_files(self, directory: str, input_pattern: str, output_pattern: str) -> Iterator[str]:
        """
        Enumerate input files lazily.

        The pattern triple is registered (and its output pattern validated)
        as soon as the call is made, not when the iterator is first consumed.

        Args:
            directory: Base directory the input pattern is relative to
            input_pattern: Recursive glob pattern
            output_pattern: Output pattern the inputs are templated into

        Returns:
            Iterator over input paths relative to `directory` (single pass)
        """
        key = self.register_pattern(directory, input_pattern, output_pattern)
        return self._iter_files(key)

    def _iter_files(self, key: PatternKey) -> Iterator[str]:
        base = self._base_directory(key.directory)
        inputs = self.input_files[key]
        outputs = self.output_files[key]

        logger.debug("Enumerating %s in %s", key.input_pattern, base)
        for match in glob.iglob(key.input_pattern, root_dir=base, recursive=True):
            input_file = Path(match).as_posix()
            if not (base / input_file).is_file():
                continue

            output_file = compile_output_path(input_file, key.input_pattern, key.output_pattern)
            inputs[input_file] = output_file
            outputs.add(output_file)

            yield input_file

    def _base_directory(self, directory: str) -> Path:
        base = Path(directory) if directory else self.root
        return base if base.is_absolute() else self.root / base

    def input_path(self, directory: str, input_file: str) -> Path:
        """Return the on-disk path of an enumerated input file."""
        return self._base_directory(directory) / input_file

    def create_output_streams(
        self, directory: str, input_pattern: str, output_pattern: str
    ) -> dict[str, AtomicOutputStream]:
        """
        Open a stream for every output file recorded for a pattern triple.

        Streams for the same path are shared; every call acquires each
        returned stream once and the caller must release it.

        Returns:
            Mapping of output path to its stream

        Raises:
            KeyError: If the pattern triple was never registered
        """
        key = PatternKey(directory, input_pattern, output_pattern)
        outputs = self.output_files.get(key)
        if outputs is None:
            raise KeyError(
                f"Could not find output files for directory: {directory!r}, input pattern: {input_pattern!r} "
                f"and output pattern: {output_pattern!r}"
            )

        return {output_file: self.open_output_stream(output_file) for output_file in sorted(outputs)}

    def open_output_stream(self, output_file: str) -> AtomicOutputStream:
        path = Path(output_file)
        if not path.is_absolute():
            path = self.root / path
        path = Path(os.path.normpath(path))

        stream = self._streams.get(path)
        if stream is None or stream.closed:
            stream = AtomicOutputStream(path)
            self._streams[path] = stream
        return stream.acquire()
