"""
Generate a module exporting every input file.

Two export types are supported:

- reexport: `from .user_service import UserService` for every input file,
  plus `__all__`
- namespace: a class exposing one lazily created instance per input file
  through `functools.cached_property`

Import and export names are built from templates with the variables
`${file_name}`, `${file_extension}`, `${directory_name}` and `${class_name}`
(the file name in PascalCase). An import name of `default` imports the
module itself.
"""

from __future__ import annotations

import posixpath
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from enum import Enum
from string import Template

from ..errors import PluginConfigError
from ..pipeline.backends import PythonBackend
from ..pipeline.config import DEFAULT_HEADER_COMMENT, GenerateOptions
from ..pipeline.context import PluginContext
from ..pipeline.filesystem import is_wildcard_path
from ..pipeline.loader import parse_module_path
from ..pipeline.phases import Phase
from ..utils import snake_to_pascal_case

DEFAULT_IMPORT_TEMPLATE = "${file_name}"

DEFAULT_IMPORT = "default"


class ExportType(str, Enum):
    REEXPORT = "reexport"
    NAMESPACE = "namespace"


@dataclass
class ConstructorParameter:
    name: str
    type: str = "Any"


@dataclass
class ExportDirectoryConfig:
    export_type: ExportType
    import_prefix: str = ""
    import_template: str = DEFAULT_IMPORT_TEMPLATE
    export_template: str | None = None
    header_comment: str = DEFAULT_HEADER_COMMENT

    # Namespace export only
    class_name: str = ""
    constructor_parameters: list[ConstructorParameter] = field(default_factory=list)
    additional_imports: list[str] = field(default_factory=list)

    @staticmethod
    def from_dict(d: dict) -> ExportDirectoryConfig:
        """
        Create a config from the merged plugin config.

        Raises:
            PluginConfigError: If export_type is missing or invalid, or a
                namespace export has no class_name
        """
        export_type = d.get("export_type")
        if export_type is None:
            raise PluginConfigError("Missing export_type option in config")
        try:
            export_type = ExportType(export_type)
        except ValueError as e:
            choices = ", ".join(member.value for member in ExportType)
            raise PluginConfigError(f"Invalid export_type {export_type!r}, expected one of: {choices}") from e

        config = ExportDirectoryConfig(
            export_type=export_type,
            import_prefix=d.get("import_prefix", "") or "",
            import_template=d.get("import_template") or DEFAULT_IMPORT_TEMPLATE,
            export_template=d.get("export_template"),
            header_comment=d.get("header_comment", DEFAULT_HEADER_COMMENT),
            class_name=d.get("class_name", "") or "",
            constructor_parameters=[
                ConstructorParameter(**parameter) for parameter in d.get("constructor_parameters") or []
            ],
            additional_imports=list(d.get("additional_imports") or []),
        )

        if config.export_type is ExportType.NAMESPACE and not config.class_name:
            raise PluginConfigError("Missing class_name option for a namespace export")
        return config


@dataclass
class ExportEntry:
    import_path: str
    import_name: str
    export_name: str
    module_import: bool = False

    @property
    def statement(self) -> str:
        if self.module_import:
            parent, _, module = self.import_path.rpartition(".")
            parent = parent or "."
            alias = "" if module == self.export_name else f" as {self.export_name}"
            return f"from {parent} import {module}{alias}"
        alias = "" if self.import_name == self.export_name else f" as {self.export_name}"
        return f"from {self.import_path} import {self.import_name}{alias}"

    @property
    def attribute(self) -> str:
        return self.export_name


def compile_import_path(input_file: str, import_prefix: str) -> str:
    """Dotted module path of an input file, relative unless a prefix is given."""
    stem = posixpath.splitext(input_file)[0]
    dotted = ".".join(part for part in stem.split("/") if part and part != ".")
    return f"{import_prefix.rstrip('.')}.{dotted}" if import_prefix else f".{dotted}"


def compile_entry(input_file: str, config: ExportDirectoryConfig) -> ExportEntry:
    directory_name, base_name = posixpath.split(input_file)
    file_name, file_extension = posixpath.splitext(base_name)
    variables = {
        "file_name": file_name,
        "file_extension": file_extension,
        "directory_name": directory_name or ".",
        "class_name": snake_to_pascal_case(file_name),
    }

    import_name = Template(config.import_template).safe_substitute(variables)
    if config.export_template is not None:
        export_name = Template(config.export_template).safe_substitute(variables)
    else:
        export_name = file_name if import_name == DEFAULT_IMPORT else import_name

    return ExportEntry(
        import_path=compile_import_path(input_file, config.import_prefix),
        import_name=import_name,
        export_name=export_name,
        module_import=import_name == DEFAULT_IMPORT,
    )


def additional_import_statement(identifier: str) -> str:
    module_path = parse_module_path(identifier)
    if not module_path.default_import:
        return f"from {module_path.import_path} import {module_path.import_name}"
    if module_path.import_name:
        return f"import {module_path.import_path} as {module_path.import_name}"
    return f"import {module_path.import_path}"


def render_exports(config: ExportDirectoryConfig, entries: list[ExportEntry]) -> str:
    backend = PythonBackend(GenerateOptions(header_comment=config.header_comment))
    entries = sorted(entries, key=lambda entry: (entry.import_path, entry.export_name))

    imports = [entry.statement for entry in entries]
    if config.export_type is ExportType.NAMESPACE:
        imports = sorted({*imports, *map(additional_import_statement, config.additional_imports)})
        imports[:0] = ["from __future__ import annotations", "from functools import cached_property"]
        template = backend.get_template("namespace")
    else:
        template = backend.get_template("reexport")

    return (
        template.render(
            HEADER=backend.header_lines(),
            IMPORTS=imports,
            ENTRIES=sorted(entries, key=lambda entry: entry.export_name),
            CLASS_NAME=config.class_name,
            PARAMETERS=config.constructor_parameters,
        ).rstrip("\n")
        + "\n"
    )


async def plugin(ctx: PluginContext) -> AsyncIterator[Phase | None]:
    yield

    config: ExportDirectoryConfig = ctx.validate_config(ExportDirectoryConfig)
    yield

    # Output path -> (first input file, entries)
    outputs: dict[str, tuple[str, list[ExportEntry]]] = {}
    for input_file in ctx.load_input():
        if posixpath.splitext(posixpath.basename(input_file))[0] == "__init__":
            continue
        output_path = ctx.filesystem.resolve_output_path(input_file, ctx.target.input, ctx.target.output)
        outputs.setdefault(output_path, (input_file, []))[1].append(compile_entry(input_file, config))
    yield Phase.EMIT

    wildcard = is_wildcard_path(ctx.target.output)
    for output_path, (input_file, entries) in outputs.items():
        ctx.write_output(render_exports(config, entries), input_file if wildcard else None)
        ctx.logger.info("Exported %d module(s) to %s", len(entries), output_path)
