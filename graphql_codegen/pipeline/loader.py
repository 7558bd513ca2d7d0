"""
Plugin loader collaborator.

Resolves "<module.path>#<exportName>" identifiers to loaded Python values.
"""

from __future__ import annotations

import importlib
import logging
from dataclasses import dataclass
from typing import Any

from ..errors import PluginNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_EXPORT_NAMES = ("", "default")


@dataclass(frozen=True)
class ModulePath:
    """A parsed module identifier.

    Attributes:
        import_path: Dotted module path
        import_name: Attribute to import from the module ("" for the module itself)
        default_import: Whether the identifier denotes a default/namespace import
    """

    import_path: str
    import_name: str = ""
    default_import: bool = False

    def __str__(self) -> str:
        if self.default_import and self.import_name:
            return f"{self.import_path}#[{self.import_name}]"
        return f"{self.import_path}#{self.import_name}"


def parse_module_path(identifier: str) -> ModulePath:
    """
    Parse a module identifier.

    Examples:
        "pkg.plugins#plugin"     -> named export "plugin"
        "pkg.plugins#default"    -> namespace import of pkg.plugins
        "pkg.plugins#"           -> namespace import of pkg.plugins
        "redis#[Redis]"          -> default import bound to the name Redis
        "pkg.plugins"            -> namespace import of pkg.plugins

    Args:
        identifier: The identifier string

    Returns:
        The parsed ModulePath

    Raises:
        PluginNotFoundError: If the module part is empty
    """
    import_path, _, raw_name = identifier.partition("#")
    import_path = import_path.strip()
    raw_name = raw_name.strip()

    if not import_path:
        raise PluginNotFoundError(f"Invalid module identifier, missing module path: {identifier!r}")

    if raw_name in DEFAULT_EXPORT_NAMES:
        return ModulePath(import_path=import_path, import_name="", default_import=True)

    if raw_name.startswith("[") and raw_name.endswith("]"):
        return ModulePath(import_path=import_path, import_name=raw_name[1:-1], default_import=True)

    return ModulePath(import_path=import_path, import_name=raw_name, default_import=False)


def load_module_value(identifier: str) -> Any:
    """
    Import the value an identifier points to.

    A named export resolves to the module attribute; a default or namespace
    import resolves to the module itself.

    Args:
        identifier: "<module.path>#<exportName>"

    Returns:
        The loaded value

    Raises:
        PluginNotFoundError: If the module cannot be imported or lacks the export
    """
    module_path = parse_module_path(identifier)

    try:
        module = importlib.import_module(module_path.import_path)
    except ModuleNotFoundError as e:
        raise PluginNotFoundError(
            f"Plugin not found: {identifier}, did you forget to install the dependency? ({e})"
        ) from e

    if module_path.default_import:
        logger.debug("Loaded module %s", module_path.import_path)
        return module

    value = getattr(module, module_path.import_name, None)
    if value is None:
        raise PluginNotFoundError(
            f"Plugin not found: {identifier}, module {module_path.import_path} has no export {module_path.import_name!r}"
        )

    logger.debug("Loaded %s from %s", module_path.import_name, module_path.import_path)
    return value
