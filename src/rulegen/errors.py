"""Exceptions raised by rulegen.

Expansion itself never fails; errors come from loading rule files,
loading export settings, and writing output.
"""


class RulegenError(Exception):
    """Base exception for all rulegen errors."""


class ParseError(RulegenError):
    """A rule file is not valid YAML or does not match the schema."""


class ValidationError(RulegenError):
    """A rule file references undefined rules or shadows a primitive."""


class ConfigError(RulegenError):
    """An export configuration file cannot be read or is malformed."""


class ExportError(RulegenError):
    """Generated meshes could not be written out."""


class ObjectWriteError(ExportError):
    """Writing vertex and face data to the object sink failed."""


class MaterialWriteError(ExportError):
    """Writing colour definitions to the material sink failed."""
