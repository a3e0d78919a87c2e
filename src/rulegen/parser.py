"""Loading ``*.rules.yaml`` files into validated ``RuleFile`` models."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from rulegen.errors import ParseError
from rulegen.models import RuleFile

logger = logging.getLogger(__name__)

SUPPORTED_VERSION = (0, 1)

_VERSION_RE = re.compile(r"(\d+)\.(\d+)")


def _origin(source: str | Path) -> str:
    return source.name if isinstance(source, Path) else "<string>"


def load_yaml_data(source: str | Path) -> dict:
    """Read a rule file (path or YAML text) and check its version header."""
    if isinstance(source, Path):
        try:
            text = source.read_text(encoding="utf-8")
        except OSError as e:
            raise ParseError(f"Cannot read file: {e}") from e
    else:
        text = source

    # Duplicate keys would silently drop a rule definition.
    yml = YAML(typ="safe")
    yml.allow_duplicate_keys = False
    try:
        data = yml.load(text)
    except YAMLError as e:
        raise ParseError(f"Invalid YAML in {_origin(source)}: {e}") from e

    if not isinstance(data, dict):
        raise ParseError(f"Top-level YAML value in {_origin(source)} must be a mapping")
    if data.get("version") is None:
        raise ParseError(f"Missing required field in {_origin(source)}: version")

    # An unquoted ``version: 0.1`` arrives as a float.
    data["version"] = str(data["version"])
    check_version(data["version"])
    return data


def check_version(version: str) -> None:
    match = _VERSION_RE.fullmatch(version)
    if match is None:
        raise ParseError(f"Invalid version format: {version!r}")
    if (int(match[1]), int(match[2])) > SUPPORTED_VERSION:
        latest = "{}.{}".format(*SUPPORTED_VERSION)
        raise ParseError(f"Unsupported version: {version!r} (latest supported is {latest})")


def _describe_schema_errors(error: PydanticValidationError) -> str:
    lines = []
    for item in error.errors():
        where = ".".join(str(part) for part in item["loc"]) or "<root>"
        lines.append(f"  {where}: {item['msg']}")
    return "\n".join(lines)


def parse_rule_file(source: str | Path) -> RuleFile:
    """Parse a rule file from YAML text or a path.

    Schema errors are reported one per line with the dotted location of
    the offending field, e.g. ``rules.tower.invocations.0.call``.

    Raises:
        ParseError: On unreadable files, YAML syntax errors, unsupported
            versions or schema violations.
    """
    data = load_yaml_data(source)
    try:
        rule_file = RuleFile(**data)
    except PydanticValidationError as e:
        raise ParseError(
            f"Schema validation failed in {_origin(source)}:\n{_describe_schema_errors(e)}"
        ) from e
    logger.debug(
        "Parsed %s: %d rules, start=%s", _origin(source), len(rule_file.rules), rule_file.start
    )
    return rule_file
