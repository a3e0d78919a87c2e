"""Export configuration and its YAML loader."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, field_validator
from pydantic import ValidationError as PydanticValidationError

from rulegen.errors import ConfigError


class MeshGrouping(str, Enum):
    """How meshes are grouped in the object file.

    Pick ``individual`` to handle every instance separately later (e.g. to
    material each one in a modelling tool), ``all_together`` for one solid
    object such as a 3D print, or ``by_color`` to group same-coloured meshes.
    """

    ALL_TOGETHER = "all_together"
    INDIVIDUAL = "individual"
    BY_COLOR = "by_color"


class ExportConfig(BaseModel):
    """Configuration for Wavefront object output."""

    model_config = ConfigDict(extra="forbid")

    grouping: MeshGrouping = MeshGrouping.ALL_TOGETHER
    # Material library filename. When set, each colour is written there as a
    # material and referenced from the object file.
    export_colors: str | None = None

    @field_validator("export_colors")
    @classmethod
    def _plain_filename(cls, v: str | None) -> str | None:
        if v is not None and (not v.strip() or any(c.isspace() for c in v)):
            raise ValueError(f"export_colors must be a filename without whitespace, got {v!r}")
        return v


def load_export_config(source: Path) -> ExportConfig:
    """Load an export configuration YAML file.

    Raises:
        ConfigError: On read, YAML or schema errors.
    """
    try:
        text = source.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read export config: {e}") from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in export config: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError("Export config top-level YAML value must be a mapping")

    try:
        return ExportConfig(**data)
    except PydanticValidationError as e:
        raise ConfigError(f"Export config schema validation failed:\n{e}") from e
