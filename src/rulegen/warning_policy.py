"""Coded diagnostics raised while loading and generating rules.

A ``WarningPolicy`` decides, per code, whether a diagnostic is dropped,
reported through :mod:`warnings`, or escalated to a ``ValidationError``.
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass
from typing import Literal

from rulegen.errors import ValidationError

logger = logging.getLogger(__name__)

WARNING_CODES: dict[str, str] = {
    "W01": "replicate with count 0 invokes its child once, untransformed",
    "W02": "generation stopped at the mesh limit before the rule was exhausted",
    "W03": "rule is defined but unreachable from the start rule",
}

KNOWN_CODES: frozenset[str] = frozenset(WARNING_CODES)

Action = Literal["ignore", "warn", "error"]


class RulegenWarning(UserWarning):
    """Warning with a machine-readable code."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        super().__init__(f"[{code}] {message}")


@dataclass(frozen=True)
class WarningPolicy:
    """Per-code handling of diagnostics.

    A code may be escalated or suppressed, not both.
    """

    warn_as_error: frozenset[str] = frozenset()
    suppress: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        clash = self.warn_as_error & self.suppress
        if clash:
            raise ValueError(
                f"Warning codes both suppressed and escalated: {', '.join(sorted(clash))}"
            )

    @classmethod
    def from_options(
        cls, warn_as_error: str | None = None, suppress: str | None = None
    ) -> WarningPolicy | None:
        """Build a policy from comma-separated option strings.

        Returns ``None`` when neither option was given, so callers fall
        back to plain ``warnings`` behaviour.
        """
        if warn_as_error is None and suppress is None:
            return None
        return cls(
            warn_as_error=parse_code_list(warn_as_error or ""),
            suppress=parse_code_list(suppress or ""),
        )

    def action(self, code: str) -> Action:
        if code in self.suppress:
            return "ignore"
        if code in self.warn_as_error:
            return "error"
        return "warn"


def emit_warning(code: str, message: str, *, policy: WarningPolicy | None = None) -> None:
    """Report diagnostic ``code`` according to ``policy``."""
    if code not in WARNING_CODES:
        raise ValueError(f"Unknown warning code: {code!r}")
    action = policy.action(code) if policy is not None else "warn"
    if action == "ignore":
        logger.debug("Suppressed [%s] %s", code, message)
        return
    if action == "error":
        raise ValidationError(f"[{code}] {message}")
    warnings.warn(RulegenWarning(code, message), stacklevel=2)


def parse_code_list(raw: str) -> frozenset[str]:
    """Parse ``"W01, w03"`` into ``{"W01", "W03"}``, rejecting unknown codes."""
    codes = {token.strip().upper() for token in raw.split(",")} - {""}
    unknown = sorted(codes - KNOWN_CODES)
    if unknown:
        listing = "; ".join(f"{c} ({d})" for c, d in WARNING_CODES.items())
        raise ValueError(f"Unknown warning code: {', '.join(unknown)}. Known codes: {listing}")
    return frozenset(codes)
