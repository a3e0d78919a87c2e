"""Semantic validation for parsed rule files."""

from __future__ import annotations

from collections.abc import Iterator

from rulegen.errors import ValidationError
from rulegen.models import PRIMITIVE_NAMES, InvocationDef, RuleFile, Step
from rulegen.warning_policy import WarningPolicy, emit_warning


def validate(rule_file: RuleFile, *, warning_policy: WarningPolicy | None = None) -> None:
    """Run all semantic validation checks on a parsed rule file.

    Raises:
        ValidationError: On any semantic rule violation.
    """
    _check_no_primitive_shadowing(rule_file)
    _check_start_defined(rule_file)
    _check_call_targets(rule_file)
    _check_zero_replications(rule_file, warning_policy=warning_policy)
    _check_unreachable_rules(rule_file, warning_policy=warning_policy)


def _invocations(rule_file: RuleFile) -> Iterator[tuple[str, InvocationDef]]:
    for name, rule in rule_file.rules.items():
        for variant in rule.alternatives():
            for inv in variant.invocations:
                yield name, inv


def _walk_steps(steps: list[Step]) -> Iterator[Step]:
    for step in steps:
        yield step
        if step.replicate is not None:
            yield from _walk_steps(step.replicate.transforms)


def _check_no_primitive_shadowing(rule_file: RuleFile) -> None:
    shadowing = sorted(PRIMITIVE_NAMES & rule_file.rules.keys())
    if shadowing:
        raise ValidationError(f"Rule name(s) {shadowing} shadow built-in primitives")


def _check_start_defined(rule_file: RuleFile) -> None:
    if rule_file.start not in rule_file.rules:
        raise ValidationError(f"Start rule {rule_file.start!r} is not defined")


def _check_call_targets(rule_file: RuleFile) -> None:
    for name, inv in _invocations(rule_file):
        if inv.call not in rule_file.rules and inv.call not in PRIMITIVE_NAMES:
            raise ValidationError(
                f"Rule {name!r} calls {inv.call!r}, which is neither a rule nor a primitive "
                f"(primitives: {sorted(PRIMITIVE_NAMES)})"
            )


def _check_zero_replications(
    rule_file: RuleFile, *, warning_policy: WarningPolicy | None = None
) -> None:
    for name, inv in _invocations(rule_file):
        for step in _walk_steps(inv.transforms):
            if step.replicate is not None and step.replicate.count == 0:
                emit_warning(
                    "W01",
                    f"Rule {name!r} replicates {inv.call!r} zero times",
                    policy=warning_policy,
                )


def _check_unreachable_rules(
    rule_file: RuleFile, *, warning_policy: WarningPolicy | None = None
) -> None:
    reachable = {rule_file.start}
    frontier = [rule_file.start]
    while frontier:
        rule = rule_file.rules[frontier.pop()]
        for variant in rule.alternatives():
            for inv in variant.invocations:
                if inv.call in rule_file.rules and inv.call not in reachable:
                    reachable.add(inv.call)
                    frontier.append(inv.call)

    for name in rule_file.rules:
        if name not in reachable:
            emit_warning(
                "W03",
                f"Rule {name!r} is never reached from start rule {rule_file.start!r}",
                policy=warning_policy,
            )
