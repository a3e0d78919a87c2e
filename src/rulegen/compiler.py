"""Compile parsed rule files into lazily expanded rule graphs.

Each call to a named rule becomes a ``NamedRuleProducer`` carrying the
remaining recursion budget. Nothing is expanded until generation visits it,
and every visit expands afresh, so rules with weighted variants pick a new
variant each time they are reached.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable
from pathlib import Path

from rulegen.mesh import Mesh
from rulegen.models import RuleFile, Step
from rulegen.parser import parse_rule_file
from rulegen.primitives import cube_mesh, icosphere_mesh
from rulegen.rule import Rule
from rulegen.transforms import Tf, TransformArgument, TransformSet, replicate, seq
from rulegen.validation import validate
from rulegen.warning_policy import WarningPolicy

logger = logging.getLogger(__name__)

PRIMITIVES: dict[str, Callable[[], Mesh]] = {
    "cube": cube_mesh,
    "icosphere": icosphere_mesh,
}


def step_transforms(step: Step) -> TransformArgument:
    """Translate one schema step into a transform or transform set."""
    kind = step.kind
    value = getattr(step, kind)
    if kind == "tx":
        return Tf.translate(x=value)
    if kind == "ty":
        return Tf.translate(y=value)
    if kind == "tz":
        return Tf.translate(z=value)
    if kind == "t":
        return Tf.translate(*value)
    if kind == "s":
        return Tf.scale_by(*value) if isinstance(value, tuple) else Tf.scale(value)
    if kind == "rx":
        return Tf.rotate_x(value)
    if kind == "ry":
        return Tf.rotate_y(value)
    if kind == "rz":
        return Tf.rotate_z(value)
    if kind == "hue":
        return Tf.hue(value)
    if kind == "sat":
        return Tf.saturation(value)
    if kind == "val":
        return Tf.value(value)
    if kind == "color":
        return Tf.color(value)
    return replicate(value.count, steps_transforms(value.transforms))


def steps_transforms(steps: list[Step]) -> TransformSet:
    """Compose a list of steps in order, branching on replications."""
    return seq(*(step_transforms(step) for step in steps))


class RuleLibrary:
    """The compiled rules of one file plus the random source used to pick variants."""

    def __init__(self, rule_file: RuleFile, rng: random.Random | None = None) -> None:
        self.rule_file = rule_file
        self.rng = rng if rng is not None else random.Random(rule_file.seed)
        # Transform sets only depend on the file, so they are built once up front.
        self._variants: dict[str, list[list[tuple[TransformSet, str]]]] = {
            name: [
                [(steps_transforms(inv.transforms), inv.call) for inv in variant.invocations]
                for variant in rule.alternatives()
            ]
            for name, rule in rule_file.rules.items()
        }
        self._weights: dict[str, list[float]] = {
            name: [variant.weight for variant in rule.alternatives()]
            for name, rule in rule_file.rules.items()
        }

    def producer(self, name: str, depth: int) -> NamedRuleProducer:
        cap = self.rule_file.rules[name].max_depth
        if cap is not None:
            depth = min(depth, cap)
        return NamedRuleProducer(name, depth, self)

    def choose(self, name: str) -> list[tuple[TransformSet, str]]:
        """Pick the invocations of one variant of rule ``name``."""
        variants = self._variants[name]
        if len(variants) == 1:
            return variants[0]
        return self.rng.choices(variants, weights=self._weights[name])[0]

    def child(self, call: str, depth: int) -> Mesh | NamedRuleProducer:
        primitive = PRIMITIVES.get(call)
        if primitive is not None:
            return primitive()
        return self.producer(call, depth)


class NamedRuleProducer:
    """Expands a named rule with ``depth`` levels of named-rule calls left.

    At depth zero the rule expands to nothing, which bounds recursion.
    """

    __slots__ = ("name", "depth", "library")

    def __init__(self, name: str, depth: int, library: RuleLibrary) -> None:
        self.name = name
        self.depth = depth
        self.library = library

    def __repr__(self) -> str:
        return f"NamedRuleProducer({self.name!r}, depth={self.depth})"

    def expand(self) -> Rule:
        if self.depth <= 0:
            return Rule()
        return Rule.of(
            *(
                (transforms, self.library.child(call, self.depth - 1))
                for transforms, call in self.library.choose(self.name)
            )
        )


def compile_rules(rule_file: RuleFile, rng: random.Random | None = None) -> Rule:
    """Build the root rule for a parsed, validated rule file.

    ``rng`` defaults to ``random.Random(rule_file.seed)``.
    """
    library = RuleLibrary(rule_file, rng)
    logger.debug(
        "Compiled %d rules, start=%r, max_depth=%d",
        len(rule_file.rules),
        rule_file.start,
        rule_file.max_depth,
    )
    return Rule().push(library.producer(rule_file.start, rule_file.max_depth))


def load_rules(
    source: str | Path,
    *,
    seed: int | None = None,
    warning_policy: WarningPolicy | None = None,
) -> Rule:
    """Parse, validate and compile a rule file. ``seed`` overrides the file's seed."""
    rule_file = parse_rule_file(source)
    validate(rule_file, warning_policy=warning_policy)
    rng = random.Random(seed) if seed is not None else None
    return compile_rules(rule_file, rng)
