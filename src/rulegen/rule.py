"""Rule graph: ordered, transformed invocations of meshes and producers."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING, NamedTuple, Protocol, Union, runtime_checkable

from rulegen.mesh import Mesh
from rulegen.transforms import Transform, TransformArgument, TransformSet

if TYPE_CHECKING:
    from rulegen.expansion import OutputMesh


@runtime_checkable
class Producer(Protocol):
    """Anything that can expand into a rule.

    ``expand`` is called again on every visit during generation and its result
    is never cached, so producers may be randomised or carry their own state
    (a remaining depth, say) to build recursive rule graphs.
    """

    def expand(self) -> Rule: ...


class FunctionProducer:
    """Adapts a zero-argument callable returning a ``Rule`` to the producer protocol."""

    __slots__ = ("fn",)

    def __init__(self, fn: Callable[[], Rule]) -> None:
        self.fn = fn

    def __repr__(self) -> str:
        return f"FunctionProducer({getattr(self.fn, '__qualname__', self.fn)!r})"

    def expand(self) -> Rule:
        rule = self.fn()
        if not isinstance(rule, Rule):
            raise TypeError(f"{self.fn!r} returned {type(rule).__name__}, expected Rule")
        return rule


Node = Union[Mesh, Producer]


class Invocation(NamedTuple):
    """One (transform, child) entry of a rule. ``transform`` is None when untransformed."""

    transform: Transform | None
    child: Node


def _as_node(child: object) -> Node:
    if isinstance(child, (Mesh, Rule)):
        return child
    if isinstance(child, Producer):
        return child
    if callable(child):
        return FunctionProducer(child)
    raise TypeError(
        f"Cannot invoke {type(child).__name__}: expected a Mesh, Rule, producer or callable"
    )


def _entries(transforms: TransformArgument, child: object) -> tuple[Invocation, ...]:
    """One invocation per branch of ``transforms``, all sharing ``child``."""
    node = _as_node(child)
    branches = TransformSet.of(transforms)
    if not len(branches):
        return (Invocation(None, node),)
    return tuple(Invocation(t, node) for t in branches)


class Rule:
    """A composition of subrule invocations to expand until meshes are generated.

    Rules are values: ``push`` returns a new rule and leaves the receiver
    untouched. Building a rule never expands any producer.

    >>> from rulegen import Rule, Tf, cube, replicate
    >>> tower = Rule().push(replicate(3, Tf.translate(y=1.1)), cube())
    >>> len(tower)
    3
    """

    __slots__ = ("invocations",)

    def __init__(self, invocations: tuple[Invocation, ...] = ()) -> None:
        self.invocations = tuple(invocations)

    def __len__(self) -> int:
        return len(self.invocations)

    def __repr__(self) -> str:
        return f"<Rule invocations={len(self.invocations)}>"

    @classmethod
    def empty(cls) -> Rule:
        return cls()

    @classmethod
    def of(cls, *pairs: tuple[TransformArgument, object]) -> Rule:
        """Build a rule from ``(transforms, child)`` pairs in a single pass.

        Prefer this over repeated ``push`` when assembling many entries in a
        loop; each ``push`` copies the invocations gathered so far.
        """
        invocations: list[Invocation] = []
        for transforms, child in pairs:
            invocations.extend(_entries(transforms, child))
        return cls(tuple(invocations))

    def push(self, transforms: TransformArgument | object, child: object = None) -> Rule:
        """Return a new rule with ``child`` invoked once per branch of ``transforms``.

        Called with a single argument, the child is invoked once, untransformed.
        Every new entry shares the same child object; only the transform differs.
        """
        if child is None:
            transforms, child = None, transforms
        return Rule(self.invocations + _entries(transforms, child))  # type: ignore[arg-type]

    def transformed(self, transforms: TransformArgument) -> Rule:
        """Wrap this rule in a new one that invokes it under ``transforms``."""
        return Rule().push(transforms, self)

    def expand(self) -> Rule:
        return self

    def generate(self) -> Iterator[OutputMesh]:
        """Lazily expand the rule, yielding meshes until all subrules are exhausted.

        Safe for infinite rule graphs as long as the consumer stops iterating,
        e.g. with ``itertools.islice``.
        """
        from rulegen.expansion import generate

        return generate(self)

    def build(self) -> list[OutputMesh]:
        """Eagerly expand the rule into a list. Only for graphs that terminate."""
        from rulegen.expansion import build

        return build(self)
