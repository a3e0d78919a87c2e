"""Pydantic v2 schema models for rule files (``*.rules.yaml``)."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

PRIMITIVE_NAMES: frozenset[str] = frozenset({"cube", "icosphere"})


class Step(BaseModel):
    """One transform step. Exactly one field is set."""

    model_config = ConfigDict(extra="forbid")

    tx: float | None = None
    ty: float | None = None
    tz: float | None = None
    t: tuple[float, float, float] | None = None
    s: float | tuple[float, float, float] | None = None
    rx: float | None = None
    ry: float | None = None
    rz: float | None = None
    hue: float | None = None
    sat: float | None = None
    val: float | None = None
    color: str | tuple[float, float, float] | None = None
    replicate: Replicate | None = None

    @model_validator(mode="after")
    def _exactly_one(self) -> Step:
        set_fields = [name for name in type(self).model_fields if getattr(self, name) is not None]
        if len(set_fields) != 1:
            raise ValueError(
                f"A transform step must set exactly one of {list(type(self).model_fields)}, "
                f"got {set_fields or 'none'}"
            )
        return self

    @property
    def kind(self) -> str:
        return next(name for name in type(self).model_fields if getattr(self, name) is not None)


class Replicate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    count: int = Field(ge=0)
    transforms: list[Step]


Step.model_rebuild()


class InvocationDef(BaseModel):
    model_config = ConfigDict(extra="forbid")

    transforms: list[Step] = Field(default_factory=list)
    call: str


class Variant(BaseModel):
    model_config = ConfigDict(extra="forbid")

    weight: float = Field(default=1.0, gt=0)
    invocations: list[InvocationDef]


class RuleDef(BaseModel):
    """A named rule: fixed invocations, or weighted variants picked at random per visit."""

    model_config = ConfigDict(extra="forbid")

    invocations: list[InvocationDef] | None = None
    variants: list[Variant] | None = None
    # Caps the remaining recursion budget whenever this rule is entered.
    max_depth: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _one_body(self) -> RuleDef:
        if (self.invocations is None) == (self.variants is None):
            raise ValueError("A rule must define exactly one of 'invocations' or 'variants'")
        if self.variants is not None and not self.variants:
            raise ValueError("'variants' must not be empty")
        return self

    def alternatives(self) -> list[Variant]:
        if self.variants is not None:
            return self.variants
        return [Variant(invocations=self.invocations or [])]


class RuleFile(BaseModel):
    model_config = ConfigDict(extra="forbid")

    version: str
    start: str
    max_depth: int = Field(default=10, ge=0)
    seed: int | None = None
    rules: dict[str, RuleDef]
