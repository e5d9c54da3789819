"""Input detail expressions: which input fields a valid request must or may supply.

An operation lists expressions that are implicitly joined by a conjunction.
Leaves reference a field path and state whether the field is mandatory or
optional; interior nodes combine expressions with ``and`` or ``or``::

    input_detail = [
        mandatory("host.address"),
        mandatory("host.name"),
        or_(mandatory("host.cluster.id"), mandatory("host.cluster.name")),
        optional("host.power_management.pm_proxies[COLLECTION].type"),
    ]

Declaration files may use the short form ``{mandatory: host.name}`` or
``{or: [...]}``; it is normalized to the canonical ``kind`` form before
validation.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from ovirt_api_model.domain.base.exceptions import ExpressionSyntaxError

COLLECTION_MARKER = "[COLLECTION]"

_SEGMENT = r"[a-z][a-z0-9_]*(\[COLLECTION\])?"
FIELD_PATH_PATTERN = rf"^{_SEGMENT}(\.{_SEGMENT})*$"
_FIELD_PATH_RE = re.compile(FIELD_PATH_PATTERN)


class Requiredness(str, Enum):
    """Requiredness of a field reference."""

    MANDATORY = "mandatory"
    OPTIONAL = "optional"


class PathSegment(BaseModel):
    """One attribute of a field path, optionally iterating a collection."""

    model_config = ConfigDict(frozen=True)

    name: str
    collection: bool = False

    def __str__(self) -> str:
        return f"{self.name}{COLLECTION_MARKER}" if self.collection else self.name


class FieldPath(BaseModel):
    """A parameter name followed by the attributes navigated from it."""

    model_config = ConfigDict(frozen=True)

    segments: tuple[PathSegment, ...]

    @classmethod
    def parse(cls, text: str) -> FieldPath:
        """Parse ``host.power_management.pm_proxies[COLLECTION].type``."""
        if not isinstance(text, str) or not _FIELD_PATH_RE.match(text):
            raise ExpressionSyntaxError(f"Invalid field path: {text!r}", {"path": text})
        segments = []
        for part in text.split("."):
            if part.endswith(COLLECTION_MARKER):
                segments.append(PathSegment(name=part[: -len(COLLECTION_MARKER)], collection=True))
            else:
                segments.append(PathSegment(name=part))
        return cls(segments=tuple(segments))

    @property
    def root(self) -> PathSegment:
        """The segment naming the operation parameter."""
        return self.segments[0]

    @property
    def attributes(self) -> tuple[PathSegment, ...]:
        return self.segments[1:]

    def __str__(self) -> str:
        return ".".join(str(segment) for segment in self.segments)


class FieldRequirement(BaseModel):
    """Leaf expression: a field reference with its requiredness."""

    model_config = ConfigDict(extra="forbid")

    kind: Literal["mandatory", "optional"]
    path: str = Field(pattern=FIELD_PATH_PATTERN, description="Dotted field path")

    @property
    def requiredness(self) -> Requiredness:
        return Requiredness(self.kind)

    @property
    def field_path(self) -> FieldPath:
        return FieldPath.parse(self.path)

    @property
    def is_mandatory(self) -> bool:
        return self.kind == Requiredness.MANDATORY.value


class OrExpression(BaseModel):
    """At least one of the alternatives must be satisfied."""

    model_config = ConfigDict(extra="forbid")

    kind: Literal["or"]
    items: list[InputExpression] = Field(default_factory=list)


class AndExpression(BaseModel):
    """All of the items must be satisfied."""

    model_config = ConfigDict(extra="forbid")

    kind: Literal["and"]
    items: list[InputExpression] = Field(default_factory=list)


InputExpression = Annotated[
    Union[FieldRequirement, OrExpression, AndExpression],
    Field(discriminator="kind"),
]

OrExpression.model_rebuild()
AndExpression.model_rebuild()

_SHORT_FORM_KEYS = ("mandatory", "optional", "or", "and")


def normalize_expression(data: Any) -> Any:
    """Turn the short authoring form into the canonical ``kind`` form.

    Values that are already canonical, or that are not mappings at all, are
    returned untouched so that pydantic reports the actual problem.
    """
    if isinstance(data, BaseModel) or not isinstance(data, dict):
        return data
    if "kind" in data:
        if "items" in data and isinstance(data["items"], list):
            return {**data, "items": [normalize_expression(item) for item in data["items"]]}
        return data
    keys = [key for key in _SHORT_FORM_KEYS if key in data]
    if len(keys) != 1 or len(data) != 1:
        raise ExpressionSyntaxError(
            f"Expected exactly one of {', '.join(_SHORT_FORM_KEYS)} in expression: {data!r}"
        )
    key = keys[0]
    value = data[key]
    if key in ("mandatory", "optional"):
        return {"kind": key, "path": value}
    if not isinstance(value, list):
        raise ExpressionSyntaxError(f"'{key}' expects a list of expressions, got {value!r}")
    return {"kind": key, "items": [normalize_expression(item) for item in value]}


def normalize_expressions(data: Any) -> Any:
    if isinstance(data, list):
        return [normalize_expression(item) for item in data]
    return data


def mandatory(path: str) -> FieldRequirement:
    """Build a mandatory field reference."""
    FieldPath.parse(path)
    return FieldRequirement(kind="mandatory", path=path)


def optional(path: str) -> FieldRequirement:
    """Build an optional field reference."""
    FieldPath.parse(path)
    return FieldRequirement(kind="optional", path=path)


def or_(*items: InputExpression) -> OrExpression:
    return OrExpression(kind="or", items=list(items))


def and_(*items: InputExpression) -> AndExpression:
    return AndExpression(kind="and", items=list(items))


def iter_requirements(expressions: Iterable[InputExpression]) -> Iterator[FieldRequirement]:
    """Yield every leaf of the given expressions, depth first."""
    for expression in expressions:
        if isinstance(expression, FieldRequirement):
            yield expression
        else:
            yield from iter_requirements(expression.items)


def iter_or_expressions(expressions: Iterable[InputExpression]) -> Iterator[OrExpression]:
    for expression in expressions:
        if isinstance(expression, OrExpression):
            yield expression
        if not isinstance(expression, FieldRequirement):
            yield from iter_or_expressions(expression.items)


def render_expression(expression: InputExpression) -> str:
    """Render an expression as compact text, e.g. ``mandatory(host.name)``."""
    if isinstance(expression, FieldRequirement):
        return f"{expression.kind}({expression.path})"
    inner = ", ".join(render_expression(item) for item in expression.items)
    return f"{expression.kind}({inner})"


class AlternativeGroup(BaseModel):
    """Choices of an ``or`` expression; at least one must be supplied when mandatory."""

    requiredness: Requiredness
    choices: list[str]


class InputDetailSummary(BaseModel):
    """Flattened view of an operation's input detail used by documentation."""

    mandatory: list[str] = Field(default_factory=list)
    optional: list[str] = Field(default_factory=list)
    alternatives: list[AlternativeGroup] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.mandatory or self.optional or self.alternatives)


def _render_choice(expression: InputExpression) -> str:
    if isinstance(expression, FieldRequirement):
        return expression.path
    if isinstance(expression, AndExpression):
        return " + ".join(_render_choice(item) for item in expression.items)
    return "(" + " | ".join(_render_choice(item) for item in expression.items) + ")"


def summarize(expressions: Iterable[InputExpression]) -> InputDetailSummary:
    """Summarize top-level requirements; nested ``and`` nodes are flattened."""
    summary = InputDetailSummary()
    _collect(expressions, summary)
    return summary


def _collect(expressions: Iterable[InputExpression], summary: InputDetailSummary) -> None:
    for expression in expressions:
        if isinstance(expression, FieldRequirement):
            target = summary.mandatory if expression.is_mandatory else summary.optional
            if expression.path not in target:
                target.append(expression.path)
        elif isinstance(expression, AndExpression):
            _collect(expression.items, summary)
        else:
            leaves = list(iter_requirements(expression.items))
            requiredness = (
                Requiredness.MANDATORY
                if any(leaf.is_mandatory for leaf in leaves)
                else Requiredness.OPTIONAL
            )
            summary.alternatives.append(
                AlternativeGroup(
                    requiredness=requiredness,
                    choices=[_render_choice(item) for item in expression.items],
                )
            )
