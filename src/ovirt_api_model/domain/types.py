"""Type references and documentation metadata shared by all declarations."""

from __future__ import annotations

import re
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ovirt_api_model.domain.base.exceptions import DeclarationError

PRIMITIVE_TYPES = frozenset({"String", "Boolean", "Integer", "Decimal", "Date"})

TYPE_PATTERN = r"^[A-Z][A-Za-z0-9]*(\[\])?$"
_TYPE_RE = re.compile(TYPE_PATTERN)


class TypeRef(BaseModel):
    """Reference to a domain type declared outside of this model."""

    model_config = ConfigDict(frozen=True)

    name: str
    repeated: bool = False

    @classmethod
    def parse(cls, text: str) -> TypeRef:
        """Parse the textual form ``Host`` or ``Disk[]``."""
        if not isinstance(text, str) or not _TYPE_RE.match(text):
            raise DeclarationError(f"Invalid type reference: {text!r}", {"type": text})
        if text.endswith("[]"):
            return cls(name=text[:-2], repeated=True)
        return cls(name=text)

    @property
    def is_primitive(self) -> bool:
        return self.name in PRIMITIVE_TYPES

    def __str__(self) -> str:
        return f"{self.name}[]" if self.repeated else self.name


class DocMetadata(BaseModel):
    """Documentation-only annotations such as authors, dates and review status.

    These values are kept opaque: they are preserved when a model is written
    back but nothing in the tooling interprets them.
    """

    model_config = ConfigDict(extra="allow")

    authors: list[str] = Field(default_factory=list, description="Authors of the declaration")
    date: Optional[str] = Field(None, description="Date of the last documentation change")
    status: Optional[str] = Field(None, description="Documentation review status")
    since: Optional[str] = Field(None, description="API version that introduced the element")

    @field_validator("date", "since", "status", mode="before")
    @classmethod
    def _coerce_to_text(cls, value: Any) -> Any:
        # YAML reads `since: 4.2` as a float and bare dates as date objects
        if value is None or isinstance(value, str):
            return value
        return str(value)

    @property
    def is_empty(self) -> bool:
        return not (self.authors or self.date or self.status or self.since or self.model_extra)
