"""Service, operation and parameter declarations of the API model.

Every declaration is a plain pydantic record so that the whole model can be
dumped to JSON or YAML and consumed by external generators.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ovirt_api_model.domain.base.exceptions import (
    OperationNotFoundError,
    ServiceNotFoundError,
    SignatureNotFoundError,
)
from ovirt_api_model.domain.input_detail import (
    InputDetailSummary,
    InputExpression,
    normalize_expressions,
    summarize,
)
from ovirt_api_model.domain.types import TYPE_PATTERN, DocMetadata, TypeRef

SERVICE_NAME_PATTERN = r"^[A-Z][A-Za-z0-9]*$"
OPERATION_NAME_PATTERN = r"^[A-Z][A-Za-z0-9]*$"
MEMBER_NAME_PATTERN = r"^[a-z][a-z0-9_]*$"

DEFAULT_API_PREFIX = "/ovirt-engine/api"
DEFAULT_ROOT_SERVICE = "System"

FOLLOW_PARAMETER_NAME = "follow"


class ParameterDirection(str, Enum):
    """Whether a parameter is sent by the client, returned, or both."""

    IN = "in"
    OUT = "out"
    INOUT = "inout"


class HttpMethod(str, Enum):
    """HTTP methods used by the REST mapping of operations."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


_CRUD_METHODS = {
    "Add": HttpMethod.POST,
    "Get": HttpMethod.GET,
    "List": HttpMethod.GET,
    "Update": HttpMethod.PUT,
    "Remove": HttpMethod.DELETE,
}


class Parameter(BaseModel):
    """Named, typed input or output of an operation or locator."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(pattern=MEMBER_NAME_PATTERN)
    type: str = Field(pattern=TYPE_PATTERN, description="Type reference, e.g. Host or Disk[]")
    direction: ParameterDirection = ParameterDirection.IN
    doc: str = ""
    metadata: DocMetadata = Field(default_factory=DocMetadata)

    @property
    def type_ref(self) -> TypeRef:
        return TypeRef.parse(self.type)

    @property
    def is_input(self) -> bool:
        return self.direction in (ParameterDirection.IN, ParameterDirection.INOUT)

    @property
    def is_output(self) -> bool:
        return self.direction in (ParameterDirection.OUT, ParameterDirection.INOUT)


FOLLOW_PARAMETER = Parameter(
    name=FOLLOW_PARAMETER_NAME,
    type="String",
    direction=ParameterDirection.IN,
    doc=(
        "Indicates which inner links should be _followed_. The objects referenced by these "
        "links will be fetched as part of the current request."
    ),
)


class Signature(BaseModel):
    """Named variant of an operation that adds its own input detail."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(pattern=OPERATION_NAME_PATTERN)
    doc: str = ""
    input_detail: list[InputExpression] = Field(default_factory=list)
    metadata: DocMetadata = Field(default_factory=DocMetadata)

    @field_validator("input_detail", mode="before")
    @classmethod
    def _normalize_input_detail(cls, value: Any) -> Any:
        return normalize_expressions(value)


class Operation(BaseModel):
    """Named action of a service with typed inputs and outputs."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(pattern=OPERATION_NAME_PATTERN)
    doc: str = ""
    follow: bool = Field(False, description="Supports expanding linked resources")
    parameters: list[Parameter] = Field(default_factory=list)
    input_detail: list[InputExpression] = Field(default_factory=list)
    signatures: list[Signature] = Field(default_factory=list)
    metadata: DocMetadata = Field(default_factory=DocMetadata)

    @field_validator("input_detail", mode="before")
    @classmethod
    def _normalize_input_detail(cls, value: Any) -> Any:
        return normalize_expressions(value)

    @property
    def effective_parameters(self) -> list[Parameter]:
        """Declared parameters plus the implicit ``follow`` parameter."""
        if self.follow:
            return [*self.parameters, FOLLOW_PARAMETER]
        return list(self.parameters)

    @property
    def inputs(self) -> list[Parameter]:
        return [parameter for parameter in self.effective_parameters if parameter.is_input]

    @property
    def outputs(self) -> list[Parameter]:
        return [parameter for parameter in self.effective_parameters if parameter.is_output]

    def get_parameter(self, name: str) -> Optional[Parameter]:
        return next((p for p in self.effective_parameters if p.name == name), None)

    def get_signature(self, name: str) -> Optional[Signature]:
        return next((s for s in self.signatures if s.name == name), None)

    def effective_input_detail(self, signature: Optional[str] = None) -> list[InputExpression]:
        """Input detail of the operation, extended by one of its signatures."""
        if signature is None:
            return list(self.input_detail)
        variant = self.get_signature(signature)
        if variant is None:
            raise SignatureNotFoundError(self.name, signature)
        return [*self.input_detail, *variant.input_detail]

    def summary(self, signature: Optional[str] = None) -> InputDetailSummary:
        return summarize(self.effective_input_detail(signature))

    @property
    def http_method(self) -> HttpMethod:
        return _CRUD_METHODS.get(self.name, HttpMethod.POST)

    @property
    def is_action(self) -> bool:
        return self.name not in _CRUD_METHODS

    @property
    def action_segment(self) -> str:
        """Path segment of an action, e.g. ``restore`` or ``commitsnapshot``."""
        return self.name.lower()


class Locator(BaseModel):
    """Reference from a service to one of its child services."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(pattern=MEMBER_NAME_PATTERN)
    service: str = Field(pattern=SERVICE_NAME_PATTERN)
    parameters: list[Parameter] = Field(default_factory=list)
    doc: str = ""
    metadata: DocMetadata = Field(default_factory=DocMetadata)

    @property
    def is_parameterized(self) -> bool:
        return bool(self.parameters)

    @property
    def path_segments(self) -> list[str]:
        """Segments this locator adds to the path of its parent."""
        if not self.parameters:
            return [self.name]
        return [f"{{{self.name}:{parameter.name}}}" for parameter in self.parameters]


class Service(BaseModel):
    """REST-exposed scope grouping operations and child services."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(pattern=SERVICE_NAME_PATTERN)
    doc: str = ""
    area: Optional[str] = Field(None, description="Documentation grouping, e.g. Storage")
    operations: list[Operation] = Field(default_factory=list)
    locators: list[Locator] = Field(default_factory=list)
    metadata: DocMetadata = Field(default_factory=DocMetadata)

    def find_operation(self, name: str) -> Optional[Operation]:
        return next((op for op in self.operations if op.name == name), None)

    def get_operation(self, name: str) -> Operation:
        operation = self.find_operation(name)
        if operation is None:
            raise OperationNotFoundError(self.name, name)
        return operation

    def find_locator(self, name: str) -> Optional[Locator]:
        return next((locator for locator in self.locators if locator.name == name), None)

    def find_action(self, segment: str) -> Optional[Operation]:
        return next(
            (op for op in self.operations if op.is_action and op.action_segment == segment), None
        )


class ApiModel(BaseModel):
    """The complete catalogue of service declarations."""

    model_config = ConfigDict(extra="forbid")

    name: str = "ovirt-engine-api"
    version: str = "4.2"
    root: str = Field(DEFAULT_ROOT_SERVICE, pattern=SERVICE_NAME_PATTERN)
    api_prefix: str = DEFAULT_API_PREFIX
    services: list[Service] = Field(default_factory=list)

    @field_validator("version", mode="before")
    @classmethod
    def _coerce_version(cls, value: Any) -> Any:
        return value if isinstance(value, str) else str(value)

    @field_validator("api_prefix")
    @classmethod
    def _strip_prefix(cls, value: str) -> str:
        value = value.rstrip("/")
        if value and not value.startswith("/"):
            raise ValueError("api_prefix must start with '/'")
        return value

    def find_service(self, name: str) -> Optional[Service]:
        return next((service for service in self.services if service.name == name), None)

    def get_service(self, name: str) -> Service:
        service = self.find_service(name)
        if service is None:
            raise ServiceNotFoundError(name)
        return service

    def get_operation(self, service_name: str, operation_name: str) -> Operation:
        return self.get_service(service_name).get_operation(operation_name)

    @property
    def service_names(self) -> list[str]:
        return [service.name for service in self.services]

    @property
    def areas(self) -> list[str]:
        return sorted({service.area for service in self.services if service.area})
