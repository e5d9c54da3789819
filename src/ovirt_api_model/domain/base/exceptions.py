"""Exception hierarchy shared by every layer of the API model."""

from __future__ import annotations

from typing import Any, Optional


class ApiModelError(Exception):
    """Base class for all errors raised by the API model tooling."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert the error to a dictionary suitable for JSON output."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(ApiModelError):
    """Raised when the application configuration is missing or invalid."""


class DeclarationError(ApiModelError):
    """Raised when a service declaration cannot be read or parsed."""


class ExpressionSyntaxError(DeclarationError):
    """Raised when an input detail expression or field path is malformed."""


class ServiceNotFoundError(ApiModelError):
    """Raised when a service name does not exist in the model."""

    def __init__(self, service_name: str) -> None:
        super().__init__(f"Service not found: {service_name}", {"service": service_name})
        self.service_name = service_name


class OperationNotFoundError(ApiModelError):
    """Raised when an operation does not exist in a service."""

    def __init__(self, service_name: str, operation_name: str) -> None:
        super().__init__(
            f"Operation not found: {service_name}.{operation_name}",
            {"service": service_name, "operation": operation_name},
        )
        self.service_name = service_name
        self.operation_name = operation_name


class SignatureNotFoundError(ApiModelError):
    """Raised when an operation has no signature with the given name."""

    def __init__(
        self, operation_name: str, signature_name: str, service_name: Optional[str] = None
    ) -> None:
        qualified = f"{service_name}.{operation_name}" if service_name else operation_name
        details = {"operation": operation_name, "signature": signature_name}
        if service_name:
            details["service"] = service_name
        super().__init__(f"Signature not found: {qualified}.{signature_name}", details)
        self.operation_name = operation_name
        self.signature_name = signature_name
        self.service_name = service_name


class ModelValidationError(ApiModelError):
    """Raised when a model fails structural validation."""

    def __init__(self, issues: list[Any]) -> None:
        super().__init__(
            f"Model validation failed with {len(issues)} error(s)",
            {"issues": [str(issue) for issue in issues]},
        )
        self.issues = issues


class InfrastructureError(ApiModelError):
    """Raised when an external tool or the filesystem fails."""


class PublishError(InfrastructureError):
    """Raised when publishing the generated documentation fails."""

    def __init__(self, message: str, command: Optional[list[str]] = None) -> None:
        super().__init__(message, {"command": command} if command else None)
        self.command = command
