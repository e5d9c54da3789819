"""Structural validation of an API model."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional

from ovirt_api_model.domain.base.exceptions import ModelValidationError
from ovirt_api_model.domain.declarations import ApiModel, Operation, Parameter, Service
from ovirt_api_model.domain.doc_text import request_examples
from ovirt_api_model.domain.input_detail import (
    FieldRequirement,
    InputExpression,
    iter_or_expressions,
    iter_requirements,
)
from ovirt_api_model.domain.resource_tree import ResourceTree
from ovirt_api_model.infrastructure.logging.logger import get_logger

logger = get_logger(__name__)


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class ValidationIssue:
    """A single rule violation, located by ``Service[.Operation[.Signature]]``."""

    code: str
    severity: Severity
    location: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {
            "code": self.code,
            "severity": self.severity.value,
            "location": self.location,
            "message": self.message,
        }

    def __str__(self) -> str:
        return f"[{self.severity.value}] {self.code} at {self.location}: {self.message}"


@dataclass
class ValidationReport:
    """Outcome of validating a model."""

    issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def errors(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == Severity.WARNING]

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def codes(self) -> set[str]:
        return {issue.code for issue in self.issues}

    def raise_for_errors(self) -> None:
        if self.errors:
            raise ModelValidationError(self.errors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.is_valid,
            "errors": len(self.errors),
            "warnings": len(self.warnings),
            "issues": [issue.to_dict() for issue in self.issues],
        }


def _duplicates(names: Iterable[str]) -> list[str]:
    return sorted(name for name, count in Counter(names).items() if count > 1)


class ModelValidator:
    """Checks the invariants every model must satisfy before documentation is generated."""

    def __init__(self, strict_docs: bool = False) -> None:
        self.strict_docs = strict_docs

    def validate(self, model: ApiModel) -> ValidationReport:
        report = ValidationReport()
        self._check_services(model, report)
        tree = ResourceTree(model)
        self._check_tree(tree, report)
        for service in model.services:
            self._check_service(service, report)
            for operation in service.operations:
                self._check_operation(service, operation, report)
        self._check_examples(model, tree, report)

        logger.info(
            f"Validated model '{model.name}' {model.version}: "
            f"{len(report.errors)} error(s), {len(report.warnings)} warning(s)"
        )
        return report

    def _add(
        self,
        report: ValidationReport,
        code: str,
        location: str,
        message: str,
        severity: Severity = Severity.ERROR,
    ) -> None:
        report.issues.append(ValidationIssue(code, severity, location, message))

    def _check_services(self, model: ApiModel, report: ValidationReport) -> None:
        for name in _duplicates(model.service_names):
            self._add(report, "duplicate-service", name, f"Service '{name}' is declared more than once")

    def _check_tree(self, tree: ResourceTree, report: ValidationReport) -> None:
        for problem in tree.problems:
            self._add(report, problem.kind, problem.service, problem.detail)
        if tree.root is None:
            return
        for name in tree.unreachable_services():
            self._add(
                report,
                "unreachable-service",
                name,
                f"Service '{name}' is not reachable from root '{tree.model.root}'",
                Severity.WARNING,
            )

    def _check_service(self, service: Service, report: ValidationReport) -> None:
        for name in _duplicates(op.name for op in service.operations):
            self._add(
                report,
                "duplicate-operation",
                service.name,
                f"Operation '{name}' is declared more than once",
            )
        for name in _duplicates(locator.name for locator in service.locators):
            self._add(
                report,
                "duplicate-locator",
                service.name,
                f"Locator '{name}' is declared more than once",
            )
        for locator in service.locators:
            for name in _duplicates(p.name for p in locator.parameters):
                self._add(
                    report,
                    "duplicate-parameter",
                    f"{service.name}.{locator.name}",
                    f"Locator parameter '{name}' is declared more than once",
                )
        if self.strict_docs and not service.doc.strip():
            self._add(
                report, "missing-doc", service.name, "Service has no documentation", Severity.WARNING
            )

    def _check_operation(self, service: Service, operation: Operation, report: ValidationReport) -> None:
        location = f"{service.name}.{operation.name}"
        for name in _duplicates(p.name for p in operation.effective_parameters):
            self._add(
                report,
                "duplicate-parameter",
                location,
                f"Parameter '{name}' is declared more than once",
            )
        for name in _duplicates(s.name for s in operation.signatures):
            self._add(
                report,
                "duplicate-signature",
                location,
                f"Signature '{name}' is declared more than once",
            )
        if self.strict_docs and not operation.doc.strip():
            self._add(
                report, "missing-doc", location, "Operation has no documentation", Severity.WARNING
            )

        self._check_input_detail(operation, operation.input_detail, location, report)
        for signature in operation.signatures:
            self._check_input_detail(
                operation, signature.input_detail, f"{location}.{signature.name}", report
            )

    def _check_input_detail(
        self,
        operation: Operation,
        expressions: list[InputExpression],
        location: str,
        report: ValidationReport,
    ) -> None:
        inputs = {parameter.name: parameter for parameter in operation.inputs}
        for requirement in iter_requirements(expressions):
            parameter = inputs.get(requirement.field_path.root.name)
            if parameter is None:
                self._add(
                    report,
                    "unknown-input",
                    location,
                    f"'{requirement.path}' does not reference an input parameter of "
                    f"{operation.name}",
                )
                continue
            self._check_field_path(parameter, requirement, location, report)

        for expression in iter_or_expressions(expressions):
            if len(expression.items) < 2:
                self._add(
                    report,
                    "degenerate-or",
                    location,
                    "'or' expression has fewer than two alternatives",
                    Severity.WARNING,
                )

    def _check_field_path(
        self,
        parameter: Parameter,
        requirement: FieldRequirement,
        location: str,
        report: ValidationReport,
    ) -> None:
        path = requirement.field_path
        type_ref = parameter.type_ref
        if path.root.collection and not type_ref.repeated:
            self._add(
                report,
                "collection-mismatch",
                location,
                f"'{requirement.path}' iterates '{parameter.name}' which is not a collection",
            )
        elif type_ref.repeated and path.attributes and not path.root.collection:
            self._add(
                report,
                "collection-mismatch",
                location,
                f"'{requirement.path}' navigates collection '{parameter.name}' without "
                f"[COLLECTION]",
            )
        if type_ref.is_primitive and path.attributes:
            self._add(
                report,
                "primitive-path",
                location,
                f"'{requirement.path}' navigates attributes of primitive {type_ref}",
            )

    def _check_examples(self, model: ApiModel, tree: ResourceTree, report: ValidationReport) -> None:
        if tree.root is None:
            return
        for service in model.services:
            self._check_text(tree, service.doc, service.name, report)
            for operation in service.operations:
                location = f"{service.name}.{operation.name}"
                self._check_text(tree, operation.doc, location, report)
                for parameter in operation.parameters:
                    self._check_text(tree, parameter.doc, f"{location}.{parameter.name}", report)
                for signature in operation.signatures:
                    self._check_text(tree, signature.doc, f"{location}.{signature.name}", report)

    def _check_text(
        self, tree: ResourceTree, text: Optional[str], location: str, report: ValidationReport
    ) -> None:
        if not text:
            return
        for example in request_examples(text):
            if tree.resolve_path(example.path) is None:
                self._add(
                    report,
                    "unresolved-example",
                    location,
                    f"Example '{example}' does not reference a declared resource",
                )
