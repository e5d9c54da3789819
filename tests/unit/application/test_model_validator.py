"""Tests for ModelValidator rules."""

import pytest

from ovirt_api_model.application.services.model_validator import ModelValidator, Severity
from ovirt_api_model.domain.base.exceptions import ModelValidationError
from ovirt_api_model.domain.declarations import (
    ApiModel,
    Locator,
    Operation,
    Parameter,
    Service,
    Signature,
)
from ovirt_api_model.domain.input_detail import mandatory, optional, or_


def _with_service(model: ApiModel, service: Service, locator: Locator = None) -> ApiModel:
    """Add ``service`` to the model, reachable from the root through ``locator``."""
    services = []
    for existing in model.services:
        if locator is not None and existing.name == model.root:
            existing = existing.model_copy(update={"locators": [*existing.locators, locator]})
        services.append(existing)
    return model.model_copy(update={"services": [*services, service]})


def _with_operation(model: ApiModel, operation: Operation) -> ApiModel:
    """Add ``operation`` to the reachable ``Things`` service."""
    return _with_service(
        model,
        Service(name="Things", operations=[operation]),
        Locator(name="things", service="Things"),
    )


@pytest.mark.unit
class TestValidModels:
    """Models without problems."""

    def test_minimal_model_is_valid(self, minimal_model):
        """The fixture model has no issues."""
        report = ModelValidator().validate(minimal_model)

        assert report.is_valid
        assert report.issues == []

    def test_raise_for_errors_passes_on_valid_model(self, minimal_model):
        """No exception when there are no errors."""
        ModelValidator().validate(minimal_model).raise_for_errors()


@pytest.mark.unit
class TestStructuralRules:
    """Duplicate names and tree problems."""

    def test_duplicate_service(self, minimal_model):
        """Two services with one name are an error."""
        model = _with_service(minimal_model, Service(name="Host"))

        report = ModelValidator().validate(model)

        assert "duplicate-service" in report.codes()
        assert not report.is_valid

    def test_duplicate_operation_and_locator(self, minimal_model):
        """Operation and locator names are unique per service."""
        service = Service(
            name="Things",
            operations=[Operation(name="Get"), Operation(name="Get")],
            locators=[Locator(name="x", service="Host"), Locator(name="x", service="Host")],
        )

        report = ModelValidator().validate(_with_service(minimal_model, service))

        assert {"duplicate-operation", "duplicate-locator"} <= report.codes()

    def test_duplicate_parameter_with_follow(self, minimal_model):
        """A declared ``follow`` parameter clashes with the implicit one."""
        operation = Operation(
            name="List", follow=True, parameters=[Parameter(name="follow", type="String")]
        )

        report = ModelValidator().validate(_with_operation(minimal_model, operation))

        assert "duplicate-parameter" in report.codes()

    def test_duplicate_signature(self, minimal_model):
        """Signature names are unique per operation."""
        operation = Operation(name="Add", signatures=[Signature(name="A"), Signature(name="A")])

        report = ModelValidator().validate(_with_operation(minimal_model, operation))

        assert "duplicate-signature" in report.codes()

    def test_unknown_locator_service(self, minimal_model):
        """Locators must reference declared services."""
        model = _with_service(
            minimal_model, Service(name="Extra"), Locator(name="extra", service="Missing")
        )

        report = ModelValidator().validate(model)

        assert "unknown-service" in report.codes()

    def test_cycle(self, minimal_model):
        """Locator cycles are errors."""
        model = _with_service(
            minimal_model,
            Service(name="Loop", locators=[Locator(name="again", service="Loop")]),
            Locator(name="loop", service="Loop"),
        )

        assert "cycle" in ModelValidator().validate(model).codes()

    def test_unreachable_service_is_warning(self, minimal_model):
        """Unreachable services only warn."""
        report = ModelValidator().validate(_with_service(minimal_model, Service(name="Orphan")))

        assert report.is_valid
        assert [issue.code for issue in report.warnings] == ["unreachable-service"]
        assert report.warnings[0].severity == Severity.WARNING


@pytest.mark.unit
class TestInputDetailRules:
    """Rules on input detail expressions."""

    def test_unknown_input(self, minimal_model):
        """Field paths must start at an input parameter."""
        operation = Operation(
            name="Add",
            parameters=[Parameter(name="job", type="Job", direction="out")],
            input_detail=[mandatory("job.id"), optional("other.id")],
        )

        report = ModelValidator().validate(_with_operation(minimal_model, operation))

        assert [issue.code for issue in report.errors] == ["unknown-input", "unknown-input"]

    def test_signature_input_detail_is_checked(self, minimal_model):
        """Signature expressions follow the same rules."""
        operation = Operation(
            name="Add",
            parameters=[Parameter(name="host", type="Host")],
            signatures=[Signature(name="UsingSsh", input_detail=[optional("vm.name")])],
        )

        report = ModelValidator().validate(_with_operation(minimal_model, operation))

        assert report.errors[0].code == "unknown-input"
        assert report.errors[0].location == "Things.Add.UsingSsh"

    def test_collection_marker_on_single_value(self, minimal_model):
        """Iterating a non-list parameter is an error."""
        operation = Operation(
            name="Add",
            parameters=[Parameter(name="host", type="Host")],
            input_detail=[mandatory("host[COLLECTION].id")],
        )

        report = ModelValidator().validate(_with_operation(minimal_model, operation))

        assert "collection-mismatch" in report.codes()

    def test_list_parameter_without_marker(self, minimal_model):
        """Navigating into a list parameter needs the marker."""
        operation = Operation(
            name="Restore",
            parameters=[Parameter(name="disks", type="Disk[]")],
            input_detail=[optional("disks.id")],
        )

        report = ModelValidator().validate(_with_operation(minimal_model, operation))

        assert "collection-mismatch" in report.codes()

    def test_list_parameter_with_marker_is_valid(self, minimal_model):
        """``disks[COLLECTION].id`` is fine for ``Disk[]``."""
        operation = Operation(
            name="Restore",
            parameters=[Parameter(name="disks", type="Disk[]")],
            input_detail=[optional("disks[COLLECTION].id")],
        )

        assert ModelValidator().validate(_with_operation(minimal_model, operation)).is_valid

    def test_primitive_path(self, minimal_model):
        """Primitive parameters have no attributes."""
        operation = Operation(
            name="Add",
            parameters=[Parameter(name="async", type="Boolean")],
            input_detail=[optional("async.value")],
        )

        report = ModelValidator().validate(_with_operation(minimal_model, operation))

        assert "primitive-path" in report.codes()

    def test_degenerate_or_is_warning(self, minimal_model):
        """An ``or`` with a single alternative only warns."""
        operation = Operation(
            name="Add",
            parameters=[Parameter(name="host", type="Host")],
            input_detail=[or_(mandatory("host.name"))],
        )

        report = ModelValidator().validate(_with_operation(minimal_model, operation))

        assert report.is_valid
        assert "degenerate-or" in report.codes()

    def test_follow_is_an_input(self, minimal_model):
        """The implicit follow parameter can be referenced."""
        operation = Operation(name="List", follow=True, input_detail=[optional("follow")])

        assert ModelValidator().validate(_with_operation(minimal_model, operation)).is_valid


@pytest.mark.unit
class TestDocumentationRules:
    """Rules on documentation text."""

    def test_unresolved_example(self, minimal_model):
        """Request examples must reach a declared resource."""
        operation = Operation(name="Get", doc="Example:\n\n----\nGET /ovirt-engine/api/vms/123\n----\n")

        report = ModelValidator().validate(_with_operation(minimal_model, operation))

        assert [issue.code for issue in report.errors] == ["unresolved-example"]
        assert report.errors[0].location == "Things.Get"

    def test_resolved_example(self, minimal_model):
        """Examples with actions and query strings resolve."""
        operation = Operation(
            name="Get", doc="----\nPOST /ovirt-engine/api/hosts/123/activate?async=true\n----\n"
        )

        assert ModelValidator().validate(_with_operation(minimal_model, operation)).is_valid

    def test_missing_doc_only_when_strict(self, minimal_model):
        """Undocumented declarations warn in strict mode only."""
        assert "missing-doc" not in ModelValidator().validate(minimal_model).codes()

        report = ModelValidator(strict_docs=True).validate(minimal_model)

        assert report.is_valid
        assert "missing-doc" in report.codes()
        assert all(issue.severity == Severity.WARNING for issue in report.issues)


@pytest.mark.unit
class TestReport:
    """Report helpers."""

    def test_raise_for_errors(self, minimal_model):
        """Errors are raised together as ModelValidationError."""
        report = ModelValidator().validate(_with_service(minimal_model, Service(name="Host")))

        with pytest.raises(ModelValidationError) as exc_info:
            report.raise_for_errors()

        assert exc_info.value.issues == report.errors
        assert "duplicate-service" in exc_info.value.details["issues"][0]

    def test_to_dict(self, minimal_model):
        """Reports serialize to plain data."""
        data = ModelValidator().validate(_with_service(minimal_model, Service(name="Orphan"))).to_dict()

        assert data["valid"] is True
        assert data["warnings"] == 1
        assert data["issues"][0]["code"] == "unreachable-service"
