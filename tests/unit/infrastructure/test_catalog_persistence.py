"""Tests for reading and writing catalogues."""

import json

import pytest
import yaml

from ovirt_api_model.domain.base.exceptions import DeclarationError, InfrastructureError
from ovirt_api_model.domain.input_detail import OrExpression
from ovirt_api_model.infrastructure.persistence.catalog_loader import CatalogLoader
from ovirt_api_model.infrastructure.persistence.catalog_writer import (
    CatalogWriter,
    dump_yaml,
    export_json_schema,
    model_to_dict,
    service_file_name,
)

HOSTS_YAML = """
name: Hosts
doc: |
  Manages hosts.
operations:
  - name: Add
    parameters:
      - name: host
        type: Host
        direction: inout
    input_detail:
      - mandatory: host.name
      - or:
          - mandatory: host.cluster.id
          - mandatory: host.cluster.name
"""


def _write_catalog(directory, services, header="name: test\nversion: 1.0\n"):
    (directory / "services").mkdir(parents=True)
    (directory / "model.yaml").write_text(header)
    for name, text in services.items():
        (directory / "services" / name).write_text(text)
    return directory


@pytest.mark.unit
class TestCatalogLoader:
    """Loading catalogues."""

    def test_load_directory(self, temp_dir):
        """A catalogue directory yields one service per file."""
        _write_catalog(temp_dir, {"hosts.yaml": HOSTS_YAML, "system.yml": "name: System\n"})

        model = CatalogLoader().load(temp_dir)

        assert model.name == "test"
        assert model.version == "1.0"
        assert model.service_names == ["Hosts", "System"]
        add = model.get_operation("Hosts", "Add")
        assert isinstance(add.input_detail[1], OrExpression)

    def test_non_declaration_files_are_skipped(self, temp_dir):
        """Files other than YAML or JSON in services/ are ignored."""
        _write_catalog(temp_dir, {"system.yaml": "name: System\n", "README.txt": "notes"})

        assert CatalogLoader().load(temp_dir).service_names == ["System"]

    def test_load_single_json_document(self, temp_dir, minimal_model_dict):
        """A single JSON document holds the whole model."""
        document = temp_dir / "model.json"
        document.write_text(json.dumps(minimal_model_dict))

        model = CatalogLoader().load(document)

        assert model.service_names == ["System", "Hosts", "Host"]

    def test_missing_path(self, temp_dir):
        """A missing catalogue raises DeclarationError."""
        with pytest.raises(DeclarationError, match="Catalogue not found"):
            CatalogLoader().load(temp_dir / "missing")

    def test_unsupported_document_type(self, temp_dir):
        """Only YAML and JSON documents are accepted."""
        document = temp_dir / "model.toml"
        document.write_text("name = 'x'")

        with pytest.raises(DeclarationError, match="Unsupported"):
            CatalogLoader().load(document)

    def test_malformed_yaml(self, temp_dir):
        """YAML syntax errors name the file."""
        _write_catalog(temp_dir, {"bad.yaml": "name: [unclosed\n"})

        with pytest.raises(DeclarationError) as exc_info:
            CatalogLoader().load(temp_dir)

        assert "bad.yaml" in exc_info.value.message

    def test_validation_errors_name_file_and_field(self, temp_dir):
        """Schema violations report the file and the failing field."""
        _write_catalog(
            temp_dir,
            {"hosts.yaml": "name: Hosts\noperations:\n  - name: add\n"},
        )

        with pytest.raises(DeclarationError) as exc_info:
            CatalogLoader().load(temp_dir)

        details = exc_info.value.details
        assert details["file"].endswith("hosts.yaml")
        assert any(error.startswith("operations -> 0 -> name") for error in details["errors"])

    def test_expression_syntax_error_names_file(self, temp_dir):
        """Malformed short-form expressions report the file."""
        _write_catalog(
            temp_dir,
            {
                "hosts.yaml": (
                    "name: Hosts\noperations:\n  - name: Add\n    input_detail:\n"
                    "      - mandatory: host.name\n        optional: host.port\n"
                )
            },
        )

        with pytest.raises(DeclarationError) as exc_info:
            CatalogLoader().load(temp_dir)

        assert exc_info.value.details["file"].endswith("hosts.yaml")

    def test_header_must_not_declare_services(self, temp_dir):
        """Services belong in services/, not in model.yaml."""
        _write_catalog(temp_dir, {}, header="name: test\nservices: []\n")

        with pytest.raises(DeclarationError, match="must not declare services"):
            CatalogLoader().load(temp_dir)


@pytest.mark.unit
class TestCatalogWriter:
    """Writing catalogues back."""

    def test_service_file_name(self, minimal_model):
        """Service names become snake_case file names."""
        assert service_file_name(minimal_model.get_service("Hosts")) == "hosts.yaml"
        assert (
            service_file_name(minimal_model.get_service("Hosts").model_copy(update={"name": "SnapshotCdroms"}))
            == "snapshot_cdroms.yaml"
        )

    def test_defaults_are_omitted(self, minimal_model):
        """Plain data leaves out default values but keeps expression kinds."""
        data = model_to_dict(minimal_model)
        hosts = data["services"][1]

        assert "doc" not in data["services"][0]
        assert hosts["operations"][0]["input_detail"][0] == {"kind": "mandatory", "path": "host.name"}
        assert hosts["operations"][1]["follow"] is True

    def test_multiline_doc_uses_literal_block(self, minimal_model):
        """Multi-line documentation is written as a YAML literal block."""
        text = dump_yaml(minimal_model.get_service("Hosts"))

        assert "doc: |" in text

    def test_directory_round_trip(self, temp_dir, minimal_model):
        """A written directory loads back into an equal model."""
        target = temp_dir / "catalog"
        CatalogWriter().write_directory(minimal_model, target)

        assert (target / "services" / "hosts.yaml").exists()
        loaded = CatalogLoader().load(target)
        assert loaded.model_dump() == minimal_model.model_copy(
            update={"services": sorted(minimal_model.services, key=lambda s: service_file_name(s))}
        ).model_dump()

    def test_write_json_and_yaml(self, temp_dir, minimal_model):
        """Single documents load back with the same services."""
        writer = CatalogWriter()
        json_path = writer.write_json(minimal_model, temp_dir / "out" / "model.json")
        yaml_path = writer.write_yaml(minimal_model, temp_dir / "out" / "model.yaml")

        assert json.loads(json_path.read_text())["name"] == minimal_model.name
        assert yaml.safe_load(yaml_path.read_text())["root"] == "System"
        assert CatalogLoader().load(yaml_path).service_names == minimal_model.service_names

    def test_write_failure(self, temp_dir, minimal_model):
        """Filesystem errors raise InfrastructureError."""
        blocker = temp_dir / "file"
        blocker.write_text("")

        with pytest.raises(InfrastructureError):
            CatalogWriter().write_json(minimal_model, blocker / "model.json")

    def test_json_schema(self):
        """The exported schema describes the model document."""
        schema = export_json_schema()

        assert schema["$schema"] == "https://json-schema.org/draft/2020-12/schema"
        assert schema["title"] == "ApiModel"
        assert "services" in schema["properties"]
        assert "Operation" in schema["$defs"]
