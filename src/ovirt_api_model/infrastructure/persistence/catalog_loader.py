"""Reads service declarations from YAML or JSON files."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import ValidationError

from ovirt_api_model.catalog import CATALOG_DIR
from ovirt_api_model.domain.base.exceptions import DeclarationError
from ovirt_api_model.domain.declarations import ApiModel, Service
from ovirt_api_model.infrastructure.logging.logger import get_logger

logger = get_logger(__name__)

MODEL_FILE = "model.yaml"
SERVICES_DIR = "services"
YAML_SUFFIXES = (".yaml", ".yml")
JSON_SUFFIXES = (".json",)


def _describe_errors(error: ValidationError) -> list[str]:
    return [
        f"{' -> '.join(str(part) for part in item['loc']) or '<root>'}: {item['msg']}"
        for item in error.errors()
    ]


class CatalogLoader:
    """
    Loads an API model from a catalogue directory or a single document.

    A catalogue directory holds ``model.yaml`` (name, version, root and API
    prefix) and one file per service under ``services/``. A single
    ``.yaml``/``.yml``/``.json`` document holds the whole model, services
    included.
    """

    def load(self, path: Optional[Union[str, Path]] = None) -> ApiModel:
        """
        Load a model.

        :param path: Catalogue directory or document; the packaged catalogue when omitted.
        :return: The validated model.
        :raises DeclarationError: If a file is missing, unreadable or invalid.
        """
        source = Path(path) if path else CATALOG_DIR
        if not source.exists():
            raise DeclarationError(f"Catalogue not found: {source}", {"path": str(source)})
        if source.is_dir():
            model = self._load_directory(source)
        else:
            model = self._load_document(source)
        logger.info(f"Loaded {len(model.services)} service(s) from {source}")
        return model

    def _load_directory(self, directory: Path) -> ApiModel:
        header_file = directory / MODEL_FILE
        header = self._read_file(header_file) if header_file.exists() else {}
        if not isinstance(header, dict):
            raise DeclarationError(f"Invalid model header in {header_file}: expected a mapping")
        if "services" in header:
            raise DeclarationError(
                f"{header_file} must not declare services; put them under {SERVICES_DIR}/"
            )

        services = []
        services_dir = directory / SERVICES_DIR
        if services_dir.is_dir():
            for service_file in sorted(services_dir.iterdir()):
                if service_file.suffix not in YAML_SUFFIXES + JSON_SUFFIXES:
                    continue
                services.append(self._load_service(service_file))
        else:
            logger.warning(f"Catalogue {directory} has no {SERVICES_DIR}/ directory")

        return self._build(ApiModel, {**header, "services": []}, header_file).model_copy(
            update={"services": services}
        )

    def _load_service(self, service_file: Path) -> Service:
        data = self._read_file(service_file)
        if not isinstance(data, dict):
            raise DeclarationError(f"Invalid service declaration in {service_file}: expected a mapping")
        return self._build(Service, data, service_file)

    def _load_document(self, document: Path) -> ApiModel:
        data = self._read_file(document)
        if not isinstance(data, dict):
            raise DeclarationError(f"Invalid model document {document}: expected a mapping")
        return self._build(ApiModel, data, document)

    def _build(self, model_class: Any, data: dict[str, Any], source: Path) -> Any:
        try:
            return model_class.model_validate(data)
        except ValidationError as e:
            problems = _describe_errors(e)
            logger.error(f"Invalid declaration in {source}: {'; '.join(problems)}")
            raise DeclarationError(
                f"Invalid declaration in {source}",
                {"file": str(source), "errors": problems},
            ) from e
        except DeclarationError as e:
            raise DeclarationError(
                f"Invalid declaration in {source}: {e.message}",
                {"file": str(source), **e.details},
            ) from e

    def _read_file(self, path: Path) -> Any:
        """
        Parse a YAML or JSON file.

        :raises DeclarationError: If the file cannot be read or parsed.
        """
        suffix = path.suffix.lower()
        if suffix not in YAML_SUFFIXES + JSON_SUFFIXES:
            raise DeclarationError(f"Unsupported declaration file type: {path}", {"file": str(path)})
        try:
            with open(path, encoding="utf-8") as f:
                if suffix in JSON_SUFFIXES:
                    return json.load(f)
                return yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise DeclarationError(f"Invalid YAML in {path}: {e}", {"file": str(path)}) from e
        except json.JSONDecodeError as e:
            raise DeclarationError(f"Invalid JSON in {path}: {e}", {"file": str(path)}) from e
        except OSError as e:
            raise DeclarationError(f"Cannot read {path}: {e}", {"file": str(path)}) from e
