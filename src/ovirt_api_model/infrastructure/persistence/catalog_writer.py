"""Writes API models as JSON, YAML or catalogue directories."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Union

import yaml

from ovirt_api_model.domain.base.exceptions import InfrastructureError
from ovirt_api_model.domain.declarations import ApiModel, Service
from ovirt_api_model.infrastructure.logging.logger import get_logger
from ovirt_api_model.infrastructure.persistence.catalog_loader import MODEL_FILE, SERVICES_DIR

logger = get_logger(__name__)


class _LiteralDumper(yaml.SafeDumper):
    """Safe dumper that keeps multi-line documentation readable."""


def _represent_str(dumper: yaml.SafeDumper, value: str) -> yaml.ScalarNode:
    if "\n" in value:
        return dumper.represent_scalar("tag:yaml.org,2002:str", value, style="|")
    return dumper.represent_scalar("tag:yaml.org,2002:str", value)


_LiteralDumper.add_representer(str, _represent_str)


def service_file_name(service: Service) -> str:
    """``SnapshotCdroms`` becomes ``snapshot_cdroms.yaml``."""
    return re.sub(r"(?<!^)(?=[A-Z])", "_", service.name).lower() + ".yaml"


def model_to_dict(model: Union[ApiModel, Service]) -> dict[str, Any]:
    """Plain data form of a declaration, without default values."""
    return model.model_dump(mode="json", exclude_defaults=True)


def dump_json(model: ApiModel, indent: int = 2) -> str:
    return json.dumps(model_to_dict(model), indent=indent) + "\n"


def dump_yaml(data: Union[ApiModel, Service, dict[str, Any]]) -> str:
    if not isinstance(data, dict):
        data = model_to_dict(data)
    return yaml.dump(
        data,
        Dumper=_LiteralDumper,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
        width=100,
    )


def export_json_schema() -> dict[str, Any]:
    """JSON Schema of the declaration format."""
    schema = ApiModel.model_json_schema()
    return {"$schema": "https://json-schema.org/draft/2020-12/schema", **schema}


class CatalogWriter:
    """Persists models in the formats the loader reads back."""

    def write_json(self, model: ApiModel, path: Union[str, Path]) -> Path:
        return self._write(Path(path), dump_json(model))

    def write_yaml(self, model: ApiModel, path: Union[str, Path]) -> Path:
        return self._write(Path(path), dump_yaml(model))

    def write_schema(self, path: Union[str, Path]) -> Path:
        return self._write(Path(path), json.dumps(export_json_schema(), indent=2) + "\n")

    def write_directory(self, model: ApiModel, directory: Union[str, Path]) -> Path:
        """Write ``model.yaml`` plus one YAML file per service."""
        directory = Path(directory)
        header = model_to_dict(model)
        header.pop("services", None)
        self._write(directory / MODEL_FILE, dump_yaml(header))
        for service in model.services:
            self._write(directory / SERVICES_DIR / service_file_name(service), dump_yaml(service))
        logger.info(f"Wrote {len(model.services)} service(s) to {directory}")
        return directory

    def _write(self, path: Path, content: str) -> Path:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                f.write(content)
        except OSError as e:
            logger.error(f"Failed to write {path}: {e}")
            raise InfrastructureError(f"Cannot write {path}: {e}", {"file": str(path)}) from e
        logger.debug(f"Wrote {path}")
        return path
