"""Global test configuration and fixtures."""

import os
import shutil
import sys
import tempfile
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from ovirt_api_model.domain.declarations import (  # noqa: E402
    ApiModel,
    Locator,
    Operation,
    Parameter,
    Service,
)
from ovirt_api_model.domain.input_detail import mandatory, optional, or_  # noqa: E402
from ovirt_api_model.infrastructure.persistence.catalog_loader import CatalogLoader  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Keep console output quiet and isolate configuration discovery."""
    os.environ.update({"LOG_CONSOLE_ENABLED": "false", "TESTING": "true"})


@pytest.fixture(autouse=True)
def clean_apimodel_env(monkeypatch):
    """Remove APIMODEL_* variables so tests never read the developer's settings."""
    for key in list(os.environ):
        if key.startswith("APIMODEL_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture(scope="session")
def catalog_model() -> ApiModel:
    """The packaged catalogue."""
    return CatalogLoader().load()


@pytest.fixture
def minimal_model() -> ApiModel:
    """System -> Hosts -> Host, with one action and a documented example."""
    hosts = Service(
        name="Hosts",
        area="Infrastructure",
        doc="Manages hosts.\n\n....\nGET /ovirt-engine/api/hosts\n....\n",
        operations=[
            Operation(
                name="Add",
                parameters=[Parameter(name="host", type="Host", direction="inout")],
                input_detail=[
                    mandatory("host.name"),
                    or_(mandatory("host.cluster.id"), mandatory("host.cluster.name")),
                    optional("host.comment"),
                ],
            ),
            Operation(
                name="List",
                follow=True,
                parameters=[Parameter(name="hosts", type="Host[]", direction="out")],
            ),
        ],
        locators=[
            Locator(
                name="host",
                service="Host",
                parameters=[Parameter(name="id", type="String")],
            )
        ],
    )
    host = Service(
        name="Host",
        area="Infrastructure",
        operations=[
            Operation(name="Get", parameters=[Parameter(name="host", type="Host", direction="out")]),
            Operation(name="Activate", parameters=[Parameter(name="async", type="Boolean")]),
        ],
    )
    system = Service(
        name="System",
        operations=[Operation(name="Get")],
        locators=[Locator(name="hosts", service="Hosts")],
    )
    return ApiModel(services=[system, hosts, host])


@pytest.fixture
def minimal_model_dict(minimal_model) -> dict[str, Any]:
    """Plain data form of ``minimal_model``."""
    return minimal_model.model_dump(mode="json", exclude_defaults=True)
