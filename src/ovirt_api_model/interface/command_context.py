"""State shared by the command handlers of one CLI invocation."""

from pathlib import Path
from typing import Optional, Union

from ovirt_api_model.config.schemas.app_schema import AppConfig
from ovirt_api_model.domain.declarations import ApiModel
from ovirt_api_model.infrastructure.persistence.catalog_loader import CatalogLoader


class CommandContext:
    """Configuration plus a lazily loaded model.

    ``catalog_path`` given on the command line wins over ``model.catalog_path``
    from the configuration; with neither, the packaged catalogue is used.
    """

    def __init__(
        self,
        config: AppConfig,
        catalog_path: Optional[Union[str, Path]] = None,
        loader: Optional[CatalogLoader] = None,
    ) -> None:
        self.config = config
        self.catalog_path = catalog_path or config.model.catalog_path
        self._loader = loader or CatalogLoader()
        self._model: Optional[ApiModel] = None

    @property
    def model(self) -> ApiModel:
        if self._model is None:
            self._model = self._loader.load(self.catalog_path)
        return self._model
