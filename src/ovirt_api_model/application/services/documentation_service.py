"""Builds the reference documentation view of an API model."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from ovirt_api_model.domain.declarations import (
    FOLLOW_PARAMETER,
    ApiModel,
    Operation,
    Parameter,
    Service,
)
from ovirt_api_model.domain.doc_text import DocBlock, parse_doc
from ovirt_api_model.domain.input_detail import InputDetailSummary
from ovirt_api_model.domain.resource_tree import ResourceTree, endpoint_for
from ovirt_api_model.domain.types import DocMetadata
from ovirt_api_model.infrastructure.logging.logger import get_logger

logger = get_logger(__name__)

GENERAL_AREA = "General"


def anchor(*parts: str) -> str:
    return "-".join(part.lower() for part in parts)


class ParameterView(BaseModel):
    name: str
    type: str
    direction: str
    blocks: list[DocBlock] = Field(default_factory=list)
    implicit: bool = False


class SignatureView(BaseModel):
    name: str
    anchor: str
    blocks: list[DocBlock] = Field(default_factory=list)
    summary: InputDetailSummary


class OperationView(BaseModel):
    service: str
    name: str
    anchor: str
    endpoints: list[str] = Field(default_factory=list)
    blocks: list[DocBlock] = Field(default_factory=list)
    follow: bool = False
    parameters: list[ParameterView] = Field(default_factory=list)
    summary: InputDetailSummary
    signatures: list[SignatureView] = Field(default_factory=list)
    metadata: DocMetadata = Field(default_factory=DocMetadata)


class LocatorView(BaseModel):
    name: str
    service: str
    anchor: str
    path: Optional[str] = None


class ServiceView(BaseModel):
    name: str
    anchor: str
    area: str
    path: Optional[str] = None
    blocks: list[DocBlock] = Field(default_factory=list)
    operations: list[OperationView] = Field(default_factory=list)
    locators: list[LocatorView] = Field(default_factory=list)
    metadata: DocMetadata = Field(default_factory=DocMetadata)


class AreaView(BaseModel):
    name: str
    anchor: str
    services: list[ServiceView] = Field(default_factory=list)


class DocumentationView(BaseModel):
    title: str
    version: str
    api_prefix: str
    areas: list[AreaView] = Field(default_factory=list)

    def find_service(self, name: str) -> Optional[ServiceView]:
        for area in self.areas:
            for service in area.services:
                if service.name == name:
                    return service
        return None


class DocumentationService:
    """Turns declarations into a view that renderers can lay out directly."""

    def __init__(self, title: Optional[str] = None) -> None:
        self.title = title

    def build(self, model: ApiModel) -> DocumentationView:
        tree = ResourceTree(model)
        by_area: dict[str, list[ServiceView]] = {}
        for service in model.services:
            view = self.service_view(model, service, tree)
            by_area.setdefault(view.area, []).append(view)

        areas = [
            AreaView(
                name=name,
                anchor=anchor("area", name),
                services=sorted(services, key=lambda s: s.name),
            )
            for name, services in sorted(by_area.items())
        ]
        logger.debug(f"Built documentation view with {len(areas)} area(s)")
        return DocumentationView(
            title=self.title or f"{model.name} {model.version}",
            version=model.version,
            api_prefix=model.api_prefix,
            areas=areas,
        )

    def service_view(
        self, model: ApiModel, service: Service, tree: Optional[ResourceTree] = None
    ) -> ServiceView:
        tree = tree or ResourceTree(model)
        node = tree.node_for(service.name)
        locators = []
        for locator in service.locators:
            child = tree.node_for(locator.service)
            locators.append(
                LocatorView(
                    name=locator.name,
                    service=locator.service,
                    anchor=anchor("service", locator.service),
                    path=child.display_path if child is not None else None,
                )
            )
        return ServiceView(
            name=service.name,
            anchor=anchor("service", service.name),
            area=service.area or GENERAL_AREA,
            path=node.display_path if node is not None else None,
            blocks=parse_doc(service.doc),
            operations=[
                self.operation_view(model, service, operation, tree)
                for operation in service.operations
            ],
            locators=locators,
            metadata=service.metadata,
        )

    def operation_view(
        self,
        model: ApiModel,
        service: Service,
        operation: Operation,
        tree: Optional[ResourceTree] = None,
    ) -> OperationView:
        tree = tree or ResourceTree(model)
        node = tree.node_for(service.name)
        endpoints = []
        if node is not None:
            endpoints.append(str(endpoint_for(node, operation)))

        return OperationView(
            service=service.name,
            name=operation.name,
            anchor=anchor("service", service.name, "method", operation.name),
            endpoints=endpoints,
            blocks=parse_doc(operation.doc),
            follow=operation.follow,
            parameters=[self._parameter_view(p) for p in operation.effective_parameters],
            summary=operation.summary(),
            signatures=[
                SignatureView(
                    name=signature.name,
                    anchor=anchor("service", service.name, "method", operation.name, signature.name),
                    blocks=parse_doc(signature.doc),
                    summary=operation.summary(signature.name),
                )
                for signature in operation.signatures
            ],
            metadata=operation.metadata,
        )

    def _parameter_view(self, parameter: Parameter) -> ParameterView:
        return ParameterView(
            name=parameter.name,
            type=parameter.type,
            direction=parameter.direction.value,
            blocks=parse_doc(parameter.doc),
            implicit=parameter is FOLLOW_PARAMETER,
        )
