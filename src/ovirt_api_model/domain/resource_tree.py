"""Resource tree built by following locators from the root service."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ovirt_api_model.domain.declarations import ApiModel, HttpMethod, Locator, Operation, Service


@dataclass(eq=False)
class ResourceNode:
    """A service placed in the tree, with the path template that reaches it."""

    service: Service
    path: str
    locator: Optional[Locator] = None
    parent: Optional[ResourceNode] = None
    children: list[ResourceNode] = field(default_factory=list)

    @property
    def depth(self) -> int:
        return 0 if self.parent is None else self.parent.depth + 1

    @property
    def display_path(self) -> str:
        return self.path or "/"

    def child_by_segment(self, segment: str) -> Optional[ResourceNode]:
        return next(
            (
                child
                for child in self.children
                if child.locator is not None
                and not child.locator.is_parameterized
                and child.locator.name == segment
            ),
            None,
        )

    def parameterized_child(self) -> Optional[ResourceNode]:
        return next(
            (
                child
                for child in self.children
                if child.locator is not None and child.locator.is_parameterized
            ),
            None,
        )


@dataclass(frozen=True)
class Endpoint:
    """HTTP method and path template of one operation."""

    method: HttpMethod
    path: str
    service: str
    operation: str

    def url(self, api_prefix: str = "") -> str:
        return f"{api_prefix}{self.path}"

    def __str__(self) -> str:
        return f"{self.method.value} {self.path}"


@dataclass(frozen=True)
class TreeProblem:
    """Structural problem found while building the tree."""

    kind: str
    service: str
    path: str
    detail: str


@dataclass(frozen=True)
class PathResolution:
    """Result of resolving a concrete request path against the tree."""

    node: ResourceNode
    action: Optional[Operation] = None
    values: tuple[tuple[str, str], ...] = ()


def endpoint_for(node: ResourceNode, operation: Operation) -> Endpoint:
    path = f"{node.path}/{operation.action_segment}" if operation.is_action else node.display_path
    return Endpoint(
        method=operation.http_method,
        path=path,
        service=node.service.name,
        operation=operation.name,
    )


class ResourceTree:
    """Tree of services reachable from the model root.

    A service reachable through more than one path, or from itself, is
    recorded as a problem and visited only once so the tree stays finite.
    """

    def __init__(self, model: ApiModel) -> None:
        self.model = model
        self.root: Optional[ResourceNode] = None
        self.problems: list[TreeProblem] = []
        self._nodes: dict[str, ResourceNode] = {}
        self._build()

    def _build(self) -> None:
        root_service = self.model.find_service(self.model.root)
        if root_service is None:
            self.problems.append(
                TreeProblem(
                    kind="unknown-service",
                    service=self.model.root,
                    path="/",
                    detail=f"Root service '{self.model.root}' is not declared",
                )
            )
            return
        self.root = ResourceNode(service=root_service, path="")
        self._nodes[root_service.name] = self.root
        self._visit(self.root, (root_service.name,))

    def _visit(self, node: ResourceNode, ancestors: tuple[str, ...]) -> None:
        for locator in node.service.locators:
            path = "/".join([node.path, *locator.path_segments])
            target = self.model.find_service(locator.service)
            if target is None:
                self.problems.append(
                    TreeProblem(
                        kind="unknown-service",
                        service=locator.service,
                        path=path,
                        detail=(
                            f"Locator '{node.service.name}.{locator.name}' references "
                            f"undeclared service '{locator.service}'"
                        ),
                    )
                )
                continue
            if target.name in ancestors:
                self.problems.append(
                    TreeProblem(
                        kind="cycle",
                        service=target.name,
                        path=path,
                        detail=f"Service '{target.name}' is reachable from itself via {path}",
                    )
                )
                continue
            existing = self._nodes.get(target.name)
            if existing is not None:
                self.problems.append(
                    TreeProblem(
                        kind="duplicate-path",
                        service=target.name,
                        path=path,
                        detail=(
                            f"Service '{target.name}' is reachable by {existing.display_path} "
                            f"and by {path}"
                        ),
                    )
                )
                continue
            child = ResourceNode(service=target, path=path, locator=locator, parent=node)
            node.children.append(child)
            self._nodes[target.name] = child
            self._visit(child, (*ancestors, target.name))

    @property
    def nodes(self) -> list[ResourceNode]:
        """Nodes in depth-first order."""
        result: list[ResourceNode] = []
        stack = [self.root] if self.root else []
        while stack:
            node = stack.pop()
            result.append(node)
            stack.extend(reversed(node.children))
        return result

    def node_for(self, service_name: str) -> Optional[ResourceNode]:
        return self._nodes.get(service_name)

    def unreachable_services(self) -> list[str]:
        return [name for name in self.model.service_names if name not in self._nodes]

    def endpoints(self) -> list[Endpoint]:
        return [
            endpoint_for(node, operation)
            for node in self.nodes
            for operation in node.service.operations
        ]

    def endpoints_for(self, service_name: str) -> list[Endpoint]:
        node = self.node_for(service_name)
        if node is None:
            return []
        return [endpoint_for(node, operation) for operation in node.service.operations]

    def resolve_path(self, path: str) -> Optional[PathResolution]:
        """Resolve a concrete path such as ``/ovirt-engine/api/hosts/123``.

        The API prefix is optional and query strings are ignored. Returns
        ``None`` when the path does not reach a declared resource.
        """
        if self.root is None:
            return None
        path = path.split("#", 1)[0].split("?", 1)[0]
        prefix = self.model.api_prefix
        if prefix and (path == prefix or path.startswith(prefix + "/")):
            path = path[len(prefix):]
        segments = [segment for segment in path.split("/") if segment]

        node = self.root
        values: list[tuple[str, str]] = []
        index = 0
        while index < len(segments):
            segment = segments[index]
            child = node.child_by_segment(segment)
            if child is not None:
                node = child
                index += 1
                continue
            if index == len(segments) - 1:
                action = node.service.find_action(segment)
                if action is not None:
                    return PathResolution(node=node, action=action, values=tuple(values))
            child = node.parameterized_child()
            if child is None:
                return None
            names = [parameter.name for parameter in child.locator.parameters]
            if index + len(names) > len(segments):
                return None
            for name in names:
                values.append((f"{child.locator.name}:{name}", segments[index]))
                index += 1
            node = child
        return PathResolution(node=node, values=tuple(values))
