"""Handlers for the commands that inspect or export the model."""

import json
from typing import Any, Dict

from rich.tree import Tree

from ovirt_api_model.application.services.model_validator import ModelValidator
from ovirt_api_model.cli.console import (
    print_error,
    print_info,
    print_raw,
    print_section,
    print_success,
    print_table,
    print_tree,
    print_warning,
)
from ovirt_api_model.domain.base.exceptions import SignatureNotFoundError
from ovirt_api_model.domain.resource_tree import ResourceNode, ResourceTree
from ovirt_api_model.infrastructure.logging.logger import get_logger
from ovirt_api_model.infrastructure.persistence.catalog_writer import (
    CatalogWriter,
    dump_json,
    dump_yaml,
    export_json_schema,
)
from ovirt_api_model.interface.command_context import CommandContext

logger = get_logger(__name__)

EXPORT_FORMATS = ("json", "yaml", "schema")


def handle_validate(args, context: CommandContext) -> Dict[str, Any]:
    """Validate the model and print every issue found."""
    model = context.model
    strict_docs = getattr(args, "strict_docs", False) or context.config.model.strict_docs
    report = ModelValidator(strict_docs=strict_docs).validate(model)

    if report.issues:
        print_table(
            f"{model.name} {model.version}",
            ["Severity", "Code", "Location", "Message"],
            [
                (issue.severity.value, issue.code, issue.location, issue.message)
                for issue in report.issues
            ],
        )

    if not report.is_valid:
        print_error(
            f"Model is invalid: {len(report.errors)} error(s), {len(report.warnings)} warning(s)"
        )
        return {"status": "error", **report.to_dict()}

    if report.warnings:
        print_warning(f"Model is valid with {len(report.warnings)} warning(s)")
    else:
        print_success(f"Model is valid: {len(model.services)} service(s)")
    return {"status": "success", **report.to_dict()}


def _node_label(node: ResourceNode) -> str:
    if node.locator is None:
        segment = "/"
    else:
        segment = "/".join(node.locator.path_segments)
    operations = ", ".join(operation.name for operation in node.service.operations)
    label = f"[bold]{segment}[/bold] {node.service.name}"
    return f"{label} [dim]({operations})[/dim]" if operations else label


def _add_children(branch: Tree, node: ResourceNode) -> None:
    for child in node.children:
        _add_children(branch.add(_node_label(child)), child)


def handle_tree(args, context: CommandContext) -> Dict[str, Any]:
    """Print the resource tree reachable from the root service."""
    tree = ResourceTree(context.model)
    for problem in tree.problems:
        print_warning(f"{problem.kind}: {problem.detail}")
    if tree.root is None:
        print_error(f"Root service '{context.model.root}' is not declared")
        return {"status": "error", "nodes": 0}

    rich_tree = Tree(f"{context.model.api_prefix} {_node_label(tree.root)}")
    _add_children(rich_tree, tree.root)
    print_tree(rich_tree)
    return {"status": "success", "nodes": len(tree.nodes)}


def handle_endpoints(args, context: CommandContext) -> Dict[str, Any]:
    model = context.model
    endpoints = ResourceTree(model).endpoints()
    print_table(
        f"Endpoints of {model.name} {model.version}",
        ["Method", "Path", "Service", "Operation"],
        [
            (endpoint.method.value, endpoint.url(model.api_prefix), endpoint.service, endpoint.operation)
            for endpoint in endpoints
        ],
    )
    return {"status": "success", "endpoints": [str(endpoint) for endpoint in endpoints]}


def handle_describe(args, context: CommandContext) -> Dict[str, Any]:
    """Describe one operation, optionally through one of its signatures."""
    model = context.model
    operation = model.get_operation(args.service, args.operation)
    signature = getattr(args, "signature", None)
    if signature and operation.get_signature(signature) is None:
        raise SignatureNotFoundError(args.operation, signature, service_name=args.service)

    title = f"{args.service}.{operation.name}" + (f".{signature}" if signature else "")
    print_section(title)
    for endpoint in ResourceTree(model).endpoints_for(args.service):
        if endpoint.operation == operation.name:
            print_info(f"{endpoint.method.value} {endpoint.url(model.api_prefix)}")

    print_table(
        "Parameters",
        ["Name", "Type", "Direction"],
        [(p.name, p.type, p.direction.value) for p in operation.effective_parameters],
    )

    summary = operation.summary(signature)
    if summary.mandatory:
        print_info(f"Mandatory: {', '.join(summary.mandatory)}")
    for group in summary.alternatives:
        print_info(f"One of ({group.requiredness.value}): {' | '.join(group.choices)}")
    if summary.optional:
        print_info(f"Optional: {', '.join(summary.optional)}")
    if summary.is_empty:
        print_info("No input detail declared")

    return {
        "status": "success",
        "service": args.service,
        "operation": operation.name,
        "signature": signature,
        "summary": summary.model_dump(mode="json"),
    }


def handle_export(args, context: CommandContext) -> Dict[str, Any]:
    """Export the model or its JSON Schema, to a file or to stdout."""
    export_format = args.format
    output = getattr(args, "output", None)

    if output:
        writer = CatalogWriter()
        if export_format == "json":
            path = writer.write_json(context.model, output)
        elif export_format == "yaml":
            path = writer.write_yaml(context.model, output)
        else:
            path = writer.write_schema(output)
        print_success(f"Exported {export_format} to {path}")
        return {"status": "success", "format": export_format, "output": str(path)}

    if export_format == "json":
        text = dump_json(context.model)
    elif export_format == "yaml":
        text = dump_yaml(context.model)
    else:
        text = json.dumps(export_json_schema(), indent=2) + "\n"
    print_raw(text)
    logger.debug(f"Exported {export_format} to stdout")
    return {"status": "success", "format": export_format, "output": None}
