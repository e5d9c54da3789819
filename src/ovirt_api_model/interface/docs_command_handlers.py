"""Handlers for generating and publishing the HTML reference."""

from typing import Any, Dict

from ovirt_api_model.application.services.documentation_service import DocumentationService
from ovirt_api_model.application.services.model_validator import ModelValidator
from ovirt_api_model.cli.console import print_info, print_success, print_warning
from ovirt_api_model.infrastructure.publishing.gh_pages_publisher import GhPagesPublisher
from ovirt_api_model.infrastructure.rendering.html_renderer import HtmlRenderer
from ovirt_api_model.interface.command_context import CommandContext


def handle_docs(args, context: CommandContext) -> Dict[str, Any]:
    """Validate the model, then render the HTML reference.

    Validation errors abort generation with ``ModelValidationError``.
    """
    model = context.model
    report = ModelValidator(strict_docs=context.config.model.strict_docs).validate(model)
    report.raise_for_errors()
    for issue in report.warnings:
        print_warning(str(issue))

    output = getattr(args, "output", None) or context.config.docs.output_file
    view = DocumentationService(title=context.config.docs.title).build(model)
    path = HtmlRenderer().write(view, output)
    print_success(f"Documentation written to {path}")
    return {"status": "success", "output": str(path), "warnings": len(report.warnings)}


def handle_publish(args, context: CommandContext) -> Dict[str, Any]:
    publisher = GhPagesPublisher(
        context.config.publish,
        source_file=context.config.docs.output_file,
        dry_run=args.dry_run,
    )
    if args.dry_run:
        print_info("Dry run: commands are logged, not executed")
    destination = publisher.publish(args.target)
    print_success(f"Published {args.target} documentation to {destination}")
    return {"status": "success", "target": args.target, "destination": str(destination)}
