"""Command-line entry point."""

import argparse
import sys
from typing import Optional, Sequence

from ovirt_api_model import __version__
from ovirt_api_model.cli.console import print_error
from ovirt_api_model.config.manager import ConfigurationManager
from ovirt_api_model.config.schemas.app_schema import LoggingConfig
from ovirt_api_model.domain.base.exceptions import ApiModelError
from ovirt_api_model.infrastructure.logging.logger import get_logger, setup_logging
from ovirt_api_model.infrastructure.publishing.gh_pages_publisher import PublishTarget
from ovirt_api_model.interface.command_context import CommandContext
from ovirt_api_model.interface.docs_command_handlers import handle_docs, handle_publish
from ovirt_api_model.interface.model_command_handlers import (
    EXPORT_FORMATS,
    handle_describe,
    handle_endpoints,
    handle_export,
    handle_tree,
    handle_validate,
)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ovirt-api-model",
        description="Validate, document and publish the oVirt Engine API model",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", help="Configuration file (YAML, JSON or TOML)")
    parser.add_argument("--catalog", help="Catalogue directory or single model document")
    parser.add_argument(
        "--log-level", type=str.upper, choices=LOG_LEVELS, help="Override the configured log level"
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    validate = subparsers.add_parser("validate", help="Check the model for structural errors")
    validate.add_argument(
        "--strict-docs", action="store_true", help="Warn about undocumented services and operations"
    )
    validate.set_defaults(handler=handle_validate)

    tree = subparsers.add_parser("tree", help="Print the resource tree")
    tree.set_defaults(handler=handle_tree)

    endpoints = subparsers.add_parser("endpoints", help="List every HTTP endpoint")
    endpoints.set_defaults(handler=handle_endpoints)

    describe = subparsers.add_parser("describe", help="Describe one operation")
    describe.add_argument("service", help="Service name, e.g. Hosts")
    describe.add_argument("operation", help="Operation name, e.g. Add")
    describe.add_argument("--signature", help="Describe the operation through this signature")
    describe.set_defaults(handler=handle_describe)

    export = subparsers.add_parser("export", help="Export the model or its JSON Schema")
    export.add_argument("--format", choices=EXPORT_FORMATS, default="json", help="Output format")
    export.add_argument("--output", help="Write to this file instead of stdout")
    export.set_defaults(handler=handle_export)

    docs = subparsers.add_parser("docs", help="Validate the model and render the HTML reference")
    docs.add_argument("--output", help="HTML file to write (defaults to the configured path)")
    docs.set_defaults(handler=handle_docs)

    publish = subparsers.add_parser("publish", help="Publish the rendered HTML reference")
    publish.add_argument(
        "target", choices=[target.value for target in PublishTarget], help="Where to publish"
    )
    publish.add_argument(
        "--dry-run", action="store_true", help="Log the commands without running them"
    )
    publish.set_defaults(handler=handle_publish)

    return parser


def _print_api_error(error: ApiModelError) -> None:
    print_error(f"Error: {error.message}")
    for issue in error.details.get("issues", []):
        print_error(f"  {issue}")
    for problem in error.details.get("errors", []):
        print_error(f"  {problem}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Run one command and return the process exit status.

    :param argv: Arguments without the program name; ``sys.argv`` when omitted.
    :return: 0 on success, 1 on any failure.
    """
    args = build_parser().parse_args(argv)
    logger = get_logger(__name__)
    # stderr defaults until the configured handlers replace them
    setup_logging(LoggingConfig(level=args.log_level or "INFO"))

    try:
        config = ConfigurationManager(args.config).load()
        if args.log_level:
            config.logging.level = args.log_level
        setup_logging(config.logging)

        context = CommandContext(config, catalog_path=args.catalog)
        result = args.handler(args, context)
    except ApiModelError as e:
        logger.error(f"{e.__class__.__name__}: {e.message}")
        _print_api_error(e)
        return 1
    except Exception as e:
        logger.error(f"Unexpected error running '{args.command}': {e}", exc_info=True)
        print_error(f"Unexpected error: {e}")
        return 1

    return 0 if result.get("status") == "success" else 1


def cli_main() -> None:
    """Entry point function for console scripts."""
    sys.exit(main())


if __name__ == "__main__":
    cli_main()
