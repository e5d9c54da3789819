"""Allow ``python -m ovirt_api_model``."""

from ovirt_api_model.cli.main import cli_main

if __name__ == "__main__":
    cli_main()
