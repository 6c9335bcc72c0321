"""Main module entrypoint for local runtime execution.

This module validates startup configuration and launches the API service or
runs one operational command.
"""

import argparse

import uvicorn

from shipyard.bootstrap import bootstrap_create_application, bootstrap_create_registry
from shipyard.config import config_load_settings, config_setup_logging
from shipyard.db import db_create_engine
from shipyard.domain import ShipyardError, domain_build_request_context


def main() -> None:
    """Run selected runtime command with validated startup configuration.

    Raises:
        SettingsLoadError: Raised when configuration validation fails.
    """

    argument_parser = argparse.ArgumentParser(description="Shipyard control plane runtime entrypoint")
    argument_parser.add_argument(
        "command",
        nargs="?",
        default="api",
        choices=("api", "app-status"),
        help="Runtime command: `api` starts server, `app-status` prints the live status of one application",
        type=str,
    )
    argument_parser.add_argument("--org", dest="organization", type=str, help="Organization for `app-status`")
    argument_parser.add_argument("--app", dest="application_name", type=str, help="Application for `app-status`")
    parsed_arguments = argument_parser.parse_args()

    if parsed_arguments.command == "app-status":
        if not parsed_arguments.organization or not parsed_arguments.application_name:
            argument_parser.error("`app-status` requires --org and --app")
        main_print_application_status(parsed_arguments.organization, parsed_arguments.application_name)
        return

    settings = config_load_settings()
    application = bootstrap_create_application()
    uvicorn.run(
        application,
        host=settings.application_host,
        port=settings.application_port,
        log_level=settings.log_level.lower(),
    )


def main_print_application_status(organization: str, application_name: str) -> None:
    """Print `<organization>/<application> <ready>/<desired>` for one application.

    Args:
        organization: Organization name.
        application_name: Application name.

    Raises:
        SystemExit: Raised with code 1 when the lookup fails.
    """

    settings = config_load_settings()
    config_setup_logging(settings.log_level)
    engine = db_create_engine(database_url=settings.database_url)
    registry = bootstrap_create_registry(settings=settings, engine=engine)
    context = domain_build_request_context(origin="cli app-status")
    try:
        snapshot = registry.registry_get_application(context, organization, application_name)
    except ShipyardError as error:
        print(f"{error.status} {error.title}" + (f": {error.details}" if error.details else ""))
        raise SystemExit(1) from error
    print(f"{organization}/{application_name} {snapshot.status}")


if __name__ == "__main__":
    main()
