"""Main CLI entry point for the Integration Toolkit."""

import argparse
import logging
import os
import sys

from integration_toolkit.core import (
    ApplyConfig,
    ConfigError,
    ApplyError,
    ResultArtifactError,
)
from integration_toolkit.core.apply import apply_scaffold
from integration_toolkit.core.testcases import (
    FailedTestCaseError,
    create_test_case_from_file,
    execute_all_test_cases,
    execute_test_case_file,
    resolve_version,
    validate_execute_inputs,
    validate_version_selector,
)
from integration_toolkit.client import APIError, build_clients

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    """Configure logging for the CLI."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )
    # Suppress httpx INFO logs for cleaner output
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _fail(message: str, args=None):
    print(f"Error: {message}", file=sys.stderr)
    if args is not None and getattr(args, "verbose", False):
        import traceback
        traceback.print_exc()
    sys.exit(1)


def _clients(args):
    """Build API clients from the global options."""
    return build_clients(args.proj, args.reg, args.token)


def config_from_args(args) -> ApplyConfig:
    """Build the run configuration from apply options."""
    return ApplyConfig(
        folder=args.folder,
        env=args.env,
        pipeline=args.pipeline,
        release=args.release,
        output_gcs_path=args.output_gcs_path,
        user_label=args.userlabel,
        service_account_name=args.sa,
        service_account_project=args.sp,
        encryption_key=args.encryption_keyid,
        grant_permission=args.grant_permission,
        create_secret=args.create_secret,
        wait=args.wait,
        skip_connectors=args.skip_connectors,
        skip_authconfigs=args.skip_authconfigs,
        use_underscore=args.use_underscore,
    )


def cmd_apply(args):
    """Handle the apply command."""
    try:
        config = config_from_args(args)
        config.validate()

        with _clients(args) as clients:
            report = apply_scaffold(config, clients)

        print(f"✓ Apply complete! Created {report.total_created} resources")
        for kind, count in report.created.items():
            if count:
                print(f"  {kind.value:18s} {count}")
        if report.published:
            print(
                f"  Published {report.published.integration_name} "
                f"version {report.published.version}"
            )

    except ResultArtifactError as e:
        _fail(f"Results file not written: {e}", args)
    except (ConfigError, ApplyError) as e:
        _fail(str(e), args)
    except APIError as e:
        if e.status_code:
            print(f"HTTP Status: {e.status_code}", file=sys.stderr)
        _fail(str(e), args)
    except Exception as e:
        _fail(f"Error during apply: {e}", args)


def cmd_testcase_create(args):
    """Handle the testcases create command."""
    try:
        with _clients(args) as clients:
            create_test_case_from_file(clients.integrations, args.name, args.ver, args.test_case_path)
        print(f"✓ Test case created for {args.name} version {args.ver}")
    except (ConfigError, APIError) as e:
        _fail(str(e), args)
    except Exception as e:
        _fail(f"Error creating test case: {e}", args)


def cmd_testcase_execute(args):
    """Handle the testcases execute command."""
    try:
        validate_version_selector(args.ver, args.user_label, args.snapshot)
        validate_execute_inputs(args.input_file, args.input_folder, args.test_case_id)

        with _clients(args) as clients:
            version = resolve_version(
                clients.integrations, args.name, args.ver, args.user_label, args.snapshot
            )
            if args.input_file:
                execute_test_case_file(
                    clients.integrations, args.name, version, args.test_case_id, args.input_file
                )
                print(f"✓ Test case {args.test_case_id} passed")
            else:
                executed = execute_all_test_cases(
                    clients.integrations, args.input_folder, args.name, version
                )
                print(f"✓ {len(executed)} test case(s) passed")

    except (FailedTestCaseError, ConfigError, APIError) as e:
        _fail(str(e), args)
    except Exception as e:
        _fail(f"Error executing test cases: {e}", args)


def cmd_zone_delete(args):
    """Handle the zones delete command."""
    try:
        with _clients(args) as clients:
            clients.connectors.delete_zone(args.name)
        print(f"✓ Managed zone {args.name} deleted")
    except (ConfigError, APIError) as e:
        _fail(str(e), args)
    except Exception as e:
        _fail(f"Error deleting managed zone: {e}", args)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="integration-toolkit",
        description="Apply and manage Application Integration resources",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument(
        "-p", "--proj",
        default=os.getenv("INTEGRATION_TOOLKIT_PROJECT", ""),
        help="Project id (or set INTEGRATION_TOOLKIT_PROJECT)",
    )
    parser.add_argument(
        "-r", "--reg",
        default=os.getenv("INTEGRATION_TOOLKIT_REGION", ""),
        help="Region (or set INTEGRATION_TOOLKIT_REGION)",
    )
    parser.add_argument(
        "-t", "--token",
        default=os.getenv("INTEGRATION_TOOLKIT_TOKEN", ""),
        help="Access token (or set INTEGRATION_TOOLKIT_TOKEN)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # Apply command
    apply_parser = subparsers.add_parser("apply", help="Apply configuration generated by scaffold to a region")
    apply_parser.add_argument("-f", "--folder", default="", help="Folder containing scaffolding configuration")
    apply_parser.add_argument("--pipeline", default="", help="Cloud Deploy Pipeline name")
    apply_parser.add_argument("--release", default="", help="Cloud Deploy Release name")
    apply_parser.add_argument(
        "--output-gcs-path",
        default="",
        help="Upload a file named results.json containing the results",
    )
    apply_parser.add_argument(
        "-g", "--grant-permission",
        action="store_true",
        help="Grant the service account permission to the GCP resource",
    )
    apply_parser.add_argument("-u", "--userlabel", default="", help="Integration version userlabel")
    apply_parser.add_argument("--sa", default="", help="Service Account name for the connection")
    apply_parser.add_argument("--sp", default="", help="Service Account Project for the connection")
    apply_parser.add_argument(
        "-k", "--encryption-keyid",
        default="",
        help="Cloud KMS key for decrypting secrets; Format = locations/*/keyRings/*/cryptoKeys/*",
    )
    apply_parser.add_argument("-e", "--env", default="", help="Environment name for the scaffolding")
    apply_parser.add_argument(
        "--create-secret",
        action="store_true",
        help="Create Secret Manager secrets when creating the connection",
    )
    apply_parser.add_argument(
        "--wait",
        action="store_true",
        help="Wait for the connector to finish, with success or error",
    )
    apply_parser.add_argument("--skip-connectors", action="store_true", help="Skip applying connector configuration")
    apply_parser.add_argument("--skip-authconfigs", action="store_true", help="Skip applying authconfigs configuration")
    apply_parser.add_argument(
        "--use-underscore",
        action="store_true",
        help="Use underscore as a file splitter; default is __",
    )
    apply_parser.set_defaults(func=cmd_apply)

    # Test case commands
    testcases_parser = subparsers.add_parser("testcases", help="Manage integration version test cases")
    testcases_sub = testcases_parser.add_subparsers(dest="testcases_command")

    create_parser = testcases_sub.add_parser("create", help="Create an integration flow version test case")
    create_parser.add_argument("-n", "--name", required=True, help="Integration flow name")
    create_parser.add_argument("--ver", required=True, help="Integration flow version")
    create_parser.add_argument(
        "-c", "--test-case-path",
        required=True,
        help="Path to a file containing the test case content",
    )
    create_parser.set_defaults(func=cmd_testcase_create)

    execute_parser = testcases_sub.add_parser("execute", help="Execute an integration flow version test case")
    execute_parser.add_argument("-n", "--name", required=True, help="Integration flow name")
    execute_parser.add_argument("--ver", default="", help="Integration flow version")
    execute_parser.add_argument("-u", "--user-label", default="", help="Integration flow user label")
    execute_parser.add_argument("-s", "--snapshot", default="", help="Integration flow snapshot number")
    execute_parser.add_argument("-c", "--test-case-id", default="", help="Test Case ID")
    execute_parser.add_argument("-f", "--input-file", default="", help="Path to a file containing input parameters")
    execute_parser.add_argument(
        "-d", "--input-folder",
        default="",
        help="Folder of input files; file names must match test case display names",
    )
    execute_parser.set_defaults(func=cmd_testcase_execute)

    # Managed zone commands
    zones_parser = subparsers.add_parser("zones", help="Manage managed zones")
    zones_sub = zones_parser.add_subparsers(dest="zones_command")

    delete_parser = zones_sub.add_parser("delete", help="Delete a managedzone configuration")
    delete_parser.add_argument("-n", "--name", required=True, help="The name of the managedzone")
    delete_parser.set_defaults(func=cmd_zone_delete)

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == "__main__":
    main()
