# src/flashbuild/cli.py

import argparse
import os
import sys
from pathlib import Path
from typing import Any, Mapping, Optional

import platformdirs
from pick import pick

from flashbuild import log_utils
from flashbuild.buildtypes import resolve_build_plan
from flashbuild.config import load_config
from flashbuild.constants import (
    ANDROID_DIR_NAME,
    APP_MODULE_DIR_NAME,
    BUILD_TYPE_DEBUG,
    DIST_DIR_NAME,
    KEY_PROPERTIES_FILE,
)
from flashbuild.exceptions import ConfigurationError, FlashbuildError
from flashbuild.gradle import GradleBuilder
from flashbuild.signing import load_signing_profile


def _print_mapping(title: str, values: Mapping[str, Any]) -> None:
    print(title)
    for key, value in values.items():
        if isinstance(value, Mapping):
            print(f"  {key}:")
            for sub_key, sub_value in value.items():
                print(f"    {sub_key}: {sub_value}")
        else:
            print(f"  {key}: {value}")


def _select_build_type(choices) -> str:
    """
    Ask for a build type on a terminal, defaulting to debug otherwise.
    """
    if not sys.stdin.isatty():
        return BUILD_TYPE_DEBUG
    options = sorted(choices)
    option, _index = pick(options, "Select the build type (press ENTER to confirm):")
    return option


def _handle_signing(args: argparse.Namespace) -> int:
    if args.properties:
        profile = load_signing_profile(args.properties)
    else:
        # Same base for a relative storeFile as the release build uses
        android_dir = os.path.join(args.project_dir, ANDROID_DIR_NAME)
        profile = load_signing_profile(
            os.path.join(android_dir, KEY_PROPERTIES_FILE),
            project_root=os.path.join(android_dir, APP_MODULE_DIR_NAME),
        )
    _print_mapping("Signing profile:", profile.describe())
    return 0


def _handle_config(args: argparse.Namespace) -> int:
    config = load_config(args.project_dir, args.config)
    _print_mapping("Build configuration:", config.describe())
    return 0


def _handle_plan(args: argparse.Namespace) -> int:
    config = load_config(args.project_dir, args.config)
    plan = resolve_build_plan(args.build_type, config, args.project_dir)
    _print_mapping("Build plan:", plan.describe())
    return 0


def _handle_build(args: argparse.Namespace) -> int:
    config = load_config(args.project_dir, args.config)
    build_type = args.build_type or _select_build_type(config.build_types)
    plan = resolve_build_plan(build_type, config, args.project_dir)

    dist_dir = args.dist or os.path.join(args.project_dir, DIST_DIR_NAME)
    result = GradleBuilder(sdk_root=args.sdk_root).build(plan, dist_dir)
    if not result.success:
        log_utils.logger.error(result.message)
        return 1
    log_utils.logger.info(result.message)
    return 0


_HANDLERS = {
    "signing": _handle_signing,
    "config": _handle_config,
    "plan": _handle_plan,
    "build": _handle_build,
}


def _common_options() -> argparse.ArgumentParser:
    """
    Options accepted both before and after the subcommand name.

    Defaults are suppressed so a value given after the subcommand is not
    overwritten; main() fills in the real defaults.
    """
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--log-level",
        default=argparse.SUPPRESS,
        help="Console log level (DEBUG, INFO, WARNING, ERROR)",
    )
    common.add_argument(
        "--log-file",
        action="store_true",
        default=argparse.SUPPRESS,
        help="Also write flashbuild.log to the user log directory",
    )
    common.add_argument(
        "--project-dir",
        default=argparse.SUPPRESS,
        help="Flutter project directory (default: current directory)",
    )
    common.add_argument(
        "--config",
        default=argparse.SUPPRESS,
        help="Path to a flashbuild.yaml file (default: project, then user config)",
    )
    return common


def build_parser() -> argparse.ArgumentParser:
    common = _common_options()
    parser = argparse.ArgumentParser(
        prog="flashbuild",
        description="Flashbuild - release build helper for the Flutter flashlight app",
        parents=[common],
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    signing_parser = subparsers.add_parser(
        "signing", help="Show the resolved signing profile", parents=[common]
    )
    signing_parser.add_argument(
        "--properties",
        help="Signing properties file (default: android/key.properties)",
    )

    subparsers.add_parser(
        "config", help="Show the resolved build configuration", parents=[common]
    )

    plan_parser = subparsers.add_parser(
        "plan",
        help="Show what a build type would do without building",
        parents=[common],
    )
    plan_parser.add_argument("build_type", metavar="BUILD_TYPE")

    build_cmd_parser = subparsers.add_parser(
        "build", help="Build and copy an APK", parents=[common]
    )
    build_cmd_parser.add_argument("build_type", metavar="BUILD_TYPE", nargs="?")
    build_cmd_parser.add_argument(
        "--dist", help="Directory for the built APK (default: <project>/dist)"
    )
    build_cmd_parser.add_argument(
        "--sdk-root", help="Android SDK root (default: ANDROID_SDK_ROOT/ANDROID_HOME)"
    )

    return parser


def main(argv: Optional[list] = None) -> None:
    """
    Entry point for the Flashbuild command-line interface.

    Dispatches the signing, config, plan and build subcommands and exits with
    status 1 when signing properties are incomplete, a file cannot be read,
    or the build fails.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    args.project_dir = os.path.abspath(
        os.path.expanduser(getattr(args, "project_dir", None) or os.getcwd())
    )
    args.config = getattr(args, "config", None)
    log_level = getattr(args, "log_level", None)

    if log_level:
        log_utils.set_log_level(log_level)
    if getattr(args, "log_file", False):
        log_dir = Path(platformdirs.user_log_dir("flashbuild"))
        log_utils.add_file_logging(log_dir, log_level or "INFO")

    try:
        exit_code = _HANDLERS[args.command](args)
    except ConfigurationError as exc:
        log_utils.logger.error(f"Configuration error: {exc}")
        exit_code = 1
    except FlashbuildError as exc:
        log_utils.logger.error(str(exc))
        exit_code = 1
    except OSError as exc:
        log_utils.logger.error(f"I/O error: {exc}")
        exit_code = 1

    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
