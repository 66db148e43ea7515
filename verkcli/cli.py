# verkcli/cli.py
"""
verkcli: command-line entry point.
Builds the argparse tree from commands/*, applies global flags and maps
errors to exit codes.

Usage: verkcli [global flags] COMMAND ...
       verkcli cameras index build
       verkcli cameras search "north door" --output json
"""

import argparse
import sys

from verkcli import __version__
from verkcli.commands import cameras, config, request
from verkcli.exceptions import VerkcliError
from verkcli.utils.logger import get_logger, set_log_level

logger = get_logger(__name__)


def _add_global_flags(parser: argparse.ArgumentParser, suppress: bool):
    """
    Global flags live on the root parser and are repeated (with suppressed
    defaults) on every group and leaf so they may appear at any level.
    """
    def default(value):
        return argparse.SUPPRESS if suppress else value

    parser.add_argument("--config", default=default(None), help="Config file path")
    parser.add_argument("--profile", default=default(None), help="Profile name")
    parser.add_argument("--base-url", default=default(None), help="API base URL, e.g. https://api.verkada.com")
    parser.add_argument("--org-id", default=default(None), help="Organization ID")
    parser.add_argument("--api-key", default=default(None), help="API key (x-api-key)")
    parser.add_argument("--token", default=default(None), help="API token (x-verkada-auth)")
    parser.add_argument("--output", choices=["text", "json"], default=default("text"), help="Output format")
    parser.add_argument("--debug", action="store_true", default=default(False), help="Log HTTP calls and internals to stderr")
    parser.add_argument("-H", "--header", action="append", default=default([]),
                        help="Extra request header 'Key: Value' (repeatable)")


def cmd_version(args) -> int:
    print(f"verkcli {__version__}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="verkcli", description="Camera management CLI with a local search index")
    _add_global_flags(parser, suppress=False)

    common = argparse.ArgumentParser(add_help=False)
    _add_global_flags(common, suppress=True)
    parents = [common]

    sub = parser.add_subparsers(dest="command", required=True)
    p = sub.add_parser("version", parents=parents, help="Print the version")
    p.set_defaults(func=cmd_version)

    config.register(sub, parents)
    cameras.register(sub, parents)
    request.register(sub, parents)
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.debug:
        set_log_level("DEBUG")

    try:
        return args.func(args)
    except (VerkcliError, OSError) as e:
        sys.stderr.write(f"error: {e}\n")
        return 1
    except KeyboardInterrupt:
        return 130
    except Exception as e:
        logger.error(f"❌ Unexpected error in '{args.command}': {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
