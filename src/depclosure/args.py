"""Argument parsing functionality for depclosure."""

import argparse

from .constants import Constants


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="depclosure",
        description="Resolve and download the transitive compile/runtime closure of a Maven artifact",
        add_help=True,
    )

    parser.add_argument("coordinate",
                        help="Root artifact as group:artifact:version[:classifier][@extension]")
    parser.add_argument("--classifier",
                        dest="CLASSIFIER",
                        help="Classifier of the root artifact (overrides one embedded in the coordinate)",
                        action="store", type=str)
    parser.add_argument("-r", "--repository",
                        dest="REPOSITORIES",
                        help=f"Repository URL, tried in the order given (default: {Constants.MAVEN_CENTRAL_URL})",
                        action="append", type=str,
                        default=[])
    parser.add_argument("-C", "--cache-dir",
                        dest="CACHE_DIR",
                        help="Local artifact cache directory (default: ./.depclosure)",
                        action="store", type=str,
                        default=".depclosure")
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to YAML configuration file",
                        action="store", type=str)
    parser.add_argument("-j", "--workers",
                        dest="MAX_WORKERS",
                        help="Maximum concurrent fetches",
                        action="store", type=int)
    parser.add_argument("--retries",
                        dest="RETRY_ATTEMPTS",
                        help="Attempts per repository for transient failures",
                        action="store", type=int)
    parser.add_argument("--timeout",
                        dest="REQUEST_TIMEOUT",
                        help="HTTP request timeout in seconds",
                        action="store", type=float)
    parser.add_argument("--lenient",
                        dest="LENIENT",
                        help="Skip unresolvable transitive dependencies instead of failing",
                        action="store_true")
    parser.add_argument("-o", "--output",
                        dest="OUTPUT",
                        help="Path to output file (JSON or CSV); stdout when omitted",
                        action="store", type=str)
    parser.add_argument("-f", "--format",
                        dest="OUTPUT_FORMAT",
                        help="Output format (json or csv). If not specified, inferred from --output extension; defaults to json.",
                        action="store",
                        type=str.lower,
                        choices=["json", "csv"])
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help=f"Set the logging level (default: ${Constants.ENV_LOG_LEVEL} or INFO)",
                        action="store",
                        type=str,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])

    return parser.parse_args(argv)
