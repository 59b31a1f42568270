"""Argument parsing functionality for pkgreleases."""

import argparse


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="pkgreleases",
        description=(
            "pkgreleases - List the releases of Maven-layout packages across registries"
        ),
        add_help=True,
    )

    input_group = parser.add_mutually_exclusive_group(required=True)
    input_group.add_argument("-l", "--load_list",
                        dest="LIST_FROM_FILE",
                        help="Load a list of group:artifact coordinates from a file",
                        action="append", type=str)
    input_group.add_argument("-p", "--package",
                            dest="SINGLE",
                            help="Name a single group:artifact package.",
                            action="append", type=str)

    parser.add_argument("-r", "--registry",
                        dest="REGISTRIES",
                        help="Registry base URL; repeat in priority order (default: Maven Central)",
                        action="append", type=str,
                        default=[])
    parser.add_argument("-o", "--output",
                        dest="OUTPUT",
                        help="Path to JSON output file",
                        action="store",
                        type=str)
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to YAML config file",
                        action="store",
                        type=str)
    parser.add_argument("--no-probe",
                        dest="NO_PROBE",
                        help="Skip per-version HEAD probes (no release timestamps).",
                        action="store_true")
    parser.add_argument("--timeout",
                        dest="TIMEOUT",
                        help="HTTP request timeout in seconds",
                        action="store",
                        type=int)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default='INFO')
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)
    parser.add_argument("-q", "--quiet",
                        dest="QUIET",
                        help="Do not output to console.",
                        action="store_true")

    return parser.parse_args(argv)
