"""pkgreleases - List the releases of Maven-layout packages across registries.

    Resolves every requested ``group:artifact`` against the configured
    registries in priority order and prints the merged releases as JSON.

    Returns:
        int: Exit code
"""
import json
import logging
import os
import sys
from typing import Dict, List, Optional

from constants import ExitCodes, Constants
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from cli_config import load_runtime_config
from args import parse_args
from registry.maven import PackageIdentity, ReleaseResult, resolve_package_releases

logger = logging.getLogger(__name__)


def load_pkgs_file(file_name):
    """Loads the packages from a file.

    Blank lines and lines starting with ``#`` are skipped.

    Args:
        file_name (str): File path containing the list of packages.

    Returns:
        list: List of packages
    """
    try:
        with open(file_name, encoding='utf-8') as file:
            return [
                line.strip() for line in file
                if line.strip() and not line.strip().startswith("#")
            ]
    except FileNotFoundError as e:
        logging.error("File not found: %s, aborting", e)
        sys.exit(ExitCodes.FILE_ERROR.value)
    except IOError as e:
        logging.error("IO error: %s, aborting", e)
        sys.exit(ExitCodes.FILE_ERROR.value)


def build_pkglist(args) -> List[str]:
    """Collect coordinates from -p and -l, de-duplicated in input order."""
    coords: List[str] = []
    for name in getattr(args, "SINGLE", None) or []:
        coords.append(name.strip())
    for path in getattr(args, "LIST_FROM_FILE", None) or []:
        coords.extend(load_pkgs_file(path))
    return list(dict.fromkeys(c for c in coords if c))


def resolve_all(coords, registries, *, auth_lookup=None, transport=None) -> Dict[str, Optional[ReleaseResult]]:
    """Resolve each coordinate; malformed coordinates map to None with an error log."""
    results: Dict[str, Optional[ReleaseResult]] = {}
    for coord in coords:
        try:
            identity = PackageIdentity.parse(coord)
        except ValueError as e:
            logging.error("Skipping invalid coordinate: %s", e)
            results[coord] = None
            continue
        results[coord] = resolve_package_releases(
            identity,
            registries,
            transport=transport,
            auth_lookup=auth_lookup,
        )
    return results


def to_json_payload(results: Dict[str, Optional[ReleaseResult]]) -> Dict[str, Optional[dict]]:
    """Convert resolution results into a JSON-ready mapping."""
    return {coord: (res.to_dict() if res is not None else None) for coord, res in results.items()}


def export_json(results, path):
    """Exports the resolution results to a JSON file.

    Args:
        results (dict): Mapping of coordinate to ReleaseResult or None.
        path (str): File path to export the JSON.
    """
    try:
        with open(path, 'w', encoding='utf-8') as file:
            json.dump(to_json_payload(results), file, ensure_ascii=False, indent=4)
        logging.info("JSON file has been successfully exported at: %s", path)
    except OSError as e:
        logging.error("JSON file couldn't be written to disk: %s", e)
        sys.exit(ExitCodes.FILE_ERROR.value)


def _setup_logging(args) -> None:
    """Configure logging from --loglevel and --logfile."""
    if getattr(args, "LOG_LEVEL", None):
        os.environ[Constants.ENV_LOG_LEVEL] = str(args.LOG_LEVEL).upper()
    configure_logging()

    log_file = getattr(args, "LOG_FILE", None)
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s"
        ))
        logging.getLogger().addHandler(file_handler)
        logger.info("Logging to file: %s", log_file)


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    _setup_logging(args)

    host_rules = load_runtime_config(args)
    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(
                event="function_entry", component="cli", action="main",
                count=len(host_rules)
            )
        )

    pkglist = build_pkglist(args)
    if not pkglist:
        logging.warning("No packages found in the input list.")
        sys.exit(ExitCodes.SUCCESS.value)

    registries = args.REGISTRIES or list(Constants.DEFAULT_REGISTRY_URLS)
    results = resolve_all(pkglist, registries, auth_lookup=host_rules.auth_for)

    if args.OUTPUT:
        export_json(results, args.OUTPUT)
    if not args.QUIET:
        sys.stdout.write(json.dumps(to_json_payload(results), indent=2) + "\n")

    missing = [coord for coord, res in results.items() if res is None]
    if missing:
        logging.warning("No releases found for: %s", ", ".join(missing))
        sys.exit(ExitCodes.NO_RELEASES.value)
    sys.exit(ExitCodes.SUCCESS.value)


if __name__ == "__main__":
    main()
