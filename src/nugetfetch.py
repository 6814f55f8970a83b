"""nuget-fetch - resolve NuGet packages and their dependencies, then download them.

    Returns:
        int: Exit code
"""
import logging
import sys

from constants import Constants, ConfigError, ExitCodes, load_config
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from args import parse_args
from download import ArtifactFetcher
from registry.nuget import NuGetClient
from versioning.errors import MetadataFetchError, ResolutionError
from versioning.parser import parse_root_token
from versioning.service import VersionResolutionService

logger = logging.getLogger(__name__)


def build_roots(tokens):
    """Turn CLI tokens into RootSpecs, exiting on malformed input."""
    roots = []
    for token in tokens:
        try:
            roots.append(parse_root_token(token))
        except ValueError as e:
            logging.error("%s", e)
            sys.exit(ExitCodes.FILE_ERROR.value)
    return roots


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    configure_logging(args.LOG_LEVEL, args.LOG_FILE, args.QUIET)

    try:
        load_config(args.CONFIG)
    except ConfigError as e:
        logging.error("%s", e)
        sys.exit(ExitCodes.FILE_ERROR.value)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action="main")
        )

    roots = build_roots(args.packages)
    client = NuGetClient(args.SOURCE or Constants.REGISTRY_URL_NUGET_V3)
    max_workers = args.MAX_WORKERS if args.MAX_WORKERS is not None else Constants.MAX_CONCURRENCY

    # RESOLVE
    try:
        resolved = VersionResolutionService(client, max_workers).resolve(roots)
    except ResolutionError as e:
        logging.error("%s", e)
        sys.exit(ExitCodes.RESOLUTION_ERROR.value)

    # FETCH
    fetcher = ArtifactFetcher(
        client,
        output=args.OUTPUT or Constants.OUTPUT_DIRECTORY,
        force=args.FORCE,
        dry_run=args.DRY_RUN,
    )
    try:
        fetcher.run(resolved.identities())
    except MetadataFetchError as e:
        logging.error("%s", e)
        sys.exit(ExitCodes.CONNECTION_ERROR.value)
    except OSError as e:
        logging.error("IO error: %s, aborting", e)
        sys.exit(ExitCodes.FILE_ERROR.value)

    sys.exit(ExitCodes.SUCCESS.value)


if __name__ == "__main__":
    main()
