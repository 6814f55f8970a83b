"""Argument parsing functionality for nuget-fetch."""

import argparse


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="nugetfetch",
        description="Download NuGet packages and their resolved dependencies",
        add_help=True,
    )

    parser.add_argument("packages",
                        metavar="PACKAGE",
                        help="One or more package ids with optional version, "
                             "e.g. Newtonsoft.Json:13.0.1 or Autofac",
                        nargs="+",
                        type=str)
    parser.add_argument("-o", "--output",
                        dest="OUTPUT",
                        help="Saving folder path, defaults to working directory",
                        action="store",
                        type=str)
    parser.add_argument("-f", "--force",
                        dest="FORCE",
                        help="Download and update existing packages",
                        action="store_true")
    parser.add_argument("--dry-run",
                        dest="DRY_RUN",
                        help="Display what will happen without actually downloading",
                        action="store_true")
    parser.add_argument("-s", "--source",
                        dest="SOURCE",
                        help="NuGet V3 service index URL (default: nuget.org)",
                        action="store",
                        type=str)
    parser.add_argument("--max-workers",
                        dest="MAX_WORKERS",
                        help="Concurrent metadata requests while building the graph (1 disables)",
                        action="store",
                        type=int)

    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML)",
                        action="store",
                        type=str)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level (default: NUGETFETCH_LOG_LEVEL or INFO)",
                        action="store",
                        type=str,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'])
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
