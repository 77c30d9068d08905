"""Argument parsing for the openupm CLI."""

import argparse

from openupm import __version__

_ALIASES = {"rm": "remove", "v": "view"}


def _add_global_options(parser):
    parser.add_argument("-r", "--registry",
                        dest="REGISTRY",
                        help="Primary registry url (default: the public OpenUPM registry)",
                        action="store", type=str)
    parser.add_argument("--no-upstream",
                        dest="NO_UPSTREAM",
                        help="Do not fall back to the Unity registry",
                        action="store_true")
    parser.add_argument("-c", "--chdir",
                        dest="CHDIR",
                        help="Change working directory to the project",
                        action="store", type=str)
    parser.add_argument("--config",
                        dest="CONFIG",
                        help="Path to a YAML config file",
                        action="store", type=str)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str.upper,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store", type=str)


def build_parser():
    """Build the argument parser with the add, remove, deps and view commands."""
    parser = argparse.ArgumentParser(
        prog="openupm",
        description="Package manager for Unity projects using scoped registries",
        add_help=True,
    )
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")
    _add_global_options(parser)

    subparsers = parser.add_subparsers(dest="COMMAND", metavar="<command>")
    subparsers.required = True

    add_parser = subparsers.add_parser("add", help="Add packages to the project manifest")
    add_parser.add_argument("PACKAGES",
                            nargs="+",
                            metavar="pkg[@version]",
                            help="Package reference, e.g. com.example.pkg or com.example.pkg@1.0.0")
    add_parser.add_argument("-f", "--force",
                            dest="FORCE",
                            help="Add packages even if they are incompatible or have unresolved dependencies",
                            action="store_true")
    add_parser.add_argument("-t", "--test",
                            dest="TEST",
                            help="Also add packages to the testables",
                            action="store_true")

    remove_parser = subparsers.add_parser("remove", aliases=["rm"], help="Remove packages from the project manifest")
    remove_parser.add_argument("PACKAGES", nargs="+", metavar="pkg", help="Package name")

    deps_parser = subparsers.add_parser("deps", help="Show the dependencies of a package")
    deps_parser.add_argument("PACKAGE", metavar="pkg[@version]", help="Package reference")
    deps_parser.add_argument("-d", "--deep",
                             dest="DEEP",
                             help="Resolve dependencies of dependencies",
                             action="store_true")

    view_parser = subparsers.add_parser("view", aliases=["v"], help="Show information about a package")
    view_parser.add_argument("PACKAGE", metavar="pkg", help="Package name")

    return parser


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    args = build_parser().parse_args(argv)
    args.COMMAND = _ALIASES.get(args.COMMAND, args.COMMAND)
    return args
