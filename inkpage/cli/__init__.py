import inkpage.utils.i18n  # noqa:F401

"""Command line interface for inkpage."""

import logging
import os
import sys
from argparse import ArgumentDefaultsHelpFormatter, ArgumentParser
from gettext import gettext as _
from pathlib import Path

from inkpage import __version__
from inkpage.utils.env import load_config
from inkpage.utils.misc import load_module

logger = logging.getLogger(__name__)


def discover_subcommands():
    """Yield (name, module) for every subcommand package next to this file."""
    for init in sorted(Path(__file__).parent.glob("*/__init__.py")):
        if "pycache" in str(init):
            continue
        name = init.parent.name
        yield name, load_module(init, module_name=f"inkpage.cli.{name}")


def add_subcommand(subparsers, name: str, submodule):
    subparser = subparsers.add_parser(name, help=submodule.COMMAND_DESCRIPTION)
    common_flags(subparser)
    subparser.set_defaults(fn=submodule.command(subparser))


def common_flags(parser):
    parser.add_argument(
        "-v",
        "--verbose",
        dest="verbose",
        action="store_true",
        help=_("Give more details about what is happening"),
    )  # noqa: E501
    parser.add_argument(
        "-V",
        "--version",
        dest="is_show_version",
        action="store_true",
        help=_("Print version and exit"),
    )  # noqa: E501


def main(argv=None):  # pragma: no cover
    """
    Entry point of `python -m inkpage` and `$ inkpage`.

    Subcommand handlers receive the parsed arguments with the active
    configuration attached as `args.cfg`, read from the INKPAGE_*
    environment variables.
    """
    logging.basicConfig()
    parser = ArgumentParser(prog="inkpage", formatter_class=ArgumentDefaultsHelpFormatter)
    common_flags(parser)
    subparsers = parser.add_subparsers()
    for name, submodule in discover_subcommands():
        add_subcommand(subparsers, name, submodule)

    args = parser.parse_args(argv)
    if args.verbose:
        logging.root.setLevel(logging.DEBUG)
    if args.is_show_version:
        print(__version__)
        sys.exit(0)
    logger.debug(f"{_('Starting')} inkpage v{__version__}")

    handler = getattr(args, "fn", None)
    if handler is None:
        parser.print_help()
        return 2
    args.fn = None
    args.cfg = load_config(os.environ)
    return handler(args)
