import video_polygon_annotation.utils.i18n  # F401

"""CLI interface for video_polygon_annotation project.

Subcommands are discovered from the packages in this folder. Each one
exposes COMMAND_DESCRIPTION and command(subparser), which registers its
arguments and returns the handler.
"""

import logging
import sys
from argparse import ArgumentDefaultsHelpFormatter, ArgumentParser
from gettext import gettext as _
from pathlib import Path

from video_polygon_annotation.utils.misc import load_module

logger = logging.getLogger(__name__)


def add_subcommand(subparsers, name: str, submodule):
    subparser = subparsers.add_parser(name, help=submodule.COMMAND_DESCRIPTION)
    common_flags(subparser)
    handler = submodule.command(subparser)
    subparser.set_defaults(fn=handler)


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


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(
        prog="video_polygon_annotation", formatter_class=ArgumentDefaultsHelpFormatter
    )
    common_flags(parser)
    subparsers = parser.add_subparsers()

    for module in sorted(Path(__file__).parent.glob("*/__init__.py")):
        if str(module).find("pycache") > 0:
            continue
        module_name = module.parent.name
        subcommand_module = load_module(
            module, module_name=f"video_polygon_annotation.cli.{module_name}"
        )
        add_subcommand(subparsers, module_name, subcommand_module)
    return parser


def main(argv=None):  # pragma: no cover
    """
    The main function executes on commands:
    `python -m video_polygon_annotation` and `$ video_polygon_annotation `.
    """
    logging.basicConfig()
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.root.setLevel(logging.DEBUG)
    else:
        logging.root.setLevel(logging.INFO)

    version = (Path(__file__).parent.parent / "VERSION").read_text().strip()
    if args.is_show_version:
        print(version)
        sys.exit(0)
    logger.debug(f"{_('Starting')} video_polygon_annotation v{version}")

    fn = args.__dict__.get("fn")
    args.__dict__["fn"] = None
    if fn is not None:
        fn(args)
    else:
        parser.parse_args([*(argv if argv is not None else sys.argv[1:]), "--help"])
