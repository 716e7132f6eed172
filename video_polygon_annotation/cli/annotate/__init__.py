# flake8: noqa E501

from gettext import gettext as _
from pathlib import Path

from video_polygon_annotation.utils.misc import parse_size

COMMAND_DESCRIPTION = _("Interactively annotate polygons on a video frame")


def command(subparser):
    subparser.add_argument(
        "source", type=str, help=_("Video file path or remote video URL")
    )
    subparser.add_argument(
        "-o",
        "--output",
        dest="output",
        type=Path,
        default=None,
        help=_("Where to write the exported JSON (default: polygon_points_scaled.json)"),
    )
    subparser.add_argument(
        "--display-size",
        dest="display_size",
        type=parse_size,
        default=None,
        help=_("Canvas size as WIDTHxHEIGHT (default: 800x600)"),
    )
    subparser.add_argument(
        "--position-ms",
        dest="position_ms",
        type=float,
        default=None,
        help=_("Capture the frame at this position instead of the first frame"),
    )
    subparser.add_argument(
        "--closure-threshold",
        dest="closure_threshold",
        type=float,
        default=None,
        help=_("Distance to the first vertex, in pixels, that closes a polygon"),
    )
    subparser.add_argument(
        "--clear-on-start",
        action="store_true",
        help=_("Starting a new polygon discards the ones already drawn"),
    )
    subparser.add_argument(
        "--palette",
        type=str,
        default=None,
        help=_("Matplotlib colormap used to color each polygon"),
    )

    def handle(args):
        from video_polygon_annotation.cli.annotate.annotator import (
            handle as annotator_handle,
        )

        annotator_handle(args)

    return handle
