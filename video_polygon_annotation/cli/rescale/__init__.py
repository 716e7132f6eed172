import logging
from gettext import gettext as _
from pathlib import Path

from video_polygon_annotation.utils.misc import parse_size

logger = logging.getLogger(__name__)

COMMAND_DESCRIPTION = _(
    "Rescale exported polygon coordinates from one frame size to another"
)


def command(subparser):
    subparser.add_argument(
        "input", type=Path, help=_("JSON file with a list of flat point lists")
    )
    subparser.add_argument("output", type=Path, help=_("Where to save the result"))
    subparser.add_argument(
        "--from",
        dest="from_size",
        type=parse_size,
        required=True,
        help=_("Size the coordinates are expressed in, as WIDTHxHEIGHT"),
    )
    subparser.add_argument(
        "--to",
        dest="to_size",
        type=parse_size,
        required=True,
        help=_("Target size, as WIDTHxHEIGHT"),
    )
    subparser.add_argument(
        "--overwrite",
        action="store_true",
        help=_("Overwrite JSON file if it exists"),
    )

    def handle(args):
        import json

        from video_polygon_annotation.core.annotation.export import (
            load_polygons,
            rescale_polygons,
        )

        assert args.input.exists() and args.input.is_file(), _(
            "Input file must exist"
        )
        if not args.overwrite:
            assert not args.output.exists(), _(
                "Output file exists, use --overwrite to ignore this"
            )

        polygons = load_polygons(args.input)
        scaled = rescale_polygons(polygons, args.from_size, args.to_size)

        args.output.parent.mkdir(exist_ok=True, parents=True)
        args.output.write_text(json.dumps(scaled, indent=2))
        logger.info(
            _("Rescaled {count} polygons from {src} to {dst}").format(
                count=len(scaled),
                src="x".join(map(str, args.from_size)),
                dst="x".join(map(str, args.to_size)),
            )
        )

    return handle
