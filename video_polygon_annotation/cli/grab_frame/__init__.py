import logging
from gettext import gettext as _
from pathlib import Path

from video_polygon_annotation.utils.misc import parse_size

logger = logging.getLogger(__name__)

COMMAND_DESCRIPTION = _("Capture a still frame from a video and report its size")


def command(subparser):
    subparser.add_argument(
        "source", type=str, help=_("Video file path or remote video URL")
    )
    subparser.add_argument(
        "output", type=Path, help=_("Image file to write the frame to")
    )
    subparser.add_argument(
        "--position-ms",
        dest="position_ms",
        type=float,
        default=None,
        help=_("Capture the frame at this position instead of the first frame"),
    )
    subparser.add_argument(
        "--display-size",
        dest="display_size",
        type=parse_size,
        default=None,
        help=_("Resize the frame to WIDTHxHEIGHT before saving"),
    )
    subparser.add_argument(
        "--overwrite",
        action="store_true",
        help=_("Overwrite the image file if it exists"),
    )

    def handle(args):
        import cv2

        from video_polygon_annotation.core.capture import (
            OpenCVFrameCapture,
            to_display,
        )
        from video_polygon_annotation.errors import FrameNotReady

        if not args.overwrite:
            assert not args.output.exists(), _(
                "Output image exists, use --overwrite to ignore this"
            )

        with OpenCVFrameCapture(args.source) as capture:
            if args.position_ms is not None:
                capture.seek(args.position_ms)
            try:
                frame = capture.capture_current_frame()
            except FrameNotReady as e:
                logger.warning(_("Frame capture failed: {error}").format(error=e))
                raise SystemExit(1)

        pixels = frame.pixels
        if args.display_size is not None:
            pixels = to_display(frame, args.display_size)

        args.output.parent.mkdir(exist_ok=True, parents=True)
        assert cv2.imwrite(str(args.output), pixels), _(
            "Could not write image '{path}'"
        ).format(path=args.output)
        print(
            _("{path}: source {width}x{height} at {position:.0f} ms").format(
                path=args.output,
                width=frame.width,
                height=frame.height,
                position=frame.position_ms,
            )
        )

    return handle
