import logging
from gettext import gettext as _

from video_polygon_annotation.config import load_config
from video_polygon_annotation.core.annotation import AnnotationSession
from video_polygon_annotation.core.capture import OpenCVFrameCapture
from video_polygon_annotation.errors import SourceOpenError
from video_polygon_annotation.interfaces import OpenCVAnnotationAdapter

logger = logging.getLogger(__name__)


def apply_args(cfg, args):
    """Command line flags take precedence over config and environment."""
    if args.display_size is not None:
        cfg.DISPLAY.WIDTH, cfg.DISPLAY.HEIGHT = args.display_size
    if args.closure_threshold is not None:
        cfg.SESSION.CLOSURE_THRESHOLD = args.closure_threshold
    if args.clear_on_start:
        cfg.SESSION.CLEAR_ON_START = True
    if args.palette is not None:
        cfg.RENDER.PALETTE = args.palette
    if args.output is not None:
        cfg.EXPORT.FILENAME = str(args.output)
    return cfg


def handle(args):
    cfg = apply_args(load_config(), args)
    logger.debug(_("Configuration: {cfg}").format(cfg=dict(cfg)))

    session = AnnotationSession.from_config(cfg)
    capture = OpenCVFrameCapture()
    adapter = OpenCVAnnotationAdapter(session, capture, cfg)

    # A frame that is not ready yet can be captured again from the window
    error = adapter.open_source(args.source, position_ms=args.position_ms).exception()
    if isinstance(error, SourceOpenError):
        logger.warning(_("Could not start annotating: {error}").format(error=error))
        adapter.close()
        raise SystemExit(1)

    adapter.run()

    committed = len(session.committed_polygons)
    logger.info(
        _("Session closed with {count} committed polygons").format(count=committed)
    )
