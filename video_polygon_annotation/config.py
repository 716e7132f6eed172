"""
Default configuration for the annotation tool.

Values can be overridden from the environment with the ``VPA_`` prefix,
using ``__`` to reach nested entries, e.g.
``VPA_SESSION__CLOSURE_THRESHOLD=15``.
"""

import os
from typing import Dict, Optional

from easydict import EasyDict as edict

from .utils.env import load_cfg_from_env


def get_default_config() -> edict:
    cfg = edict()

    cfg.SESSION = edict()
    # Distance to the anchor vertex (display pixels) that closes a polygon
    cfg.SESSION.CLOSURE_THRESHOLD = 10.0
    # Whether start_drawing() wipes previously committed polygons
    cfg.SESSION.CLEAR_ON_START = False
    # Whether releasing the pointer behaves like end_drawing()
    cfg.SESSION.END_ON_POINTER_UP = False

    cfg.DISPLAY = edict()
    cfg.DISPLAY.WIDTH = 800
    cfg.DISPLAY.HEIGHT = 600

    # Colors are BGR, as OpenCV expects them
    cfg.RENDER = edict()
    cfg.RENDER.COMMITTED_COLOR = (255, 0, 0)
    cfg.RENDER.CURRENT_COLOR = (0, 0, 255)
    cfg.RENDER.MARKER_RADIUS = 5
    cfg.RENDER.LINE_THICKNESS = 2
    # Matplotlib colormap for committed polygons, empty to use COMMITTED_COLOR
    cfg.RENDER.PALETTE = ""
    cfg.RENDER.WINDOW_NAME = "video_polygon_annotation"

    cfg.EXPORT = edict()
    cfg.EXPORT.FILENAME = "polygon_points_scaled.json"
    cfg.EXPORT.INDENT = 2

    cfg.KEYS = edict()
    cfg.KEYS.START = "s"
    cfg.KEYS.END = "e"
    cfg.KEYS.CANCEL = "esc"
    cfg.KEYS.CLEAR = "c"
    cfg.KEYS.CAPTURE = "r"
    cfg.KEYS.EXPORT = "x"
    cfg.KEYS.QUIT = "q"

    return cfg


def load_config(env: Optional[Dict[str, str]] = None) -> edict:
    """Default configuration with environment overrides applied."""
    if env is None:
        env = dict(os.environ)
    return load_cfg_from_env(get_default_config(), env)
