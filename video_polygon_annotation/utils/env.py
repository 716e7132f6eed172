import logging
from gettext import gettext as _
from typing import Dict

from easydict import EasyDict as edict

logger = logging.getLogger(__name__)

ENV_PREFIX = "VPA_"


def _cast_like(default, value):
    """Cast an environment string to the type of the entry it replaces."""
    if not isinstance(value, str) or default is None or isinstance(default, str):
        return value
    if isinstance(default, bool):
        return value.strip().lower() in ("1", "true", "yes", "on")
    if isinstance(default, (int, float)):
        return type(default)(value)
    if isinstance(default, (list, tuple)):
        return type(default)(
            _cast_like(default[0] if default else None, part.strip())
            for part in value.split(",")
        )
    return value


def load_cfg_from_env(cfg: edict, env: Dict[str, str]):
    for k, v in env.items():
        if k.startswith(ENV_PREFIX):
            cfgkey = k.replace(ENV_PREFIX, "", 1).replace("__", ".")
            logger.warning(
                _(
                    "Changing configuration entry from environment variable: {k}={v}"
                ).format(
                    k=cfgkey, v=v
                )  # noqa:E501
            )  # noqa: E501
            *parts, last = cfgkey.split(".")
            this_cfg = cfg
            for part in parts:
                if this_cfg.get(part) is None:
                    this_cfg[part] = edict()
                this_cfg = this_cfg[part]
            this_cfg[last] = _cast_like(this_cfg.get(last), v)
    return cfg
