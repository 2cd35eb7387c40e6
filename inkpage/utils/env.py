import logging
from gettext import gettext as _
from typing import Dict

from easydict import EasyDict as edict

logger = logging.getLogger(__name__)

ENV_PREFIX = "INKPAGE_"


def get_default_config() -> edict:
    return edict(
        {
            "api": {"base_url": "http://localhost:8000", "timeout": 30.0},
            "viewer": {
                "initial_scale": 1.0,
                "min_scale": 0.5,
                "max_scale": 3.0,
                "scale_step": 0.2,
            },
            "surface": {"hit_tolerance": 4.0},
            "server": {"host": "0.0.0.0", "port": 8000, "materials": None},
        }
    )


def _coerce(current, value):
    # Environment values are strings; follow the type of the default
    if not isinstance(value, str) or current is None or isinstance(current, str):
        return value
    if isinstance(current, bool):
        return value.strip().lower() in ("1", "true", "yes", "on")
    if isinstance(current, int):
        return int(value)
    if isinstance(current, float):
        return float(value)
    return value


def load_cfg_from_env(cfg: edict, env: Dict[str, str]):
    for k, v in env.items():
        if k.startswith(ENV_PREFIX):
            cfgkey = k.replace(ENV_PREFIX, "", 1).lower().replace("__", ".")
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
            this_cfg[last] = _coerce(this_cfg.get(last), v)
    return cfg


def load_config(env: Dict[str, str]) -> edict:
    """Default configuration with environment overrides applied."""
    return load_cfg_from_env(get_default_config(), env)
