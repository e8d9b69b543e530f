from .defaults import DEFAULTS
from .settings import CONFIG_MODULE_ENVVAR, Settings, settings

__all__ = ["DEFAULTS", "CONFIG_MODULE_ENVVAR", "Settings", "settings"]
