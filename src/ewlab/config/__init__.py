"""Config module.

  - load_config(defaults, file_path) -> dict           (layered defaults < file < env)
  - EditorConfig.from_dict(cfg) / load_editor_config()  (typed editor settings)
"""

from __future__ import annotations

from .loader import load_config  # noqa: F401
from .providers import (  # noqa: F401
    ConfigManager,
    ConfigProvider,
    DictProvider,
    EnvProvider,
    FileProvider,
)
from .settings import DEFAULTS, ColorConfig, EditorConfig, load_editor_config  # noqa: F401

__all__ = [
    "load_config",
    "ConfigProvider",
    "ConfigManager",
    "DictProvider",
    "EnvProvider",
    "FileProvider",
    "DEFAULTS",
    "ColorConfig",
    "EditorConfig",
    "load_editor_config",
]
