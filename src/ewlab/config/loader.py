from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from .providers import ConfigManager, ConfigProvider, DictProvider, EnvProvider, FileProvider


def load_config(
    defaults: Optional[Mapping[str, Any]] = None,
    file_path: Optional[Union[str, Path]] = None,
    *,
    use_env: bool = True,
    env_prefix: str = "EWLAB_",
) -> Dict[str, Any]:
    """Layered editor config: defaults < file < env.

    An explicitly named file must exist (FileNotFoundError otherwise);
    a malformed one raises ValueError.
    """
    layers: List[ConfigProvider] = [DictProvider(data=dict(defaults or {}))]
    if file_path:
        layers.append(FileProvider(path=str(file_path), optional=False))
    if use_env:
        layers.append(EnvProvider(prefix=env_prefix))
    return ConfigManager(layers).load()
