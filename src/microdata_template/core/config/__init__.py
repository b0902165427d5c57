"""Engine configuration.

Usage:
    from microdata_template.core.config import ConfigManager, EngineConfig

    manager = ConfigManager(config_path=Path("template.yaml"))
    engine_config = EngineConfig.from_mapping(manager.load_config())
"""
from __future__ import annotations

from .manager import ConfigManager, EngineConfig, ENV_PREFIX

__all__ = ["ConfigManager", "EngineConfig", "ENV_PREFIX"]
