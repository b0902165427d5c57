"""
Engine configuration management (bundled YAML defaults, optional YAML file,
environment overrides, JSON Schema validation).
"""
from __future__ import annotations

import copy
import json
import logging
import os
import re
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import jsonschema
import yaml

from microdata_template.core.exceptions import ConfigError
from microdata_template.core.utils.merge import deep_merge
from microdata_template.data import get_data_path, read_yaml

logger = logging.getLogger(__name__)

ENV_PREFIX = "MICRODATA_TEMPLATE_"


@dataclass
class EngineConfig:
    """Toggles consumed by MicrodataTemplate."""

    strict_standard: bool = False
    show_heritage: bool = False
    strip_bom: bool = True
    parser: str = "html.parser"

    @classmethod
    def from_mapping(cls, cfg: Mapping[str, Any]) -> "EngineConfig":
        """Build from a full config mapping (reads the ``template`` section)."""
        section = cfg.get("template", cfg) or {}
        return cls(
            strict_standard=bool(section.get("strict_standard", cls.strict_standard)),
            show_heritage=bool(section.get("show_heritage", cls.show_heritage)),
            strip_bom=bool(section.get("strip_bom", cls.strip_bom)),
            parser=str(section.get("parser", cls.parser)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ConfigManager:
    """Load, merge, and validate engine configuration.

    Configuration sources (highest to lowest priority):
    1. Environment variables: MICRODATA_TEMPLATE_<section>__<key>
    2. Explicit YAML file passed as ``config_path``
    3. Bundled defaults: microdata_template.data/config/defaults.yaml
    """

    def __init__(self, config_path: Optional[Path] = None) -> None:
        self.config_path = Path(config_path) if config_path else None
        self.schema_path = get_data_path("schemas", "config.schema.yaml")

    def load_yaml(self, path: Path) -> Dict[str, Any]:
        # Fail closed: configuration must never silently ignore invalid YAML.
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}", context={"path": str(path)})
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {path}: {exc}", context={"path": str(path)}) from exc
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping", context={"path": str(path)})
        return data

    # ---------- env override parsing ----------

    def _as_bool(self, v: str) -> Optional[bool]:
        low = v.strip().lower()
        if low in {"true", "false"}:
            return low == "true"
        return None

    def _as_int(self, v: str) -> Optional[int]:
        if re.fullmatch(r"[-+]?\d+", v.strip() or " "):
            return int(v)
        return None

    def _as_float(self, v: str) -> Optional[float]:
        s = v.strip()
        if re.fullmatch(r"[-+]?\d*\.\d+", s) or re.fullmatch(r"[-+]?\d+\.\d*", s):
            return float(s)
        return None

    def _as_json(self, v: str) -> Optional[Any]:
        s = v.strip()
        if (s.startswith("{") and s.endswith("}")) or (s.startswith("[") and s.endswith("]")):
            try:
                return json.loads(s)
            except ValueError:
                return None
        return None

    def _coerce_type(self, value: str) -> Any:
        for caster in (self._as_bool, self._as_int, self._as_float, self._as_json):
            result = caster(value)
            if result is not None:
                return result
        return value.strip()

    def _parse_env_key(self, raw: str) -> List[str]:
        if not raw:
            return []
        segs = raw.split("__")
        if any(seg == "" for seg in segs):
            raise ConfigError(f"Malformed {ENV_PREFIX}* key: empty segment in '{raw}'.")
        return [seg.lower() for seg in segs]

    def _iter_env_overrides(self):
        for key in sorted(os.environ.keys()):
            if not key.startswith(ENV_PREFIX):
                continue
            path = self._parse_env_key(key[len(ENV_PREFIX):])
            if not path:
                continue
            yield path, self._coerce_type(os.environ[key])

    def _set_nested(self, root: Dict[str, Any], path: List[str], value: Any) -> None:
        cur = root
        for part in path[:-1]:
            nxt = cur.setdefault(part, {})
            if not isinstance(nxt, dict):
                raise ConfigError(f"Env override path traverses non-mapping at '{part}'")
            cur = nxt
        cur[path[-1]] = value

    def apply_env_overrides(self, cfg: Dict[str, Any]) -> None:
        for path, typed_value in self._iter_env_overrides():
            logger.debug("Config override from env: %s=%r", ".".join(path), typed_value)
            self._set_nested(cfg, path, typed_value)

    # ---------- loading ----------

    def validate(self, cfg: Dict[str, Any]) -> None:
        schema = yaml.safe_load(self.schema_path.read_text(encoding="utf-8"))
        validator = jsonschema.Draft202012Validator(schema)
        errors = sorted(validator.iter_errors(cfg), key=lambda e: list(e.path))
        if errors:
            first = errors[0]
            where = ".".join(str(p) for p in first.path) or "<root>"
            raise ConfigError(
                f"Invalid configuration at {where}: {first.message}",
                context={"errors": [e.message for e in errors]},
            )

    def load_config(self, validate: bool = True) -> Dict[str, Any]:
        """Return the merged configuration mapping."""
        cfg = copy.deepcopy(read_yaml("config", "defaults.yaml"))
        if self.config_path is not None:
            cfg = deep_merge(cfg, self.load_yaml(self.config_path))
        self.apply_env_overrides(cfg)
        if validate:
            self.validate(cfg)
        return cfg

    def engine_config(self) -> EngineConfig:
        return EngineConfig.from_mapping(self.load_config())

    def get(self, key: str, default: Any = None) -> Any:
        """Get a config value by dot-separated path."""
        current: Any = self.load_config(validate=False)
        for part in key.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default
        return current


__all__ = ["ConfigManager", "EngineConfig", "ENV_PREFIX"]
