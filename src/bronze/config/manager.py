"""Configuration manager."""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any, Mapping, Optional

from . import defaults
from .schema import validate_config


def _merged(base: Mapping[str, Any], layer: Mapping[str, Any]) -> dict[str, Any]:
    merged = copy.deepcopy(dict(base))
    for key, value in layer.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            merged[key] = _merged(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _lookup(tree: Mapping[str, Any], dotted_key: str) -> tuple[bool, Any]:
    node: Any = tree
    for part in dotted_key.split("."):
        if not isinstance(node, Mapping) or part not in node:
            return False, None
        node = node[part]
    return True, node


def _nested_layer(dotted_key: str, value: Any) -> dict[str, Any]:
    *parents, leaf = dotted_key.split(".")
    layer: dict[str, Any] = {leaf: value}
    for part in reversed(parents):
        layer = {part: layer}
    return layer


class ConfigManager:
    """Built-in defaults, then the user's config file, then runtime overrides
    (command-line flags). Later layers win key by key."""

    def __init__(
        self,
        user_config_path: Optional[Path] = None,
        user_config: Optional[dict[str, Any]] = None,
    ) -> None:
        self.source_path = user_config_path
        if user_config is not None:
            user_layer = user_config
        elif user_config_path is not None:
            user_layer = self._read_config_file(user_config_path)
        else:
            user_layer = {}
        self._layers: list[dict[str, Any]] = [copy.deepcopy(defaults.DEFAULT_CONFIG), copy.deepcopy(user_layer)]
        self._overrides: dict[str, Any] = {}
        self._rebuild()

    @staticmethod
    def _read_config_file(path: Path) -> dict[str, Any]:
        if not path.is_file():
            raise FileNotFoundError(f"Config file not found: {path}")
        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must hold a JSON object")
        return data

    def _rebuild(self) -> None:
        config: dict[str, Any] = {}
        for layer in (*self._layers, self._overrides):
            config = _merged(config, layer)
        self._config = config

    def get(self, key: str, default: Any = None) -> Any:
        found, value = _lookup(self._config, key)
        return value if found else default

    def set(self, key: str, value: Any) -> None:
        """Override `key` (dotted) for this run; the config file is untouched."""
        self._overrides = _merged(self._overrides, _nested_layer(key, value))
        self._rebuild()

    @property
    def profiles(self) -> dict[str, Any]:
        profiles = self.get("profiles", {})
        return profiles if isinstance(profiles, dict) else {}

    def profile(self, name: str) -> dict[str, Any]:
        try:
            return self.profiles[name]
        except KeyError:
            raise KeyError(f"Unknown profile: {name}") from None

    @property
    def info_file(self) -> Optional[Path]:
        value = self.get("infoFile")
        return Path(value) if value else None

    @property
    def dry(self) -> bool:
        return bool(self.get("dry", False))

    def validate_config(self) -> list[str]:
        return validate_config(self._config)

    def validate_dict(self, config_dict: dict[str, Any]) -> list[str]:
        return validate_config(_merged(defaults.DEFAULT_CONFIG, config_dict))

    def replace_config(self, config_dict: dict[str, Any]) -> None:
        self._layers[1] = copy.deepcopy(config_dict)
        self._overrides = {}
        self._rebuild()

    def to_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self._config)
