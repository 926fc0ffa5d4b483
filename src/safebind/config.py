"""Projector configuration."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .decls import DEFAULT_FLAGS_TEMPLATES, AllocationPlace
from .errors import ConfigError
from .target import TargetName


@dataclass(frozen=True)
class ProjectorConfig:
    crate_name: str
    # Library prefix words dropped from names, e.g. ("q", "Q", "Qt").
    prefixes_to_remove: tuple[str, ...] = ()
    # Namespaces omitted from target paths.
    filtered_namespaces: tuple[str, ...] = ()
    # Fully-qualified source name -> allocation place, overriding the default heuristic.
    type_allocation_places: dict[str, AllocationPlace] = field(default_factory=dict)
    flags_templates: tuple[str, ...] = DEFAULT_FLAGS_TEMPLATES
    flags_wrapper: str = "qt_core::flags::Flags"
    qobject_cast_trait: str = "qt_core::object::Cast"

    @property
    def flags_wrapper_name(self) -> TargetName:
        return TargetName.of(self.flags_wrapper)

    @property
    def qobject_cast_name(self) -> TargetName:
        return TargetName.of(self.qobject_cast_trait)

    @classmethod
    def from_dict(cls, obj: Any) -> "ProjectorConfig":
        if not isinstance(obj, dict):
            raise ConfigError("config must be a JSON object")
        crate_name = obj.get("crate_name")
        if not isinstance(crate_name, str) or not crate_name:
            raise ConfigError("config.crate_name must be a non-empty string")

        def str_list(key: str, default: tuple[str, ...] = ()) -> tuple[str, ...]:
            v = obj.get(key)
            if v is None:
                return default
            if not isinstance(v, list) or not all(isinstance(x, str) and x for x in v):
                raise ConfigError(f"config.{key} must be a list of non-empty strings")
            return tuple(v)

        places: dict[str, AllocationPlace] = {}
        raw_places = obj.get("type_allocation_places", {})
        if not isinstance(raw_places, dict):
            raise ConfigError("config.type_allocation_places must be an object")
        for name, place in raw_places.items():
            if place not in (AllocationPlace.STACK.value, AllocationPlace.HEAP.value):
                raise ConfigError(f"invalid allocation place for {name}: {place!r}")
            places[name] = AllocationPlace(place)

        extra: dict[str, str] = {}
        for key in ("flags_wrapper", "qobject_cast_trait"):
            v = obj.get(key)
            if v is None:
                continue
            if not isinstance(v, str) or not v or "" in v.split("::"):
                raise ConfigError(f"config.{key} must be a `::` separated path")
            extra[key] = v

        return cls(
            crate_name=crate_name,
            prefixes_to_remove=str_list("prefixes_to_remove"),
            filtered_namespaces=str_list("filtered_namespaces"),
            type_allocation_places=places,
            flags_templates=str_list("flags_templates", DEFAULT_FLAGS_TEMPLATES),
            **extra,
        )


def load_config(path: Path) -> ProjectorConfig:
    path = Path(path)
    try:
        obj = json.loads(path.read_text(encoding="utf-8"))
    except Exception as e:  # noqa: BLE001 - boundary parse
        raise ConfigError(f"failed to read config {path}: {e}") from e
    return ProjectorConfig.from_dict(obj)
