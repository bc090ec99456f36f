from __future__ import annotations

import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

"""MappingTemplate model.

A template is an immutable, named snapshot of header -> field bindings and
default values. Saving again always creates a new template; names are not
unique.

Serialized layout (for externally stored templates)::

    {"id": "...", "name": "...", "mappings": {header: field}, "defaultValues": {field: value}}

No version key exists, so ``from_dict`` ignores unknown keys and treats
missing ones as empty.
"""

__all__ = [
    "MappingTemplate",
    "new_template_id",
]


def new_template_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class MappingTemplate:
    id: str
    name: str
    mappings: Mapping[str, str] = field(default_factory=dict)
    default_values: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # 読み取り専用コピー
        object.__setattr__(self, "mappings", MappingProxyType(dict(self.mappings)))
        object.__setattr__(self, "default_values", MappingProxyType(dict(self.default_values)))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "mappings": dict(self.mappings),
            "defaultValues": dict(self.default_values),
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> MappingTemplate:
        """Build a template from its serialized form, tolerating gaps.

        Non-string entries inside ``mappings`` / ``defaultValues`` are dropped
        rather than rejected.
        """
        raw_id = data.get("id")
        raw_mappings = data.get("mappings") or {}
        raw_defaults = data.get("defaultValues") or {}
        mappings = {
            str(k): v for k, v in raw_mappings.items() if isinstance(v, str) and v
        } if isinstance(raw_mappings, dict) else {}
        defaults = {
            str(k): v for k, v in raw_defaults.items() if isinstance(v, str)
        } if isinstance(raw_defaults, dict) else {}
        return MappingTemplate(
            id=str(raw_id) if raw_id else new_template_id(),
            name=str(data.get("name") or ""),
            mappings=mappings,
            default_values=defaults,
        )
