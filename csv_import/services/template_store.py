from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from pathlib import Path

from ..models.column_mapping import ColumnMapping
from ..models.mapping_template import MappingTemplate, new_template_id

"""Template store: named snapshots of mappings and defaults.

Templates live for the whole session (they survive a session reset) and are
never mutated after creation. Optional JSON persistence writes the list in
the serialized template layout; loading tolerates unknown or missing keys.
"""

__all__ = [
    "TemplateStore",
    "TemplateFileError",
]

logger = logging.getLogger(__name__)


class TemplateFileError(Exception):
    """Raised when a template file cannot be read or written."""


class TemplateStore:
    def __init__(self, templates: Sequence[MappingTemplate] | None = None) -> None:
        self._templates: list[MappingTemplate] = list(templates or [])
        self.active_id: str | None = None

    @property
    def templates(self) -> list[MappingTemplate]:
        return list(self._templates)

    def __len__(self) -> int:
        return len(self._templates)

    def get(self, template_id: str) -> MappingTemplate | None:
        for template in self._templates:
            if template.id == template_id:
                return template
        return None

    def find_by_name(self, name: str) -> MappingTemplate | None:
        """Most recently saved template called ``name`` (names are not unique)."""
        for template in reversed(self._templates):
            if template.name == name:
                return template
        return None

    def save(
        self,
        name: str,
        mappings: Sequence[ColumnMapping],
        defaults: Mapping[str, str],
    ) -> str:
        """Snapshot bound mappings and defaults; returns the new template id.

        Unmapped headers are dropped from the snapshot, not stored as nulls.
        """
        template = MappingTemplate(
            id=new_template_id(),
            name=name,
            mappings={
                m.source_header: m.target_field for m in mappings if m.target_field is not None
            },
            default_values=dict(defaults),
        )
        self._templates.append(template)
        self.active_id = template.id
        logger.info(f"template saved: {name} ({len(template.mappings)} mappings)")
        return template.id

    def load(
        self, template_id: str, headers: Sequence[str]
    ) -> tuple[list[ColumnMapping], dict[str, str]] | None:
        """Rebuild mappings for ``headers`` from a template.

        Headers missing from the template become unmapped. Returns ``None``
        for an unknown id, leaving the store unchanged.
        """
        template = self.get(template_id)
        if template is None:
            return None
        mappings = [ColumnMapping(h, template.mappings.get(h)) for h in headers]
        self.active_id = template.id
        return mappings, dict(template.default_values)

    def clear_active(self) -> None:
        self.active_id = None

    # ------------------------------------------------------------ persistence
    def dump(self, path: Path) -> Path:
        payload = [t.to_dict() for t in self._templates]
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
        except OSError as e:
            raise TemplateFileError(f"cannot write templates: {path}: {e}") from e
        return path

    @staticmethod
    def from_file(path: Path) -> TemplateStore:
        """Load templates from ``path``; a missing file yields an empty store."""
        if not path.exists():
            return TemplateStore()
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise TemplateFileError(f"cannot read templates: {path}: {e}") from e
        if not isinstance(data, list):
            raise TemplateFileError(f"templates file must contain a list: {path}")
        templates = [MappingTemplate.from_dict(item) for item in data if isinstance(item, dict)]
        return TemplateStore(templates)
