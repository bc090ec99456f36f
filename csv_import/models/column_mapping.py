from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

"""Column mapping and transformation models.

A ColumnMapping binds one source header to at most one target field. Mappings
are never removed while a file is loaded: unmapping sets ``target_field`` to
``None``. Transformations are per target field and string-level only.
"""

__all__ = [
    "ColumnMapping",
    "Transformation",
    "TransformationKind",
    "MatchProposal",
]


class TransformationKind(Enum):
    """Value normalization applied to a target field.

    - NONE: value passes through (equivalent to no transformation)
    - TRIM: strip leading/trailing whitespace
    - UPPERCASE / LOWERCASE: case folding, locale-insensitive
    """
    NONE = "none"
    TRIM = "trim"
    UPPERCASE = "uppercase"
    LOWERCASE = "lowercase"

    def apply(self, value: str) -> str:
        if self is TransformationKind.TRIM:
            return value.strip()
        if self is TransformationKind.UPPERCASE:
            return value.upper()
        if self is TransformationKind.LOWERCASE:
            return value.lower()
        return value

    @classmethod
    def parse(cls, raw: str | TransformationKind) -> TransformationKind:
        """Accept either an enum member or its (case-insensitive) value."""
        if isinstance(raw, TransformationKind):
            return raw
        try:
            return cls(raw.strip().lower())
        except ValueError as e:
            allowed = ", ".join(k.value for k in cls)
            raise ValueError(f"unknown transformation '{raw}' (expected one of: {allowed})") from e


@dataclass(frozen=True)
class ColumnMapping:
    source_header: str  # CSV ヘッダ (一意)
    target_field: str | None = None  # None = unmapped

    @property
    def is_mapped(self) -> bool:
        return self.target_field is not None


@dataclass(frozen=True)
class Transformation:
    target_field: str
    kind: TransformationKind


@dataclass(frozen=True)
class MatchProposal:
    """Auto-mapping proposal for one header, kept for display purposes.

    ``target_field`` is the field finally bound after collision resolution;
    ``suggested_field`` is what the matcher proposed before it.
    """
    source_header: str
    suggested_field: str | None
    confidence: float
    target_field: str | None
