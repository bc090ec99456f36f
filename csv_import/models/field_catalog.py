from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

"""FieldCatalog model for the CSV import engine.

The catalog is the fixed, ordered list of target fields a CSV upload can be
mapped onto. It is supplied once when a session starts and is never mutated
afterwards; required fields and the identifying (duplicate key) field are
part of the catalog so that every consumer sees the same definition.
"""

__all__ = [
    "FieldCatalog",
    "DEFAULT_FIELDS",
    "DEFAULT_REQUIRED_FIELDS",
    "DEFAULT_IDENTIFYING_FIELD",
]


DEFAULT_FIELDS: tuple[str, ...] = (
    "FullName",
    "Email",
    "Contact",
    "Gender",
    "Qualification",
    "SchoolOrCollegeName",
    "LeadSource",
    "InterestedCourse",
    "Address",
    "City",
    "Street",
    "State",
    "ZipCode",
    "Country",
    "Notes",
)

DEFAULT_REQUIRED_FIELDS: frozenset[str] = frozenset({"FullName", "Contact"})

DEFAULT_IDENTIFYING_FIELD = "Email"


@dataclass(frozen=True)
class FieldCatalog:
    """Ordered set of importable target fields.

    Attributes:
        fields: Target field names in display order
        required_fields: Subset of ``fields`` that every record must populate
        identifying_field: Field used as the duplicate-detection key. ``None``
            disables duplicate detection.
    """
    fields: tuple[str, ...]
    required_fields: frozenset[str]
    identifying_field: str | None = None

    @staticmethod
    def create(
        fields: Iterable[str],
        required_fields: Iterable[str] = (),
        identifying_field: str | None = None,
    ) -> FieldCatalog:
        """Build a catalog, checking that required fields belong to it.

        Raises:
            ValueError: if a required field is not part of ``fields`` or a
                field name is repeated
        """
        ordered = tuple(fields)
        if len(set(ordered)) != len(ordered):
            raise ValueError("field catalog contains duplicate field names")
        required = frozenset(required_fields)
        unknown = required - set(ordered)
        if unknown:
            raise ValueError(f"required fields not in catalog: {sorted(unknown)}")
        return FieldCatalog(
            fields=ordered,
            required_fields=required,
            identifying_field=identifying_field,
        )

    @staticmethod
    def default() -> FieldCatalog:
        """Lead catalog used when no configuration is supplied."""
        return FieldCatalog.create(
            DEFAULT_FIELDS, DEFAULT_REQUIRED_FIELDS, DEFAULT_IDENTIFYING_FIELD
        )

    def __contains__(self, field: object) -> bool:
        return field in self.fields

    @property
    def ordered_required(self) -> list[str]:
        """Required fields in catalog order (stable error ordering)."""
        return [f for f in self.fields if f in self.required_fields]

    @property
    def detects_duplicates(self) -> bool:
        # 識別列がカタログ外なら重複検出は無効 (no-op)
        return self.identifying_field is not None and self.identifying_field in self.fields
