from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field

"""ValidationError and ValidationResult models.

Validation errors are data, not control flow: one record per failed rule per
row, collected exhaustively and recomputed on every validation pass. The
row index is 0-based and stable within the current row set.
"""

__all__ = [
    "ValidationError",
    "ValidationResult",
]


@dataclass(frozen=True)
class ValidationError:
    """One failed rule on one row.

    Attributes:
        row_index: 0-based position of the row in the uploaded row set
        target_field: Catalog field the rule applies to
        message: Human readable description, e.g. ``"Contact is required"``
    """
    row_index: int
    target_field: str
    message: str

    @staticmethod
    def required(row_index: int, target_field: str) -> ValidationError:
        return ValidationError(
            row_index=row_index,
            target_field=target_field,
            message=f"{target_field} is required",
        )

    def to_json_line(self) -> str:
        """Serialize to a single JSON Lines record (no extra keys)."""
        return json.dumps(asdict(self), ensure_ascii=False)


@dataclass(frozen=True)
class ValidationResult:
    errors: list[ValidationError]
    duplicates: frozenset[int]  # 重複候補の行 index (対称: A~B なら両方)
    warnings: list[ValidationError] = field(default_factory=list)  # 形式チェック (advisory)

    @property
    def is_valid(self) -> bool:
        # duplicates and warnings are advisory only
        return not self.errors

    def errors_for_row(self, row_index: int) -> list[ValidationError]:
        return [e for e in self.errors if e.row_index == row_index]
