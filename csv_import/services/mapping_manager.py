from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

from ..models.column_mapping import ColumnMapping, MatchProposal, Transformation, TransformationKind
from .matcher import DEFAULT_MATCH_THRESHOLD, match_field

"""Mapping manager: header bindings, transformations and default values.

Holds the mutable mapping state of one session. One ColumnMapping exists per
source header, in header order; entries are rebound, never removed.

Collision policy:
- auto_map: last match wins. When two headers resolve to the same field the
  later header keeps it and the earlier one becomes unmapped.
- set_mapping: duplicates are allowed. Callers surface "already mapped"
  through ``mapped_to``; validation treats a field as satisfied when any
  binding yields a value.
"""

__all__ = [
    "MappingManager",
]

logger = logging.getLogger(__name__)


class MappingManager:
    def __init__(
        self,
        target_fields: Sequence[str],
        *,
        patterns: Mapping[str, Sequence[str]] | None = None,
        threshold: float = DEFAULT_MATCH_THRESHOLD,
    ) -> None:
        self.target_fields: tuple[str, ...] = tuple(target_fields)
        self.patterns = patterns
        self.threshold = threshold
        self._mappings: list[ColumnMapping] = []
        self._transformations: dict[str, TransformationKind] = {}
        self._defaults: dict[str, str] = {}

    # ------------------------------------------------------------------ views
    @property
    def mappings(self) -> list[ColumnMapping]:
        return list(self._mappings)

    @property
    def transformations(self) -> dict[str, TransformationKind]:
        return dict(self._transformations)

    @property
    def transformation_list(self) -> list[Transformation]:
        return [Transformation(f, k) for f, k in self._transformations.items()]

    @property
    def default_values(self) -> dict[str, str]:
        return dict(self._defaults)

    @property
    def headers(self) -> list[str]:
        return [m.source_header for m in self._mappings]

    def bound_fields(self) -> set[str]:
        return {m.target_field for m in self._mappings if m.target_field is not None}

    def mapped_to(self, target_field: str) -> list[str]:
        """Headers currently bound to ``target_field`` (in header order)."""
        return [m.source_header for m in self._mappings if m.target_field == target_field]

    # -------------------------------------------------------------- mutations
    def auto_map(
        self, headers: Sequence[str], target_fields: Sequence[str] | None = None
    ) -> list[MatchProposal]:
        """Replace the mapping list with matcher proposals for ``headers``.

        Idempotent for unchanged inputs. Returns one proposal per header so
        callers can show confidences next to the resulting bindings.
        """
        fields = tuple(target_fields) if target_fields is not None else self.target_fields
        results = [
            match_field(h, fields, patterns=self.patterns, threshold=self.threshold)
            for h in headers
        ]
        bound: list[str | None] = [r.field for r in results]
        claimed: dict[str, int] = {}
        for index, field in enumerate(bound):
            if field is None:
                continue
            previous = claimed.get(field)
            if previous is not None:
                logger.debug(
                    f"auto-map collision: '{headers[previous]}' loses {field} to '{headers[index]}'"
                )
                bound[previous] = None
            claimed[field] = index

        self._mappings = [ColumnMapping(h, f) for h, f in zip(headers, bound, strict=True)]
        logger.debug(f"auto-mapped {len(claimed)}/{len(headers)} headers")
        return [
            MatchProposal(h, r.field, r.confidence, f)
            for h, r, f in zip(headers, results, bound, strict=True)
        ]

    def set_mapping(self, header: str, target_field: str | None) -> None:
        """Rebind one header. ``None`` unmaps it.

        Raises:
            KeyError: header is not part of the current upload
            ValueError: target_field is not a catalog field
        """
        if target_field is not None:
            self._check_field(target_field)
        for index, mapping in enumerate(self._mappings):
            if mapping.source_header == header:
                self._mappings[index] = ColumnMapping(header, target_field)
                return
        raise KeyError(header)

    def set_transformation(self, target_field: str, kind: TransformationKind | str) -> None:
        """Raises ValueError for a non-catalog field or an unknown kind."""
        self._check_field(target_field)
        kind = TransformationKind.parse(kind)
        if kind is TransformationKind.NONE:
            self._transformations.pop(target_field, None)
        else:
            self._transformations[target_field] = kind

    def set_default_value(self, target_field: str, value: str) -> None:
        self._check_field(target_field)
        self._defaults[target_field] = value

    def remove_default_value(self, target_field: str) -> None:
        # 空文字の default とは別物: エントリごと削除
        self._defaults.pop(target_field, None)

    def replace(self, mappings: Sequence[ColumnMapping], defaults: Mapping[str, str]) -> None:
        """Replace bindings and defaults wholesale (template load).

        Bindings to non-catalog fields become unmapped and their defaults are
        dropped, so only catalog fields reach the projected records.
        """
        kept: list[ColumnMapping] = []
        for mapping in mappings:
            if mapping.target_field is not None and mapping.target_field not in self.target_fields:
                logger.warning(
                    f"ignoring binding '{mapping.source_header}' -> {mapping.target_field}: not a catalog field"
                )
                mapping = ColumnMapping(mapping.source_header, None)
            kept.append(mapping)
        dropped = [f for f in defaults if f not in self.target_fields]
        if dropped:
            logger.warning(f"ignoring defaults for non-catalog fields: {dropped}")
        self._mappings = kept
        self._defaults = {f: v for f, v in defaults.items() if f in self.target_fields}

    def _check_field(self, target_field: str) -> None:
        if target_field not in self.target_fields:
            raise ValueError(f"unknown target field: {target_field}")

    def clear(self) -> None:
        self._mappings = []
        self._transformations = {}
        self._defaults = {}
