from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence

from ..models.column_mapping import ColumnMapping, MatchProposal, TransformationKind
from ..models.field_catalog import FieldCatalog
from ..models.upload_step import BACKWARD_TRANSITIONS, UploadStep
from ..models.validation_error import ValidationError, ValidationResult
from .mapping_manager import MappingManager
from .matcher import DEFAULT_MATCH_THRESHOLD
from .pager import DEFAULT_PAGE_SIZE, check_page_size, clamp_page, paginate, total_pages
from .template_store import TemplateStore
from .validator import project_records, validate

"""Import session: the upload → mapping → preview → confirmation workflow.

One ImportSession is owned by one caller and holds all mutable state of an
import. Every operation is synchronous except ``commit``, which awaits the
external hand-off once and refuses reentrant calls while it is pending.

Error handling:
- EmptyUploadError: upload without rows or headers (stays in upload)
- StepTransitionError: operation not allowed in the current step
- validation errors / duplicates / format warnings: returned as data, never raised
- mapping edits in preview send the session back to mapping (validation
  must pass again before commit); edits, navigation and reset are refused
  while a commit is pending
- commit failure: returned as False, session stays in preview
"""

__all__ = [
    "ImportSession",
    "ImportSessionError",
    "EmptyUploadError",
    "StepTransitionError",
    "CommitHandler",
    "simulated_commit",
]

logger = logging.getLogger(__name__)

Row = Mapping[str, str]
CommitHandler = Callable[[list[dict[str, str]]], Awaitable[bool]]

SIMULATED_COMMIT_DELAY = 1.5


class ImportSessionError(Exception):
    """Base exception for recoverable session errors."""


class EmptyUploadError(ImportSessionError):
    """Raised when parsing produced no rows or no headers."""


class StepTransitionError(ImportSessionError):
    """Raised when an operation is not permitted in the current step."""


async def simulated_commit(
    records: list[dict[str, str]], delay: float = SIMULATED_COMMIT_DELAY
) -> bool:
    """Stand-in hand-off: waits ``delay`` seconds and reports success."""
    await asyncio.sleep(delay)
    logger.debug(f"simulated commit of {len(records)} records")
    return True


class ImportSession:
    def __init__(
        self,
        catalog: FieldCatalog | None = None,
        *,
        commit_handler: CommitHandler | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        patterns: Mapping[str, Sequence[str]] | None = None,
        threshold: float = DEFAULT_MATCH_THRESHOLD,
        template_store: TemplateStore | None = None,
        field_formats: Mapping[str, str] | None = None,
    ) -> None:
        check_page_size(page_size)
        self.catalog = catalog or FieldCatalog.default()
        self.commit_handler: CommitHandler = commit_handler or simulated_commit
        self.page_size = page_size
        self.templates = template_store if template_store is not None else TemplateStore()
        self.mapping = MappingManager(self.catalog.fields, patterns=patterns, threshold=threshold)
        self.field_formats: dict[str, str] = {
            f: kind for f, kind in (field_formats or {}).items() if f in self.catalog
        }

        self.step = UploadStep.UPLOAD
        self.headers: list[str] = []
        self.rows: list[dict[str, str]] = []
        self.proposals: list[MatchProposal] = []
        self.errors: list[ValidationError] = []
        self.duplicates: frozenset[int] = frozenset()
        self.warnings: list[ValidationError] = []
        self.current_page = 1
        self.last_commit_error: str | None = None
        self._commit_pending = False

    # ---------------------------------------------------------------- upload
    def upload(self, headers: Sequence[str], rows: Sequence[Row]) -> list[MatchProposal]:
        """Load parsed rows, auto-map the headers and enter the mapping step.

        Raises:
            StepTransitionError: not in the upload step
            EmptyUploadError: no headers or no rows were parsed
        """
        if self.step is not UploadStep.UPLOAD:
            raise StepTransitionError(f"upload not allowed in step '{self.step.value}'")
        if not headers:
            raise EmptyUploadError("upload has no header row")
        if not rows:
            raise EmptyUploadError("upload has no data rows")

        self.headers = list(headers)
        self.rows = [dict(r) for r in rows]
        self._clear_derived()
        self.mapping.clear()
        self.templates.clear_active()
        self.proposals = self.mapping.auto_map(self.headers, self.catalog.fields)
        self.step = UploadStep.MAPPING
        logger.info(
            f"upload accepted: rows={len(self.rows)} headers={len(self.headers)} "
            f"mapped={len(self.mapping.bound_fields())}"
        )
        return self.proposals

    # --------------------------------------------------------------- mapping
    @property
    def mappings(self) -> list[ColumnMapping]:
        return self.mapping.mappings

    @property
    def default_values(self) -> dict[str, str]:
        return self.mapping.default_values

    @property
    def transformations(self) -> dict[str, TransformationKind]:
        return self.mapping.transformations

    def auto_map(self) -> list[MatchProposal]:
        self._before_edit("auto_map")
        self.proposals = self.mapping.auto_map(self.headers, self.catalog.fields)
        self.current_page = 1
        return self.proposals

    def set_mapping(self, header: str, target_field: str | None) -> None:
        self._before_edit("set_mapping")
        self.mapping.set_mapping(header, target_field)

    def set_transformation(self, target_field: str, kind: TransformationKind | str) -> None:
        self._before_edit("set_transformation")
        self.mapping.set_transformation(target_field, kind)

    def set_default_value(self, target_field: str, value: str) -> None:
        self._before_edit("set_default_value")
        self.mapping.set_default_value(target_field, value)

    def remove_default_value(self, target_field: str) -> None:
        self._before_edit("remove_default_value")
        self.mapping.remove_default_value(target_field)

    def _before_edit(self, action: str) -> None:
        """Guard a mapping edit; an edit in preview invalidates the last validation."""
        self._refuse_while_pending(action)
        if self.step is UploadStep.PREVIEW:
            logger.info(f"{action}: mapping changed, back to mapping step")
            self.step = UploadStep.MAPPING
            self.errors = []
            self.duplicates = frozenset()
            self.warnings = []

    def _refuse_while_pending(self, action: str) -> None:
        if self._commit_pending:
            raise StepTransitionError(f"cannot {action} while a commit is pending")

    def save_template(self, name: str) -> str:
        return self.templates.save(name, self.mapping.mappings, self.mapping.default_values)

    def load_template(self, template_id: str) -> bool:
        """Overwrite bindings and defaults from a saved template.

        Returns False (and changes nothing) when the id is unknown.
        """
        self._refuse_while_pending("load_template")
        loaded = self.templates.load(template_id, self.headers)
        if loaded is None:
            logger.warning(f"template not found: {template_id}")
            return False
        self._before_edit("load_template")
        mappings, defaults = loaded
        self.mapping.replace(mappings, defaults)
        self.current_page = 1
        return True

    # ------------------------------------------------------------ validation
    def validate_data(self) -> ValidationResult:
        """Validate all rows; advances mapping → preview when error-free."""
        result = validate(
            self.rows,
            self.mapping.mappings,
            self.mapping.transformations,
            self.mapping.default_values,
            self.catalog.ordered_required,
            identifying_field=(
                self.catalog.identifying_field if self.catalog.detects_duplicates else None
            ),
            field_formats=self.field_formats,
        )
        self.errors = result.errors
        self.duplicates = result.duplicates
        self.warnings = result.warnings
        if result.duplicates:
            logger.warning(f"possible duplicate rows: {len(result.duplicates)}")
        if result.warnings:
            logger.warning(f"format warnings: {len(result.warnings)}")
        if result.is_valid and self.step is UploadStep.MAPPING:
            self.step = UploadStep.PREVIEW
            self.current_page = 1
        elif not result.is_valid:
            logger.info(f"validation failed: {len(result.errors)} errors")
        return result

    # ----------------------------------------------------------- navigation
    def go_to(self, step: UploadStep) -> None:
        """Move backwards one step (mapping → upload, preview → mapping).

        Mapping state is kept so returning to mapping retains edits. Refused
        while a commit is pending.
        """
        self._refuse_while_pending(f"move to '{step.value}'")
        if step is self.step:
            return
        if (self.step, step) not in BACKWARD_TRANSITIONS:
            raise StepTransitionError(
                f"cannot move from '{self.step.value}' to '{step.value}'"
            )
        self.step = step

    # --------------------------------------------------------------- paging
    @property
    def total_pages(self) -> int:
        return total_pages(len(self.rows), self.page_size)

    def set_page(self, page_number: int) -> int:
        self.current_page = clamp_page(page_number, self.total_pages)
        return self.current_page

    def set_page_size(self, page_size: int) -> None:
        check_page_size(page_size)
        self.page_size = page_size
        self.current_page = 1

    def records(self) -> list[dict[str, str]]:
        """Projected records of every row (the commit payload)."""
        return project_records(
            self.rows,
            self.mapping.mappings,
            self.mapping.transformations,
            self.mapping.default_values,
        )

    def current_page_rows(self) -> list[dict[str, str]]:
        return paginate(self.rows, self.page_size, self.current_page).items

    def current_page_records(self) -> list[dict[str, str]]:
        rows = self.current_page_rows()
        return project_records(
            rows,
            self.mapping.mappings,
            self.mapping.transformations,
            self.mapping.default_values,
        )

    # --------------------------------------------------------------- commit
    @property
    def commit_pending(self) -> bool:
        return self._commit_pending

    async def commit(self) -> bool | None:
        """Hand the projected records to the commit handler.

        Returns True on success (step → confirmation), False on a rejected
        or failed hand-off (step stays preview), and None when another
        commit of this session is still pending.
        """
        if self._commit_pending:
            logger.debug("commit already pending; ignoring reentrant call")
            return None
        if self.step is not UploadStep.PREVIEW:
            raise StepTransitionError(f"commit not allowed in step '{self.step.value}'")

        self._commit_pending = True
        self.last_commit_error = None
        records = self.records()
        try:
            ok = await self.commit_handler(records)
        except Exception as e:
            logger.error(f"commit failed: {e}")
            self.last_commit_error = str(e) or e.__class__.__name__
            return False
        finally:
            self._commit_pending = False

        if not ok:
            self.last_commit_error = "commit rejected"
            logger.error("commit rejected by handler")
            return False
        self.step = UploadStep.CONFIRMATION
        logger.info(f"commit completed: records={len(records)}")
        return True

    # ---------------------------------------------------------------- reset
    def reset(self) -> None:
        """Return to upload, clearing everything except saved templates."""
        if self._commit_pending:
            raise StepTransitionError("cannot reset while a commit is pending")
        self.step = UploadStep.UPLOAD
        self.headers = []
        self.rows = []
        self.mapping.clear()
        self.templates.clear_active()
        self._clear_derived()

    def _clear_derived(self) -> None:
        self.proposals = []
        self.errors = []
        self.duplicates = frozenset()
        self.warnings = []
        self.current_page = 1
        self.last_commit_error = None
