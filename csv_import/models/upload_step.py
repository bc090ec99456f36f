from __future__ import annotations

from enum import Enum

"""UploadStep enum for the import session lifecycle.

State transitions: upload → mapping → preview → confirmation, with
backward moves mapping → upload and preview → mapping, and a reset from
any step back to upload.
"""

__all__ = [
    "UploadStep",
    "BACKWARD_TRANSITIONS",
]


class UploadStep(Enum):
    """Workflow step of an import session.

    - UPLOAD: waiting for parsed rows
    - MAPPING: rows loaded, headers being bound to catalog fields
    - PREVIEW: validation passed, transformed records under review
    - CONFIRMATION: commit hand-off resolved successfully
    """
    UPLOAD = "upload"
    MAPPING = "mapping"
    PREVIEW = "preview"
    CONFIRMATION = "confirmation"


# 後退遷移は常に許可 (マッピング状態は保持)
BACKWARD_TRANSITIONS: frozenset[tuple[UploadStep, UploadStep]] = frozenset({
    (UploadStep.MAPPING, UploadStep.UPLOAD),
    (UploadStep.PREVIEW, UploadStep.MAPPING),
})
