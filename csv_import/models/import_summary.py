from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

"""Import summary model used for the SUMMARY output line."""


@dataclass(frozen=True)
class ImportSummary:
    """Aggregated counters of one CLI import run.

    Built from the session state after the last step reached; rendered by
    services.summary.render_summary_line.
    """
    total_rows: int  # アップロード行数
    mapped_fields: int  # 割当済みフィールド数 (重複割当は 1 と数える)
    error_count: int  # 最終検証のエラー件数
    duplicate_rows: int  # 重複候補行数 (advisory)
    step: str  # 最終到達ステップ
    committed: bool  # commit 成功可否
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
