from __future__ import annotations
from typing import Any, Dict, List, Optional

import pandas as pd

from stock_count.utils import frame_to_csv_bytes, today_stamp

COUNT_REPORT_COLUMNS = ["City", "SKU", "Name", "SystemQty", "CommittedQty", "CountedQty", "Difference"]
DESTRUCTIONS_REPORT_COLUMNS = ["Date", "SKU", "Name", "Qty", "Reason"]


def count_report_csv(reconciled_rows: List[Dict[str, Any]]) -> bytes:
    """CountedQty is the effective counted quantity (destructions netted out)."""
    df = pd.DataFrame(
        [
            {
                "City": r.get("city", ""),
                "SKU": r.get("sku", ""),
                "Name": r.get("name", ""),
                "SystemQty": r.get("system_qty", 0),
                "CommittedQty": r.get("committed_qty", 0),
                "CountedQty": r["effective_qty"],
                "Difference": r["difference"],
            }
            for r in reconciled_rows
        ],
        columns=COUNT_REPORT_COLUMNS,
    )
    return frame_to_csv_bytes(df)


def destructions_report_csv(lines: List[Dict[str, Any]]) -> bytes:
    df = pd.DataFrame(
        [
            {
                "Date": (l.get("created_at") or "")[:10],
                "SKU": l.get("sku", ""),
                "Name": l.get("name", ""),
                "Qty": l.get("qty", 0),
                "Reason": l.get("reason", ""),
            }
            for l in lines
        ],
        columns=DESTRUCTIONS_REPORT_COLUMNS,
    )
    return frame_to_csv_bytes(df)


def count_report_filename(city: Optional[str]) -> str:
    return f"count_report_{city or 'all'}_{today_stamp()}.csv"


def destructions_report_filename(session_id: str) -> str:
    return f"destructions_{session_id}_{today_stamp()}.csv"
