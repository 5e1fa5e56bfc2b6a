# stock_count/services/csv_import.py
"""
Upload -> seed rows.

Parses an uploaded export, settles on a column mapping (the session's stored
one when it still fits the file, otherwise auto-detected) and turns every
data row into a seed row.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import pandas as pd

from stock_count.errors import ValidationError
from stock_count.services.column_mapper import detect_columns, mapping_fits
from stock_count.utils import read_csv_smart, to_number, clean_text


@dataclass
class PreparedUpload:
    headers: List[str]
    mapping: Dict[str, str]
    rows: List[Dict[str, Any]]
    detected: Optional[Dict[str, Optional[str]]] = None
    skipped: int = 0
    warnings: List[str] = field(default_factory=list)


def rows_from_frame(df: pd.DataFrame, mapping: Dict[str, str], default_city: str = "") -> List[Dict[str, Any]]:
    out: List[Dict[str, Any]] = []
    city_col = mapping.get("city") or ""
    committed_col = mapping.get("committedQty") or ""
    for rec in df.to_dict(orient="records"):
        out.append({
            "city": clean_text(rec.get(city_col)) if city_col else clean_text(default_city),
            "sku": clean_text(rec.get(mapping["sku"])),
            "name": clean_text(rec.get(mapping["name"])),
            "system_qty": to_number(rec.get(mapping["systemQty"])),
            "committed_qty": to_number(rec.get(committed_col)) if committed_col else 0,
        })
    return out


def prepare_upload(data: bytes, stored_mapping: Optional[Dict[str, str]] = None, default_city: str = "") -> PreparedUpload:
    try:
        df = read_csv_smart(data)
    except ValueError as e:
        raise ValidationError(str(e))
    headers = [str(h) for h in df.columns]

    detected = None
    if mapping_fits(stored_mapping, headers):
        mapping = dict(stored_mapping)
    else:
        detection = detect_columns(headers)
        if detection is None:
            raise ValidationError(f"no mapping found for columns: {', '.join(headers)}")
        mapping = detection.to_mapping().model_dump()
        detected = detection.as_dict()

    rows = rows_from_frame(df, mapping, default_city)
    kept = [r for r in rows if r["sku"]]
    prepared = PreparedUpload(headers=headers, mapping=mapping, rows=kept, detected=detected, skipped=len(rows) - len(kept))
    if prepared.skipped:
        prepared.warnings.append(f"{prepared.skipped} rows without {mapping['sku']} skipped")
    return prepared
