from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Union
import io, math, re

import pandas as pd

Number = Union[int, float]


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def today_stamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")


def _compact(n: float) -> Number:
    return int(n) if float(n).is_integer() else n


def to_number(v: Any) -> Number:
    """Tolerant quantity parser: "1,234" -> 1234, junk -> 0."""
    if isinstance(v, bool):
        return int(v)
    if isinstance(v, (int, float)):
        return _compact(v) if math.isfinite(v) else 0
    s = re.sub(r"[,\s]", "", str(v if v is not None else ""))
    try:
        n = float(s)
    except ValueError:
        return 0
    return _compact(n) if math.isfinite(n) else 0


def clean_text(v: Any) -> str:
    return "" if v is None else str(v).strip()


# CSV helpers
def read_csv_smart(data: bytes, max_rows: int | None = None) -> pd.DataFrame:
    encodings = ["utf-8-sig", "cp1250", "latin-1"]
    seps = [",", ";", "\t", "|"]
    last_err = None
    for enc in encodings:
        try:
            text = data.decode(enc)
        except UnicodeDecodeError as e:
            last_err = e
            continue
        for sep in seps:
            try:
                df = pd.read_csv(
                    io.StringIO(text),
                    sep=sep,
                    dtype=str,
                    nrows=max_rows,
                    keep_default_na=False,
                    skip_blank_lines=True,
                    on_bad_lines="skip",
                )
            except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
                last_err = e
                continue
            if df.shape[1] > 1:
                clean_headers_inplace(df)
                return df
    if last_err:
        raise ValueError(f"Cannot parse CSV: {last_err}")
    raise ValueError("Cannot parse CSV: no delimiter produced more than one column")


def clean_headers_inplace(df: pd.DataFrame) -> None:
    cols = []
    for c in df.columns:
        s = str(c).replace("\u00A0", " ").strip()
        cols.append(s)
    df.columns = cols
    # pandas names blank header cells "Unnamed: N"
    keep = [c for c in df.columns if c and not c.startswith("Unnamed:")]
    if len(keep) != len(df.columns):
        df.drop(columns=[c for c in df.columns if c not in keep], inplace=True)


def frame_to_csv_bytes(df: pd.DataFrame) -> bytes:
    return df.to_csv(index=False, sep=",", lineterminator="\n").encode("utf-8")
