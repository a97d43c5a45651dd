from datetime import time, datetime
from typing import BinaryIO, Dict, List, Optional

import pandas as pd

# Vietnamese headers as written by the export, English ones as fallback
COLUMN_ALIASES = {
    "name": ["Lớp", "name"],
    "grade": ["Khối", "grade"],
    "day_of_week": ["Thứ", "dayOfWeek"],
    "start_time": ["Bắt đầu", "startTime"],
    "end_time": ["Kết thúc", "endTime"],
}


class ExcelFormatError(ValueError):
    pass


def to_str(v):
    if v is None or (not isinstance(v, (time, datetime)) and pd.isna(v)):
        return None
    s = str(v).strip()
    return None if s == "" or s.lower() == "nan" else s


def to_int(v):
    if v is None or pd.isna(v):
        return None
    try:
        f = float(v)
    except (TypeError, ValueError):
        return None
    # 1.7 is not a day or a grade
    if not f.is_integer():
        return None
    return int(f)


def to_hhmm(v):
    # Excel time cells come back as datetime.time / datetime
    if isinstance(v, (time, datetime)):
        return v.strftime("%H:%M")
    s = to_str(v)
    if s and len(s) == 8 and s.count(":") == 2:
        # "08:00:00"
        s = s[:5]
    return s


def find_header_row(df_raw: pd.DataFrame) -> int:
    # 找到包含「Lớp」的那一列當表頭
    targets = set(COLUMN_ALIASES["name"])
    for i in range(min(30, len(df_raw))):
        row = [str(x).strip() for x in df_raw.iloc[i].tolist()]
        if targets.intersection(row):
            return i
    return -1


def _pick(row, key):
    for col in COLUMN_ALIASES[key]:
        if col in row.index:
            return row.get(col)
    return None


def read_session_rows(fileobj: BinaryIO) -> List[Dict[str, Optional[object]]]:
    """
    Read one session per row. Values are only coerced, not validated;
    "row" is the 1-based spreadsheet row number for error reporting.
    """
    df_raw = pd.read_excel(fileobj, header=None)
    header_i = find_header_row(df_raw)
    if header_i == -1:
        raise ExcelFormatError("Cannot find header row in Excel")

    header = df_raw.iloc[header_i].tolist()
    df = df_raw.iloc[header_i + 1:].copy()
    df.columns = [str(c).strip() for c in header]

    rows = []
    for offset, (_, row) in enumerate(df.iterrows()):
        name = to_str(_pick(row, "name"))
        if not name:
            continue
        rows.append({
            "row": header_i + offset + 2,
            "name": name,
            "grade": to_int(_pick(row, "grade")),
            "day_of_week": to_int(_pick(row, "day_of_week")),
            "start_time": to_hhmm(_pick(row, "start_time")),
            "end_time": to_hhmm(_pick(row, "end_time")),
        })
    return rows
