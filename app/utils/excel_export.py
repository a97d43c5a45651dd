from __future__ import annotations
from typing import List, Dict, Any, Iterable
from io import BytesIO
from datetime import datetime

from openpyxl import Workbook
from openpyxl.utils import get_column_letter
from openpyxl.styles import Font, Alignment

from app.utils.conflict import time_to_minutes

# 0 = Chủ nhật (Sunday)
DAY_LABELS = ["Chủ nhật", "Thứ 2", "Thứ 3", "Thứ 4", "Thứ 5", "Thứ 6", "Thứ 7"]
SESSION_HEADERS = ["Lớp", "Khối", "Thứ", "Bắt đầu", "Kết thúc"]


def _style_header(ws, n_cols: int):
    header_font = Font(bold=True)
    for col_idx in range(1, n_cols + 1):
        cell = ws.cell(row=1, column=col_idx)
        cell.font = header_font
        cell.alignment = Alignment(horizontal="center", vertical="center")


def _autosize(ws):
    for col_idx in range(1, ws.max_column + 1):
        max_len = 0
        for row_idx in range(1, ws.max_row + 1):
            v = ws.cell(row=row_idx, column=col_idx).value
            if v is None:
                continue
            max_len = max(max_len, *(len(line) for line in str(v).split("\n")))
        ws.column_dimensions[get_column_letter(col_idx)].width = min(max_len + 2, 60)


def session_rows(classes: Iterable) -> List[Dict[str, Any]]:
    """
    One row per session, ordered by day then start time.
    Same columns the import reads back.
    """
    rows = []
    for c in classes:
        for s in c.sessions:
            rows.append({
                "Lớp": c.name,
                "Khối": c.grade,
                "Thứ": s.day_of_week,
                "Bắt đầu": s.start_time,
                "Kết thúc": s.end_time,
            })
    rows.sort(key=lambda r: (r["Thứ"], time_to_minutes(r["Bắt đầu"]), r["Lớp"]))
    return rows


def week_grid(classes: Iterable) -> List[List[str]]:
    """
    Rows = distinct time windows, columns = days (Sunday first).
    A cell lists every class meeting in that window on that day.
    """
    grid: Dict[tuple, Dict[int, List[str]]] = {}
    for c in classes:
        for s in c.sessions:
            grid.setdefault((s.start_time, s.end_time), {}).setdefault(s.day_of_week, []).append(c.name)

    out = []
    for start, end in sorted(grid, key=lambda w: (time_to_minutes(w[0]), time_to_minutes(w[1]))):
        by_day = grid[(start, end)]
        out.append([f"{start}-{end}"] + ["\n".join(sorted(by_day.get(d, []))) for d in range(7)])
    return out


def schedule_to_xlsx_bytes(classes) -> bytes:
    classes = list(classes)
    wb = Workbook()

    ws = wb.active
    ws.title = "Sessions"
    ws.append(SESSION_HEADERS)
    _style_header(ws, len(SESSION_HEADERS))
    for r in session_rows(classes):
        ws.append([r[h] for h in SESSION_HEADERS])
    _autosize(ws)

    grid_ws = wb.create_sheet("Week")
    grid_ws.append(["Giờ"] + DAY_LABELS)
    _style_header(grid_ws, len(DAY_LABELS) + 1)
    for row in week_grid(classes):
        grid_ws.append(row)
    for row in grid_ws.iter_rows(min_row=2):
        for cell in row:
            cell.alignment = Alignment(wrap_text=True, vertical="top")
    _autosize(grid_ws)

    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()


def make_filename(prefix: str = "schedule") -> str:
    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    return f"{prefix}_{ts}.xlsx"
