from __future__ import annotations

import csv
import io
from typing import Sequence

import pandas as pd

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def rows_to_csv(rows: Sequence[dict], columns: Sequence[str]) -> bytes:
    out = io.StringIO()
    writer = csv.DictWriter(out, fieldnames=list(columns))
    writer.writeheader()
    for row in rows:
        writer.writerow(row)
    # BOM so spreadsheet apps detect UTF-8 names.
    return out.getvalue().encode("utf-8-sig")


def rows_to_xlsx(rows: Sequence[dict], columns: Sequence[str], *, sheet_name: str = "Timesheets") -> bytes:
    df = pd.DataFrame(list(rows), columns=list(columns))
    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name=sheet_name)
    return output.getvalue()
