"""
CSV export utilities
"""
import csv
import io
from typing import Dict, Iterable, List
from fastapi.responses import StreamingResponse


def _cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "yes" if value else "no"
    return str(value)


def stream_csv(headers: List[str], rows: Iterable[Dict], filename: str = "export.csv") -> StreamingResponse:
    """
    Stream rows as a CSV attachment, one chunk per row.

    Missing keys and None become empty cells.
    """
    def generate():
        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=headers, quoting=csv.QUOTE_MINIMAL)
        writer.writeheader()
        for row in rows:
            writer.writerow({header: _cell(row.get(header)) for header in headers})
            yield buffer.getvalue()
            buffer.seek(0)
            buffer.truncate(0)
        if buffer.getvalue():
            yield buffer.getvalue()

    return StreamingResponse(
        generate(),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
