from __future__ import annotations

import csv
import io
from collections.abc import Iterable, Sequence

from fastapi import Request, Response
from pydantic import BaseModel

CSV_MEDIA_TYPE = "text/csv"


def wants_csv(request: Request) -> bool:
    """True when the client asked for CSV through the Accept header."""
    accept = request.headers.get("accept", "")
    return any(part.split(";")[0].strip().lower() == CSV_MEDIA_TYPE for part in accept.split(","))


def csv_response(items: Iterable[BaseModel], columns: Sequence[str], filename: str) -> Response:
    """Render schema objects as a CSV download.

    Args:
        items: Read schemas; dumped by alias so headers match the JSON view.
        columns: Aliased field names, in column order.
        filename: Suggested download name.
    """
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=list(columns), extrasaction="ignore", lineterminator="\n")
    writer.writeheader()
    for item in items:
        writer.writerow(item.model_dump(mode="json", by_alias=True))

    return Response(
        content=buffer.getvalue(),
        media_type=CSV_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
