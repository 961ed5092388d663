from __future__ import annotations
import csv
import io
from typing import Iterable
from desafio.models.completion import ChallengeCompletion

CSV_COLUMNS = [
    "id",
    "created_at",
    "full_name",
    "state",
    "city",
    "whatsapp",
    "order_number",
    "challenge_slug",
    "challenge_name",
    "strava_screenshot_url",
    "status",
    "is_confirmed",
]

def _cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)

def to_csv(rows: Iterable[ChallengeCompletion]) -> str:
    """
    Header row plus one line per completion.
    Fields containing a comma, quote or line break are quoted with inner quotes doubled.
    """
    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for row in rows:
        writer.writerow([_cell(getattr(row, col)) for col in CSV_COLUMNS])
    return output.getvalue()
