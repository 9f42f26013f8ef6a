"""Render fetched rows as a short text message or an HTML document.

Small results (fewer than 4 rows and fewer than 2 columns) are sent as
text; anything larger becomes a document file uploaded to the gateway.
"""

import html
import json
import logging
import secrets
from datetime import UTC, datetime
from pathlib import Path

from reportcast.reports.types import Artifact, ArtifactKind, Row

logger = logging.getLogger(__name__)

TEXT_MAX_ROWS = 4
TEXT_MAX_COLUMNS = 2

DOCUMENT_TEMPLATE = """\
<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <title>{title}</title>
</head>
<body>
  <h1>{title}</h1>
  <p>Generated {generated_at}</p>
  <table border="1" cellpadding="4" cellspacing="0">
{rows}
  </table>
</body>
</html>
"""


def column_names(rows: list[Row]) -> list[str]:
    """Columns of the result, in first-seen order across all rows."""
    names: dict[str, None] = {}
    for row in rows:
        for key in row:
            names.setdefault(key, None)
    return list(names)


def use_text_form(rows: list[Row]) -> bool:
    """Whether a result is small enough to send as a text message.

    The column count comes from the first row, 0 for an empty result.
    """
    cols = len(rows[0]) if rows else 0
    return len(rows) < TEXT_MAX_ROWS and cols < TEXT_MAX_COLUMNS


def _format_cell(value: object) -> str:
    if value is None:
        return ""
    return html.escape(str(value))


class Renderer:
    """Produces artifacts; documents are written under `output_dir`."""

    def __init__(self, output_dir: Path):
        self._output_dir = output_dir

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    def render(self, display_name: str, rows: list[Row], *, report_id: str) -> Artifact:
        if use_text_form(rows):
            return self.render_text(display_name, rows)
        return self.render_document(display_name, rows, report_id=report_id)

    def render_text(self, display_name: str, rows: list[Row]) -> Artifact:
        body = json.dumps(rows, indent=2, default=str)
        return Artifact(
            kind=ArtifactKind.TEXT,
            display_name=display_name,
            text=f"{display_name}\n{body}",
        )

    def render_document(
        self, display_name: str, rows: list[Row], *, report_id: str
    ) -> Artifact:
        now = datetime.now(UTC)
        columns = column_names(rows)

        lines = [
            "    <tr>"
            + "".join(f"<th>{html.escape(c)}</th>" for c in columns)
            + "</tr>"
        ]
        for row in rows:
            cells = "".join(f"<td>{_format_cell(row.get(c))}</td>" for c in columns)
            lines.append(f"    <tr>{cells}</tr>")

        content = DOCUMENT_TEMPLATE.format(
            title=html.escape(display_name),
            generated_at=now.strftime("%Y-%m-%d %H:%M UTC"),
            rows="\n".join(lines),
        )

        path = self._output_dir / self._document_name(report_id, now)
        self._output_dir.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        logger.debug(f"Rendered {len(rows)} rows to {path}")

        return Artifact(kind=ArtifactKind.DOCUMENT, display_name=display_name, path=path)

    @staticmethod
    def _document_name(report_id: str, now: datetime) -> str:
        # Unique per firing so concurrent jobs never share a file
        safe_id = "".join(c if c.isalnum() or c in "-_" else "_" for c in report_id)
        stamp = now.strftime("%Y%m%dT%H%M%S")
        return f"{safe_id}-{stamp}-{secrets.token_hex(4)}.html"
