"""
export_service.py — Journal export
Renders a user's entries for a date range as HTML, Markdown, CSV or PDF.
Formatting functions are pure: they take loaded entries and return text
or bytes. PDF rendering goes through WeasyPrint when it is installed.
"""

import csv
import io
from dataclasses import dataclass
from datetime import date, datetime

from jinja2 import BaseLoader, Environment, select_autoescape
from markupsafe import Markup, escape
from sqlalchemy.orm import Session

from config import APP_NAME
from models.journal import JournalEntry
from services.journal_service import JournalService, SearchFilters
from services.result import ValidationError, require_user, service_call, unwrap

FORMATS = {
    "html": (".html", "text/html; charset=utf-8"),
    "markdown": (".md", "text/markdown; charset=utf-8"),
    "csv": (".csv", "text/csv; charset=utf-8"),
    "pdf": (".pdf", "application/pdf"),
}

CSV_HEADER = [
    "Date", "Title", "Primary Mood", "Secondary Mood 1", "Secondary Mood 2",
    "Category", "Is Favorite", "Content", "Tags",
]

HTML_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{{ app_name }} Journal Export</title>
  <style>
    body { font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif; line-height: 1.6; color: #333; background: #f5f5f5; padding: 20px; }
    .container { max-width: 900px; margin: 0 auto; background: white; padding: 30px; border-radius: 8px; }
    h1 { color: #6366f1; border-bottom: 2px solid #6366f1; padding-bottom: 10px; }
    .entry { margin-bottom: 40px; padding-bottom: 30px; border-bottom: 1px solid #eee; }
    .entry:last-child { border-bottom: none; }
    .entry-date { font-size: 14px; color: #666; }
    .entry-title { font-size: 24px; color: #1a202c; font-weight: 600; margin-bottom: 10px; }
    .badge { background: #f0f0f0; padding: 4px 12px; border-radius: 20px; color: #555; font-size: 12px; }
    .mood-badge { background: #e0e7ff; color: #4338ca; }
    .tag { background: #e0e7ff; color: #6366f1; padding: 4px 10px; border-radius: 15px; font-size: 12px; }
    .export-info { background: #f0f9ff; border-left: 4px solid #0284c7; padding: 15px; margin-bottom: 30px; }
    @media print { body { background: white; } }
  </style>
</head>
<body>
  <div class="container">
    <h1>📔 Journal Export</h1>
    <div class="export-info">
      <strong>Total Entries:</strong> {{ entries|length }}<br/>
      <strong>Date Range:</strong> {{ start|longdate }} - {{ end|longdate }}<br/>
      <strong>Export Date:</strong> {{ exported_at.strftime('%B %d, %Y %H:%M') }}
    </div>
    {% for entry in entries %}
    <div class="entry">
      <div class="entry-title">{{ entry.title }}</div>
      <div class="entry-date">{{ entry.date.strftime('%A, %B %d, %Y') }}</div>
      <div class="entry-meta">
        <span class="badge mood-badge">{{ entry.primary_mood.emoji }} {{ entry.primary_mood.label }}</span>
        {% for mood in entry.secondary_moods %}
        <span class="badge mood-badge">{{ mood.emoji }} {{ mood.label }}</span>
        {% endfor %}
        <span class="badge">{{ entry.category.label }}</span>
        {% if entry.is_favorite %}<span class="badge">⭐ Favorite</span>{% endif %}
      </div>
      <div class="entry-content">{{ entry.content|nl2br }}</div>
      {% if entry.tags %}
      <div class="tags">
        {% for tag in entry.tags %}<span class="tag">#{{ tag.name }}</span> {% endfor %}
      </div>
      {% endif %}
    </div>
    {% endfor %}
  </div>
</body>
</html>
"""


def _nl2br(text: str | None) -> Markup:
    return Markup("<br/>").join(escape(text or "").split("\n"))


def _longdate(value: date) -> str:
    return value.strftime("%B %d, %Y")


_env = Environment(loader=BaseLoader(), autoescape=select_autoescape())
_env.filters["nl2br"] = _nl2br
_env.filters["longdate"] = _longdate


def _newest_first(entries: list[JournalEntry]) -> list[JournalEntry]:
    return sorted(entries, key=lambda e: e.date, reverse=True)


def to_html(entries: list[JournalEntry], start: date, end: date, exported_at: datetime | None = None) -> str:
    tmpl = _env.from_string(HTML_TEMPLATE)
    return tmpl.render(
        app_name=APP_NAME,
        entries=_newest_first(entries),
        start=start,
        end=end,
        exported_at=exported_at or datetime.now(),
    )


def to_markdown(entries: list[JournalEntry], start: date, end: date, exported_at: datetime | None = None) -> str:
    exported_at = exported_at or datetime.now()
    lines = [
        "# 📔 Journal Export",
        "",
        f"**Date Range:** {_longdate(start)} - {_longdate(end)}  ",
        f"**Total Entries:** {len(entries)}  ",
        f"**Export Date:** {exported_at.strftime('%B %d, %Y %H:%M')}",
        "",
        "---",
        "",
    ]
    for entry in _newest_first(entries):
        moods = " · ".join(f"{m.emoji} {m.label}" for m in [entry.primary_mood, *entry.secondary_moods])
        lines += [
            f"## {entry.title}",
            "",
            f"**Date:** {entry.date.strftime('%A, %B %d, %Y')}  ",
            f"**Mood:** {moods}  ",
            f"**Category:** {entry.category.label}  ",
        ]
        if entry.is_favorite:
            lines.append("⭐ **Favorite**")
        lines += ["", entry.content, ""]
        if entry.tags:
            lines += ["**Tags:** " + " · ".join(f"#{t.name}" for t in entry.tags), ""]
        lines += ["---", ""]
    return "\n".join(lines)


def _csv_cell(value: str | None) -> str:
    # One record per line: flatten embedded line breaks
    return (value or "").replace("\r\n", " ").replace("\n", " ").replace("\r", " ")


def to_csv(entries: list[JournalEntry]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for entry in _newest_first(entries):
        writer.writerow([
            entry.date.isoformat(),
            _csv_cell(entry.title),
            entry.primary_mood.label,
            entry.secondary_mood_1.label if entry.secondary_mood_1 else "",
            entry.secondary_mood_2.label if entry.secondary_mood_2 else "",
            entry.category.label,
            str(entry.is_favorite),
            _csv_cell(entry.content),
            ", ".join(f"#{t.name}" for t in entry.tags),
        ])
    return buf.getvalue()


def to_pdf(entries: list[JournalEntry], start: date, end: date) -> bytes:
    try:
        from weasyprint import HTML
    except (ImportError, OSError) as e:
        # OSError: the package is there but Pango or Cairo is missing
        raise RuntimeError(
            "WeasyPrint is not installed or its system libraries are missing. Install with: pip install 'daybook-backend[pdf]'"
        ) from e
    return HTML(string=to_html(entries, start, end)).write_pdf()


def export_filename(fmt: str, start: date, end: date) -> str:
    ext = FORMATS.get(fmt, (".txt", None))[0]
    return f"journal_{start.isoformat()}_{end.isoformat()}{ext}"


@dataclass
class ExportDocument:
    filename: str
    media_type: str
    content: bytes


class ExportService:
    @staticmethod
    @service_call("Error exporting journal")
    def export(db: Session, user_id: int, fmt: str, start: date, end: date) -> ExportDocument:
        require_user(user_id)
        if fmt not in FORMATS:
            raise ValidationError(f"Unsupported export format: {fmt!r}.")
        if start > end:
            raise ValidationError("Start date must be on or before end date.")

        entries = unwrap(JournalService.search(db, user_id, SearchFilters(start_date=start, end_date=end)))

        if fmt == "html":
            content = to_html(entries, start, end).encode("utf-8")
        elif fmt == "markdown":
            content = to_markdown(entries, start, end).encode("utf-8")
        elif fmt == "csv":
            content = to_csv(entries).encode("utf-8")
        else:
            content = to_pdf(entries, start, end)

        return ExportDocument(
            filename=export_filename(fmt, start, end),
            media_type=FORMATS[fmt][1],
            content=content,
        )
