"""
Rendering of reports into Markdown notes.

A note is a frontmatter header of `key: value` lines followed by the raw
vulnerability write-up. The report id is always the last hyphen-separated
token of the file name; reconcile.py relies on that to find existing notes.
"""

import json
import logging
import re
from dataclasses import dataclass

from .bounty import resolve_bounty

logger = logging.getLogger(__name__)

# --- Constants ---
NOTE_TYPE = "bug-bounty-vuln"
REPORT_URL = "https://hackerone.com/reports/{id}"
NOTE_EXTENSION = ".md"
UNDEFINED = "undefined"
# Rendered by build_note itself rather than as plain attributes
SPECIAL_ATTRIBUTES = ('title', 'vulnerability_information')
TITLE_ESCAPED_CHARS = "'[]/"
FILENAME_UNSAFE_RE = re.compile(r'[^A-Za-z0-9 _-]')


@dataclass(frozen=True)
class ReportNote:
    id: str
    content: str
    filename: str


def format_value(value) -> str:
    if value is None:
        return 'null'
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def serialize_attributes(attributes) -> str:
    """One `key: value` line per attribute, in payload order. Values are not escaped."""
    lines = []
    for key, value in attributes.items():
        if key in SPECIAL_ATTRIBUTES:
            continue
        lines.append(f"{key}: {format_value(value)}\n")
    return ''.join(lines)


def escape_title(title) -> str:
    """Title as a header value: colons become spaces, ' [ ] / get a backslash."""
    escaped = title.replace(':', ' ')
    for char in TITLE_ESCAPED_CHARS:
        escaped = escaped.replace(char, '\\' + char)
    return escaped


def filename_title(title) -> str:
    return FILENAME_UNSAFE_RE.sub('_', title)


def note_filename(folder, title, report_id) -> str:
    return f"{folder}/{filename_title(title)}-{report_id}{NOTE_EXTENSION}"


def build_note(report, earnings, folder) -> ReportNote:
    """Renders one report (plus its resolved bounty) into a ReportNote under folder."""
    severity = report.severity if report.severity is not None else UNDEFINED
    program = report.program if report.program is not None else UNDEFINED
    bounty = resolve_bounty(report.id, earnings)

    header = (
        f"---\n"
        f"Type: {NOTE_TYPE}\n"
        f"title: {escape_title(report.title)}\n"
        f"url: {REPORT_URL.format(id=report.id)}\n"
        f"{serialize_attributes(report.attributes)}"
        f"bounty: {bounty}\n"
        f"severity: {severity}\n"
        f"program: {program}\n"
        f"---\n"
    )
    body = report.vulnerability_information.replace('<%', '<')

    filename = note_filename(folder, report.title, report.id)
    logger.debug(f"Built note for report {report.id} -> {filename} (bounty={bounty}, severity={severity}, program={program})")
    return ReportNote(id=report.id, content=header + body, filename=filename)
