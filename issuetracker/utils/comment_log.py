# issuetracker/utils/comment_log.py
"""
QA comment log embedded in a task description.

QA pass/reopen actions render one line per comment onto the end of the
description text::

    \\nQA Reopen Reason (3/14/2025, 4:05:09 pm): still fails on Safari

The decoder below turns those lines back into timestamped events. Lines
whose date or time cannot be parsed are dropped without raising, and a
message that itself contains a newline followed by ``QA`` is cut short at
that point.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

from issuetracker.models.task import CommentType

logger = logging.getLogger(__name__)

SYNTHESIZED_PASS_MESSAGE = "Completed without explicit comment"

# Seconds are optional and am/pm is matched case-insensitively
COMMENT_LINE_RE = re.compile(
    r"QA (Pass Comments|Reopen Reason) "
    r"\((\d{1,2}/\d{1,2}/\d{4}), (\d{1,2}:\d{2}(?::\d{2})?) ((?i:am|pm))\): "
    r"(.*?)(?=\nQA|\n\n|\Z)",
    re.DOTALL,
)

_COMMENT_PREFIX_RE = re.compile(r"^(QA |Test Execution |Test Notes |Reopen Reason)", re.IGNORECASE)


@dataclass
class CommentEvent:
    comment_type: CommentType
    timestamp: datetime
    message: str
    task_key: Optional[str] = None
    task_title: Optional[str] = None
    author_name: Optional[str] = None
    synthesized: bool = False

    @property
    def result(self) -> str:
        return result_label(self.comment_type)


def result_label(comment_type: CommentType) -> str:
    """Test-result label shown by QA views."""
    return "Pass" if CommentType(comment_type) == CommentType.PASS else "Fail"


def format_timestamp(when: datetime) -> str:
    """Render ``when`` as ``M/D/YYYY, h:mm:ss am|pm``."""
    hour = when.hour % 12 or 12
    suffix = "am" if when.hour < 12 else "pm"
    return f"{when.month}/{when.day}/{when.year}, {hour}:{when.minute:02d}:{when.second:02d} {suffix}"


def encode_comment_line(comment_type: CommentType, message: str, when: datetime) -> str:
    comment_type = CommentType(comment_type)
    return f"\nQA {comment_type.value} ({format_timestamp(when)}): {(message or '').strip()}"


def append_comment(description: Optional[str], comment_type: CommentType, message: str, when: datetime) -> str:
    return (description or "") + encode_comment_line(comment_type, message, when)


def parse_timestamp(date_str: str, time_str: str, ampm: str) -> Optional[datetime]:
    """Parse ``M/D/YYYY`` plus a 12-hour clock time; None when impossible."""
    try:
        month, day, year = (int(part) for part in date_str.split("/"))
        parts = [int(part) for part in time_str.split(":")]
        hour, minute = parts[0], parts[1]
        second = parts[2] if len(parts) > 2 else 0

        ampm = ampm.lower()
        if ampm == "pm" and hour < 12:
            hour += 12
        if ampm == "am" and hour == 12:
            hour = 0

        return datetime(year, month, day, hour, minute, second)
    except (ValueError, IndexError):
        logger.debug("Dropping comment with unparseable timestamp: %s %s %s", date_str, time_str, ampm)
        return None


def decode_comments(description: Optional[str]) -> List[CommentEvent]:
    """Extract comment events from description text, in append order."""
    events = []
    for match in COMMENT_LINE_RE.finditer(description or ""):
        comment_type, date_str, time_str, ampm, message = match.groups()
        timestamp = parse_timestamp(date_str, time_str, ampm)
        if timestamp is None:
            continue
        events.append(CommentEvent(
            comment_type=CommentType(comment_type),
            timestamp=timestamp,
            message=message.strip(),
        ))
    return events


def render_comment_lines(events: Iterable[CommentEvent]) -> str:
    """Notes text for test-case views, one comment per paragraph."""
    return "\n\n".join(
        f"{event.comment_type.value} ({format_timestamp(event.timestamp)}): {event.message}"
        for event in events
    )


def extract_expected_result(description: Optional[str]) -> str:
    """First description line that is not a comment line."""
    lines = [line.strip() for line in (description or "").split("\n") if line.strip()]
    for line in lines:
        if not _COMMENT_PREFIX_RE.match(line):
            return line
    return lines[0] if lines else "No expected result specified"


def synthesize_pass_event(resolved_at: datetime, task_key: Optional[str] = None,
                          task_title: Optional[str] = None) -> CommentEvent:
    return CommentEvent(
        comment_type=CommentType.PASS,
        timestamp=resolved_at,
        message=SYNTHESIZED_PASS_MESSAGE,
        task_key=task_key,
        task_title=task_title,
        synthesized=True,
    )


def recent_events(events: Iterable[CommentEvent], limit: Optional[int] = None) -> List[CommentEvent]:
    """Newest first, truncated to ``limit`` when given."""
    ordered = sorted(events, key=lambda event: event.timestamp, reverse=True)
    return ordered if limit is None else ordered[:limit]
