"""Pure helpers for ordering, grouping and summarising submission records."""

from collections import OrderedDict
from typing import Dict, Iterable, List

from classroom.services.attempts.definitions import SubmissionRecord


def sort_newest_first(records: Iterable[SubmissionRecord]) -> List[SubmissionRecord]:
    # id breaks ties so equal timestamps still order deterministically
    return sorted(records, key=lambda r: (r.submitted_at, r.id), reverse=True)


def latest_per_student(records: Iterable[SubmissionRecord]) -> List[SubmissionRecord]:
    """Keep the most recent record of each (student, exercise) pair, newest first."""
    latest: Dict[tuple, SubmissionRecord] = {}
    for record in sort_newest_first(records):
        latest.setdefault((record.student_id, record.exercise_id), record)
    return sort_newest_first(latest.values())


def group_by_student(records: Iterable[SubmissionRecord]) -> Dict[str, List[SubmissionRecord]]:
    """Student id -> that student's records, newest first.

    Students are ordered by their most recent submission.
    """
    groups: "OrderedDict[str, List[SubmissionRecord]]" = OrderedDict()
    for record in sort_newest_first(records):
        groups.setdefault(record.student_id, []).append(record)
    return groups


def submission_preview(record: SubmissionRecord, limit: int = 100) -> str:
    if record.selected_options:
        text = "Options: " + ", ".join(record.selected_options)
    else:
        text = (record.answer_text or "").strip()
    if not text:
        return "No answer"
    if len(text) > limit:
        return text[:limit].rstrip() + "..."
    return text


def format_duration(seconds: int) -> str:
    seconds = max(0, int(seconds))
    minutes, rest = divmod(seconds, 60)
    if minutes:
        return f"{minutes}min {rest}s"
    return f"{rest}s"
