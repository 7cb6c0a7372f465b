"""Render backend payloads as plain text for voice and chat front ends.

Every formatter is total: malformed or missing input yields a fixed fallback
sentence instead of an error.
"""
import json
from typing import Any, Mapping

NO_COURSES = "No courses available at the moment."
NO_FAQS = "No FAQs available right now."
NO_ENROLLMENTS = "No recent enrollments."


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _field(entry: Any, key: str) -> str:
    if not isinstance(entry, Mapping):
        return ""
    value = entry.get(key)
    return "" if value is None else str(value)


def _course_line(course: Any) -> str:
    summary = course.get("summary") if isinstance(course, Mapping) else None
    if summary:
        return str(summary)
    return json.dumps(course, separators=(",", ":"), ensure_ascii=False, default=str)


def courses_to_text(data: Any) -> str:
    # expected: {"courses": [{"summary": "..."}, ...]}
    if not isinstance(data, Mapping) or not _is_sequence(data.get("courses")):
        return NO_COURSES
    lines = [_course_line(c) for c in data["courses"]]
    return "\n".join(lines) if lines else NO_COURSES


def faqs_to_text(data: Any) -> str:
    # expected: [{"question": ..., "answer": ...}, ...]
    if not _is_sequence(data) or not data:
        return NO_FAQS
    return "\n".join(f"{_field(f, 'question')}: {_field(f, 'answer')}" for f in data)


def _program(entry: Any) -> str:
    code = entry.get("program_code") if isinstance(entry, Mapping) else None
    return str(code) if code else "a course"


def enrollments_to_text(data: Any) -> str:
    # expected: [{"full_name": ..., "program_code": ..., "created_at": ...}, ...]
    if not _is_sequence(data) or not data:
        return NO_ENROLLMENTS
    return "\n".join(
        f"{_field(e, 'full_name')} enrolled in {_program(e)} on {_field(e, 'created_at')}"
        for e in data
    )
