# src/grade_watcher/extractor.py

"""
Turns the two raw grade-list payloads into a Grade snapshot.

The upstream JSON is loosely typed, so every lookup below may fail. All
lookups raise the same private signal, which `extract_grade` turns into a
single ``None``: either the whole snapshot is built or nothing is.
"""

import json
import logging
from typing import Any, Mapping, Optional

from .models import Grade

log = logging.getLogger(__name__)


class _Malformed(Exception):
    """Raised by the lookup helpers; never leaves this module."""


def _field(node: Any, key: str) -> Any:
    if not isinstance(node, dict) or key not in node:
        raise _Malformed(key)
    return node[key]


def _as_float(value: Any) -> float:
    # bool is an int subclass but never a valid number here
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise _Malformed(value)
    try:
        return float(value)
    except OverflowError:
        raise _Malformed("number out of range")


def _as_unsigned(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise _Malformed(value)
    return value


def _as_str(value: Any) -> str:
    if not isinstance(value, str):
        raise _Malformed(value)
    return value


def _as_list(value: Any) -> list:
    if not isinstance(value, list):
        raise _Malformed(value)
    return value


def _parse(payload: str) -> Any:
    try:
        return json.loads(payload)
    except (ValueError, RecursionError):
        raise _Malformed("invalid JSON")


def _course(entry: Any):
    return (
        _as_str(_field(entry, 'courseNameCh')),
        _as_str(_field(entry, 'scoreCh')),
        _as_float(_field(entry, 'credits')),
    )


def _semester(entry: Any, semester_names: Mapping[int, str]):
    semester_id = _as_unsigned(_field(entry, 'id'))
    if semester_id not in semester_names:
        raise _Malformed(f"unknown semester id {semester_id}")
    courses = tuple(_course(course) for course in _as_list(_field(entry, 'scores')))
    return semester_names[semester_id], courses


def extract_grade(all_payload: str, filtered_payload: str, semester_names: Mapping[int, str]) -> Optional[Grade]:
    """
    Builds a Grade from the unfiltered and the semester-filtered grade lists.

    `gpa` and `credits` are read from the unfiltered payload only, `sem_gpa`
    and `scores` from the filtered one. Semester ids are resolved through
    `semester_names`; scores keep the order of the filtered payload.

    Args:
        all_payload: Raw body of the grade list queried with no semester filter.
        filtered_payload: Raw body of the grade list queried for the selected semesters.
        semester_names: Maps semester id to its display name.

    Returns:
        The Grade, or None if either payload is malformed anywhere.
    """
    try:
        all_tree = _parse(all_payload)
        filtered_tree = _parse(filtered_payload)

        overview = _field(all_tree, 'overview')
        gpa = _as_float(_field(overview, 'gpa'))
        credits = _as_unsigned(_field(overview, 'passedCredits'))
        sem_gpa = _as_float(_field(_field(filtered_tree, 'overview'), 'gpa'))

        scores = tuple(
            _semester(entry, semester_names)
            for entry in _as_list(_field(filtered_tree, 'semesters'))
        )
    except _Malformed as e:
        log.warning(f"Grade payload is malformed at: {e}")
        return None

    return Grade(gpa=gpa, sem_gpa=sem_gpa, credits=credits, scores=scores)
