# src/grade_watcher/models.py

"""Value types produced by the grade pipeline."""

from dataclasses import dataclass
from typing import Optional, Tuple, TypedDict

# Courses formatted as (name, score, credit)
SemesterGrade = Tuple[Tuple[str, str, float], ...]
SemesterCourses = SemesterGrade


class SemesterInfo(TypedDict):
    """One entry of the upstream semester catalog."""
    id: int
    nameZh: str
    nameEn: str
    schoolYear: str
    current: bool


@dataclass(frozen=True)
class Grade:
    """
    A grade snapshot.

    Equality is structural over all four fields, including the order of
    semesters and of the courses inside each semester.
    """
    gpa: float # Overall GPA
    sem_gpa: float # GPA of selected semesters
    credits: int # All the credits earned
    scores: Tuple[Tuple[str, SemesterGrade], ...] # Scores of selected semesters


def grade_changed(old: Optional[Grade], new: Grade) -> bool:
    """Returns True if `new` differs from the previously observed snapshot."""
    return old is None or old != new
