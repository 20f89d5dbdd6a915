import dataclasses

import pytest

from grade_watcher.models import Grade, grade_changed


def make_grade(score="A"):
    return Grade(
        gpa=3.5,
        sem_gpa=3.8,
        credits=120,
        scores=(
            ("2023春", (("线性代数", score, 4.0), ("大学物理", "B+", 3.0))),
        ),
    )


def test_identical_snapshots_are_unchanged():
    assert not grade_changed(make_grade(), make_grade())


def test_single_score_label_difference_is_a_change():
    assert grade_changed(make_grade(), make_grade(score="A-"))


def test_course_order_matters():
    old = make_grade()
    new = dataclasses.replace(old, scores=(("2023春", tuple(reversed(old.scores[0][1]))),))
    assert grade_changed(old, new)


def test_no_previous_snapshot_is_a_change():
    assert grade_changed(None, make_grade())


def test_grade_is_immutable():
    with pytest.raises(dataclasses.FrozenInstanceError):
        make_grade().gpa = 4.0
