"""Tests for lenient decoding of LMS assignments and today's tasks."""
import pytest
from pydantic import ValidationError

from student_client.schemas import (
    ChatSessionSummary,
    LiveSignalOut,
    MultiCourseTodayResponse,
    MultiCourseTodayTask,
    StudentLMSAssignment,
)


def test_assignment_numeric_id_and_points():
    a = StudentLMSAssignment.model_validate({"id": 101, "title": "Essay", "points": 15})
    assert a.id == "101"
    assert a.points == 15.0
    assert a.points_display == "15 pts"


def test_assignment_fractional_points():
    a = StudentLMSAssignment.model_validate({"id": "x", "title": "Quiz", "points": 7.5})
    assert a.points_display == "7.5 pts"


def test_assignment_missing_fields_fall_back():
    a = StudentLMSAssignment.model_validate({"due_at": "2026-10-20", "points": "n/a"})
    assert a.title == "Untitled assignment"
    assert a.points is None
    assert a.points_display is None
    assert a.id.startswith("fallback_")


def test_assignment_fallback_id_is_stable():
    data = {"id": "", "title": "Lab", "due_at": "2026-10-20"}
    first = StudentLMSAssignment.model_validate(data)
    second = StudentLMSAssignment.model_validate(dict(data))
    assert first.id == second.id
    other = StudentLMSAssignment.model_validate({"title": "Lab", "due_at": "2026-10-21"})
    assert other.id != first.id


def test_today_task_defaults():
    t = MultiCourseTodayTask.model_validate({"course_id": "c1"})
    assert t.title == "Task"
    assert t.id.startswith("task_")
    assert t.course_display == "Course"


def test_today_task_course_display():
    t = MultiCourseTodayTask.model_validate({"id": "t1", "title": "Read", "course_code": "BIO101", "course_title": "Biology"})
    assert t.course_display == "BIO101 • Biology"


def test_chat_session_course_display_prefers_code():
    s = ChatSessionSummary.model_validate({"id": "s1", "started_at": "2026-10-01", "course_title": "Biology"})
    assert s.course_display == "Biology"
    s = ChatSessionSummary.model_validate(
        {"id": "s1", "started_at": "2026-10-01", "course_code": "BIO101", "course_title": "Biology"}
    )
    assert s.course_display == "BIO101"


def test_unknown_signal_type_rejected():
    with pytest.raises(ValidationError):
        LiveSignalOut.model_validate(
            {"id": "s", "course_id": "c", "signal_type": "bored", "created_at": "2026-10-18T09:00:00Z"}
        )


def test_today_task_without_id_and_numeric_course_id_is_validation_error():
    with pytest.raises(ValidationError):
        MultiCourseTodayResponse.model_validate_json('{"tasks": [{"course_id": 5, "title": "Read"}], "note": "n"}')
