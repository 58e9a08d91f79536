"""
Pydantic models for EduLens request bodies and responses.
Field names match the backend's JSON (snake_case). Unknown fields are ignored.
"""
import hashlib
from enum import Enum
from typing import Any

from pydantic import BaseModel, model_validator


def _stable_id(prefix: str, *parts: Any) -> str:
    """Deterministic id from content, for rows the backend sends without one."""
    base = "|".join("" if p is None else str(p) for p in parts)
    return prefix + hashlib.sha1(base.encode("utf-8")).hexdigest()[:16]


def _coerce_id(value: Any) -> str | None:
    """LMS ids arrive as string or number; empty string counts as missing."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value or None
    if isinstance(value, (int, float)):
        return str(int(value))
    return None


# --- Auth ---


class DevLoginRequest(BaseModel):
    email: str
    role: str = "student"
    secret: str | None = None


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str
    role: str
    user_id: str


class RefreshRequest(BaseModel):
    refresh_token: str


class RefreshResponse(BaseModel):
    # Both optional on the wire; an empty access_token is rejected by the client
    access_token: str | None = None
    refresh_token: str | None = None


class MeResponse(BaseModel):
    id: str | None = None
    role: str | None = None
    institution_id: str | None = None


# --- Student / courses ---


class Branding(BaseModel):
    school_name: str | None = None
    logo_url: str | None = None
    primary_color: str | None = None
    accent_color: str | None = None


class Course(BaseModel):
    id: str
    code: str
    title: str | None = None
    term: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    grace_days: int | None = None


class StudentWeeklyReflectionStatus(BaseModel):
    course_id: str
    course_code: str
    course_title: str | None = None
    require_weekly_reflection: bool
    has_submitted: bool
    submitted_count: int
    last_submitted_at: str | None = None


class MultiCourseTodayTask(BaseModel):
    id: str
    course_id: str | None = None
    course_code: str | None = None
    course_title: str | None = None
    title: str = "Task"
    description: str | None = None
    assignment_id: str | None = None
    due_date: str | None = None
    estimated_minutes: int | None = None
    reason: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _fill_id(cls, data: Any) -> Any:
        # Older backends omit id, or send it as a number
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if not isinstance(data.get("title"), str):
            data["title"] = "Task"
        task_id = _coerce_id(data.get("id"))
        if task_id is None:
            task_id = _stable_id("task_", data.get("course_id"), data["title"], data.get("due_date"))
        data["id"] = task_id
        return data

    @property
    def course_display(self) -> str:
        code = (self.course_code or "").strip()
        title = (self.course_title or "").strip()
        if code and title:
            return f"{code} • {title}"
        return code or title or "Course"


class MultiCourseTodayResponse(BaseModel):
    generated_at: str | None = None
    tasks: list[MultiCourseTodayTask]
    note: str


# --- Assignments (LMS) ---


class StudentLMSAssignment(BaseModel):
    id: str
    title: str = "Untitled assignment"
    description: str | None = None
    due_at: str | None = None
    points: float | None = None

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if not isinstance(data.get("title"), str):
            data["title"] = "Untitled assignment"
        due_at = data.get("due_at")
        if not isinstance(due_at, str):
            data["due_at"] = None
        assignment_id = _coerce_id(data.get("id"))
        if assignment_id is None:
            assignment_id = _stable_id("fallback_", data["title"].lower(), data["due_at"])
        data["id"] = assignment_id
        points = data.get("points")
        if isinstance(points, bool) or not isinstance(points, (int, float)):
            data["points"] = None
        return data

    @property
    def points_display(self) -> str | None:
        if self.points is None:
            return None
        if float(self.points).is_integer():
            return f"{int(self.points)} pts"
        return f"{self.points} pts"


class StudentCourseLMSAssignments(BaseModel):
    course_id: str
    external_lms_type: str | None = None
    external_lms_id: str | None = None
    assignments: list[StudentLMSAssignment]


class AssignmentPlanRequestBody(BaseModel):
    assignment_id: str
    hours_available: float | None = None
    notes: str | None = None


class AssignmentPlanResponse(BaseModel):
    course_id: str
    assignment: StudentLMSAssignment
    plan_markdown: str


# --- Chat ---


class ChatSessionSummary(BaseModel):
    id: str
    started_at: str
    ended_at: str | None = None
    feature: str | None = None
    model_tier: str | None = None
    save_content: bool | None = None
    title: str | None = None
    # Extra fields list_sessions adds on top of the session model
    has_reflection: bool | None = None
    reflection_text: str | None = None
    submitted_reflection: bool | None = None
    course_id: str | None = None
    course_code: str | None = None
    course_title: str | None = None

    @property
    def course_display(self) -> str | None:
        return self.course_code or self.course_title or None


class ChatRequestBody(BaseModel):
    session_id: str | None = None
    course_id: str | None = None
    week: int | None = None
    message: str
    mode: str = "mini"
    private_mode: bool = False


class ChatResponseBody(BaseModel):
    session_id: str
    reply: str
    token_in: int
    token_out: int
    model_tier: str
    reflection_suggestion: str | None = None
    resolved_week: int | None = None


class TranscriptMessage(BaseModel):
    role: str
    content: str
    ts: str

    @property
    def is_user(self) -> bool:
        return self.role == "user"


class TranscriptResponse(BaseModel):
    session_id: str
    messages: list[TranscriptMessage]


class RenameTitleRequest(BaseModel):
    title: str


# --- Live class ---


class LiveSignalType(str, Enum):
    KEY = "key"
    CONFUSED = "confused"
    IMPORTANT = "important"
    CONNECTION = "connection"


class LiveResolutionState(str, Enum):
    RESOLVED = "resolved"
    STILL_UNCLEAR = "still_unclear"


class LiveSignalCreateBody(BaseModel):
    course_id: str
    signal_type: LiveSignalType
    note_text: str | None = None
    session_date: str | None = None


class LiveSignalUpdateBody(BaseModel):
    note_text: str | None = None
    resolution_state: LiveResolutionState | None = None


class LiveSignalOut(BaseModel):
    id: str
    course_id: str
    signal_type: LiveSignalType
    note_text: str | None = None
    created_at: str
    resolution_state: LiveResolutionState | None = None
    resolved_at: str | None = None


class LiveScratchpadUpdateBody(BaseModel):
    course_id: str
    session_date: str | None = None
    scratchpad_text: str | None = None


class LiveRecapRequestBody(BaseModel):
    course_id: str
    session_date: str | None = None
    use_ai: bool | None = None
    mode: str | None = None  # "mini" or "deep"


class LiveRecapOut(BaseModel):
    id: str
    course_id: str
    session_date: str
    recap_text: str
    open_confusions: int
    created_at: str
    updated_at: str | None = None
    scratchpad_text: str | None = None
    token_in: int | None = None
    token_out: int | None = None
    model_tier: str | None = None
    ai_mode: str | None = None


class LMSAssignmentSummary(BaseModel):
    title: str
    description: str | None = None
    due_at: str | None = None


class LiveContextOut(BaseModel):
    course_id: str
    session_date: str
    unresolved_confusions_today: int
    upcoming_assignments: list[LMSAssignmentSummary]
