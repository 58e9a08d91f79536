"""
Live class endpoints: in-class signals, scratchpad, recap, today's context.
Dates are ISO day strings (YYYY-MM-DD), passed through as-is.
"""
from urllib.parse import quote, urlencode

from student_client.api_client import APIClient
from student_client.schemas import (
    LiveContextOut,
    LiveRecapOut,
    LiveRecapRequestBody,
    LiveResolutionState,
    LiveScratchpadUpdateBody,
    LiveSignalCreateBody,
    LiveSignalOut,
    LiveSignalType,
    LiveSignalUpdateBody,
)


def _none_if_blank(text: str | None) -> str | None:
    if text is None:
        return None
    text = text.strip()
    return text or None


async def list_signals(client: APIClient, course_id: str, session_date: str, limit: int = 200) -> list[LiveSignalOut]:
    query = urlencode({"course_id": course_id, "day": session_date, "limit": limit})
    return await client.request("GET", f"/student/live/signals?{query}", list[LiveSignalOut])


async def create_signal(
    client: APIClient,
    course_id: str,
    signal_type: LiveSignalType,
    note: str | None = None,
    session_date: str | None = None,
) -> LiveSignalOut:
    body = LiveSignalCreateBody(
        course_id=course_id,
        signal_type=signal_type,
        note_text=_none_if_blank(note),
        session_date=session_date,
    )
    return await client.request("POST", "/student/live/signals", LiveSignalOut, body=body)


async def update_signal(
    client: APIClient,
    signal_id: str,
    resolution: LiveResolutionState | None = None,
    note: str | None = None,
) -> LiveSignalOut:
    body = LiveSignalUpdateBody(note_text=_none_if_blank(note), resolution_state=resolution)
    return await client.request(
        "PATCH", f"/student/live/signals/{quote(signal_id, safe='')}", LiveSignalOut, body=body
    )


async def save_scratchpad(
    client: APIClient, course_id: str, session_date: str | None, text: str | None
) -> LiveRecapOut:
    # Unlike notes, a blank scratchpad is sent as "" so the server clears it
    body = LiveScratchpadUpdateBody(
        course_id=course_id,
        session_date=session_date,
        scratchpad_text=text.strip() if text is not None else None,
    )
    return await client.request("PATCH", "/student/live/scratchpad", LiveRecapOut, body=body)


async def get_recap(client: APIClient, course_id: str, session_date: str) -> LiveRecapOut | None:
    """Backend returns null when no recap exists yet."""
    query = urlencode({"course_id": course_id, "session_date": session_date})
    return await client.request("GET", f"/student/live/recap?{query}", LiveRecapOut | None)


async def generate_recap(
    client: APIClient,
    course_id: str,
    session_date: str | None,
    use_ai: bool,
    mode: str = "mini",
) -> LiveRecapOut:
    body = LiveRecapRequestBody(course_id=course_id, session_date=session_date, use_ai=use_ai, mode=mode)
    return await client.request("POST", "/student/live/recap", LiveRecapOut, body=body)


async def get_context(client: APIClient, course_id: str) -> LiveContextOut:
    """Today-only context: unresolved confusions and upcoming assignments."""
    query = urlencode({"course_id": course_id})
    return await client.request("GET", f"/student/live/context?{query}", LiveContextOut)
