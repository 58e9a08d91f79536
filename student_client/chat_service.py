"""
Chat endpoints: session list, transcript, send message, rename.
Authorization and refresh-on-401 are handled by APIClient through the session's token hooks.
"""
from urllib.parse import quote, urlencode

from student_client.api_client import APIClient, EmptyResponse
from student_client.schemas import (
    ChatRequestBody,
    ChatResponseBody,
    ChatSessionSummary,
    RenameTitleRequest,
    TranscriptResponse,
)


async def list_chat_sessions(client: APIClient, limit: int = 50) -> list[ChatSessionSummary]:
    query = urlencode({"feature": "chat", "limit": limit})
    return await client.request("GET", f"/sessions?{query}", list[ChatSessionSummary])


async def get_transcript(client: APIClient, session_id: str) -> TranscriptResponse:
    return await client.request("GET", f"/sessions/{quote(session_id, safe='')}/transcript", TranscriptResponse)


async def send_message(client: APIClient, payload: ChatRequestBody) -> ChatResponseBody:
    """Send a chat message to the AI tutor."""
    return await client.request("POST", "/ai/chat", ChatResponseBody, body=payload)


async def rename_session(client: APIClient, session_id: str, new_title: str) -> None:
    await client.request(
        "PATCH",
        f"/sessions/{quote(session_id, safe='')}/title",
        EmptyResponse,
        body=RenameTitleRequest(title=new_title),
    )
