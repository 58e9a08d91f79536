"""
Student data endpoints: branding, courses, weekly reflections, today's plan, LMS assignments.
Each accepts an optional explicit access_token; otherwise the session's token hooks are used.
"""
from urllib.parse import quote

from student_client.api_client import APIClient
from student_client.schemas import (
    AssignmentPlanRequestBody,
    AssignmentPlanResponse,
    Branding,
    Course,
    MultiCourseTodayResponse,
    StudentCourseLMSAssignments,
    StudentWeeklyReflectionStatus,
)


async def fetch_branding(client: APIClient, access_token: str | None = None) -> Branding:
    return await client.request("GET", "/branding", Branding, access_token=access_token)


async def fetch_my_courses(client: APIClient, access_token: str | None = None) -> list[Course]:
    return await client.request("GET", "/my/courses", list[Course], access_token=access_token)


async def fetch_weekly_reflection_status(
    client: APIClient, access_token: str | None = None
) -> list[StudentWeeklyReflectionStatus]:
    return await client.request(
        "GET",
        "/student/reflections/weekly_status",
        list[StudentWeeklyReflectionStatus],
        access_token=access_token,
    )


async def fetch_today_all_courses(client: APIClient, access_token: str | None = None) -> MultiCourseTodayResponse:
    """Today's suggested tasks across all enrolled courses."""
    return await client.request(
        "GET", "/agent/students/today_all_courses", MultiCourseTodayResponse, access_token=access_token
    )


async def fetch_assignments(
    client: APIClient, course_id: str, access_token: str | None = None
) -> StudentCourseLMSAssignments:
    return await client.request(
        "GET",
        f"/student/courses/{quote(course_id, safe='')}/lms_assignments",
        StudentCourseLMSAssignments,
        access_token=access_token,
    )


async def generate_assignment_plan(
    client: APIClient,
    course_id: str,
    assignment_id: str,
    hours_available: float | None = None,
    notes: str | None = None,
    access_token: str | None = None,
) -> AssignmentPlanResponse:
    body = AssignmentPlanRequestBody(assignment_id=assignment_id, hours_available=hours_available, notes=notes)
    return await client.request(
        "POST",
        f"/student/courses/{quote(course_id, safe='')}/assignment_plan",
        AssignmentPlanResponse,
        body=body,
        access_token=access_token,
    )
