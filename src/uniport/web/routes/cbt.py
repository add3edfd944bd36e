"""CBT practice endpoints (students)."""

from fastapi import APIRouter, Query, status

from uniport.core import cbt
from uniport.web.deps import StudentUser
from uniport.web.schemas import (
    AnswerRequest,
    AnswerResult,
    ApiResponse,
    HistoryData,
    PracticeCoursesData,
    SessionResponse,
    SessionResultsData,
    StartSessionRequest,
    envelope,
)

router = APIRouter(prefix="/api/cbt", tags=["cbt"])


@router.get("/courses", response_model=ApiResponse[PracticeCoursesData])
async def practice_courses(student: StudentUser) -> ApiResponse:
    """Courses with practice questions at or below the student's level."""
    return envelope(cbt.practice_courses(student))


@router.post(
    "/session/start",
    response_model=ApiResponse[SessionResponse],
    status_code=status.HTTP_201_CREATED,
)
async def start_session(body: StartSessionRequest, student: StudentUser) -> ApiResponse:
    """Start a practice session; questions come without their answers."""
    session, questions = cbt.start_session(
        student,
        course_code=body.course_code,
        question_count=body.question_count,
        difficulty=body.difficulty,
        time_limit=body.time_limit,
        session_type=body.session_type,
    )
    return envelope(
        cbt.session_to_dict(session, {q.id: q for q in questions}),
        "Practice session started",
    )


@router.post("/session/answer", response_model=ApiResponse[AnswerResult])
async def submit_answer(body: AnswerRequest, student: StudentUser) -> ApiResponse:
    """Answer one question of an in-progress session."""
    result = cbt.submit_answer(
        student,
        session_id=body.session_id,
        question_id=body.question_id,
        selected_answer=body.selected_answer,
        time_spent=body.time_spent,
    )
    return envelope(result)


@router.post("/session/complete/{session_id}", response_model=ApiResponse[SessionResponse])
async def complete_session(session_id: str, student: StudentUser) -> ApiResponse:
    session = cbt.complete_session(student, session_id)
    return envelope(cbt.session_to_dict(session), "Practice session completed")


@router.post("/session/abandon/{session_id}", response_model=ApiResponse[SessionResponse])
async def abandon_session(session_id: str, student: StudentUser) -> ApiResponse:
    session = cbt.abandon_session(student, session_id)
    return envelope(cbt.session_to_dict(session), "Practice session abandoned")


@router.get("/session/results/{session_id}", response_model=ApiResponse[SessionResultsData])
async def session_results(session_id: str, student: StudentUser) -> ApiResponse:
    """Session with correct answers, explanations and analysis."""
    return envelope(cbt.session_results(student, session_id))


@router.get("/history", response_model=ApiResponse[HistoryData])
async def history(
    student: StudentUser,
    course_code: str | None = Query(default=None, alias="courseCode"),
    limit: int | None = Query(default=None, ge=1),
) -> ApiResponse:
    """Completed sessions (newest first) and overall statistics."""
    return envelope(cbt.practice_history(student, course_code=course_code, limit=limit))
