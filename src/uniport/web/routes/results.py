"""Results and transcript endpoints."""

from fastapi import APIRouter

from uniport.core import results
from uniport.core.gpa import load_course_results
from uniport.web.deps import StudentUser
from uniport.web.schemas import (
    AllResultsResponse,
    ApiResponse,
    ProgressResponse,
    SemesterGPAResponse,
    TranscriptResponse,
    envelope,
)

router = APIRouter(prefix="/api/results", tags=["results"])


@router.get("/all", response_model=ApiResponse[AllResultsResponse])
async def all_results(student: StudentUser) -> ApiResponse:
    return envelope(results.all_results(load_course_results(student.id)))


@router.get("/semester/{semester}", response_model=ApiResponse[SemesterGPAResponse])
async def semester_results(semester: str, student: StudentUser) -> ApiResponse:
    return envelope(results.semester_results(load_course_results(student.id), semester))


@router.get("/transcript", response_model=ApiResponse[TranscriptResponse])
async def transcript(student: StudentUser) -> ApiResponse:
    """Full transcript grouped by academic session."""
    courses = load_course_results(student.id)
    return envelope(results.build_transcript(student, courses).to_dict())


@router.get("/progress", response_model=ApiResponse[ProgressResponse])
async def progress(student: StudentUser) -> ApiResponse:
    """GPA trend, grade distribution and pass rate by credit load."""
    return envelope(results.academic_progress(load_course_results(student.id)))
