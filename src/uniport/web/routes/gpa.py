"""GPA and CGPA endpoints."""

from fastapi import APIRouter

from uniport.core.gpa import academic_summary, cumulative_gpa, load_course_results
from uniport.core.results import semester_results
from uniport.web.deps import StudentUser
from uniport.web.schemas import (
    AcademicSummaryResponse,
    ApiResponse,
    CumulativeGPAResponse,
    SemesterGPAResponse,
    envelope,
)

router = APIRouter(prefix="/api/gpa", tags=["gpa"])


@router.get("/semester/{semester}", response_model=ApiResponse[SemesterGPAResponse])
async def semester_gpa(semester: str, student: StudentUser) -> ApiResponse:
    """GPA of one semester, e.g. ``1-2024``."""
    return envelope(semester_results(load_course_results(student.id), semester))


@router.get("/cgpa", response_model=ApiResponse[CumulativeGPAResponse])
async def cgpa(student: StudentUser) -> ApiResponse:
    """Cumulative GPA with per-semester breakdown."""
    return envelope(cumulative_gpa(load_course_results(student.id)).to_dict())


@router.get("/academic-summary", response_model=ApiResponse[AcademicSummaryResponse])
async def summary(student: StudentUser) -> ApiResponse:
    """Headline academic figures."""
    return envelope(academic_summary(load_course_results(student.id)).to_dict())
