"""Course registration endpoints (students)."""

from fastapi import APIRouter, status

from uniport.core import registration
from uniport.web.deps import StudentUser
from uniport.web.schemas import (
    ApiResponse,
    AvailableCoursesData,
    EnrollmentResponse,
    RegisterCourseRequest,
    RegisteredCoursesData,
    envelope,
)

router = APIRouter(prefix="/api/courses", tags=["courses"])


@router.get("/available", response_model=ApiResponse[AvailableCoursesData])
async def available_courses(student: StudentUser) -> ApiResponse:
    """Courses open for registration this semester."""
    return envelope(registration.available_courses(student))


@router.get("/my-courses", response_model=ApiResponse[RegisteredCoursesData])
async def my_courses(student: StudentUser) -> ApiResponse:
    """The student's registrations for the current semester."""
    return envelope(registration.my_courses(student))


@router.post(
    "/register",
    response_model=ApiResponse[EnrollmentResponse],
    status_code=status.HTTP_201_CREATED,
)
async def register_course(body: RegisterCourseRequest, student: StudentUser) -> ApiResponse:
    """Register for a catalog course."""
    enrollment = registration.register_course(student, body.course_id)
    return envelope(enrollment.to_dict(), "Course registered successfully")


@router.delete("/drop/{enrollment_id}", response_model=ApiResponse[None])
async def drop_course(enrollment_id: str, student: StudentUser) -> ApiResponse:
    """Drop an ungraded registration."""
    registration.drop_course(student, enrollment_id)
    return envelope(message="Course dropped successfully")
