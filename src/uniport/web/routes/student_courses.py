"""Student-maintained course list endpoints."""

from fastapi import APIRouter, status

from uniport.core import student_courses
from uniport.web.deps import StudentUser
from uniport.web.schemas import (
    ApiResponse,
    RegistrationSummary,
    StudentCourseCreate,
    StudentCourseResponse,
    StudentCoursesData,
    StudentCourseUpdate,
    envelope,
)

router = APIRouter(prefix="/api/student-courses", tags=["student-courses"])


@router.post(
    "/add",
    response_model=ApiResponse[StudentCourseResponse],
    status_code=status.HTTP_201_CREATED,
)
async def add_course(body: StudentCourseCreate, student: StudentUser) -> ApiResponse:
    """Add a course to the student's list."""
    record = student_courses.add_course(
        student,
        course_code=body.course_code,
        course_title=body.course_title,
        credit_units=body.credit_units,
        lecturer=body.lecturer,
        schedule=body.schedule.model_dump() if body.schedule else None,
    )
    return envelope(student_courses.record_to_dict(record), "Course added successfully")


@router.get("/my-courses", response_model=ApiResponse[StudentCoursesData])
async def my_courses(student: StudentUser) -> ApiResponse:
    """The student's course list for the current semester."""
    return envelope(student_courses.my_courses(student))


@router.put("/update/{course_id}", response_model=ApiResponse[StudentCourseResponse])
async def update_course(
    course_id: str, body: StudentCourseUpdate, student: StudentUser
) -> ApiResponse:
    """Update a course on the student's list."""
    fields = body.model_dump(exclude_none=True)
    record = student_courses.update_course(student, course_id, **fields)
    return envelope(student_courses.record_to_dict(record), "Course updated successfully")


@router.delete("/delete/{course_id}", response_model=ApiResponse[None])
async def delete_course(course_id: str, student: StudentUser) -> ApiResponse:
    """Remove a course from the student's list."""
    student_courses.delete_course(student, course_id)
    return envelope(message="Course deleted successfully")


@router.get("/summary", response_model=ApiResponse[RegistrationSummary])
async def summary(student: StudentUser) -> ApiResponse:
    """Credit usage against the limit."""
    return envelope(student_courses.registration_summary(student))
