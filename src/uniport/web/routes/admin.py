"""Admin and lecturer portal endpoints.

Students and the course catalog are admin-only; grading and the
question bank are open to lecturers too (ownership rules apply).
"""

from fastapi import APIRouter, Query, status

from uniport.core import admin
from uniport.web.deps import AdminUser, StaffUser
from uniport.web.schemas import (
    ApiResponse,
    BulkGradeRequest,
    BulkGradeResult,
    CourseCreate,
    CourseResponse,
    CourseUpdate,
    DashboardData,
    EnrollmentResponse,
    GradeRequest,
    GradingCourse,
    QuestionCreate,
    QuestionFilters,
    QuestionListData,
    QuestionResponse,
    QuestionStats,
    QuestionUpdate,
    StudentCreate,
    StudentDetails,
    StudentFilters,
    StudentListData,
    StudentStats,
    StudentUpdate,
    UserResponse,
    envelope,
)

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/dashboard", response_model=ApiResponse[DashboardData])
async def dashboard(user: StaffUser) -> ApiResponse:
    """Role-specific dashboard statistics."""
    return envelope(admin.dashboard_stats(user))


# =============================================================================
# STUDENTS
# =============================================================================


@router.get("/students", response_model=ApiResponse[StudentListData])
async def list_students(
    user: AdminUser,
    department: str | None = None,
    level: int | None = None,
    search: str | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
) -> ApiResponse:
    return envelope(admin.list_students(department, level, search, page, limit))


@router.get("/students/filters", response_model=ApiResponse[StudentFilters])
async def student_filters(user: AdminUser) -> ApiResponse:
    return envelope(admin.student_filters())


@router.get("/students/stats", response_model=ApiResponse[StudentStats])
async def student_stats(user: AdminUser) -> ApiResponse:
    return envelope(admin.student_stats())


@router.get("/students/{student_id}", response_model=ApiResponse[StudentDetails])
async def student_details(student_id: str, user: AdminUser) -> ApiResponse:
    """Profile, academic summary, course history and recent activity."""
    return envelope(admin.student_details(student_id))


@router.post(
    "/students",
    response_model=ApiResponse[UserResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_student(body: StudentCreate, user: AdminUser) -> ApiResponse:
    """Create a student; the password defaults to the matric number."""
    student = admin.create_student(**body.model_dump())
    return envelope(student.to_public_dict(), "Student created successfully")


@router.put("/students/{student_id}", response_model=ApiResponse[UserResponse])
async def update_student(student_id: str, body: StudentUpdate, user: AdminUser) -> ApiResponse:
    student = admin.update_student(student_id, **body.model_dump(exclude_none=True))
    return envelope(student.to_public_dict(), "Student updated successfully")


@router.delete("/students/{student_id}", response_model=ApiResponse[None])
async def delete_student(student_id: str, user: AdminUser) -> ApiResponse:
    admin.delete_student(student_id)
    return envelope(message="Student deleted successfully")


# =============================================================================
# COURSE CATALOG
# =============================================================================


@router.get("/courses", response_model=ApiResponse[list[CourseResponse]])
async def list_courses(
    user: AdminUser,
    semester: int | None = None,
    department: str | None = None,
    level: int | None = None,
) -> ApiResponse:
    courses = admin.list_catalog(semester=semester, department=department, level=level)
    return envelope([c.to_dict() for c in courses])


@router.post(
    "/courses",
    response_model=ApiResponse[CourseResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_course(body: CourseCreate, user: AdminUser) -> ApiResponse:
    course = admin.create_course(**body.model_dump())
    return envelope(course.to_dict(), "Course created successfully")


@router.put("/courses/{course_id}", response_model=ApiResponse[CourseResponse])
async def update_course(course_id: str, body: CourseUpdate, user: AdminUser) -> ApiResponse:
    course = admin.update_course(course_id, **body.model_dump(exclude_none=True))
    return envelope(course.to_dict(), "Course updated successfully")


@router.delete("/courses/{course_id}", response_model=ApiResponse[None])
async def delete_course(course_id: str, user: AdminUser) -> ApiResponse:
    admin.delete_course(course_id)
    return envelope(message="Course deleted successfully")


# =============================================================================
# GRADING
# =============================================================================


@router.get("/grading/courses", response_model=ApiResponse[list[GradingCourse]])
async def grading_courses(user: StaffUser) -> ApiResponse:
    """Courses the user may grade, with their enrolled students."""
    return envelope(admin.grading_courses(user))


@router.post("/grading/grade", response_model=ApiResponse[EnrollmentResponse])
async def grade(body: GradeRequest, user: StaffUser) -> ApiResponse:
    enrollment = admin.grade_enrollment(user, body.enrollment_id, body.score, body.grade)
    return envelope(enrollment.to_dict(), "Grade recorded successfully")


@router.post("/grading/bulk", response_model=ApiResponse[BulkGradeResult])
async def bulk_grade(body: BulkGradeRequest, user: StaffUser) -> ApiResponse:
    """Grade several enrollments; failures are reported per entry."""
    result = admin.bulk_grade(user, [g.model_dump() for g in body.grades])
    return envelope(result, f"{result['graded']} grade(s) recorded")


# =============================================================================
# QUESTION BANK
# =============================================================================


@router.get("/questions", response_model=ApiResponse[QuestionListData])
async def list_questions(
    user: StaffUser,
    course_code: str | None = Query(default=None, alias="courseCode"),
    level: int | None = None,
    difficulty: str | None = None,
    search: str | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
) -> ApiResponse:
    return envelope(
        admin.list_question_bank(user, course_code, level, difficulty, search, page, limit)
    )


@router.get("/questions/filters", response_model=ApiResponse[QuestionFilters])
async def question_filters(user: StaffUser) -> ApiResponse:
    return envelope(admin.question_filters())


@router.get("/questions/stats", response_model=ApiResponse[QuestionStats])
async def question_stats(user: StaffUser) -> ApiResponse:
    return envelope(admin.question_stats())


@router.post(
    "/questions",
    response_model=ApiResponse[QuestionResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_question(body: QuestionCreate, user: StaffUser) -> ApiResponse:
    question = admin.create_question(user, **body.model_dump())
    return envelope(admin.question_to_admin_dict(question), "Question created successfully")


@router.put("/questions/{question_id}", response_model=ApiResponse[QuestionResponse])
async def update_question(
    question_id: str, body: QuestionUpdate, user: StaffUser
) -> ApiResponse:
    """Update a question (lecturers: only their own)."""
    question = admin.update_question(user, question_id, **body.model_dump(exclude_none=True))
    return envelope(admin.question_to_admin_dict(question), "Question updated successfully")


@router.delete("/questions/{question_id}", response_model=ApiResponse[None])
async def delete_question(question_id: str, user: StaffUser) -> ApiResponse:
    admin.delete_question(user, question_id)
    return envelope(message="Question deleted successfully")
