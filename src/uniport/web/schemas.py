"""Pydantic schemas for the Web API.

Every response is wrapped in ``ApiResponse`` ({success, message, data}).
JSON keys are camelCase; request bodies accept camelCase or snake_case.
"""

from __future__ import annotations

from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


class ApiResponse(CamelModel, Generic[T]):
    """Response envelope."""

    success: bool = True
    message: str = ""
    data: T | None = None


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    pages: int


class Schedule(CamelModel):
    """Weekly slot of a course."""

    day: str = ""
    time: str = ""
    venue: str = ""


# =============================================================================
# HEALTH
# =============================================================================


class HealthResponse(BaseModel):
    """Response for health check."""

    status: str
    version: str
    timestamp: str


# =============================================================================
# AUTH
# =============================================================================


class RegisterRequest(CamelModel):
    """Request body for student self-registration."""

    matric_no: str = Field(..., min_length=1, max_length=50)
    email: str = Field(..., min_length=3, max_length=200)
    password: str = Field(..., min_length=1)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    department: str = Field(..., min_length=1, max_length=100)
    level: int = 100


class LoginRequest(CamelModel):
    """Request body for login (matric/staff number or email)."""

    matric_no: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserResponse(CamelModel):
    id: str
    matric_no: str
    email: str
    first_name: str
    last_name: str
    role: str
    department: str
    level: int
    phone: str | None = None
    address: str | None = None
    created_at: str


class AuthData(CamelModel):
    user: UserResponse
    token: str


# =============================================================================
# COURSE REGISTRATION
# =============================================================================


class CourseResponse(CamelModel):
    """Catalog course."""

    id: str
    course_code: str
    course_title: str
    credit_units: int
    semester: int
    level: int
    department: str
    prerequisite: list[str] = Field(default_factory=list)
    lecturer: str = ""
    capacity: int
    enrolled: int = 0
    schedule: Schedule | None = None
    is_active: bool = True


class AvailableCourse(CourseResponse):
    is_registered: bool
    can_register: bool


class StudentTerm(CamelModel):
    level: int
    department: str
    semester: int


class AvailableCoursesData(CamelModel):
    courses: list[AvailableCourse]
    student: StudentTerm


class RegisteredCourse(CourseResponse):
    enrollment_id: str
    registration_status: str
    registered_at: str
    grade: str = ""


class RegisteredCoursesData(CamelModel):
    courses: list[RegisteredCourse]
    total_credits: int
    semester: str


class RegisterCourseRequest(CamelModel):
    course_id: str = Field(..., min_length=1)


class EnrollmentResponse(CamelModel):
    id: str
    student_id: str
    course_id: str
    semester: int
    session: str
    registered_at: str
    status: str
    score: float | None = None
    grade: str | None = None
    graded_at: str | None = None


# =============================================================================
# STUDENT COURSE LIST
# =============================================================================


class StudentCourseCreate(CamelModel):
    """Request body for adding a course to the student's own list."""

    course_code: str = Field(..., min_length=1, max_length=20)
    course_title: str = Field(..., min_length=1, max_length=200)
    credit_units: int
    lecturer: str = Field(default="", max_length=100)
    schedule: Schedule | None = None


class StudentCourseUpdate(CamelModel):
    """Request body for updating a course on the student's list."""

    course_code: str | None = Field(default=None, min_length=1, max_length=20)
    course_title: str | None = Field(default=None, min_length=1, max_length=200)
    credit_units: int | None = None
    lecturer: str | None = None
    schedule: Schedule | None = None
    status: Literal["registered", "dropped"] | None = None


class StudentCourseResponse(CamelModel):
    id: str
    student_id: str
    course_code: str
    course_title: str
    credit_units: int
    semester: str
    session: str
    lecturer: str = ""
    schedule: Schedule | None = None
    grade: str = ""
    status: str
    added_at: str
    created_at: str
    updated_at: str


class StudentCoursesData(CamelModel):
    courses: list[StudentCourseResponse]
    total_credits: int
    semester: str


class RegistrationSummary(CamelModel):
    total_credits: int
    registered_count: int
    max_credits: int
    courses: list[StudentCourseResponse]


# =============================================================================
# GPA & RESULTS
# =============================================================================


class CourseResultResponse(CamelModel):
    id: str = ""
    course_code: str
    course_title: str
    credit_units: int
    grade: str = ""
    grade_point: int
    quality_points: float
    lecturer: str = ""


class SemesterGPAResponse(CamelModel):
    semester: str
    total_credits: int
    total_quality_points: float
    gpa: float
    courses: list[CourseResultResponse]


class CumulativeGPAResponse(CamelModel):
    total_credits: int
    total_quality_points: float
    cgpa: float
    semesters: list[SemesterGPAResponse]


class AcademicSummaryResponse(CamelModel):
    current_gpa: float
    cgpa: float
    total_courses: int
    completed_courses: int
    registered_courses: int
    total_credits: int


class OverallResults(CamelModel):
    total_courses: int
    total_credits: int
    cgpa: float


class AllResultsResponse(CamelModel):
    semesters: list[SemesterGPAResponse]
    overall: OverallResults


class SemesterBlock(CamelModel):
    courses: list[CourseResultResponse]
    total_credits: int
    total_quality_points: float
    gpa: float


class TranscriptSession(CamelModel):
    session: str
    first_semester: SemesterBlock
    second_semester: SemesterBlock


class TranscriptStudent(CamelModel):
    matric_no: str
    full_name: str
    email: str
    department: str
    current_level: int
    graduation_date: str | None = None


class TranscriptOverall(CamelModel):
    total_credits: int
    cumulative_quality_points: float
    cgpa: float
    class_of_degree: str


class TranscriptResponse(CamelModel):
    student: TranscriptStudent
    academic_sessions: list[TranscriptSession]
    overall: TranscriptOverall
    generated_at: str


class GPATrendPoint(CamelModel):
    semester: str
    gpa: float
    credits: int
    courses: int


class PassRate(CamelModel):
    total: int
    passed: int


class ProgressResponse(CamelModel):
    gpa_trend: list[GPATrendPoint]
    grade_distribution: dict[str, int]
    performance_by_credits: dict[str, PassRate]


# =============================================================================
# CBT
# =============================================================================


class DifficultyBreakdown(CamelModel):
    easy: int = 0
    medium: int = 0
    hard: int = 0


class PracticeCourse(CamelModel):
    course_code: str
    course_title: str
    question_count: int
    difficulty_breakdown: DifficultyBreakdown


class PracticeCoursesData(CamelModel):
    courses: list[PracticeCourse]
    student_level: int


class StartSessionRequest(CamelModel):
    """Request body for starting a practice session."""

    course_code: str = Field(..., min_length=1)
    question_count: int | None = None
    difficulty: str = "all"
    time_limit: int | None = None
    session_type: str = "practice"


class QuestionView(CamelModel):
    """Question as shown during a session (no answer)."""

    id: str
    question: str
    options: list[str]
    difficulty: str
    course_code: str
    course_title: str = ""


class RevealedQuestion(QuestionView):
    correct_answer: int
    explanation: str | None = None


class SessionSlot(CamelModel):
    question_id: str
    question: QuestionView | None = None
    selected_answer: int = -1
    is_correct: bool | None = None
    time_spent: int | None = None


class SessionResponse(CamelModel):
    id: str
    course_code: str
    session_type: str
    total_questions: int
    completed_questions: int
    correct_answers: int
    percentage: float
    time_limit: int
    time_spent: int
    started_at: str
    completed_at: str | None = None
    status: str
    questions: list[SessionSlot]


class RevealedSlot(SessionSlot):
    question: RevealedQuestion | None = None


class RevealedSession(SessionResponse):
    """Session with answers and explanations."""

    questions: list[RevealedSlot]


class AnswerRequest(CamelModel):
    """Request body for answering one question."""

    session_id: str = Field(..., min_length=1)
    question_id: str = Field(..., min_length=1)
    selected_answer: int
    time_spent: int | None = None


class AnswerResult(CamelModel):
    is_correct: bool
    correct_answer: int
    explanation: str | None = None
    completed_questions: int
    correct_answers: int
    percentage: float


class DifficultyTally(CamelModel):
    total: int
    correct: int


class SessionAnalysis(CamelModel):
    difficulty: dict[str, DifficultyTally]
    accuracy_by_difficulty: dict[str, float]
    average_time_per_question: float


class SessionResultsData(CamelModel):
    session: RevealedSession
    analysis: SessionAnalysis


class HistoryEntry(CamelModel):
    id: str
    course_code: str
    session_type: str
    total_questions: int
    correct_answers: int
    percentage: float
    time_spent: int
    completed_at: str | None = None


class OverallStats(CamelModel):
    total_sessions: int
    total_questions: int
    total_correct: int
    average_score: float
    total_time_spent: int
    overall_accuracy: float


class HistoryData(CamelModel):
    history: list[HistoryEntry]
    overall_stats: OverallStats


# =============================================================================
# ADMIN: DASHBOARD
# =============================================================================


class RecentGrade(CamelModel):
    enrollment_id: str
    student_id: str
    course_code: str
    grade: str | None = None
    graded_at: str | None = None


class RecentActivity(CamelModel):
    recent_students: list[UserResponse]
    recent_grades: list[RecentGrade]


class AdminStats(CamelModel):
    total_students: int
    total_lecturers: int
    total_courses: int
    total_questions: int
    recent_activity: RecentActivity


class LecturerStats(CamelModel):
    courses_count: int
    students_count: int
    graded_count: int
    pending_grading: int
    my_questions: int


class DashboardData(CamelModel):
    stats: AdminStats | LecturerStats
    user_role: str


# =============================================================================
# ADMIN: STUDENTS
# =============================================================================


class StudentCreate(CamelModel):
    """Request body for creating a student (password defaults to matric number)."""

    matric_no: str = Field(..., min_length=1, max_length=50)
    email: str = Field(..., min_length=3, max_length=200)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    department: str = Field(..., min_length=1, max_length=100)
    level: int = 100
    password: str | None = None
    phone: str | None = None
    address: str | None = None


class StudentUpdate(CamelModel):
    email: str | None = None
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    department: str | None = Field(default=None, min_length=1, max_length=100)
    level: int | None = None
    phone: str | None = None
    address: str | None = None
    password: str | None = None


class StudentListData(CamelModel):
    students: list[UserResponse]
    pagination: Pagination


class StudentFilters(CamelModel):
    departments: list[str]
    levels: list[int]


class StudentStats(CamelModel):
    total_students: int
    department_breakdown: dict[str, int]
    level_breakdown: dict[str, int]
    recent_registrations: int


class StudentAcademicSummary(CamelModel):
    total_courses: int
    completed_courses: int
    current_courses: int
    total_credits: int
    cgpa: float
    current_semester: str


class CourseHistoryEntry(CamelModel):
    id: str
    course_code: str
    course_title: str
    credit_units: int
    grade: str = ""
    grade_point: int
    semester: str
    lecturer: str = ""
    status: str


class StudentActivity(CamelModel):
    type: str
    course_code: str
    percentage: float
    status: str
    started_at: str


class StudentDetails(CamelModel):
    student: UserResponse
    academic_summary: StudentAcademicSummary
    courses: list[CourseHistoryEntry]
    recent_activity: list[StudentActivity]


# =============================================================================
# ADMIN: COURSES
# =============================================================================


class CourseCreate(CamelModel):
    """Request body for adding a catalog course."""

    course_code: str = Field(..., min_length=1, max_length=20)
    course_title: str = Field(..., min_length=1, max_length=200)
    credit_units: int
    semester: int
    level: int
    department: str = Field(..., min_length=1, max_length=100)
    prerequisite: list[str] = Field(default_factory=list)
    lecturer: str = ""
    lecturer_id: str | None = None
    capacity: int = 100
    schedule: Schedule | None = None
    is_active: bool = True


class CourseUpdate(CamelModel):
    course_code: str | None = Field(default=None, min_length=1, max_length=20)
    course_title: str | None = Field(default=None, min_length=1, max_length=200)
    credit_units: int | None = None
    semester: int | None = None
    level: int | None = None
    department: str | None = None
    prerequisite: list[str] | None = None
    lecturer: str | None = None
    lecturer_id: str | None = None
    capacity: int | None = None
    schedule: Schedule | None = None
    is_active: bool | None = None


# =============================================================================
# ADMIN: GRADING
# =============================================================================


class GradingStudent(CamelModel):
    id: str
    student: UserResponse
    credit_units: int
    grade: str = ""
    score: float | None = None
    semester: str
    status: str


class GradingCourse(CamelModel):
    course_id: str
    course_code: str
    course_title: str
    students: list[GradingStudent]


class GradeRequest(CamelModel):
    """Grade one enrollment by score (grade derived) or letter grade."""

    enrollment_id: str = Field(..., min_length=1)
    score: float | None = None
    grade: str | None = None


class BulkGradeRequest(CamelModel):
    grades: list[GradeRequest] = Field(..., min_length=1)


class BulkGradeError(CamelModel):
    enrollment_id: str
    message: str


class BulkGradeResult(CamelModel):
    graded: int
    errors: list[BulkGradeError]


# =============================================================================
# ADMIN: QUESTION BANK
# =============================================================================


class QuestionAuthor(CamelModel):
    id: str
    first_name: str
    last_name: str


class QuestionCreate(CamelModel):
    """Request body for a new question."""

    question: str = Field(..., min_length=1)
    options: list[str]
    correct_answer: int
    course_code: str = Field(..., min_length=1, max_length=20)
    course_title: str = ""
    level: int
    semester: int = 1
    difficulty: str = "medium"
    explanation: str | None = None
    tags: list[str] = Field(default_factory=list)


class QuestionUpdate(CamelModel):
    question: str | None = Field(default=None, min_length=1)
    options: list[str] | None = None
    correct_answer: int | None = None
    course_code: str | None = None
    course_title: str | None = None
    level: int | None = None
    semester: int | None = None
    difficulty: str | None = None
    explanation: str | None = None
    tags: list[str] | None = None
    is_active: bool | None = None


class QuestionResponse(CamelModel):
    id: str
    question: str
    options: list[str]
    correct_answer: int
    course_code: str
    course_title: str = ""
    level: int
    semester: int
    difficulty: str
    explanation: str | None = None
    tags: list[str] = Field(default_factory=list)
    created_by: QuestionAuthor | None = None
    is_active: bool
    created_at: str
    updated_at: str


class QuestionListData(CamelModel):
    questions: list[QuestionResponse]
    pagination: Pagination


class QuestionFilters(CamelModel):
    courses: list[str]
    levels: list[int]


class QuestionStats(CamelModel):
    total_questions: int
    difficulty_breakdown: DifficultyBreakdown
    course_breakdown: dict[str, int]
    level_breakdown: dict[str, int]


def envelope(data: Any = None, message: str = "") -> ApiResponse[Any]:
    """Wrap a payload in a successful response."""
    return ApiResponse(success=True, message=message, data=data)
