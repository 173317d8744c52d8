"""Pydantic request/response schemas used by the API.

Schemas keep API input/output shapes stable and provide validation for
controller handlers and tests. Every schema serialises with camelCase
aliases (`firstName`, `currentEnrollment`, ...) because that is what the
admin UI consumes, and accepts either camelCase or snake_case on input.
"""

from datetime import date, datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from .models import StudentStatus, ProfessorStatus, CourseStatus, EnrollmentStatus, GradeStatus
from .utils.grading import PARTIAL_MIN, PARTIAL_MAX


class ApiModel(BaseModel):
    """Base schema: camelCase aliases, ORM attribute loading."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


Partial = Optional[float]


def partial_field():
    return Field(default=None, ge=PARTIAL_MIN, le=PARTIAL_MAX)


# --- students -------------------------------------------------------------

class StudentCreate(ApiModel):
    """Payload for creating a student."""
    carnet: str = Field(min_length=1)
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    phone: str
    career: str = Field(min_length=1)
    enrollment_date: Optional[date] = None
    status: StudentStatus = StudentStatus.ACTIVE


class StudentUpdate(ApiModel):
    """Partial update for a student; only fields sent are applied."""
    carnet: Optional[str] = Field(default=None, min_length=1)
    first_name: Optional[str] = Field(default=None, min_length=1)
    last_name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[str] = Field(default=None, min_length=3)
    phone: Optional[str] = None
    career: Optional[str] = Field(default=None, min_length=1)
    enrollment_date: Optional[date] = None
    status: Optional[StudentStatus] = None


class StudentOut(ApiModel):
    id: int
    carnet: str
    first_name: str
    last_name: str
    email: str
    phone: str
    career: str
    enrollment_date: date
    status: StudentStatus
    created_at: datetime
    updated_at: datetime


# --- professors -----------------------------------------------------------

class ProfessorCreate(ApiModel):
    """Payload for creating a professor."""
    employee_id: str = Field(min_length=1)
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    phone: str
    specialty: str
    department: str = Field(min_length=1)
    hire_date: Optional[date] = None
    status: ProfessorStatus = ProfessorStatus.ACTIVE


class ProfessorUpdate(ApiModel):
    employee_id: Optional[str] = Field(default=None, min_length=1)
    first_name: Optional[str] = Field(default=None, min_length=1)
    last_name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[str] = Field(default=None, min_length=3)
    phone: Optional[str] = None
    specialty: Optional[str] = None
    department: Optional[str] = Field(default=None, min_length=1)
    hire_date: Optional[date] = None
    status: Optional[ProfessorStatus] = None


class ProfessorOut(ApiModel):
    id: int
    employee_id: str
    first_name: str
    last_name: str
    email: str
    phone: str
    specialty: str
    department: str
    hire_date: date
    status: ProfessorStatus
    created_at: datetime
    updated_at: datetime


# --- courses --------------------------------------------------------------

class CourseCreate(ApiModel):
    """Payload for creating a course.

    `currentEnrollment` is not accepted; it starts at zero and is owned
    by the enrollment service.
    """
    code: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: Optional[str] = None
    credits: int = Field(gt=0)
    professor_id: int
    max_capacity: int = Field(gt=0)
    schedule: str
    semester: str = Field(min_length=1)
    status: CourseStatus = CourseStatus.ACTIVE


class CourseUpdate(ApiModel):
    code: Optional[str] = Field(default=None, min_length=1)
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    credits: Optional[int] = Field(default=None, gt=0)
    professor_id: Optional[int] = None
    max_capacity: Optional[int] = Field(default=None, gt=0)
    schedule: Optional[str] = None
    semester: Optional[str] = Field(default=None, min_length=1)
    status: Optional[CourseStatus] = None


class CourseOut(ApiModel):
    id: int
    code: str
    name: str
    description: Optional[str] = None
    credits: int
    professor_id: int
    max_capacity: int
    current_enrollment: int
    schedule: str
    semester: str
    status: CourseStatus
    created_at: datetime
    updated_at: datetime


class CourseWithProfessor(CourseOut):
    professor: Optional[ProfessorOut] = None


class ProfessorWithCourses(ProfessorOut):
    courses: List[CourseOut] = []


# --- enrollments ----------------------------------------------------------

class EnrollmentCreate(ApiModel):
    """Payload for enrolling a student in a course."""
    student_id: int
    course_id: int
    status: EnrollmentStatus = EnrollmentStatus.ENROLLED


class EnrollmentUpdate(ApiModel):
    status: EnrollmentStatus


class EnrollmentOut(ApiModel):
    id: int
    student_id: int
    course_id: int
    enrollment_date: datetime
    status: EnrollmentStatus
    created_at: datetime
    updated_at: datetime


class EnrollmentDetail(EnrollmentOut):
    student: Optional[StudentOut] = None
    course: Optional[CourseOut] = None


class EnrollmentWithCourse(EnrollmentOut):
    course: Optional[CourseWithProfessor] = None


class EnrollmentWithStudent(EnrollmentOut):
    student: Optional[StudentOut] = None


class CourseDetail(CourseWithProfessor):
    enrollments: List[EnrollmentWithStudent] = []


# --- grades ---------------------------------------------------------------

class GradeCreate(ApiModel):
    """Payload for recording a grade; partials are on a 0-10 scale."""
    student_id: int
    course_id: int
    partial1: Partial = partial_field()
    partial2: Partial = partial_field()
    partial3: Partial = partial_field()
    comments: Optional[str] = None


class GradeUpdate(ApiModel):
    """Partial update for a grade.

    `finalGrade` and `status` are derived and therefore not accepted. An
    explicit `null` for a partial clears it.
    """
    partial1: Partial = partial_field()
    partial2: Partial = partial_field()
    partial3: Partial = partial_field()
    comments: Optional[str] = None


class GradeOut(ApiModel):
    id: int
    student_id: int
    course_id: int
    partial1: Partial = None
    partial2: Partial = None
    partial3: Partial = None
    final_grade: Optional[float] = None
    status: GradeStatus
    comments: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class GradeDetail(GradeOut):
    student: Optional[StudentOut] = None
    course: Optional[CourseOut] = None


class GradeWithCourse(GradeOut):
    course: Optional[CourseWithProfessor] = None


class GradeWithStudent(GradeOut):
    student: Optional[StudentOut] = None


class StudentDetail(StudentOut):
    enrollments: List[EnrollmentWithCourse] = []
    grades: List[GradeWithCourse] = []


# --- envelopes ------------------------------------------------------------

class PaginationOut(ApiModel):
    total: int
    page: int
    limit: int
    total_pages: int


class StudentPage(ApiModel):
    students: List[StudentOut]
    pagination: PaginationOut


class ProfessorPage(ApiModel):
    professors: List[ProfessorWithCourses]
    pagination: PaginationOut


class CoursePage(ApiModel):
    courses: List[CourseWithProfessor]
    pagination: PaginationOut


class EnrollmentPage(ApiModel):
    enrollments: List[EnrollmentDetail]
    pagination: PaginationOut


class GradePage(ApiModel):
    grades: List[GradeDetail]
    pagination: PaginationOut


class StatsOut(ApiModel):
    """Aggregate counters for the dashboard."""
    total_students: int
    total_professors: int
    total_courses: int
    total_enrollments: int
    active_courses: int
    graduated_students: int
    approved_grades: int
    failed_grades: int
    pending_grades: int
    average_final_grade: Optional[float] = None
