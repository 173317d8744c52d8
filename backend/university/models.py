"""SQLModel data models.

This module defines the application's database tables using SQLModel.
Each class maps to a table and uses relationships where appropriate.
Status columns are stored as plain string enums so the JSON payloads
match the values the admin UI filters on.
"""

from typing import List, Optional
from datetime import datetime, date, timezone
from enum import Enum
from sqlalchemy import CheckConstraint, UniqueConstraint
from sqlmodel import SQLModel, Field, Relationship


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StudentStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    GRADUATED = "GRADUATED"


class ProfessorStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class CourseStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class EnrollmentStatus(str, Enum):
    ENROLLED = "ENROLLED"
    DROPPED = "DROPPED"
    COMPLETED = "COMPLETED"


class GradeStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    FAILED = "FAILED"


class Student(SQLModel, table=True):
    """A student identified by a unique `carnet` and email."""
    id: Optional[int] = Field(default=None, primary_key=True)
    carnet: str = Field(index=True, nullable=False, unique=True)
    first_name: str = Field(index=True)
    last_name: str = Field(index=True)
    email: str = Field(index=True, nullable=False, unique=True)
    phone: str
    career: str = Field(index=True)
    enrollment_date: date = Field(default_factory=lambda: utcnow().date())
    status: StudentStatus = Field(default=StudentStatus.ACTIVE, index=True)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow, sa_column_kwargs={"onupdate": utcnow})
    enrollments: List['Enrollment'] = Relationship(back_populates='student')
    grades: List['Grade'] = Relationship(back_populates='student')


class Professor(SQLModel, table=True):
    """A faculty member who can be assigned to courses."""
    id: Optional[int] = Field(default=None, primary_key=True)
    employee_id: str = Field(index=True, nullable=False, unique=True)
    first_name: str = Field(index=True)
    last_name: str = Field(index=True)
    email: str = Field(index=True, nullable=False, unique=True)
    phone: str
    specialty: str
    department: str = Field(index=True)
    hire_date: date = Field(default_factory=lambda: utcnow().date())
    status: ProfessorStatus = Field(default=ProfessorStatus.ACTIVE, index=True)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow, sa_column_kwargs={"onupdate": utcnow})
    courses: List['Course'] = Relationship(back_populates='professor')


class Course(SQLModel, table=True):
    """A course offering taught by a `Professor`.

    `current_enrollment` is a denormalized counter of `Enrollment` rows
    for this course. It is only changed by the enrollment service, never
    written directly from request payloads.
    """
    __table_args__ = (
        CheckConstraint('current_enrollment >= 0', name='ck_course_enrollment_nonnegative'),
        CheckConstraint('current_enrollment <= max_capacity', name='ck_course_enrollment_capacity'),
    )
    id: Optional[int] = Field(default=None, primary_key=True)
    code: str = Field(index=True, nullable=False, unique=True)
    name: str = Field(index=True)
    description: Optional[str] = None
    credits: int
    professor_id: int = Field(foreign_key='professor.id', index=True)
    max_capacity: int
    current_enrollment: int = Field(default=0)
    schedule: str
    semester: str = Field(index=True)
    status: CourseStatus = Field(default=CourseStatus.ACTIVE, index=True)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow, sa_column_kwargs={"onupdate": utcnow})
    professor: Optional[Professor] = Relationship(back_populates='courses')
    enrollments: List['Enrollment'] = Relationship(back_populates='course')
    grades: List['Grade'] = Relationship(back_populates='course')


class Enrollment(SQLModel, table=True):
    """A student's seat in a course. One row per (student, course) pair."""
    __table_args__ = (UniqueConstraint('student_id', 'course_id', name='uq_enrollment_student_course'),)

    id: Optional[int] = Field(default=None, primary_key=True)
    student_id: int = Field(foreign_key='student.id', index=True)
    course_id: int = Field(foreign_key='course.id', index=True)
    enrollment_date: datetime = Field(default_factory=utcnow)
    status: EnrollmentStatus = Field(default=EnrollmentStatus.ENROLLED, index=True)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow, sa_column_kwargs={"onupdate": utcnow})
    student: Optional[Student] = Relationship(back_populates='enrollments')
    course: Optional[Course] = Relationship(back_populates='enrollments')


class Grade(SQLModel, table=True):
    """Partial scores and the derived final grade for a student in a course.

    `final_grade` and `status` are recomputed from the three partials on
    every write; see `university.utils.grading.compute_final_grade`.
    """
    __table_args__ = (UniqueConstraint('student_id', 'course_id', name='uq_grade_student_course'),)

    id: Optional[int] = Field(default=None, primary_key=True)
    student_id: int = Field(foreign_key='student.id', index=True)
    course_id: int = Field(foreign_key='course.id', index=True)
    partial1: Optional[float] = None
    partial2: Optional[float] = None
    partial3: Optional[float] = None
    final_grade: Optional[float] = Field(default=None, index=True)
    status: GradeStatus = Field(default=GradeStatus.PENDING, index=True)
    comments: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow, sa_column_kwargs={"onupdate": utcnow})
    student: Optional[Student] = Relationship(back_populates='grades')
    course: Optional[Course] = Relationship(back_populates='grades')
