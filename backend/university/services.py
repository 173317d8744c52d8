"""Business logic services used by HTTP controllers.

This module holds small service classes that coordinate repositories and
own the database transaction for every mutation. Services are
intentionally thin: they perform validation, execute domain logic and
persist aggregates via repositories. Failures are raised as
`NotFoundError` / `BusinessRuleError` and translated to HTTP responses by
`university.error_handlers`.
"""

import logging
from contextlib import contextmanager
from typing import Iterable, List, Optional
from pydantic.alias_generators import to_camel
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session
from . import models, repositories, schemas
from .errors import BusinessRuleError, NotFoundError
from .utils.grading import compute_final_grade
from .utils.pagination import PageParams

logger = logging.getLogger("university.services")


@contextmanager
def unit_of_work(session: Session, conflict: str = "Record conflicts with existing data"):
    """Commit the enclosed block as one transaction, rolling back on any error.

    A database `IntegrityError` (unique or foreign-key violation that
    slipped past the explicit checks, e.g. under concurrent requests) is
    re-raised as a `BusinessRuleError` carrying `conflict`.
    """
    try:
        yield
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        logger.warning("integrity error: %s", exc.orig)
        raise BusinessRuleError(conflict) from exc
    except Exception:
        session.rollback()
        raise


def _apply_changes(obj, changes: dict, nullable: Iterable[str] = ()) -> None:
    """Copy `changes` onto `obj`, refusing nulls for required columns."""
    for field, value in changes.items():
        if value is None and field not in nullable:
            raise BusinessRuleError(f"{to_camel(field)} cannot be null")
        setattr(obj, field, value)


class StudentService:
    """Student CRUD, search and cascading delete."""
    def __init__(self, session: Session):
        self.session = session
        self.repo = repositories.StudentRepository(session)
        self.course_repo = repositories.CourseRepository(session)
        self.enrollment_repo = repositories.EnrollmentRepository(session)
        self.grade_repo = repositories.GradeRepository(session)

    def list(self, params: PageParams, sort_by: Optional[str] = None,
             status: Optional[models.StudentStatus] = None, career: Optional[str] = None):
        return self.repo.list(params, sort_by=sort_by, status=status, career=career)

    def search(self, q: str) -> List[models.Student]:
        q = (q or "").strip()
        if not q:
            return []
        return self.repo.search(q)

    def get(self, student_id: int) -> models.Student:
        student = self.repo.get(student_id)
        if not student:
            raise NotFoundError("Student not found")
        return student

    def create(self, data: schemas.StudentCreate) -> models.Student:
        """Create a student; carnet and email must both be unused."""
        if self.repo.find_conflict(data.carnet, data.email):
            raise BusinessRuleError("Carnet or email already exists")
        student = models.Student(**data.model_dump(exclude_none=True))
        with unit_of_work(self.session, conflict="Carnet or email already exists"):
            self.repo.add(student)
        self.session.refresh(student)
        return student

    def update(self, student_id: int, data: schemas.StudentUpdate) -> models.Student:
        student = self.get(student_id)
        changes = data.model_dump(exclude_unset=True)
        if changes.get("carnet") or changes.get("email"):
            if self.repo.find_conflict(changes.get("carnet"), changes.get("email"), exclude_id=student.id):
                raise BusinessRuleError("Carnet or email already exists")
        with unit_of_work(self.session, conflict="Carnet or email already exists"):
            _apply_changes(student, changes)
            self.repo.add(student)
        self.session.refresh(student)
        return student

    def delete(self, student_id: int) -> None:
        """Delete a student together with their enrollments and grades.

        Every removed enrollment releases its seat in the course, all in
        the same transaction as the student delete.
        """
        student = self.get(student_id)
        with unit_of_work(self.session):
            for enrollment in self.enrollment_repo.list_for_student(student.id):
                self.course_repo.decrement_enrollment(enrollment.course_id)
                self.enrollment_repo.delete(enrollment)
            self.grade_repo.delete_for_student(student.id)
            self.repo.delete(student)
        logger.info("student deleted id=%s", student_id)


class ProfessorService:
    """Professor CRUD; professors with courses cannot be deleted."""
    def __init__(self, session: Session):
        self.session = session
        self.repo = repositories.ProfessorRepository(session)

    def list(self, params: PageParams, sort_by: Optional[str] = None,
             status: Optional[models.ProfessorStatus] = None, department: Optional[str] = None):
        return self.repo.list(params, sort_by=sort_by, status=status, department=department)

    def get(self, professor_id: int) -> models.Professor:
        professor = self.repo.get(professor_id)
        if not professor:
            raise NotFoundError("Professor not found")
        return professor

    def create(self, data: schemas.ProfessorCreate) -> models.Professor:
        if self.repo.find_conflict(data.employee_id, data.email):
            raise BusinessRuleError("Employee ID or email already exists")
        professor = models.Professor(**data.model_dump(exclude_none=True))
        with unit_of_work(self.session, conflict="Employee ID or email already exists"):
            self.repo.add(professor)
        self.session.refresh(professor)
        return professor

    def update(self, professor_id: int, data: schemas.ProfessorUpdate) -> models.Professor:
        professor = self.get(professor_id)
        changes = data.model_dump(exclude_unset=True)
        if changes.get("employee_id") or changes.get("email"):
            if self.repo.find_conflict(changes.get("employee_id"), changes.get("email"), exclude_id=professor.id):
                raise BusinessRuleError("Employee ID or email already exists")
        with unit_of_work(self.session, conflict="Employee ID or email already exists"):
            _apply_changes(professor, changes)
            self.repo.add(professor)
        self.session.refresh(professor)
        return professor

    def delete(self, professor_id: int) -> None:
        professor = self.get(professor_id)
        if self.repo.count_courses(professor.id):
            raise BusinessRuleError("Professor has assigned courses; reassign or delete them first")
        with unit_of_work(self.session):
            self.repo.delete(professor)
        logger.info("professor deleted id=%s", professor_id)


class CourseService:
    """Course CRUD. `current_enrollment` is never taken from payloads."""
    def __init__(self, session: Session):
        self.session = session
        self.repo = repositories.CourseRepository(session)
        self.professor_repo = repositories.ProfessorRepository(session)
        self.enrollment_repo = repositories.EnrollmentRepository(session)
        self.grade_repo = repositories.GradeRepository(session)

    def list(self, params: PageParams, sort_by: Optional[str] = None,
             status: Optional[models.CourseStatus] = None, professor_id: Optional[int] = None,
             semester: Optional[str] = None):
        return self.repo.list(params, sort_by=sort_by, status=status, professor_id=professor_id,
                              semester=semester)

    def available(self) -> List[models.Course]:
        return self.repo.list_available()

    def get(self, course_id: int) -> models.Course:
        course = self.repo.get(course_id)
        if not course:
            raise NotFoundError("Course not found")
        return course

    def _require_professor(self, professor_id: int) -> None:
        if not self.professor_repo.get(professor_id):
            raise NotFoundError("Professor not found")

    def create(self, data: schemas.CourseCreate) -> models.Course:
        self._require_professor(data.professor_id)
        if self.repo.get_by_code(data.code):
            raise BusinessRuleError("Course code already exists")
        course = models.Course(**data.model_dump(exclude_none=True), current_enrollment=0)
        with unit_of_work(self.session, conflict="Course code already exists"):
            self.repo.add(course)
        self.session.refresh(course)
        return course

    def update(self, course_id: int, data: schemas.CourseUpdate) -> models.Course:
        course = self.get(course_id)
        changes = data.model_dump(exclude_unset=True)
        if changes.get("professor_id") is not None:
            self._require_professor(changes["professor_id"])
        if changes.get("code") and self.repo.get_by_code(changes["code"], exclude_id=course.id):
            raise BusinessRuleError("Course code already exists")
        has_capacity = "max_capacity" in changes
        new_capacity = changes.pop("max_capacity", None)
        if has_capacity and new_capacity is None:
            raise BusinessRuleError("maxCapacity cannot be null")
        with unit_of_work(self.session, conflict="Course code already exists"):
            _apply_changes(course, changes, nullable=("description",))
            self.repo.add(course)
            if new_capacity is not None and not self.repo.try_set_capacity(course.id, new_capacity):
                raise BusinessRuleError("maxCapacity cannot be lower than current enrollment")
        self.session.refresh(course)
        return course

    def delete(self, course_id: int) -> None:
        """Delete a course together with its enrollments and grades."""
        course = self.get(course_id)
        with unit_of_work(self.session):
            self.enrollment_repo.delete_for_course(course.id)
            self.grade_repo.delete_for_course(course.id)
            self.repo.delete(course)
        logger.info("course deleted id=%s", course_id)


class EnrollmentService:
    """Enroll/unenroll students while keeping the course seat counter in sync.

    Insert + increment and delete + decrement each run in one
    transaction, so `Course.current_enrollment` always equals the number
    of enrollment rows for that course and never exceeds its capacity.
    """
    def __init__(self, session: Session):
        self.session = session
        self.repo = repositories.EnrollmentRepository(session)
        self.student_repo = repositories.StudentRepository(session)
        self.course_repo = repositories.CourseRepository(session)

    def list(self, params: PageParams, sort_by: Optional[str] = None,
             status: Optional[models.EnrollmentStatus] = None, student_id: Optional[int] = None,
             course_id: Optional[int] = None):
        return self.repo.list(params, sort_by=sort_by, status=status, student_id=student_id,
                              course_id=course_id)

    def get(self, enrollment_id: int) -> models.Enrollment:
        enrollment = self.repo.get(enrollment_id)
        if not enrollment:
            raise NotFoundError("Enrollment not found")
        return enrollment

    def for_student(self, student_id: int) -> List[models.Enrollment]:
        if not self.student_repo.get(student_id):
            raise NotFoundError("Student not found")
        return self.repo.list_for_student(student_id)

    def for_course(self, course_id: int) -> List[models.Enrollment]:
        if not self.course_repo.get(course_id):
            raise NotFoundError("Course not found")
        return self.repo.list_for_course(course_id)

    def create(self, data: schemas.EnrollmentCreate) -> models.Enrollment:
        """Enroll a student, taking one seat in the course.

        Raises `NotFoundError` for an unknown student or course and
        `BusinessRuleError` when the course is inactive, the student is
        already enrolled, or no seats are left.
        """
        if not self.student_repo.get(data.student_id):
            raise NotFoundError("Student not found")
        course = self.course_repo.get(data.course_id)
        if not course:
            raise NotFoundError("Course not found")
        if course.status != models.CourseStatus.ACTIVE:
            raise BusinessRuleError("Course is not active")
        if self.repo.get_for_pair(data.student_id, data.course_id):
            raise BusinessRuleError("Student already enrolled in this course")
        enrollment = models.Enrollment(student_id=data.student_id, course_id=data.course_id, status=data.status)
        try:
            with unit_of_work(self.session, conflict="Student already enrolled in this course"):
                if not self.course_repo.try_increment_enrollment(course.id):
                    raise BusinessRuleError("No seats available")
                self.repo.add(enrollment)
        except BusinessRuleError as exc:
            logger.warning("enrollment rejected student=%s course=%s: %s",
                           data.student_id, data.course_id, exc.message)
            raise
        self.session.refresh(enrollment)
        logger.info("enrollment created id=%s student=%s course=%s",
                    enrollment.id, enrollment.student_id, enrollment.course_id)
        return enrollment

    def update(self, enrollment_id: int, data: schemas.EnrollmentUpdate) -> models.Enrollment:
        """Change the enrollment status. Seat usage is unaffected."""
        enrollment = self.get(enrollment_id)
        with unit_of_work(self.session):
            enrollment.status = data.status
            self.repo.add(enrollment)
        self.session.refresh(enrollment)
        return enrollment

    def delete(self, enrollment_id: int) -> None:
        """Remove an enrollment and release its seat."""
        enrollment = self.get(enrollment_id)
        course_id = enrollment.course_id
        with unit_of_work(self.session):
            self.repo.delete(enrollment)
            self.course_repo.decrement_enrollment(course_id)
        logger.info("enrollment deleted id=%s course=%s", enrollment_id, course_id)


class GradeService:
    """Record partial scores and keep the final grade/status derived from them."""
    def __init__(self, session: Session):
        self.session = session
        self.repo = repositories.GradeRepository(session)
        self.student_repo = repositories.StudentRepository(session)
        self.course_repo = repositories.CourseRepository(session)

    def list(self, params: PageParams, sort_by: Optional[str] = None,
             status: Optional[models.GradeStatus] = None, student_id: Optional[int] = None,
             course_id: Optional[int] = None):
        return self.repo.list(params, sort_by=sort_by, status=status, student_id=student_id,
                              course_id=course_id)

    def get(self, grade_id: int) -> models.Grade:
        grade = self.repo.get(grade_id)
        if not grade:
            raise NotFoundError("Grade not found")
        return grade

    def for_student(self, student_id: int) -> List[models.Grade]:
        if not self.student_repo.get(student_id):
            raise NotFoundError("Student not found")
        return self.repo.list_for_student(student_id)

    def for_course(self, course_id: int) -> List[models.Grade]:
        if not self.course_repo.get(course_id):
            raise NotFoundError("Course not found")
        return self.repo.list_for_course(course_id)

    @staticmethod
    def _recompute(grade: models.Grade) -> None:
        grade.final_grade, grade.status = compute_final_grade(grade.partial1, grade.partial2, grade.partial3)

    @staticmethod
    def _log_finalised(grade: models.Grade) -> None:
        logger.info("grade finalised id=%s final=%.2f status=%s",
                    grade.id, grade.final_grade, grade.status.value)

    def create(self, data: schemas.GradeCreate) -> models.Grade:
        if not self.student_repo.get(data.student_id):
            raise NotFoundError("Student not found")
        if not self.course_repo.get(data.course_id):
            raise NotFoundError("Course not found")
        if self.repo.get_for_pair(data.student_id, data.course_id):
            raise BusinessRuleError("Grade already exists for this student and course")
        grade = models.Grade(**data.model_dump())
        self._recompute(grade)
        with unit_of_work(self.session, conflict="Grade already exists for this student and course"):
            self.repo.add(grade)
        self.session.refresh(grade)
        if grade.final_grade is not None:
            self._log_finalised(grade)
        return grade

    def update(self, grade_id: int, data: schemas.GradeUpdate) -> models.Grade:
        """Apply sent partials/comments, then recompute final grade and status.

        Partials not present in the payload keep their stored value, so
        the final grade is computed as soon as the third partial arrives,
        whichever request carries it.
        """
        grade = self.get(grade_id)
        was_final = grade.final_grade is not None
        changes = data.model_dump(exclude_unset=True)
        with unit_of_work(self.session):
            _apply_changes(grade, changes, nullable=("partial1", "partial2", "partial3", "comments"))
            self._recompute(grade)
            self.repo.add(grade)
        self.session.refresh(grade)
        if grade.final_grade is not None and not was_final:
            self._log_finalised(grade)
        return grade

    def delete(self, grade_id: int) -> None:
        grade = self.get(grade_id)
        with unit_of_work(self.session):
            self.repo.delete(grade)


class StatsService:
    """Dashboard counters."""
    def __init__(self, session: Session):
        self.repo = repositories.StatsRepository(session)

    def summary(self) -> dict:
        avg = self.repo.average_final_grade()
        return {
            "total_students": self.repo.count(models.Student),
            "total_professors": self.repo.count(models.Professor),
            "total_courses": self.repo.count(models.Course),
            "total_enrollments": self.repo.count(models.Enrollment),
            "active_courses": self.repo.count(models.Course, models.Course.status == models.CourseStatus.ACTIVE),
            "graduated_students": self.repo.count(
                models.Student, models.Student.status == models.StudentStatus.GRADUATED),
            "approved_grades": self.repo.count(models.Grade, models.Grade.status == models.GradeStatus.APPROVED),
            "failed_grades": self.repo.count(models.Grade, models.Grade.status == models.GradeStatus.FAILED),
            "pending_grades": self.repo.count(models.Grade, models.Grade.status == models.GradeStatus.PENDING),
            "average_final_grade": round(avg, 2) if avg is not None else None,
        }
