"""Repository classes encapsulating database operations.

Each repository is small and focused on a single aggregate (students,
professors, courses, enrollments, grades). Repositories return SQLModel
objects and build the `select()` statements for list pages. They `flush`
so generated ids are available, but commit/rollback is left to the
service that owns the transaction.
"""

from typing import List, Optional, Tuple
from sqlmodel import Session, select, or_
from sqlalchemy import func, update, delete
from . import models
from .utils.pagination import PageParams


def _ilike(column, term: str):
    """Case-insensitive substring match with `%`, `_` and `\\` taken literally."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return column.ilike(f"%{escaped}%", escape="\\")


class BaseRepository:
    """Shared helpers for the aggregate repositories."""
    model = None
    sort_columns: dict = {}
    default_sort = "createdAt"

    def __init__(self, session: Session):
        self.session = session

    def get(self, obj_id: int):
        """Fetch a row by primary key or `None`."""
        return self.session.get(self.model, obj_id)

    def add(self, obj):
        """Stage `obj` for insert/update and flush to obtain its id."""
        self.session.add(obj)
        self.session.flush()
        return obj

    def delete(self, obj) -> None:
        self.session.delete(obj)
        self.session.flush()

    def _paginate(self, stmt, params: PageParams, sort_by: Optional[str]) -> Tuple[List, int]:
        """Apply ordering, offset and limit to `stmt` and count the full result."""
        total = self.session.exec(select(func.count()).select_from(stmt.subquery())).one()
        column = self.sort_columns.get(sort_by or self.default_sort, self.sort_columns[self.default_sort])
        if params.descending:
            ordering = (column.desc(), self.model.id.desc())
        else:
            ordering = (column.asc(), self.model.id.asc())
        rows = self.session.exec(stmt.order_by(*ordering).offset(params.offset).limit(params.limit)).all()
        return rows, total


class StudentRepository(BaseRepository):
    """CRUD and search operations for `Student` rows."""
    model = models.Student
    sort_columns = {
        "createdAt": models.Student.created_at,
        "firstName": models.Student.first_name,
        "lastName": models.Student.last_name,
        "carnet": models.Student.carnet,
    }

    def list(self, params: PageParams, sort_by: Optional[str] = None,
             status: Optional[models.StudentStatus] = None, career: Optional[str] = None):
        stmt = select(models.Student)
        term = params.search_term
        if term:
            stmt = stmt.where(or_(
                _ilike(models.Student.first_name, term),
                _ilike(models.Student.last_name, term),
                _ilike(models.Student.carnet, term),
                _ilike(models.Student.email, term),
            ))
        if status:
            stmt = stmt.where(models.Student.status == status)
        if career:
            stmt = stmt.where(_ilike(models.Student.career, career))
        return self._paginate(stmt, params, sort_by)

    def search(self, q: str) -> List[models.Student]:
        """Case-insensitive match on first name, last name or carnet."""
        stmt = select(models.Student).where(or_(
            _ilike(models.Student.first_name, q),
            _ilike(models.Student.last_name, q),
            _ilike(models.Student.carnet, q),
        )).order_by(models.Student.last_name, models.Student.first_name)
        return self.session.exec(stmt).all()

    def find_conflict(self, carnet: Optional[str], email: Optional[str],
                      exclude_id: Optional[int] = None) -> Optional[models.Student]:
        """Return another student already using `carnet` or `email`."""
        clauses = []
        if carnet:
            clauses.append(models.Student.carnet == carnet)
        if email:
            clauses.append(models.Student.email == email)
        if not clauses:
            return None
        stmt = select(models.Student).where(or_(*clauses))
        if exclude_id is not None:
            stmt = stmt.where(models.Student.id != exclude_id)
        return self.session.exec(stmt).first()


class ProfessorRepository(BaseRepository):
    """CRUD operations for `Professor` rows."""
    model = models.Professor
    sort_columns = {
        "createdAt": models.Professor.created_at,
        "firstName": models.Professor.first_name,
        "lastName": models.Professor.last_name,
        "employeeId": models.Professor.employee_id,
    }

    def list(self, params: PageParams, sort_by: Optional[str] = None,
             status: Optional[models.ProfessorStatus] = None, department: Optional[str] = None):
        stmt = select(models.Professor)
        term = params.search_term
        if term:
            stmt = stmt.where(or_(
                _ilike(models.Professor.first_name, term),
                _ilike(models.Professor.last_name, term),
                _ilike(models.Professor.employee_id, term),
                _ilike(models.Professor.email, term),
            ))
        if status:
            stmt = stmt.where(models.Professor.status == status)
        if department:
            stmt = stmt.where(_ilike(models.Professor.department, department))
        return self._paginate(stmt, params, sort_by)

    def find_conflict(self, employee_id: Optional[str], email: Optional[str],
                      exclude_id: Optional[int] = None) -> Optional[models.Professor]:
        """Return another professor already using `employee_id` or `email`."""
        clauses = []
        if employee_id:
            clauses.append(models.Professor.employee_id == employee_id)
        if email:
            clauses.append(models.Professor.email == email)
        if not clauses:
            return None
        stmt = select(models.Professor).where(or_(*clauses))
        if exclude_id is not None:
            stmt = stmt.where(models.Professor.id != exclude_id)
        return self.session.exec(stmt).first()

    def count_courses(self, professor_id: int) -> int:
        stmt = select(func.count()).select_from(models.Course).where(models.Course.professor_id == professor_id)
        return self.session.exec(stmt).one()


class CourseRepository(BaseRepository):
    """CRUD operations for `Course` rows and the enrollment counter."""
    model = models.Course
    sort_columns = {
        "createdAt": models.Course.created_at,
        "name": models.Course.name,
        "code": models.Course.code,
        "semester": models.Course.semester,
    }

    def list(self, params: PageParams, sort_by: Optional[str] = None,
             status: Optional[models.CourseStatus] = None, professor_id: Optional[int] = None,
             semester: Optional[str] = None):
        stmt = select(models.Course)
        term = params.search_term
        if term:
            stmt = stmt.where(or_(
                _ilike(models.Course.name, term),
                _ilike(models.Course.code, term),
            ))
        if status:
            stmt = stmt.where(models.Course.status == status)
        if professor_id is not None:
            stmt = stmt.where(models.Course.professor_id == professor_id)
        if semester:
            stmt = stmt.where(models.Course.semester == semester)
        return self._paginate(stmt, params, sort_by)

    def list_available(self) -> List[models.Course]:
        """Return active courses that still have free seats."""
        stmt = select(models.Course).where(
            models.Course.status == models.CourseStatus.ACTIVE,
            models.Course.current_enrollment < models.Course.max_capacity,
        ).order_by(models.Course.code)
        return self.session.exec(stmt).all()

    def get_by_code(self, code: str, exclude_id: Optional[int] = None) -> Optional[models.Course]:
        stmt = select(models.Course).where(models.Course.code == code)
        if exclude_id is not None:
            stmt = stmt.where(models.Course.id != exclude_id)
        return self.session.exec(stmt).first()

    def try_increment_enrollment(self, course_id: int) -> bool:
        """Take one seat in `course_id` if any is free.

        The capacity check and the increment are a single conditional
        UPDATE, so two transactions racing for the last seat cannot both
        succeed. Returns False when no row was updated (course full).
        """
        stmt = (
            update(models.Course)
            .where(
                models.Course.id == course_id,
                models.Course.current_enrollment < models.Course.max_capacity,
            )
            .values(current_enrollment=models.Course.current_enrollment + 1)
        )
        result = self.session.exec(stmt)
        return result.rowcount == 1

    def try_set_capacity(self, course_id: int, capacity: int) -> bool:
        """Set `max_capacity` unless the committed enrollment count exceeds it.

        Compared in the UPDATE itself, not against a possibly stale loaded
        row. Returns False when the course holds more than `capacity` seats.
        """
        stmt = (
            update(models.Course)
            .where(
                models.Course.id == course_id,
                models.Course.current_enrollment <= capacity,
            )
            .values(max_capacity=capacity)
            .execution_options(synchronize_session=False)
        )
        result = self.session.exec(stmt)
        return result.rowcount == 1

    def decrement_enrollment(self, course_id: int, by: int = 1) -> None:
        """Release `by` seats, never going below zero."""
        stmt = (
            update(models.Course)
            .where(models.Course.id == course_id, models.Course.current_enrollment >= by)
            .values(current_enrollment=models.Course.current_enrollment - by)
        )
        self.session.exec(stmt)


class EnrollmentRepository(BaseRepository):
    """Query helpers for `Enrollment` rows."""
    model = models.Enrollment
    default_sort = "enrollmentDate"
    sort_columns = {
        "enrollmentDate": models.Enrollment.enrollment_date,
        "createdAt": models.Enrollment.created_at,
    }

    def list(self, params: PageParams, sort_by: Optional[str] = None,
             status: Optional[models.EnrollmentStatus] = None, student_id: Optional[int] = None,
             course_id: Optional[int] = None):
        stmt = (
            select(models.Enrollment)
            .join(models.Student, models.Enrollment.student_id == models.Student.id)
            .join(models.Course, models.Enrollment.course_id == models.Course.id)
        )
        term = params.search_term
        if term:
            stmt = stmt.where(or_(
                _ilike(models.Student.first_name, term),
                _ilike(models.Student.last_name, term),
                _ilike(models.Student.carnet, term),
                _ilike(models.Course.name, term),
                _ilike(models.Course.code, term),
            ))
        if status:
            stmt = stmt.where(models.Enrollment.status == status)
        if student_id is not None:
            stmt = stmt.where(models.Enrollment.student_id == student_id)
        if course_id is not None:
            stmt = stmt.where(models.Enrollment.course_id == course_id)
        return self._paginate(stmt, params, sort_by)

    def get_for_pair(self, student_id: int, course_id: int) -> Optional[models.Enrollment]:
        stmt = select(models.Enrollment).where(
            models.Enrollment.student_id == student_id,
            models.Enrollment.course_id == course_id,
        )
        return self.session.exec(stmt).first()

    def list_for_student(self, student_id: int) -> List[models.Enrollment]:
        stmt = select(models.Enrollment).where(models.Enrollment.student_id == student_id).order_by(
            models.Enrollment.enrollment_date.desc())
        return self.session.exec(stmt).all()

    def list_for_course(self, course_id: int) -> List[models.Enrollment]:
        stmt = select(models.Enrollment).where(models.Enrollment.course_id == course_id).order_by(
            models.Enrollment.enrollment_date.desc())
        return self.session.exec(stmt).all()

    def count_for_course(self, course_id: int) -> int:
        stmt = select(func.count()).select_from(models.Enrollment).where(models.Enrollment.course_id == course_id)
        return self.session.exec(stmt).one()

    def delete_for_course(self, course_id: int) -> int:
        result = self.session.exec(delete(models.Enrollment).where(models.Enrollment.course_id == course_id))
        return result.rowcount


class GradeRepository(BaseRepository):
    """Query helpers for `Grade` rows."""
    model = models.Grade
    sort_columns = {
        "createdAt": models.Grade.created_at,
        "finalGrade": models.Grade.final_grade,
    }

    def list(self, params: PageParams, sort_by: Optional[str] = None,
             status: Optional[models.GradeStatus] = None, student_id: Optional[int] = None,
             course_id: Optional[int] = None):
        stmt = (
            select(models.Grade)
            .join(models.Student, models.Grade.student_id == models.Student.id)
            .join(models.Course, models.Grade.course_id == models.Course.id)
        )
        term = params.search_term
        if term:
            stmt = stmt.where(or_(
                _ilike(models.Student.first_name, term),
                _ilike(models.Student.last_name, term),
                _ilike(models.Student.carnet, term),
                _ilike(models.Course.name, term),
                _ilike(models.Course.code, term),
            ))
        if status:
            stmt = stmt.where(models.Grade.status == status)
        if student_id is not None:
            stmt = stmt.where(models.Grade.student_id == student_id)
        if course_id is not None:
            stmt = stmt.where(models.Grade.course_id == course_id)
        return self._paginate(stmt, params, sort_by)

    def get_for_pair(self, student_id: int, course_id: int) -> Optional[models.Grade]:
        stmt = select(models.Grade).where(
            models.Grade.student_id == student_id,
            models.Grade.course_id == course_id,
        )
        return self.session.exec(stmt).first()

    def list_for_student(self, student_id: int) -> List[models.Grade]:
        stmt = select(models.Grade).where(models.Grade.student_id == student_id).order_by(models.Grade.id)
        return self.session.exec(stmt).all()

    def list_for_course(self, course_id: int) -> List[models.Grade]:
        stmt = select(models.Grade).where(models.Grade.course_id == course_id).order_by(models.Grade.id)
        return self.session.exec(stmt).all()

    def delete_for_student(self, student_id: int) -> int:
        result = self.session.exec(delete(models.Grade).where(models.Grade.student_id == student_id))
        return result.rowcount

    def delete_for_course(self, course_id: int) -> int:
        result = self.session.exec(delete(models.Grade).where(models.Grade.course_id == course_id))
        return result.rowcount


class StatsRepository:
    """Aggregate counts across all tables for the dashboard."""
    def __init__(self, session: Session):
        self.session = session

    def count(self, model, *criteria) -> int:
        stmt = select(func.count()).select_from(model)
        if criteria:
            stmt = stmt.where(*criteria)
        return self.session.exec(stmt).one()

    def average_final_grade(self) -> Optional[float]:
        stmt = select(func.avg(models.Grade.final_grade)).where(models.Grade.final_grade.is_not(None))
        return self.session.exec(stmt).one()
