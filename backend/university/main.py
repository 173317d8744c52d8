"""FastAPI application entrypoint and HTTP controllers.

This module defines the HTTP endpoints of the university administration
backend. Controllers are intentionally thin: they accept requests,
delegate to services, and convert ORM rows into response schemas while
the request session is still open.

Endpoints implemented (all under /api):
- GET/POST /students, GET /students/search, GET/PUT/DELETE /students/{id}
- GET/POST /professors, GET/PUT/DELETE /professors/{id}
- GET/POST /courses, GET /courses/available, GET/PUT/DELETE /courses/{id}
- GET/POST /enrollments, GET/PUT/DELETE /enrollments/{id},
  GET /enrollments/student/{studentId}, GET /enrollments/course/{courseId}
- GET/POST /grades, GET/PUT/DELETE /grades/{id},
  GET /grades/student/{studentId}, GET /grades/course/{courseId}
- GET /stats
"""

from fastapi import FastAPI, APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import Response
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import Session
from typing import List, Literal, Optional
import json
import logging
import time
import uuid
from .database import create_db_and_tables, get_session
from . import models, schemas, services
from .config import settings
from .error_handlers import register_error_handlers
from .utils.pagination import PageParams, build_pagination

app = FastAPI(title="University Management API")
logger = logging.getLogger("university.api")
if not logger.handlers:
    logging.basicConfig(level=settings.LOG_LEVEL)

# The admin UI is served from a separate dev server
if settings.ALLOW_DEV_CORS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

register_error_handlers(app)
create_db_and_tables()


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
    request.state.request_id = req_id
    started = time.perf_counter()
    response: Response
    try:
        response = await call_next(request)
    except Exception:
        elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
        logger.exception(
            "request_failed %s",
            json.dumps(
                {
                    "request_id": req_id,
                    "path": request.url.path,
                    "method": request.method,
                    "duration_ms": elapsed_ms,
                    "client": request.client.host if request.client else "unknown",
                },
                ensure_ascii=True,
            ),
        )
        raise
    response.headers["X-Request-ID"] = req_id
    elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
    if request.url.path.startswith("/api"):
        logger.info(
            "request_done %s",
            json.dumps(
                {
                    "request_id": req_id,
                    "path": request.url.path,
                    "method": request.method,
                    "status_code": response.status_code,
                    "duration_ms": elapsed_ms,
                    "client": request.client.host if request.client else "unknown",
                },
                ensure_ascii=True,
            ),
        )
    return response


def page_params(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    order: Literal["asc", "desc"] = "desc",
    search: Optional[str] = None,
) -> PageParams:
    return PageParams(page=page, limit=limit, order=order, search=search)


def _status_filter(value: Optional[str], enum_cls):
    """Translate a `status` query value; empty or `all` means no filter."""
    if value is None or value == "" or value == "all":
        return None
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise HTTPException(status_code=400, detail=f"invalid status '{value}'; expected one of: {allowed}, all")


def _no_content() -> Response:
    return Response(status_code=204)


api = APIRouter(prefix="/api")


# --- students -------------------------------------------------------------

@api.get('/students', response_model=schemas.StudentPage)
def list_students(
    paging: PageParams = Depends(page_params),
    sort_by: Literal["createdAt", "firstName", "lastName", "carnet"] = Query("createdAt", alias="sortBy"),
    status: Optional[str] = None,
    career: Optional[str] = None,
    db: Session = Depends(get_session),
):
    """Paginated student list with search, status/career filters and sorting."""
    rows, total = services.StudentService(db).list(
        paging, sort_by=sort_by, status=_status_filter(status, models.StudentStatus), career=career)
    return schemas.StudentPage(
        students=[schemas.StudentOut.model_validate(s) for s in rows],
        pagination=build_pagination(total, paging.page, paging.limit),
    )


@api.get('/students/search', response_model=List[schemas.StudentOut])
def search_students(q: str = "", db: Session = Depends(get_session)):
    """Match `q` against first name, last name or carnet (case-insensitive)."""
    return [schemas.StudentOut.model_validate(s) for s in services.StudentService(db).search(q)]


@api.get('/students/{student_id}', response_model=schemas.StudentDetail)
def get_student(student_id: int, db: Session = Depends(get_session)):
    """Student with their enrollments and grades (each including its course)."""
    return schemas.StudentDetail.model_validate(services.StudentService(db).get(student_id))


@api.post('/students', response_model=schemas.StudentOut, status_code=201)
def create_student(payload: schemas.StudentCreate, db: Session = Depends(get_session)):
    return schemas.StudentOut.model_validate(services.StudentService(db).create(payload))


@api.put('/students/{student_id}', response_model=schemas.StudentOut)
def update_student(student_id: int, payload: schemas.StudentUpdate, db: Session = Depends(get_session)):
    return schemas.StudentOut.model_validate(services.StudentService(db).update(student_id, payload))


@api.delete('/students/{student_id}', status_code=204, response_class=Response)
def delete_student(student_id: int, db: Session = Depends(get_session)):
    """Delete a student, their grades and their enrollments (freeing the seats)."""
    services.StudentService(db).delete(student_id)
    return _no_content()


# --- professors -----------------------------------------------------------

@api.get('/professors', response_model=schemas.ProfessorPage)
def list_professors(
    paging: PageParams = Depends(page_params),
    sort_by: Literal["createdAt", "firstName", "lastName", "employeeId"] = Query("createdAt", alias="sortBy"),
    status: Optional[str] = None,
    department: Optional[str] = None,
    db: Session = Depends(get_session),
):
    rows, total = services.ProfessorService(db).list(
        paging, sort_by=sort_by, status=_status_filter(status, models.ProfessorStatus), department=department)
    return schemas.ProfessorPage(
        professors=[schemas.ProfessorWithCourses.model_validate(p) for p in rows],
        pagination=build_pagination(total, paging.page, paging.limit),
    )


@api.get('/professors/{professor_id}', response_model=schemas.ProfessorWithCourses)
def get_professor(professor_id: int, db: Session = Depends(get_session)):
    return schemas.ProfessorWithCourses.model_validate(services.ProfessorService(db).get(professor_id))


@api.post('/professors', response_model=schemas.ProfessorOut, status_code=201)
def create_professor(payload: schemas.ProfessorCreate, db: Session = Depends(get_session)):
    return schemas.ProfessorOut.model_validate(services.ProfessorService(db).create(payload))


@api.put('/professors/{professor_id}', response_model=schemas.ProfessorOut)
def update_professor(professor_id: int, payload: schemas.ProfessorUpdate, db: Session = Depends(get_session)):
    return schemas.ProfessorOut.model_validate(services.ProfessorService(db).update(professor_id, payload))


@api.delete('/professors/{professor_id}', status_code=204, response_class=Response)
def delete_professor(professor_id: int, db: Session = Depends(get_session)):
    """Delete a professor. Refused with 400 while courses still reference them."""
    services.ProfessorService(db).delete(professor_id)
    return _no_content()


# --- courses --------------------------------------------------------------

@api.get('/courses', response_model=schemas.CoursePage)
def list_courses(
    paging: PageParams = Depends(page_params),
    sort_by: Literal["createdAt", "name", "code", "semester"] = Query("createdAt", alias="sortBy"),
    status: Optional[str] = None,
    professor_id: Optional[int] = Query(None, alias="professorId"),
    semester: Optional[str] = None,
    db: Session = Depends(get_session),
):
    rows, total = services.CourseService(db).list(
        paging, sort_by=sort_by, status=_status_filter(status, models.CourseStatus),
        professor_id=professor_id, semester=semester)
    return schemas.CoursePage(
        courses=[schemas.CourseWithProfessor.model_validate(c) for c in rows],
        pagination=build_pagination(total, paging.page, paging.limit),
    )


@api.get('/courses/available', response_model=List[schemas.CourseWithProfessor])
def available_courses(db: Session = Depends(get_session)):
    """Active courses with at least one free seat."""
    return [schemas.CourseWithProfessor.model_validate(c) for c in services.CourseService(db).available()]


@api.get('/courses/{course_id}', response_model=schemas.CourseDetail)
def get_course(course_id: int, db: Session = Depends(get_session)):
    return schemas.CourseDetail.model_validate(services.CourseService(db).get(course_id))


@api.post('/courses', response_model=schemas.CourseWithProfessor, status_code=201)
def create_course(payload: schemas.CourseCreate, db: Session = Depends(get_session)):
    return schemas.CourseWithProfessor.model_validate(services.CourseService(db).create(payload))


@api.put('/courses/{course_id}', response_model=schemas.CourseWithProfessor)
def update_course(course_id: int, payload: schemas.CourseUpdate, db: Session = Depends(get_session)):
    return schemas.CourseWithProfessor.model_validate(services.CourseService(db).update(course_id, payload))


@api.delete('/courses/{course_id}', status_code=204, response_class=Response)
def delete_course(course_id: int, db: Session = Depends(get_session)):
    services.CourseService(db).delete(course_id)
    return _no_content()


# --- enrollments ----------------------------------------------------------

@api.get('/enrollments', response_model=schemas.EnrollmentPage)
def list_enrollments(
    paging: PageParams = Depends(page_params),
    sort_by: Literal["enrollmentDate", "createdAt"] = Query("enrollmentDate", alias="sortBy"),
    status: Optional[str] = None,
    student_id: Optional[int] = Query(None, alias="studentId"),
    course_id: Optional[int] = Query(None, alias="courseId"),
    db: Session = Depends(get_session),
):
    rows, total = services.EnrollmentService(db).list(
        paging, sort_by=sort_by, status=_status_filter(status, models.EnrollmentStatus),
        student_id=student_id, course_id=course_id)
    return schemas.EnrollmentPage(
        enrollments=[schemas.EnrollmentDetail.model_validate(e) for e in rows],
        pagination=build_pagination(total, paging.page, paging.limit),
    )


@api.get('/enrollments/student/{student_id}', response_model=List[schemas.EnrollmentWithCourse])
def enrollments_by_student(student_id: int, db: Session = Depends(get_session)):
    rows = services.EnrollmentService(db).for_student(student_id)
    return [schemas.EnrollmentWithCourse.model_validate(e) for e in rows]


@api.get('/enrollments/course/{course_id}', response_model=List[schemas.EnrollmentWithStudent])
def enrollments_by_course(course_id: int, db: Session = Depends(get_session)):
    rows = services.EnrollmentService(db).for_course(course_id)
    return [schemas.EnrollmentWithStudent.model_validate(e) for e in rows]


@api.get('/enrollments/{enrollment_id}', response_model=schemas.EnrollmentDetail)
def get_enrollment(enrollment_id: int, db: Session = Depends(get_session)):
    return schemas.EnrollmentDetail.model_validate(services.EnrollmentService(db).get(enrollment_id))


@api.post('/enrollments', response_model=schemas.EnrollmentDetail, status_code=201)
def create_enrollment(payload: schemas.EnrollmentCreate, db: Session = Depends(get_session)):
    """Enroll a student. 400 when the course is full, inactive, or the student is already in it."""
    return schemas.EnrollmentDetail.model_validate(services.EnrollmentService(db).create(payload))


@api.put('/enrollments/{enrollment_id}', response_model=schemas.EnrollmentDetail)
def update_enrollment(enrollment_id: int, payload: schemas.EnrollmentUpdate, db: Session = Depends(get_session)):
    return schemas.EnrollmentDetail.model_validate(services.EnrollmentService(db).update(enrollment_id, payload))


@api.delete('/enrollments/{enrollment_id}', status_code=204, response_class=Response)
def delete_enrollment(enrollment_id: int, db: Session = Depends(get_session)):
    """Remove an enrollment and release its seat in the course."""
    services.EnrollmentService(db).delete(enrollment_id)
    return _no_content()


# --- grades ---------------------------------------------------------------

@api.get('/grades', response_model=schemas.GradePage)
def list_grades(
    paging: PageParams = Depends(page_params),
    sort_by: Literal["createdAt", "finalGrade"] = Query("createdAt", alias="sortBy"),
    status: Optional[str] = None,
    student_id: Optional[int] = Query(None, alias="studentId"),
    course_id: Optional[int] = Query(None, alias="courseId"),
    db: Session = Depends(get_session),
):
    rows, total = services.GradeService(db).list(
        paging, sort_by=sort_by, status=_status_filter(status, models.GradeStatus),
        student_id=student_id, course_id=course_id)
    return schemas.GradePage(
        grades=[schemas.GradeDetail.model_validate(g) for g in rows],
        pagination=build_pagination(total, paging.page, paging.limit),
    )


@api.get('/grades/student/{student_id}', response_model=List[schemas.GradeWithCourse])
def grades_by_student(student_id: int, db: Session = Depends(get_session)):
    rows = services.GradeService(db).for_student(student_id)
    return [schemas.GradeWithCourse.model_validate(g) for g in rows]


@api.get('/grades/course/{course_id}', response_model=List[schemas.GradeWithStudent])
def grades_by_course(course_id: int, db: Session = Depends(get_session)):
    rows = services.GradeService(db).for_course(course_id)
    return [schemas.GradeWithStudent.model_validate(g) for g in rows]


@api.get('/grades/{grade_id}', response_model=schemas.GradeDetail)
def get_grade(grade_id: int, db: Session = Depends(get_session)):
    return schemas.GradeDetail.model_validate(services.GradeService(db).get(grade_id))


@api.post('/grades', response_model=schemas.GradeDetail, status_code=201)
def create_grade(payload: schemas.GradeCreate, db: Session = Depends(get_session)):
    """Record partial scores; the final grade is filled in once all three exist."""
    return schemas.GradeDetail.model_validate(services.GradeService(db).create(payload))


@api.put('/grades/{grade_id}', response_model=schemas.GradeDetail)
def update_grade(grade_id: int, payload: schemas.GradeUpdate, db: Session = Depends(get_session)):
    """Update partials/comments and recompute `finalGrade` and `status`."""
    return schemas.GradeDetail.model_validate(services.GradeService(db).update(grade_id, payload))


@api.delete('/grades/{grade_id}', status_code=204, response_class=Response)
def delete_grade(grade_id: int, db: Session = Depends(get_session)):
    services.GradeService(db).delete(grade_id)
    return _no_content()


# --- stats ----------------------------------------------------------------

@api.get('/stats', response_model=schemas.StatsOut)
def stats(db: Session = Depends(get_session)):
    """Dashboard totals: people, courses, enrollments and grade outcomes."""
    return schemas.StatsOut(**services.StatsService(db).summary())


app.include_router(api)


@app.get("/")
def home():
    return {"message": "University Management API - Running"}


@app.get("/health")
def health():
    """Lightweight health check for uptime monitoring."""
    return {"status": "ok"}
