"""CLI script to populate the backend DB with a small demo dataset.
Usage: python scripts/seed_demo.py [--reset] [--students N]
"""
import sys
import argparse
import pathlib
# Ensure `backend/` is on sys.path so `university` package imports work when running this script directly
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
from sqlmodel import Session
from university.database import engine, create_db_and_tables, drop_db_and_tables
from university import schemas, services
from university.errors import UniversityError

PROFESSORS = [
    ("EMP-001", "Ana", "Morales", "Software Engineering", "Computer Science"),
    ("EMP-002", "Luis", "Herrera", "Databases", "Computer Science"),
    ("EMP-003", "Carla", "Mendez", "Calculus", "Mathematics"),
]

COURSES = [
    ("CS-101", "Introduction to Programming", 4, 0, 30, "Mon/Wed 08:00-10:00"),
    ("CS-205", "Database Systems", 4, 1, 25, "Tue/Thu 10:00-12:00"),
    ("MA-110", "Calculus I", 5, 2, 40, "Mon/Wed/Fri 14:00-15:30"),
]

CAREERS = ["Computer Science", "Mathematics", "Industrial Engineering"]
FIRST_NAMES = ["Maria", "Jose", "Sofia", "Diego", "Valeria", "Carlos", "Lucia", "Andres", "Elena", "Pablo"]
LAST_NAMES = ["Lopez", "Garcia", "Ramirez", "Castillo", "Flores", "Ortiz", "Reyes", "Vargas"]


def main(reset: bool = False, students: int = 12, semester: str = "2025-1"):
    """Create professors, courses, students, enrollments and some grades.

    Records go through the service layer so counters and derived grades
    are filled exactly as they would be through the API. Business rule
    failures (e.g. a course filling up) are reported and skipped.
    """
    if reset:
        drop_db_and_tables()
    create_db_and_tables()
    with Session(engine) as session:
        prof_svc = services.ProfessorService(session)
        course_svc = services.CourseService(session)
        student_svc = services.StudentService(session)
        enroll_svc = services.EnrollmentService(session)
        grade_svc = services.GradeService(session)

        professors = []
        for emp, first, last, specialty, dept in PROFESSORS:
            professors.append(prof_svc.create(schemas.ProfessorCreate(
                employee_id=emp, first_name=first, last_name=last,
                email=f"{first.lower()}.{last.lower()}@university.edu", phone="555-0100",
                specialty=specialty, department=dept,
            )))
        courses = []
        for code, name, credits, prof_idx, capacity, schedule in COURSES:
            courses.append(course_svc.create(schemas.CourseCreate(
                code=code, name=name, credits=credits, professor_id=professors[prof_idx].id,
                max_capacity=capacity, schedule=schedule, semester=semester,
            )))
        created = []
        for i in range(students):
            first = FIRST_NAMES[i % len(FIRST_NAMES)]
            last = LAST_NAMES[i % len(LAST_NAMES)]
            created.append(student_svc.create(schemas.StudentCreate(
                carnet=f"2025{i + 1:04d}", first_name=first, last_name=last,
                email=f"{first.lower()}.{last.lower()}{i + 1}@students.university.edu",
                phone=f"555-{1000 + i}", career=CAREERS[i % len(CAREERS)],
            )))
        enrolled = 0
        graded = 0
        for i, student in enumerate(created):
            for j, course in enumerate(courses):
                if (i + j) % 2:
                    continue
                try:
                    enroll_svc.create(schemas.EnrollmentCreate(student_id=student.id, course_id=course.id))
                    enrolled += 1
                except UniversityError as e:
                    print(f'Skipped enrollment {student.carnet} -> {course.code}: {e.message}')
                    continue
                base = 4 + (i * 7 + j * 3) % 6
                grade_svc.create(schemas.GradeCreate(
                    student_id=student.id, course_id=course.id,
                    partial1=base, partial2=min(10, base + 1), partial3=(None if i % 5 == 0 else base),
                ))
                graded += 1
        print(f'Created {len(professors)} professors, {len(courses)} courses, {len(created)} students')
        print(f'Created {enrolled} enrollments and {graded} grades')
        print(services.StatsService(session).summary())


if __name__ == '__main__':
    parser = argparse.ArgumentParser()
    parser.add_argument('--reset', action='store_true', help='Drop all tables before seeding')
    parser.add_argument('--students', type=int, default=12, help='Number of demo students to create')
    parser.add_argument('--semester', default='2025-1', help='Semester label for the demo courses')
    args = parser.parse_args()
    main(reset=args.reset, students=args.students, semester=args.semester)
