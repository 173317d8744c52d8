import os
import tempfile
from pathlib import Path

# Point the app at a throwaway SQLite file before `university` is imported.
_DB_DIR = Path(tempfile.mkdtemp(prefix="university-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_DB_DIR / 'test.db'}"

import pytest
from fastapi.testclient import TestClient

from university.database import create_db_and_tables, drop_db_and_tables
from university.main import app


@pytest.fixture(autouse=True)
def reset_db():
    """Ensure a fresh, empty schema for every test."""
    drop_db_and_tables()
    create_db_and_tables()
    yield


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def make_professor(client):
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        n = counter["n"]
        payload = {
            "employeeId": f"EMP-{n:03d}",
            "firstName": "Ana",
            "lastName": f"Morales{n}",
            "email": f"prof{n}@university.edu",
            "phone": "555-0100",
            "specialty": "Databases",
            "department": "Computer Science",
        }
        payload.update(overrides)
        r = client.post("/api/professors", json=payload)
        assert r.status_code == 201, r.text
        return r.json()

    return _make


@pytest.fixture
def make_course(client, make_professor):
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        n = counter["n"]
        if "professorId" not in overrides:
            overrides["professorId"] = make_professor()["id"]
        payload = {
            "code": f"CS-{100 + n}",
            "name": f"Course {n}",
            "description": "Demo course",
            "credits": 4,
            "maxCapacity": 30,
            "schedule": "Mon/Wed 08:00-10:00",
            "semester": "2025-1",
        }
        payload.update(overrides)
        r = client.post("/api/courses", json=payload)
        assert r.status_code == 201, r.text
        return r.json()

    return _make


@pytest.fixture
def make_student(client):
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        n = counter["n"]
        payload = {
            "carnet": f"2025{n:04d}",
            "firstName": "Maria",
            "lastName": f"Lopez{n}",
            "email": f"student{n}@students.university.edu",
            "phone": "555-1000",
            "career": "Computer Science",
        }
        payload.update(overrides)
        r = client.post("/api/students", json=payload)
        assert r.status_code == 201, r.text
        return r.json()

    return _make


@pytest.fixture
def enroll(client):
    def _enroll(student_id, course_id, **extra):
        return client.post("/api/enrollments", json={"studentId": student_id, "courseId": course_id, **extra})

    return _enroll
