import logging

import pytest


@pytest.fixture
def pair(make_course, make_student):
    return make_student(), make_course()


def _grade(client, student, course, **partials):
    return client.post("/api/grades", json={"studentId": student["id"], "courseId": course["id"], **partials})


def test_full_partials_compute_mean_and_approve(client, pair):
    s, c = pair
    r = _grade(client, s, c, partial1=7, partial2=8, partial3=9, comments="good work")
    assert r.status_code == 201
    body = r.json()
    assert body["finalGrade"] == pytest.approx(8.0)
    assert body["status"] == "APPROVED"
    assert body["comments"] == "good work"
    assert body["student"]["id"] == s["id"]
    assert body["course"]["id"] == c["id"]


def test_mean_below_six_fails_and_exactly_six_passes(client, make_course, make_student):
    s = make_student()
    failed = _grade(client, s, make_course(), partial1=5, partial2=6, partial3=5.5).json()
    assert failed["finalGrade"] == pytest.approx(5.5)
    assert failed["status"] == "FAILED"
    borderline = _grade(client, s, make_course(), partial1=5.5, partial2=6, partial3=6.5).json()
    assert borderline["finalGrade"] == pytest.approx(6.0)
    assert borderline["status"] == "APPROVED"


def test_missing_partial_leaves_grade_pending(client, pair):
    s, c = pair
    body = _grade(client, s, c, partial1=9, partial2=9).json()
    assert body["finalGrade"] is None
    assert body["status"] == "PENDING"


def test_update_merges_partials_and_recomputes(client, pair):
    s, c = pair
    g = _grade(client, s, c, partial1=4, partial2=6).json()
    r = client.put(f"/api/grades/{g['id']}", json={"partial3": 8})
    assert r.status_code == 200
    assert r.json()["partial1"] == 4
    assert r.json()["finalGrade"] == pytest.approx(6.0)
    assert r.json()["status"] == "APPROVED"

    lowered = client.put(f"/api/grades/{g['id']}", json={"partial1": 0}).json()
    assert lowered["finalGrade"] == pytest.approx(14 / 3)
    assert lowered["status"] == "FAILED"

    cleared = client.put(f"/api/grades/{g['id']}", json={"partial2": None}).json()
    assert cleared["finalGrade"] is None
    assert cleared["status"] == "PENDING"


def test_derived_fields_cannot_be_written(client, pair):
    s, c = pair
    g = _grade(client, s, c, partial1=2, partial2=3, partial3=4).json()
    r = client.put(f"/api/grades/{g['id']}", json={"finalGrade": 10, "status": "APPROVED", "comments": "retake"})
    assert r.status_code == 200
    assert r.json()["finalGrade"] == pytest.approx(3.0)
    assert r.json()["status"] == "FAILED"
    assert r.json()["comments"] == "retake"


def test_partials_must_be_on_ten_point_scale(client, pair):
    s, c = pair
    assert _grade(client, s, c, partial1=11).status_code == 400
    assert _grade(client, s, c, partial1=-1).status_code == 400


def test_grade_requires_existing_pair_and_is_unique(client, pair):
    s, c = pair
    assert _grade(client, {"id": 999}, c).status_code == 404
    assert _grade(client, s, {"id": 999}).status_code == 404
    assert _grade(client, s, c, partial1=5).status_code == 201
    dup = _grade(client, s, c, partial1=6)
    assert dup.status_code == 400
    assert dup.json()["error"] == "Grade already exists for this student and course"


def test_delete_grade(client, pair):
    s, c = pair
    g = _grade(client, s, c).json()
    assert client.delete(f"/api/grades/{g['id']}").status_code == 204
    assert client.get(f"/api/grades/{g['id']}").status_code == 404
    assert client.put(f"/api/grades/{g['id']}", json={"partial1": 5}).status_code == 404


def test_list_grades_filters_and_sorts(client, make_course, make_student):
    s = make_student()
    other = make_student()
    c1, c2, c3 = make_course(), make_course(), make_course()
    _grade(client, s, c1, partial1=9, partial2=9, partial3=9)
    _grade(client, s, c2, partial1=3, partial2=3, partial3=3)
    _grade(client, other, c3, partial1=7)

    approved = client.get("/api/grades", params={"status": "APPROVED"}).json()
    assert [g["courseId"] for g in approved["grades"]] == [c1["id"]]
    pending = client.get("/api/grades", params={"status": "PENDING"}).json()
    assert pending["pagination"]["total"] == 1
    for_student = client.get("/api/grades", params={"studentId": s["id"], "sortBy": "finalGrade", "order": "asc"})
    assert [g["finalGrade"] for g in for_student.json()["grades"]] == [pytest.approx(3.0), pytest.approx(9.0)]
    by_course = client.get("/api/grades", params={"courseId": c3["id"]}).json()
    assert by_course["grades"][0]["student"]["id"] == other["id"]


def test_grades_by_student_and_course_endpoints(client, pair):
    s, c = pair
    _grade(client, s, c, partial1=8, partial2=8, partial3=8)
    by_student = client.get(f"/api/grades/student/{s['id']}").json()
    assert by_student[0]["course"]["professor"]["id"] == c["professorId"]
    by_course = client.get(f"/api/grades/course/{c['id']}").json()
    assert by_course[0]["student"]["carnet"] == s["carnet"]
    detail = client.get(f"/api/students/{s['id']}").json()
    assert detail["grades"][0]["finalGrade"] == pytest.approx(8.0)
    assert client.get("/api/grades/course/999").status_code == 404


def test_finalised_grade_is_logged_on_create_and_update(client, make_course, make_student, caplog):
    caplog.set_level(logging.INFO, logger="university.services")
    s = make_student()
    complete = _grade(client, s, make_course(), partial1=8, partial2=8, partial3=8).json()
    assert f"grade finalised id={complete['id']} final=8.00 status=APPROVED" in caplog.text

    caplog.clear()
    pending = _grade(client, s, make_course(), partial1=5).json()
    assert "grade finalised" not in caplog.text
    client.put(f"/api/grades/{pending['id']}", json={"partial2": 5, "partial3": 5})
    assert f"grade finalised id={pending['id']} final=5.00 status=FAILED" in caplog.text
