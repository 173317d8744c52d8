def test_create_and_fetch_student_round_trips_fields(client, make_student):
    created = make_student(carnet="20250042", firstName="Sofia", email="sofia@students.university.edu")
    assert created["status"] == "ACTIVE"
    assert "enrollmentDate" in created and "createdAt" in created

    r = client.get(f"/api/students/{created['id']}")
    assert r.status_code == 200
    body = r.json()
    assert body["carnet"] == "20250042"
    assert body["firstName"] == "Sofia"
    assert body["email"] == "sofia@students.university.edu"
    assert body["enrollments"] == []
    assert body["grades"] == []


def test_snake_case_payload_is_accepted(client):
    r = client.post("/api/students", json={
        "carnet": "1", "first_name": "Jose", "last_name": "Garcia", "email": "jose@x.edu",
        "phone": "1", "career": "Mathematics", "status": "GRADUATED",
    })
    assert r.status_code == 201
    assert r.json()["firstName"] == "Jose"
    assert r.json()["status"] == "GRADUATED"


def test_duplicate_carnet_or_email_is_rejected(client, make_student):
    make_student(carnet="111", email="dup@x.edu")
    r = client.post("/api/students", json={
        "carnet": "111", "firstName": "A", "lastName": "B", "email": "other@x.edu",
        "phone": "1", "career": "CS",
    })
    assert r.status_code == 400
    assert r.json() == {"error": "Carnet or email already exists"}
    r2 = client.post("/api/students", json={
        "carnet": "222", "firstName": "A", "lastName": "B", "email": "dup@x.edu",
        "phone": "1", "career": "CS",
    })
    assert r2.status_code == 400


def test_missing_required_field_returns_400_error_body(client):
    r = client.post("/api/students", json={"carnet": "1"})
    assert r.status_code == 400
    assert "firstName" in r.json()["error"]


def test_update_student(client, make_student):
    s = make_student()
    r = client.put(f"/api/students/{s['id']}", json={"career": "Physics", "status": "INACTIVE"})
    assert r.status_code == 200
    assert r.json()["career"] == "Physics"
    assert r.json()["status"] == "INACTIVE"
    assert r.json()["carnet"] == s["carnet"]


def test_update_rejects_conflicting_email_and_null_required_field(client, make_student):
    a = make_student()
    b = make_student()
    r = client.put(f"/api/students/{b['id']}", json={"email": a["email"]})
    assert r.status_code == 400
    r2 = client.put(f"/api/students/{b['id']}", json={"firstName": None})
    assert r2.status_code == 400
    assert r2.json()["error"] == "firstName cannot be null"
    assert client.get(f"/api/students/{b['id']}").json()["firstName"] == b["firstName"]


def test_update_keeping_own_email_is_allowed(client, make_student):
    s = make_student()
    r = client.put(f"/api/students/{s['id']}", json={"email": s["email"], "phone": "999"})
    assert r.status_code == 200
    assert r.json()["phone"] == "999"


def test_delete_student(client, make_student):
    s = make_student()
    r = client.delete(f"/api/students/{s['id']}")
    assert r.status_code == 204
    missing = client.get(f"/api/students/{s['id']}")
    assert missing.status_code == 404
    assert missing.json() == {"error": "Student not found"}
    assert client.delete(f"/api/students/{s['id']}").status_code == 404


def test_list_students_paginates(client, make_student):
    for _ in range(15):
        make_student()
    r = client.get("/api/students", params={"limit": 10})
    assert r.status_code == 200
    body = r.json()
    assert len(body["students"]) == 10
    assert body["pagination"] == {"total": 15, "page": 1, "limit": 10, "totalPages": 2}
    page2 = client.get("/api/students", params={"limit": 10, "page": 2}).json()
    assert len(page2["students"]) == 5
    ids = {s["id"] for s in body["students"]} | {s["id"] for s in page2["students"]}
    assert len(ids) == 15


def test_list_students_filters_and_sorts(client, make_student):
    make_student(lastName="Zamora", career="Mathematics")
    make_student(lastName="Alvarez", career="Computer Science", status="GRADUATED")
    make_student(lastName="Mendez", career="Computer Science")

    by_name = client.get("/api/students", params={"sortBy": "lastName", "order": "asc"}).json()
    assert [s["lastName"] for s in by_name["students"]] == ["Alvarez", "Mendez", "Zamora"]

    graduated = client.get("/api/students", params={"status": "GRADUATED"}).json()
    assert [s["lastName"] for s in graduated["students"]] == ["Alvarez"]

    everyone = client.get("/api/students", params={"status": "all"}).json()
    assert everyone["pagination"]["total"] == 3

    math = client.get("/api/students", params={"career": "math"}).json()
    assert [s["lastName"] for s in math["students"]] == ["Zamora"]

    searched = client.get("/api/students", params={"search": "mEnd"}).json()
    assert [s["lastName"] for s in searched["students"]] == ["Mendez"]


def test_list_students_rejects_bad_query_values(client):
    assert client.get("/api/students", params={"status": "ENROLLED"}).status_code == 400
    assert client.get("/api/students", params={"sortBy": "email"}).status_code == 400
    assert client.get("/api/students", params={"page": 0}).status_code == 400
    assert client.get("/api/students", params={"limit": 1000}).status_code == 400


def test_search_endpoint(client, make_student):
    make_student(firstName="Valeria", carnet="A-77")
    make_student(firstName="Diego", carnet="B-12")
    r = client.get("/api/students/search", params={"q": "vale"})
    assert r.status_code == 200
    assert [s["firstName"] for s in r.json()] == ["Valeria"]
    assert [s["carnet"] for s in client.get("/api/students/search", params={"q": "b-1"}).json()] == ["B-12"]
    assert client.get("/api/students/search", params={"q": "  "}).json() == []


def test_search_treats_like_wildcards_literally(client, make_student):
    make_student(firstName="Diego", carnet="A-100")
    make_student(firstName="Lucia", carnet="B_200", email="lucia_p@students.university.edu")

    assert client.get("/api/students", params={"search": "%"}).json()["pagination"]["total"] == 0
    assert client.get("/api/students/search", params={"q": "%"}).json() == []
    underscored = client.get("/api/students/search", params={"q": "_"}).json()
    assert [s["carnet"] for s in underscored] == ["B_200"]
    assert client.get("/api/students/search", params={"q": "\\"}).json() == []
    listed = client.get("/api/students", params={"search": "b_2"}).json()
    assert [s["firstName"] for s in listed["students"]] == ["Lucia"]
