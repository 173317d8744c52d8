def test_create_and_fetch_professor(client, make_professor):
    p = make_professor(firstName="Luis", department="Mathematics")
    assert p["status"] == "ACTIVE"
    r = client.get(f"/api/professors/{p['id']}")
    assert r.status_code == 200
    body = r.json()
    assert body["firstName"] == "Luis"
    assert body["department"] == "Mathematics"
    assert body["employeeId"] == p["employeeId"]
    assert body["courses"] == []


def test_duplicate_employee_id_is_rejected(client, make_professor):
    p = make_professor()
    r = client.post("/api/professors", json={
        "employeeId": p["employeeId"], "firstName": "X", "lastName": "Y", "email": "new@u.edu",
        "phone": "1", "specialty": "AI", "department": "CS",
    })
    assert r.status_code == 400
    assert r.json()["error"] == "Employee ID or email already exists"


def test_professor_detail_and_list_include_courses(client, make_professor, make_course):
    p = make_professor()
    c = make_course(professorId=p["id"], code="CS-900")
    detail = client.get(f"/api/professors/{p['id']}").json()
    assert [course["code"] for course in detail["courses"]] == ["CS-900"]
    listing = client.get("/api/professors").json()
    assert listing["pagination"]["total"] == 1
    assert listing["professors"][0]["courses"][0]["id"] == c["id"]


def test_list_professors_filters(client, make_professor):
    make_professor(department="Mathematics", lastName="Euler")
    make_professor(department="Computer Science", lastName="Turing", status="INACTIVE")
    math = client.get("/api/professors", params={"department": "Mathematics"}).json()
    assert [p["lastName"] for p in math["professors"]] == ["Euler"]
    inactive = client.get("/api/professors", params={"status": "INACTIVE"}).json()
    assert [p["lastName"] for p in inactive["professors"]] == ["Turing"]
    by_employee = client.get("/api/professors", params={"sortBy": "employeeId", "order": "asc"}).json()
    assert [p["lastName"] for p in by_employee["professors"]] == ["Euler", "Turing"]
    assert client.get("/api/professors", params={"search": "turi"}).json()["pagination"]["total"] == 1


def test_update_professor(client, make_professor):
    p = make_professor()
    r = client.put(f"/api/professors/{p['id']}", json={"specialty": "Compilers"})
    assert r.status_code == 200
    assert r.json()["specialty"] == "Compilers"
    assert client.put("/api/professors/9999", json={"specialty": "x"}).status_code == 404


def test_delete_professor_with_courses_is_refused(client, make_professor, make_course):
    p = make_professor()
    c = make_course(professorId=p["id"])
    r = client.delete(f"/api/professors/{p['id']}")
    assert r.status_code == 400
    assert "courses" in r.json()["error"]
    assert client.get(f"/api/professors/{p['id']}").status_code == 200

    assert client.delete(f"/api/courses/{c['id']}").status_code == 204
    assert client.delete(f"/api/professors/{p['id']}").status_code == 204
    assert client.get(f"/api/professors/{p['id']}").status_code == 404
