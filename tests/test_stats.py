from conftest import auth_header


def test_popular_classes_order_and_limit(client, make_class):
    """Шесть одобренных классов с наибольшим числом записавшихся"""
    for n in range(8):
        make_class(name=f"C{n}", enrolled=n)
    make_class(name="Hidden", enrolled=100, status="pending")
    names = [c["name"] for c in client.get("/popular_classes").json()]
    assert names == ["C7", "C6", "C5", "C4", "C3", "C2"]


def test_popular_instructors(client, make_user, make_class):
    """Суммируем записавшихся по инструктору и подтягиваем имя из users"""
    make_user("guru@example.com", role="instructor", name="Guru")
    make_user("yogi@example.com", role="instructor", name="Yogi")
    make_class(instructor_email="guru@example.com", enrolled=5)
    make_class(instructor_email="guru@example.com", enrolled=7)
    make_class(instructor_email="yogi@example.com", enrolled=20)
    make_class(instructor_email="ghost@example.com", enrolled=1)

    data = client.get("/popular-instructors").json()
    assert [(i["email"], i["instructor"], i["totalEnrolled"]) for i in data] == [
        ("yogi@example.com", "Yogi", 20),
        ("guru@example.com", "Guru", 12),
        ("ghost@example.com", None, 1),
    ]


def test_popular_instructors_cached(client, make_user, make_class, fake_redis):
    make_class(instructor_email="guru@example.com", enrolled=5)
    client.get("/popular-instructors")
    assert fake_redis.get("catalog:popular_instructors") is not None


def test_enrolled_classes_with_instructor(client, student, make_user, make_class):
    make_user("guru@example.com", role="instructor", name="Guru")
    a = make_class(name="A", instructor_email="guru@example.com")
    b = make_class(name="B", instructor_email="ghost@example.com")
    make_class(name="Not bought")
    client.post("/payment-info", json={"classesId": [a.id, b.id], "transactionId": "t"}, headers=student)

    response = client.get("/enrolled-classes/student@example.com", headers=student)
    assert response.status_code == 200
    data = response.json()
    assert [row["classes"]["name"] for row in data] == ["A", "B"]
    assert data[0]["instructor"]["name"] == "Guru"
    assert data[1]["instructor"] is None


def test_enrolled_classes_requires_own_email(client, student):
    assert client.get("/enrolled-classes/other@example.com", headers=student).status_code == 401
    assert client.get("/enrolled-classes/student@example.com").status_code == 401


def test_admin_stats(client, admin, make_user, make_class, student):
    make_user("guru@example.com", role="instructor")
    a = make_class(status="approved")
    make_class(status="approved")
    make_class(status="pending")
    make_class(status="rejected")
    client.post("/payment-info", json={"classId": a.id, "transactionId": "t"}, headers=student)

    response = client.get("/admin-stats", headers=admin)
    assert response.status_code == 200
    assert response.json() == {
        "approvedClasses": 2,
        "pendingClasses": 1,
        "instructors": 1,
        "totalClasses": 4,
        "totalEnrolled": 1,
    }


def test_instructor_application_flow(client, admin):
    """Заявка инструктора: подать, найти по email, админ видит список"""
    body = {"email": "new@example.com", "name": "New", "experience": "5 years"}
    assert client.post("/ass-instructor", json=body).status_code == 201
    assert client.post("/ass-instructor", json=body).status_code == 409

    found = client.get("/applied-instructors/new@example.com")
    assert found.status_code == 200
    assert found.json()["experience"] == "5 years"
    assert client.get("/applied-instructors/none@example.com").status_code == 404

    listing = client.get("/applied-instructors", headers=admin)
    assert [a["email"] for a in listing.json()] == ["new@example.com"]


def test_applications_list_admin_only(client, student):
    assert client.get("/applied-instructors", headers=student).status_code == 401


def test_health_and_metrics(client):
    assert client.get("/health").json() == {"status": "ok"}
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "text/plain" in response.headers["content-type"]
    assert "http_requests_total" in response.text
