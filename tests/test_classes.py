import pytest

from yoga_service.infrastructure.models import YogaClass

from conftest import auth_header

NEW_CLASS = {
    "name": "Sunrise Vinyasa",
    "image": "http://img/vinyasa.png",
    "description": "Morning flow",
    "price": 25,
    "availableSeats": 12,
    "videoLink": "http://video/1",
}


def test_instructor_creates_pending_class(client, instructor):
    """Новый класс принадлежит инструктору и ждёт модерации"""
    response = client.post("/new-class", json=NEW_CLASS, headers=instructor)
    assert response.status_code == 201
    data = response.json()
    assert data["instructorEmail"] == "guru@example.com"
    assert data["instructorName"] == "Guru"
    assert data["status"] == "pending"
    assert data["totalEnrolled"] == 0
    assert data["availableSeats"] == 12


def test_create_class_ignores_client_counters(client, instructor):
    """totalEnrolled из тела запроса не принимается"""
    body = {**NEW_CLASS, "totalEnrolled": 500, "status": "approved"}
    data = client.post("/new-class", json=body, headers=instructor).json()
    assert data["totalEnrolled"] == 0
    assert data["status"] == "pending"


def test_create_class_validation(client, instructor):
    assert client.post("/new-class", json={**NEW_CLASS, "availableSeats": -1}, headers=instructor).status_code == 422
    assert client.post("/new-class", json={**NEW_CLASS, "price": -5}, headers=instructor).status_code == 422


def test_student_cannot_create_class(client, student):
    assert client.post("/new-class", json=NEW_CLASS, headers=student).status_code == 401


def test_list_and_get_classes(client, make_class):
    a = make_class(name="A", status="approved")
    make_class(name="B", status="pending")
    assert [c["name"] for c in client.get("/classes").json()] == ["A", "B"]
    assert len(client.get("/classes-manage").json()) == 2
    assert client.get(f"/class/{a.id}").json()["name"] == "A"
    assert client.get("/class/999").status_code == 404


def test_approved_classes_only(client, make_class):
    make_class(name="A", status="approved")
    make_class(name="B", status="pending")
    make_class(name="C", status="rejected")
    assert [c["name"] for c in client.get("/approved-classes").json()] == ["A"]


def test_approved_classes_served_from_cache(client, make_class, fake_redis):
    """Витрина одобренных классов кладётся в кэш"""
    make_class(name="A", status="approved")
    client.get("/approved-classes")
    assert fake_redis.get("catalog:approved") is not None


def test_instructor_lists_own_classes(client, instructor, make_class):
    make_class(instructor_email="guru@example.com", name="Mine")
    make_class(instructor_email="other@example.com", name="Theirs")
    response = client.get("/classes/guru@example.com", headers=instructor)
    assert response.status_code == 200
    assert [c["name"] for c in response.json()] == ["Mine"]


def test_instructor_cannot_list_foreign_classes(client, instructor):
    assert client.get("/classes/other@example.com", headers=instructor).status_code == 401


def test_update_class_resets_status(client, instructor, make_class, db):
    """После правки класс снова pending, записавшиеся не меняются"""
    c = make_class(instructor_email="guru@example.com", status="approved", seats=3, enrolled=9)
    response = client.put(
        f"/update-class/{c.id}",
        json={"name": "Renamed", "availableSeats": 10, "price": 30},
        headers=instructor,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Renamed"
    assert data["status"] == "pending"
    assert data["availableSeats"] == 10
    assert data["totalEnrolled"] == 9


def test_update_foreign_class_rejected(client, instructor, make_class):
    c = make_class(instructor_email="other@example.com")
    assert client.put(f"/update-class/{c.id}", json={"name": "x"}, headers=instructor).status_code == 401


def test_update_missing_class(client, instructor):
    assert client.put("/update-class/999", json={"name": "x"}, headers=instructor).status_code == 404


def test_admin_changes_status(client, admin, make_class, fake_redis):
    c = make_class(status="pending")
    fake_redis.set("catalog:approved", "[]")
    response = client.patch(
        f"/change-status/{c.id}", json={"status": "rejected", "reason": "No video"}, headers=admin)
    assert response.status_code == 200
    assert response.json()["status"] == "rejected"
    assert response.json()["reason"] == "No video"
    assert fake_redis.get("catalog:approved") is None


def test_change_status_validation_and_missing(client, admin, make_class):
    c = make_class()
    assert client.patch(f"/change-status/{c.id}", json={"status": "archived"}, headers=admin).status_code == 422
    assert client.patch("/change-status/999", json={"status": "approved"}, headers=admin).status_code == 404


def test_instructor_cannot_change_status(client, instructor, make_class):
    c = make_class()
    assert client.patch(f"/change-status/{c.id}", json={"status": "approved"}, headers=instructor).status_code == 401


@pytest.mark.parametrize("field", ["name", "price", "availableSeats"])
def test_update_class_rejects_null_required_fields(client, instructor, make_class, field):
    c = make_class(instructor_email="guru@example.com")
    response = client.put(f"/update-class/{c.id}", json={field: None}, headers=instructor)
    assert response.status_code == 422


def test_update_class_clears_optional_field(client, instructor, make_class):
    c = make_class(instructor_email="guru@example.com")
    response = client.put(f"/update-class/{c.id}", json={"description": None}, headers=instructor)
    assert response.status_code == 200
    assert response.json()["description"] is None
