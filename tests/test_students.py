import threading

import pytest

from dorm_service.application.use_cases.occupancy import CheckIn
from dorm_service.domain.entities import Role
from dorm_service.domain.errors import Conflict
from dorm_service.infrastructure.db import SessionLocal
from dorm_service.infrastructure.models import StudentORM
from dorm_service.infrastructure.repositories import StudentRepository


@pytest.fixture
def make_student(client, make_user, manager_headers):
    def _student(student_no: str, name: str = "Student"):
        user = make_user(Role.student, name=name)
        response = client.post("/students", json={"userId": user.id, "studentNo": student_no},
                               headers=manager_headers)
        assert response.status_code == 200
        return response.json()
    return _student


def test_create_student(client, make_user, manager_headers):
    """Тест создания карточки студента"""
    user = make_user(Role.student, name="Li Wei")
    response = client.post("/students", json={"userId": user.id, "studentNo": "2024001"},
                           headers=manager_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["userId"] == user.id
    assert data["studentNo"] == "2024001"
    assert data["bedId"] is None
    assert data["bed"] is None
    assert data["user"]["name"] == "Li Wei"


def test_create_student_unknown_user(client, manager_headers):
    response = client.post("/students", json={"userId": 999, "studentNo": "X"}, headers=manager_headers)
    assert response.status_code == 404
    assert response.json() == {"error": "user_not_found"}


def test_create_student_duplicate(client, make_user, manager_headers):
    """Повторная карточка для пользователя или номера даёт 409"""
    user = make_user(Role.student)
    other = make_user(Role.student)
    client.post("/students", json={"userId": user.id, "studentNo": "S-1"}, headers=manager_headers)

    same_user = client.post("/students", json={"userId": user.id, "studentNo": "S-2"}, headers=manager_headers)
    assert same_user.status_code == 409
    assert same_user.json() == {"error": "student_exists"}

    same_no = client.post("/students", json={"userId": other.id, "studentNo": "S-1"}, headers=manager_headers)
    assert same_no.status_code == 409


def test_create_student_validation(client, manager_headers):
    response = client.post("/students", json={"userId": 1, "studentNo": ""}, headers=manager_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


def test_students_forbidden_for_student(client, student_headers):
    assert client.get("/students", headers=student_headers).status_code == 403
    assert client.post("/students/1/checkin", json={"bedId": 1}, headers=student_headers).status_code == 403
    assert client.post("/students/1/checkout", headers=student_headers).status_code == 403


def test_students_unauthorized(client):
    assert client.get("/students").status_code == 401
    assert client.post("/students/1/checkout").status_code == 401


def test_checkin(client, make_student, bed_factory, manager_headers):
    """Заселение возвращает студента с кроватью, комнатой и корпусом"""
    student = make_student("S-1")
    bed_id = bed_factory(building="Block A", floor=3, number="301", label="B")

    response = client.post(f"/students/{student['id']}/checkin", json={"bedId": bed_id}, headers=manager_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["bedId"] == bed_id
    assert data["bed"]["label"] == "B"
    assert data["bed"]["room"]["number"] == "301"
    assert data["bed"]["room"]["floor"] == 3
    assert data["bed"]["room"]["building"]["name"] == "Block A"
    assert data["user"]["id"] == student["userId"]


def test_checkin_occupied_bed(client, make_student, bed_factory, manager_headers, db):
    """Занятая кровать: 409, прежнее заселение не меняется"""
    first = make_student("S-1")
    second = make_student("S-2")
    bed_id = bed_factory()
    client.post(f"/students/{first['id']}/checkin", json={"bedId": bed_id}, headers=manager_headers)

    response = client.post(f"/students/{second['id']}/checkin", json={"bedId": bed_id}, headers=manager_headers)
    assert response.status_code == 409
    assert response.json() == {"error": "bed_occupied"}

    assert db.get(StudentORM, first["id"]).bed_id == bed_id
    assert db.get(StudentORM, second["id"]).bed_id is None


def test_checkin_same_student_same_bed(client, make_student, bed_factory, manager_headers):
    student = make_student("S-1")
    bed_id = bed_factory()
    client.post(f"/students/{student['id']}/checkin", json={"bedId": bed_id}, headers=manager_headers)
    response = client.post(f"/students/{student['id']}/checkin", json={"bedId": bed_id}, headers=manager_headers)
    assert response.status_code == 409


def test_checkin_unknown_bed(client, make_student, manager_headers, db):
    """Несуществующая кровать: 404 и ничего не меняется"""
    student = make_student("S-1")
    response = client.post(f"/students/{student['id']}/checkin", json={"bedId": 999}, headers=manager_headers)
    assert response.status_code == 404
    assert response.json() == {"error": "bed_not_found"}
    assert db.get(StudentORM, student["id"]).bed_id is None


def test_checkin_unknown_student(client, bed_factory, manager_headers):
    bed_id = bed_factory()
    response = client.post("/students/999/checkin", json={"bedId": bed_id}, headers=manager_headers)
    assert response.status_code == 404
    assert response.json() == {"error": "student_not_found"}


def test_checkin_bad_student_id(client, manager_headers):
    response = client.post("/students/abc/checkin", json={"bedId": 1}, headers=manager_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


def test_checkin_moves_student(client, make_student, bed_factory, manager_headers):
    """Повторное заселение переносит студента и освобождает старую кровать"""
    student = make_student("S-1")
    other = make_student("S-2")
    old_bed = bed_factory(number="101")
    new_bed = bed_factory(number="102")

    client.post(f"/students/{student['id']}/checkin", json={"bedId": old_bed}, headers=manager_headers)
    moved = client.post(f"/students/{student['id']}/checkin", json={"bedId": new_bed}, headers=manager_headers)
    assert moved.json()["bedId"] == new_bed

    response = client.post(f"/students/{other['id']}/checkin", json={"bedId": old_bed}, headers=manager_headers)
    assert response.status_code == 200


def test_checkin_then_checkout_repeatable(client, make_student, bed_factory, manager_headers):
    """Заселение и выселение можно повторять, bedId возвращается в null"""
    student = make_student("S-1")
    bed_id = bed_factory()
    for _ in range(2):
        checkin = client.post(f"/students/{student['id']}/checkin", json={"bedId": bed_id}, headers=manager_headers)
        assert checkin.status_code == 200
        checkout = client.post(f"/students/{student['id']}/checkout", headers=manager_headers)
        assert checkout.status_code == 200
        assert checkout.json()["bedId"] is None
        assert checkout.json()["bed"] is None
        assert checkout.json()["user"]["id"] == student["userId"]


def test_checkout_without_bed(client, make_student, manager_headers):
    """Выселение без кровати безусловно успешно"""
    student = make_student("S-1")
    response = client.post(f"/students/{student['id']}/checkout", headers=manager_headers)
    assert response.status_code == 200
    assert response.json()["bedId"] is None


def test_checkout_unknown_student(client, manager_headers):
    response = client.post("/students/999/checkout", headers=manager_headers)
    assert response.status_code == 404
    assert response.json() == {"error": "student_not_found"}


def test_list_students(client, make_student, bed_factory, admin_headers):
    first = make_student("S-1", name="Ann")
    make_student("S-2", name="Bob")
    bed_id = bed_factory(building="Block C")
    client.post(f"/students/{first['id']}/checkin", json={"bedId": bed_id}, headers=admin_headers)

    response = client.get("/students", headers=admin_headers)
    assert response.status_code == 200
    data = response.json()
    assert [s["user"]["name"] for s in data] == ["Ann", "Bob"]
    assert data[0]["bed"]["room"]["building"]["name"] == "Block C"
    assert data[1]["bed"] is None


def test_concurrent_checkins_single_winner(client, make_student, bed_factory):
    """Две одновременные попытки занять кровать: ровно одна успешна"""
    first = make_student("S-1")
    second = make_student("S-2")
    bed_id = bed_factory()

    barrier = threading.Barrier(2)
    results = []
    lock = threading.Lock()

    def attempt(student_id):
        session = SessionLocal()
        try:
            barrier.wait()
            CheckIn(StudentRepository(session)).execute(student_id, bed_id)
            outcome = "ok"
        except Conflict as e:
            outcome = e.code
        finally:
            session.close()
        with lock:
            results.append(outcome)

    threads = [threading.Thread(target=attempt, args=(s["id"],)) for s in (first, second)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    assert sorted(results) == ["bed_occupied", "ok"]

    session = SessionLocal()
    try:
        holders = session.query(StudentORM).filter(StudentORM.bed_id == bed_id).all()
        assert len(holders) == 1
    finally:
        session.close()


def test_assign_bed_loses_to_existing_holder(client, make_student, bed_factory):
    """Условный UPDATE не трогает строку, если кровать уже занята"""
    first = make_student("S-1")
    second = make_student("S-2")
    bed_id = bed_factory()

    session = SessionLocal()
    try:
        repo = StudentRepository(session)
        assert repo.assign_bed(first["id"], bed_id) is True
        # минуя быструю проверку в CheckIn
        assert repo.assign_bed(second["id"], bed_id) is False
        assert repo.bed_holder(bed_id) == first["id"]
    finally:
        session.close()


HUGE_ID = 99999999999999999999


def test_huge_student_id_rejected(client, manager_headers):
    """Id больше 2**63-1 в пути: 400 validation_error, не 500"""
    for action in ("checkin", "checkout"):
        response = client.post(f"/students/{HUGE_ID}/{action}", json={"bedId": 1}, headers=manager_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"


def test_huge_body_ids_rejected(client, make_student, manager_headers):
    student = make_student("S-1")
    response = client.post(f"/students/{student['id']}/checkin", json={"bedId": HUGE_ID}, headers=manager_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"

    response = client.post("/students", json={"userId": HUGE_ID, "studentNo": "S-2"}, headers=manager_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"
