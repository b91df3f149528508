import pytest
from fastapi.testclient import TestClient

from main import app
from tryout_app.presentation.dependencies import get_db

from tests.factories import question_data, tryout_input


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def as_user(user_id):
    return {"X-User-Id": user_id}


def create_tryout(client, user_id="guru1", **overrides):
    response = client.post("/tryouts", json=tryout_input(**overrides), headers=as_user(user_id))
    assert response.status_code == 201, response.text
    return response.json()["data"]


def create_question(client, tryout_id, question_type="multiple_choice", user_id="guru1"):
    response = client.post(
        f"/tryouts/{tryout_id}/questions",
        json={"question_type": question_type, "question_data": question_data(question_type)},
        headers=as_user(user_id),
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_root(client):
    assert client.get("/").status_code == 200


def test_create_tryout_returns_envelope(client):
    response = client.post("/tryouts", json=tryout_input(is_global=True), headers=as_user("guru1"))

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["error"] is None
    assert "status_code" not in body
    assert body["data"]["id"].startswith("tryout-")
    assert body["data"]["is_global"] is False
    assert body["data"]["school_id"] == "school-1"


def test_identity_is_required(client):
    assert client.get("/tryouts").status_code == 401
    response = client.get("/tryouts", headers=as_user("nobody"))
    assert response.status_code == 401
    assert response.json()["detail"] == "Profile not found"


def test_student_cannot_create_tryout(client):
    response = client.post("/tryouts", json=tryout_input(), headers=as_user("siswa1"))
    assert response.status_code == 403
    assert response.json()["detail"] == "Students cannot create tryouts"


def test_service_validation_maps_to_422(client):
    response = client.post(
        "/tryouts",
        json=tryout_input(is_global=True, school_id="school-1"),
        headers=as_user("admin"),
    )
    assert response.status_code == 422
    assert response.json()["detail"].startswith("school_id")


def test_list_and_get_tryout(client):
    tryout = create_tryout(client, title="Tryout Biologi")
    create_question(client, tryout["id"])
    create_question(client, tryout["id"], "essay")

    listed = client.get("/tryouts", params={"search": "biologi"}, headers=as_user("guru1")).json()["data"]
    assert [t["id"] for t in listed] == [tryout["id"]]
    assert listed[0]["total_questions"] == 2
    assert listed[0]["creator"]["name"] == "Guru Satu"
    assert listed[0]["school"]["name"] == "SMA 1"

    assert client.get("/tryouts", headers=as_user("guru2")).json()["data"] == []

    detail = client.get(f"/tryouts/{tryout['id']}", headers=as_user("siswa2")).json()["data"]
    assert [q["question_number"] for q in detail["questions"]] == [1, 2]
    assert detail["questions"][1]["requires_manual_grading"] is True

    assert client.get("/tryouts/tryout-missing", headers=as_user("guru1")).status_code == 404


def test_update_delete_and_duplicate_tryout(client):
    tryout = create_tryout(client)

    denied = client.patch(f"/tryouts/{tryout['id']}", json={"title": "Bukan milikku"}, headers=as_user("guru2"))
    assert denied.status_code == 403
    assert denied.json()["detail"] == "You can only edit your own tryouts"

    updated = client.patch(f"/tryouts/{tryout['id']}", json={"title": "Tryout Baru"}, headers=as_user("guru1"))
    assert updated.json()["data"]["title"] == "Tryout Baru"

    copy = client.post(f"/tryouts/{tryout['id']}/duplicate", headers=as_user("guru2"))
    assert copy.status_code == 201
    assert copy.json()["data"]["title"] == "Tryout Baru (Copy)"
    assert copy.json()["message"] == "Tryout duplicated successfully"

    deleted = client.delete(f"/tryouts/{tryout['id']}", headers=as_user("guru1"))
    assert deleted.json()["message"] == "Tryout deleted successfully"
    assert client.get(f"/tryouts/{tryout['id']}", headers=as_user("guru1")).status_code == 404


def test_question_lifecycle(client):
    tryout = create_tryout(client)
    q1, q2, q3 = (create_question(client, tryout["id"]) for _ in range(3))
    assert [q1["question_number"], q2["question_number"], q3["question_number"]] == [1, 2, 3]

    assert client.delete(f"/questions/{q2['id']}", headers=as_user("guru1")).status_code == 200

    reordered = client.put(
        f"/tryouts/{tryout['id']}/questions/order",
        json=[{"id": q1["id"], "question_number": 2}, {"id": q3["id"], "question_number": 1}],
        headers=as_user("guru1"),
    )
    assert reordered.status_code == 200, reordered.text

    questions = client.get(f"/tryouts/{tryout['id']}/questions", headers=as_user("siswa1")).json()["data"]
    assert [(q["id"], q["question_number"]) for q in questions] == [(q3["id"], 1), (q1["id"], 2)]

    patched = client.patch(f"/questions/{q1['id']}", json={"score": 25}, headers=as_user("guru1"))
    assert patched.json()["data"]["score"] == 25

    copy = client.post(f"/questions/{q1['id']}/duplicate", headers=as_user("admin"))
    assert copy.status_code == 201
    assert copy.json()["data"]["question_number"] == 3

    assert client.get(f"/questions/{q1['id']}", headers=as_user("siswa1")).json()["data"]["score"] == 25


def test_question_errors(client):
    tryout = create_tryout(client)

    invalid = client.post(
        f"/tryouts/{tryout['id']}/questions",
        json={"question_type": "ordering", "question_data": question_data("essay")},
        headers=as_user("guru1"),
    )
    assert invalid.status_code == 422

    foreign = client.post(
        f"/tryouts/{tryout['id']}/questions",
        json={"question_type": "essay", "question_data": question_data("essay")},
        headers=as_user("guru3"),
    )
    assert foreign.status_code == 403
    assert foreign.json()["detail"] == "No permission to add questions to this tryout"

    assert client.get("/questions/missing", headers=as_user("guru1")).status_code == 404


def test_bulk_upload_endpoint(client):
    tryout = create_tryout(client)
    sheet = (
        "question_text,option_a,option_b,correct_answer\n"
        "1 + 1 = ?,1,2,B\n"
        "2 + 2 = ?,4,5,A\n"
    )

    response = client.post(
        f"/tryouts/{tryout['id']}/questions/bulk-upload",
        files={"file": ("questions.csv", sheet.encode("utf-8"), "text/csv")},
        headers=as_user("guru1"),
    )

    assert response.status_code == 200, response.text
    assert response.json()["data"]["inserted"] == 2
    questions = client.get(f"/tryouts/{tryout['id']}/questions", headers=as_user("guru1")).json()["data"]
    assert len(questions) == 2
