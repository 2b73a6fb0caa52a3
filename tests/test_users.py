import asyncio

from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from bistro.mock_database import MockCollection
from bistro.models import Collection


def test_signup_creates_user(client, count):
    response = client.post("/users", json={"email": "new@bistro.com", "name": "New Guest"})

    assert response.status_code == 200
    body = response.json()
    assert body["acknowledged"] is True
    assert ObjectId.is_valid(body["insertedId"])
    assert count(Collection.USERS, {"email": "new@bistro.com"}) == 1


def test_signup_twice_is_a_noop(client, count):
    client.post("/users", json={"email": "new@bistro.com", "name": "New Guest"})

    response = client.post("/users", json={"email": "new@bistro.com", "name": "Renamed"})

    assert response.status_code == 200
    assert response.json() == {
        "acknowledged": False,
        "insertedId": None,
        "message": "user already exist",
    }
    assert count(Collection.USERS, {"email": "new@bistro.com"}) == 1


def test_signup_ignores_role(client, db):
    client.post("/users", json={"email": "sneaky@bistro.com", "role": "admin"})

    user = asyncio.run(db[Collection.USERS.value].find_one({"email": "sneaky@bistro.com"}))
    assert "role" not in user


def test_signup_losing_race_is_a_noop(client, monkeypatch):
    async def duplicate(self, document, **kwargs):
        raise DuplicateKeyError("E11000 duplicate key error collection: users", 11000)

    monkeypatch.setattr(MockCollection, "insert_one", duplicate)

    response = client.post("/users", json={"email": "racer@bistro.com"})

    assert response.status_code == 200
    assert response.json()["message"] == "user already exist"


def test_signup_rejects_invalid_email(client):
    response = client.post("/users", json={"email": "not-an-email"})

    assert response.status_code == 422


def test_admin_check(client, admin, customer):
    _, admin_headers = admin
    _, customer_headers = customer

    assert client.get("/users/admin/boss@bistro.com", headers=admin_headers).json() == {"admin": True}
    assert client.get("/users/admin/guest@bistro.com", headers=customer_headers).json() == {"admin": False}


def test_admin_check_of_another_user_is_forbidden(client, admin, customer):
    _, customer_headers = customer

    response = client.get("/users/admin/boss@bistro.com", headers=customer_headers)

    assert response.status_code == 403
    assert response.json() == {"message": "forbidden access"}


def test_admin_check_requires_token(client):
    response = client.get("/users/admin/guest@bistro.com")

    assert response.status_code == 401


def test_list_users(client, admin, customer):
    _, headers = admin

    response = client.get("/users", headers=headers)

    assert response.status_code == 200
    emails = {user["email"] for user in response.json()}
    assert emails == {"boss@bistro.com", "guest@bistro.com"}
    assert all(isinstance(user["_id"], str) for user in response.json())


def test_promote_user(client, admin, customer):
    _, admin_headers = admin
    customer_id, customer_headers = customer

    response = client.patch(f"/users/admin/{customer_id}", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["matchedCount"] == 1
    assert response.json()["modifiedCount"] == 1
    assert client.get("/users/admin/guest@bistro.com", headers=customer_headers).json() == {"admin": True}


def test_promote_requires_admin(client, customer):
    customer_id, headers = customer

    response = client.patch(f"/users/admin/{customer_id}", headers=headers)

    assert response.status_code == 403


def test_promote_with_malformed_id(client, admin):
    _, headers = admin

    response = client.patch("/users/admin/not-an-id", headers=headers)

    assert response.status_code == 400
    assert "message" in response.json()


def test_delete_user(client, admin, customer, count):
    _, headers = admin
    customer_id, _ = customer

    response = client.delete(f"/users/{customer_id}", headers=headers)

    assert response.status_code == 200
    assert response.json() == {"acknowledged": True, "deletedCount": 1}
    assert count(Collection.USERS) == 1


def test_delete_unknown_user(client, admin):
    _, headers = admin

    response = client.delete(f"/users/{ObjectId()}", headers=headers)

    assert response.json()["deletedCount"] == 0


def test_delete_user_requires_admin(client, customer, count):
    customer_id, headers = customer

    response = client.delete(f"/users/{customer_id}", headers=headers)

    assert response.status_code == 403
    assert count(Collection.USERS) == 1


def test_mixed_case_email_keeps_its_identity(client, count):
    client.post("/users", json={"email": "Guest@Bistro.COM", "name": "Guest"})
    token = client.post("/jwt", json={"email": "Guest@Bistro.COM"}).json()["token"]

    response = client.get("/users/admin/Guest@Bistro.COM", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    assert response.json() == {"admin": False}
    assert count(Collection.USERS, {"email": "Guest@Bistro.COM"}) == 1
