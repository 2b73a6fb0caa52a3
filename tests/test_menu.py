import asyncio

import pytest
from bson import ObjectId

from bistro.models import Collection, to_object_id

DUCK = {
    "name": "Roast Duck Breast",
    "recipe": "Duck breast, cherry jus, potato gratin",
    "image": "https://cdn.bistro.com/duck.jpg",
    "category": "popular",
    "price": 14.5,
}


@pytest.fixture
def duck_id(insert):
    return insert(Collection.MENUS, dict(DUCK))


@pytest.fixture
def find_menu(db):
    def _find(menu_id: str):
        return asyncio.run(db[Collection.MENUS.value].find_one({"_id": to_object_id(menu_id)}))
    return _find


def test_list_menu(client, duck_id, insert):
    insert(Collection.MENUS, {"name": "Caesar Salad", "recipe": "Romaine", "category": "salad", "price": 8.0})

    response = client.get("/menus")

    assert response.status_code == 200
    items = response.json()
    assert len(items) == 2
    assert {"_id": duck_id, **DUCK} in items


def test_list_empty_menu(client):
    assert client.get("/menus").json() == []


def test_get_menu_item(client, duck_id):
    response = client.get(f"/menu/{duck_id}")

    assert response.status_code == 200
    assert response.json() == {"_id": duck_id, **DUCK}


def test_get_unknown_menu_item(client):
    response = client.get(f"/menu/{ObjectId()}")

    assert response.status_code == 404
    assert "message" in response.json()


def test_get_menu_item_with_malformed_id(client):
    response = client.get("/menu/42")

    assert response.status_code == 400


def test_create_menu_item(client, admin, find_menu):
    _, headers = admin

    response = client.post("/menu", json=DUCK, headers=headers)

    assert response.status_code == 200
    body = response.json()
    assert body["acknowledged"] is True
    stored = find_menu(body["insertedId"])
    assert stored["name"] == DUCK["name"]
    assert stored["price"] == DUCK["price"]


def test_create_menu_item_requires_admin(client, customer, count):
    _, headers = customer

    response = client.post("/menu", json=DUCK, headers=headers)

    assert response.status_code == 403
    assert count(Collection.MENUS) == 0


def test_create_menu_item_requires_token(client):
    response = client.post("/menu", json=DUCK)

    assert response.status_code == 401


@pytest.mark.parametrize(
    "overrides",
    [
        {"price": -1},
        {"name": ""},
        {"category": None},
    ],
)
def test_create_menu_item_validation(client, admin, overrides):
    _, headers = admin

    response = client.post("/menu", json={**DUCK, **overrides}, headers=headers)

    assert response.status_code == 422


def test_partial_update_keeps_other_fields(client, duck_id, find_menu):
    response = client.patch(f"/menu/{duck_id}", json={"price": 16.0})

    assert response.status_code == 200
    assert response.json()["modifiedCount"] == 1
    stored = find_menu(duck_id)
    assert stored["price"] == 16.0
    assert stored["name"] == DUCK["name"]
    assert stored["recipe"] == DUCK["recipe"]


def test_empty_update_is_rejected(client, duck_id):
    response = client.patch(f"/menu/{duck_id}", json={})

    assert response.status_code == 422


def test_update_unknown_menu_item(client):
    response = client.patch(f"/menu/{ObjectId()}", json={"price": 3.0})

    assert response.status_code == 200
    assert response.json()["matchedCount"] == 0


def test_delete_menu_item(client, admin, duck_id, count):
    _, headers = admin

    response = client.delete(f"/menu/{duck_id}", headers=headers)

    assert response.status_code == 200
    assert response.json()["deletedCount"] == 1
    assert count(Collection.MENUS) == 0


def test_delete_menu_item_requires_admin(client, customer, duck_id, count):
    _, headers = customer

    response = client.delete(f"/menu/{duck_id}", headers=headers)

    assert response.status_code == 403
    assert count(Collection.MENUS) == 1
