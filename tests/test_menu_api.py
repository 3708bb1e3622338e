import pytest

from models.menu import MenuCategory, MenuItem


@pytest.fixture
def mains(session):
    category = MenuCategory(name="Mains", display_order=1)
    session.add(category)
    session.commit()
    session.refresh(category)
    return category


def item_payload(category_id, **overrides):
    payload = {
        "category_id": category_id,
        "name": "Wiener Schnitzel",
        "description": "Veal, potato salad, lemon",
        "price": 24.5,
        "allergens": ["GLUTEN", "EGGS"],
    }
    payload.update(overrides)
    return payload


def test_manager_creates_menu_item(client, manager_headers, manager_user, mains):
    response = client.post("/api/menu/items", json=item_payload(mains.id), headers=manager_headers)

    assert response.status_code == 201, response.text
    body = response.json()
    assert body["allergens"] == ["GLUTEN", "EGGS"]
    assert body["created_by_id"] == manager_user.id


def test_staff_cannot_create_menu_item(client, staff_headers, mains):
    response = client.post("/api/menu/items", json=item_payload(mains.id), headers=staff_headers)
    assert response.status_code == 403


def test_menu_item_validation(client, manager_headers, mains):
    response = client.post(
        "/api/menu/items", json=item_payload(mains.id, price=0, allergens=["PINEAPPLE"]), headers=manager_headers
    )

    assert response.status_code == 400
    assert {d["field"] for d in response.json()["details"]} == {"price", "allergens.0"}


def test_menu_item_in_unknown_category_is_404(client, manager_headers):
    response = client.post("/api/menu/items", json=item_payload(999), headers=manager_headers)
    assert response.status_code == 404


def test_duplicate_item_name_in_category_is_409(client, manager_headers, mains):
    client.post("/api/menu/items", json=item_payload(mains.id), headers=manager_headers)
    response = client.post("/api/menu/items", json=item_payload(mains.id), headers=manager_headers)
    assert response.status_code == 409


def test_update_menu_item(client, manager_headers, mains):
    created = client.post("/api/menu/items", json=item_payload(mains.id), headers=manager_headers).json()

    response = client.patch(
        f"/api/menu/items/{created['id']}", json={"price": 26, "allergens": []}, headers=manager_headers
    )

    assert response.status_code == 200, response.text
    assert response.json()["price"] == 26
    assert response.json()["allergens"] == []


def test_category_with_items_cannot_be_deleted(client, manager_headers, mains):
    created = client.post("/api/menu/items", json=item_payload(mains.id), headers=manager_headers).json()

    response = client.delete(f"/api/menu/categories/{mains.id}", headers=manager_headers)
    assert response.status_code == 409
    assert response.json()["details"] == {"item_count": 1}

    assert client.delete(f"/api/menu/items/{created['id']}", headers=manager_headers).status_code == 200
    assert client.delete(f"/api/menu/categories/{mains.id}", headers=manager_headers).status_code == 200


def test_categories_list_counts_items(client, manager_headers, staff_headers, mains):
    client.post("/api/menu/items", json=item_payload(mains.id), headers=manager_headers)

    response = client.post("/api/menu/categories", json={"name": "Desserts", "display_order": 2}, headers=manager_headers)
    assert response.status_code == 201, response.text

    response = client.get("/api/menu/categories", headers=staff_headers)

    assert response.status_code == 200
    assert [(c["name"], c["item_count"]) for c in response.json()] == [("Mains", 1), ("Desserts", 0)]


def test_duplicate_category_name_is_409(client, manager_headers, mains):
    response = client.post("/api/menu/categories", json={"name": "Mains"}, headers=manager_headers)
    assert response.status_code == 409


def test_public_menu_excludes_allergens(client, session, mains):
    session.add(MenuItem(category_id=mains.id, name="Schnitzel", description="Veal", price=24.5, allergens=["GLUTEN"]))
    session.add(MenuItem(category_id=mains.id, name="Steak", description="Beef", price=32.0, allergens=[]))
    session.add(MenuItem(category_id=mains.id, name="Goulash", description="Beef stew", price=18.0, is_available=False))
    session.commit()

    response = client.get("/api/menu", params={"exclude_allergens": ["GLUTEN"]})

    assert response.status_code == 200, response.text
    body = response.json()
    assert [i["name"] for i in body["categories"][0]["items"]] == ["Steak"]
    assert body["summary"]["total_items"] == 1
    assert body["summary"]["price_range"] == {"min": 32.0, "max": 32.0, "average": 32.0}


def test_public_menu_with_unknown_allergen_is_400(client):
    assert client.get("/api/menu", params={"exclude_allergens": ["PINEAPPLE"]}).status_code == 400
