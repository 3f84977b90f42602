"""
Tests for magazine API endpoints.

These test the HTTP layer: status codes, response format,
and error payloads. Business logic is tested in
tests/services/test_magazine_service.py.
"""

from fastapi.testclient import TestClient

from explosives_inventory.main import app


def create_magazine(client, code="MAG-001", max_kg="1000"):
    return client.post("/magazines", json={
        "code": code,
        "name": f"Magazine {code}",
        "location": "North Quarry",
        "max_net_explosive_weight_kg": max_kg,
    })


def create_product(client, un_number="UN 0081", group="D", weight="1"):
    return client.post("/products", json={
        "name": "Dynamite",
        "un_number": un_number,
        "compatibility_group": group,
        "unit": "each",
        "net_explosive_weight_per_unit_kg": weight,
    })


class TestCreateMagazine:

    def test_create_returns_201(self, client):
        response = create_magazine(client)
        assert response.status_code == 201

        data = response.json()
        assert data["code"] == "MAG-001"
        assert data["is_active"] is True

    def test_duplicate_code_returns_409(self, client):
        create_magazine(client)
        response = create_magazine(client)

        assert response.status_code == 409
        detail = response.json()["detail"]
        assert detail["error"] == "DuplicateKey"
        assert detail["field"] == "code"

    def test_missing_user_header_returns_401(self, client):
        anonymous = TestClient(app)
        response = anonymous.post("/magazines", json={
            "code": "MAG-009",
            "name": "Magazine",
            "location": "Yard",
            "max_net_explosive_weight_kg": "10",
        })
        assert response.status_code == 401

    def test_non_positive_capacity_returns_422(self, client):
        response = create_magazine(client, max_kg="0")
        assert response.status_code == 422


class TestMagazineLifecycle:

    def test_get_unknown_returns_404(self, client):
        response = client.get("/magazines/404")

        assert response.status_code == 404
        assert response.json()["detail"]["entity"] == "Magazine"

    def test_patch_updates_fields(self, client):
        magazine_id = create_magazine(client).json()["id"]

        response = client.patch(
            f"/magazines/{magazine_id}", json={"name": "Renamed"}
        )
        assert response.status_code == 200
        assert response.json()["name"] == "Renamed"

    def test_archive_hides_from_list(self, client):
        magazine_id = create_magazine(client).json()["id"]

        response = client.post(f"/magazines/{magazine_id}/archive")
        assert response.json()["is_active"] is False
        assert client.get("/magazines").json() == []
        assert len(client.get("/magazines?include_archived=true").json()) == 1

    def test_delete_unused_returns_204(self, client):
        magazine_id = create_magazine(client).json()["id"]

        assert client.delete(f"/magazines/{magazine_id}").status_code == 204
        assert client.get(f"/magazines/{magazine_id}").status_code == 404

    def test_delete_with_history_returns_409(self, client):
        magazine_id = create_magazine(client).json()["id"]
        product_id = create_product(client).json()["id"]
        client.post("/transactions/receipt", json={
            "magazine_to_id": magazine_id,
            "product_id": product_id,
            "quantity": "5",
            "reference_number": "PO-1",
            "authorization_number": "AUTH-001",
        })

        response = client.delete(f"/magazines/{magazine_id}")
        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "ReferentialIntegrityError"


class TestCapacityEndpoints:

    def test_capacity_status(self, client):
        magazine_id = create_magazine(client, max_kg="200").json()["id"]
        product_id = create_product(client, weight="2").json()["id"]
        client.post("/transactions/receipt", json={
            "magazine_to_id": magazine_id,
            "product_id": product_id,
            "quantity": "25",
            "reference_number": "PO-1",
            "authorization_number": "AUTH-001",
        })

        data = client.get(f"/magazines/{magazine_id}/capacity").json()
        assert float(data["current_weight_kg"]) == 50
        assert float(data["available_kg"]) == 150
        assert float(data["utilization_percent"]) == 25

    def test_validate_reports_overflow_without_error(self, client):
        magazine_id = create_magazine(client, max_kg="10").json()["id"]
        product_id = create_product(client, weight="1").json()["id"]

        response = client.post(
            f"/magazines/{magazine_id}/capacity/validate",
            json={"product_id": product_id, "quantity": "11"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["can_accommodate"] is False
        assert float(data["new_total_weight_kg"]) == 11

    def test_validate_fits(self, client):
        magazine_id = create_magazine(client, max_kg="10").json()["id"]
        product_id = create_product(client, weight="1").json()["id"]

        response = client.post(
            f"/magazines/{magazine_id}/capacity/validate",
            json={"product_id": product_id, "quantity": "10"},
        )
        assert response.json()["can_accommodate"] is True
