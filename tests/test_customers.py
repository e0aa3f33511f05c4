"""
Tests for the customer directory endpoints.

These tests verify:
  - Create returns 201 with the customer and its products in camelCase
  - Duplicate national IDs and unknown product codes are rejected (400)
    without persisting anything
  - Field validation rejects bad bodies with 400 and per-field errors
  - Get / update phone / delete answer 404 for unknown national IDs
  - Repeated reads without writes are identical
  - Product search returns exactly the holders of a product
  - Every write is committed before its success response is returned
"""

import pytest

from cliente_api.database import get_db
from cliente_api.main import app
from cliente_api.services import auth_service, customer_service


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------

class TestCreateCustomer:
    """Tests for POST /api/clientes."""

    async def test_create_success(self, client, admin_headers, customer_payload):
        response = await client.post(
            "/api/clientes",
            json=customer_payload("12345678", products=["CA"]),
            headers=admin_headers,
        )
        assert response.status_code == 201
        data = response.json()
        assert data["nationalId"] == "12345678"
        assert data["firstName"] == "Ana"
        assert data["lastName"] == "García"
        assert data["postalCode"] == "C1043"
        assert data["number"] == 1234
        assert data["products"] == [
            {"code": "CA", "description": "Caja de Ahorro en Dólares"}
        ]
        assert "id" in data

    async def test_optional_fields_may_be_omitted(self, client, admin_headers):
        response = await client.post(
            "/api/clientes",
            json={
                "nationalId": "1234567",
                "firstName": "Juan",
                "lastName": "Pérez",
                "productCodes": ["TC"],
            },
            headers=admin_headers,
        )
        assert response.status_code == 201
        data = response.json()
        assert data["street"] is None
        assert data["mobile"] is None

    async def test_duplicate_national_id(self, client, admin_headers, create_customer, customer_payload):
        await create_customer("12345678")

        response = await client.post(
            "/api/clientes",
            json=customer_payload("12345678", firstName="Otra", products=["TC"]),
            headers=admin_headers,
        )
        assert response.status_code == 400
        data = response.json()
        assert data["status"] == 400
        assert "already exists" in data["message"]
        assert data["path"] == "/api/clientes"

        # The original record is untouched
        original = await client.get("/api/clientes/12345678", headers=admin_headers)
        assert original.json()["firstName"] == "Ana"

    async def test_unknown_product_code(self, client, admin_headers, customer_payload):
        response = await client.post(
            "/api/clientes",
            json=customer_payload("12345678", products=["CA", "NOEXISTE"]),
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert "Banking product" in response.json()["message"]
        assert "NOEXISTE" in response.json()["message"]

        missing = await client.get("/api/clientes/12345678", headers=admin_headers)
        assert missing.status_code == 404

    @pytest.mark.parametrize(
        "overrides, field",
        [
            ({"nationalId": "123"}, "nationalId"),
            ({"nationalId": "123456789"}, "nationalId"),
            ({"nationalId": "12a45678"}, "nationalId"),
            ({"firstName": "   "}, "firstName"),
            ({"lastName": ""}, "lastName"),
            ({"mobile": "phone#1"}, "mobile"),
            ({"productCodes": []}, "productCodes"),
            ({"number": "many"}, "number"),
        ],
    )
    async def test_validation_errors(
        self, client, admin_headers, customer_payload, overrides, field
    ):
        response = await client.post(
            "/api/clientes",
            json=customer_payload("12345678", **overrides),
            headers=admin_headers,
        )
        assert response.status_code == 400
        data = response.json()
        assert field in data["errors"]
        assert data["message"].startswith("Validation error")

    async def test_validation_rejects_before_business_logic(
        self, client, admin_headers, customer_payload
    ):
        """A bad body with an unknown product still reports the field error."""
        response = await client.post(
            "/api/clientes",
            json=customer_payload("1", products=["NOEXISTE"]),
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert "nationalId" in response.json()["errors"]


# ---------------------------------------------------------------------------
# Read
# ---------------------------------------------------------------------------

class TestReadCustomers:
    """Tests for GET /api/clientes and GET /api/clientes/{nationalId}."""

    async def test_list_empty(self, client, user_headers):
        response = await client.get("/api/clientes", headers=user_headers)
        assert response.status_code == 200
        assert response.json() == []

    async def test_list_returns_created(self, client, create_customer, user_headers):
        await create_customer("11111111")
        await create_customer("22222222", products=["PZOF", "CHEQ"])

        response = await client.get("/api/clientes", headers=user_headers)
        ids = [c["nationalId"] for c in response.json()]
        assert sorted(ids) == ["11111111", "22222222"]

    async def test_get_by_national_id(self, client, create_customer, user_headers):
        created = await create_customer("12345678", products=["PZOF", "CHEQ"])

        response = await client.get("/api/clientes/12345678", headers=user_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["id"] == created["id"]
        assert [p["code"] for p in data["products"]] == ["CHEQ", "PZOF"]

    async def test_get_not_found(self, client, user_headers):
        response = await client.get("/api/clientes/00000000", headers=user_headers)
        assert response.status_code == 404
        data = response.json()
        assert data["error"] == "Not Found"
        assert "not found" in data["message"]
        assert "00000000" in data["message"]

    async def test_repeated_reads_are_identical(self, client, create_customer, user_headers):
        await create_customer("12345678", products=["TJCREDITO", "PZOF", "CA"])

        first = await client.get("/api/clientes/12345678", headers=user_headers)
        second = await client.get("/api/clientes/12345678", headers=user_headers)
        assert first.content == second.content

        first_list = await client.get("/api/clientes", headers=user_headers)
        second_list = await client.get("/api/clientes", headers=user_headers)
        assert first_list.content == second_list.content


# ---------------------------------------------------------------------------
# Search by product
# ---------------------------------------------------------------------------

class TestCustomersByProduct:
    """Tests for GET /api/clientes/por-producto/{code}."""

    async def test_overlapping_product_sets(self, client, create_customer, user_headers):
        await create_customer("12345678", products=["PZOF", "CHEQ"])
        await create_customer("87654321", products=["TJCREDITO", "PZOF"])

        async def holders(code):
            response = await client.get(
                f"/api/clientes/por-producto/{code}", headers=user_headers
            )
            assert response.status_code == 200
            return sorted(c["nationalId"] for c in response.json())

        assert await holders("PZOF") == ["12345678", "87654321"]
        assert await holders("CHEQ") == ["12345678"]
        assert await holders("TJCREDITO") == ["87654321"]

    async def test_no_holders_returns_empty_list(self, client, create_customer, user_headers):
        await create_customer("12345678", products=["CA"])

        for code in ("PRESTAMO", "NOEXISTE"):
            response = await client.get(
                f"/api/clientes/por-producto/{code}", headers=user_headers
            )
            assert response.status_code == 200
            assert response.json() == []


# ---------------------------------------------------------------------------
# Update phone
# ---------------------------------------------------------------------------

class TestUpdatePhone:
    """Tests for PATCH /api/clientes/{nationalId}/telefono."""

    async def test_update_phone_success(self, client, create_customer, user_headers):
        created = await create_customer("12345678")

        response = await client.patch(
            "/api/clientes/12345678/telefono",
            json={"newPhone": "9999999999"},
            headers=user_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["phone"] == "9999999999"
        assert data["mobile"] == created["mobile"]
        assert data["firstName"] == created["firstName"]
        assert data["products"] == created["products"]

        # Persisted
        fetched = await client.get("/api/clientes/12345678", headers=user_headers)
        assert fetched.json()["phone"] == "9999999999"

    async def test_update_phone_not_found(self, client, user_headers):
        response = await client.patch(
            "/api/clientes/00000000/telefono",
            json={"newPhone": "9999999999"},
            headers=user_headers,
        )
        assert response.status_code == 404

    async def test_body_national_id_must_match_path(
        self, client, create_customer, user_headers
    ):
        await create_customer("12345678")
        await create_customer("87654321")

        response = await client.patch(
            "/api/clientes/12345678/telefono",
            json={"nationalId": "87654321", "newPhone": "9999999999"},
            headers=user_headers,
        )
        assert response.status_code == 400

        # Neither customer changed
        for national_id in ("12345678", "87654321"):
            fetched = await client.get(f"/api/clientes/{national_id}", headers=user_headers)
            assert fetched.json()["phone"] == "1143210000"

    async def test_blank_phone_is_rejected(self, client, create_customer, user_headers):
        await create_customer("12345678")
        response = await client.patch(
            "/api/clientes/12345678/telefono",
            json={"newPhone": "  "},
            headers=user_headers,
        )
        assert response.status_code == 400
        assert "newPhone" in response.json()["errors"]


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------

class TestDeleteCustomer:
    """Tests for DELETE /api/clientes/{nationalId}."""

    async def test_delete_success(self, client, create_customer, admin_headers):
        await create_customer("12345678")

        response = await client.delete("/api/clientes/12345678", headers=admin_headers)
        assert response.status_code == 200
        assert response.json() == {
            "message": "Customer deleted successfully",
            "nationalId": "12345678",
        }

        gone = await client.get("/api/clientes/12345678", headers=admin_headers)
        assert gone.status_code == 404

    async def test_delete_not_found(self, client, admin_headers):
        response = await client.delete("/api/clientes/00000000", headers=admin_headers)
        assert response.status_code == 404

    async def test_delete_twice(self, client, create_customer, admin_headers):
        await create_customer("12345678")
        first = await client.delete("/api/clientes/12345678", headers=admin_headers)
        second = await client.delete("/api/clientes/12345678", headers=admin_headers)
        assert first.status_code == 200
        assert second.status_code == 404

    async def test_national_id_reusable_after_delete(
        self, client, create_customer, admin_headers
    ):
        await create_customer("12345678")
        await client.delete("/api/clientes/12345678", headers=admin_headers)

        recreated = await create_customer("12345678", products=["TC"])
        assert [p["code"] for p in recreated["products"]] == ["TC"]


# ---------------------------------------------------------------------------
# Durability at response time
# ---------------------------------------------------------------------------

@pytest.fixture
def session_discarded_after_response(client, session_factory):
    """
    Replace get_db with a session that is rolled back, never committed, once
    the route returns. Whatever a 2xx response reports must already be
    committed by the route itself.
    """

    async def get_db_without_final_commit():
        async with session_factory() as session:
            try:
                yield session
            finally:
                await session.rollback()

    app.dependency_overrides[get_db] = get_db_without_final_commit


class TestWritesCommitBeforeResponding:

    async def test_create_is_committed(
        self, client, admin_headers, customer_payload,
        session_discarded_after_response, session_factory,
    ):
        response = await client.post(
            "/api/clientes", json=customer_payload("12345678"), headers=admin_headers
        )
        assert response.status_code == 201

        async with session_factory() as session:
            assert await customer_service.get_customer(session, "12345678") is not None

    async def test_batch_create_is_committed(
        self, client, admin_headers, customer_payload,
        session_discarded_after_response, session_factory,
    ):
        response = await client.post(
            "/api/clientes/batch",
            json=[customer_payload("11111111"), customer_payload("22222222")],
            headers=admin_headers,
        )
        assert response.status_code == 201

        async with session_factory() as session:
            customers = await customer_service.get_customers(session)
            assert {c.national_id for c in customers} == {"11111111", "22222222"}

    async def test_phone_update_is_committed(
        self, client, create_customer, user_headers,
        session_discarded_after_response, session_factory,
    ):
        await create_customer("12345678")

        response = await client.patch(
            "/api/clientes/12345678/telefono",
            json={"newPhone": "9999999999"},
            headers=user_headers,
        )
        assert response.status_code == 200

        async with session_factory() as session:
            customer = await customer_service.get_customer(session, "12345678")
            assert customer.phone == "9999999999"

    async def test_delete_is_committed(
        self, client, create_customer, admin_headers,
        session_discarded_after_response, session_factory,
    ):
        await create_customer("12345678")

        response = await client.delete("/api/clientes/12345678", headers=admin_headers)
        assert response.status_code == 200

        async with session_factory() as session:
            assert await customer_service.get_customer(session, "12345678") is None

    async def test_signup_is_committed(
        self, client, session_discarded_after_response, session_factory
    ):
        response = await client.post(
            "/api/auth/signup", json={"username": "durable", "password": "secret123"}
        )
        assert response.status_code == 200

        async with session_factory() as session:
            assert await auth_service.get_user_by_username(session, "durable") is not None
