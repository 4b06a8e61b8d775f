from bson import ObjectId

from conftest import FIVE_PRODUCTS, ai_completion, routine_json
from app.core.exceptions import ProviderUnavailable


class TestGenerate:
    async def test_generate_morning_routine(self, client, five_products, test_user, test_db):
        response = await client.post("/api/v1/routines/generate", json={"routine_type": "morning"})

        assert response.status_code == 200
        data = response.json()
        assert data["regenerated"] is True
        assert data["step_count"] == 5
        stored = test_db.routines.find_one({"_id": ObjectId(data["routine_id"])})
        assert stored["user_id"] == test_user.id
        assert stored["is_ai_generated"] is True

    async def test_generate_with_small_catalog_reports_reason(self, client, make_product, mock_ai):
        make_product("Cleanser", "cleanser")

        response = await client.post("/api/v1/routines/generate", json={"routine_type": "night"})

        assert response.status_code == 200
        assert response.json()["reason"] == "insufficient_products"
        mock_ai.complete.assert_not_called()

    async def test_invalid_routine_type(self, client):
        response = await client.post("/api/v1/routines/generate", json={"routine_type": "afternoon"})
        assert response.status_code == 422

    async def test_truncated_response_is_bad_gateway(self, client, five_products, mock_ai, test_db):
        mock_ai.complete.return_value = ai_completion(routine_json(["A"]), "truncated")

        response = await client.post("/api/v1/routines/generate", json={"routine_type": "morning"})

        assert response.status_code == 502
        assert test_db.routines.count_documents({}) == 0

    async def test_malformed_response_is_bad_gateway(self, client, five_products, mock_ai):
        mock_ai.complete.return_value = ai_completion("I'd suggest a gentle cleanser.")

        response = await client.post("/api/v1/routines/generate", json={"routine_type": "morning"})

        assert response.status_code == 502

    async def test_blocked_response_is_unprocessable(self, client, five_products, mock_ai):
        mock_ai.complete.return_value = ai_completion("", "blocked")

        response = await client.post("/api/v1/routines/generate", json={"routine_type": "morning"})

        assert response.status_code == 422

    async def test_rate_limit_is_passed_through(self, client, five_products, mock_ai):
        mock_ai.complete.side_effect = ProviderUnavailable("Rate limit exceeded", kind="rate_limit", status_code=429)

        response = await client.post("/api/v1/routines/generate", json={"routine_type": "morning"})

        assert response.status_code == 429

    async def test_provider_down_is_service_unavailable(self, client, five_products, mock_ai):
        mock_ai.complete.side_effect = ProviderUnavailable("AI provider unreachable", kind="transport")

        response = await client.post("/api/v1/routines/generate", json={"routine_type": "night"})

        assert response.status_code == 503


class TestRegenerate:
    async def test_regenerate_all(self, client, five_products, test_user, test_db):
        response = await client.post("/api/v1/routines/regenerate")

        assert response.status_code == 200
        data = response.json()
        assert data["regenerated"] is True
        assert data["count"] == 2
        assert set(data["per_type_results"]) == {"morning", "night"}
        assert test_db.routines.count_documents({"user_id": test_user.id, "is_ai_generated": True}) == 2

    async def test_regenerate_reports_per_type_failures(self, client, five_products, mock_ai):
        mock_ai.complete.side_effect = [
            ai_completion(routine_json([p[0] for p in FIVE_PRODUCTS])),
            ai_completion("", "blocked"),
        ]

        response = await client.post("/api/v1/routines/regenerate")

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 1
        assert data["per_type_results"]["night"]["error_type"] == "ContentBlocked"


class TestManualRoutines:
    async def test_create_manual_routine(self, client, five_products):
        response = await client.post("/api/v1/routines", json={
            "name": "Quick Morning",
            "type": "morning",
            "steps": [
                {"product_id": str(five_products[0]["_id"]), "instruction": "Wash"},
                {"product_id": str(five_products[4]["_id"]), "wait_time": 2},
            ],
        })

        assert response.status_code == 201
        data = response.json()
        assert data["is_ai_generated"] is False
        assert [s["step_number"] for s in data["steps"]] == [1, 2]
        assert data["steps"][1]["product_id"] == str(five_products[4]["_id"])

    async def test_cannot_reference_another_users_product(self, client, make_product, other_user, test_db):
        theirs = make_product("Their Serum", "serum", user=other_user)

        response = await client.post("/api/v1/routines", json={
            "name": "Sneaky",
            "type": "night",
            "steps": [{"product_id": str(theirs["_id"])}],
        })

        assert response.status_code == 400
        assert test_db.routines.count_documents({}) == 0

    async def test_empty_routine_rejected(self, client):
        response = await client.post("/api/v1/routines", json={"name": "Empty", "type": "night", "steps": []})
        assert response.status_code == 422

    async def test_list_get_and_delete(self, client, five_products, other_user, test_db):
        await client.post("/api/v1/routines/generate", json={"routine_type": "morning"})

        listing = await client.get("/api/v1/routines")
        assert listing.status_code == 200
        assert listing.json()["total"] == 1
        routine_id = listing.json()["routines"][0]["id"]

        fetched = await client.get(f"/api/v1/routines/{routine_id}")
        assert fetched.status_code == 200
        assert fetched.json()["name"] == "AI Generated Morning Routine"

        deleted = await client.delete(f"/api/v1/routines/{routine_id}")
        assert deleted.status_code == 200
        assert test_db.routines.count_documents({}) == 0

        missing = await client.get(f"/api/v1/routines/{routine_id}")
        assert missing.status_code == 404

    async def test_other_users_routine_forbidden(self, client, test_db, other_user):
        foreign_id = ObjectId()
        test_db.routines.insert_one({
            "_id": foreign_id,
            "user_id": other_user.id,
            "name": "Theirs",
            "type": "night",
            "steps": [{"step_number": 1, "product_id": ObjectId(), "instruction": "", "wait_time": 0}],
        })

        response = await client.get(f"/api/v1/routines/{foreign_id}")

        assert response.status_code == 403
