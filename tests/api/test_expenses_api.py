"""
Tests for expense API endpoints.

These test the HTTP layer: status codes, response format
and error handling. Split parsing is tested in
tests/engine/test_split_parser.py.
"""


def post_expense(client, **overrides):
    body = {
        "group_id": "trip-crew",
        "amount": "100.00",
        "description": "Dinner",
        "paid_by": "alice",
        "split_tokens": ["@alice", "@bob", "@carol"],
    }
    body.update(overrides)
    return client.post("/expenses", json=body)


class TestCreateExpense:

    def test_create_returns_201(self, client):
        response = post_expense(client)
        assert response.status_code == 201

    def test_create_returns_splits(self, client):
        data = post_expense(client).json()
        assert data["paid_by"] == "alice"
        assert data["deleted"] is False
        amounts = {s["user_id"]: s["amount"] for s in data["splits"]}
        assert set(amounts) == {"alice", "bob", "carol"}
        assert float(amounts["alice"]) == 33.34
        assert float(amounts["bob"]) == 33.33

    def test_payer_override(self, client):
        data = post_expense(
            client, split_tokens=["paid:@mike", "@alice", "@bob"]
        ).json()
        assert data["paid_by"] == "mike"

    def test_bad_percentages_return_400(self, client):
        response = post_expense(
            client, split_tokens=["@john=60%", "@sarah=60%"]
        )
        assert response.status_code == 400
        assert "100%" in response.json()["detail"]

    def test_bad_percentages_save_nothing(self, client):
        post_expense(client, split_tokens=["@john=60%", "@sarah=60%"])
        response = client.get("/expenses", params={"group_id": "trip-crew"})
        assert response.json() == []

    def test_invalid_token_returns_400(self, client):
        response = post_expense(client, split_tokens=["@bob=abc"])
        assert response.status_code == 400

    def test_oversized_token_returns_400(self, client):
        response = post_expense(client, split_tokens=["@b=1e999998", "@c"])
        assert response.status_code == 400
        assert "too large" in response.json()["detail"]

    def test_payer_joins_plain_mention(self, client):
        data = post_expense(client, amount="30.00", split_tokens=["@bob"]).json()
        amounts = {s["user_id"]: float(s["amount"]) for s in data["splits"]}
        assert amounts == {"bob": 15.0, "alice": 15.0}

    def test_no_participants_returns_400(self, client):
        response = post_expense(client, split_tokens=[])
        assert response.status_code == 400

    def test_negative_amount_returns_422(self, client):
        response = post_expense(client, amount="-5.00")
        assert response.status_code == 422

    def test_lowercase_currency_returns_422(self, client):
        response = post_expense(client, currency="usd")
        assert response.status_code == 422

    def test_blank_description_returns_422(self, client):
        response = post_expense(client, description="   ")
        assert response.status_code == 422


class TestReadExpenses:

    def test_get_expense(self, client):
        expense_id = post_expense(client).json()["id"]
        response = client.get(f"/expenses/{expense_id}")
        assert response.status_code == 200
        assert response.json()["id"] == expense_id

    def test_get_missing_expense_returns_404(self, client):
        response = client.get("/expenses/999")
        assert response.status_code == 404

    def test_list_filters_by_group(self, client):
        post_expense(client)
        post_expense(client, group_id="flatmates")
        response = client.get("/expenses", params={"group_id": "flatmates"})
        data = response.json()
        assert len(data) == 1
        assert data[0]["group_id"] == "flatmates"

    def test_list_limit_validated(self, client):
        response = client.get("/expenses", params={"limit": 0})
        assert response.status_code == 422


class TestEditExpense:

    def test_patch_rescales_splits(self, client):
        expense_id = post_expense(client, amount="30.00", split_tokens=["@a=2", "@b=1"]).json()["id"]
        response = client.patch(f"/expenses/{expense_id}", json={"amount": "10.00"})
        assert response.status_code == 200
        amounts = {s["user_id"]: float(s["amount"]) for s in response.json()["splits"]}
        assert amounts == {"a": 6.67, "b": 3.33}

    def test_patch_text_fields(self, client):
        expense_id = post_expense(client).json()["id"]
        data = client.patch(f"/expenses/{expense_id}", json={
            "category": "Food", "note": "Team night",
        }).json()
        assert data["category"] == "Food"
        assert data["note"] == "Team night"
        assert data["description"] == "Dinner"

    def test_patch_missing_returns_404(self, client):
        response = client.patch("/expenses/999", json={"note": "x"})
        assert response.status_code == 404

    def test_patch_over_limit_returns_400(self, client):
        expense_id = post_expense(client).json()["id"]
        response = client.patch(f"/expenses/{expense_id}", json={"amount": "1000000.00"})
        assert response.status_code == 400

    def test_put_splits(self, client):
        expense_id = post_expense(client).json()["id"]
        response = client.put(f"/expenses/{expense_id}/splits", json={
            "split_tokens": ["@alice=60%", "@bob=40%"],
        })
        assert response.status_code == 200
        users = [s["user_id"] for s in response.json()["splits"]]
        assert users == ["alice", "bob"]

    def test_put_bad_splits_returns_400(self, client):
        expense_id = post_expense(client).json()["id"]
        response = client.put(f"/expenses/{expense_id}/splits", json={
            "split_tokens": ["@alice=70%", "@bob=70%"],
        })
        assert response.status_code == 400
        assert len(client.get(f"/expenses/{expense_id}").json()["splits"]) == 3


class TestDeleteExpense:

    def test_delete_returns_deleted_expense(self, client):
        expense_id = post_expense(client).json()["id"]
        response = client.delete(f"/expenses/{expense_id}")
        assert response.status_code == 200
        assert response.json()["deleted"] is True

    def test_deleted_expense_not_found(self, client):
        expense_id = post_expense(client).json()["id"]
        client.delete(f"/expenses/{expense_id}")
        response = client.get(f"/expenses/{expense_id}")
        assert response.status_code == 404

    def test_delete_twice_returns_400(self, client):
        expense_id = post_expense(client).json()["id"]
        client.delete(f"/expenses/{expense_id}")
        response = client.delete(f"/expenses/{expense_id}")
        assert response.status_code == 400

    def test_delete_missing_returns_404(self, client):
        response = client.delete("/expenses/999")
        assert response.status_code == 404
