import os
import tempfile
import unittest
from decimal import Decimal

_handle, DB_PATH = tempfile.mkstemp(suffix=".db")
os.close(_handle)
os.environ["DATABASE_URL"] = f"sqlite:///{DB_PATH}"

from fastapi.testclient import TestClient  # noqa: E402

from finboard import main  # noqa: E402


def tearDownModule() -> None:
    main.engine.dispose()
    os.remove(DB_PATH)


class ApiTestCase(unittest.TestCase):
    def setUp(self) -> None:
        main.metadata.drop_all(main.engine)
        main.metadata.create_all(main.engine)
        self.client = TestClient(main.app)
        self.token = self.register("ana", "ana@example.com")

    def register(self, username: str, email: str, password: str = "pw-123456") -> str:
        response = self.client.post(
            "/api/users/register",
            json={"username": username, "email": email, "password": password},
        )
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()["token"]

    def auth(self, token: str | None = None) -> dict:
        return {"Authorization": f"Bearer {token or self.token}"}

    def create_category(self, name: str, type: str, token: str | None = None) -> int:
        response = self.client.post(
            "/api/categories", json={"name": name, "type": type}, headers=self.auth(token)
        )
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()["id"]

    def create_transaction(self, title, amount, type, category_id, date, token=None) -> dict:
        response = self.client.post(
            "/api/transactions",
            json={
                "title": title,
                "amount": amount,
                "type": type,
                "category_id": category_id,
                "date": date,
            },
            headers=self.auth(token),
        )
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()


class AuthTests(ApiTestCase):
    def test_health(self) -> None:
        self.assertEqual(self.client.get("/health").json(), {"status": "ok"})

    def test_duplicate_registration_conflicts(self) -> None:
        response = self.client.post(
            "/api/users/register",
            json={"username": "other", "email": "ANA@example.com", "password": "pw"},
        )

        self.assertEqual(response.status_code, 409)

    def test_login_round_trip(self) -> None:
        response = self.client.post(
            "/api/users/login", json={"email": "ana@example.com", "password": "pw-123456"}
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["user"]["username"], "ana")

    def test_login_with_wrong_password(self) -> None:
        response = self.client.post(
            "/api/users/login", json={"email": "ana@example.com", "password": "nope"}
        )

        self.assertEqual(response.status_code, 401)

    def test_missing_or_invalid_token_is_unauthorized(self) -> None:
        self.assertEqual(self.client.get("/api/dashboard/data").status_code, 401)
        response = self.client.get("/api/dashboard/data", headers={"Authorization": "Bearer junk"})
        self.assertEqual(response.status_code, 401)

    def test_logout_revokes_token(self) -> None:
        response = self.client.post("/api/users/logout", headers=self.auth())
        self.assertEqual(response.status_code, 200)

        response = self.client.get("/api/dashboard/summary", headers=self.auth())
        self.assertEqual(response.status_code, 401)


class CategoryAndTransactionTests(ApiTestCase):
    def test_duplicate_category_conflicts(self) -> None:
        self.create_category("Food", "expense")

        response = self.client.post(
            "/api/categories", json={"name": "Food", "type": "expense"}, headers=self.auth()
        )

        self.assertEqual(response.status_code, 409)

    def test_category_type_must_be_valid(self) -> None:
        response = self.client.post(
            "/api/categories", json={"name": "Food", "type": "income"}, headers=self.auth()
        )

        self.assertEqual(response.status_code, 400)

    def test_list_categories_by_type(self) -> None:
        self.create_category("Salary", "revenue")
        self.create_category("Food", "expense")

        response = self.client.get("/api/categories", params={"type": "expense"}, headers=self.auth())

        self.assertEqual([item["name"] for item in response.json()], ["Food"])

    def test_transaction_requires_matching_owned_category(self) -> None:
        food = self.create_category("Food", "expense")
        other_token = self.register("ben", "ben@example.com")
        foreign = self.create_category("Rent", "expense", token=other_token)
        body = {"title": "Lunch", "amount": "10", "type": "revenue", "category_id": food}

        response = self.client.post("/api/transactions", json=body, headers=self.auth())
        self.assertEqual(response.status_code, 400)

        body.update(type="expense", category_id=foreign)
        response = self.client.post("/api/transactions", json=body, headers=self.auth())
        self.assertEqual(response.status_code, 404)

    def test_non_positive_amount_is_rejected(self) -> None:
        food = self.create_category("Food", "expense")
        body = {"title": "Lunch", "amount": "0", "type": "expense", "category_id": food}

        response = self.client.post("/api/transactions", json=body, headers=self.auth())

        self.assertEqual(response.status_code, 400)

    def test_category_type_is_locked_while_in_use(self) -> None:
        food = self.create_category("Food", "expense")
        self.create_transaction("Lunch", "10", "expense", food, "2024-03-02T12:00:00")

        response = self.client.put(
            f"/api/categories/{food}", json={"name": "Food", "type": "revenue"}, headers=self.auth()
        )
        self.assertEqual(response.status_code, 409)

        response = self.client.put(
            f"/api/categories/{food}", json={"name": "Groceries", "type": "expense"}, headers=self.auth()
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["name"], "Groceries")

    def test_unused_category_can_change_type(self) -> None:
        gifts = self.create_category("Gifts", "expense")

        response = self.client.put(
            f"/api/categories/{gifts}", json={"name": "Gifts", "type": "revenue"}, headers=self.auth()
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["type"], "revenue")

    def test_transaction_crud(self) -> None:
        food = self.create_category("Food", "expense")
        created = self.create_transaction("Lunch", "12.345", "expense", food, "2024-03-02T12:00:00")
        self.assertEqual(Decimal(created["amount"]), Decimal("12.35"))
        self.assertEqual(created["category_name"], "Food")

        response = self.client.put(
            f"/api/transactions/{created['id']}", json={"title": "Team lunch"}, headers=self.auth()
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["title"], "Team lunch")
        self.assertEqual(Decimal(response.json()["amount"]), Decimal("12.35"))

        response = self.client.delete(f"/api/transactions/{created['id']}", headers=self.auth())
        self.assertEqual(response.status_code, 200)
        response = self.client.get(f"/api/transactions/{created['id']}", headers=self.auth())
        self.assertEqual(response.status_code, 404)

    def test_deleted_category_keeps_transactions(self) -> None:
        food = self.create_category("Food", "expense")
        self.create_transaction("Lunch", "10", "expense", food, "2024-03-02T12:00:00")

        self.client.delete(f"/api/categories/{food}", headers=self.auth())
        response = self.client.get("/api/dashboard/category-chart", params={"type": "expense"}, headers=self.auth())

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()[0]["category"], food)
        self.assertIsNone(response.json()[0]["name"])

    def test_filtered_and_export(self) -> None:
        food = self.create_category("Food", "expense")
        self.create_transaction("Grocery run", "40", "expense", food, "2024-03-02T12:00:00")
        self.create_transaction("Lunch", "10", "expense", food, "2024-04-02T12:00:00")

        response = self.client.get(
            "/api/transactions/filtered", params={"search_term": "GROCERY"}, headers=self.auth()
        )
        self.assertEqual([item["title"] for item in response.json()], ["Grocery run"])

        response = self.client.get(
            "/api/transactions/filtered",
            params={"start_date": "2024-05-01", "end_date": "2024-04-01"},
            headers=self.auth(),
        )
        self.assertEqual(response.status_code, 400)

        response = self.client.get("/api/transactions/export", headers=self.auth())
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.headers["content-type"].startswith("text/csv"))
        lines = response.text.strip().split("\n")
        self.assertEqual(lines[0], "id,date,title,type,category,amount")
        self.assertEqual(len(lines), 3)


class DashboardApiTests(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        salary = self.create_category("Salary", "revenue")
        food = self.create_category("Food", "expense")
        rent = self.create_category("Rent", "expense")
        self.create_transaction("Paycheck", "500", "revenue", salary, "2024-01-05T09:00:00")
        self.create_transaction("Groceries", "200", "expense", food, "2024-01-20T18:00:00")
        self.create_transaction("February rent", "300", "expense", rent, "2024-02-02T08:00:00")

    def test_dashboard_data(self) -> None:
        body = self.client.get("/api/dashboard/data", headers=self.auth()).json()

        self.assertEqual(Decimal(body["revenue"]["total"]), Decimal("500"))
        self.assertEqual(Decimal(body["expense"]["total"]), Decimal("500"))
        self.assertEqual(Decimal(body["net_balance"]), Decimal("0"))
        self.assertEqual([item["name"] for item in body["expense"]["categories"]], ["Rent", "Food"])

    def test_monthly_chart(self) -> None:
        body = self.client.get(
            "/api/dashboard/chart", params={"period": "monthly"}, headers=self.auth()
        ).json()

        self.assertEqual([bucket["bucket"] for bucket in body], ["2024-01", "2024-02"])
        february = {entry["type"]: Decimal(entry["total"]) for entry in body[1]["entries"]}
        self.assertEqual(february, {"revenue": Decimal("0"), "expense": Decimal("300")})

    def test_invalid_type_is_bad_request(self) -> None:
        for path in (
            "/api/dashboard/category-chart",
            "/api/dashboard/category-distribution",
            "/api/dashboard/category-trends",
            "/api/dashboard/top-categories",
        ):
            response = self.client.get(path, params={"type": "income"}, headers=self.auth())
            self.assertEqual(response.status_code, 400, path)
            response = self.client.get(path, params={"type": "EXPENSE"}, headers=self.auth())
            self.assertEqual(response.status_code, 400, path)

    def test_top_categories(self) -> None:
        body = self.client.get(
            "/api/dashboard/top-categories",
            params={"type": "expense", "limit": "1"},
            headers=self.auth(),
        ).json()

        self.assertEqual([item["name"] for item in body], ["Rent"])

    def test_category_distribution(self) -> None:
        body = self.client.get(
            "/api/dashboard/category-distribution", params={"type": "expense"}, headers=self.auth()
        ).json()

        self.assertEqual([Decimal(item["percentage"]) for item in body], [Decimal("60"), Decimal("40")])

    def test_category_period_comparison(self) -> None:
        params = {
            "type": "expense",
            "start_date1": "2024-01-01",
            "end_date1": "2024-01-31",
            "start_date2": "2024-02-01",
            "end_date2": "2024-02-29",
        }
        body = self.client.get(
            "/api/dashboard/category-period-comparison", params=params, headers=self.auth()
        ).json()

        self.assertEqual([item["name"] for item in body], ["Rent", "Food"])
        self.assertEqual(Decimal(body[0]["delta"]), Decimal("300"))
        self.assertEqual(Decimal(body[1]["delta"]), Decimal("-200"))

        params.pop("end_date2")
        response = self.client.get(
            "/api/dashboard/category-period-comparison", params=params, headers=self.auth()
        )
        self.assertEqual(response.status_code, 400)

    def test_monthly_balance_and_yearly_comparison(self) -> None:
        months = self.client.get(
            "/api/dashboard/monthly-balance", params={"year": "2024"}, headers=self.auth()
        ).json()
        self.assertEqual([(item["month"], Decimal(item["balance"])) for item in months], [(1, Decimal("300")), (2, Decimal("-300"))])

        years = self.client.get(
            "/api/dashboard/yearly-comparison", params={"year": "2024"}, headers=self.auth()
        ).json()
        self.assertEqual([item["year"] for item in years], [2023, 2024])

        response = self.client.get(
            "/api/dashboard/monthly-balance", params={"year": "abc"}, headers=self.auth()
        )
        self.assertEqual(response.status_code, 400)

    def test_recent_transactions_and_details(self) -> None:
        body = self.client.get(
            "/api/dashboard/recent-transactions", params={"limit": "2"}, headers=self.auth()
        ).json()

        self.assertEqual([item["title"] for item in body["transactions"]], ["February rent", "Groceries"])
        self.assertEqual((body["total"], body["page"], body["total_pages"]), (3, 1, 2))

        first_id = body["transactions"][0]["id"]
        response = self.client.get(f"/api/dashboard/transaction/{first_id}", headers=self.auth())
        self.assertEqual(response.json()["title"], "February rent")

        other_token = self.register("ben", "ben@example.com")
        response = self.client.get(f"/api/dashboard/transaction/{first_id}", headers=self.auth(other_token))
        self.assertEqual(response.status_code, 404)

    def test_transaction_stats(self) -> None:
        body = self.client.get(
            "/api/dashboard/transaction-stats",
            params={"start_date": "2024-01-01", "end_date": "2024-01-31"},
            headers=self.auth(),
        ).json()

        self.assertEqual(body["total_transactions"], 2)
        self.assertEqual(Decimal(body["avg_transaction"]), Decimal("350"))

    def test_other_users_see_empty_dashboard(self) -> None:
        other_token = self.register("ben", "ben@example.com")

        body = self.client.get("/api/dashboard/summary", headers=self.auth(other_token)).json()

        self.assertEqual(Decimal(body["net_balance"]), Decimal("0"))
        self.assertTrue(body["is_positive"])


if __name__ == "__main__":
    unittest.main()
