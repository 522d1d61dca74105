import pytest
from fastapi import HTTPException

from app.main import app
from app.modules.subscriptions.billing import StripeGateway
from app.modules.subscriptions.routes import get_stripe_gateway
from app.scripts.seed_subscription_plans import DEFAULT_PLANS, seed_plans, validate_plan
from tests.conftest import ADMIN_ID, FARMER_ID

PERIOD_START = 1717200000  # 2024-06-01
PERIOD_END = 1719792000  # 2024-07-01


class StubGateway:
    def __init__(self, customer_id="cus_1", subscription=None):
        self.customer_id = customer_id
        self.subscription = subscription
        self.portal_calls = []

    def find_customer_id(self, email):
        return self.customer_id

    def get_active_subscription(self, customer_id):
        return self.subscription

    def create_portal_session(self, customer_id, return_url):
        self.portal_calls.append((customer_id, return_url))
        return "https://billing.stripe.test/session"


def _stripe_subscription(unit_amount=2900, subscription_id="sub_1"):
    return {
        "id": subscription_id,
        "current_period_start": PERIOD_START,
        "current_period_end": PERIOD_END,
        "price_id": "price_basic",
        "unit_amount": unit_amount,
    }


@pytest.fixture
def super_admin_client(client, db):
    db.add("user_profiles", {"id": FARMER_ID, "email": "owner@example.com", "role": "super_admin"})
    return client


def _use_gateway(gateway):
    app.dependency_overrides[get_stripe_gateway] = lambda: gateway
    return gateway


def test_gateway_requires_a_secret_key(monkeypatch):
    monkeypatch.setattr("app.modules.subscriptions.billing.settings.stripe_secret_key", None)
    with pytest.raises(HTTPException) as exc_info:
        StripeGateway()
    assert exc_info.value.status_code == 500


class TestPlans:
    def test_plans_are_public_and_sorted_by_price(self, client, db):
        db.add("subscription_plans", {"name": "Pro", "price": 79, "billing_interval": "month", "features": {}})
        db.add("subscription_plans", {"name": "Free", "price": 0, "billing_interval": "month", "features": {}})
        assert [p["name"] for p in client.get("/api/v1/subscriptions/plans").json()] == ["Free", "Pro"]

    def test_only_super_admins_manage_plans(self, admin_client):
        response = admin_client.post("/api/v1/subscriptions/plans", json={"name": "Gold", "price": 99})
        assert response.status_code == 403

    def test_super_admin_creates_and_updates(self, super_admin_client):
        created = super_admin_client.post("/api/v1/subscriptions/plans", json={
            "name": "Gold", "price": 99, "features": {"max_zones": 100, "automation": True, "badge": "best value"}
        })
        assert created.status_code == 201
        plan = created.json()
        assert plan["features"]["badge"] == "best value"

        updated = super_admin_client.put(f"/api/v1/subscriptions/plans/{plan['id']}", json={"price": 89})
        assert updated.json()["price"] == 89
        assert super_admin_client.delete("/api/v1/subscriptions/plans/missing").status_code == 404

    def test_negative_price_is_rejected(self, super_admin_client):
        assert super_admin_client.post("/api/v1/subscriptions/plans", json={"name": "X", "price": -1}).status_code == 422


class TestCurrentUser:
    def test_me_is_null_without_subscription(self, client, farmer):
        response = client.get("/api/v1/subscriptions/me")
        assert response.status_code == 200
        assert response.json() is None

    def test_limits_report_usage(self, client, db, subscribed_farmer):
        db.add("zones", {"user_id": FARMER_ID, "name": "North"})
        body = client.get("/api/v1/subscriptions/limits").json()
        assert body["limits"]["max_zones"] == 2
        assert body["usage"] == {"zones": 1, "devices": 0, "crops": 0}


class TestStripeCheck:
    def test_unknown_customer_is_not_subscribed(self, client, db, farmer):
        _use_gateway(StubGateway(customer_id=None))
        response = client.post("/api/v1/subscriptions/check")
        assert response.json() == {"subscribed": False, "subscription": None}
        assert db.rows("user_subscriptions")[0]["status"] == "inactive"

    def test_no_active_stripe_subscription_deactivates(self, client, db, subscribed_farmer):
        _use_gateway(StubGateway(subscription=None))
        assert client.post("/api/v1/subscriptions/check").json()["subscribed"] is False
        assert db.rows("user_subscriptions")[0]["status"] == "inactive"

    def test_new_stripe_subscription_is_matched_to_a_plan(self, client, db, farmer, basic_plan):
        _use_gateway(StubGateway(subscription=_stripe_subscription()))

        body = client.post("/api/v1/subscriptions/check").json()

        assert body["subscribed"] is True
        assert body["subscription"]["plan"]["name"] == "Basic"
        row = db.rows("user_subscriptions")[0]
        assert row["stripe_subscription_id"] == "sub_1"
        assert row["stripe_customer_id"] == "cus_1"
        assert row["end_date"].startswith("2024-07-01")

    def test_known_subscription_is_refreshed(self, client, db, farmer, basic_plan):
        db.add("user_subscriptions", {"user_id": FARMER_ID, "plan_id": basic_plan["id"], "status": "inactive",
                                      "stripe_subscription_id": "sub_1", "stripe_customer_id": "cus_1"})
        _use_gateway(StubGateway(subscription=_stripe_subscription()))

        assert client.post("/api/v1/subscriptions/check").json()["subscribed"] is True
        assert len(db.rows("user_subscriptions")) == 1
        assert db.rows("user_subscriptions")[0]["status"] == "active"

    def test_unmatched_price_is_an_error(self, client, db, farmer, basic_plan):
        _use_gateway(StubGateway(subscription=_stripe_subscription(unit_amount=12345)))
        response = client.post("/api/v1/subscriptions/check")
        assert response.status_code == 500
        assert response.json()["detail"] == "Could not match Stripe price to a plan"


class TestPortal:
    def test_portal_needs_a_stripe_customer(self, client, subscribed_farmer):
        _use_gateway(StubGateway())
        assert client.post("/api/v1/subscriptions/portal").status_code == 404

    def test_portal_returns_to_settings(self, client, db, farmer, basic_plan):
        db.add("user_subscriptions", {"user_id": FARMER_ID, "plan_id": basic_plan["id"], "status": "active",
                                      "stripe_customer_id": "cus_9"})
        gateway = _use_gateway(StubGateway())

        response = client.post("/api/v1/subscriptions/portal", headers={"origin": "https://farm.example.com"})

        assert response.json() == {"url": "https://billing.stripe.test/session"}
        assert gateway.portal_calls == [("cus_9", "https://farm.example.com/settings?tab=subscription")]


class TestFarmerActivation:
    def test_activate_uses_cheapest_plan(self, super_admin_client, db, basic_plan):
        db.add("subscription_plans", {"name": "Free", "price": 0, "billing_interval": "month", "features": {}})
        db.add("user_profiles", {"id": "farmer-2", "email": "f2@example.com", "role": "farmer"})

        response = super_admin_client.post("/api/v1/subscriptions/farmers/farmer-2/activate")

        assert response.status_code == 200
        subscription = response.json()
        assert subscription["status"] == "active"
        assert subscription["end_date"] is not None
        plan_names = {p["id"]: p["name"] for p in db.rows("subscription_plans")}
        assert plan_names[subscription["plan_id"]] == "Free"

    def test_activate_reuses_latest_row_then_deactivates(self, super_admin_client, db, basic_plan):
        db.add("user_profiles", {"id": "farmer-2", "email": "f2@example.com", "role": "farmer"})
        db.add("user_subscriptions", {"user_id": "farmer-2", "plan_id": basic_plan["id"], "status": "inactive"})

        super_admin_client.post("/api/v1/subscriptions/farmers/farmer-2/activate")
        assert len(db.rows("user_subscriptions")) == 1

        farmers = super_admin_client.get("/api/v1/subscriptions/farmers").json()
        assert farmers[0]["subscription"]["plan"]["name"] == "Basic"

        result = super_admin_client.post("/api/v1/subscriptions/farmers/farmer-2/deactivate").json()
        assert result["deactivated"] == 1
        assert db.rows("user_subscriptions")[0]["status"] == "inactive"

    def test_unknown_farmer(self, super_admin_client, basic_plan):
        assert super_admin_client.post("/api/v1/subscriptions/farmers/ghost/activate").status_code == 404


class TestSubscriptionRequests:
    def test_request_approval_flow(self, client, db, farmer, basic_plan):
        response = client.post("/api/v1/subscriptions/requests", json={"plan_id": basic_plan["id"]})
        assert response.status_code == 201
        request = response.json()
        assert request["approval_status"] == "pending"

        listed = client.get("/api/v1/subscriptions/requests").json()
        assert listed[0]["subscription_plans"]["name"] == "Basic"
        assert client.post(f"/api/v1/subscriptions/requests/{request['id']}/approve").status_code == 403

    def test_unknown_plan(self, client, farmer):
        assert client.post("/api/v1/subscriptions/requests", json={"plan_id": "nope"}).status_code == 404

    def test_admin_denies_with_reason(self, admin_client, db, basic_plan):
        request = db.add("subscription_requests", {"user_id": FARMER_ID, "plan_id": basic_plan["id"],
                                                   "approval_status": "pending"})
        response = admin_client.post(f"/api/v1/subscriptions/requests/{request['id']}/deny",
                                     json={"reason": "Incomplete contact details"})
        body = response.json()
        assert body["approval_status"] == "denied"
        assert body["approved_by"] == ADMIN_ID
        assert body["denial_reason"] == "Incomplete contact details"


class TestSeedPlans:
    def test_default_plans_are_valid(self):
        for plan in DEFAULT_PLANS:
            validate_plan(plan)

    def test_unknown_feature_key(self):
        with pytest.raises(ValueError):
            validate_plan({"name": "Bad", "features": {"max_fields": 3}})

    def test_seed_is_idempotent(self, db):
        assert seed_plans(db) == 3
        assert seed_plans(db) == 3
        assert sorted(p["name"] for p in db.rows("subscription_plans")) == ["Basic", "Free", "Pro"]
