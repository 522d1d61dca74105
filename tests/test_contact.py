from app.modules.contact.service import ALREADY_SUBSCRIBED
from tests.conftest import FARMER_ID


class TestNewsletter:
    def test_subscribe_normalizes_email(self, client, db):
        response = client.post("/api/v1/contact/newsletter", json={"email": "Grower@Example.com"})
        assert response.status_code == 201
        assert db.rows("newsletter_subscriptions")[0]["email"] == "grower@example.com"

    def test_duplicate_subscription_conflicts(self, client, db):
        client.post("/api/v1/contact/newsletter", json={"email": "grower@example.com"})
        response = client.post("/api/v1/contact/newsletter", json={"email": "GROWER@example.com"})
        assert response.status_code == 409
        assert response.json()["detail"] == ALREADY_SUBSCRIBED

    def test_unique_violation_conflicts(self, client, db):
        db.fail_tables["newsletter_subscriptions"] = Exception(
            'duplicate key value violates unique constraint "newsletter_subscriptions_email_key"'
        )
        response = client.post("/api/v1/contact/newsletter", json={"email": "grower@example.com"})
        assert response.status_code == 409

    def test_invalid_email(self, client):
        assert client.post("/api/v1/contact/newsletter", json={"email": "not-an-email"}).status_code == 422

    def test_admin_lists_subscriptions(self, admin_client):
        admin_client.post("/api/v1/contact/newsletter", json={"email": "grower@example.com"})
        assert len(admin_client.get("/api/v1/contact/newsletter").json()) == 1


def test_farmer_cannot_list_newsletter(client, farmer):
    assert client.get("/api/v1/contact/newsletter").status_code == 403


class TestContactForm:
    def test_public_form_and_admin_review(self, admin_client, db):
        response = admin_client.post("/api/v1/contact/form", json={
            "name": "Sami", "email": "sami@example.com", "message": "Do you support drip lines?"
        })
        assert response.status_code == 201
        submission = response.json()
        assert submission["is_read"] is False

        marked = admin_client.patch(f"/api/v1/contact/form/{submission['id']}", json={"is_read": True})
        assert marked.json()["is_read"] is True
        assert admin_client.patch("/api/v1/contact/form/missing", json={"is_read": True}).status_code == 404

    def test_empty_message_is_rejected(self, client):
        response = client.post("/api/v1/contact/form", json={"name": "Sami", "email": "sami@example.com", "message": ""})
        assert response.status_code == 422


class TestSubscriptionContact:
    def test_submission_embeds_selected_plan(self, client, db, farmer, basic_plan):
        response = client.post("/api/v1/contact/submissions", json={
            "full_name": "Amal Ben Ali", "phone_number": "+21620000000",
            "email": "amal@example.com", "selected_plan_id": basic_plan["id"],
        })
        assert response.status_code == 201
        assert response.json()["status"] == "pending"

        listed = client.get("/api/v1/contact/submissions").json()
        assert listed[0]["subscription_plans"]["name"] == "Basic"

    def test_farmers_only_see_their_own(self, client, db, farmer):
        db.add("contact_submissions", {"user_id": "someone-else", "full_name": "X", "phone_number": "1",
                                       "email": "x@example.com", "status": "pending"})
        db.add("contact_submissions", {"user_id": FARMER_ID, "full_name": "Me", "phone_number": "2",
                                       "email": "me@example.com", "status": "pending"})
        assert [s["full_name"] for s in client.get("/api/v1/contact/submissions").json()] == ["Me"]

    def test_admin_updates_status(self, admin_client, db):
        submission = db.add("contact_submissions", {"user_id": FARMER_ID, "full_name": "Me", "phone_number": "2",
                                                    "email": "me@example.com", "status": "pending"})
        response = admin_client.patch(f"/api/v1/contact/submissions/{submission['id']}", json={"status": "approved"})
        assert response.json()["status"] == "approved"
