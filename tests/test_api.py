from datetime import date
from decimal import Decimal

from solardesk.core.single_flight import mutation_guard

from conftest import FINANCE, RESTRICTED, STAFF

API = "/api/v1"


def create_project(client, **overrides):
    payload = {
        "name": "Rooftop 5kW",
        "customer_name": "Ravi Kumar",
        "address": "12 MG Road, Vijayawada",
        "state": "AP",
        "proposal_amount": 500000,
        "advance_payment": 100000,
        "start_date": "2024-01-10",
        "kwh": 5,
    }
    payload.update(overrides)
    response = client.post(f"{API}/projects/", json=payload)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestProjects:

    def test_create_and_fetch(self, client):
        project = create_project(client)
        assert project["current_stage"] == "Site Visit"
        assert project["status"] == "active"
        assert project["progress_percentage"] == 12.5
        assert Decimal(str(project["balance_amount"])) == Decimal("400000")

        response = client.get(f"{API}/projects/{project['id']}")
        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Rooftop 5kW"

    def test_missing_project(self, client):
        response = client.get(f"{API}/projects/999")
        assert response.status_code == 404
        assert response.json()["status"] == "error"

    def test_create_requires_admin(self, client, act_as):
        act_as(STAFF)
        response = client.post(f"{API}/projects/", json={"name": "X", "customer_name": "Y"})
        assert response.status_code == 403

    def test_soft_delete_hides_from_list(self, client):
        keep = create_project(client, name="Keep")
        drop = create_project(client, name="Drop")

        response = client.delete(f"{API}/projects/{drop['id']}")
        assert response.status_code == 200

        listing = client.get(f"{API}/projects/").json()
        assert listing["total"] == 1
        assert [p["id"] for p in listing["data"]] == [keep["id"]]
        assert client.get(f"{API}/projects/{drop['id']}").status_code == 404
        assert client.delete(f"{API}/projects/{drop['id']}").status_code == 404
        assert client.post(f"{API}/projects/{drop['id']}/stage/advance").status_code == 404
        response = client.post(
            f"{API}/projects/{drop['id']}/payments",
            json={"amount": 1000, "payment_mode": "UPI", "payment_date": "2024-02-01"},
        )
        assert response.status_code == 404

    def test_customer_edit(self, client, act_as):
        project = create_project(client)
        response = client.put(
            f"{API}/projects/{project['id']}/customer",
            json={"customer_name": "Ravi K", "phone": "9876543210"},
        )
        assert response.status_code == 200
        assert response.json()["data"]["customer_name"] == "Ravi K"

        act_as(STAFF)
        response = client.put(f"{API}/projects/{project['id']}/customer", json={"phone": "1"})
        assert response.status_code == 403

    def test_details_edit_sets_stage_directly(self, client):
        project = create_project(client)
        url = f"{API}/projects/{project['id']}/details"

        response = client.put(url, json={"current_stage": "Net Metering", "proposal_amount": 600000})
        data = response.json()["data"]
        assert response.status_code == 200
        assert data["current_stage"] == "Net Metering"
        assert Decimal(str(data["balance_amount"])) == Decimal("500000")

        assert client.put(url, json={"current_stage": "Bogus"}).status_code == 422
        assert client.put(url, json={"current_stage": ""}).json()["data"]["current_stage"] is None

    def test_request_validation_error_shape(self, client):
        response = client.post(f"{API}/projects/", json={"name": "No customer"})
        assert response.status_code == 422
        assert response.json()["status"] == "error"


class TestStages:

    def test_advance_and_retreat(self, client):
        project = create_project(client)
        url = f"{API}/projects/{project['id']}/stage"

        response = client.post(f"{url}/advance")
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["moved"] is True
        assert data["current_stage"] == "Agreement"

        data = client.post(f"{url}/retreat").json()["data"]
        assert data["current_stage"] == "Site Visit"

        data = client.post(f"{url}/retreat").json()["data"]
        assert data["moved"] is False
        assert client.get(url).json()["data"]["can_retreat"] is False

    def test_unknown_stage_is_reported(self, client):
        project = create_project(client)
        url = f"{API}/projects/{project['id']}"
        assert client.put(f"{url}/details", json={"current_stage": ""}).status_code == 200

        for action in ("advance", "retreat"):
            response = client.post(f"{url}/stage/{action}")
            assert response.status_code == 200
            body = response.json()
            assert body["data"]["moved"] is False
            assert body["data"]["stage_index"] == -1
            assert body["message"] == "Project stage is not set or not recognised"

        body = client.post(f"{url}/stage/advance").json()
        assert body["data"]["current_stage"] is None

    def test_no_op_at_the_ends_keeps_end_messages(self, client):
        project = create_project(client)
        url = f"{API}/projects/{project['id']}/stage"
        assert client.post(f"{url}/retreat").json()["message"] == "Project is already at the first stage"

        client.put(f"{API}/projects/{project['id']}/details", json={"current_stage": "Completed"})
        assert client.post(f"{url}/advance").json()["message"] == "Project is already at the last stage"

    def test_duplicate_in_flight_returns_conflict(self, client):
        project = create_project(client)
        assert mutation_guard.try_acquire(project["id"], "stage")
        try:
            response = client.post(f"{API}/projects/{project['id']}/stage/advance")
        finally:
            mutation_guard.release(project["id"], "stage")

        assert response.status_code == 409
        assert "already in progress" in response.json()["message"]


class TestPayments:

    def test_ledger_flow(self, client, act_as):
        project = create_project(client)
        url = f"{API}/projects/{project['id']}/payments"

        act_as(STAFF)
        response = client.post(url, json={"amount": 150000, "payment_mode": "UPI", "payment_date": "2024-02-01"})
        assert response.status_code == 201, response.text
        payment_id = response.json()["data"]["id"]

        ledger = client.get(url).json()
        assert [e["is_advance"] for e in ledger["data"]] == [True, False]
        assert Decimal(str(ledger["summary"]["balance_amount"])) == Decimal("250000")

        assert client.delete(f"{url}/{payment_id}").status_code == 403

        act_as(FINANCE)
        response = client.delete(f"{url}/{payment_id}")
        assert response.status_code == 200
        assert response.json()["data"]["deleted"] is True

        summary = client.get(f"{url}/summary").json()["data"]
        assert Decimal(str(summary["paid_amount"])) == Decimal("0")

    def test_advance_entry_cannot_be_deleted(self, client):
        project = create_project(client)
        url = f"{API}/projects/{project['id']}/payments"
        advance_id = client.get(url).json()["data"][0]["id"]

        response = client.delete(f"{url}/{advance_id}")
        assert response.status_code == 200
        assert response.json()["data"]["deleted"] is False
        assert len(client.get(url).json()["data"]) == 1

    def test_incomplete_payment_rejected(self, client):
        project = create_project(client)
        response = client.post(
            f"{API}/projects/{project['id']}/payments",
            json={"amount": 1000, "payment_mode": "UPI"},
        )
        assert response.status_code == 422
        assert response.json()["message"] == "Please fill all payment details."

    def test_blank_payment_date_rejected(self, client):
        project = create_project(client)
        url = f"{API}/projects/{project['id']}/payments"
        response = client.post(url, json={"amount": 1000, "payment_mode": "UPI", "payment_date": ""})
        assert response.status_code == 422
        assert response.json()["message"] == "Please fill all payment details."

        ledger = client.get(url).json()
        assert [e["is_advance"] for e in ledger["data"]] == [True]
        assert Decimal(str(ledger["summary"]["paid_amount"])) == Decimal("0")

    def test_negative_amount_rejected(self, client):
        project = create_project(client)
        url = f"{API}/projects/{project['id']}/payments"
        response = client.post(url, json={"amount": -1, "payment_mode": "UPI", "payment_date": "2024-02-01"})
        assert response.status_code == 422
        assert response.json()["message"] == "Payment amount must be greater than zero."
        assert len(client.get(url).json()["data"]) == 1

    def test_receipt_download(self, client):
        project = create_project(client)
        url = f"{API}/projects/{project['id']}/payments"
        advance_id = client.get(url).json()["data"][0]["id"]

        response = client.get(f"{url}/{advance_id}/receipt")
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert "attachment" in response.headers["content-disposition"]
        assert response.content.startswith(b"%PDF")

    def test_payment_form_remembers_last_choice(self, client):
        project = create_project(client)
        url = f"{API}/projects/{project['id']}/payment-form"

        defaults = client.get(url).json()["data"]
        assert defaults["payment_mode"] == "Cash"
        assert defaults["payment_date"] == date.today().isoformat()

        client.post(
            f"{API}/projects/{project['id']}/payments",
            json={"amount": 1000, "payment_mode": "Cheque", "payment_date": "2024-02-01"},
        )
        defaults = client.get(url).json()["data"]
        assert defaults == {"payment_date": "2024-02-01", "payment_mode": "Cheque"}

        response = client.put(url, json={"payment_mode": "Subsidy"})
        assert response.json()["data"]["payment_mode"] == "Subsidy"
        assert client.put(url, json={"payment_mode": "Card"}).status_code == 422


class TestDashboard:

    def test_dashboard(self, client):
        create_project(client, start_date=f"{date.today().year}-01-15")
        response = client.get(f"{API}/dashboard/", params={"sort_by": "amount", "sort_order": "asc"})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["stats"]["active_projects"] == 1
        assert Decimal(str(data["stats"]["total_revenue"])) == Decimal("500000")
        assert len(data["active_projects"]) == 1
        assert len(data["year_options"]) == 5

    def test_restricted_user_sees_no_revenue(self, client, act_as):
        create_project(client)
        act_as(RESTRICTED)
        data = client.get(f"{API}/dashboard/").json()["data"]
        assert data["stats"]["total_revenue"] is None

    def test_invalid_sort(self, client):
        assert client.get(f"{API}/dashboard/", params={"sort_by": "name"}).status_code == 422


class TestModuleAssignments:

    def test_empty_assignments(self, client):
        project = create_project(client)
        data = client.get(f"{API}/projects/{project['id']}/module-assignments").json()["data"]
        assert data["assignments"] == []
        assert Decimal(str(data["total_kwh"])) == Decimal("0")


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
