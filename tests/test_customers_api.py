from datetime import datetime

from sqlmodel import select

from app.main import app
from core.mailer import get_mailer
from models.customer_notes import CustomerNote



def customer_payload(**overrides):
    payload = {
        "first_name": "Jonas",
        "last_name": "Weber",
        "email": "jonas@example.com",
        "language": "EN",
        "data_processing_consent": True,
    }
    payload.update(overrides)
    return payload


def test_create_customer(client, staff_headers):
    response = client.post("/api/customers", json=customer_payload(), headers=staff_headers)

    assert response.status_code == 201, response.text
    body = response.json()
    assert body["consent_date"] is not None
    assert body["is_vip"] is False


def test_duplicate_email_is_409(client, staff_headers, make_customer):
    make_customer(email="jonas@example.com")
    response = client.post("/api/customers", json=customer_payload(), headers=staff_headers)
    assert response.status_code == 409


def test_invalid_phone_is_400(client, staff_headers):
    response = client.post("/api/customers", json=customer_payload(phone="call me"), headers=staff_headers)
    assert response.status_code == 400


def test_search_customers(client, staff_headers, make_customer):
    make_customer(email="jonas@example.com")
    make_customer(email="someone@else.org", is_vip=True)

    response = client.get("/api/customers", params={"search": "jonas"}, headers=staff_headers)
    assert response.json()["metadata"]["total_count"] == 1

    response = client.get("/api/customers", params={"is_vip": True}, headers=staff_headers)
    assert [c["email"] for c in response.json()["data"]] == ["someone@else.org"]


def test_update_customer_marks_vip(client, staff_headers, make_customer):
    customer = make_customer()

    response = client.patch(f"/api/customers/{customer.id}", json={"is_vip": True}, headers=staff_headers)

    assert response.status_code == 200
    assert response.json()["is_vip"] is True


def test_export_customer_data(client, staff_headers, make_customer, make_table, make_reservation):
    customer = make_customer(email="jonas@example.com")
    table = make_table(7)
    make_reservation(table, datetime(2031, 6, 1, 19, 0), customer=customer)
    make_reservation(None, datetime(2031, 7, 1, 19, 0), customer=customer)

    response = client.get(f"/api/customers/{customer.id}/export", headers=staff_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["export_info"]["requested_by"] == "staff"
    assert body["personal_data"]["email"] == "jonas@example.com"
    assert body["consents"]["data_processing_consent"] is True
    assert [r["table"] for r in body["reservations"]] == [
        None,
        {"number": 7, "capacity": 4, "location": "INDOOR_STANDARD"},
    ]


def test_unknown_customer_is_404(client, staff_headers):
    assert client.get("/api/customers/999", headers=staff_headers).status_code == 404


class FailingMailer:
    def send(self, to, subject, body):
        raise ConnectionError("SMTP server unavailable")


def test_manager_deletes_customer_and_notes(client, session, manager_headers, make_customer):
    customer = make_customer()
    client.post(f"/api/customers/{customer.id}/notes", json={"note": "Prefers the window"}, headers=manager_headers)

    response = client.delete(f"/api/customers/{customer.id}", headers=manager_headers)

    assert response.status_code == 200, response.text
    assert response.json()["message"] == "Customer deleted successfully"
    assert client.get(f"/api/customers/{customer.id}", headers=manager_headers).status_code == 404
    assert session.exec(select(CustomerNote)).all() == []


def test_customer_with_reservations_cannot_be_deleted(client, manager_headers, make_customer, make_table, make_reservation):
    customer = make_customer()
    make_reservation(make_table(1), datetime(2031, 6, 1, 19, 0), customer=customer)

    response = client.delete(f"/api/customers/{customer.id}", headers=manager_headers)

    assert response.status_code == 409
    assert response.json()["details"] == {"reservation_count": 1}


def test_staff_cannot_delete_customer(client, staff_headers, make_customer):
    customer = make_customer()
    assert client.delete(f"/api/customers/{customer.id}", headers=staff_headers).status_code == 403


def test_gdpr_status(client, staff_headers, make_customer, make_table, make_reservation):
    customer = make_customer()
    make_reservation(make_table(1), datetime(2031, 6, 1, 19, 0), customer=customer)

    response = client.get(f"/api/customers/{customer.id}/gdpr", headers=staff_headers)

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["consent_status"]["consent_score"] == 33
    assert body["data_inventory"]["total_reservations"] == 1
    assert body["rights"]["can_request_deletion"] is False
    assert "No consent date recorded" in body["warnings"]


def test_gdpr_update_consent(client, staff_headers, make_customer):
    customer = make_customer()

    response = client.post(
        f"/api/customers/{customer.id}/gdpr",
        json={"action": "UPDATE_CONSENT", "consent_updates": {"email_consent": True}},
        headers=staff_headers,
    )

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["action"] == "consent_updated"
    assert body["new_consent_status"]["email_consent"] is True
    assert body["new_consent_status"]["data_processing_consent"] is True
    assert body["new_consent_status"]["consent_date"] is not None


def test_gdpr_update_consent_requires_updates(client, staff_headers, make_customer):
    customer = make_customer()
    response = client.post(
        f"/api/customers/{customer.id}/gdpr", json={"action": "UPDATE_CONSENT"}, headers=staff_headers
    )
    assert response.status_code == 400


def test_gdpr_revoke_all_consent(client, session, staff_headers, make_customer):
    customer = make_customer(email_consent=True)

    response = client.post(
        f"/api/customers/{customer.id}/gdpr", json={"action": "REVOKE_ALL_CONSENT"}, headers=staff_headers
    )

    assert response.status_code == 200
    assert response.json()["action"] == "consent_revoked"
    session.refresh(customer)
    assert (customer.data_processing_consent, customer.email_consent, customer.marketing_consent) == (False, False, False)


def test_gdpr_deletion_request(client, staff_headers, make_customer, make_table, make_reservation):
    free = make_customer()
    booked = make_customer()
    make_reservation(make_table(1), datetime(2031, 6, 1, 19, 0), customer=booked)

    response = client.post(f"/api/customers/{free.id}/gdpr", json={"action": "REQUEST_DELETION"}, headers=staff_headers)
    assert response.status_code == 200
    assert response.json()["action"] == "deletion_request_approved"

    response = client.post(f"/api/customers/{booked.id}/gdpr", json={"action": "REQUEST_DELETION"}, headers=staff_headers)
    assert response.status_code == 409


def test_gdpr_export_request(client, staff_headers, make_customer):
    customer = make_customer()

    response = client.post(f"/api/customers/{customer.id}/gdpr", json={"action": "REQUEST_EXPORT"}, headers=staff_headers)

    assert response.status_code == 200
    assert response.json()["export_url"] == f"/api/customers/{customer.id}/export"


def test_customer_notes(client, staff_headers, staff_user, make_customer):
    customer = make_customer()

    response = client.post(
        f"/api/customers/{customer.id}/notes",
        json={"note": "Allergic to shellfish", "is_important": True},
        headers=staff_headers,
    )
    assert response.status_code == 201, response.text
    assert response.json()["user"]["id"] == staff_user.id
    client.post(f"/api/customers/{customer.id}/notes", json={"note": "Birthday in June"}, headers=staff_headers)

    response = client.get(f"/api/customers/{customer.id}/notes", headers=staff_headers)

    assert response.status_code == 200
    assert [n["note"] for n in response.json()] == ["Birthday in June", "Allergic to shellfish"]


def test_empty_note_is_400(client, staff_headers, make_customer):
    customer = make_customer()
    response = client.post(f"/api/customers/{customer.id}/notes", json={"note": ""}, headers=staff_headers)
    assert response.status_code == 400


def test_welcome_email(client, staff_headers, make_customer, mailer):
    customer = make_customer(email_consent=True)

    response = client.post(f"/api/customers/{customer.id}/welcome-email", headers=staff_headers)

    assert response.status_code == 200, response.text
    assert response.json()["recipient"] == customer.email
    assert mailer.sent[0]["to"] == customer.email
    assert mailer.sent[0]["subject"].startswith("Welcome to")


def test_welcome_email_requires_consent(client, staff_headers, make_customer, mailer):
    customer = make_customer(email_consent=False)

    response = client.post(f"/api/customers/{customer.id}/welcome-email", headers=staff_headers)

    assert response.status_code == 403
    assert mailer.sent == []


def test_welcome_email_delivery_failure_is_502(client, staff_headers, make_customer):
    customer = make_customer(email_consent=True)
    app.dependency_overrides[get_mailer] = lambda: FailingMailer()

    response = client.post(f"/api/customers/{customer.id}/welcome-email", headers=staff_headers)

    assert response.status_code == 502
