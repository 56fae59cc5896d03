import pytest

from clinic_api.models import Appointment

from conftest import auth_headers


def iso(day, hour, minute=0):
    return f"{day.isoformat()}T{hour:02d}:{minute:02d}:00Z"


@pytest.fixture
def payload(refs, future_day):
    def build(start=(9, 0), end=(9, 30), **overrides):
        body = {
            "clientId": refs["client"].id,
            "professionalId": refs["professional"].id,
            "procedureId": refs["procedure"].id,
            "startTime": iso(future_day, *start),
            "endTime": iso(future_day, *end),
        }
        body.update(overrides)
        return body

    return build


@pytest.fixture
def booked(api, owner, payload):
    resp = api.post("/appointments", json=payload(), headers=auth_headers(owner))
    assert resp.status_code == 201
    return resp.json()


def availability(api, user, refs, future_day, start, end, **extra):
    params = {
        "professionalId": refs["professional"].id,
        "start": iso(future_day, *start),
        "end": iso(future_day, *end),
    }
    params.update(extra)
    resp = api.get("/appointments/availability", params=params, headers=auth_headers(user))
    assert resp.status_code == 200
    return resp.json()


def test_availability_scenario(api, owner, refs, future_day, booked):
    overlapping = availability(api, owner, refs, future_day, (9, 15), (9, 45))
    assert overlapping["available"] is False
    assert [c["id"] for c in overlapping["conflicts"]] == [booked["id"]]

    back_to_back = availability(api, owner, refs, future_day, (9, 30), (10, 0))
    assert back_to_back == {"available": True, "conflicts": []}

    editing_itself = availability(
        api, owner, refs, future_day, (9, 0), (9, 30), excludeAppointmentId=booked["id"]
    )
    assert editing_itself["available"] is True

    resp = api.delete(f"/appointments/{booked['id']}", headers=auth_headers(owner))
    assert resp.status_code == 204

    after_cancel = availability(api, owner, refs, future_day, (9, 15), (9, 45))
    assert after_cancel["available"] is True


def test_availability_rejects_empty_interval(api, owner, refs, future_day):
    resp = api.get(
        "/appointments/availability",
        params={"start": iso(future_day, 9), "end": iso(future_day, 9)},
        headers=auth_headers(owner),
    )
    assert resp.status_code == 400
    assert resp.json()["kind"] == "validation_error"


def test_availability_rejects_malformed_dates(api, owner):
    resp = api.get(
        "/appointments/availability",
        params={"start": "amanhã", "end": "depois"},
        headers=auth_headers(owner),
    )
    assert resp.status_code == 400
    assert resp.json()["kind"] == "invalid_date_format"


class TestCreateEndpoint:
    def test_created_record_uses_camel_case(self, booked, refs):
        assert booked["status"] == "SCHEDULED"
        assert booked["clientId"] == refs["client"].id
        assert booked["chargedAmount"] == 200.0
        assert booked["startTime"].endswith("Z")

    def test_requires_authentication(self, api, payload):
        assert api.post("/appointments", json=payload()).status_code == 401

    def test_missing_field_is_400(self, api, owner, payload):
        body = payload()
        del body["procedureId"]
        resp = api.post("/appointments", json=body, headers=auth_headers(owner))
        assert resp.status_code == 400
        assert resp.json()["kind"] == "validation_error"

    def test_end_before_start_is_400(self, api, owner, payload):
        resp = api.post("/appointments", json=payload(start=(10, 0), end=(9, 0)), headers=auth_headers(owner))
        assert resp.status_code == 400
        assert resp.json()["kind"] == "validation_error"

    def test_past_start_is_400(self, api, owner, payload):
        body = payload(startTime="2020-01-01T09:00:00Z", endTime="2020-01-01T09:30:00Z")
        resp = api.post("/appointments", json=body, headers=auth_headers(owner))
        assert resp.status_code == 400
        assert resp.json()["kind"] == "past_date"

    def test_unknown_procedure_is_404(self, api, owner, payload):
        resp = api.post("/appointments", json=payload(procedureId=9999), headers=auth_headers(owner))
        assert resp.status_code == 404
        assert resp.json()["kind"] == "not_found"

    def test_user_cannot_book_for_someone_elses_client(self, api, stranger, payload):
        resp = api.post("/appointments", json=payload(), headers=auth_headers(stranger))
        assert resp.status_code == 403
        assert resp.json()["kind"] == "permission_denied"

    def test_deactivated_procedure_is_404(self, api, admin, owner, refs, payload):
        resp = api.delete(f"/procedures/{refs['procedure'].id}", headers=auth_headers(admin))
        assert resp.status_code == 204

        resp = api.post("/appointments", json=payload(), headers=auth_headers(owner))
        assert resp.status_code == 404
        assert resp.json()["kind"] == "not_found"

    def test_negotiated_plan_price_is_charged(self, api, admin, owner, refs, payload):
        procedure, plan = refs["procedure"], refs["plan"]
        resp = api.put(f"/procedures/{procedure.id}/insurance-plans/{plan.id}", json={"price": 130},
                       headers=auth_headers(admin))
        assert resp.status_code == 200

        resp = api.post("/appointments", json=payload(insurancePlanId=plan.id), headers=auth_headers(owner))
        assert resp.json()["chargedAmount"] == 130.0

    def test_double_booking_is_409(self, api, owner, payload, booked):
        resp = api.post("/appointments", json=payload(start=(9, 15), end=(9, 45)), headers=auth_headers(owner))
        assert resp.status_code == 409
        body = resp.json()
        assert body["kind"] == "conflict"
        assert [c["id"] for c in body["conflicts"]] == [booked["id"]]


class TestStatusEndpoint:
    def test_admin_only(self, api, owner, booked):
        resp = api.patch(f"/appointments/{booked['id']}/status", json={"status": "CONFIRMED"},
                         headers=auth_headers(owner))
        assert resp.status_code == 403

    def test_updates_status(self, api, admin, booked):
        resp = api.patch(f"/appointments/{booked['id']}/status", json={"status": "CONFIRMED"},
                         headers=auth_headers(admin))
        assert resp.status_code == 200
        assert resp.json()["status"] == "CONFIRMED"

    def test_unknown_status_is_400(self, api, admin, booked):
        resp = api.patch(f"/appointments/{booked['id']}/status", json={"status": "FINALIZADO"},
                         headers=auth_headers(admin))
        assert resp.status_code == 400


class TestUpdateEndpoint:
    def test_partial_update(self, api, owner, booked):
        resp = api.patch(f"/appointments/{booked['id']}", json={"notes": "jejum de 8h"},
                         headers=auth_headers(owner))
        assert resp.status_code == 200
        assert resp.json()["notes"] == "jejum de 8h"
        assert resp.json()["startTime"] == booked["startTime"]

    def test_reschedule_keeps_end_after_start(self, api, owner, booked, future_day):
        resp = api.patch(f"/appointments/{booked['id']}", json={"startTime": iso(future_day, 11)},
                         headers=auth_headers(owner))
        assert resp.status_code == 400

    def test_owner_cannot_complete_through_edit(self, api, owner, booked):
        resp = api.patch(f"/appointments/{booked['id']}", json={"status": "COMPLETED"},
                         headers=auth_headers(owner))
        assert resp.status_code == 403
        assert api.get(f"/appointments/{booked['id']}", headers=auth_headers(owner)).json()["status"] == "SCHEDULED"

    def test_owner_can_cancel_through_edit(self, api, owner, booked):
        resp = api.patch(f"/appointments/{booked['id']}", json={"status": "CANCELLED"},
                         headers=auth_headers(owner))
        assert resp.status_code == 200
        assert resp.json()["status"] == "CANCELLED"

    def test_missing_is_404(self, api, owner):
        resp = api.patch("/appointments/999", json={"notes": "x"}, headers=auth_headers(owner))
        assert resp.status_code == 404


class TestCancelEndpoint:
    def test_stranger_is_403(self, api, stranger, booked):
        assert api.delete(f"/appointments/{booked['id']}", headers=auth_headers(stranger)).status_code == 403

    def test_admin_can_cancel(self, api, admin, booked, session):
        assert api.delete(f"/appointments/{booked['id']}", headers=auth_headers(admin)).status_code == 204
        session.expire_all()
        assert session.get(Appointment, booked["id"]).status == "CANCELLED"

    def test_cancel_twice_is_204(self, api, owner, booked):
        first = api.delete(f"/appointments/{booked['id']}", headers=auth_headers(owner))
        second = api.delete(f"/appointments/{booked['id']}", headers=auth_headers(owner))
        assert (first.status_code, second.status_code) == (204, 204)

    def test_missing_is_404(self, api, admin):
        assert api.delete("/appointments/999", headers=auth_headers(admin)).status_code == 404


class TestListing:
    def test_by_day(self, api, owner, payload, booked, future_day):
        later = api.post("/appointments", json=payload(start=(14, 0), end=(15, 0)), headers=auth_headers(owner))
        cancelled = api.post("/appointments", json=payload(start=(16, 0), end=(17, 0)), headers=auth_headers(owner))
        api.delete(f"/appointments/{cancelled.json()['id']}", headers=auth_headers(owner))

        resp = api.get("/appointments", params={"date": future_day.isoformat()}, headers=auth_headers(owner))
        assert resp.status_code == 200
        assert [a["id"] for a in resp.json()] == [booked["id"], later.json()["id"]]

    def test_explicit_range_wins_over_date(self, api, owner, booked, future_day):
        resp = api.get(
            "/appointments",
            params={"date": "2000-01-01", "start": iso(future_day, 8), "end": iso(future_day, 10)},
            headers=auth_headers(owner),
        )
        assert [a["id"] for a in resp.json()] == [booked["id"]]

    def test_needs_date_or_range(self, api, owner):
        assert api.get("/appointments", headers=auth_headers(owner)).status_code == 400

    def test_mine(self, api, owner, stranger, booked):
        mine = api.get("/appointments/mine", headers=auth_headers(owner)).json()
        theirs = api.get("/appointments/mine", headers=auth_headers(stranger)).json()
        assert [a["id"] for a in mine] == [booked["id"]]
        assert theirs == []

    def test_get_by_id(self, api, owner, booked):
        assert api.get(f"/appointments/{booked['id']}", headers=auth_headers(owner)).json() == booked
        assert api.get("/appointments/999", headers=auth_headers(owner)).status_code == 404
