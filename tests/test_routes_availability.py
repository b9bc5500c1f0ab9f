"""Tests for the availability API endpoints."""

from datetime import datetime
from zoneinfo import ZoneInfo

from agentsalud.routers.availability import get_now

BOGOTA = ZoneInfo("America/Bogota")


def day(client, **params):
    query = {"organization_id": "org-1", "date": "2025-06-09", **params}
    return client.get("/availability/day", params=query)


class TestDayAvailability:
    """GET /availability/day"""

    def test_patient_day(self, client):
        response = day(client)
        assert response.status_code == 200

        data = response.json()
        assert data["date"] == "2025-06-09"
        assert data["day_of_week"] == 1
        assert data["duration_minutes"] == 30
        assert data["applied_rule"] == "standard"
        assert data["count"] == 15
        assert data["message"] is None

        first = data["slots"][0]
        assert first["start_time"] == "11:00"
        assert first["end_time"] == "11:30"
        assert first["provider_id"] == "doc-1"
        assert first["doctor_name"] == "Dr. Ana Rojas"
        assert first["consultation_fee"] == 80000.0

    def test_slots_sorted_by_start(self, client):
        starts = [s["start_time"] for s in day(client).json()["slots"]]
        assert starts == sorted(starts)

    def test_booked_and_pending_slots_excluded(self, client):
        slots = day(client, role="staff").json()["slots"]
        taken = {(s["provider_id"], s["start_time"]) for s in slots}
        assert ("doc-1", "10:00") not in taken
        assert ("doc-2", "15:00") not in taken
        assert ("doc-1", "11:00") in taken  # cancelled

    def test_staff_override(self, client):
        data = day(client, role="staff").json()
        assert data["applied_rule"] == "override"
        assert data["slots"][0]["start_time"] == "09:00"
        assert data["count"] == 18

    def test_staff_forcing_standard_rule(self, client):
        data = day(client, role="admin", standard_rule="true").json()
        assert data["applied_rule"] == "standard"
        assert data["slots"][0]["start_time"] == "11:00"

    def test_unavailable_doctor_excluded(self, client):
        providers = {s["provider_id"] for s in day(client, role="staff").json()["slots"]}
        assert providers == {"doc-1", "doc-2"}

    def test_service_filter_and_price(self, client):
        data = day(client, service_id="svc-1").json()
        assert {s["provider_id"] for s in data["slots"]} == {"doc-1"}
        assert all(s["consultation_fee"] == 50000.0 for s in data["slots"])

    def test_doctor_filter(self, client):
        data = day(client, doctor_id="doc-2").json()
        assert [s["start_time"] for s in data["slots"]] == ["14:00", "14:30", "15:30"]

    def test_unknown_doctor(self, client):
        data = day(client, doctor_id="doc-3").json()
        assert data["count"] == 0
        assert data["message"] == "Specified doctor not found or not available"

    def test_service_without_doctors(self, client, db):
        from agentsalud.models.tables import Services

        db.add(Services(id="svc-2", organization_id="org-1", name="Empty", price=10.0))
        db.commit()
        data = day(client, service_id="svc-2").json()
        assert data["message"] == "No doctors available for this service"

    def test_day_without_schedules(self, client):
        data = day(client, date="2025-06-10").json()
        assert data["count"] == 0
        assert data["message"] == "No schedules for this day"

    def test_blocked_day(self, client, add_vacation):
        add_vacation("doc-1", datetime(2025, 6, 9, 0, 0), datetime(2025, 6, 10, 0, 0), reason="Vacation")
        add_vacation("doc-2", datetime(2025, 6, 9, 0, 0), datetime(2025, 6, 10, 0, 0))
        data = day(client).json()
        assert data["count"] == 0
        assert data["message"] == "No available slots for this date"

    def test_custom_duration(self, client):
        data = day(client, duration=60, doctor_id="doc-2", role="staff").json()
        assert data["duration_minutes"] == 60
        assert [s["start_time"] for s in data["slots"]] == ["14:00"]

    def test_past_date(self, client):
        response = day(client, date="2025-06-08")
        assert response.status_code == 400
        assert response.json()["detail"] == "Date cannot be in the past"

    def test_unknown_organization(self, client):
        assert day(client, organization_id="org-404").status_code == 404

    def test_duration_out_of_bounds(self, client):
        assert day(client, duration=5).status_code == 400
        assert day(client, duration=0).status_code == 400
        assert day(client, duration=500).status_code == 400

    def test_unknown_role(self, client):
        assert day(client, role="receptionist").status_code == 422

    def test_malformed_date(self, client):
        assert day(client, date="09/06/2025").status_code == 422

    def test_staff_afternoon_drops_started_slots(self, client):
        """Staff asking at 15:00 only see slots that have not started yet."""
        from agentsalud.main import app

        app.dependency_overrides[get_now] = lambda: datetime(2025, 6, 9, 15, 0, tzinfo=BOGOTA)
        starts = [s["start_time"] for s in day(client, role="staff", doctor_id="doc-1").json()["slots"]]
        assert "09:00" not in starts
        assert starts[0] == "15:30"


class TestDaySlots:
    """GET /availability/slots"""

    def test_all_candidates_with_reasons(self, client):
        response = client.get(
            "/availability/slots",
            params={"organization_id": "org-1", "date": "2025-06-09", "doctor_id": "doc-1"},
        )
        assert response.status_code == 200

        data = response.json()
        assert data["total_slots"] == 16
        assert data["available_slots"] == 12

        by_start = {s["start_time"]: s for s in data["slots"]}
        assert by_start["09:00"]["reason"] == "minimum advance booking not met"
        assert by_start["10:00"]["reason"] == "slot already booked"
        assert by_start["11:00"]["available"] is True
        assert by_start["11:00"]["reason"] is None

    def test_blocked_period_reason(self, client, add_vacation):
        add_vacation("doc-1", datetime(2025, 6, 9, 13, 0), datetime(2025, 6, 9, 15, 0), reason="Conference")
        data = client.get(
            "/availability/slots",
            params={"organization_id": "org-1", "date": "2025-06-09", "doctor_id": "doc-1", "role": "staff"},
        ).json()
        blocked = [s["start_time"] for s in data["slots"] if s["reason"] == "Conference"]
        assert blocked == ["13:00", "13:30", "14:00", "14:30"]


class TestRangeAvailability:
    """GET /availability/range"""

    def test_week(self, client):
        response = client.get(
            "/availability/range",
            params={"organization_id": "org-1", "start_date": "2025-06-09", "end_date": "2025-06-15"},
        )
        assert response.status_code == 200

        data = response.json()
        assert len(data["days"]) == 7
        assert data["days"]["2025-06-09"]["available_slots"] == 15
        assert data["days"]["2025-06-10"]["total_slots"] == 0

    def test_past_start_clamped(self, client):
        data = client.get(
            "/availability/range",
            params={"organization_id": "org-1", "start_date": "2025-06-01", "end_date": "2025-06-10"},
        ).json()
        assert data["start_date"] == "2025-06-09"
        assert sorted(data["days"]) == ["2025-06-09", "2025-06-10"]

    def test_entirely_past(self, client):
        response = client.get(
            "/availability/range",
            params={"organization_id": "org-1", "start_date": "2025-06-01", "end_date": "2025-06-05"},
        )
        assert response.status_code == 400

    def test_inverted_range(self, client):
        response = client.get(
            "/availability/range",
            params={"organization_id": "org-1", "start_date": "2025-06-12", "end_date": "2025-06-10"},
        )
        assert response.status_code == 400

    def test_too_long(self, client):
        response = client.get(
            "/availability/range",
            params={"organization_id": "org-1", "start_date": "2025-06-09", "end_date": "2025-07-15"},
        )
        assert response.status_code == 400


class TestHealth:
    def test_health_without_redis(self, client):
        assert client.get("/health").json() == {"redis": None}
