"""API tests for mission proposals and owner mission management."""

from datetime import datetime

import pytest

from extrabeam.models import Mission, Slot
from tests.conftest import auth_headers, create_entreprise, create_mission, create_profile

pytestmark = pytest.mark.api


def proposal(**overrides) -> dict:
    payload = {
        "entrepriseRef": "jean-dupont",
        "contact_name": "Paul Hôtelier",
        "contact_email": "paul@hotel-plage.fr",
        "contact_phone": "0611223344",
        "etablissement": "Hôtel de la Plage",
        "slots": [
            {"start": "2030-01-07T09:00:00", "end": "2030-01-07T13:00:00"},
            {"start": "2030-01-08T09:00:00", "end": "2030-01-08T11:00:00"},
        ],
    }
    payload.update(overrides)
    return payload


def recipients(sent_emails) -> list:
    return [call.kwargs["to"] for call in sent_emails.call_args_list]


class TestMissionProposal:
    def test_visitor_proposal(self, client, db_session, entreprise, sent_emails):
        response = client.post("/api/missions/public", json=proposal(status="validated"))

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "proposed"
        assert body["client_id"] is None
        assert len(body["slots"]) == 2
        assert body["slots"][0]["start"].startswith("2030-01-07T09:00")

        assert set(recipients(sent_emails)) == {"owner-1@example.com", "paul@hotel-plage.fr"}

    def test_client_proposal_is_linked_to_client(self, client, db_session, client_profile, entreprise, sent_emails):
        response = client.post("/api/missions", json=proposal(), headers=auth_headers(client_profile))

        assert response.status_code == 200
        assert response.json()["client_id"] == "client-1"
        assert "client-1@example.com" in recipients(sent_emails)

    def test_proposal_by_entreprise_id(self, client, db_session, entreprise):
        payload = proposal(entrepriseRef=None, entreprise_id=entreprise.id)

        response = client.post("/api/missions/public", json=payload)

        assert response.status_code == 200
        assert response.json()["entreprise_id"] == entreprise.id

    def test_proposal_does_not_require_target_subscription(self, client, db_session, owner):
        create_entreprise(db_session, owner, status="canceled")

        response = client.post("/api/missions/public", json=proposal())

        assert response.status_code == 200

    def test_owner_creation_keeps_status_and_skips_notification(
        self, client, db_session, owner, entreprise, sent_emails
    ):
        response = client.post(
            "/api/missions", json=proposal(entrepriseRef=None, status="validated"), headers=auth_headers(owner)
        )

        assert response.status_code == 200
        assert response.json()["status"] == "validated"
        sent_emails.assert_not_awaited()

    def test_missing_entreprise_reference(self, client, db_session, entreprise):
        response = client.post("/api/missions/public", json=proposal(entrepriseRef=None))

        assert response.status_code == 400

    def test_unknown_entreprise(self, client, db_session, entreprise):
        response = client.post("/api/missions/public", json=proposal(entrepriseRef="inconnu"))

        assert response.status_code == 404

    @pytest.mark.parametrize(
        "overrides",
        [
            {"contact_email": "pas-un-email"},
            {"contact_phone": "  "},
            {"etablissement": ""},
            {"mode": "stage"},
            {"slots": [{"start": "2030-01-07T12:00:00", "end": "2030-01-07T09:00:00"}]},
        ],
    )
    def test_invalid_proposals(self, client, db_session, entreprise, overrides):
        response = client.post("/api/missions/public", json=proposal(**overrides))

        assert response.status_code == 422

    def test_notification_failure_does_not_fail_creation(self, client, db_session, entreprise, sent_emails):
        sent_emails.side_effect = RuntimeError("resend down")

        response = client.post("/api/missions/public", json=proposal())

        assert response.status_code == 200
        assert db_session.query(Mission).count() == 1


class TestMissionManagement:
    def test_owner_lists_entreprise_missions(self, client, db_session, owner, entreprise):
        create_mission(db_session, entreprise, status="proposed")
        create_mission(db_session, entreprise, status="validated")

        response = client.get("/api/missions", headers=auth_headers(owner))

        assert response.status_code == 200
        assert len(response.json()) == 2

        filtered = client.get("/api/missions", params={"status": "validated"}, headers=auth_headers(owner))
        assert [m["status"] for m in filtered.json()] == ["validated"]

    def test_client_lists_own_missions(self, client, db_session, client_profile, entreprise):
        create_mission(db_session, entreprise, client_id=client_profile.id)
        create_mission(db_session, entreprise)

        response = client.get("/api/missions", headers=auth_headers(client_profile))

        assert len(response.json()) == 1

    def test_client_reads_own_mission(self, client, db_session, client_profile, entreprise):
        mission = create_mission(db_session, entreprise, client_id=client_profile.id)

        response = client.get(f"/api/missions/{mission.id}", headers=auth_headers(client_profile))

        assert response.status_code == 200

    def test_stranger_cannot_read_mission(self, client, db_session, entreprise):
        mission = create_mission(db_session, entreprise)
        stranger = create_profile(db_session, "stranger")

        response = client.get(f"/api/missions/{mission.id}", headers=auth_headers(stranger))

        assert response.status_code == 403

    def test_validation_notifies_client(self, client, db_session, owner, entreprise, sent_emails):
        mission = create_mission(db_session, entreprise, status="proposed")

        response = client.put(
            f"/api/missions/{mission.id}", json={"status": "validated"}, headers=auth_headers(owner)
        )

        assert response.status_code == 200
        assert response.json()["status"] == "validated"
        assert recipients(sent_emails) == ["contact@hotel.example"]

    def test_update_replaces_slots(self, client, db_session, owner, entreprise):
        start = datetime(2030, 1, 7, 9, 0)
        mission = create_mission(db_session, entreprise, slots=[(start, start.replace(hour=10))])

        response = client.put(
            f"/api/missions/{mission.id}",
            json={"slots": [{"start": "2030-02-01T14:00:00", "end": "2030-02-01T18:00:00"}]},
            headers=auth_headers(owner),
        )

        assert response.status_code == 200
        slots = response.json()["slots"]
        assert len(slots) == 1
        assert slots[0]["start"].startswith("2030-02-01T14:00")
        assert db_session.query(Slot).filter(Slot.mission_id == mission.id).count() == 1

    def test_update_requires_subscription(self, client, db_session, owner):
        entreprise = create_entreprise(db_session, owner, status="past_due")
        mission = create_mission(db_session, entreprise)

        response = client.put(
            f"/api/missions/{mission.id}", json={"status": "validated"}, headers=auth_headers(owner)
        )

        assert response.status_code == 403

    @pytest.mark.parametrize("field", ["contact_email", "contact_phone", "etablissement", "status"])
    def test_update_rejects_null_required_field(self, client, db_session, owner, entreprise, field):
        mission = create_mission(db_session, entreprise)

        response = client.put(f"/api/missions/{mission.id}", json={field: None}, headers=auth_headers(owner))

        assert response.status_code == 400
        db_session.expire_all()
        assert db_session.get(Mission, mission.id).contact_email == "contact@hotel.example"

    def test_client_cannot_update(self, client, db_session, client_profile, entreprise):
        mission = create_mission(db_session, entreprise, client_id=client_profile.id)

        response = client.put(
            f"/api/missions/{mission.id}", json={"status": "validated"}, headers=auth_headers(client_profile)
        )

        assert response.status_code == 403

    def test_delete_removes_slots(self, client, db_session, owner, entreprise):
        start = datetime(2030, 1, 7, 9, 0)
        mission = create_mission(db_session, entreprise, slots=[(start, start.replace(hour=10))])

        response = client.delete(f"/api/missions/{mission.id}", headers=auth_headers(owner))

        assert response.status_code == 200
        db_session.expire_all()
        assert db_session.get(Mission, mission.id) is None
        assert db_session.query(Slot).count() == 0

    def test_send_mission(self, client, db_session, owner, entreprise, sent_emails):
        mission = create_mission(db_session, entreprise, status="validated")

        response = client.post(f"/api/missions/{mission.id}/send", headers=auth_headers(owner))

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert sent_emails.call_args.kwargs["to"] == "contact@hotel.example"

    def test_unknown_mission(self, client, db_session, owner, entreprise):
        response = client.get("/api/missions/999", headers=auth_headers(owner))

        assert response.status_code == 404
