"""API tests for client bookmarks and mission templates."""

import pytest

from extrabeam.models import ClientContact
from tests.conftest import auth_headers, create_profile

pytestmark = pytest.mark.api


class TestContacts:
    def test_bookmark_notifies_entreprise_once(self, client, db_session, client_profile, entreprise, sent_emails):
        headers = auth_headers(client_profile)

        first = client.post("/api/clients/contacts", json={"entrepriseRef": "jean-dupont"}, headers=headers)
        second = client.post("/api/clients/contacts", json={"entreprise_id": entreprise.id}, headers=headers)

        assert first.status_code == 200
        assert first.json()["contact"]["entreprise"]["slug"] == "jean-dupont"
        assert second.json() == {"message": "Contact déjà enregistré"}
        assert sent_emails.await_count == 1
        assert sent_emails.call_args.kwargs["to"] == "owner-1@example.com"
        assert db_session.query(ClientContact).count() == 1

    def test_list_contacts(self, client, db_session, client_profile, entreprise):
        headers = auth_headers(client_profile)
        client.post("/api/clients/contacts", json={"entrepriseRef": "jean-dupont"}, headers=headers)

        response = client.get("/api/clients/contacts", headers=headers)

        assert response.status_code == 200
        assert [c["entreprise"]["slug"] for c in response.json()] == ["jean-dupont"]

    def test_delete_contact(self, client, db_session, client_profile, entreprise):
        headers = auth_headers(client_profile)
        contact = client.post(
            "/api/clients/contacts", json={"entrepriseRef": "jean-dupont"}, headers=headers
        ).json()["contact"]

        response = client.delete(f"/api/clients/contacts/{contact['id']}", headers=headers)

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert client.delete(f"/api/clients/contacts/{contact['id']}", headers=headers).status_code == 404

    def test_cannot_delete_another_clients_contact(self, client, db_session, client_profile, entreprise):
        contact = client.post(
            "/api/clients/contacts", json={"entrepriseRef": "jean-dupont"}, headers=auth_headers(client_profile)
        ).json()["contact"]
        other = create_profile(db_session, "client-2")

        response = client.delete(f"/api/clients/contacts/{contact['id']}", headers=auth_headers(other))

        assert response.status_code == 404

    def test_unknown_entreprise(self, client, db_session, client_profile):
        response = client.post(
            "/api/clients/contacts", json={"entrepriseRef": "inconnu"}, headers=auth_headers(client_profile)
        )

        assert response.status_code == 404

    def test_entreprise_role_is_forbidden(self, client, db_session, owner, entreprise):
        response = client.get("/api/clients/contacts", headers=auth_headers(owner))

        assert response.status_code == 403


class TestTemplates:
    def test_template_lifecycle(self, client, db_session, client_profile):
        headers = auth_headers(client_profile)

        created = client.post(
            "/api/clients/templates",
            json={"nom": "Extra du samedi", "etablissement": "Hôtel de la Plage", "mode": "freelance"},
            headers=headers,
        )
        assert created.status_code == 200
        template_id = created.json()["id"]

        updated = client.put(
            f"/api/clients/templates/{template_id}", json={"instructions": "Tenue noire"}, headers=headers
        )
        assert updated.status_code == 200
        assert updated.json()["instructions"] == "Tenue noire"
        assert updated.json()["nom"] == "Extra du samedi"

        assert [t["id"] for t in client.get("/api/clients/templates", headers=headers).json()] == [template_id]

        deleted = client.delete(f"/api/clients/templates/{template_id}", headers=headers)
        assert deleted.json() == {"success": True}
        assert client.get("/api/clients/templates", headers=headers).json() == []

    def test_templates_are_private(self, client, db_session, client_profile):
        created = client.post(
            "/api/clients/templates",
            json={"nom": "Modèle", "etablissement": "Restaurant"},
            headers=auth_headers(client_profile),
        ).json()
        other = create_profile(db_session, "client-2")

        response = client.put(
            f"/api/clients/templates/{created['id']}", json={"nom": "Volé"}, headers=auth_headers(other)
        )

        assert response.status_code == 404

    @pytest.mark.parametrize("field", ["nom", "etablissement"])
    def test_update_rejects_null_required_field(self, client, db_session, client_profile, field):
        headers = auth_headers(client_profile)
        created = client.post(
            "/api/clients/templates", json={"nom": "Modèle", "etablissement": "Restaurant"}, headers=headers
        ).json()

        response = client.put(f"/api/clients/templates/{created['id']}", json={field: None}, headers=headers)

        assert response.status_code == 400

    @pytest.mark.parametrize(
        "payload",
        [
            {"nom": "", "etablissement": "Restaurant"},
            {"nom": "Modèle"},
            {"nom": "Modèle", "etablissement": "Restaurant", "mode": "stage"},
        ],
    )
    def test_invalid_templates(self, client, db_session, client_profile, payload):
        response = client.post("/api/clients/templates", json=payload, headers=auth_headers(client_profile))

        assert response.status_code == 422
