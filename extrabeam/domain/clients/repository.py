"""Client repository - Database operations for client bookmarks and mission templates"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import ClientContact, MissionTemplate


class ClientRepository:
    """Repository for client-side database operations"""

    @staticmethod
    def get_contacts(db: Session, client_id: str) -> list[ClientContact]:
        """Bookmarked entreprises, newest first"""
        return (
            db.query(ClientContact)
            .options(joinedload(ClientContact.entreprise))
            .filter(ClientContact.client_id == client_id)
            .order_by(ClientContact.created_at.desc(), ClientContact.id.desc())
            .all()
        )

    @staticmethod
    def get_contact(db: Session, client_id: str, entreprise_id: int) -> Optional[ClientContact]:
        return (
            db.query(ClientContact)
            .filter(ClientContact.client_id == client_id, ClientContact.entreprise_id == entreprise_id)
            .first()
        )

    @staticmethod
    def create_contact(db: Session, client_id: str, entreprise_id: int) -> ClientContact:
        contact = ClientContact(client_id=client_id, entreprise_id=entreprise_id)
        db.add(contact)
        db.commit()
        db.refresh(contact)
        return contact

    @staticmethod
    def delete_contact(db: Session, client_id: str, contact_id: int) -> int:
        """Delete a bookmark of the client; returns the number of rows removed"""
        deleted = (
            db.query(ClientContact)
            .filter(ClientContact.id == contact_id, ClientContact.client_id == client_id)
            .delete(synchronize_session=False)
        )
        db.commit()
        return deleted

    @staticmethod
    def get_templates(db: Session, client_id: str) -> list[MissionTemplate]:
        return (
            db.query(MissionTemplate)
            .filter(MissionTemplate.client_id == client_id)
            .order_by(MissionTemplate.created_at.desc(), MissionTemplate.id.desc())
            .all()
        )

    @staticmethod
    def get_template(db: Session, client_id: str, template_id: int) -> Optional[MissionTemplate]:
        return (
            db.query(MissionTemplate)
            .filter(MissionTemplate.id == template_id, MissionTemplate.client_id == client_id)
            .first()
        )

    @staticmethod
    def create_template(db: Session, client_id: str, **fields) -> MissionTemplate:
        template = MissionTemplate(client_id=client_id, **fields)
        db.add(template)
        db.commit()
        db.refresh(template)
        return template

    @staticmethod
    def update_template(db: Session, template: MissionTemplate, **updates) -> MissionTemplate:
        for key, value in updates.items():
            setattr(template, key, value)
        db.commit()
        db.refresh(template)
        return template

    @staticmethod
    def delete_template(db: Session, template: MissionTemplate) -> None:
        db.delete(template)
        db.commit()
