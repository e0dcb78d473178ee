"""
Notification Service
Maps domain events (missions, invoices, bookmarks) to transactional emails.
Delivery failures are logged and never propagated to the caller.
"""

import logging
from typing import Awaitable, Callable, Optional

from sqlalchemy.orm import Session

from ... import email_service
from ...email_templates import format_amount
from ...models import Entreprise, Mission, Profile
from ...models_invoice import Facture

logger = logging.getLogger(__name__)


def entreprise_recipient(entreprise: Entreprise) -> Optional[str]:
    if entreprise.email:
        return entreprise.email
    return entreprise.owner.email if entreprise.owner else None


def mission_client_recipient(mission: Mission) -> tuple[Optional[str], str]:
    """Client account email first, then the contact typed on the mission"""
    if mission.client and mission.client.email:
        return mission.client.email, mission.client.full_name
    return mission.contact_email, mission.contact_name or mission.contact_email or ""


def facture_client_recipient(facture: Facture) -> tuple[Optional[str], str]:
    if facture.mission:
        email, name = mission_client_recipient(facture.mission)
        if email:
            return email, name
    return facture.contact_email, facture.contact_email or ""


def slots_summary(mission: Mission) -> str:
    return "; ".join(
        f"{slot.start:%d/%m/%Y %H:%M} - {slot.end:%H:%M}" for slot in mission.slots
    )


class NotificationService:
    """Service for outbound domain notifications"""

    def __init__(self, db: Session):
        self.db = db

    async def _deliver(
        self, event: str, recipient: Optional[str], send: Callable[[], Awaitable[dict]]
    ) -> bool:
        if not recipient:
            logger.warning(f"⚠️ No recipient for {event} notification, skipping")
            return False
        try:
            logger.info(f"📧 Sending {event} notification to {recipient}")
            await send()
            logger.info(f"✅ {event} notification sent to {recipient}")
            return True
        except Exception as e:
            logger.error(f"❌ Failed to send {event} notification to {recipient}: {e}")
            return False

    # ------------------------------------------------------------------
    # Invoices
    # ------------------------------------------------------------------

    async def notify_facture_created(self, facture: Facture) -> dict:
        """Billing status to the entreprise, new invoice to the client"""
        entreprise = facture.entreprise
        amount = format_amount(facture.montant_ttc, entreprise.devise)
        client_email, client_name = facture_client_recipient(facture)

        entreprise_email = entreprise_recipient(entreprise)
        entreprise_sent = await self._deliver(
            "facture_status",
            entreprise_email,
            lambda: email_service.send_facture_status_email(
                to=entreprise_email,
                entreprise_name=entreprise.display_name,
                numero=facture.numero,
                amount=amount,
                status=facture.status,
            ),
        )
        client_sent = await self._deliver(
            "invoice_created",
            client_email,
            lambda: email_service.send_invoice_created_email(
                to=client_email,
                client_name=client_name,
                entreprise_name=entreprise.display_name,
                numero=facture.numero,
                amount=amount,
                description=facture.description,
                reply_to=entreprise_email,
            ),
        )
        return {"entreprise": entreprise_sent, "client": client_sent}

    async def send_facture_notification(self, facture: Facture) -> dict:
        """Invoice emails plus the payment link when one exists"""
        result = await self.notify_facture_created(facture)

        result["payment_link"] = False
        if facture.payment_link:
            client_email, client_name = facture_client_recipient(facture)
            entreprise = facture.entreprise
            result["payment_link"] = await self._deliver(
                "payment_link",
                client_email,
                lambda: email_service.send_payment_link_email(
                    to=client_email,
                    client_name=client_name,
                    entreprise_name=entreprise.display_name,
                    numero=facture.numero,
                    amount=format_amount(facture.montant_ttc, entreprise.devise),
                    payment_url=facture.payment_link,
                ),
            )
        return result

    async def notify_facture_paid(self, facture: Facture) -> dict:
        entreprise = facture.entreprise
        amount = format_amount(facture.montant_ttc, entreprise.devise)
        entreprise_email = entreprise_recipient(entreprise)
        client_email, client_name = facture_client_recipient(facture)

        entreprise_sent = await self._deliver(
            "payment_received",
            entreprise_email,
            lambda: email_service.send_payment_received_email(
                to=entreprise_email,
                recipient_name=entreprise.display_name,
                numero=facture.numero,
                amount=amount,
                is_entreprise=True,
            ),
        )
        client_sent = await self._deliver(
            "payment_confirmation",
            client_email,
            lambda: email_service.send_payment_received_email(
                to=client_email,
                recipient_name=client_name,
                numero=facture.numero,
                amount=amount,
                is_entreprise=False,
            ),
        )
        return {"entreprise": entreprise_sent, "client": client_sent}

    # ------------------------------------------------------------------
    # Missions
    # ------------------------------------------------------------------

    async def notify_mission_created(self, mission: Mission, by_visitor: bool) -> dict:
        """New proposal to the entreprise and an acknowledgement to the proposer"""
        entreprise = mission.entreprise
        entreprise_email = entreprise_recipient(entreprise)
        client_email, client_name = mission_client_recipient(mission)

        entreprise_sent = await self._deliver(
            "mission_created_by_visitor" if by_visitor else "mission_created_by_client",
            entreprise_email,
            lambda: email_service.send_mission_created_email(
                to=entreprise_email,
                entreprise_name=entreprise.display_name,
                etablissement=mission.etablissement,
                contact_name=client_name,
                slots_summary=slots_summary(mission),
                by_visitor=by_visitor,
            ),
        )
        client_sent = await self._deliver(
            "mission_ack",
            client_email,
            lambda: email_service.send_mission_ack_email(
                to=client_email,
                client_name=client_name,
                entreprise_name=entreprise.display_name,
                etablissement=mission.etablissement,
            ),
        )
        return {"entreprise": entreprise_sent, "client": client_sent}

    async def send_mission_notification(self, mission: Mission) -> dict:
        """Current mission status and slots to the client"""
        client_email, client_name = mission_client_recipient(mission)
        sent = await self._deliver(
            f"mission_{mission.status}",
            client_email,
            lambda: email_service.send_mission_status_email(
                to=client_email,
                client_name=client_name,
                entreprise_name=mission.entreprise.display_name,
                etablissement=mission.etablissement,
                status=mission.status,
                slots_summary=slots_summary(mission),
            ),
        )
        return {"client": sent}

    async def notify_mission_accepted(self, mission: Mission) -> dict:
        return await self.send_mission_notification(mission)

    # ------------------------------------------------------------------
    # Contacts
    # ------------------------------------------------------------------

    async def notify_entreprise_bookmarked(self, entreprise: Entreprise, client: Profile) -> dict:
        entreprise_email = entreprise_recipient(entreprise)
        sent = await self._deliver(
            "entreprise_bookmarked",
            entreprise_email,
            lambda: email_service.send_entreprise_bookmarked_email(
                to=entreprise_email,
                entreprise_name=entreprise.display_name,
                client_name=client.full_name,
                slug=entreprise.slug,
            ),
        )
        return {"entreprise": sent}
