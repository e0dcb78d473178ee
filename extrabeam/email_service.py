"""
Email Service using Resend
Provides email functionality using MJML templates for responsive design
"""

import logging
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from .config import APP_URL, EMAIL_FROM_ADDRESS, RESEND_API_KEY
from .email_templates import (
    entreprise_bookmarked_template,
    facture_status_entreprise_template,
    invoice_created_client_template,
    mission_ack_client_template,
    mission_created_entreprise_template,
    mission_status_client_template,
    payment_link_template,
    payment_received_template,
)

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


class EmailDeliveryError(Exception):
    """Raised when an email cannot be compiled or sent"""

    pass


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise EmailDeliveryError(f"Failed to compile MJML template: {str(e)}") from e

    if isinstance(result, dict):
        errors, html = result.get("errors"), result.get("html")
    else:
        errors, html = getattr(result, "errors", None), getattr(result, "html", None)
    if errors:
        logger.warning(f"MJML compilation warnings: {errors}")
    return html if html is not None else str(result)


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    from_address: Optional[str] = None,
    reply_to: Optional[str] = None,
) -> dict:
    """
    Send an email through Resend

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML template content (will be compiled to HTML)
        from_address: Optional custom from address
        reply_to: Optional reply-to address

    Returns:
        Send response dict
    """
    if not RESEND_API_KEY:
        logger.error("❌ No email service configured - RESEND_API_KEY missing")
        raise EmailDeliveryError("Email service not configured")

    html_content = compile_mjml_to_html(mjml_content)
    recipients = [to] if isinstance(to, str) else to

    try:
        logger.info(f"📧 Sending email via Resend to: {recipients}")
        email_data = {
            "from": from_address or EMAIL_FROM_ADDRESS,
            "to": recipients,
            "subject": subject,
            "html": html_content,
        }
        if reply_to:
            email_data["reply_to"] = reply_to

        response = resend.Emails.send(email_data)
        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return response
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise EmailDeliveryError(f"Failed to send email: {str(e)}") from e


# ============================================
# Pre-built emails for domain events
# ============================================


async def send_facture_status_email(
    to: str, entreprise_name: str, numero: str, amount: str, status: str
) -> dict:
    mjml_content = facture_status_entreprise_template(
        entreprise_name, numero, amount, status, f"{APP_URL}/dashboard/factures"
    )
    return await send_email(to=to, subject=f"Facture {numero} mise à jour", mjml_content=mjml_content)


async def send_invoice_created_email(
    to: str,
    client_name: str,
    entreprise_name: str,
    numero: str,
    amount: str,
    description: Optional[str] = None,
    reply_to: Optional[str] = None,
) -> dict:
    mjml_content = invoice_created_client_template(
        client_name, entreprise_name, numero, amount, description
    )
    return await send_email(
        to=to,
        subject=f"Nouvelle facture {numero} de {entreprise_name}",
        mjml_content=mjml_content,
        reply_to=reply_to,
    )


async def send_payment_link_email(
    to: str, client_name: str, entreprise_name: str, numero: str, amount: str, payment_url: str
) -> dict:
    mjml_content = payment_link_template(client_name, entreprise_name, numero, amount, payment_url)
    return await send_email(to=to, subject=f"Lien de paiement - facture {numero}", mjml_content=mjml_content)


async def send_payment_received_email(
    to: str, recipient_name: str, numero: str, amount: str, is_entreprise: bool
) -> dict:
    mjml_content = payment_received_template(recipient_name, numero, amount, is_entreprise)
    return await send_email(to=to, subject=f"Paiement reçu - facture {numero}", mjml_content=mjml_content)


async def send_mission_created_email(
    to: str,
    entreprise_name: str,
    etablissement: str,
    contact_name: str,
    slots_summary: str,
    by_visitor: bool,
) -> dict:
    mjml_content = mission_created_entreprise_template(
        entreprise_name,
        etablissement,
        contact_name,
        slots_summary,
        by_visitor,
        f"{APP_URL}/dashboard/missions",
    )
    return await send_email(to=to, subject="Nouvelle proposition de mission", mjml_content=mjml_content)


async def send_mission_ack_email(
    to: str, client_name: str, entreprise_name: str, etablissement: str
) -> dict:
    mjml_content = mission_ack_client_template(client_name, entreprise_name, etablissement)
    return await send_email(to=to, subject="Votre proposition a été envoyée", mjml_content=mjml_content)


async def send_mission_status_email(
    to: str,
    client_name: str,
    entreprise_name: str,
    etablissement: str,
    status: str,
    slots_summary: str,
) -> dict:
    mjml_content = mission_status_client_template(
        client_name, entreprise_name, etablissement, status, slots_summary
    )
    return await send_email(to=to, subject=f"Mission {etablissement}", mjml_content=mjml_content)


async def send_entreprise_bookmarked_email(
    to: str, entreprise_name: str, client_name: str, slug: str
) -> dict:
    mjml_content = entreprise_bookmarked_template(
        entreprise_name, client_name, f"{APP_URL}/entreprise/{slug}"
    )
    return await send_email(to=to, subject="Un client vous a ajouté à ses contacts", mjml_content=mjml_content)
