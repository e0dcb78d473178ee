"""
MJML Email Templates
Transactional emails for missions, invoices and bookmarks
"""

from typing import Optional

from .config import APP_URL

# App theme colors - Indigo/Slate color scheme
THEME = {
    "primary": "#4f46e5",
    "primary_dark": "#4338ca",
    "primary_light": "#e0e7ff",
    "background": "#f8fafc",
    "card_bg": "#ffffff",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
    "success": "#16a34a",
    "warning": "#f59e0b",
    "danger": "#ef4444",
}

LOGO_URL = f"{APP_URL}/logo-extrabeam.png"

MISSION_STATUS_LABELS = {
    "proposed": "proposée",
    "validated": "acceptée",
    "pending_payment": "en attente de paiement",
    "paid": "payée",
    "completed": "terminée",
    "refused": "refusée",
    "realized": "réalisée",
}

FACTURE_STATUS_LABELS = {
    "draft": "brouillon",
    "pending_payment": "en attente de paiement",
    "paid": "payée",
    "canceled": "annulée",
}


def format_amount(amount: Optional[float], devise: Optional[str] = "EUR") -> str:
    return f"{(amount or 0):,.2f} {(devise or 'EUR').upper()}".replace(",", " ")


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section padding="20px 0">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              font-weight="600"
              border-radius="8px"
              padding="18px 40px"
              font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="#ffffff" padding="32px 20px">
          <mj-column>
            <mj-image src="{LOGO_URL}" alt="ExtraBeam" width="140px" href="{APP_URL}" padding="0" />
          </mj-column>
        </mj-section>

        <mj-section background-color="#ffffff" padding="0 40px 48px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {title}
            </mj-text>

            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="#94a3b8" padding="0">
              © ExtraBeam. Tous droits réservés.
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def _details_block(rows: list[tuple[str, str]]) -> str:
    lines = "<br/>".join(f"<strong>{label} :</strong> {value}" for label, value in rows if value)
    return f"""
    <mj-text font-size="14px" color="{THEME['text_muted']}" padding="10px 0">
      {lines}
    </mj-text>
    """


# ============================================
# Invoices
# ============================================


def facture_status_entreprise_template(
    entreprise_name: str, numero: str, amount: str, status: str, facture_url: str
) -> str:
    """Billing status update for the issuing entreprise"""
    status_label = FACTURE_STATUS_LABELS.get(status, status)
    content = f"""
    <mj-text>Bonjour {entreprise_name},</mj-text>
    <mj-text>
      Le statut de votre facture <strong>{numero}</strong> est maintenant : <strong>{status_label}</strong>.
    </mj-text>
    {_details_block([("Montant TTC", amount)])}
    """
    return get_base_template(
        title=f"Facture {numero} : {status_label}",
        preview_text=f"Facture {numero} {status_label}",
        content_sections=content,
        cta_url=facture_url,
        cta_label="Voir la facture",
    )


def invoice_created_client_template(
    client_name: str, entreprise_name: str, numero: str, amount: str, description: Optional[str]
) -> str:
    """New invoice notification for the client"""
    content = f"""
    <mj-text>Bonjour {client_name},</mj-text>
    <mj-text>
      <strong>{entreprise_name}</strong> vous a adressé la facture <strong>{numero}</strong>.
    </mj-text>
    <mj-text align="center" font-size="32px" font-weight="700" color="{THEME['text_primary']}" padding="20px 0">
      {amount}
    </mj-text>
    {_details_block([("Description", description or "")])}
    """
    return get_base_template(
        title="Nouvelle facture",
        preview_text=f"Facture {numero} de {entreprise_name}",
        content_sections=content,
    )


def payment_link_template(
    client_name: str, entreprise_name: str, numero: str, amount: str, payment_url: str
) -> str:
    """Payment link for an invoice"""
    content = f"""
    <mj-text>Bonjour {client_name},</mj-text>
    <mj-text>
      Vous pouvez régler la facture <strong>{numero}</strong> de <strong>{entreprise_name}</strong>
      ({amount}) en ligne, de façon sécurisée.
    </mj-text>
    """
    return get_base_template(
        title=f"Payer la facture {numero}",
        preview_text=f"Lien de paiement pour la facture {numero}",
        content_sections=content,
        cta_url=payment_url,
        cta_label="Payer maintenant",
    )


def payment_received_template(recipient_name: str, numero: str, amount: str, is_entreprise: bool) -> str:
    """Payment confirmation, worded for the entreprise or the client"""
    if is_entreprise:
        message = f"Le paiement de la facture <strong>{numero}</strong> a été reçu."
    else:
        message = f"Merci ! Votre paiement pour la facture <strong>{numero}</strong> a bien été enregistré."
    content = f"""
    <mj-text>Bonjour {recipient_name},</mj-text>
    <mj-text>{message}</mj-text>
    <mj-text align="center" font-size="28px" font-weight="700" color="{THEME['success']}" padding="20px 0">
      {amount}
    </mj-text>
    """
    return get_base_template(
        title="Paiement reçu",
        preview_text=f"Facture {numero} payée",
        content_sections=content,
    )


# ============================================
# Missions
# ============================================


def mission_created_entreprise_template(
    entreprise_name: str,
    etablissement: str,
    contact_name: str,
    slots_summary: str,
    by_visitor: bool,
    dashboard_url: str,
) -> str:
    """New mission proposal for the entreprise"""
    origin = "un visiteur de votre page" if by_visitor else "un client ExtraBeam"
    content = f"""
    <mj-text>Bonjour {entreprise_name},</mj-text>
    <mj-text>Vous avez reçu une nouvelle proposition de mission de la part d'{origin}.</mj-text>
    {_details_block([("Établissement", etablissement), ("Contact", contact_name), ("Créneaux", slots_summary)])}
    """
    return get_base_template(
        title="Nouvelle mission proposée",
        preview_text=f"Nouvelle mission chez {etablissement}",
        content_sections=content,
        cta_url=dashboard_url,
        cta_label="Voir la mission",
    )


def mission_ack_client_template(client_name: str, entreprise_name: str, etablissement: str) -> str:
    """Acknowledgement sent to whoever proposed a mission"""
    content = f"""
    <mj-text>Bonjour {client_name},</mj-text>
    <mj-text>
      Votre proposition de mission pour <strong>{etablissement}</strong> a bien été transmise à
      <strong>{entreprise_name}</strong>. Vous serez prévenu(e) dès sa réponse.
    </mj-text>
    """
    return get_base_template(
        title="Proposition envoyée",
        preview_text=f"Mission transmise à {entreprise_name}",
        content_sections=content,
    )


def mission_status_client_template(
    client_name: str, entreprise_name: str, etablissement: str, status: str, slots_summary: str
) -> str:
    """Mission details or status change for the client"""
    status_label = MISSION_STATUS_LABELS.get(status, status)
    content = f"""
    <mj-text>Bonjour {client_name},</mj-text>
    <mj-text>
      La mission <strong>{etablissement}</strong> avec <strong>{entreprise_name}</strong> est
      <strong>{status_label}</strong>.
    </mj-text>
    {_details_block([("Créneaux", slots_summary)])}
    """
    return get_base_template(
        title=f"Mission {status_label}",
        preview_text=f"Mission {etablissement} {status_label}",
        content_sections=content,
    )


# ============================================
# Contacts
# ============================================


def entreprise_bookmarked_template(entreprise_name: str, client_name: str, profile_url: str) -> str:
    content = f"""
    <mj-text>Bonjour {entreprise_name},</mj-text>
    <mj-text><strong>{client_name}</strong> vous a ajouté à ses contacts sur ExtraBeam.</mj-text>
    """
    return get_base_template(
        title="Nouveau contact",
        preview_text=f"{client_name} vous a ajouté à ses contacts",
        content_sections=content,
        cta_url=profile_url,
        cta_label="Voir ma page",
    )
