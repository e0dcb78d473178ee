"""
Entreprise access control

Resolves entreprise references (slug or numeric id), checks ownership and
gates owner features behind an active subscription.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from .models import Entreprise, Profile

logger = logging.getLogger(__name__)

SUBSCRIPTION_STATUSES = ("active", "trialing", "past_due", "canceled", "incomplete")
ACTIVE_SUBSCRIPTION_STATUSES = ("active", "trialing")


def normalize_subscription_status(status: Optional[str]) -> str:
    """Map a stored vendor status onto the closed status set (unknown -> incomplete)"""
    value = (status or "").strip().lower()
    if value == "cancelled":
        value = "canceled"
    return value if value in SUBSCRIPTION_STATUSES else "incomplete"


def is_subscription_active(
    status: Optional[str], period_end: Optional[datetime], now: Optional[datetime] = None
) -> bool:
    if normalize_subscription_status(status) not in ACTIVE_SUBSCRIPTION_STATUSES:
        return False
    if period_end is None:
        return True
    return period_end > (now or datetime.utcnow())


def resolve_entreprise_ref(user: Optional[Profile], ref: Optional[str]) -> Optional[str]:
    """Explicit reference when given, otherwise the caller's own slug"""
    if ref is not None and str(ref).strip():
        return str(ref).strip()
    if user is not None and user.slug:
        return user.slug
    return None


def find_entreprise(db: Session, ref: Optional[str]) -> Entreprise:
    """Numeric references match the id, anything else matches the slug"""
    if not ref:
        raise HTTPException(status_code=400, detail="Référence entreprise manquante")

    ref = str(ref).strip()
    query = db.query(Entreprise)
    if ref.isdigit():
        entreprise = query.filter(Entreprise.id == int(ref)).first()
    else:
        entreprise = query.filter(Entreprise.slug == ref).first()

    if not entreprise:
        raise HTTPException(status_code=404, detail="Entreprise introuvable")
    return entreprise


def find_entreprise_for_user(db: Session, user: Profile, ref: Optional[str] = None) -> Entreprise:
    """Resolve the entreprise a signed-in user is acting on, falling back to the one they own"""
    resolved = resolve_entreprise_ref(user, ref)
    if resolved:
        return find_entreprise(db, resolved)

    owned = db.query(Entreprise).filter(Entreprise.user_id == user.id).order_by(Entreprise.id).first()
    if not owned:
        raise HTTPException(status_code=404, detail="Entreprise introuvable")
    return owned


def can_access_entreprise(user: Optional[Profile], entreprise: Entreprise) -> bool:
    if user is None:
        return False
    if user.role == "admin":
        return True
    return user.id == entreprise.user_id


def assert_can_access_entreprise(user: Optional[Profile], entreprise: Entreprise) -> None:
    if not can_access_entreprise(user, entreprise):
        logger.warning(
            f"🚫 Access denied to entreprise {entreprise.id} for user {getattr(user, 'id', None)}"
        )
        raise HTTPException(status_code=403, detail="Accès refusé")


def assert_active_subscription(entreprise: Entreprise, now: Optional[datetime] = None) -> None:
    status = normalize_subscription_status(entreprise.subscription_status)
    if status not in ACTIVE_SUBSCRIPTION_STATUSES:
        raise HTTPException(status_code=403, detail="Abonnement requis")

    period_end = entreprise.subscription_period_end
    if period_end is not None and period_end <= (now or datetime.utcnow()):
        raise HTTPException(status_code=403, detail="Abonnement expiré")


def get_owned_entreprise(
    db: Session, user: Profile, ref: Optional[str], require_subscription: bool = True
) -> Entreprise:
    """Resolve, authorize and (optionally) subscription-gate an owner operation"""
    entreprise = find_entreprise_for_user(db, user, ref)
    assert_can_access_entreprise(user, entreprise)
    if require_subscription:
        assert_active_subscription(entreprise)
    return entreprise
