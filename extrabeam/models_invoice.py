"""
Invoice (facture) model for entreprise billing of missions
"""

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

FACTURE_STATUSES = ("draft", "pending_payment", "paid", "canceled")


class Facture(Base):
    """Invoice issued by an entreprise, optionally derived from a mission"""

    __tablename__ = "factures"

    id = Column(Integer, primary_key=True, index=True)
    entreprise_id = Column(Integer, ForeignKey("entreprise.id"), nullable=False, index=True)
    mission_id = Column(Integer, ForeignKey("missions.id"), nullable=True, index=True)

    # Invoice details
    numero = Column(String(50), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)
    contact_email = Column(String(255), nullable=True)  # Recipient when no client account
    date_emission = Column(DateTime, server_default=func.now())

    # Pricing (recomputed from the mission slots when a mission is linked)
    hours = Column(Float, nullable=True)
    rate = Column(Float, nullable=True)
    montant_ht = Column(Float, nullable=False, default=0)
    tva = Column(Float, default=0)
    montant_ttc = Column(Float, nullable=False, default=0)

    # Status
    status = Column(String(30), default="draft", nullable=False)  # draft, pending_payment, paid, canceled

    # Stripe payment
    payment_link = Column(String(1000), nullable=True)
    stripe_session_id = Column(String(255), nullable=True, index=True)
    stripe_payment_intent = Column(String(255), nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    entreprise = relationship("Entreprise", back_populates="factures")
    mission = relationship("Mission", back_populates="factures")
