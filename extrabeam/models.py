from sqlalchemy import (
    JSON,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

PROFILE_ROLES = ("client", "freelance", "entreprise", "admin")
ENTREPRISE_ROLES = ("freelance", "entreprise", "admin")

MISSION_STATUSES = (
    "proposed",
    "validated",
    "pending_payment",
    "paid",
    "completed",
    "refused",
    "realized",
)
MISSION_MODES = ("freelance", "salarié")


class Profile(Base):
    """Authenticated account, keyed by the auth provider subject"""

    __tablename__ = "profiles"

    id = Column(String(64), primary_key=True, index=True)  # Supabase auth user id
    email = Column(String(255), index=True, nullable=True)
    role = Column(String(20), nullable=False, default="client")  # client, freelance, entreprise, admin
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    slug = Column(String(255), nullable=True, index=True)  # Slug of the owned entreprise, if any
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    entreprises = relationship("Entreprise", back_populates="owner")
    contacts = relationship("ClientContact", back_populates="client", cascade="all, delete-orphan")
    mission_templates = relationship(
        "MissionTemplate", back_populates="client", cascade="all, delete-orphan"
    )

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p) or (self.email or "")


class Entreprise(Base):
    """Freelance business page (CV) with its cached subscription state"""

    __tablename__ = "entreprise"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), ForeignKey("profiles.id"), nullable=False, index=True)
    slug = Column(String(255), unique=True, index=True, nullable=False)

    # Public profile
    nom = Column(String(255), nullable=True)
    prenom = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    telephone = Column(String(50), nullable=True)
    metier = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    ville = Column(String(255), nullable=True)
    taux_horaire = Column(Float, nullable=True)  # Hourly rate used for invoices
    devise = Column(String(10), default="EUR")

    # Subscription (written only by the subscription service)
    subscription_status = Column(String(50), default="incomplete", nullable=False)
    subscription_plan = Column(String(20), nullable=True)  # monthly, annual
    subscription_period_end = Column(DateTime, nullable=True)
    stripe_customer_id = Column(String(255), nullable=True, index=True)
    stripe_subscription_id = Column(String(255), nullable=True, index=True)

    # Referral program
    referral_code = Column(String(100), nullable=True, index=True)  # Own shareable code
    referred_by = Column(String(100), nullable=True)  # Code used at first checkout
    referral_rewards_pending = Column(Integer, default=0, nullable=False)
    referral_credited_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    owner = relationship("Profile", back_populates="entreprises")
    missions = relationship("Mission", back_populates="entreprise", cascade="all, delete-orphan")
    slots = relationship("Slot", back_populates="entreprise", cascade="all, delete-orphan")
    unavailabilities = relationship(
        "Unavailability", back_populates="entreprise", cascade="all, delete-orphan"
    )
    factures = relationship("Facture", back_populates="entreprise", cascade="all, delete-orphan")

    @property
    def display_name(self) -> str:
        return " ".join(p for p in (self.prenom, self.nom) if p) or self.slug


class Mission(Base):
    """Staffing mission proposed by a client (or an anonymous visitor) to an entreprise"""

    __tablename__ = "missions"

    id = Column(Integer, primary_key=True, index=True)
    entreprise_id = Column(Integer, ForeignKey("entreprise.id"), nullable=False, index=True)
    client_id = Column(String(64), ForeignKey("profiles.id"), nullable=True, index=True)
    freelance_id = Column(String(64), nullable=True)

    # Contact
    contact_name = Column(String(255), nullable=True)
    contact_email = Column(String(255), nullable=False)
    contact_phone = Column(String(50), nullable=False)

    # Location
    etablissement = Column(String(255), nullable=False)
    etablissement_adresse_ligne1 = Column(String(255), nullable=True)
    etablissement_adresse_ligne2 = Column(String(255), nullable=True)
    etablissement_code_postal = Column(String(20), nullable=True)
    etablissement_ville = Column(String(255), nullable=True)
    etablissement_pays = Column(String(100), nullable=True)

    instructions = Column(Text, nullable=True)
    devis_url = Column(String(500), nullable=True)
    mode = Column(String(20), default="freelance")  # freelance, salarié
    status = Column(String(30), default="proposed", nullable=False, index=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    entreprise = relationship("Entreprise", back_populates="missions")
    client = relationship("Profile", foreign_keys=[client_id])
    slots = relationship("Slot", back_populates="mission", order_by="Slot.start")
    factures = relationship("Facture", back_populates="mission")


class Slot(Base):
    """Calendar time range, optionally booked by a mission of the same entreprise"""

    __tablename__ = "slots"

    id = Column(Integer, primary_key=True, index=True)
    entreprise_id = Column(Integer, ForeignKey("entreprise.id"), nullable=False, index=True)
    mission_id = Column(
        Integer, ForeignKey("missions.id", ondelete="SET NULL"), nullable=True, index=True
    )
    start = Column(DateTime, nullable=False, index=True)
    end = Column(DateTime, nullable=False)
    title = Column(String(255), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    entreprise = relationship("Entreprise", back_populates="slots")
    mission = relationship("Mission", back_populates="slots")


class Unavailability(Base):
    """Recurring blocked time, expanded into dated occurrences on read"""

    __tablename__ = "unavailabilities"

    id = Column(Integer, primary_key=True, index=True)
    entreprise_id = Column(Integer, ForeignKey("entreprise.id"), nullable=False, index=True)
    title = Column(String(255), default="Unavailability")
    start_time = Column(String(8), nullable=False)  # HH:MM
    end_time = Column(String(8), nullable=False)  # HH:MM
    recurrence_type = Column(String(20), default="none", nullable=False)  # none, daily, weekly, monthly
    start_date = Column(Date, nullable=False)
    recurrence_end = Column(Date, nullable=True)  # Open-ended when null
    weekday = Column(Integer, nullable=True)  # 0 = Sunday ... 6 = Saturday
    exceptions = Column(JSON, default=list)  # ISO dates skipped by the expansion
    created_at = Column(DateTime, server_default=func.now())

    entreprise = relationship("Entreprise", back_populates="unavailabilities")


class ClientContact(Base):
    """Entreprise bookmarked by a client"""

    __tablename__ = "client_contacts"
    __table_args__ = (UniqueConstraint("client_id", "entreprise_id", name="uq_client_contact"),)

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(String(64), ForeignKey("profiles.id"), nullable=False, index=True)
    entreprise_id = Column(Integer, ForeignKey("entreprise.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    client = relationship("Profile", back_populates="contacts")
    entreprise = relationship("Entreprise")


class MissionTemplate(Base):
    """Reusable mission form prefill saved by a client"""

    __tablename__ = "mission_templates"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(String(64), ForeignKey("profiles.id"), nullable=False, index=True)
    nom = Column(String(255), nullable=False)
    etablissement = Column(String(255), nullable=False)
    contact_name = Column(String(255), nullable=True)
    contact_email = Column(String(255), nullable=True)
    contact_phone = Column(String(50), nullable=True)
    instructions = Column(Text, nullable=True)
    etablissement_adresse_ligne1 = Column(String(255), nullable=True)
    etablissement_adresse_ligne2 = Column(String(255), nullable=True)
    etablissement_code_postal = Column(String(20), nullable=True)
    etablissement_ville = Column(String(255), nullable=True)
    etablissement_pays = Column(String(100), nullable=True)
    mode = Column(String(20), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    client = relationship("Profile", back_populates="mission_templates")
