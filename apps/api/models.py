from sqlalchemy import (
    Column, Integer, Boolean, CheckConstraint, Float, Date, DateTime, ForeignKey,
    Text, String, Index, UniqueConstraint, JSON, Uuid,
)
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import JSONB
from core.database import Base
from core.clock import utcnow
import enum
import uuid

# Plan/template day lists are document-shaped; JSONB on PostgreSQL.
JSONDocument = JSON().with_variant(JSONB(), "postgresql")


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    TRAINER = "trainer"
    CLIENT = "client"


class RequestStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class NotificationType(str, enum.Enum):
    MESSAGE = "message"
    PLAN = "plan"
    SYSTEM = "system"
    ALERT = "alert"


class UserSpecialty(Base):
    """Trainer profile -> specialty link."""
    __tablename__ = "user_specialty"

    user_id = Column(Uuid, ForeignKey("app_user.id", ondelete="CASCADE"), primary_key=True)
    specialty_id = Column(Uuid, ForeignKey("specialty.id", ondelete="CASCADE"), primary_key=True)


class User(Base):
    __tablename__ = "app_user"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
    username = Column(String(64), unique=True, nullable=False)
    password_hash = Column(Text, nullable=False)
    role = Column(String(16), default=UserRole.CLIENT.value, nullable=False)  # 'admin', 'trainer', 'client'

    is_active = Column(Boolean, default=True, nullable=False)
    # Trainers must be validated by an admin before clients can find them
    validated = Column(Boolean, default=False, nullable=False)

    # --- PAIRING ---
    # Set only through the pairing ledger (accept / remove), never by profile edits.
    assigned_trainer_id = Column(Uuid, ForeignKey("app_user.id", ondelete="SET NULL"), nullable=True, index=True)

    # --- NOTIFICATION OPT-INS ---
    notify_messages = Column(Boolean, default=True, nullable=False)
    notify_plans = Column(Boolean, default=True, nullable=False)
    notify_system = Column(Boolean, default=True, nullable=False)

    # --- PROFILE ---
    name = Column(Text, default="", nullable=False)
    email = Column(Text, default="", nullable=False)
    bio = Column(Text, default="", nullable=False)
    goal = Column(Text, default="", nullable=False)
    avatar_url = Column(Text, nullable=True)
    height = Column(Float, nullable=True)  # cm
    birth_date = Column(Date, nullable=True)

    # Body metrics (kg). weight_history holds the time-ordered readings.
    weight = Column(Float, nullable=True)
    initial_weight = Column(Float, nullable=True)
    last_weight_update = Column(DateTime(timezone=True), nullable=True)
    weight_lost = Column(Float, default=0, nullable=False)

    # Trainer lifetime counter; only ever corrected upwards
    total_plans = Column(Integer, default=0, nullable=False)

    assigned_trainer = relationship("User", remote_side=[id], foreign_keys=[assigned_trainer_id])
    specialties = relationship("Specialty", secondary="user_specialty", order_by="Specialty.name")
    weight_history = relationship(
        "WeightEntry",
        order_by="WeightEntry.recorded_at",
        cascade="all, delete-orphan",
        back_populates="user",
    )

    __table_args__ = (
        CheckConstraint("role IN ('admin', 'trainer', 'client')", name="ck_app_user_role"),
        Index("ix_app_user_role", "role"),
    )

    @property
    def display_name(self) -> str:
        return self.name or self.username

    @property
    def notification_settings(self) -> dict:
        return {
            "messages": self.notify_messages,
            "plans": self.notify_plans,
            "system": self.notify_system,
        }


class WeightEntry(Base):
    __tablename__ = "weight_entry"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False, index=True)
    weight = Column(Float, nullable=False)
    recorded_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    user = relationship("User", back_populates="weight_history")


class Specialty(Base):
    __tablename__ = "specialty"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    name = Column(String(50), unique=True, nullable=False)
    slug = Column(String(64), unique=True, nullable=False)
    description = Column(String(300), default="", nullable=False)
    icon = Column(Text, nullable=True)
    active = Column(Boolean, default=True, nullable=False)


class TrainerChangeRequest(Base):
    """
    A client's request to be coached by a trainer.

    pending -> accepted | rejected. Rows are never deleted (audit trail).
    """
    __tablename__ = "trainer_change_request"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
    client_id = Column(Uuid, ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False, index=True)
    current_trainer_id = Column(Uuid, ForeignKey("app_user.id", ondelete="SET NULL"), nullable=True)
    new_trainer_id = Column(Uuid, ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(16), default=RequestStatus.PENDING.value, nullable=False)
    resolved_at = Column(DateTime(timezone=True), nullable=True)

    client = relationship("User", foreign_keys=[client_id])
    current_trainer = relationship("User", foreign_keys=[current_trainer_id])
    new_trainer = relationship("User", foreign_keys=[new_trainer_id])

    __table_args__ = (
        CheckConstraint("status IN ('pending', 'accepted', 'rejected')", name="ck_trainer_change_request_status"),
        Index("ix_trainer_change_request_pending", "new_trainer_id", "status"),
    )


class Plan(Base):
    """The single active workout plan of a client."""
    __tablename__ = "plan"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    trainer_id = Column(Uuid, ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False, index=True)
    # unique: at most one plan per client
    client_id = Column(Uuid, ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False, unique=True)
    name = Column(Text, default="Custom Plan", nullable=False)
    weeks = Column(Integer, default=4, nullable=False)
    sessions_per_week = Column(Integer, default=4, nullable=False)
    # [{"day_of_week": "Monday", "exercises": [{"name", "sets", "reps", "rest", "notes", "media"}]}]
    days = Column(JSONDocument, default=list, nullable=False)
    notes = Column(Text, default="", nullable=False)
    is_from_template = Column(Boolean, default=False, nullable=False)

    trainer = relationship("User", foreign_keys=[trainer_id])
    client = relationship("User", foreign_keys=[client_id])

    __table_args__ = (
        CheckConstraint("sessions_per_week IN (3, 4, 5)", name="ck_plan_sessions_per_week"),
    )


class PlanTemplate(Base):
    """Reusable, trainer-owned plan blueprint."""
    __tablename__ = "plan_template"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
    trainer_id = Column(Uuid, ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(Text, nullable=False)
    weeks = Column(Integer, default=4, nullable=False)
    sessions_per_week = Column(Integer, default=4, nullable=False)
    days = Column(JSONDocument, default=list, nullable=False)
    notes = Column(Text, default="", nullable=False)

    __table_args__ = (
        CheckConstraint("sessions_per_week IN (3, 4, 5)", name="ck_plan_template_sessions_per_week"),
        CheckConstraint("weeks >= 1", name="ck_plan_template_weeks"),
    )


class Entry(Base):
    """Per-client, per-day workout record."""
    __tablename__ = "entry"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
    client_id = Column(Uuid, ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)
    completed = Column(Boolean, default=False, nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    reason = Column(Text, nullable=True)
    proof_media = Column(Text, nullable=True)  # URL in the media store
    calories_burned = Column(Float, default=0, nullable=False)
    notes = Column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("client_id", "date", name="uq_entry_client_date"),
        CheckConstraint("calories_burned >= 0", name="ck_entry_calories_non_negative"),
        Index("ix_entry_client_completed_at", "client_id", "completed_at"),
    )


class Message(Base):
    __tablename__ = "message"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    sender_id = Column(Uuid, ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False)
    recipient_id = Column(Uuid, ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False)
    text = Column(Text, nullable=False)
    read = Column(Boolean, default=False, nullable=False)

    sender = relationship("User", foreign_keys=[sender_id])
    recipient = relationship("User", foreign_keys=[recipient_id])

    __table_args__ = (
        Index("ix_message_pair", "sender_id", "recipient_id"),
        Index("ix_message_recipient_unread", "recipient_id", "read"),
    )


class MessageHiddenFor(Base):
    """Per-user soft delete: the message is hidden from `user_id` only."""
    __tablename__ = "message_hidden_for"

    message_id = Column(Uuid, ForeignKey("message.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(Uuid, ForeignKey("app_user.id", ondelete="CASCADE"), primary_key=True)
    hidden_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class Notification(Base):
    __tablename__ = "notification"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    recipient_id = Column(Uuid, ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False)
    type = Column(String(16), nullable=False)  # 'message', 'plan', 'system', 'alert'
    content = Column(Text, nullable=False)
    # Sender for message/alert notifications, plan/entry/request id otherwise
    related_id = Column(Uuid, nullable=True)
    is_read = Column(Boolean, default=False, nullable=False)

    __table_args__ = (
        CheckConstraint("type IN ('message', 'plan', 'system', 'alert')", name="ck_notification_type"),
        Index("ix_notification_recipient_created", "recipient_id", "created_at"),
        Index("ix_notification_recipient_type_read", "recipient_id", "type", "is_read"),
    )
