from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime, date
from uuid import UUID
from typing import Optional, List, Dict, Literal


ALLOWED_SESSIONS_PER_WEEK = (3, 4, 5)


def _check_sessions_per_week(value: int) -> int:
    if value not in ALLOWED_SESSIONS_PER_WEEK:
        raise ValueError("sessions_per_week must be 3, 4 or 5")
    return value


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

class SpecialtyBrief(BaseModel):
    id: UUID
    name: str

    model_config = ConfigDict(from_attributes=True)


class NotificationSettings(BaseModel):
    messages: bool
    plans: bool
    system: bool


class WeightPoint(BaseModel):
    weight: float
    recorded_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserCard(BaseModel):
    """Public-facing user summary used inside other payloads."""
    id: UUID
    username: str
    name: str = ""
    avatar_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class UserResponse(BaseModel):
    id: UUID
    created_at: datetime
    username: str
    role: str
    is_active: bool
    validated: bool
    assigned_trainer_id: Optional[UUID] = None
    notification_settings: NotificationSettings
    name: str = ""
    email: str = ""
    bio: str = ""
    goal: str = ""
    avatar_url: Optional[str] = None
    height: Optional[float] = None
    birth_date: Optional[date] = None
    weight: Optional[float] = None
    initial_weight: Optional[float] = None
    last_weight_update: Optional[datetime] = None
    weight_lost: float = 0
    total_plans: int = 0
    specialties: List[SpecialtyBrief] = []
    weight_history: List[WeightPoint] = []

    model_config = ConfigDict(from_attributes=True)


class ProfileUpdate(BaseModel):
    """PATCH /users/me. Unknown keys are rejected."""
    name: Optional[str] = None
    email: Optional[str] = None
    bio: Optional[str] = None
    goal: Optional[str] = None
    weight: Optional[float] = None
    height: Optional[float] = None
    birth_date: Optional[date] = None
    avatar_url: Optional[str] = None
    specialty_ids: Optional[List[UUID]] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("birth_date", mode="before")
    @classmethod
    def empty_date_is_none(cls, value):
        return None if value == "" else value


class PasswordChange(BaseModel):
    current_password: str
    new_password: str
    confirm_password: str


class WeightUpdate(BaseModel):
    weight: float


class WeightResponse(BaseModel):
    message: str
    weight: float
    initial_weight: Optional[float] = None
    weight_lost: float
    last_weight_update: Optional[datetime] = None
    weight_history: List[WeightPoint]


class TrainerSummary(BaseModel):
    id: UUID
    username: str
    name: str = ""
    avatar_url: Optional[str] = None
    bio: str = ""
    goal: str = ""
    specialties: List[SpecialtyBrief] = []

    model_config = ConfigDict(from_attributes=True)


class TrainerDetail(TrainerSummary):
    email: str = ""
    total_plans: int = 0
    clients_count: int = 0


class TrainerPage(BaseModel):
    trainers: List[TrainerSummary]
    total: int
    page: int
    pages: int


class ClientSummary(BaseModel):
    id: UUID
    username: str
    name: str = ""
    avatar_url: Optional[str] = None
    email: str = ""
    weight: Optional[float] = None
    height: Optional[float] = None
    goal: str = ""
    bio: str = ""

    model_config = ConfigDict(from_attributes=True)


class MessageOut(BaseModel):
    message: str


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

class RegisterRequest(BaseModel):
    username: str = Field(min_length=3, max_length=64)
    password: str
    role: Literal["client", "trainer"] = "client"
    name: Optional[str] = None
    email: Optional[str] = None


class LoginRequest(BaseModel):
    username: str
    password: str


class PasswordConfirm(BaseModel):
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse
    message: Optional[str] = None


# ---------------------------------------------------------------------------
# Pairing
# ---------------------------------------------------------------------------

class AssignTrainerRequest(BaseModel):
    trainer_id: UUID


class TrainerChangeCreate(BaseModel):
    new_trainer_id: UUID


class ResolveRequest(BaseModel):
    action: Literal["accept", "reject"]


class AdjudicateRequest(BaseModel):
    accept: bool


class TrainerChangeRequestResponse(BaseModel):
    id: UUID
    created_at: datetime
    status: str
    resolved_at: Optional[datetime] = None
    client_id: UUID
    current_trainer_id: Optional[UUID] = None
    new_trainer_id: UUID
    client: Optional[UserCard] = None
    current_trainer: Optional[UserCard] = None
    new_trainer: Optional[UserCard] = None

    model_config = ConfigDict(from_attributes=True)


class AlertClientRequest(BaseModel):
    client_id: UUID
    message: Optional[str] = None


# ---------------------------------------------------------------------------
# Plans
# ---------------------------------------------------------------------------

class Exercise(BaseModel):
    name: str = Field(min_length=1)
    sets: int = Field(ge=1)
    reps: str = Field(min_length=1)  # e.g. "8-12"
    rest: Optional[str] = None  # e.g. "90s"
    notes: Optional[str] = None
    media: Optional[str] = None


class PlanDay(BaseModel):
    day_of_week: str = Field(min_length=1)
    exercises: List[Exercise] = []


class PlanCreate(BaseModel):
    client_id: UUID
    name: Optional[str] = None
    weeks: int = Field(default=8, ge=1)
    sessions_per_week: int = 4
    days: List[PlanDay] = []
    notes: Optional[str] = None

    @field_validator("sessions_per_week")
    @classmethod
    def valid_sessions(cls, value):
        return _check_sessions_per_week(value)


class PlanFromTemplate(BaseModel):
    client_id: UUID
    template_id: UUID


class PlanResponse(BaseModel):
    id: UUID
    created_at: datetime
    trainer_id: UUID
    client_id: UUID
    name: str
    weeks: int
    sessions_per_week: int
    days: List[PlanDay]
    notes: str = ""
    is_from_template: bool
    trainer: Optional[UserCard] = None
    client: Optional[UserCard] = None

    model_config = ConfigDict(from_attributes=True)


class PlanCreatedResponse(BaseModel):
    message: str
    plan: PlanResponse


class PlanStats(BaseModel):
    workouts_this_month: int
    workouts_this_week: int
    weekly_adherence: int  # percent
    calories_today: float
    weight_lost_this_month: float


class PlanTemplateCreate(BaseModel):
    name: str = Field(min_length=1)
    weeks: int = Field(default=4, ge=1)
    sessions_per_week: int = 4
    days: List[PlanDay] = []
    notes: Optional[str] = None

    @field_validator("sessions_per_week")
    @classmethod
    def valid_sessions(cls, value):
        return _check_sessions_per_week(value)


class PlanTemplateUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    weeks: Optional[int] = Field(default=None, ge=1)
    sessions_per_week: Optional[int] = None
    days: Optional[List[PlanDay]] = None
    notes: Optional[str] = None

    @field_validator("sessions_per_week")
    @classmethod
    def valid_sessions(cls, value):
        return value if value is None else _check_sessions_per_week(value)


class PlanTemplateResponse(BaseModel):
    id: UUID
    created_at: datetime
    trainer_id: UUID
    name: str
    weeks: int
    sessions_per_week: int
    days: List[PlanDay]
    notes: str = ""

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Entries
# ---------------------------------------------------------------------------

class EntryUpsert(BaseModel):
    date: date
    completed: bool = False
    reason: Optional[str] = None
    proof_media: Optional[str] = None
    calories_burned: float = Field(default=0, ge=0)
    notes: Optional[str] = None
    # Optional scale reading recorded alongside a completed workout
    weight: Optional[float] = None


class EntryResponse(BaseModel):
    id: UUID
    client_id: UUID
    date: date
    completed: bool
    completed_at: Optional[datetime] = None
    reason: Optional[str] = None
    proof_media: Optional[str] = None
    calories_burned: float
    notes: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class EntryStatsBucket(BaseModel):
    period: str
    count: int
    calories: float


class MissedWorkoutResult(BaseModel):
    missed: bool
    notified: bool = False
    message: str


class ProofUploadResponse(BaseModel):
    url: str
    public_id: Optional[str] = None
    resource_type: str


class AvatarResponse(BaseModel):
    avatar_url: str


# ---------------------------------------------------------------------------
# Messaging & notifications
# ---------------------------------------------------------------------------

class MessageCreate(BaseModel):
    to: UUID
    text: str


class MessageResponse(BaseModel):
    id: UUID
    created_at: datetime
    sender_id: UUID
    recipient_id: UUID
    text: str
    read: bool
    sender: Optional[UserCard] = None

    model_config = ConfigDict(from_attributes=True)


class ConversationSummary(BaseModel):
    partner: UserCard
    last_message: str
    last_message_date: datetime
    last_message_from_me: bool
    unread_count: int


class UnreadSender(BaseModel):
    count: int
    name: str


class UnreadSummary(BaseModel):
    total: int
    by_user: Dict[str, UnreadSender]


class NotificationResponse(BaseModel):
    id: UUID
    created_at: datetime
    recipient_id: UUID
    type: str
    content: str
    related_id: Optional[UUID] = None
    is_read: bool

    model_config = ConfigDict(from_attributes=True)


class NotificationSettingsUpdate(BaseModel):
    messages: Optional[bool] = None
    plans: Optional[bool] = None
    system: Optional[bool] = None


# ---------------------------------------------------------------------------
# Specialties & admin
# ---------------------------------------------------------------------------

class SpecialtyCreate(BaseModel):
    name: str
    description: Optional[str] = Field(default=None, max_length=300)
    icon: Optional[str] = None


class SpecialtyUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = Field(default=None, max_length=300)
    icon: Optional[str] = None
    active: Optional[bool] = None


class SpecialtyResponse(BaseModel):
    id: UUID
    name: str
    slug: str
    description: str = ""
    icon: Optional[str] = None
    active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AdminUserCreate(BaseModel):
    username: str = Field(min_length=3, max_length=64)
    password: str
    role: Literal["admin", "trainer", "client"]
    name: Optional[str] = None
    email: Optional[str] = None


class AdminUserUpdate(BaseModel):
    username: Optional[str] = Field(default=None, min_length=3, max_length=64)
    role: Optional[Literal["admin", "trainer", "client"]] = None
    password: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    bio: Optional[str] = None
    goal: Optional[str] = None


class AdminStatusChange(BaseModel):
    password: str
    is_active: bool
