import re
import uuid
from datetime import date, datetime
from typing import List, Optional

import phonenumbers
from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    HttpUrl,
    ValidationInfo,
    field_validator,
)
from pydantic.alias_generators import to_camel

from campus_stay.models.enums import (
    CampusArea,
    Cleanliness,
    GenderPreference,
    ListingStatus,
    PaymentMethod,
    PaymentProofStatus,
    PetsPreference,
    RoommateOwnerType,
    SmokingPreference,
    StudyHours,
    UserRole,
)
from campus_stay.models.utils import normalize_phone

NIGERIAN_PHONE = re.compile(r"^\+234\d{10}$")


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def _validate_phone(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    candidate = normalize_phone(value.strip())
    try:
        parsed = phonenumbers.parse(candidate, "NG")
    except phonenumbers.NumberParseException:
        raise ValueError("Phone number must be in format +234XXXXXXXXXX")
    formatted = phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)
    if not NIGERIAN_PHONE.match(formatted):
        raise ValueError("Phone number must be in format +234XXXXXXXXXX")
    return formatted


def _url(value) -> Optional[str]:
    return str(value) if value is not None else None


# ---------------------------------------------------------------- auth


class RegisterRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=100)
    name: str = Field(..., min_length=2, max_length=50)
    phone: Optional[str] = None
    role: UserRole = UserRole.STUDENT
    matric_number: Optional[str] = Field(None, max_length=20)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, value):
        return _validate_phone(value)

    @field_validator("role")
    @classmethod
    def validate_role(cls, value: UserRole):
        if value == UserRole.ADMIN:
            raise ValueError("Invalid role choice")
        return value


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower() if isinstance(value, str) else value


class UpdateProfileRequest(CamelModel):
    name: Optional[str] = Field(None, min_length=2, max_length=50)
    phone: Optional[str] = None
    avatar_url: Optional[HttpUrl] = None
    matric_number: Optional[str] = Field(None, max_length=20)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, value):
        return _validate_phone(value)

    @field_validator("name")
    @classmethod
    def name_not_null(cls, value: Optional[str]) -> str:
        # phone, avatar and matric number may be cleared; the name may not
        if value is None:
            raise ValueError("Name cannot be empty")
        return value

    def to_columns(self) -> dict:
        return _stringify_urls(self.model_dump(exclude_unset=True))


class EmailRequest(CamelModel):
    email: EmailStr

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower() if isinstance(value, str) else value


class ResetPasswordRequest(CamelModel):
    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=6, max_length=100)


class VerifyEmailRequest(CamelModel):
    token: str = Field(..., min_length=1)


class SessionUserOut(CamelModel):
    id: uuid.UUID
    email: str
    name: str
    role: UserRole
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    matric_number: Optional[str] = None
    is_email_verified: bool
    is_verified: bool
    saved_listing_ids: List[uuid.UUID] = []
    saved_roommate_ids: List[uuid.UUID] = []
    unlocked_listing_ids: List[uuid.UUID] = []
    created_at: datetime


class AdminUserOut(SessionUserOut):
    updated_at: datetime


# ---------------------------------------------------------------- listings


class AgentPublicOut(CamelModel):
    id: uuid.UUID
    name: str
    avatar_url: Optional[str] = None
    is_verified: bool
    listings_count: Optional[int] = None


class AgentContactOut(AgentPublicOut):
    phone: Optional[str] = None
    email: str


class ListingCreate(CamelModel):
    title: str = Field(..., min_length=5, max_length=100)
    description: str = Field(..., min_length=20, max_length=1000)
    campus_area: CampusArea
    address_approx: str = Field(..., min_length=5, max_length=200)
    address_full: str = Field(..., min_length=10, max_length=300)
    price_monthly: int = Field(..., ge=5000, le=500000)
    bedrooms: int = Field(..., ge=1, le=5)
    bathrooms: int = Field(..., ge=1, le=4)
    distance_to_campus_km: float = Field(..., ge=0.1, le=20)
    amenities: List[str] = Field(..., min_length=1, max_length=10)
    photos: List[HttpUrl] = Field(..., min_length=1, max_length=10)
    cover_photo: HttpUrl
    map_preview: HttpUrl
    map_full: HttpUrl

    def to_columns(self) -> dict:
        data = self.model_dump(exclude_unset=True)
        return _stringify_urls(data)


class ListingUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=5, max_length=100)
    description: Optional[str] = Field(None, min_length=20, max_length=1000)
    campus_area: Optional[CampusArea] = None
    address_approx: Optional[str] = Field(None, min_length=5, max_length=200)
    address_full: Optional[str] = Field(None, min_length=10, max_length=300)
    price_monthly: Optional[int] = Field(None, ge=5000, le=500000)
    bedrooms: Optional[int] = Field(None, ge=1, le=5)
    bathrooms: Optional[int] = Field(None, ge=1, le=4)
    distance_to_campus_km: Optional[float] = Field(None, ge=0.1, le=20)
    amenities: Optional[List[str]] = Field(None, min_length=1, max_length=10)
    photos: Optional[List[HttpUrl]] = Field(None, min_length=1, max_length=10)
    cover_photo: Optional[HttpUrl] = None
    map_preview: Optional[HttpUrl] = None
    map_full: Optional[HttpUrl] = None
    status: Optional[ListingStatus] = None

    def to_columns(self) -> dict:
        data = self.model_dump(exclude_unset=True, exclude_none=True)
        return _stringify_urls(data)


def _stringify_urls(data: dict) -> dict:
    for key in ("cover_photo", "map_preview", "map_full", "avatar_url"):
        if key in data:
            data[key] = _url(data[key])
    if "photos" in data:
        data["photos"] = [str(photo) for photo in data["photos"]]
    return data


class ListingStatusUpdate(CamelModel):
    status: ListingStatus


class ListingOut(CamelModel):
    id: uuid.UUID
    agent_id: uuid.UUID
    title: str
    description: str
    campus_area: CampusArea
    address_approx: str
    price_monthly: int
    bedrooms: int
    bathrooms: int
    distance_to_campus_km: float
    amenities: List[str]
    photos: List[str]
    cover_photo: str
    map_preview: str
    status: ListingStatus
    rating: float
    reviews_count: int
    views: int
    created_at: datetime
    updated_at: datetime
    agent: Optional[AgentPublicOut] = None


class UnlockedListingOut(ListingOut):
    address_full: str
    map_full: str
    agent: Optional[AgentContactOut] = None


class AgentListingOut(UnlockedListingOut):
    unlock_count: int = 0
    earnings: int = 0


# ---------------------------------------------------------------- roommates


class RoommatePreferences(CamelModel):
    gender: Optional[GenderPreference] = None
    cleanliness: Optional[Cleanliness] = None
    study_hours: Optional[StudyHours] = None
    smoking: Optional[SmokingPreference] = None
    pets: Optional[PetsPreference] = None


class RoommateCreate(CamelModel):
    title: str = Field(..., min_length=5, max_length=100)
    budget_monthly: int = Field(..., ge=10000, le=100000)
    move_in_date: date
    description: str = Field(..., min_length=20, max_length=500)
    photos: List[HttpUrl] = Field(..., min_length=1, max_length=5)
    preferences: RoommatePreferences = Field(default_factory=RoommatePreferences)

    @field_validator("move_in_date")
    @classmethod
    def validate_move_in(cls, value: date):
        if value < date.today():
            raise ValueError("Move-in date cannot be in the past")
        return value

    def to_columns(self) -> dict:
        data = self.model_dump(exclude={"preferences"})
        data["photos"] = [str(photo) for photo in self.photos]
        data.update(self.preferences.model_dump())
        return data


class RoommateUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=5, max_length=100)
    budget_monthly: Optional[int] = Field(None, ge=10000, le=100000)
    move_in_date: Optional[date] = None
    description: Optional[str] = Field(None, min_length=20, max_length=500)
    photos: Optional[List[HttpUrl]] = Field(None, min_length=1, max_length=5)
    preferences: Optional[RoommatePreferences] = None

    @field_validator("move_in_date")
    @classmethod
    def validate_move_in(cls, value: Optional[date]):
        if value is not None and value < date.today():
            raise ValueError("Move-in date cannot be in the past")
        return value


class OwnerPublicOut(CamelModel):
    id: uuid.UUID
    name: str
    avatar_url: Optional[str] = None
    role: UserRole


class RoommateOut(CamelModel):
    id: uuid.UUID
    owner_id: uuid.UUID
    owner_type: RoommateOwnerType
    title: str
    budget_monthly: int
    move_in_date: date
    description: str
    photos: List[str]
    preferences: RoommatePreferences
    owner: Optional[OwnerPublicOut] = None
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------- saved sets


class SaveListingRequest(CamelModel):
    listing_id: uuid.UUID


class SaveRoommateRequest(CamelModel):
    roommate_id: uuid.UUID


# ---------------------------------------------------------------- payments


class PaymentProofCreate(CamelModel):
    listing_id: uuid.UUID
    method: PaymentMethod
    reference: str = Field(..., min_length=5, max_length=50)
    image_url: HttpUrl

    @field_validator("reference", mode="before")
    @classmethod
    def strip_reference(cls, value):
        return value.strip() if isinstance(value, str) else value


class PaymentProofReview(CamelModel):
    status: PaymentProofStatus
    rejection_reason: Optional[str] = Field(
        None, min_length=10, max_length=500, validate_default=True
    )

    @field_validator("status")
    @classmethod
    def validate_status(cls, value: PaymentProofStatus):
        if value == PaymentProofStatus.PENDING:
            raise ValueError("Status must be approved or rejected")
        return value

    @field_validator("rejection_reason")
    @classmethod
    def require_reason_when_rejecting(cls, value: Optional[str], info: ValidationInfo):
        if info.data.get("status") == PaymentProofStatus.REJECTED and not value:
            raise ValueError("Rejection reason is required when rejecting a payment")
        return value


class UserSummaryOut(CamelModel):
    id: uuid.UUID
    name: str
    email: str


class ListingSummaryOut(CamelModel):
    id: uuid.UUID
    title: str
    campus_area: CampusArea
    price_monthly: int


class PaymentProofOut(CamelModel):
    id: uuid.UUID
    user_id: uuid.UUID
    listing_id: uuid.UUID
    amount: int
    method: PaymentMethod
    reference: str
    image_url: str
    status: PaymentProofStatus
    reviewed_by_admin_id: Optional[uuid.UUID] = None
    reviewed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class PaymentProofDetailOut(PaymentProofOut):
    user: Optional[UserSummaryOut] = None
    listing: Optional[ListingSummaryOut] = None


# ---------------------------------------------------------------- reviews


class ReviewCreate(CamelModel):
    rating: int = Field(..., ge=1, le=5)
    comment: str = Field(..., min_length=10, max_length=500)


class ReviewUpdate(CamelModel):
    rating: Optional[int] = Field(None, ge=1, le=5)
    comment: Optional[str] = Field(None, min_length=10, max_length=500)


class ReviewOut(CamelModel):
    id: uuid.UUID
    user_id: uuid.UUID
    user_name: str
    user_avatar: Optional[str] = None
    listing_id: uuid.UUID
    rating: int
    comment: str
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------- admin


class AdminUserUpdate(CamelModel):
    is_verified: Optional[bool] = None
    role: Optional[UserRole] = None

    @field_validator("role")
    @classmethod
    def validate_role(cls, value: Optional[UserRole]):
        if value == UserRole.ADMIN:
            raise ValueError("Role must be one of student, agent, owner")
        return value


class RecentListingOut(CamelModel):
    id: uuid.UUID
    title: str
    campus_area: CampusArea
    status: ListingStatus
    agent_name: Optional[str] = None
    created_at: datetime


class RecentUserOut(CamelModel):
    id: uuid.UUID
    name: str
    email: str
    role: UserRole
    created_at: datetime


class RecentProofOut(CamelModel):
    id: uuid.UUID
    status: PaymentProofStatus
    amount: int
    user_name: Optional[str] = None
    listing_title: Optional[str] = None
    created_at: datetime
