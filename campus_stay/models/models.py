import uuid
from datetime import date, datetime
from typing import List, Optional

from bcrypt import checkpw, gensalt, hashpw
from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from campus_stay.core.get_db import Base

from .enums import (
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
from .utils import utc_now


def _enum(enum_cls):
    return Enum(
        enum_cls,
        native_enum=False,
        values_callable=lambda members: [member.value for member in members],
        length=32,
    )


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )


class SoftDeleteMixin:
    is_deleted: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False, index=True
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def soft_delete(self) -> None:
        self.is_deleted = True
        self.deleted_at = utc_now()

    @classmethod
    def active(cls):
        return cls.is_deleted.is_(False)


class SavedListing(Base):
    __tablename__ = "saved_listings"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    listing_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("listings.id", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )


class SavedRoommate(Base):
    __tablename__ = "saved_roommates"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    roommate_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("roommate_listings.id", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )


class UnlockedListing(Base):
    __tablename__ = "unlocked_listings"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    listing_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("listings.id", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )


class User(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    avatar_url: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    matric_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    role: Mapped[UserRole] = mapped_column(
        _enum(UserRole), nullable=False, default=UserRole.STUDENT, index=True
    )
    is_email_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    verification_token: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True, index=True
    )
    verification_token_expires: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    reset_password_token: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True, index=True
    )
    reset_password_expires: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    saved_listings: Mapped[List["SavedListing"]] = relationship(
        lazy="selectin", cascade="all, delete-orphan"
    )
    saved_roommates: Mapped[List["SavedRoommate"]] = relationship(
        lazy="selectin", cascade="all, delete-orphan"
    )
    unlocked_listings: Mapped[List["UnlockedListing"]] = relationship(
        lazy="selectin", cascade="all, delete-orphan"
    )

    def set_password(self, raw_password: str):
        salt = gensalt()
        self.hashed_password = hashpw(raw_password.encode("utf-8"), salt).decode(
            "utf-8"
        )

    def check_password(self, raw_password: str) -> bool:
        return checkpw(
            raw_password.encode("utf-8"), self.hashed_password.encode("utf-8")
        )

    @property
    def saved_listing_ids(self) -> list[uuid.UUID]:
        return [link.listing_id for link in self.saved_listings]

    @property
    def saved_roommate_ids(self) -> list[uuid.UUID]:
        return [link.roommate_id for link in self.saved_roommates]

    @property
    def unlocked_listing_ids(self) -> list[uuid.UUID]:
        return [link.listing_id for link in self.unlocked_listings]

    def has_unlocked(self, listing_id: uuid.UUID) -> bool:
        return listing_id in self.unlocked_listing_ids

    def __repr__(self):
        return f"<User {self.email} ({self.role.value})>"


class Listing(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "listings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    agent_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    campus_area: Mapped[CampusArea] = mapped_column(
        _enum(CampusArea), nullable=False, index=True
    )
    address_approx: Mapped[str] = mapped_column(String(200), nullable=False)
    address_full: Mapped[str] = mapped_column(String(300), nullable=False)
    price_monthly: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    bedrooms: Mapped[int] = mapped_column(Integer, nullable=False)
    bathrooms: Mapped[int] = mapped_column(Integer, nullable=False)
    distance_to_campus_km: Mapped[float] = mapped_column(Float, nullable=False)
    amenities: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    photos: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    cover_photo: Mapped[str] = mapped_column(String(512), nullable=False)
    map_preview: Mapped[str] = mapped_column(String(512), nullable=False)
    map_full: Mapped[str] = mapped_column(String(512), nullable=False)
    status: Mapped[ListingStatus] = mapped_column(
        _enum(ListingStatus), default=ListingStatus.AVAILABLE, nullable=False, index=True
    )
    rating: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    reviews_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    views: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    agent: Mapped["User"] = relationship(lazy="selectin")

    __table_args__ = (Index("ix_listings_agent_active", "agent_id", "is_deleted"),)

    def __repr__(self):
        return f"<Listing {self.title} ({self.id})>"


class RoommateListing(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "roommate_listings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    owner_type: Mapped[RoommateOwnerType] = mapped_column(
        _enum(RoommateOwnerType), nullable=False
    )
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    budget_monthly: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    move_in_date: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    photos: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    gender: Mapped[Optional[GenderPreference]] = mapped_column(
        _enum(GenderPreference), nullable=True
    )
    cleanliness: Mapped[Optional[Cleanliness]] = mapped_column(
        _enum(Cleanliness), nullable=True
    )
    study_hours: Mapped[Optional[StudyHours]] = mapped_column(
        _enum(StudyHours), nullable=True
    )
    smoking: Mapped[Optional[SmokingPreference]] = mapped_column(
        _enum(SmokingPreference), nullable=True
    )
    pets: Mapped[Optional[PetsPreference]] = mapped_column(
        _enum(PetsPreference), nullable=True
    )

    owner: Mapped["User"] = relationship(lazy="selectin")

    PREFERENCE_FIELDS = ("gender", "cleanliness", "study_hours", "smoking", "pets")

    @property
    def preferences(self) -> dict:
        return {field: getattr(self, field) for field in self.PREFERENCE_FIELDS}

    def merge_preferences(self, changes: dict) -> None:
        for field, value in changes.items():
            if field in self.PREFERENCE_FIELDS:
                setattr(self, field, value)

    def __repr__(self):
        return f"<RoommateListing {self.title} ({self.id})>"


class PaymentProof(TimestampMixin, Base):
    __tablename__ = "payment_proofs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    listing_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("listings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    method: Mapped[PaymentMethod] = mapped_column(_enum(PaymentMethod), nullable=False)
    reference: Mapped[str] = mapped_column(String(50), nullable=False)
    image_url: Mapped[str] = mapped_column(String(512), nullable=False)
    status: Mapped[PaymentProofStatus] = mapped_column(
        _enum(PaymentProofStatus),
        default=PaymentProofStatus.PENDING,
        nullable=False,
        index=True,
    )
    reviewed_by_admin_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    user: Mapped["User"] = relationship(foreign_keys=[user_id], lazy="selectin")
    listing: Mapped["Listing"] = relationship(lazy="selectin")

    __table_args__ = (
        Index("ix_payment_proofs_user_listing", "user_id", "listing_id", "status"),
    )

    @staticmethod
    def review_values(
        status: PaymentProofStatus,
        admin_id: uuid.UUID,
        rejection_reason: str | None = None,
    ) -> dict:
        if status == PaymentProofStatus.PENDING:
            raise ValueError("cannot resolve a proof back to pending")
        return {
            "status": status,
            "reviewed_by_admin_id": admin_id,
            "reviewed_at": utc_now(),
            "rejection_reason": (
                rejection_reason if status == PaymentProofStatus.REJECTED else None
            ),
        }

    def __repr__(self):
        return f"<PaymentProof {self.reference} ({self.status.value})>"


# at most one proof per user and listing may wait for review
Index(
    "uq_payment_proofs_one_pending",
    PaymentProof.user_id,
    PaymentProof.listing_id,
    unique=True,
    postgresql_where=PaymentProof.status == PaymentProofStatus.PENDING,
    sqlite_where=PaymentProof.status == PaymentProofStatus.PENDING,
)


class Review(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "reviews"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    listing_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("listings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[str] = mapped_column(Text, nullable=False)

    user: Mapped["User"] = relationship(lazy="selectin")

    @property
    def user_name(self) -> str:
        return self.user.name if self.user else "Anonymous"

    @property
    def user_avatar(self) -> str | None:
        return self.user.avatar_url if self.user else None
