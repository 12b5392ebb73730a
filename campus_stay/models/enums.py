from enum import Enum


class UserRole(str, Enum):
    STUDENT = "student"
    AGENT = "agent"
    OWNER = "owner"
    ADMIN = "admin"


class ListingStatus(str, Enum):
    AVAILABLE = "available"
    TAKEN = "taken"


class CampusArea(str, Enum):
    UGBOMRO = "Ugbomro"
    EFFURUN = "Effurun"
    ENERHEN = "Enerhen"
    PTI_ROAD = "PTI Road"
    OTHER = "Other"


class ListingSort(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    PRICE_LOW = "price_low"
    PRICE_HIGH = "price_high"
    RATING = "rating"
    VIEWS = "views"


class RoommateSort(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    BUDGET_LOW = "budget_low"
    BUDGET_HIGH = "budget_high"


class RoommateOwnerType(str, Enum):
    STUDENT = "student"
    OWNER = "owner"


class GenderPreference(str, Enum):
    MALE = "male"
    FEMALE = "female"
    ANY = "any"


class Cleanliness(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class StudyHours(str, Enum):
    MORNING = "morning"
    EVENING = "evening"
    NIGHT = "night"
    FLEXIBLE = "flexible"


class SmokingPreference(str, Enum):
    NO = "no"
    YES = "yes"
    OUTDOOR_ONLY = "outdoor_only"


class PetsPreference(str, Enum):
    NO = "no"
    YES = "yes"


class PaymentMethod(str, Enum):
    BANK_TRANSFER = "bank_transfer"
    USSD = "ussd"
    POS = "pos"


class PaymentProofStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class NotificationKind(str, Enum):
    VERIFICATION = "verification"
    WELCOME = "welcome"
    PASSWORD_RESET = "password_reset"
    PASSWORD_CHANGED = "password_changed"
    PAYMENT_SUBMITTED = "payment_submitted"
    PAYMENT_APPROVED = "payment_approved"
    PAYMENT_REJECTED = "payment_rejected"
    AGENT_VERIFIED = "agent_verified"
