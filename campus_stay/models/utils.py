import re
from datetime import date, datetime, timezone

from dateutil.relativedelta import relativedelta


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    # some drivers (sqlite) hand back naive datetimes for timezone columns
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def month_starts(months: int, today: date | None = None) -> list[date]:
    """First day of each of the last ``months`` calendar months, oldest first."""
    today = today or utc_now().date()
    current = today.replace(day=1)
    return [current - relativedelta(months=offset) for offset in range(months - 1, -1, -1)]


def month_label(value: date) -> str:
    return value.strftime("%b %Y")


def normalize_phone(phone: str) -> str:
    clean = re.sub(r"[^\d+]", "", phone)

    if clean.startswith("0") and len(clean) == 11:
        return "+234" + clean[1:]

    if clean.startswith("234") and len(clean) == 13:
        return "+" + clean

    return clean
