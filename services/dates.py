from datetime import date, datetime
from zoneinfo import ZoneInfo

from services.errors import InvalidDate

DEFAULT_TIMEZONE = "Asia/Jakarta"


def parse_booking_date(value, tz_name: str = DEFAULT_TIMEZONE) -> date:
    """
    Resolve a booking day in the canonical timezone.

    "2025-01-10" is taken literally. Datetimes (ISO strings or objects) with an
    offset are converted to the canonical zone before the date is taken, so a
    late-evening UTC timestamp lands on the venue's local day.
    """
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        return value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if "T" not in text and " " not in text:
            try:
                return date.fromisoformat(text)
            except ValueError:
                raise InvalidDate(f"Invalid date: {value!r}. Use YYYY-MM-DD")
        try:
            moment = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            raise InvalidDate(f"Invalid date: {value!r}. Use YYYY-MM-DD")
    else:
        raise InvalidDate("date is required")

    if moment.tzinfo is None:
        return moment.date()
    return moment.astimezone(ZoneInfo(tz_name)).date()
