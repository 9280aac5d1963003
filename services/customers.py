import re

from models.user import Profile, Role, User
from services.errors import ArchivedCustomerEmail, ValidationError


def normalize_email(value: str) -> str:
    return (value or "").strip().lower()


def validate_email(value: str) -> str:
    email = normalize_email(value)
    if "@" not in email or len(email) > 255 or email.startswith("@") or email.endswith("@"):
        raise ValidationError("A valid customer email is required", field="email")
    return email


def derive_full_name(email: str) -> str:
    """john.doe_smith@x.com -> "John Doe Smith"."""
    local_part = email.split("@")[0]
    chunks = [c for c in re.split(r"[.\-_]", local_part) if c]
    name = " ".join(c[:1].upper() + c[1:] for c in chunks).strip()
    return name or "Manual Booking Customer"


def find_or_create_customer(uow, email: str) -> User:
    """
    Match a customer by email or provision one with a profile.
    Archived accounts are never reused.
    """
    session = uow.session
    user = session.query(User).filter_by(email=email).first()
    if user is not None and user.is_archived:
        raise ArchivedCustomerEmail(
            "Email belongs to an archived account and cannot receive new bookings", email=email
        )

    if user is None:
        user = User(email=email, password_hash="")
        player = session.query(Role).filter_by(name="PLAYER").first()
        if player is not None:
            user.roles.append(player)
        session.add(user)
        uow.flush()

    if user.profile is None:
        user.profile = Profile(full_name=derive_full_name(email))
        uow.flush()

    return user
