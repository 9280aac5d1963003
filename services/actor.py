from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class UserActor:
    user_id: int
    role: str = "PLAYER"


@dataclass(frozen=True)
class SystemActor:
    source: str  # e.g. "payment-webhook", "expiry-reaper"


Actor = Union[UserActor, SystemActor]

PAYMENT_WEBHOOK = SystemActor("payment-webhook")
EXPIRY_REAPER = SystemActor("expiry-reaper")


def describe(actor: Actor) -> str:
    if isinstance(actor, UserActor):
        return f"user:{actor.role}"
    if isinstance(actor, SystemActor):
        return f"system:{actor.source}"
    raise TypeError(f"Unknown actor type: {type(actor).__name__}")


def actor_user_id(actor: Actor) -> Optional[int]:
    if isinstance(actor, UserActor):
        return actor.user_id
    if isinstance(actor, SystemActor):
        return None
    raise TypeError(f"Unknown actor type: {type(actor).__name__}")
