"""
Subscription status state machine.

  active -> admin_paused -> active      (operator pause / reactivation)
  active -> paused -> active            (self-service pause / resume)
  active | paused -> cancelled          (terminal)
  paused -> expired                     (reactivation window missed, terminal)

An admin pause takes precedence: an admin-paused subscription can only leave
that state through an operator reactivation.
"""

from schemas.enums import SubscriptionStatus
from services.errors import ValidationError

S = SubscriptionStatus

ALLOWED_TRANSITIONS: dict[SubscriptionStatus, frozenset[SubscriptionStatus]] = {
    S.ACTIVE: frozenset({S.ADMIN_PAUSED, S.PAUSED, S.CANCELLED}),
    S.PAUSED: frozenset({S.ACTIVE, S.CANCELLED, S.EXPIRED}),
    S.ADMIN_PAUSED: frozenset({S.ACTIVE}),
    S.CANCELLED: frozenset(),
    S.EXPIRED: frozenset(),
}

_REFUSALS: dict[SubscriptionStatus, str] = {
    S.ACTIVE: "Subscription is active.",
    S.PAUSED: "Subscription is paused.",
    S.ADMIN_PAUSED: "Subscription deliveries are on hold by the store. It can be changed once the hold is lifted.",
    S.CANCELLED: "Subscription has been cancelled.",
    S.EXPIRED: "Subscription has expired. Please create a new subscription.",
}


def can_transition(current: SubscriptionStatus | str, target: SubscriptionStatus | str) -> bool:
    return SubscriptionStatus(target) in ALLOWED_TRANSITIONS[SubscriptionStatus(current)]


def ensure_transition(current: SubscriptionStatus | str, target: SubscriptionStatus | str) -> None:
    """Raise ValidationError unless current -> target is a legal move."""
    current = SubscriptionStatus(current)
    if not can_transition(current, target):
        raise ValidationError(_REFUSALS[current])


def refusal_message(status: SubscriptionStatus | str) -> str:
    return _REFUSALS[SubscriptionStatus(status)]
