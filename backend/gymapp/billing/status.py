"""Membership statuses and the one mapping from Stripe subscription statuses to them.

Every code path that derives a member's status from Stripe goes through
``map_provider_status`` so webhook handlers and the cancel flow cannot drift apart.
"""

ACTIVE = "active"
TRIALING = "trialing"
PAST_DUE = "past_due"
CANCELED = "canceled"
INACTIVE = "inactive"

_PROVIDER_STATUS_MAP: dict[str, str] = {
    "active": ACTIVE,
    "trialing": ACTIVE,
    "past_due": PAST_DUE,
    "unpaid": PAST_DUE,
    "incomplete": PAST_DUE,
    "incomplete_expired": PAST_DUE,
    "canceled": CANCELED,
}

# Statuses that unlock membership features. Booking itself is not gated.
_GOOD_STANDING = frozenset({ACTIVE, TRIALING})


def map_provider_status(provider_status: str) -> str:
    """Translate a Stripe subscription status to the stored membership status.

    Unrecognized statuses are stored verbatim.
    """
    return _PROVIDER_STATUS_MAP.get(provider_status, provider_status)


def grants_access(membership_status: str | None) -> bool:
    """Whether a stored status counts as an active membership."""
    return membership_status in _GOOD_STANDING
