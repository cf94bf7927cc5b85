"""SQLAlchemy models for the gym membership backend.

All models are imported here so that ``Base.metadata`` knows every table
before ``create_all`` runs. If you add a new model, import it in this file.
"""

from gymapp.models.booking import BOOKED, CANCELED, ClassBooking, TrainerBooking
from gymapp.models.catalog import ClassSession, GroupClass, Trainer, TrainerSlot
from gymapp.models.membership_event import MembershipEvent
from gymapp.models.plan import Plan
from gymapp.models.revoked_token import RevokedToken
from gymapp.models.user import User

__all__ = [
    "BOOKED",
    "CANCELED",
    "ClassBooking",
    "ClassSession",
    "GroupClass",
    "MembershipEvent",
    "Plan",
    "RevokedToken",
    "Trainer",
    "TrainerBooking",
    "TrainerSlot",
    "User",
]
