"""
Database models.
Import all models here to ensure they're registered with Base.
"""

from careflow.models.user import User, UserRole
from careflow.models.marketer import Marketer, CmCompany
from careflow.models.client import Client, ClientPhase, ClientStatus
from careflow.models.caregiver import ClientCaregiver, CaregiverStatus
from careflow.models.client_note import ClientNote
from careflow.models.referral import Referral
from careflow.models.notification import Notification, NotificationType
from careflow.models.message import Message

__all__ = [
    "User",
    "UserRole",
    "Marketer",
    "CmCompany",
    "Client",
    "ClientPhase",
    "ClientStatus",
    "ClientCaregiver",
    "CaregiverStatus",
    "ClientNote",
    "Referral",
    "Notification",
    "NotificationType",
    "Message",
]
