"""ORM models. Importing this package registers every table on Base.metadata."""

from localbiz.models.account import Account, AuthSession
from localbiz.models.analytics import AnalyticsEvent
from localbiz.models.business import Business
from localbiz.models.chat import Chat, Message
from localbiz.models.favorite import Favorite
from localbiz.models.user import User

__all__ = [
    "Account",
    "AnalyticsEvent",
    "AuthSession",
    "Business",
    "Chat",
    "Favorite",
    "Message",
    "User",
]
