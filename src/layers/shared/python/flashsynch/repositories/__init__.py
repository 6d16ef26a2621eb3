"""DynamoDB repositories for FlashSynch entities."""

from flashsynch.repositories.base import BaseRepository
from flashsynch.repositories.card import CardRepository
from flashsynch.repositories.identifier import IdentifierRegistry
from flashsynch.repositories.lead import LeadRepository
from flashsynch.repositories.scan import ScanRepository
from flashsynch.repositories.user import UserRepository

__all__ = [
    "BaseRepository",
    "CardRepository",
    "IdentifierRegistry",
    "LeadRepository",
    "ScanRepository",
    "UserRepository",
]
