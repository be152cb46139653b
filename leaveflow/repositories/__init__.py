"""Repository modules - Data access layer"""
from .base import LeaveRequestStore, Notifier
from .mongo_client import get_database, get_collection, create_indexes
from .leave_request_repo import MongoLeaveRequestRepository
from .memory_repo import InMemoryLeaveRequestRepository
from .notification_repo import NotificationOutboxRepository

__all__ = [
    "LeaveRequestStore",
    "Notifier",
    "get_database",
    "get_collection",
    "create_indexes",
    "MongoLeaveRequestRepository",
    "InMemoryLeaveRequestRepository",
    "NotificationOutboxRepository",
]
