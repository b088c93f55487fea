"""Messaging infrastructure for outbound email jobs."""

from .broker import MessageBroker, get_message_broker
from .processor import EmailJobProcessor

__all__ = [
    "EmailJobProcessor",
    "MessageBroker",
    "get_message_broker",
]
