"""Subscriber registration and plan assignment."""

from databill.subscribers.service import SubscriberService

__all__ = ["SubscriberService"]
