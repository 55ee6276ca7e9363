"""Outbound publishing and inbound relaying of service events."""

from .publisher import EmitFn, EmitHook, PublisherHook
from .subscriber import SubscriberRelay, SubscriptionRegistration

__all__ = [
    "EmitFn",
    "EmitHook",
    "PublisherHook",
    "SubscriberRelay",
    "SubscriptionRegistration",
]
