"""Playback: the shared clock, the animate toggle and the host-pumped driver."""

from robotreplay.playback.clock import PlaybackClock, TickSubscription
from robotreplay.playback.control import AnimationControl
from robotreplay.playback.driver import PlaybackDriver, PumpResult
from robotreplay.playback.subscriptions import OneShotEvent, SubscriptionHandle

__all__ = [
    "AnimationControl",
    "OneShotEvent",
    "PlaybackClock",
    "PlaybackDriver",
    "PumpResult",
    "SubscriptionHandle",
    "TickSubscription",
]
