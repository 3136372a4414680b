"""Core application logic layer.

This module contains everything between the speaker client and the
terminal: persisted settings, discovery and the interactive session.

Classes:
    ConfigManager: JSON-backed speaker profiles and theme.
    StateStore: Current speaker snapshot with change detection.
    KeyDecoder: Turns raw key presses into commands.
    InteractiveSession: The live dashboard event loop.
    SpeakerDiscovery: mDNS discovery of KEF speakers.
"""

from kefir.core.config import ConfigManager, ConfigError
from kefir.core.discovery import DiscoveredSpeaker, SpeakerDiscovery
from kefir.core.keys import Command, KeyDecoder
from kefir.core.session import InteractiveSession, Phase
from kefir.core.state import StateStore

__all__ = [
    "ConfigManager",
    "ConfigError",
    "DiscoveredSpeaker",
    "SpeakerDiscovery",
    "Command",
    "KeyDecoder",
    "InteractiveSession",
    "Phase",
    "StateStore",
]
