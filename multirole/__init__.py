"""Building blocks for a YGOPro duel-room server: packets, core messages, game data, services and logging."""

__version__ = "1.1.0"