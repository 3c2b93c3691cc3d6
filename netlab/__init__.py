"""Networking exercises: group chat, raw TCP handshake client and routing simulation."""

__version__ = "0.1.0"