"""
multi-notifier — chat notifications for long-running agent sessions.

Sends a notification to every configured channel (Discord, WhatsApp via
Green-API) when a session goes idle or asks for permission.
"""

__version__ = "0.1.0"
