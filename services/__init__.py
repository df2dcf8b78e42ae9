"""
Services package for storage backends and external integrations.

This package contains the record store implementations, the session
token service, configuration loading and SNS notification registration.
"""

from .notifications import SmsSandboxNotifier
from .store import RecordStore
from .tokens import SessionTokenService

__all__ = [
    "RecordStore",
    "SessionTokenService",
    "SmsSandboxNotifier",
]
