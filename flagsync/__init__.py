"""
flagsync: feature-flag client SDK with a local flag cache and an
asynchronous analytics event pipeline.
"""

__version__ = "0.4.0"

from flagsync.client import FlagClient
from flagsync.core.config import ClientConfig, EventsConfig, load_config
from flagsync.core.users import User, new_anonymous_user, new_user

__all__ = [
    "__version__",
    "FlagClient",
    "ClientConfig",
    "EventsConfig",
    "load_config",
    "User",
    "new_user",
    "new_anonymous_user",
]
