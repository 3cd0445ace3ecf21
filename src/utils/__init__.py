from .crypto import generate_signature, verify_signature
from .factories import AuthDataFactory, EventPayloadFactory
from .time import unix_timestamp_to_iso

__all__ = [
    "generate_signature", "verify_signature",
    "AuthDataFactory", "EventPayloadFactory",
    "unix_timestamp_to_iso",
]
