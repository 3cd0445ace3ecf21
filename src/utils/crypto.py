import hashlib
import hmac


def generate_signature(body: bytes, secret: str) -> str:
    """Generate HMAC-SHA256 signature for a raw webhook body."""
    return hmac.new(
        secret.encode("utf-8"),
        body,
        hashlib.sha256,
    ).hexdigest()


def verify_signature(body: bytes, secret: str, signature: str) -> bool:
    """Verify HMAC-SHA256 signature against a raw webhook body."""
    expected = generate_signature(body, secret)
    return hmac.compare_digest(expected, signature)
