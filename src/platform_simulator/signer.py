import json
import threading
import uuid

import jwt
from cryptography.hazmat.primitives.asymmetric import rsa
from jwt.algorithms import RSAAlgorithm

from src.utils.crypto import generate_signature, verify_signature


class WebhookSigner:
    """Signs and verifies raw webhook bodies using HMAC-SHA256."""

    def __init__(self, secret: str):
        self.secret = secret

    def sign(self, body: bytes) -> str:
        return generate_signature(body, self.secret)

    def verify(self, body: bytes, signature: str) -> bool:
        return verify_signature(body, self.secret, signature)


def _generate_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


class JwsWebhookSigner:
    """Signs webhook bodies the way the platform does: a detached RS256 JWS.

    The body is signed unencoded (`b64: false`) and left out of the token,
    so the header value looks like ``<header>..<signature>``. The public
    half of the key is published through `jwks()`.
    """

    algorithm = "RS256"

    def __init__(self):
        self._lock = threading.Lock()
        self._jws = jwt.PyJWS()
        self.rotate()

    def rotate(self) -> str:
        """Switch to a fresh key pair. Returns the new key id."""
        with self._lock:
            self._private_key = _generate_key()
            self.kid = uuid.uuid4().hex
        return self.kid

    def sign(self, body: bytes) -> str:
        with self._lock:
            key, kid = self._private_key, self.kid
        return self._jws.encode(
            body,
            key,
            algorithm=self.algorithm,
            headers={"kid": kid, "b64": False, "crit": ["b64"]},
            is_payload_detached=True,
        )

    def jwks(self) -> dict:
        with self._lock:
            public_key, kid = self._private_key.public_key(), self.kid
        jwk = json.loads(RSAAlgorithm.to_jwk(public_key))
        jwk.update({"kid": kid, "use": "sig", "alg": self.algorithm})
        return {"keys": [jwk]}
