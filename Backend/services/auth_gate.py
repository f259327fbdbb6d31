"""
Entry gate in front of the app's protected routes.

A device with biometric hardware and an enrolled biometric unlocks with the
Firebase ID token it obtains after a successful local prompt; every other
device unlocks with the app PIN. Either way a short-lived session JWT is
issued and the protected routers refuse requests without it.
"""

import hashlib
import hmac
import logging
import os
from datetime import datetime, timedelta, timezone

from firebase_admin import auth as firebase_auth
from jose import JWTError, jwt

from config import ACCESS_TOKEN_EXPIRE_MINUTES, ALGORITHM, APP_PIN_HASH, SECRET_KEY

logger = logging.getLogger("maywa.auth")

BIOMETRIC = "biometric"
PIN = "pin"
RETRY_MESSAGE = "Authentication failed: Please try again"
PIN_HASH_ITERATIONS = 120_000


class AuthenticationFailed(Exception):
    def __init__(self, message: str = RETRY_MESSAGE):
        super().__init__(message)
        self.message = message


PIN_HASH_SCHEME = "pbkdf2_sha256"
PIN_MIN_DIGITS = 4


def _derive_pin_key(pin: str, salt: bytes, iterations: int) -> str:
    return hashlib.pbkdf2_hmac("sha256", pin.encode("utf-8"), salt, iterations).hex()


def hash_pin(pin: str, iterations: int = PIN_HASH_ITERATIONS) -> str:
    """Encode a PIN as ``scheme$iterations$salt$key`` for APP_PIN_HASH."""
    if not pin.isdigit() or len(pin) < PIN_MIN_DIGITS:
        raise ValueError(f"PIN must be at least {PIN_MIN_DIGITS} digits")
    salt = os.urandom(16)
    return "$".join((PIN_HASH_SCHEME, str(iterations), salt.hex(), _derive_pin_key(pin, salt, iterations)))


def verify_pin(pin: str | None, pin_hash: str | None) -> bool:
    if not pin or not pin_hash:
        return False
    parts = pin_hash.split("$")
    if len(parts) != 4 or parts[0] != PIN_HASH_SCHEME:
        logger.error("APP_PIN_HASH is not a %s value", PIN_HASH_SCHEME)
        return False
    try:
        expected = _derive_pin_key(pin, bytes.fromhex(parts[2]), int(parts[1]))
    except ValueError:
        logger.error("APP_PIN_HASH is malformed")
        return False
    return hmac.compare_digest(expected, parts[3])


def select_method(has_hardware: bool, is_enrolled: bool) -> str:
    return BIOMETRIC if has_hardware and is_enrolled else PIN


def _verify_firebase_token(token: str) -> dict:
    return firebase_auth.verify_id_token(token)


class AuthGate:
    def __init__(self, pin_hash: str | None = None, biometric_verifier=None):
        self.pin_hash = APP_PIN_HASH if pin_hash is None else pin_hash
        self.biometric_verifier = biometric_verifier or _verify_firebase_token

    def unlock(
        self,
        has_hardware: bool,
        is_enrolled: bool,
        biometric_token: str | None = None,
        pin: str | None = None,
    ) -> tuple[str, str]:
        """Verify one attempt and return ``(method, session_token)``.

        Raises AuthenticationFailed; the caller may simply try again.
        """
        method = select_method(has_hardware, is_enrolled)
        if method == BIOMETRIC and biometric_token:
            try:
                claims = self.biometric_verifier(biometric_token)
            except Exception as exc:
                logger.info("Biometric unlock rejected: %s", exc)
                raise AuthenticationFailed() from exc
            subject = str(claims.get("uid") or "device")
        elif pin is not None:
            # PIN stays available as the fallback on biometric devices too.
            if not verify_pin(pin, self.pin_hash):
                logger.info("PIN unlock rejected")
                raise AuthenticationFailed()
            subject = "device"
            method = PIN
        else:
            raise AuthenticationFailed()
        return method, create_session_token(subject, method)


def create_session_token(subject: str, method: str) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    return jwt.encode({"sub": subject, "amr": method, "exp": expire}, SECRET_KEY, algorithm=ALGORITHM)


def decode_session_token(token: str) -> dict:
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as exc:
        raise AuthenticationFailed("Session expired or invalid") from exc
