"""
Firebase Admin setup shared by the API process and the reminder cron job.

Biometric unlock (ID token verification) and push delivery both need the
default Firebase app. init_firebase() reports which credential source it
used so a misconfigured deploy shows up in the logs instead of as failed
unlocks later.
"""

import json
import logging
import os

import firebase_admin
from firebase_admin import credentials

from config import FIREBASE_SERVICE_ACCOUNT

logger = logging.getLogger("maywa.firebase")

EXISTING = "existing"
SERVICE_ACCOUNT = "service_account"
CREDENTIALS_FILE = "credentials_file"
DISABLED = "disabled"


def _parse_service_account(raw: str) -> dict | None:
    # Render sometimes wraps the JSON in an extra pair of quotes.
    for candidate in (raw, raw.strip().strip("'").strip('"')):
        try:
            info = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(info, dict):
            if "\\n" in info.get("private_key", ""):
                info["private_key"] = info["private_key"].replace("\\n", "\n")
            return info
    return None


def _initialize(raw: str) -> str:
    info = _parse_service_account(raw)
    if info is not None:
        firebase_admin.initialize_app(credentials.Certificate(info))
        return SERVICE_ACCOUNT
    if os.path.isfile(raw.strip()):
        firebase_admin.initialize_app(credentials.Certificate(raw.strip()))
        return CREDENTIALS_FILE
    logger.error("FIREBASE_SERVICE_ACCOUNT is neither service account JSON nor a readable file path")
    return DISABLED


def init_firebase(service_account: str | None = None) -> str:
    """Initialise the default Firebase app once and return the mode used.

    The mode is one of ``existing``, ``service_account``,
    ``credentials_file`` or ``disabled``.
    """
    raw = FIREBASE_SERVICE_ACCOUNT if service_account is None else service_account
    if firebase_admin._apps:
        mode = EXISTING
    elif raw:
        try:
            mode = _initialize(raw)
        except (ValueError, OSError) as exc:
            logger.error("Firebase Admin SDK init failed: %s", exc)
            mode = DISABLED
    elif os.getenv("GOOGLE_APPLICATION_CREDENTIALS"):
        firebase_admin.initialize_app()
        mode = CREDENTIALS_FILE
    else:
        mode = DISABLED

    if mode == DISABLED:
        logger.warning("Firebase mode: %s (biometric unlock and push are off)", mode)
    else:
        logger.info("Firebase mode: %s", mode)
    return mode
