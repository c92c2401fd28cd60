"""
Firebase Admin SDK initialization and ID token verification.
The SDK is initialized once at application startup.
"""
import json
import os
import logging
from typing import Optional
import firebase_admin
from firebase_admin import credentials, auth, exceptions
from app.config import settings

logger = logging.getLogger(__name__)


_firebase_app: Optional[firebase_admin.App] = None


def _load_credentials(value: Optional[str]) -> credentials.Base:
    """
    Build credentials from FIREBASE_CREDENTIALS_JSON.

    The value may be a path (absolute, or relative to the backend/app
    directory) or the service account JSON itself. Without a value the
    application default credentials are used (local dev with gcloud).
    """
    if not value:
        return credentials.ApplicationDefault()

    app_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    candidates = [value] if os.path.isabs(value) else [os.path.join(app_dir, value.lstrip("./")), value]
    for path in candidates:
        if os.path.exists(path):
            logger.info(f"Loaded Firebase credentials from file: {path}")
            return credentials.Certificate(path)

    try:
        cred_dict = json.loads(value)
    except json.JSONDecodeError:
        raise ValueError(
            "FIREBASE_CREDENTIALS_JSON must be a valid file path or JSON string. "
            f"Tried: {', '.join(candidates)}"
        )
    logger.info("Loaded Firebase credentials from JSON string")
    return credentials.Certificate(cred_dict)


def initialize_firebase() -> None:
    """
    Initialize Firebase Admin SDK.

    Raises:
        ValueError: If FIREBASE_PROJECT_ID is missing or the credentials
            cannot be read
    """
    global _firebase_app

    if _firebase_app is not None:
        return

    if not settings.firebase_project_id:
        raise ValueError("FIREBASE_PROJECT_ID must be set")

    _firebase_app = firebase_admin.initialize_app(
        _load_credentials(settings.firebase_credentials_json),
        {"projectId": settings.firebase_project_id}
    )


def verify_firebase_token(token: str) -> dict:
    """
    Verify Firebase ID token and return decoded token claims.

    Signature, expiry, issuer and audience are checked by the SDK.

    Returns:
        Decoded token claims dict with uid, email, name, etc.

    Raises:
        ValueError: If token is invalid, expired, or revoked
    """
    if _firebase_app is None:
        raise RuntimeError("Firebase Admin SDK not initialized. Call initialize_firebase() first.")

    try:
        return auth.verify_id_token(token, app=_firebase_app)
    except ValueError:
        raise
    except exceptions.FirebaseError as e:
        raise ValueError(f"Token verification failed: {e}")
