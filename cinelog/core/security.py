"""
Firebase Authentication

Verifies Firebase ID tokens sent as `Authorization: Bearer <token>` and
resolves the caller identity used by every route.

Credentials are taken from, in order:
1. Local file (FIREBASE_CREDENTIALS_PATH)
2. Environment variable (GOOGLE_APPLICATION_CREDENTIALS_JSON)
3. Default credentials (Google Cloud environments)
"""

import os
import json
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import firebase_admin
from firebase_admin import auth, credentials

from ..config import get_settings
from .exceptions import UnauthorizedError
from .logging import bind_request_context, get_logger

logger = get_logger(__name__)

# Security scheme
security = HTTPBearer(auto_error=False)

# Firebase initialization flag
_firebase_initialized = False


def initialize_firebase():
    """Initialize the Firebase Admin SDK once per process."""
    global _firebase_initialized

    if _firebase_initialized or firebase_admin._apps:
        _firebase_initialized = True
        return

    settings = get_settings()
    cred_path = settings.firebase_credentials_path
    options = {"projectId": settings.firebase_project_id} if settings.firebase_project_id else None

    if cred_path and os.path.exists(cred_path):
        logger.info("firebase_init", source="file", path=cred_path)
        firebase_admin.initialize_app(credentials.Certificate(cred_path), options)
        _firebase_initialized = True
        return

    creds_json = os.environ.get("GOOGLE_APPLICATION_CREDENTIALS_JSON")
    if creds_json:
        try:
            cred = credentials.Certificate(json.loads(creds_json))
        except ValueError as e:
            logger.warning("firebase_env_credentials_invalid", error=str(e))
        else:
            logger.info("firebase_init", source="env")
            firebase_admin.initialize_app(cred, options)
            _firebase_initialized = True
            return

    logger.info("firebase_init", source="default")
    firebase_admin.initialize_app(options=options)
    _firebase_initialized = True


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> dict:
    """
    Verify Firebase ID token and return user info.

    Returns:
        dict with keys: uid, email (optional), name (optional)

    Raises:
        UnauthorizedError if the token is missing, expired or invalid
    """
    if credentials is None:
        raise UnauthorizedError("Missing authentication token")

    try:
        initialize_firebase()
        decoded_token = auth.verify_id_token(credentials.credentials)
    except auth.ExpiredIdTokenError:
        raise UnauthorizedError("Token has expired")
    except auth.InvalidIdTokenError:
        raise UnauthorizedError("Invalid authentication token")
    except Exception as e:
        logger.warning("token_verification_failed", error=str(e))
        raise UnauthorizedError("Authentication failed")

    uid = decoded_token.get("uid")
    if not uid:
        raise UnauthorizedError("Invalid token: missing uid")

    bind_request_context(uid=uid)

    return {
        "uid": uid,
        "email": decoded_token.get("email"),
        "name": decoded_token.get("name"),
    }
