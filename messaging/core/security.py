"""
Caller identity boundary.

The upstream gateway authenticates users and forwards the caller id in a
header. When an identity secret is configured the gateway also signs the id
with HMAC-SHA256 and the signature is checked here before the id is trusted.
"""
import hmac
import hashlib
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from messaging.core.config import get_settings, Settings
from messaging.core.database import get_db
from messaging.core.exceptions import Unauthenticated
from messaging.core.logging import get_logger
from messaging.models.user import User

logger = get_logger(__name__)


def compute_signature(secret: str, user_id: str) -> str:
    """
    Compute the HMAC-SHA256 signature the gateway attaches to a caller id.

    Args:
        secret: The shared identity secret
        user_id: The authenticated caller id

    Returns:
        Hex-encoded HMAC-SHA256 signature
    """
    return hmac.new(
        key=secret.encode("utf-8"),
        msg=user_id.encode("utf-8"),
        digestmod=hashlib.sha256
    ).hexdigest()


def verify_signature(secret: str, user_id: str, signature: str) -> bool:
    """Verify a caller id signature using constant-time comparison."""
    expected_signature = compute_signature(secret, user_id)
    # Bytes, since header values may carry non-ASCII text
    return hmac.compare_digest(expected_signature.encode("utf-8"), signature.encode("utf-8"))


def get_caller_id(
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> str:
    """
    Resolve the authenticated caller for a request.

    Raises:
        Unauthenticated: if the header is missing, the signature is missing or
            wrong, or the id does not belong to a known user
    """
    user_id: Optional[str] = request.headers.get(settings.identity_header)
    if not user_id or not user_id.strip():
        logger.warning("Request missing caller identity header")
        raise Unauthenticated("Caller identity is required")
    user_id = user_id.strip()

    if settings.is_identity_signing_enabled:
        signature = request.headers.get(settings.identity_signature_header)
        if not signature or not verify_signature(settings.identity_secret, user_id, signature):
            logger.warning(
                "Caller identity signature verification failed",
                extra={"extra_data": {"user_id": user_id}}
            )
            raise Unauthenticated("Caller identity could not be verified")

    if db.get(User, user_id) is None:
        logger.warning(
            "Caller identity does not match a known user",
            extra={"extra_data": {"user_id": user_id}}
        )
        raise Unauthenticated("Caller identity is not a known user")

    return user_id
