# authsvc/infra/google/google_id_token_verifier.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from google.auth.exceptions import GoogleAuthError, TransportError
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token as google_id_token

from authsvc.services._shared.errors import AuthenticationError, ServiceError
from authsvc.services._shared.ports import ExternalIdentity, IdentityProvider

logger = logging.getLogger(__name__)


def _claim_true(value: Any) -> bool:
    """Google sends ``email_verified`` as a JSON bool, older tokens as ``"true"``."""
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return value is True


@dataclass(slots=True)
class GoogleIdTokenVerifier(IdentityProvider):
    """
    Adapter verifying Google ID tokens with ``google-auth``.

    Signature, issuer, expiry and audience (``client_id``) are checked against
    Google's published certificates.

    :param client_id: OAuth client id the tokens must be issued for.
    """

    client_id: str | None

    def verify(self, id_token: str) -> ExternalIdentity:
        """
        :raises ServiceError: When no client id is configured or Google's
            certificates cannot be fetched.
        :raises AuthenticationError: When the token does not verify or has no
            subject.
        """
        if not self.client_id:
            raise ServiceError("Google login is not configured")

        try:
            info: dict[str, Any] = google_id_token.verify_oauth2_token(
                id_token, google_requests.Request(), self.client_id
            )
        except TransportError as exc:
            logger.warning("google.verify_unavailable", extra={"reason": type(exc).__name__})
            raise ServiceError("Google verification is unavailable") from exc
        except (ValueError, GoogleAuthError) as exc:
            logger.info("google.verify_failed", extra={"reason": type(exc).__name__})
            raise AuthenticationError("Invalid Google token") from exc

        subject = info.get("sub")
        if not subject:
            raise AuthenticationError("Invalid Google token")

        return ExternalIdentity(
            subject=str(subject),
            email=info.get("email"),
            email_verified=_claim_true(info.get("email_verified")),
            name=info.get("name"),
            given_name=info.get("given_name"),
            picture=info.get("picture"),
        )
