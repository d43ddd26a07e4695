"""
Authentication of inbound webhook requests.

Webhook callers authenticate with a JWT signed with a shared HMAC secret, sent as a
bearer token in the ``Authorization`` header.
"""

# Python imports
import base64
import binascii
import logging

# 3rd party imports
import jwt

# Local imports
from wd_enrichment.constants import BEARER_PREFIX, DEFAULT_JWT_ALGORITHMS

logger = logging.getLogger(__name__)


class TokenValidator:
    """
    Verifies signed bearer tokens against a shared secret.

    The validator is stateless: every call decodes the token again and nothing is
    cached between requests. Expiry and not-before claims are enforced when a token
    carries them.
    """

    def __init__(
        self,
        secret: bytes,
        *,
        algorithms: list[str] | None = None,
        required_claims: list[str] | None = None,
        audience: str | None = None,
    ):
        """
        Initialize the validator.

        :param secret: the raw HMAC key shared with the webhook sender.
        :param algorithms: the signature algorithms accepted. Defaults to the HMAC
            family (HS256, HS384, HS512).
        :param required_claims: claims every token must carry, e.g. ``["exp"]``.
        :param audience: expected ``aud`` claim. When not set, the audience of a token
            is not checked.

        :raises ValueError: if the secret is empty.
        """
        if not secret:
            raise ValueError("The webhook signing secret must not be empty.")
        self._secret = secret
        self.algorithms = algorithms or list(DEFAULT_JWT_ALGORITHMS)
        self.required_claims = required_claims or []
        self.audience = audience

    @classmethod
    def from_base64(cls, secret: str, **kwargs) -> "TokenValidator":
        """
        Create a validator from a base64 encoded secret.

        :raises ValueError: if the secret is not valid base64.
        """
        try:
            key = base64.b64decode(secret, validate=True)
        except binascii.Error as e:
            raise ValueError("The webhook signing secret is not valid base64.") from e
        return cls(key, **kwargs)

    def validate(self, authorization: str | None) -> bool:
        """
        Check the value of an ``Authorization`` header.

        :param authorization: the header value, or None if the header is absent.

        :return: True if the header carries a bearer token with a valid signature,
            False otherwise. This method never raises.
        """
        if not authorization or not authorization.startswith(BEARER_PREFIX):
            logger.warning("Invalid Authorization header format")
            return False

        token = authorization[len(BEARER_PREFIX) :]
        try:
            jwt.decode(
                token,
                self._secret,
                algorithms=self.algorithms,
                audience=self.audience,
                options={
                    "require": self.required_claims,
                    "verify_aud": self.audience is not None,
                },
            )
        except jwt.PyJWTError as e:
            logger.warning(f"Invalid JWT: {type(e).__name__}")
            return False
        except Exception:
            logger.exception("Unexpected error while validating JWT")
            return False
        return True
