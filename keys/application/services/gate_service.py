"""
Gate service.

Issues and checks the signed tokens that tie an external unlock gate
to exactly one key. The client is sent to the gate with a token; the
gate provider calls our callback with that token plus an HMAC of it
computed with KEYGATE_GATE_CALLBACK_SECRET, which only the provider
holds. A bare token is never enough to unlock a key.
"""
import hashlib
import hmac
import logging
from urllib.parse import quote

from django.conf import settings
from django.core import signing

from core.domain.exceptions import InvalidGateTokenError

logger = logging.getLogger(__name__)

GATE_TOKEN_SALT = "keygate.gate"


class GateService:
    """Service for gate tokens and gate URLs."""

    def __init__(self, gate_url: str = None, max_age: int = None, callback_secret: str = None):
        """
        Initialize the gate service.

        Args:
            gate_url: URL template with a {token} placeholder
            max_age: Token lifetime in seconds
            callback_secret: Secret shared with the gate provider only
        """
        self.gate_url = gate_url or settings.KEYGATE_GATE_URL
        self.max_age = max_age if max_age is not None else settings.KEYGATE_GATE_TOKEN_MAX_AGE
        self.callback_secret = (
            callback_secret
            if callback_secret is not None
            else settings.KEYGATE_GATE_CALLBACK_SECRET
        )
        self._signer = signing.TimestampSigner(salt=GATE_TOKEN_SALT)

    def issue_token(self, key: str) -> str:
        """
        Sign a gate token for a key.

        Args:
            key: Key string

        Returns:
            Signed, timestamped token
        """
        return self._signer.sign(key)

    def gate_url_for(self, key: str) -> str:
        """
        Build the external gate URL for a key.

        Args:
            key: Key string

        Returns:
            Gate URL carrying a fresh token
        """
        return self.gate_url.format(token=quote(self.issue_token(key), safe=""))

    @staticmethod
    def callback_signature(token: str, secret: str) -> str:
        """
        Compute the provider's signature over a gate token.

        Args:
            token: Gate token
            secret: Callback secret

        Returns:
            HMAC SHA-256 signature (hex)
        """
        return hmac.new(secret.encode(), token.encode(), hashlib.sha256).hexdigest()

    def read_token(self, token: str) -> str:
        """
        Check a gate token and return the key it names.

        Args:
            token: Token from the gate callback

        Returns:
            Key string

        Raises:
            InvalidGateTokenError: If the signature is bad or expired
        """
        try:
            return self._signer.unsign(token, max_age=self.max_age)
        except signing.SignatureExpired as e:
            logger.warning("Expired gate token: %s", e)
            raise InvalidGateTokenError() from e
        except signing.BadSignature as e:
            logger.warning("Bad gate token signature")
            raise InvalidGateTokenError() from e

    def read_callback(self, token: str, signature: str) -> str:
        """
        Check a provider callback and return the key it unlocks.

        Args:
            token: Gate token
            signature: Provider HMAC over the token

        Returns:
            Key string

        Raises:
            InvalidGateTokenError: If no callback secret is configured, the
                provider signature does not match, or the token is bad
        """
        if not self.callback_secret:
            logger.warning("Gate callback rejected: no callback secret configured")
            raise InvalidGateTokenError()

        expected = self.callback_signature(token, self.callback_secret)
        if not hmac.compare_digest(expected, signature or ""):
            logger.warning("Gate callback rejected: provider signature mismatch")
            raise InvalidGateTokenError()

        return self.read_token(token)
