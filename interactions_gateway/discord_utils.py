"""Discord request signature verification (Ed25519)."""
from typing import Optional, Union

from nacl.exceptions import BadSignatureError, CryptoError
from nacl.signing import VerifyKey

from .shared.observability import get_logger

logger = get_logger('interactions-gateway.signature')


def _decode_hex(value: str) -> Optional[bytes]:
    try:
        return bytes.fromhex(value)
    except (TypeError, ValueError):
        return None


class SignatureVerifier:
    """Checks detached Ed25519 signatures over ``timestamp + raw_body``."""

    def __init__(self, public_key: Optional[str]):
        self._verify_key = None
        key_bytes = _decode_hex(public_key) if public_key else None
        if key_bytes is None:
            logger.warning("DISCORD_PUBLIC_KEY missing or not hex, all signatures will be rejected")
            return
        try:
            self._verify_key = VerifyKey(key_bytes)
        except (CryptoError, ValueError, TypeError) as e:
            logger.warning("Invalid DISCORD_PUBLIC_KEY, all signatures will be rejected", error=str(e))

    def verify(self, signature: Optional[str], timestamp: Optional[str],
               body: Union[bytes, str, None]) -> bool:
        """Return True only for a valid signature; never raises."""
        if not signature or not timestamp or not body or self._verify_key is None:
            return False

        signature_bytes = _decode_hex(signature)
        if signature_bytes is None:
            logger.warning("Signature header is not valid hex")
            return False

        if isinstance(body, str):
            body = body.encode('utf-8')
        message = timestamp.encode('utf-8') + body

        try:
            self._verify_key.verify(message, signature_bytes)
        except BadSignatureError:
            logger.warning("Signature verification failed")
            return False
        except (CryptoError, ValueError, TypeError) as e:
            # wrong signature length and similar malformed input
            logger.warning("Signature could not be checked", error=str(e))
            return False
        return True


def verify_discord_signature(signature: Optional[str], timestamp: Optional[str],
                             body: Union[bytes, str, None], public_key: Optional[str]) -> bool:
    """Verify a Discord request signature with a one-off verifier."""
    return SignatureVerifier(public_key).verify(signature, timestamp, body)
