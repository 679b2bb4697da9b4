"""Launch token issuance: RS256 JWS nested inside an RSA-OAEP/A256GCM JWE."""

from collections.abc import Mapping
from typing import Any

import jwt
import structlog
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey
from jose import jwe, jwk
from jose.constants import ALGORITHMS
from jose.exceptions import JOSEError
from jwt.algorithms import RSAAlgorithm

from launcher.core.errors import TokenIssuanceError
from launcher.crypto.types import KeyMaterial

SIGNING_ALGORITHM = "RS256"
KEY_WRAP_ALGORITHM = ALGORITHMS.RSA_OAEP
CONTENT_ENCRYPTION = ALGORITHMS.A256GCM
TOKEN_TYPE = "JWT"

logger = structlog.get_logger(__name__)


class TokenIssuer:
    """Signs claim sets with the launcher key and encrypts them for the runner."""

    def __init__(self, keys: KeyMaterial) -> None:
        self._keys = keys

    def issue(self, claims: Mapping[str, Any]) -> str:
        """Sign ``claims`` then encrypt the signed token into a compact JWE."""
        signing = self._keys.signing
        encryption = self._keys.encryption

        try:
            signer = RSAAlgorithm(RSAAlgorithm.SHA256).prepare_key(signing.key)
        except (jwt.PyJWTError, ValueError, TypeError) as exc:
            raise TokenIssuanceError(
                "signer", "Error creating JWT signer", exc
            ) from exc

        try:
            if not isinstance(encryption.key, RSAPublicKey):
                raise TypeError(
                    f"Expected an RSA public key, got {type(encryption.key).__name__}"
                )
            encryptor = jwk.construct(encryption.key, KEY_WRAP_ALGORITHM)
        except (JOSEError, ValueError, TypeError) as exc:
            raise TokenIssuanceError(
                "encryptor", "Error creating JWT encrypter", exc
            ) from exc

        try:
            signed = jwt.encode(
                dict(claims),
                signer,
                algorithm=SIGNING_ALGORITHM,
                headers={"kid": signing.kid, "typ": TOKEN_TYPE},
            )
        except (jwt.PyJWTError, ValueError, TypeError) as exc:
            raise TokenIssuanceError("sign", "Error signing JWT", exc) from exc

        try:
            encrypted = jwe.encrypt(
                signed,
                encryptor,
                encryption=CONTENT_ENCRYPTION,
                algorithm=KEY_WRAP_ALGORITHM,
                cty=TOKEN_TYPE,
                kid=encryption.kid,
            )
        except (JOSEError, ValueError, TypeError) as exc:
            raise TokenIssuanceError("encrypt", "Error encrypting JWT", exc) from exc

        token = encrypted.decode() if isinstance(encrypted, bytes) else encrypted
        logger.debug(
            "token_issued",
            token=token,
            signing_kid=signing.kid,
            encryption_kid=encryption.kid,
        )
        return token
