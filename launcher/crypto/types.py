"""Type definitions for launch token keys."""

from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey
from pydantic import BaseModel, ConfigDict


class KeyPairData(BaseModel):
    """A PEM-encoded RSA keypair and the kid of its public half."""

    kid: str
    private_key_pem: str
    public_key_pem: str


class SigningKey(BaseModel):
    """RSA private key used to sign launch tokens."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    key: RSAPrivateKey
    kid: str


class EncryptionKey(BaseModel):
    """RSA public key of the survey runner used to encrypt launch tokens."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    key: RSAPublicKey
    kid: str


class KeyMaterial(BaseModel):
    """Both keys needed to issue a token."""

    model_config = ConfigDict(frozen=True)

    signing: SigningKey
    encryption: EncryptionKey
