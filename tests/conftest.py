"""Shared test fixtures for the survey launcher."""

from collections.abc import AsyncIterator, Callable
from pathlib import Path
from typing import Any, NamedTuple

import httpx
import jwt
import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwe

from launcher.core.app import create_app
from launcher.core.settings import LauncherSettings
from launcher.crypto.keys import load_encryption_key, load_signing_key, write_keypair
from launcher.crypto.types import KeyMaterial
from launcher.launch.deps import get_http_client

RUNNER_URL = "http://runner.test"
REMOTE_SCHEMA_URL = "http://schemas.test/remote/ecommerce.json"

SCHEMA_DOCUMENT: dict[str, Any] = {
    "eq_id": "1",
    "form_type": "0005",
    "metadata": [
        {"name": "user_id", "validator": "string"},
        {"name": "ru_ref", "validator": "string"},
        {"name": "sexual_identity", "validator": "boolean"},
        {"name": "flag_1", "validator": "boolean"},
        {"name": "transaction_code", "validator": "string"},
    ],
}

REMOTE_SCHEMA_DOCUMENT: dict[str, Any] = {
    "eq_id": "123-456-789",
    "form_type": "002",
    "metadata": [{"name": "ru_name", "validator": "string"}],
}


class KeyFiles(NamedTuple):
    """Paths of the two generated keypairs."""

    signing_private: Path
    signing_public: Path
    encryption_private: Path
    encryption_public: Path


def schema_service(request: httpx.Request) -> httpx.Response:
    """Stand-in for the runner and a remote schema host."""
    url = f"{request.url.scheme}://{request.url.host}{request.url.path}"
    if url == f"{RUNNER_URL}/schemas":
        return httpx.Response(200, json=["mbs_0216.json", "1_0005.json"])
    if url == f"{RUNNER_URL}/schemas/1/0005":
        return httpx.Response(200, json=SCHEMA_DOCUMENT)
    if url == REMOTE_SCHEMA_URL:
        return httpx.Response(200, json=REMOTE_SCHEMA_DOCUMENT)
    return httpx.Response(404, text="not found")


@pytest.fixture
def key_files(tmp_path: Path) -> KeyFiles:
    """Write a signing and an encryption keypair into a temp directory."""
    signing_private, signing_public = write_keypair(str(tmp_path), "signing")
    encryption_private, encryption_public = write_keypair(str(tmp_path), "encryption")
    return KeyFiles(
        signing_private=signing_private,
        signing_public=signing_public,
        encryption_private=encryption_private,
        encryption_public=encryption_public,
    )


@pytest.fixture
def key_material(key_files: KeyFiles) -> KeyMaterial:
    return KeyMaterial(
        signing=load_signing_key(str(key_files.signing_private)),
        encryption=load_encryption_key(str(key_files.encryption_public)),
    )


@pytest.fixture
def settings(key_files: KeyFiles) -> LauncherSettings:
    return LauncherSettings(
        survey_runner_url=RUNNER_URL,
        survey_runner_schema_url="",
        survey_register_url="",
        schema_validator_url="",
        account_service_url="http://account.test",
        jwt_signing_key_path=str(key_files.signing_private),
        jwt_encryption_key_path=str(key_files.encryption_public),
    )


@pytest.fixture
def decrypt_token(key_files: KeyFiles) -> Callable[[str], dict[str, Any]]:
    """Decrypt as the runner would, then verify the inner signature."""

    def _decrypt(token: str) -> dict[str, Any]:
        signed = jwe.decrypt(token, key_files.encryption_private.read_text())
        return jwt.decode(
            signed,
            key_files.signing_public.read_text(),
            algorithms=["RS256"],
        )

    return _decrypt


@pytest.fixture
async def client(settings: LauncherSettings) -> AsyncIterator[AsyncClient]:
    """Create an httpx test client whose outbound calls hit ``schema_service``."""
    app = create_app(settings)

    async def _override_http_client() -> AsyncIterator[httpx.AsyncClient]:
        transport = httpx.MockTransport(schema_service)
        async with httpx.AsyncClient(transport=transport) as outbound:
            yield outbound

    app.dependency_overrides[get_http_client] = _override_http_client

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
