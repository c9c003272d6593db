from __future__ import annotations

import time

import jwt
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from notifier.core.config import Settings
from notifier.schemas.reply import ReplyPayload
from notifier.services.progress import ProgressState


def _keypair() -> tuple[bytes, bytes]:
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_pem = key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return private_pem, public_pem


@pytest.fixture(scope="session")
def rsa_keys() -> tuple[bytes, bytes]:
    return _keypair()


@pytest.fixture(scope="session")
def other_rsa_keys() -> tuple[bytes, bytes]:
    return _keypair()


@pytest.fixture
def make_token(rsa_keys):
    private_pem, _ = rsa_keys

    def _make(expires_in: int = 300, key: bytes | None = None, **claims) -> str:
        payload = {"exp": int(time.time()) + expires_in, **claims}
        return jwt.encode(payload, key or private_pem, algorithm="RS256")

    return _make


@pytest.fixture
def make_settings():
    def _make(**overrides) -> Settings:
        return Settings(**overrides)

    return _make


@pytest.fixture
def secure_settings(make_settings, rsa_keys) -> Settings:
    return make_settings(DEEPLINK_SECURITY=True, DEEPLINK_SECURITY_KEY=rsa_keys[1].decode("utf-8"))


class RecordingChannel:
    def __init__(self) -> None:
        self.sent: list[ReplyPayload] = []
        self.closed = False

    def send(self, payload: ReplyPayload) -> None:
        self.sent.append(payload)

    async def aclose(self) -> None:
        self.closed = True


class RecordingPresenter:
    def __init__(self) -> None:
        self.activations = 0
        self.presented: list = []
        self.infos: list[str] = []
        self.links: list[str] = []
        self.progress: list[ProgressState] = []
        self.closed: list = []

    def activate(self) -> None:
        self.activations += 1

    def present(self, session) -> None:
        self.presented.append(session)

    def show_info(self, session, text: str) -> None:
        self.infos.append(text)

    def open_link(self, session, url: str) -> None:
        self.links.append(url)

    def update_progress(self, session, state: ProgressState) -> None:
        self.progress.append(state)

    def close(self, session) -> None:
        self.closed.append(session)


@pytest.fixture
def channel() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture
def presenter() -> RecordingPresenter:
    return RecordingPresenter()
