from __future__ import annotations

import base64
import json
import secrets
import time

import pytest
from nacl.signing import SigningKey

from obscura.ledger_logger import LedgerLogger
from obscura.model.handle import EADDRESS
from obscura.service.fhe.base import CryptoEngine
from obscura.service.ledger import ObscuraLedger
from obscura.service.relay.authorization import identity_of
from obscura.service.relay.service import RelayService

TEST_CONTEXT = "0x00000000000000000000000000000000000c0de1"
OTHER_CONTEXT = "0x00000000000000000000000000000000000c0de2"


class FakeCiphertext:
    """Plaintext stand-in for a ciphertext; only reachable through the engine table"""

    def __init__(self, value, nonce: str = None):
        self.value = value
        self.nonce = nonce or secrets.token_hex(8)


class InMemoryEngine(CryptoEngine):
    """CryptoEngine double that keeps values in the clear (tests only)"""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.decrypt_calls = 0
        self.fold_calls = 0

    def _encrypt(self, value_type, value):
        return FakeCiphertext(value)

    def _serialize(self, ciphertext):
        raw = json.dumps({"v": ciphertext.value, "n": ciphertext.nonce}).encode("utf-8")
        return base64.b64encode(raw).decode("utf-8")

    def _ingest(self, ciphertext_b64):
        data = json.loads(base64.b64decode(ciphertext_b64, validate=True))
        return FakeCiphertext(int(data["v"]), data["n"])

    def _add_modulo(self, ciphertext, modulus, offset):
        self.fold_calls += 1
        return FakeCiphertext((ciphertext.value % modulus) + offset)

    def _decrypt(self, value_type, ciphertext):
        self.decrypt_calls += 1
        if value_type == EADDRESS:
            return str(ciphertext.value)
        return int(ciphertext.value)

    def _sample(self, low, high):
        return FakeCiphertext(self._uniform(low, high))


@pytest.fixture
def engine() -> InMemoryEngine:
    return InMemoryEngine()


@pytest.fixture
def ledger_logger(tmp_path) -> LedgerLogger:
    return LedgerLogger(TEST_CONTEXT, log_dir=str(tmp_path / "logs"))


@pytest.fixture
def ledger(engine, ledger_logger) -> ObscuraLedger:
    return ObscuraLedger(engine, TEST_CONTEXT, logger=ledger_logger)


@pytest.fixture
def relay(engine, ledger) -> RelayService:
    return RelayService(engine, ledger.acl, clock=time.time)


@pytest.fixture
def alice_key() -> SigningKey:
    return SigningKey.generate()


@pytest.fixture
def bob_key() -> SigningKey:
    return SigningKey.generate()


@pytest.fixture
def alice(alice_key) -> str:
    return identity_of(alice_key)


@pytest.fixture
def bob(bob_key) -> str:
    return identity_of(bob_key)


@pytest.fixture
def relay_server(relay):
    from obscura import http_server

    http_server.initialize_server(relay)
    yield http_server.app
    http_server.state.relay = None
