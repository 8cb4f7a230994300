"""
Crypto Engine Interface - Handle-addressed homomorphic capability

The ledger never touches ciphertexts directly. It asks the engine for new
handles and for homomorphic transforms of existing ones; the engine keeps the
ciphertext table (coprocessor model). Concrete backends implement the
_encrypt / _ingest / _add_modulo / _decrypt hooks.
"""
import hashlib
import secrets
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple, Union

from nacl.encoding import HexEncoder
from nacl.exceptions import BadSignatureError
from nacl.signing import SigningKey

from obscura.config import LEDGER_CONFIG
from obscura.errors import InvalidProof, MalformedHandle
from obscura.model.handle import EADDRESS, EUINT8, derive_handle, validate_handle
from obscura.model.inputs import EncryptedInput

Cleartext = Union[int, str]


def _proof_message(ciphertext: str, caller: str, context: str) -> bytes:
    digest = hashlib.sha256(ciphertext.encode("utf-8")).hexdigest()
    return f"{digest}|{caller.lower()}|{context.lower()}".encode("utf-8")


class CryptoEngine(ABC):
    """Abstract homomorphic engine addressed by handles"""

    def __init__(self, scheme_version: Optional[int] = None, verifier_key: Optional[SigningKey] = None):
        self.scheme_version = LEDGER_CONFIG["scheme_version"] if scheme_version is None else scheme_version
        # Input verifier: attests that an input ciphertext was produced for (caller, context)
        self.verifier_key = verifier_key or SigningKey.generate()
        self._ciphertexts: Dict[str, Tuple[int, Any]] = {}
        self._sequence = 0
        self._lock = threading.Lock()

    # ========================================================================
    # Backend hooks
    # ========================================================================

    @abstractmethod
    def _encrypt(self, value_type: int, value: Cleartext) -> Any:
        """Encrypt a cleartext into a backend ciphertext"""

    @abstractmethod
    def _serialize(self, ciphertext: Any) -> str:
        """Serialize a backend ciphertext to base64"""

    @abstractmethod
    def _ingest(self, ciphertext_b64: str) -> Any:
        """Deserialize a client ciphertext"""

    @abstractmethod
    def _add_modulo(self, ciphertext: Any, modulus: int, offset: int) -> Any:
        """Homomorphically compute (v mod modulus) + offset"""

    @abstractmethod
    def _decrypt(self, value_type: int, ciphertext: Any) -> Cleartext:
        """Decrypt a backend ciphertext"""

    @abstractmethod
    def _sample(self, low: int, high: int) -> Any:
        """Encrypted uniform sample in [low, high]"""

    # ========================================================================
    # Handle table
    # ========================================================================

    def _store(self, value_type: int, ciphertext: Any, context: str) -> str:
        with self._lock:
            self._sequence += 1
            handle = derive_handle(context, self._sequence, value_type, self.scheme_version)
            self._ciphertexts[handle] = (value_type, ciphertext)
        return handle

    def _load(self, handle: str) -> Tuple[int, Any]:
        handle = validate_handle(handle)
        entry = self._ciphertexts.get(handle)
        if entry is None:
            raise MalformedHandle(f"Handle was never issued: {handle}")
        return entry

    def knows(self, handle: str) -> bool:
        try:
            self._load(handle)
        except MalformedHandle:
            return False
        return True

    # ========================================================================
    # Ledger-side operations
    # ========================================================================

    def random_in_range(self, low: int, high: int, context: str) -> str:
        """Fresh encrypted euint8 sampled uniformly in [low, high]"""
        if not 0 <= low <= high < 256:
            raise ValueError(f"Range [{low}, {high}] does not fit euint8")
        return self._store(EUINT8, self._sample(low, high), context)

    def encrypt_identity(self, identity: str, context: str) -> str:
        """Encrypted eaddress copy of the caller identity"""
        return self._store(EADDRESS, self._encrypt(EADDRESS, identity.lower()), context)

    def verify_input(self, encrypted_input: EncryptedInput, caller: str, context: str) -> str:
        """
        Check the input proof is bound to (caller, context) and ingest it.

        Raises:
            InvalidProof: if the proof was issued for another caller/context
                or the ciphertext was altered
        """
        message = _proof_message(encrypted_input.ciphertext, caller, context)
        try:
            self.verifier_key.verify_key.verify(message, bytes.fromhex(encrypted_input.proof))
        except (BadSignatureError, ValueError) as e:
            raise InvalidProof(f"Input proof rejected for {caller} in {context}") from e

        try:
            ciphertext = self._ingest(encrypted_input.ciphertext)
        except (ValueError, RuntimeError) as e:
            raise InvalidProof(f"Input ciphertext could not be loaded: {e}") from e
        return self._store(EUINT8, ciphertext, context)

    def add_modulo(self, handle: str, modulus: int, offset: int, context: str) -> str:
        """Fresh handle holding (v mod modulus) + offset"""
        value_type, ciphertext = self._load(handle)
        if value_type != EUINT8:
            raise MalformedHandle(f"add_modulo needs an euint8 handle: {handle}")
        return self._store(EUINT8, self._add_modulo(ciphertext, modulus, offset), context)

    def decrypt(self, handle: str) -> Cleartext:
        """Plaintext for a handle. Only the relay calls this, after authorization."""
        value_type, ciphertext = self._load(handle)
        return self._decrypt(value_type, ciphertext)

    # ========================================================================
    # Client-side encryption
    # ========================================================================

    def encrypt_input(self, value: int, caller: str, context: str) -> EncryptedInput:
        """
        Encrypt an 8-bit value for submission by `caller` to `context`.
        The verifier signs the binding, so the input cannot be replayed
        by another caller or against another context.
        """
        if not 0 <= value < 256:
            raise ValueError(f"Input {value} does not fit euint8")
        ciphertext_b64 = self._serialize(self._encrypt(EUINT8, value))
        signed = self.verifier_key.sign(_proof_message(ciphertext_b64, caller, context))
        return EncryptedInput(ciphertext=ciphertext_b64, proof=signed.signature.hex())

    @property
    def verifier_public_key(self) -> str:
        return self.verifier_key.verify_key.encode(encoder=HexEncoder).decode()

    @staticmethod
    def _uniform(low: int, high: int) -> int:
        return low + secrets.randbelow(high - low + 1)
