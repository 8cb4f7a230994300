"""
Decryption Authorization - Scoped, time-bounded user decryption grants

A holder authorizes an ephemeral public key to receive plaintext for handles in
named contexts during [start_timestamp, start_timestamp + duration_days).
The authorization is a typed structured message (domain / types / message)
whose digest the holder signs with its Ed25519 identity key.

Every check takes `now` explicitly so expiry logic is deterministic.
"""
import base64
import copy
import hashlib
import json
from dataclasses import dataclass
from typing import Any, Dict, NamedTuple, Sequence, Tuple, Union

from nacl.encoding import HexEncoder
from nacl.exceptions import BadSignatureError, CryptoError
from nacl.public import Box, PrivateKey, PublicKey, SealedBox
from nacl.signing import SigningKey, VerifyKey

from obscura.config import AUTH_CONFIG, LEDGER_CONFIG
from obscura.errors import AuthorizationExpired, InvalidSignature, Unauthorized

SECONDS_PER_DAY = 86400

AUTHORIZATION_TYPES = {
    "UserDecryptRequestVerification": [
        {"name": "publicKey", "type": "bytes"},
        {"name": "contractAddresses", "type": "address[]"},
        {"name": "startTimestamp", "type": "uint256"},
        {"name": "durationDays", "type": "uint256"},
    ]
}


def stable_json_dumps(obj: Any) -> str:
    return json.dumps(obj, separators=(",", ":"), sort_keys=True, ensure_ascii=False)


def _sha256(data: Union[str, bytes]) -> bytes:
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(data).digest()


# ============================================================================
# Keys
# ============================================================================

class EphemeralKeypair(NamedTuple):
    """X25519 keypair for one decryption session (hex encoded)"""
    public_key: str
    private_key: str


def generate_keypair() -> EphemeralKeypair:
    private = PrivateKey.generate()
    return EphemeralKeypair(
        public_key=private.public_key.encode(encoder=HexEncoder).decode(),
        private_key=private.encode(encoder=HexEncoder).decode(),
    )


def identity_of(signing_key: SigningKey) -> str:
    """On-ledger identity controlled by a signing key"""
    return "0x" + signing_key.verify_key.encode(encoder=HexEncoder).decode()


def _verify_key_for(identity: str) -> VerifyKey:
    try:
        return VerifyKey(identity.lower().removeprefix("0x").encode(), encoder=HexEncoder)
    except (ValueError, TypeError) as e:
        raise InvalidSignature(f"Identity is not a verify key: {identity}") from e


# ============================================================================
# Structured message
# ============================================================================

@dataclass(frozen=True)
class AuthorizationMessage:
    """Typed authorization the holder signs (pure value, no clock access)"""
    public_key: str
    contract_addresses: Tuple[str, ...]
    start_timestamp: int
    duration_days: int
    chain_id: int = LEDGER_CONFIG["chain_id"]
    verifying_contract: str = AUTH_CONFIG["verifying_contract"]

    @property
    def domain(self) -> Dict[str, Any]:
        return {
            "name": AUTH_CONFIG["domain_name"],
            "version": AUTH_CONFIG["domain_version"],
            "chainId": self.chain_id,
            "verifyingContract": self.verifying_contract.lower(),
        }

    @property
    def message(self) -> Dict[str, Any]:
        return {
            "publicKey": self.public_key.lower(),
            "contractAddresses": [c.lower() for c in self.contract_addresses],
            "startTimestamp": str(self.start_timestamp),
            "durationDays": str(self.duration_days),
        }

    @property
    def expires_at(self) -> int:
        return self.start_timestamp + self.duration_days * SECONDS_PER_DAY

    def to_typed_data(self) -> Dict[str, Any]:
        return {
            "domain": self.domain,
            "types": copy.deepcopy(AUTHORIZATION_TYPES),
            "primaryType": AUTH_CONFIG["primary_type"],
            "message": self.message,
        }

    def digest(self) -> bytes:
        """
        0x19 0x01 || H(domain) || H(types, primaryType, message)

        Any change of key, scope, start or duration changes the digest.
        """
        domain_hash = _sha256(stable_json_dumps(self.domain))
        struct_hash = _sha256(stable_json_dumps({
            "types": AUTHORIZATION_TYPES,
            "primaryType": AUTH_CONFIG["primary_type"],
            "message": self.message,
        }))
        return _sha256(b"\x19\x01" + domain_hash + struct_hash)


def build_authorization(public_key: str, contract_addresses: Sequence[str],
                        start_timestamp: int, duration_days: int) -> AuthorizationMessage:
    if not contract_addresses:
        raise ValueError("At least one contract address must be authorized")
    return AuthorizationMessage(
        public_key=public_key.lower(),
        contract_addresses=tuple(c.lower() for c in contract_addresses),
        start_timestamp=int(start_timestamp),
        duration_days=int(duration_days),
    )


def sign_authorization(message: AuthorizationMessage, signing_key: SigningKey) -> str:
    return signing_key.sign(message.digest()).signature.hex()


# ============================================================================
# Verification (relay side)
# ============================================================================

def check_window(message: AuthorizationMessage, now: int,
                 max_duration_days: int = AUTH_CONFIG["max_duration_days"],
                 clock_skew: int = AUTH_CONFIG["clock_skew"]):
    """
    Raises:
        Unauthorized: duration out of bounds or start too far in the future
        AuthorizationExpired: now is past start + duration
    """
    if not 1 <= message.duration_days <= max_duration_days:
        raise Unauthorized(f"durationDays must be in [1, {max_duration_days}], got {message.duration_days}")
    if message.start_timestamp > now + clock_skew:
        raise Unauthorized(f"Authorization starts in the future ({message.start_timestamp} > {now})")
    if now >= message.expires_at:
        raise AuthorizationExpired(f"Authorization expired at {message.expires_at} (now={now})")


def verify_authorization(message: AuthorizationMessage, signature: str, holder: str, now: int):
    """
    Check the holder signed exactly this message and that it is live at `now`.

    Raises:
        InvalidSignature: signature does not verify for holder
        Unauthorized / AuthorizationExpired: see check_window
    """
    verify_key = _verify_key_for(holder)
    try:
        verify_key.verify(message.digest(), bytes.fromhex(signature.removeprefix("0x")))
    except (BadSignatureError, ValueError) as e:
        raise InvalidSignature(f"Signature does not match holder {holder}") from e
    check_window(message, now)


# ============================================================================
# Ephemeral key possession & sealed results
# ============================================================================

def possession_proof(ephemeral_private_key: str, relay_public_key: str, digest: bytes) -> str:
    """Box(ephemeral_sk, relay_pk) over the digest; only the key owner can produce it"""
    box = Box(PrivateKey(ephemeral_private_key.encode(), encoder=HexEncoder),
              PublicKey(relay_public_key.encode(), encoder=HexEncoder))
    return bytes(box.encrypt(digest)).hex()


def verify_possession(proof: str, ephemeral_public_key: str, relay_private_key: PrivateKey, digest: bytes):
    try:
        box = Box(relay_private_key, PublicKey(ephemeral_public_key.encode(), encoder=HexEncoder))
        opened = box.decrypt(bytes.fromhex(proof))
    except (CryptoError, ValueError, TypeError) as e:
        raise Unauthorized("Ephemeral key possession could not be verified") from e
    if opened != digest:
        raise Unauthorized("Possession proof is for a different authorization")


def seal_cleartext(value: Union[int, str], ephemeral_public_key: str) -> str:
    sealed = SealedBox(PublicKey(ephemeral_public_key.encode(), encoder=HexEncoder)).encrypt(
        stable_json_dumps(value).encode("utf-8")
    )
    return base64.b64encode(bytes(sealed)).decode("utf-8")


def open_cleartext(sealed_b64: str, ephemeral_private_key: str) -> Union[int, str]:
    box = SealedBox(PrivateKey(ephemeral_private_key.encode(), encoder=HexEncoder))
    return json.loads(box.decrypt(base64.b64decode(sealed_b64)).decode("utf-8"))
