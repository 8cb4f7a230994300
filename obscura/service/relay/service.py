"""
Relay Service - Trusted side of user and public decryption
"""
import time
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from nacl.encoding import HexEncoder
from nacl.public import PrivateKey

from obscura.errors import MalformedHandle, Unauthorized
from obscura.model.handle import validate_handle
from obscura.service.fhe.base import Cleartext, CryptoEngine
from obscura.service.ledger.acl import AccessControlList
from obscura.service.relay.authorization import (
    build_authorization,
    seal_cleartext,
    verify_authorization,
    verify_possession,
)


class RelayService:
    """
    Checks authorization against current ACL grants, then asks the engine for
    plaintext. Never writes ledger state.

    All-or-reject: if any requested handle fails a check the whole request
    fails, nothing is decrypted.
    """

    def __init__(self, engine: CryptoEngine, acl: AccessControlList,
                 relay_key: Optional[PrivateKey] = None,
                 clock: Callable[[], float] = time.time):
        self.engine = engine
        self.acl = acl
        self.relay_key = relay_key or PrivateKey.generate()
        self.clock = clock

    @property
    def public_key(self) -> str:
        return self.relay_key.public_key.encode(encoder=HexEncoder).decode()

    def _resolve(self, handle: str) -> str:
        handle = validate_handle(handle)
        if not self.engine.knows(handle):
            raise MalformedHandle(f"Handle was never issued: {handle}")
        return handle

    def user_decrypt(
        self,
        handle_contract_pairs: Sequence[Tuple[str, str]],
        public_key: str,
        possession_proof: str,
        signature: str,
        contract_addresses: Sequence[str],
        user_address: str,
        start_timestamp: int,
        duration_days: int,
        now: Optional[int] = None,
    ) -> Dict[str, str]:
        """
        Decrypt handles for a holder under a signed authorization.

        Returns:
            {handle: cleartext sealed to the ephemeral public key (base64)}

        Raises:
            InvalidSignature / Unauthorized / AuthorizationExpired / MalformedHandle
        """
        now = int(self.clock()) if now is None else now
        if not handle_contract_pairs:
            raise Unauthorized("No handles requested")

        try:
            message = build_authorization(public_key, contract_addresses, start_timestamp, duration_days)
        except ValueError as e:
            raise Unauthorized(str(e)) from e

        verify_authorization(message, signature, user_address, now)
        verify_possession(possession_proof, message.public_key, self.relay_key, message.digest())

        scope = set(message.contract_addresses)
        resolved: List[Tuple[str, str]] = []
        for handle, contract in handle_contract_pairs:
            handle = self._resolve(handle)
            contract = contract.lower()
            if contract not in scope:
                raise Unauthorized(f"Contract {contract} is outside the signed scope")
            if not self.acl.can_decrypt(handle, user_address, contract):
                raise Unauthorized(f"{user_address.lower()} has no grant on {handle} in {contract}")
            resolved.append((handle, contract))

        results = {}
        for handle, _ in resolved:
            results[handle] = seal_cleartext(self.engine.decrypt(handle), message.public_key)
        print(f"[Relay] User decrypt served {len(results)} handle(s) for {user_address.lower()}")
        return results

    def public_decrypt(self, handles: Sequence[str]) -> Dict[str, Cleartext]:
        """
        Decrypt publicly disclosed handles for any caller.

        Raises:
            Unauthorized: if a handle carries no public grant
            MalformedHandle: if a handle was never issued
        """
        if not handles:
            raise Unauthorized("No handles requested")

        resolved = []
        for handle in handles:
            handle = self._resolve(handle)
            if not self.acl.is_public(handle):
                raise Unauthorized(f"{handle} is not publicly decryptable")
            resolved.append(handle)

        return {handle: self.engine.decrypt(handle) for handle in resolved}
