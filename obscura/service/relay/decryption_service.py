"""
Decryption Service - Client side of the user/public decryption protocol
"""
import asyncio
import time
from typing import Any, Dict, List, Optional, Sequence, Tuple

from nacl.exceptions import CryptoError
from nacl.signing import SigningKey

from obscura.config import AUTH_CONFIG
from obscura.errors import DecryptionError, IncompleteResponse, Unauthorized
from obscura.model.handle import ZERO_HANDLE
from obscura.service.relay.authorization import (
    build_authorization,
    generate_keypair,
    identity_of,
    open_cleartext,
    possession_proof,
    sign_authorization,
)
from obscura.service.relay.network_client import RelayNetworkClient


class DecryptionClient:
    """
    Runs the decryption protocol for one holder.

    Steps per user_decrypt call (no ledger mutation):
    1. fresh ephemeral keypair
    2. structured authorization over (public key, contracts, start, duration)
    3. holder signature over its digest
    4. request to the relay (private key stays here)
    5. open sealed results; every requested handle must be present
    """

    def __init__(self, signing_key: SigningKey, network: Optional[RelayNetworkClient] = None):
        self.signing_key = signing_key
        self.identity = identity_of(signing_key)
        self.network = network or RelayNetworkClient()

    async def user_decrypt(
        self,
        handle_contract_pairs: Sequence[Tuple[str, str]],
        contract_addresses: Sequence[str] = None,
        duration_days: int = None,
        start_timestamp: int = None,
    ) -> Dict[str, Any]:
        """
        Decrypt handles this holder is granted.

        Args:
            handle_contract_pairs: [(handle, contract), ...] in request order
            contract_addresses: Scope to sign; defaults to the contracts in the pairs
            duration_days: Validity window length
            start_timestamp: Window start (defaults to now)

        Returns:
            {handle: cleartext}
        """
        pairs = [(h.lower(), c.lower()) for h, c in handle_contract_pairs]
        if not pairs:
            raise Unauthorized("No handles requested")
        if contract_addresses is None:
            contract_addresses = list(dict.fromkeys(c for _, c in pairs))
        duration_days = AUTH_CONFIG["default_duration_days"] if duration_days is None else duration_days
        start_timestamp = int(time.time()) if start_timestamp is None else start_timestamp

        keypair = generate_keypair()
        try:
            message = build_authorization(keypair.public_key, contract_addresses, start_timestamp, duration_days)
        except ValueError as e:
            raise Unauthorized(str(e)) from e
        signature = sign_authorization(message, self.signing_key)
        relay_public_key = await self.network.get_relay_public_key()

        payload = {
            "handle_contract_pairs": [{"handle": h, "contract_address": c} for h, c in pairs],
            "public_key": keypair.public_key,
            "possession_proof": possession_proof(keypair.private_key, relay_public_key, message.digest()),
            "signature": signature,
            "contract_addresses": list(message.contract_addresses),
            "user_address": self.identity,
            "start_timestamp": message.start_timestamp,
            "duration_days": message.duration_days,
        }
        sealed = await self.network.user_decrypt(payload)
        sealed = {h.lower(): v for h, v in sealed.items()}

        missing = [h for h, _ in pairs if h not in sealed]
        if missing:
            raise IncompleteResponse(f"Relay omitted {len(missing)} handle(s): {missing}")

        results = {}
        for handle, _ in pairs:
            try:
                results[handle] = open_cleartext(sealed[handle], keypair.private_key)
            except (CryptoError, ValueError) as e:
                raise DecryptionError(f"Sealed value for {handle} could not be opened") from e
        return results

    async def public_decrypt(self, handles: Sequence[str]) -> Dict[str, Any]:
        """Decrypt publicly disclosed handles (no signature needed)"""
        handles = [h.lower() for h in handles]
        if not handles:
            raise Unauthorized("No handles requested")
        results = await self.network.public_decrypt(handles)
        results = {h.lower(): v for h, v in results.items()}

        missing = [h for h in handles if h not in results]
        if missing:
            raise IncompleteResponse(f"Relay omitted {len(missing)} handle(s): {missing}")
        return results

    # ========================================================================
    # Convenience flows
    # ========================================================================

    async def decrypt_position(self, ledger) -> Optional[Tuple[int, int]]:
        """Decrypt the holder's own (x, y) in one request; None if not joined"""
        x_handle, y_handle = ledger.get_position(self.identity)
        if x_handle == ZERO_HANDLE or y_handle == ZERO_HANDLE:
            return None

        results = await self.user_decrypt([(x_handle, ledger.context), (y_handle, ledger.context)])
        return results[x_handle], results[y_handle]

    async def list_players(self, ledger) -> List[Dict[str, Any]]:
        """
        Enumerate players by identity handle and reveal the disclosed ones.

        Each handle is public-decrypted independently, so one hidden player
        doesn't hide the others.
        """
        handles = [ledger.identity_handle_at(i) for i in range(ledger.player_count())]

        async def reveal(index: int, handle: str) -> Dict[str, Any]:
            entry = {"index": index, "handle": handle, "status": "hidden"}
            try:
                result = await self.public_decrypt([handle])
            except DecryptionError as e:
                if e.retryable:
                    entry["status"] = "error"
                return entry
            entry["status"] = "public"
            entry["public_address"] = result[handle]
            return entry

        return list(await asyncio.gather(*(reveal(i, h) for i, h in enumerate(handles))))
