"""
Encrypted State Store - One record per player, handles only
"""
from typing import Dict, List, Optional, Tuple

from obscura.config import LEDGER_CONFIG
from obscura.errors import AlreadyJoined, NotJoined
from obscura.model.handle import ZERO_HANDLE
from obscura.model.player import PlayerRecord
from obscura.service.fhe.base import CryptoEngine
from obscura.service.ledger.acl import AccessControlList


class EncryptedStateStore:
    """
    Holds the player records of one ledger context.

    Mutators assume the caller holds the ledger lock (see ObscuraLedger);
    readers never lock and see whole record snapshots.
    """

    def __init__(self, engine: CryptoEngine, acl: AccessControlList, context: str,
                 grid_size: int = LEDGER_CONFIG["grid_size"]):
        self.engine = engine
        self.acl = acl
        self.context = context.lower()
        self.grid_size = grid_size
        self._records: Dict[str, PlayerRecord] = {}
        self._order: List[str] = []

    def _grant_owner(self, identity: str, *handles: str):
        for handle in handles:
            self.acl.allow(handle, identity, self.context)
            # The ledger keeps access to its own handles for later transitions
            self.acl.allow(handle, self.context, self.context)

    # ========================================================================
    # Mutations
    # ========================================================================

    def join(self, identity: str) -> PlayerRecord:
        """
        Place a new player at an encrypted random cell.

        Raises:
            AlreadyJoined: if identity already has a joined record
        """
        identity = identity.lower()
        existing = self._records.get(identity)
        if existing is not None and existing.joined:
            raise AlreadyJoined(f"{identity} has already joined")

        x_handle = self.engine.random_in_range(1, self.grid_size, self.context)
        y_handle = self.engine.random_in_range(1, self.grid_size, self.context)
        identity_handle = self.engine.encrypt_identity(identity, self.context)

        record = PlayerRecord(
            identity=identity,
            index=len(self._order),
            x_handle=x_handle,
            y_handle=y_handle,
            identity_handle=identity_handle,
        )
        self._grant_owner(identity, x_handle, y_handle, identity_handle)

        self._records[identity] = record
        self._order.append(identity)
        return record

    def replace_position(self, identity: str, x_handle: str, y_handle: str) -> PlayerRecord:
        """Swap in both new coordinate handles in a single record write"""
        record = self.require(identity)
        self._grant_owner(record.identity, x_handle, y_handle)
        updated = record.with_position(x_handle, y_handle)
        self._records[record.identity] = updated
        return updated

    def disclose(self, identity: str) -> PlayerRecord:
        """
        Make the identity handle publicly decryptable. One-way, idempotent.

        Raises:
            NotJoined: if identity has not joined
        """
        record = self.require(identity)
        if record.publicly_disclosed:
            return record

        self.acl.allow_public(record.identity_handle)
        updated = record.disclosed()
        self._records[record.identity] = updated
        return updated

    # ========================================================================
    # Reads
    # ========================================================================

    def get(self, identity: str) -> Optional[PlayerRecord]:
        return self._records.get(identity.lower())

    def require(self, identity: str) -> PlayerRecord:
        record = self.get(identity)
        if record is None or not record.joined:
            raise NotJoined(f"{identity.lower()} has not joined")
        return record

    def has_joined(self, identity: str) -> bool:
        record = self.get(identity)
        return record is not None and record.joined

    def get_position(self, identity: str) -> Tuple[str, str]:
        record = self.get(identity)
        if record is None or not record.joined:
            return ZERO_HANDLE, ZERO_HANDLE
        return record.x_handle, record.y_handle

    def get_identity_handle(self, identity: str) -> str:
        record = self.get(identity)
        if record is None or not record.joined:
            return ZERO_HANDLE
        return record.identity_handle

    def player_count(self) -> int:
        return len(self._order)

    def identity_handle_at(self, index: int) -> str:
        """Identity handle of the index-th player in join order"""
        if not 0 <= index < len(self._order):
            raise IndexError(f"No player at index {index} (count={len(self._order)})")
        return self._records[self._order[index]].identity_handle
