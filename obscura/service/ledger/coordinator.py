"""
Ledger Coordinator - Facade and serialization point for the encrypted ledger
"""
import threading
from typing import List, NamedTuple, Optional, Tuple

from obscura.config import LEDGER_CONFIG
from obscura.errors import LedgerError
from obscura.ledger_logger import LedgerLogger
from obscura.model.inputs import EncryptedInput
from obscura.service.fhe.base import CryptoEngine
from obscura.service.ledger.acl import AccessControlList
from obscura.service.ledger.store import EncryptedStateStore
from obscura.service.ledger.transitions import TransitionEngine


class CommitEntry(NamedTuple):
    """One entry of the sequential commit log"""
    sequence: int
    operation: str
    identity: str
    handles: Tuple[str, ...]


class ObscuraLedger:
    """
    Coordinator for all ledger operations.

    Facade pattern - delegates to the store, ACL and transition engine.
    Every mutation runs under one lock and appends to the commit log, which
    fixes the total order of operations.
    """

    def __init__(self, engine: CryptoEngine, context: str = None,
                 logger: Optional[LedgerLogger] = None):
        self.context = (context or LEDGER_CONFIG["context"]).lower()
        self.engine = engine
        self.acl = AccessControlList()
        self.store = EncryptedStateStore(engine, self.acl, self.context)
        self.transitions = TransitionEngine(self.store)
        self.logger = logger

        self.commits: List[CommitEntry] = []
        self._lock = threading.RLock()

    def _commit(self, operation: str, identity: str, handles: Tuple[str, ...]) -> CommitEntry:
        entry = CommitEntry(len(self.commits) + 1, operation, identity.lower(), handles)
        self.commits.append(entry)
        if self.logger:
            self.logger.log_commit(entry.sequence, operation, entry.identity, handles)
        return entry

    def _rejected(self, operation: str, identity: str, error: LedgerError):
        print(f"[Ledger] {operation} rejected for {identity}: {error.kind}")
        if self.logger:
            self.logger.log_rejected(operation, identity, error)

    # ========================================================================
    # Mutations
    # ========================================================================

    def join(self, identity: str) -> CommitEntry:
        with self._lock:
            try:
                record = self.store.join(identity)
            except LedgerError as e:
                self._rejected("join", identity, e)
                raise
            return self._commit("join", identity, (record.x_handle, record.y_handle, record.identity_handle))

    def move(self, identity: str, x_input: EncryptedInput, y_input: EncryptedInput) -> CommitEntry:
        with self._lock:
            try:
                record = self.transitions.move(identity, x_input, y_input)
            except LedgerError as e:
                self._rejected("move", identity, e)
                raise
            return self._commit("move", identity, (record.x_handle, record.y_handle))

    def disclose(self, identity: str) -> Optional[CommitEntry]:
        """Returns None when the identity was already disclosed (no-op)"""
        with self._lock:
            try:
                already = self.store.require(identity).publicly_disclosed
                record = self.store.disclose(identity)
            except LedgerError as e:
                self._rejected("disclose", identity, e)
                raise
            if already:
                return None
            return self._commit("disclose", identity, (record.identity_handle,))

    # ========================================================================
    # Reads
    # ========================================================================

    @property
    def grid_size(self) -> int:
        return self.store.grid_size

    def has_joined(self, identity: str) -> bool:
        return self.store.has_joined(identity)

    def get_position(self, identity: str) -> Tuple[str, str]:
        return self.store.get_position(identity)

    def get_identity_handle(self, identity: str) -> str:
        return self.store.get_identity_handle(identity)

    def player_count(self) -> int:
        return self.store.player_count()

    def identity_handle_at(self, index: int) -> str:
        return self.store.identity_handle_at(index)

    def can_decrypt(self, handle: str, requester: str, scope: str) -> bool:
        return self.acl.can_decrypt(handle, requester, scope)
