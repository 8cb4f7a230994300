"""
Ledger Service - Encrypted state for the grid game

Structure:
- coordinator.py: ObscuraLedger (Facade, lock, commit log)
- store.py: EncryptedStateStore (player records)
- acl.py: AccessControlList (decryption grants)
- transitions.py: TransitionEngine (encrypted moves)
"""

from .coordinator import ObscuraLedger, CommitEntry
from .store import EncryptedStateStore
from .acl import AccessControlList
from .transitions import TransitionEngine

__all__ = [
    'ObscuraLedger',
    'CommitEntry',
    'EncryptedStateStore',
    'AccessControlList',
    'TransitionEngine',
]
