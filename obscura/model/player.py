"""
Player Model

Represents one player record in the encrypted state store.
"""
from dataclasses import dataclass, replace

from obscura.model.handle import ZERO_HANDLE


@dataclass(frozen=True)
class PlayerRecord:
    """
    Represents a player on the grid.

    BLIND LEDGER: The store does NOT hold plaintext coordinates or identities.
    Only ciphertext handles are kept; decryption happens at the relay.

    Records are immutable snapshots. Every mutation swaps in a new record, so
    a reader never observes a half-applied move.
    """
    identity: str
    index: int
    x_handle: str = ZERO_HANDLE
    y_handle: str = ZERO_HANDLE
    identity_handle: str = ZERO_HANDLE
    joined: bool = True
    publicly_disclosed: bool = False

    def with_position(self, x_handle: str, y_handle: str) -> "PlayerRecord":
        return replace(self, x_handle=x_handle, y_handle=y_handle)

    def disclosed(self) -> "PlayerRecord":
        return replace(self, publicly_disclosed=True)
