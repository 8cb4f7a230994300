"""
Transition Engine - Encrypted moves on the grid
"""
from typing import Tuple

from obscura.model.inputs import EncryptedInput
from obscura.model.player import PlayerRecord
from obscura.service.ledger.store import EncryptedStateStore


class TransitionEngine:
    """Validates encrypted inputs and computes new encrypted positions"""

    def __init__(self, store: EncryptedStateStore):
        self.store = store

    def canonicalize(self, handle: str) -> str:
        """
        Fold a raw encrypted coordinate into [1, grid_size]:
            new = (v mod grid_size) + 1
        e.g. 0 -> 1, 10 -> 2, 255 -> 4 on a 9x9 grid.
        """
        return self.store.engine.add_modulo(handle, self.store.grid_size, 1, self.store.context)

    def compute_position(self, identity: str, x_input: EncryptedInput,
                         y_input: EncryptedInput) -> Tuple[str, str]:
        """
        Verify both inputs for (identity, context) and fold them.

        Nothing is written here; callers commit the pair afterwards.

        Raises:
            InvalidProof: if either input is not bound to (identity, context)
        """
        engine = self.store.engine
        raw_x = engine.verify_input(x_input, identity, self.store.context)
        raw_y = engine.verify_input(y_input, identity, self.store.context)
        return self.canonicalize(raw_x), self.canonicalize(raw_y)

    def move(self, identity: str, x_input: EncryptedInput, y_input: EncryptedInput) -> PlayerRecord:
        """
        Replace both coordinates of a joined player.

        Raises:
            NotJoined: if identity has not joined
            InvalidProof: if either input proof is rejected
        """
        record = self.store.require(identity)
        new_x, new_y = self.compute_position(record.identity, x_input, y_input)
        return self.store.replace_position(record.identity, new_x, new_y)
