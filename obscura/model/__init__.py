"""
Ledger Models Package

Provides the data types held by the encrypted ledger.
"""

from .player import PlayerRecord
from .grant import AccessGrant, PUBLIC
from .inputs import EncryptedInput
from .handle import ZERO_HANDLE, EUINT8, EADDRESS

__all__ = ["PlayerRecord", "AccessGrant", "PUBLIC", "EncryptedInput", "ZERO_HANDLE", "EUINT8", "EADDRESS"]
