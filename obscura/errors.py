"""
Error Taxonomy - Ledger failures and decryption failures are separate trees
"""


class ObscuraError(Exception):
    """Base exception for all Obscura errors"""
    kind = "ObscuraError"


# ============================================================================
# Ledger errors (abort the operation, no state change)
# ============================================================================

class LedgerError(ObscuraError):
    """Raised when a ledger mutation is rejected"""
    kind = "LedgerError"


class AlreadyJoined(LedgerError):
    """Raised on a second join by the same identity"""
    kind = "AlreadyJoined"


class NotJoined(LedgerError):
    """Raised when move/disclose is called before join"""
    kind = "NotJoined"


class InvalidProof(LedgerError):
    """Raised when an encrypted input is not bound to (caller, context)"""
    kind = "InvalidProof"


# ============================================================================
# Decryption errors (never affect ledger state)
# ============================================================================

class DecryptionError(ObscuraError):
    """Raised when a decryption request cannot be served"""
    kind = "DecryptionError"
    retryable = False


class AuthorizationExpired(DecryptionError):
    """Raised when the signed validity window has elapsed"""
    kind = "AuthorizationExpired"


class Unauthorized(DecryptionError):
    """Raised when no grant matches the requested handle/identity"""
    kind = "Unauthorized"


class InvalidSignature(Unauthorized):
    """Raised when the holder signature does not verify"""
    kind = "InvalidSignature"


class MalformedHandle(DecryptionError):
    """Raised for a handle that is badly formed or was never issued"""
    kind = "MalformedHandle"


class RelayUnavailable(DecryptionError):
    """Raised when the relay cannot be reached (transient)"""
    kind = "RelayUnavailable"
    retryable = True


class IncompleteResponse(DecryptionError):
    """Raised when the relay answers without every requested handle"""
    kind = "IncompleteResponse"


DECRYPTION_ERRORS = {
    cls.kind: cls
    for cls in (
        DecryptionError,
        AuthorizationExpired,
        Unauthorized,
        InvalidSignature,
        MalformedHandle,
        RelayUnavailable,
        IncompleteResponse,
    )
}
