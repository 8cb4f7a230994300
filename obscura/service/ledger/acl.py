"""
Access Control List - Who may decrypt which handle
"""
import threading
from typing import Dict, FrozenSet, Set, Tuple

from obscura.model.grant import AccessGrant, PUBLIC


class AccessControlList:
    """
    Grant table keyed by handle.

    Grants are append-only: nothing here revokes a grant, so a public grant is
    permanent and a superseded handle keeps whatever grants it had.
    """

    def __init__(self):
        self._grants: Dict[str, Set[Tuple[str, str]]] = {}
        self._public: Set[str] = set()
        self._lock = threading.Lock()

    def allow(self, handle: str, grantee: str, scope: str) -> AccessGrant:
        """Grant `grantee` decryption of `handle` within `scope`"""
        with self._lock:
            self._grants.setdefault(handle, set()).add((grantee.lower(), scope.lower()))
        return AccessGrant(handle, grantee.lower(), scope.lower())

    def allow_public(self, handle: str) -> AccessGrant:
        """Anyone may decrypt `handle` from now on"""
        with self._lock:
            self._public.add(handle)
        return AccessGrant(handle, PUBLIC, PUBLIC)

    def is_public(self, handle: str) -> bool:
        return handle in self._public

    def can_decrypt(self, handle: str, requester: str, scope: str) -> bool:
        """True iff (requester, scope) holds a grant on handle, or handle is public"""
        if handle in self._public:
            return True
        return (requester.lower(), scope.lower()) in self._grants.get(handle, ())

    def grants_for(self, handle: str) -> FrozenSet[AccessGrant]:
        with self._lock:
            grants = {AccessGrant(handle, g, s) for g, s in self._grants.get(handle, ())}
            if handle in self._public:
                grants.add(AccessGrant(handle, PUBLIC, PUBLIC))
        return frozenset(grants)
