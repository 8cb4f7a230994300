from typing import NamedTuple

# Grantee marker for handles anyone may decrypt
PUBLIC = "*"


class AccessGrant(NamedTuple):
    """Permission for `grantee` to decrypt `handle` within `scope`"""
    handle: str
    grantee: str
    scope: str

    @property
    def is_public(self) -> bool:
        return self.grantee == PUBLIC
