"""
Token kinds and the in-memory token cache.

Each client owns its own TokenStore; nothing here is shared between
instances or persisted.
"""

import threading
from enum import Enum
from typing import Optional, Union


class TokenKind(str, Enum):
    """Token types accepted by action=query&meta=tokens."""

    CSRF = "csrf"
    LOGIN = "login"
    PATROL = "patrol"
    ROLLBACK = "rollback"
    WATCH = "watch"
    CREATEACCOUNT = "createaccount"
    USERRIGHTS = "userrights"

    @property
    def response_key(self) -> str:
        """Key the token comes back under, e.g. "csrftoken"."""
        return f"{self.value}token"

    def __str__(self) -> str:
        return self.value


KindLike = Union[TokenKind, str]


class TokenStore:
    """Last known token per kind, with one refresh lock per kind."""

    def __init__(self):
        self._tokens: dict[TokenKind, str] = {}
        self._locks: dict[TokenKind, threading.Lock] = {}
        self._guard = threading.Lock()

    def get(self, kind: KindLike) -> Optional[str]:
        return self._tokens.get(TokenKind(kind))

    def set(self, kind: KindLike, value: str) -> None:
        self._tokens[TokenKind(kind)] = value

    def invalidate(self, kind: KindLike) -> None:
        self._tokens.pop(TokenKind(kind), None)

    def clear(self) -> None:
        self._tokens.clear()

    def lock(self, kind: KindLike) -> threading.Lock:
        """Lock serializing refreshes of one token kind."""
        kind = TokenKind(kind)
        with self._guard:
            if kind not in self._locks:
                self._locks[kind] = threading.Lock()
            return self._locks[kind]

    def as_dict(self) -> dict[str, str]:
        return {kind.value: value for kind, value in self._tokens.items()}

    def __contains__(self, kind: KindLike) -> bool:
        return TokenKind(kind) in self._tokens

    def __len__(self) -> int:
        return len(self._tokens)
