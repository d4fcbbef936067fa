"""Caller identity resolution.

Every rate-limited caller is named by an opaque token. A trusted header value
wins, then a previously issued cookie; otherwise a random UUID4 is minted and
the caller is expected to present it on later requests.

This module only decides *which* identity applies. Handing a new identity back
to the client (cookie + header) is done by the HTTP middleware.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Callable


@dataclass(frozen=True)
class ResolvedIdentity:
    """Identity for the current request.

    Attributes:
        identity: Non-empty caller token.
        is_new: True when the token was generated for this request and must be
            persisted back to the caller.
    """

    identity: str
    is_new: bool


def _new_identity() -> str:
    return str(uuid.uuid4())


class IdentityResolver:
    """Pick the caller identity from request hints, minting one if needed."""

    def __init__(self, id_factory: Callable[[], str] = _new_identity) -> None:
        self._id_factory = id_factory

    def resolve(
        self,
        header_value: str | None = None,
        cookie_value: str | None = None,
    ) -> ResolvedIdentity:
        """Resolve the identity for one request.

        Caller-supplied values are not validated beyond being non-empty.

        Args:
            header_value: Value of the trusted identity header, if any.
            cookie_value: Value of the identity cookie, if any.

        Returns:
            ResolvedIdentity; ``is_new`` is True only for generated tokens.
        """
        hint = header_value or cookie_value
        if hint:
            return ResolvedIdentity(identity=hint, is_new=False)
        return ResolvedIdentity(identity=self._id_factory(), is_new=True)
