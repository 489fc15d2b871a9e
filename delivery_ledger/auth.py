"""
Request-boundary authentication bridge.

Turns a request's credentials (an `Authorization: Bearer` header or the
session cookie set by the web client) into an `AuthenticatedUser`. Token
verification is delegated to an `IdentityProvider`; this module only decides
where the token comes from and whether the resolved email is an admin.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional, Protocol, runtime_checkable

from delivery_ledger.domain.models import AuthenticatedUser
from delivery_ledger.errors import NotAuthenticated

BEARER_PREFIX = "Bearer "
ACCESS_TOKEN_COOKIE = "sb-access-token"


@dataclass(frozen=True)
class IdentityClaims:
    """What the identity provider knows about a verified token."""

    user_id: str
    email: Optional[str] = None


@runtime_checkable
class IdentityProvider(Protocol):
    def user_for_token(self, token: str) -> Optional[IdentityClaims]:
        """Return the claims for a valid token, or None."""
        ...

    def email_for_owner(self, owner_id: str) -> Optional[str]:
        """Resolve an owner id to its display email, or None if unknown."""
        ...


class StaticIdentityProvider:
    """
    In-memory provider backed by fixed lookup tables.

    Used by the CLI, where the acting user is given on the command line, and
    by tests.
    """

    def __init__(
        self,
        tokens: Optional[Mapping[str, IdentityClaims]] = None,
        emails: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._tokens: Dict[str, IdentityClaims] = dict(tokens or {})
        self._emails: Dict[str, str] = dict(emails or {})
        for claims in self._tokens.values():
            if claims.email:
                self._emails.setdefault(claims.user_id, claims.email)

    def user_for_token(self, token: str) -> Optional[IdentityClaims]:
        return self._tokens.get(token)

    def email_for_owner(self, owner_id: str) -> Optional[str]:
        return self._emails.get(owner_id)


def is_admin_email(email: Optional[str], admin_emails: Iterable[str]) -> bool:
    """Case-insensitive membership test against the configured admin list."""
    if not email:
        return False
    wanted = email.strip().lower()
    return any(wanted == candidate.strip().lower() for candidate in admin_emails)


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return None


def extract_access_token(
    headers: Mapping[str, str],
    cookies: Optional[Mapping[str, str]] = None,
) -> Optional[str]:
    """
    Find the caller's access token.

    The `Authorization: Bearer <token>` header wins; otherwise the
    `sb-access-token` cookie is used. Returns None when neither is present.
    """
    auth_header = _header(headers, "authorization")
    if auth_header and auth_header.startswith(BEARER_PREFIX):
        token = auth_header[len(BEARER_PREFIX):].strip()
        if token:
            return token
    if cookies:
        token = (cookies.get(ACCESS_TOKEN_COOKIE) or "").strip()
        if token:
            return token
    return None


def resolve_user(
    headers: Mapping[str, str],
    cookies: Optional[Mapping[str, str]],
    provider: IdentityProvider,
    admin_emails: Iterable[str],
) -> AuthenticatedUser:
    """
    Resolve the caller once, at the boundary.

    Raises
    ------
    NotAuthenticated
        When no token is supplied or the provider rejects it.
    """
    token = extract_access_token(headers, cookies)
    if token is None:
        raise NotAuthenticated("No access token supplied")
    claims = provider.user_for_token(token)
    if claims is None:
        raise NotAuthenticated("Access token rejected by identity provider")
    return AuthenticatedUser(
        id=claims.user_id,
        email=claims.email,
        is_admin=is_admin_email(claims.email, admin_emails),
    )


__all__ = [
    "ACCESS_TOKEN_COOKIE",
    "IdentityClaims",
    "IdentityProvider",
    "StaticIdentityProvider",
    "is_admin_email",
    "extract_access_token",
    "resolve_user",
]
