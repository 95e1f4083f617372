"""Azure AD bearer-token validation.

Sign-in, sign-out and token refresh happen at the identity provider. This
module only verifies the tokens the dashboard forwards and turns their
claims into a ``UserInfo``.
"""

from __future__ import annotations

import json
import logging
import time
import urllib.error
import urllib.request
from typing import Any

from fastapi import HTTPException, status
from jose import jwk, jwt
from jose.constants import Algorithms
from jose.exceptions import ExpiredSignatureError, JWSSignatureError, JWTClaimsError, JWTError

from ems.models.auth import UserInfo

logger = logging.getLogger(__name__)

_JWKS_TTL_SECONDS = 24 * 60 * 60
_JWKS_URL = "https://login.microsoftonline.com/{tenant_id}/discovery/v2.0/keys"

# tenant_id -> (fetched_at, jwks)
_jwks_cache: dict[str, tuple[float, dict[str, Any]]] = {}


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_jwks(tenant_id: str) -> dict[str, Any]:
    cached = _jwks_cache.get(tenant_id)
    now = time.time()
    if cached and now - cached[0] < _JWKS_TTL_SECONDS:
        return cached[1]

    url = _JWKS_URL.format(tenant_id=tenant_id)
    logger.info("Fetching JWKS from %s", url)

    try:
        req = urllib.request.Request(url)  # noqa: S310
        with urllib.request.urlopen(req, timeout=15) as resp:  # noqa: S310
            jwks = json.loads(resp.read().decode())
    except (urllib.error.URLError, urllib.error.HTTPError) as e:
        logger.error("Failed to fetch JWKS: %s", e)
        if cached:
            logger.warning("Using expired JWKS from cache for tenant %s", tenant_id)
            return cached[1]
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Could not fetch JWKS: {e}",
        ) from e

    _jwks_cache[tenant_id] = (now, jwks)
    return jwks


def get_signing_key(token: str, tenant_id: str) -> dict[str, str]:
    try:
        kid = jwt.get_unverified_header(token).get("kid")
    except JWTError as e:
        raise _unauthorized(f"Invalid token header: {e}") from e

    if not kid:
        raise _unauthorized("Token has no 'kid' in header")

    for key in get_jwks(tenant_id).get("keys", []):
        if key.get("kid") == kid:
            return key

    raise _unauthorized(f"No matching signing key for kid: {kid}")


def validate_token(token: str, tenant_id: str, client_id: str) -> dict[str, Any]:
    """Verify signature, expiry, issuer and audience; return the claims."""
    if not tenant_id or not client_id:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Missing Azure AD configuration",
        )

    key_dict = get_signing_key(token, tenant_id)
    algorithm = key_dict.get("alg", Algorithms.RS256)
    public_key = jwk.construct(key_dict, algorithm=algorithm)

    issuers = [
        f"https://login.microsoftonline.com/{tenant_id}/v2.0",
        f"https://sts.windows.net/{tenant_id}/",
    ]
    audiences = [client_id, f"api://{client_id}"]
    options = {
        "verify_signature": True,
        "verify_aud": True,
        "verify_iss": True,
        "verify_exp": True,
        "require": ["exp", "iss", "aud"],
    }

    last_error: Exception | None = None
    for issuer in issuers:
        for audience in audiences:
            try:
                return jwt.decode(
                    token,
                    public_key,
                    algorithms=[algorithm],
                    audience=audience,
                    issuer=issuer,
                    options=options,
                )
            except ExpiredSignatureError as e:
                raise _unauthorized("Token is expired") from e
            except JWSSignatureError as e:
                raise _unauthorized("Invalid token signature") from e
            except (JWTClaimsError, JWTError) as e:
                last_error = e

    message = str(last_error).lower() if last_error else ""
    if isinstance(last_error, JWTClaimsError) and "audience" in message:
        raise _unauthorized(f"Invalid token audience. Expected one of: {audiences}")
    if isinstance(last_error, JWTClaimsError) and "issuer" in message:
        raise _unauthorized(f"Invalid token issuer. Expected one of: {issuers}")
    raise _unauthorized("Invalid authentication credentials")


def extract_roles_from_token(payload: dict[str, Any]) -> list[str]:
    roles = payload.get("roles", [])
    if not isinstance(roles, list):
        return []
    return [str(r) for r in roles if isinstance(r, str | int)]


def user_from_claims(payload: dict[str, Any]) -> UserInfo:
    return UserInfo(
        id=payload.get("oid") or payload.get("sub"),
        name=payload.get("name"),
        email=payload.get("preferred_username") or payload.get("email"),
        roles=extract_roles_from_token(payload),
    )
