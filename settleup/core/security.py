import logging
import time
from fastapi import HTTPException, Request
from jose import jwt
import httpx
from settleup.core.config import settings

logger = logging.getLogger(__name__)

_jwks_cache = None
_jwks_last_fetch = 0
JWKS_TTL = 60 * 60  # Time to live : 1 hour


def jwks_url() -> str:
    return f"{settings.AUTH_ISSUER.rstrip('/')}/.well-known/jwks.json"


async def get_jwks():
    """
    JWKS fetcher with:
    - timeout
    - cache
    - fallback to the previous keys when the issuer is unreachable
    """
    global _jwks_cache, _jwks_last_fetch

    if _jwks_cache and time.time() - _jwks_last_fetch < JWKS_TTL:
        return _jwks_cache

    try:
        async with httpx.AsyncClient(timeout=3.0) as client:
            res = await client.get(jwks_url())
            res.raise_for_status()
            _jwks_cache = res.json()
            _jwks_last_fetch = time.time()
            return _jwks_cache

    except httpx.HTTPError as e:
        if _jwks_cache:
            logger.warning("JWKS refresh failed, using cached keys: %s", e)
            return _jwks_cache

        logger.error("JWKS fetch failed: %s", e)
        raise HTTPException(
            status_code=503, detail="Auth service unavailable. Try again later."
        )


def get_bearer_token(request: Request) -> str:
    auth = request.headers.get("Authorization")
    if not auth or not auth.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing token")
    return auth.split(" ")[1]


def create_access_token(data: dict, expires_in: int = 60 * 60) -> str:
    payload = dict(data)
    payload["exp"] = int(time.time()) + expires_in
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGO)


async def decode_token(token: str) -> dict:
    options = {"verify_aud": settings.AUTH_AUDIENCE is not None}

    try:
        if not settings.AUTH_ISSUER:
            return jwt.decode(
                token,
                settings.JWT_SECRET,
                algorithms=[settings.JWT_ALGO],
                audience=settings.AUTH_AUDIENCE,
                options=options,
            )

        unverified_header = jwt.get_unverified_header(token)
        jwks = await get_jwks()

        key = next(k for k in jwks["keys"] if k["kid"] == unverified_header["kid"])

        return jwt.decode(
            token,
            key,
            algorithms=["RS256"],
            audience=settings.AUTH_AUDIENCE,
            issuer=settings.AUTH_ISSUER,
            options=options,
        )

    except StopIteration:
        raise HTTPException(401, "Invalid token key")
    except jwt.ExpiredSignatureError:
        raise HTTPException(401, "Token expired")
    except jwt.JWTError:
        raise HTTPException(401, "Invalid token")
