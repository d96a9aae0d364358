import os
import hmac
import logging

from fastapi import Header, HTTPException, status, Request

logger = logging.getLogger(__name__)

_ALLOWLIST_PATHS = {
    "/",
    "/health",
    "/docs",
    "/docs/oauth2-redirect",
    "/openapi.json",
    "/redoc",
}


def get_api_keys():
    keys = os.getenv("API_KEYS", "")
    return [k.strip() for k in keys.split(",") if k.strip()]


async def api_key_protection(
    request: Request = None,  # keep Request type so FastAPI injects it; default None for direct calls/tests
    x_api_key: str = Header(default=None, alias="X-API-KEY"),
):
    valid_keys = get_api_keys()
    if not valid_keys:
        # Open API when no keys are configured (local development).
        return

    if request is not None and request.url.path in _ALLOWLIST_PATHS:
        return

    candidate = (x_api_key or "").strip()
    ok = bool(candidate) and any(hmac.compare_digest(candidate, k) for k in valid_keys)
    if not ok:
        path = request.url.path if request is not None else "<no-request>"
        logger.info("Rejected request without a valid API key: path=%s", path)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API Key",
        )
