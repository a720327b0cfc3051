"""API key authentication for the agent service.

Validates the X-API-Key header against SERVICE_API_KEYS and returns a
caller id that is safe to log and key rate limits on.
"""

import hashlib
import hmac

from fastapi import HTTPException, Security
from fastapi.security import APIKeyHeader

from agent_ops.config.settings import get_settings

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


def caller_id_for(api_key: str) -> str:
    return "caller-" + hashlib.sha256(api_key.encode()).hexdigest()[:10]


async def verify_api_key(api_key: str | None = Security(api_key_header)) -> str:
    """FastAPI dependency returning the caller id for a valid key."""
    if api_key is None:
        raise HTTPException(status_code=401, detail="Missing API key")

    settings = get_settings()
    match = False
    for valid_key in settings.api_keys_list:
        # Check every key so timing does not reveal the match position
        if hmac.compare_digest(api_key, valid_key):
            match = True

    if not match:
        raise HTTPException(status_code=403, detail="Invalid API key")
    return caller_id_for(api_key)
