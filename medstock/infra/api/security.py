# medstock/infra/api/security.py
from fastapi import Depends, Header, HTTPException, status
from fastapi.security.api_key import APIKeyHeader
import os, logging

from medstock.container import get_registry
from medstock.domain.models import Actor, ActorRegistry

log = logging.getLogger("medstock.api")

API_KEY_NAME = "X-Api-Key"
_api_key_header = APIKeyHeader(name=API_KEY_NAME, auto_error=False)


async def require_api_key(api_key: str = Depends(_api_key_header)):
    # dibaca per request supaya bisa diubah lewat env tanpa re-import
    if os.getenv("REQUIRE_API_KEY", "1") != "1":
        return
    service_key = os.getenv("SERVICE_API_KEY", "")
    if not service_key:
        log.warning("Auth fail: SERVICE_API_KEY not configured")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Service key not configured")
    if not api_key or api_key != service_key:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")


async def current_actor(
    actor_id: str | None = Header(None, alias="X-Actor-Id"),
    registry: ActorRegistry = Depends(get_registry),
) -> Actor:
    """
    Actor dipilih klien (tanpa autentikasi identitas); default = main actor.
    Id yang tidak ada di registry ditolak.
    """
    if not actor_id:
        return registry.main
    actor = registry.get(actor_id)
    if actor is None:
        log.info("unknown actor id=%s", actor_id)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown actor: {actor_id}")
    return actor
