# medstock/services/session_state.py
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from medstock.domain.ports import CachePort


class SessionStateService:
    """State per sesi UI. Saat ini hanya snapshot import yang menunggu konfirmasi."""

    def __init__(self, store: CachePort, ttl: int = 3600):
        self.rs = store
        self.ttl = ttl

    @staticmethod
    def _staged_key(session_id: str) -> str:
        return f"session:{session_id}:staged_import"

    # ---- Staged import (from share link) ----
    async def save_staged_import(self, session_id: str, records: List[Dict[str, Any]]):
        await self.rs.set_json(self._staged_key(session_id), {
            "staged_at": datetime.now(timezone.utc).isoformat(),
            "records": records,
        }, ttl=self.ttl)

    async def get_staged_import(self, session_id: str) -> Optional[Dict[str, Any]]:
        return await self.rs.get_json(self._staged_key(session_id))

    async def clear_staged_import(self, session_id: str) -> bool:
        return bool(await self.rs.delete(self._staged_key(session_id)))
