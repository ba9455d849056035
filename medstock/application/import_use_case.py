# medstock/application/import_use_case.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from medstock.application.inventory_use_case import InventoryUseCase
from medstock.application.share_codec import SharePayload, SharePayloadCodec
from medstock.domain.errors import DecodeError
from medstock.domain.models import Medication
from medstock.services.session_state import SessionStateService

logger = logging.getLogger("medstock.share")


@dataclass
class ImportOutcome:
    imported: int
    persisted: bool


class ShareImportUseCase:
    """
    Alur share:
      export()   -> snapshot live di-encode jadi link
      stage()    -> payload di-decode & divalidasi, disimpan per sesi (BELUM mengganti store)
      confirm()  -> snapshot staged menggantikan store secara utuh
      decline()  -> staged dibuang, store tidak berubah
    """

    def __init__(
        self,
        inventory: InventoryUseCase,
        sessions: SessionStateService,
        codec: Optional[SharePayloadCodec] = None,
        base_url: str = "http://localhost:8000/import",
        compress_default: bool = True,
    ):
        self.inventory = inventory
        self.sessions = sessions
        self.codec = codec or SharePayloadCodec()
        self.base_url = base_url
        self.compress_default = compress_default

    def export(self, compressed: Optional[bool] = None) -> tuple[SharePayload, str]:
        use_gzip = self.compress_default if compressed is None else compressed
        payload = self.codec.encode(self.inventory.store.snapshot, compressed=use_gzip)
        return payload, self.codec.build_url(self.base_url, payload)

    async def stage(self, session_id: str, data: str, compressed: bool) -> List[Medication]:
        try:
            records = self.codec.decode(data, compressed)
        except DecodeError:
            logger.warning("[share] rejected payload for session=%s", session_id)
            raise
        await self.sessions.save_staged_import(session_id, [m.to_wire() for m in records])
        logger.info("[share] staged %d record(s) for session=%s", len(records), session_id)
        return records

    async def staged(self, session_id: str) -> Optional[List[Medication]]:
        blob = await self.sessions.get_staged_import(session_id)
        if not blob:
            return None
        # sudah divalidasi saat stage; validasi ulang karena cache di luar proses
        return self.codec.validate(blob.get("records"))

    async def confirm(self, session_id: str) -> Optional[ImportOutcome]:
        records = await self.staged(session_id)
        if records is None:
            return None
        res = await self.inventory.replace(records)
        await self.sessions.clear_staged_import(session_id)
        logger.info("[share] import confirmed session=%s records=%d", session_id, len(records))
        return ImportOutcome(imported=len(records), persisted=res.persisted)

    async def decline(self, session_id: str) -> bool:
        discarded = await self.sessions.clear_staged_import(session_id)
        logger.info("[share] import declined session=%s discarded=%s", session_id, discarded)
        return discarded
