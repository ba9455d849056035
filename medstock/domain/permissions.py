# medstock/domain/permissions.py
from __future__ import annotations

from typing import Any, Iterable, Optional


def _actor_id(actor: Any) -> Optional[str]:
    if actor is None:
        return None
    if isinstance(actor, str):
        return actor
    return getattr(actor, "id", None)


def _owner_id(record: Any) -> Optional[str]:
    if record is None:
        return None
    if isinstance(record, dict):
        return record.get("ownerId") or record.get("owner_id")
    return getattr(record, "owner_id", None)


def can_mutate(actor: Any, record: Any, main_id: str, authorized_ids: Iterable[str]) -> bool:
    """
    Boleh edit/hapus jika:
      (a) actor adalah owner record, atau
      (b) actor ada di daftar authorized DAN owner record adalah main actor.
    Selain itu ditolak (authorized vs authorized lain, siapa pun vs record milik
    actor unauthorized). Id tidak dikenal cukup gagal di kedua syarat.
    """
    aid = _actor_id(actor)
    owner = _owner_id(record)
    if not aid or not owner:
        return False
    if aid == owner:
        return True
    return aid in set(authorized_ids or ()) and owner == main_id
