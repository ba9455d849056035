# medstock/application/inventory_store.py
from __future__ import annotations

import uuid
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from pydantic import ValidationError as PydanticValidationError

from medstock.domain.errors import ValidationError
from medstock.domain.models import (
    DEFAULT_PMC, DEFAULT_QUANTITY, MUTABLE_FIELDS, ActorRegistry, Medication,
)

logger = logging.getLogger("medstock.inventory")

# nama atribut python -> alias wire, mis. "active_ingredient" -> "activeIngredient"
_FIELD_TO_ALIAS = {
    name: (info.alias or name) for name, info in Medication.model_fields.items()
}
IMMUTABLE_KEYS = {"id", "ownerId", "owner_id", "userId"}


def _actor_id(actor: Any) -> Optional[str]:
    return actor if isinstance(actor, str) else getattr(actor, "id", None)


def _wire_key(key: str) -> Optional[str]:
    alias = _FIELD_TO_ALIAS.get(key, key)
    return alias if alias in MUTABLE_FIELDS else None


def _build(data: Dict[str, Any]) -> Medication:
    try:
        return Medication.model_validate(data)
    except PydanticValidationError as e:
        errs = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'record'}: {err['msg']}"
            for err in e.errors()
        )
        raise ValidationError(errs) from e


def merge_patch(record: Medication, patch: Dict[str, Any]) -> Medication:
    """
    Gabungkan patch ke record. Key yang ADA di patch selalu menang (termasuk
    nilai falsy seperti 0 atau ""), kecuali id/ownerId yang immutable.
    Key tak dikenal diabaikan.
    """
    merged = record.to_wire()
    for key, value in (patch or {}).items():
        if key in IMMUTABLE_KEYS:
            continue
        wk = _wire_key(key)
        if wk is None:
            logger.debug("merge_patch: ignoring unknown field %r", key)
            continue
        merged[wk] = value
    merged["id"] = record.id
    merged["ownerId"] = record.owner_id
    return _build(merged)


class InventoryStore:
    """
    Koleksi record in-memory yang terurut; sumber kebenaran tunggal.

    Semua operasi sinkron. update/delete yang ditolak PermissionModel adalah
    no-op diam (return False), bukan exception.
    """

    def __init__(
        self,
        registry: ActorRegistry,
        snapshot: Optional[Iterable[Medication]] = None,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ):
        self.registry = registry
        self._new_id = id_factory
        self._items: List[Medication] = []
        if snapshot:
            self.replace(snapshot)

    # ------- reads -------
    @property
    def snapshot(self) -> List[Medication]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def get(self, record_id: str) -> Optional[Medication]:
        for m in self._items:
            if m.id == record_id:
                return m
        return None

    def _index_of(self, record_id: str) -> int:
        for i, m in enumerate(self._items):
            if m.id == record_id:
                return i
        return -1

    def can_mutate(self, actor: Any, record: Medication) -> bool:
        return self.registry.can_mutate(actor, record)

    # ------- mutations -------
    def create(self, actor: Any, fields: Dict[str, Any]) -> Medication:
        owner = _actor_id(actor)
        data: Dict[str, Any] = {}
        for key, value in (fields or {}).items():
            wk = _wire_key(key)
            if wk is not None:
                data[wk] = value
        if data.get("quantity") is None:
            data["quantity"] = DEFAULT_QUANTITY
        if data.get("pmc") is None:
            data["pmc"] = DEFAULT_PMC

        taken = {m.id for m in self._items}
        new_id = self._new_id()
        while new_id in taken:
            new_id = self._new_id()

        rec = _build({**data, "id": new_id, "ownerId": owner})
        self._items.append(rec)
        logger.info("[store] created id=%s owner=%s name=%s", rec.id, owner, rec.name)
        return rec

    def update(self, actor: Any, record_id: str, patch: Dict[str, Any]) -> bool:
        i = self._index_of(record_id)
        if i < 0:
            logger.info("[store] update skipped: id=%s not found", record_id)
            return False
        current = self._items[i]
        if not self.can_mutate(actor, current):
            logger.info("[store] update denied: actor=%s id=%s owner=%s",
                        _actor_id(actor), record_id, current.owner_id)
            return False
        self._items[i] = merge_patch(current, patch)
        return True

    def delete(self, actor: Any, record_id: str) -> bool:
        i = self._index_of(record_id)
        if i < 0:
            logger.info("[store] delete skipped: id=%s not found", record_id)
            return False
        current = self._items[i]
        if not self.can_mutate(actor, current):
            logger.info("[store] delete denied: actor=%s id=%s owner=%s",
                        _actor_id(actor), record_id, current.owner_id)
            return False
        del self._items[i]
        return True

    def replace(self, new_snapshot: Iterable[Medication]) -> None:
        """Ganti seluruh isi store (hanya untuk import yang sudah dikonfirmasi)."""
        items = list(new_snapshot)
        ids = [m.id for m in items]
        if len(ids) != len(set(ids)):
            raise ValidationError("snapshot contains duplicate ids")
        self._items = items
        logger.info("[store] replaced snapshot: %d record(s)", len(items))
