# medstock/presentation/routers.py
from __future__ import annotations

import logging
import datetime as dt
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from medstock.infra.api.security import current_actor, require_api_key
from medstock.container import get_inventory_uc, get_registry, get_report_service

from medstock.application.inventory_use_case import InventoryUseCase
from medstock.domain.expiry import classify, days_until, today
from medstock.domain.models import Actor, ActorRegistry, Medication
from medstock.services.report_service import ReportService
from medstock.presentation.errors import raise_http

from medstock.presentation.schemas import (
    ActorsResponse,
    MedicationIn,
    MutationResponse,
    ReportRequest, ReportResponse,
    SummaryResponse,
)

logger = logging.getLogger("medstock.api")


def medication_view(m: Medication, actor: Actor, registry: ActorRegistry, ref: dt.date) -> Dict[str, Any]:
    return {
        **m.to_wire(),
        "status": classify(m.expiration_date, ref).value,
        "daysUntilExpiration": days_until(m.expiration_date, ref),
        "canEdit": registry.can_mutate(actor, m),
        "ownerName": registry.name_of(m.owner_id),
    }


# Semua endpoint di bawah /v1 dan terlindungi API key
router = APIRouter(prefix="/v1", dependencies=[Depends(require_api_key)])


@router.get("/actors", response_model=ActorsResponse)
async def list_actors(registry: ActorRegistry = Depends(get_registry)):
    return {
        "main": registry.main_id,
        "authorized": registry.authorized_ids,
        "actors": [a.model_dump() for a in registry.actors],
    }


# ── MEDICATIONS ──────────────────────────────────────────────────
@router.get("/medications")
async def list_medications(
    q: Optional[str] = Query(None, description="Case-insensitive search term"),
    uc: InventoryUseCase = Depends(get_inventory_uc),
    actor: Actor = Depends(current_actor),
) -> List[Dict[str, Any]]:
    ref = today()
    return [medication_view(m, actor, uc.registry, ref) for m in uc.list(q)]


@router.get("/medications/{record_id}")
async def get_medication(
    record_id: str,
    uc: InventoryUseCase = Depends(get_inventory_uc),
    actor: Actor = Depends(current_actor),
) -> Dict[str, Any]:
    m = uc.get(record_id)
    if m is None:
        raise HTTPException(status_code=404, detail="Medication not found")
    return medication_view(m, actor, uc.registry, today())


@router.post("/medications", status_code=status.HTTP_201_CREATED, response_model=MutationResponse)
async def create_medication(
    body: MedicationIn,
    uc: InventoryUseCase = Depends(get_inventory_uc),
    actor: Actor = Depends(current_actor),
):
    try:
        res = await uc.create(actor, body.to_fields())
    except Exception as e:
        raise_http(e)
    logger.info("[create] actor=%s id=%s persisted=%s", actor.id, res.medication.id, res.persisted)
    return {"applied": True, "persisted": res.persisted, "medication": res.medication.to_wire()}


@router.patch("/medications/{record_id}", response_model=MutationResponse)
async def update_medication(
    record_id: str,
    body: MedicationIn,
    uc: InventoryUseCase = Depends(get_inventory_uc),
    actor: Actor = Depends(current_actor),
):
    try:
        res = await uc.update(actor, record_id, body.to_fields())
    except Exception as e:
        raise_http(e)
    med = res.medication.to_wire() if res.medication else None
    return {"applied": res.applied, "persisted": res.persisted, "medication": med}


@router.delete("/medications/{record_id}", response_model=MutationResponse)
async def delete_medication(
    record_id: str,
    uc: InventoryUseCase = Depends(get_inventory_uc),
    actor: Actor = Depends(current_actor),
):
    res = await uc.delete(actor, record_id)
    return {"applied": res.applied, "persisted": res.persisted}


# ── SUMMARY / REPORT ─────────────────────────────────────────────
@router.get("/summary", response_model=SummaryResponse)
async def inventory_summary(uc: InventoryUseCase = Depends(get_inventory_uc)):
    return uc.summary().model_dump(by_alias=True)


@router.post("/report", response_model=ReportResponse)
async def inventory_report(
    req: ReportRequest,
    uc: InventoryUseCase = Depends(get_inventory_uc),
    reports: ReportService = Depends(get_report_service),
):
    try:
        markdown, source = await reports.generate(uc.store.snapshot, req.columns, assisted=req.assisted)
        return {"markdown": markdown, "source": source}
    except Exception as e:
        raise_http(e)


# ── Sub-routers ──────────────────────────────────────────────────
from medstock.presentation.routes import share as share_routes
router.include_router(share_routes.router, prefix="/share")

from medstock.presentation.routes import suggest as suggest_routes
router.include_router(suggest_routes.router, prefix="/suggest")
