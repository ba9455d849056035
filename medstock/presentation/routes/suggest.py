# medstock/presentation/routes/suggest.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from medstock.application.inventory_use_case import InventoryUseCase
from medstock.container import get_inventory_uc, get_suggestion_service
from medstock.domain.models import Actor
from medstock.infra.api.security import current_actor
from medstock.presentation.errors import raise_http
from medstock.presentation.schemas import (
    ClassRequest, DetailsRequest, ExtractResponse, MechanismRequest, PmcRequest,
)
from medstock.services.suggestion_service import SuggestionService

logger = logging.getLogger("medstock.suggest")

router = APIRouter()

ALLOWED_CT = {"image/jpeg", "image/png", "image/webp", "application/pdf", "text/plain"}


@router.post("/extract", response_model=ExtractResponse)
async def extract_and_create(
    file: UploadFile | None = File(None),
    text: str | None = Form(None),
    svc: SuggestionService = Depends(get_suggestion_service),
    uc: InventoryUseCase = Depends(get_inventory_uc),
    actor: Actor = Depends(current_actor),
):
    """
    Alur:
      1) file (gambar/PDF/.txt) atau teks bebas -> collaborator ekstraksi
      2) tiap item dibersihkan (nama wajib, quantity default 1, pmc default 0)
      3) dibuat sebagai record milik actor saat ini
    Hasil kosong bukan error.
    """
    if file is None and not (text or "").strip():
        raise HTTPException(400, "Provide a file or text")
    try:
        if file is not None:
            ct = (file.content_type or "").lower()
            if (file.filename or "").lower().endswith(".txt"):
                ct = "text/plain"
            if ct not in ALLOWED_CT:
                raise HTTPException(415, f"Unsupported file type: {ct or '-'}")
            items = await svc.extract(data=await file.read(), mime_type=ct)
        else:
            items = await svc.extract(text=text)
    except Exception as e:
        raise_http(e)

    created = await uc.create_many(actor, items)
    msg = (
        f"{len(created)} medicamento(s) adicionado(s)."
        if created else
        "Nenhum medicamento foi encontrado. Tente a entrada manual."
    )
    return {"created": [m.to_wire() for m in created], "message": msg}


@router.post("/pmc")
async def suggest_pmc(req: PmcRequest, svc: SuggestionService = Depends(get_suggestion_service)):
    return {"pmc": await svc.suggest_pmc(req.name, req.presentation, req.current)}


@router.post("/class")
async def suggest_class(req: ClassRequest, svc: SuggestionService = Depends(get_suggestion_service)):
    return {"class": await svc.suggest_class(req.name, req.active_ingredient, req.current)}


@router.post("/mechanism")
async def explain_mechanism(req: MechanismRequest, svc: SuggestionService = Depends(get_suggestion_service)):
    return {"mechanismOfAction": await svc.explain_mechanism(req.active_ingredient, req.current)}


@router.post("/details")
async def suggest_details(req: DetailsRequest, svc: SuggestionService = Depends(get_suggestion_service)):
    return {"fields": await svc.suggest_details(req.fields)}
