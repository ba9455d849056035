# medstock/presentation/routes/share.py
from __future__ import annotations

import uuid
import logging
from urllib.parse import urlencode

from fastapi import APIRouter, Cookie, Depends, Header, HTTPException, Query, Request
from fastapi.responses import RedirectResponse

from medstock.application.import_use_case import ShareImportUseCase
from medstock.container import get_share_uc
from medstock.domain.errors import DecodeError
from medstock.presentation.errors import raise_http
from medstock.presentation.schemas import (
    ImportConfirmResponse, ImportRequest, ImportStagedResponse, ShareRequest, ShareResponse,
)

logger = logging.getLogger("medstock.share")

router = APIRouter()

# landing link (dibuka browser) -> tanpa API key, hanya staging
landing_router = APIRouter()

# diset oleh landing route supaya browser tanpa X-Session-Id tetap punya sesi
SESSION_COOKIE = "medstock_session"


def _resolve_session_id(body_sid: str | None, header_sid: str | None, cookie_sid: str | None = None) -> str:
    """Prioritaskan header X-Session-Id, lalu body/query session_id, lalu cookie sesi."""
    if body_sid and header_sid and body_sid != header_sid:
        logger.warning("session_id mismatch: header=%s body=%s (using header)", header_sid, body_sid)
    sid = header_sid or body_sid or cookie_sid
    if not sid or not str(sid).strip():
        raise HTTPException(400, "Missing session id. Provide header 'X-Session-Id' or 'session_id'.")
    if len(sid) > 256:
        raise HTTPException(400, "session id too long")
    return sid


@router.post("", response_model=ShareResponse)
async def export_inventory(req: ShareRequest, uc: ShareImportUseCase = Depends(get_share_uc)):
    payload, url = uc.export(req.compressed)
    return {
        "url": url,
        "data": payload.data,
        "compressed": payload.compressed,
        "count": len(uc.inventory.store),
    }


@router.post("/import", response_model=ImportStagedResponse)
async def stage_import(
    req: ImportRequest,
    uc: ShareImportUseCase = Depends(get_share_uc),
    session_id_hdr: str | None = Header(None, alias="X-Session-Id"),
):
    sid = _resolve_session_id(req.session_id, session_id_hdr)
    try:
        records = await uc.stage(sid, req.data, req.compressed)
    except Exception as e:
        raise_http(e)
    return {"staged": len(records), "names": [m.name for m in records]}


@router.get("/import", response_model=ImportStagedResponse)
async def get_staged_import(
    uc: ShareImportUseCase = Depends(get_share_uc),
    session_id_hdr: str | None = Header(None, alias="X-Session-Id"),
    session_cookie: str | None = Cookie(None, alias=SESSION_COOKIE),
):
    sid = _resolve_session_id(None, session_id_hdr, session_cookie)
    try:
        records = await uc.staged(sid)
    except Exception as e:
        raise_http(e)
    if records is None:
        raise HTTPException(404, "No staged import for this session")
    return {"staged": len(records), "names": [m.name for m in records]}


@router.post("/import/confirm", response_model=ImportConfirmResponse)
async def confirm_import(
    uc: ShareImportUseCase = Depends(get_share_uc),
    session_id_hdr: str | None = Header(None, alias="X-Session-Id"),
    session_cookie: str | None = Cookie(None, alias=SESSION_COOKIE),
):
    sid = _resolve_session_id(None, session_id_hdr, session_cookie)
    try:
        out = await uc.confirm(sid)
    except Exception as e:
        raise_http(e)
    if out is None:
        raise HTTPException(404, "No staged import for this session")
    return {"imported": out.imported, "persisted": out.persisted}


@router.post("/import/decline")
async def decline_import(
    uc: ShareImportUseCase = Depends(get_share_uc),
    session_id_hdr: str | None = Header(None, alias="X-Session-Id"),
    session_cookie: str | None = Cookie(None, alias=SESSION_COOKIE),
):
    sid = _resolve_session_id(None, session_id_hdr, session_cookie)
    return {"discarded": await uc.decline(sid)}


@landing_router.get("/import")
async def import_landing(
    request: Request,
    session_id: str | None = Query(None),
    uc: ShareImportUseCase = Depends(get_share_uc),
    session_id_hdr: str | None = Header(None, alias="X-Session-Id"),
    session_cookie: str | None = Cookie(None, alias=SESSION_COOKIE),
):
    """
    Target link share. Payload di-stage lalu redirect ke "/" tanpa param `data`,
    apa pun hasilnya:
      pending  -> staged, menunggu confirm/decline
      invalid  -> payload rusak (DecodeError)
      failed   -> staging gagal (mis. Redis down)
      none     -> link tanpa `data`
    Browser biasanya tidak punya session id: dibuatkan baru, dikirim balik lewat
    cookie dan param `session_id` di URL redirect.
    """
    payload = uc.codec.payload_from_query(request.query_params)
    sid = session_id_hdr or session_id or session_cookie
    if not sid or len(sid) > 256:
        sid = str(uuid.uuid4())

    outcome = "none"
    if payload is not None:
        try:
            await uc.stage(sid, payload.data, payload.compressed)
            outcome = "pending"
        except DecodeError:
            outcome = "invalid"
        except Exception:
            logger.exception("[share] staging failed for session=%s", sid)
            outcome = "failed"

    params = {"import": outcome}
    if outcome == "pending":
        params["session_id"] = sid
    resp = RedirectResponse(url="/?" + urlencode(params), status_code=303)
    resp.set_cookie(SESSION_COOKIE, sid, max_age=uc.sessions.ttl, samesite="lax")
    return resp
