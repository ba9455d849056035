# tests/integration/test_api_routes.py
import datetime as dt
from urllib.parse import parse_qs, urlsplit

import pytest
from fastapi.testclient import TestClient
from conftest import AUTHORIZED, AUTHORIZED_2, OUTSIDER, MemoryCache, StubSuggestions, make_med

from main import app
from medstock.application.import_use_case import ShareImportUseCase
from medstock.container import (
    get_inventory_uc, get_registry, get_report_service, get_share_uc, get_suggestion_service,
)
from medstock.presentation.routes.share import SESSION_COOKIE
from medstock.services.report_service import ReportService
from medstock.services.session_state import SessionStateService
from medstock.services.suggestion_service import SuggestionService

SID = {"X-Session-Id": "s-123"}


@pytest.fixture
def stub():
    return StubSuggestions(
        extracted=[{"name": "Dorflex", "quantity": "2"}, {"activeIngredient": "sem nome"}],
        pmc="R$ 21,50",
        med_class="Analgésico",
    )


@pytest.fixture
def cli(monkeypatch, registry, inventory, share_uc, stub):
    monkeypatch.setenv("REQUIRE_API_KEY", "0")
    app.dependency_overrides[get_registry] = lambda: registry
    app.dependency_overrides[get_inventory_uc] = lambda: inventory
    app.dependency_overrides[get_share_uc] = lambda: share_uc
    app.dependency_overrides[get_suggestion_service] = lambda: SuggestionService(stub)
    app.dependency_overrides[get_report_service] = lambda: ReportService(stub)
    # tanpa context manager: startup (load dari Mongo) tidak dijalankan
    yield TestClient(app)
    app.dependency_overrides.clear()


def _create(cli, body, actor=None):
    headers = {"X-Actor-Id": actor} if actor else {}
    res = cli.post("/v1/medications", json=body, headers=headers)
    assert res.status_code == 201, res.text
    return res.json()["medication"]


def test_api_key_is_enforced(cli, monkeypatch):
    monkeypatch.setenv("REQUIRE_API_KEY", "1")
    monkeypatch.setenv("SERVICE_API_KEY", "s3cret")
    assert cli.get("/v1/summary").status_code == 401
    assert cli.get("/v1/summary", headers={"X-Api-Key": "s3cret"}).status_code == 200


def test_health(cli):
    assert cli.get("/healthz").json() == {"ok": True}


def test_actors(cli):
    body = cli.get("/v1/actors").json()
    assert body["main"] == "user_main"
    assert AUTHORIZED in body["authorized"]


def test_create_list_and_view_fields(cli):
    exp = (dt.date.today() + dt.timedelta(days=10)).isoformat()
    rec = _create(cli, {"name": "AAS", "quantity": 5, "expirationDate": exp})
    assert rec["ownerId"] == "user_main"

    [view] = cli.get("/v1/medications").json()
    assert view["status"] == "expiring_within_30"
    assert view["daysUntilExpiration"] == 10
    assert view["canEdit"] is True
    assert view["ownerName"] == "Usuário Principal"

    assert cli.get("/v1/summary").json() == {"total": 1, "expired": 0, "expiringSoon": 1, "lowStock": 1}


def test_create_with_typed_date_and_defaults(cli):
    rec = _create(cli, {"name": "Dipirona", "expirationInput": "03/2027"})
    assert rec["expirationDate"] == "2027-03-31"
    assert rec["quantity"] == 1
    assert rec["pmc"] == 0.0


def test_create_rejects_bad_input(cli):
    assert cli.post("/v1/medications", json={"name": ""}).status_code == 422
    assert cli.post("/v1/medications", json={"name": "X", "expirationInput": "31/02/2026"}).status_code == 422
    assert cli.post("/v1/medications", json={"name": "X", "quantity": -2}).status_code == 422


def test_unknown_actor_is_rejected(cli):
    res = cli.post("/v1/medications", json={"name": "X"}, headers={"X-Actor-Id": "ghost"})
    assert res.status_code == 400


def test_search_and_get(cli):
    a = _create(cli, {"name": "Losartana"})
    _create(cli, {"name": "Omeprazol", "manufacturer": "EMS"})
    assert [m["name"] for m in cli.get("/v1/medications", params={"q": "ems"}).json()] == ["Omeprazol"]
    assert cli.get(f"/v1/medications/{a['id']}").json()["name"] == "Losartana"
    assert cli.get("/v1/medications/nope").status_code == 404


def test_permissions_through_api(cli):
    mine = _create(cli, {"name": "Do autorizado", "quantity": 4}, actor=AUTHORIZED)

    res = cli.patch(f"/v1/medications/{mine['id']}", json={"quantity": 9}, headers={"X-Actor-Id": AUTHORIZED_2})
    assert res.status_code == 200
    assert res.json()["applied"] is False
    assert res.json()["medication"]["quantity"] == 4

    view = cli.get("/v1/medications", headers={"X-Actor-Id": AUTHORIZED_2}).json()[0]
    assert view["canEdit"] is False

    main_rec = _create(cli, {"name": "Do principal"})
    res = cli.patch(f"/v1/medications/{main_rec['id']}", json={"quantity": 0}, headers={"X-Actor-Id": AUTHORIZED})
    assert res.json()["applied"] is True
    assert res.json()["medication"]["quantity"] == 0

    res = cli.delete(f"/v1/medications/{main_rec['id']}", headers={"X-Actor-Id": OUTSIDER})
    assert res.json()["applied"] is False
    res = cli.delete(f"/v1/medications/{main_rec['id']}", headers={"X-Actor-Id": AUTHORIZED})
    assert res.json() == {"applied": True, "persisted": True, "medication": None}


def test_share_stage_confirm_flow(cli, inventory):
    _create(cli, {"name": "Para compartilhar"})
    share = cli.post("/v1/share", json={"compressed": True}).json()
    assert share["compressed"] is True and share["count"] == 1
    assert "data=" + share["data"] in share["url"]

    inventory.store.replace([make_med("other", name="Local")])

    staged = cli.post("/v1/share/import", json={"data": share["data"], "compressed": True}, headers=SID)
    assert staged.json() == {"staged": 1, "names": ["Para compartilhar"]}
    assert [m["name"] for m in cli.get("/v1/medications").json()] == ["Local"]
    assert cli.get("/v1/share/import", headers=SID).json()["staged"] == 1

    confirmed = cli.post("/v1/share/import/confirm", headers=SID)
    assert confirmed.json() == {"imported": 1, "persisted": True}
    assert [m["name"] for m in cli.get("/v1/medications").json()] == ["Para compartilhar"]
    assert cli.post("/v1/share/import/confirm", headers=SID).status_code == 404


def test_share_decline_and_bad_payload(cli):
    _create(cli, {"name": "Fica"})
    share = cli.post("/v1/share", json={"compressed": False}).json()
    cli.post("/v1/share/import", json={"data": share["data"], "session_id": "s-123"})
    assert cli.post("/v1/share/import/decline", headers=SID).json() == {"discarded": True}
    assert cli.get("/v1/share/import", headers=SID).status_code == 404

    bad = cli.post("/v1/share/import", json={"data": share["data"], "compressed": True}, headers=SID)
    assert bad.status_code == 400
    assert cli.post("/v1/share/import", json={"data": share["data"]}).status_code == 400


def _landing(cli, url, **kw):
    # link share dibuka apa adanya: path + query dari URL hasil export
    return cli.get("/import" + url.split("/import", 1)[1], follow_redirects=False, **kw)


def test_landing_link_with_session_header(cli):
    _create(cli, {"name": "Via link"})
    share = cli.post("/v1/share", json={}).json()

    res = _landing(cli, share["url"], headers=SID)
    assert res.status_code == 303
    assert res.headers["location"] == "/?import=pending&session_id=s-123"
    assert cli.get("/v1/share/import", headers=SID).json()["names"] == ["Via link"]


def test_landing_link_opened_without_session(cli):
    _create(cli, {"name": "Dipirona"})
    share = cli.post("/v1/share", json={}).json()

    res = _landing(cli, share["url"])
    assert res.status_code == 303
    target = urlsplit(res.headers["location"])
    qs = parse_qs(target.query)
    assert target.path == "/"
    assert qs["import"] == ["pending"]
    assert "data" not in qs
    sid = qs["session_id"][0]
    assert res.cookies[SESSION_COOKIE] == sid

    assert cli.get("/v1/share/import", headers={"X-Session-Id": sid}).json()["names"] == ["Dipirona"]
    # cookie dari landing cukup untuk confirm tanpa header
    assert cli.post("/v1/share/import/confirm").json() == {"imported": 1, "persisted": True}


def test_landing_outcomes(cli):
    res = cli.get("/import", params={"data": "%%%", "session_id": "s-9"}, follow_redirects=False)
    assert res.headers["location"] == "/?import=invalid"
    res = cli.get("/import", follow_redirects=False)
    assert res.headers["location"] == "/?import=none"


class BrokenCache(MemoryCache):
    async def set_json(self, key, value, ttl=3600):
        raise ConnectionError("redis down")


def test_landing_redirects_when_staging_fails(cli, inventory):
    _create(cli, {"name": "Dipirona"})
    broken = ShareImportUseCase(inventory=inventory, sessions=SessionStateService(BrokenCache()))
    app.dependency_overrides[get_share_uc] = lambda: broken
    payload, _ = broken.export(compressed=True)

    res = cli.get("/import", params={"data": payload.data, "compressed": "true", "session_id": "s1"},
                  follow_redirects=False)
    assert res.status_code == 303
    assert res.headers["location"] == "/?import=failed"


def test_report(cli):
    assert "vazio" in cli.post("/v1/report", json={}).json()["markdown"]
    _create(cli, {"name": "Dipirona", "pmc": 12.5})
    md = cli.post("/v1/report", json={"columns": ["name", "pmc"]}).json()["markdown"]
    assert md.splitlines()[-1] == "| Dipirona | R$ 12,50 |"
    assert cli.post("/v1/report", json={"columns": ["nope"]}).status_code == 422


def test_assisted_report_falls_back_to_local(cli, stub):
    _create(cli, {"name": "Dipirona", "pmc": 12.5})
    stub.report = "| Nome do Medicamento |\n| --- |\n| Dipirona |"
    body = cli.post("/v1/report", json={"columns": ["name"], "assisted": True}).json()
    assert body == {"markdown": stub.report, "source": "assistant"}

    stub.fail = True
    body = cli.post("/v1/report", json={"columns": ["name"], "assisted": True}).json()
    assert body == {"markdown": "| Nome do Medicamento |\n| --- |\n| Dipirona |", "source": "local"}


def test_extract_text_creates_records(cli, stub):
    res = cli.post("/v1/suggest/extract", data={"text": "2 caixas de Dorflex"})
    body = res.json()
    assert res.status_code == 200
    assert [m["name"] for m in body["created"]] == ["Dorflex"]
    assert body["created"][0]["quantity"] == 2
    assert "1 medicamento" in body["message"]


def test_extract_rejects_unsupported_file(cli):
    res = cli.post("/v1/suggest/extract", files={"file": ("a.zip", b"PK", "application/zip")})
    assert res.status_code == 415
    assert cli.post("/v1/suggest/extract").status_code == 400


def test_extract_collaborator_failure_is_502(cli, stub):
    stub.fail = True
    res = cli.post("/v1/suggest/extract", files={"file": ("nota.txt", b"Dorflex", "text/plain")})
    assert res.status_code == 502


def test_field_suggestions(cli):
    assert cli.post("/v1/suggest/pmc", json={"name": "Dorflex"}).json() == {"pmc": 21.5}
    assert cli.post("/v1/suggest/pmc", json={"name": "Dorflex", "current": 3}).json() == {"pmc": None}
    assert cli.post("/v1/suggest/class", json={"name": "Dorflex"}).json() == {"class": "Analgésico"}
