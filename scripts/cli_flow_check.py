# /scripts/cli_flow_check.py
"""
Smoke test end-to-end terhadap server yang sedang jalan:
create -> summary -> share link -> stage import -> decline -> stage -> confirm.
"""
from __future__ import annotations
import argparse, datetime as dt, json, os, sys, uuid

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from clients.medstock_client import MedStockClient  # noqa: E402
from medstock.application.share_codec import SharePayloadCodec  # noqa: E402

def print_step(title):
    print(f"\n=== {title} ===")

def pretty(o, indent=2):
    return json.dumps(o, indent=indent, ensure_ascii=False)

def main():
    ap = argparse.ArgumentParser(description="MedStock flow checker (CRUD/summary/share/import).")
    ap.add_argument("--base", default="http://127.0.0.1:8000", help="Base URL FastAPI server")
    ap.add_argument("--api-key", default=os.getenv("SERVICE_API_KEY", ""), help="X-Api-Key")
    ap.add_argument("--actor", default=None, help="X-Actor-Id (default: main actor)")
    ap.add_argument("--plain", action="store_true", help="Share link tanpa gzip")
    args = ap.parse_args()

    cli = MedStockClient(args.base, args.api_key, actor_id=args.actor)
    session_id = str(uuid.uuid4())
    print(f"Session: {session_id}")
    print(f"Base   : {args.base}")
    ok = True

    print_step("CREATE /v1/medications")
    exp = (dt.date.today() + dt.timedelta(days=10)).isoformat()
    created = cli.create({"name": "AAS Flow Check", "quantity": 5, "expirationDate": exp})
    rec = created["medication"]
    print(pretty(created))

    print_step("SUMMARY /v1/summary")
    before = cli.summary()
    print(pretty(before))
    if before["expiringSoon"] < 1 or before["lowStock"] < 1:
        print("⚠️  summary: expected expiringSoon>=1 and lowStock>=1")
        ok = False

    print_step("SHARE /v1/share")
    share = cli.share(compressed=not args.plain)
    print("url length:", len(share["url"]), "| compressed:", share["compressed"], "| count:", share["count"])
    payload = SharePayloadCodec().payload_from_url(share["url"])
    if payload is None or payload.data != share["data"]:
        print("⚠️  share url does not carry the data param")
        ok = False

    print_step("IMPORT (stage + decline)")
    print(pretty(cli.stage_import(session_id=session_id, data=share["data"], compressed=share["compressed"])))
    print(pretty(cli.decline_import(session_id=session_id)))

    print_step("IMPORT (stage + confirm)")
    cli.stage_import(session_id=session_id, data=share["data"], compressed=share["compressed"])
    confirmed = cli.confirm_import(session_id=session_id)
    print(pretty(confirmed))
    if confirmed["imported"] != share["count"]:
        print("⚠️  import count mismatch")
        ok = False

    print_step("CLEANUP")
    print(pretty(cli.delete(rec["id"])))

    print("\nRESULT:", "PASS ✅" if ok else "CHECK NEEDED ⚠️")
    return 0 if ok else 1

if __name__ == "__main__":
    sys.exit(main())
