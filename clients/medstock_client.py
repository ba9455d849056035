import requests
from typing import Optional, Dict, Any, List

class MedStockClient:
    def __init__(self, base_url: str, api_key: str, actor_id: Optional[str] = None):
        self.base_url = base_url.rstrip("/")
        self.headers = {"X-Api-Key": api_key, "Content-Type": "application/json"}
        if actor_id: self.headers["X-Actor-Id"] = actor_id

    def _h(self, session_id: Optional[str] = None) -> Dict[str, str]:
        h = dict(self.headers)
        if session_id: h["X-Session-Id"] = session_id
        return h

    def list(self, q: Optional[str] = None, timeout: int = 30) -> List[Dict[str, Any]]:
        params = {"q": q} if q else None
        r = requests.get(f"{self.base_url}/v1/medications", params=params, headers=self._h(), timeout=timeout)
        r.raise_for_status(); return r.json()

    def summary(self, timeout: int = 30) -> Dict[str, Any]:
        r = requests.get(f"{self.base_url}/v1/summary", headers=self._h(), timeout=timeout)
        r.raise_for_status(); return r.json()

    def create(self, fields: Dict[str, Any], timeout: int = 30) -> Dict[str, Any]:
        r = requests.post(f"{self.base_url}/v1/medications", json=fields, headers=self._h(), timeout=timeout)
        r.raise_for_status(); return r.json()

    def update(self, record_id: str, patch: Dict[str, Any], timeout: int = 30) -> Dict[str, Any]:
        r = requests.patch(f"{self.base_url}/v1/medications/{record_id}", json=patch, headers=self._h(), timeout=timeout)
        r.raise_for_status(); return r.json()

    def delete(self, record_id: str, timeout: int = 30) -> Dict[str, Any]:
        r = requests.delete(f"{self.base_url}/v1/medications/{record_id}", headers=self._h(), timeout=timeout)
        r.raise_for_status(); return r.json()

    def share(self, compressed: Optional[bool] = None, timeout: int = 30) -> Dict[str, Any]:
        r = requests.post(f"{self.base_url}/v1/share", json={"compressed": compressed}, headers=self._h(), timeout=timeout)
        r.raise_for_status(); return r.json()

    def stage_import(self, *, session_id: str, data: str, compressed: bool, timeout: int = 30) -> Dict[str, Any]:
        payload = {"data": data, "compressed": compressed}
        r = requests.post(f"{self.base_url}/v1/share/import", json=payload, headers=self._h(session_id), timeout=timeout)
        r.raise_for_status(); return r.json()

    def confirm_import(self, *, session_id: str, timeout: int = 30) -> Dict[str, Any]:
        r = requests.post(f"{self.base_url}/v1/share/import/confirm", headers=self._h(session_id), timeout=timeout)
        r.raise_for_status(); return r.json()

    def decline_import(self, *, session_id: str, timeout: int = 30) -> Dict[str, Any]:
        r = requests.post(f"{self.base_url}/v1/share/import/decline", headers=self._h(session_id), timeout=timeout)
        r.raise_for_status(); return r.json()

    def extract_file(self, *, filepath: str, mime_type: str = "image/jpeg", timeout: int = 120) -> Dict[str, Any]:
        h = {k: v for k, v in self.headers.items() if k != "Content-Type"}
        with open(filepath, "rb") as fh:
            files = {"file": (filepath, fh, mime_type)}
            r = requests.post(f"{self.base_url}/v1/suggest/extract", headers=h, files=files, timeout=timeout)
        r.raise_for_status(); return r.json()

    def report(self, columns: Optional[List[str]] = None, assisted: bool = False, timeout: int = 120) -> str:
        r = requests.post(f"{self.base_url}/v1/report", json={"columns": columns, "assisted": assisted}, headers=self._h(), timeout=timeout)
        r.raise_for_status(); return r.json()["markdown"]
