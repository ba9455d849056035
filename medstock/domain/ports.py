# medstock/domain/ports.py
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from medstock.domain.models import Medication


class SnapshotRepoPort(ABC):
    """Persistence: simpan/baca seluruh snapshot sebagai satu blob."""

    @abstractmethod
    async def load_snapshot(self) -> List[Medication]: ...

    @abstractmethod
    async def save_snapshot(self, snapshot: List[Medication]) -> None: ...


class CachePort(ABC):
    @abstractmethod
    async def get_json(self, key: str) -> Optional[Any]: ...

    @abstractmethod
    async def set_json(self, key: str, value: Any, ttl: int = 3600) -> None: ...

    @abstractmethod
    async def delete(self, *keys: str) -> int: ...


class SuggestionPort(ABC):
    """
    Layanan generatif (LLM/vision). Semua hasil dianggap best-effort & tidak
    dipercaya; validasi dilakukan di SuggestionService.
    """

    @abstractmethod
    async def extract_from_text(self, text: str) -> List[Dict[str, Any]]: ...

    @abstractmethod
    async def extract_from_file(self, data: bytes, mime_type: str) -> List[Dict[str, Any]]: ...

    @abstractmethod
    async def suggest_pmc(self, name: str, presentation: Optional[str]) -> Any:
        """Jawaban mentah (str/angka); parsing harga di SuggestionService."""

    @abstractmethod
    async def suggest_class(self, name: str, active_ingredient: Optional[str]) -> str: ...

    @abstractmethod
    async def suggest_details(self, name: str) -> Dict[str, Any]: ...

    @abstractmethod
    async def explain_mechanism(self, active_ingredient: str) -> str: ...

    async def write_report(self, records: List[Dict[str, Any]], columns: List[str], today: str) -> str:
        """
        Opsional: tabel Markdown yang ditulis layanan generatif.
        String kosong = tidak tersedia; ReportService memakai tabel lokal.
        """
        return ""
