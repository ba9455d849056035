# medstock/presentation/schemas.py
from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional

from medstock.domain.validators import parse_expiration_input


# ── MEDICATIONS ──────────────────────────────────────────────────
class MedicationIn(BaseModel):
    """
    Body untuk create (POST) dan patch (PATCH). Hanya key yang dikirim yang
    dipakai saat patch, termasuk nilai falsy seperti 0 atau "".
    """
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    active_ingredient: Optional[str] = Field(None, alias="activeIngredient")
    manufacturer: Optional[str] = None
    presentation: Optional[str] = None
    class_: Optional[str] = Field(None, alias="class")
    mechanism_of_action: Optional[str] = Field(None, alias="mechanismOfAction")
    barcode: Optional[str] = None
    office_number: Optional[str] = Field(None, alias="officeNumber")
    quantity: Optional[int] = None
    pmc: Optional[float] = None
    expiration_date: Optional[str] = Field(None, alias="expirationDate", description="YYYY-MM-DD")
    expiration_input: Optional[str] = Field(
        None, alias="expirationInput",
        description="Free-form date as typed: DD/MM/YYYY, MM/YYYY or YYYY-MM-DD",
    )

    def to_fields(self) -> Dict[str, Any]:
        data = self.model_dump(by_alias=True, exclude_unset=True)
        typed = data.pop("expirationInput", None)
        if typed is not None:
            data["expirationDate"] = parse_expiration_input(typed)
        elif data.get("expirationDate"):
            # input langsung dari user: tanggal rusak ditolak, bukan dibuang diam-diam
            data["expirationDate"] = parse_expiration_input(data["expirationDate"])
        return data


class MutationResponse(BaseModel):
    applied: bool
    persisted: bool
    medication: Optional[Dict[str, Any]] = None


class SummaryResponse(BaseModel):
    total: int
    expired: int
    expiringSoon: int
    lowStock: int


class ActorsResponse(BaseModel):
    main: str
    authorized: List[str]
    actors: List[Dict[str, str]]


# ── SHARE / IMPORT ───────────────────────────────────────────────
class ShareRequest(BaseModel):
    compressed: Optional[bool] = Field(None, description="Default: SHARE_COMPRESS")


class ShareResponse(BaseModel):
    url: str
    data: str
    compressed: bool
    count: int


class ImportRequest(BaseModel):
    data: str = Field(..., description="Transport string from the `data` query param")
    compressed: bool = False
    session_id: Optional[str] = Field(None, description="Session id (if not using header)")


class ImportStagedResponse(BaseModel):
    staged: int
    names: List[str] = []


class ImportConfirmResponse(BaseModel):
    imported: int
    persisted: bool


# ── SUGGESTIONS ──────────────────────────────────────────────────
class PmcRequest(BaseModel):
    name: str
    presentation: Optional[str] = None
    current: Optional[float] = None


class ClassRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    name: str
    active_ingredient: Optional[str] = Field(None, alias="activeIngredient")
    current: Optional[str] = None


class MechanismRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    active_ingredient: str = Field(..., alias="activeIngredient")
    current: Optional[str] = None


class DetailsRequest(BaseModel):
    fields: Dict[str, Any]


class ExtractResponse(BaseModel):
    created: List[Dict[str, Any]]
    message: str


# ── REPORT ───────────────────────────────────────────────────────
class ReportRequest(BaseModel):
    columns: Optional[List[str]] = None
    assisted: bool = Field(False, description="Ask the suggestion service to write the table (falls back to local)")


class ReportResponse(BaseModel):
    markdown: str
    source: str = "local"
