# medstock/domain/models.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from medstock.domain.expiry import normalize_expiration_date
from medstock.domain.permissions import can_mutate

# field wire (camelCase) yang boleh di-patch; id/ownerId sengaja tidak ada
MUTABLE_FIELDS = (
    "name",
    "activeIngredient",
    "manufacturer",
    "presentation",
    "class",
    "mechanismOfAction",
    "barcode",
    "officeNumber",
    "quantity",
    "pmc",
    "expirationDate",
)

# field teks yang ikut dicari oleh search()
SEARCHABLE_FIELDS = (
    "name",
    "active_ingredient",
    "manufacturer",
    "presentation",
    "class_",
    "barcode",
    "office_number",
)

DEFAULT_QUANTITY = 1
DEFAULT_PMC = 0.0


class Medication(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    owner_id: str = Field(
        ...,
        alias="ownerId",
        validation_alias=AliasChoices("ownerId", "userId", "owner_id"),
    )
    name: str
    active_ingredient: Optional[str] = Field(None, alias="activeIngredient")
    manufacturer: Optional[str] = None
    presentation: Optional[str] = None
    class_: Optional[str] = Field(None, alias="class")
    mechanism_of_action: Optional[str] = Field(None, alias="mechanismOfAction")
    barcode: Optional[str] = None
    office_number: Optional[str] = Field(None, alias="officeNumber")
    quantity: int = Field(DEFAULT_QUANTITY, ge=0)
    pmc: float = Field(DEFAULT_PMC, ge=0, allow_inf_nan=False)
    expiration_date: Optional[str] = Field(None, alias="expirationDate")

    @field_validator("id", "owner_id")
    @classmethod
    def _non_empty_ids(cls, v: str) -> str:
        if not v or not str(v).strip():
            raise ValueError("must not be empty")
        return v

    @field_validator("name")
    @classmethod
    def _name_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("name is required")
        return v

    @field_validator("expiration_date", mode="before")
    @classmethod
    def _valid_date_or_absent(cls, v: Any) -> Optional[str]:
        # tanggal rusak diperlakukan sebagai "tidak ada", bukan disimpan mentah
        return normalize_expiration_date(v)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


Snapshot = List[Medication]


class Actor(BaseModel):
    id: str
    name: str


class ActorRegistry(BaseModel):
    """Registry actor tetap (konfigurasi, bukan state dinamis)."""

    main_id: str
    authorized_ids: List[str] = []
    actors: List[Actor]

    @model_validator(mode="after")
    def _ids_declared(self) -> "ActorRegistry":
        known = {a.id for a in self.actors}
        if len(known) != len(self.actors):
            raise ValueError("duplicate actor id in registry")
        missing = [i for i in [self.main_id, *self.authorized_ids] if i not in known]
        if missing:
            raise ValueError(f"registry references undeclared actors: {missing}")
        return self

    def get(self, actor_id: Optional[str]) -> Optional[Actor]:
        for a in self.actors:
            if a.id == actor_id:
                return a
        return None

    @property
    def main(self) -> Actor:
        return self.get(self.main_id)  # type: ignore[return-value]

    def name_of(self, actor_id: Optional[str], default: str = "Desconhecido") -> str:
        a = self.get(actor_id)
        return a.name if a else default

    def can_mutate(self, actor: Any, record: Any) -> bool:
        return can_mutate(actor, record, self.main_id, self.authorized_ids)
