# medstock/domain/errors.py
"""
Error taxonomy.

Permission denial is intentionally absent: update/delete yang ditolak
hanya no-op (lihat InventoryStore), tidak pernah raise.
"""


class MedStockError(Exception):
    """Base untuk semua error domain."""


class ValidationError(MedStockError):
    """Input ditolak: field wajib kosong, tanggal tidak valid, nilai negatif, dll."""


class DecodeError(MedStockError):
    """Share payload rusak / tidak bisa di-decode. Store tidak disentuh."""


class CollaboratorFailure(MedStockError):
    """Kegagalan persistence atau layanan sugesti (LLM)."""
