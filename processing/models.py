"""
Records shared across the import pipeline and the store.

Componente / DiscountRecord / Brand mirror store rows;
ImportResult accumulates the outcome of an ingestion run; ProcessingStatus
is the progress event handed to UI callbacks.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any

from config.schema import DEFAULT_UNIT
from processing.value_normalizer import correct_discount_fraction


class Phase(str, Enum):
    READING = "reading"
    MAPPING = "mapping"
    EXTRACTING = "extracting"
    INSERTING = "inserting"
    DONE = "done"
    ERROR = "error"


@dataclass(frozen=True)
class ProcessingStatus:
    """A single progress event."""

    phase: Phase
    percent: int
    message: str
    total_items: int | None = None
    processed_items: int | None = None


ProgressCallback = Callable[[ProcessingStatus], None]


def interpolate_percent(done: int, total: int, span: tuple[int, int]) -> int:
    """Map done/total onto the percent range *span* (inclusive)."""
    start, end = span
    if total <= 0:
        return end
    fraction = min(max(done / total, 0.0), 1.0)
    return start + int(fraction * (end - start))


@dataclass
class Componente:
    """One product row of a supplier price list."""

    idmarca: int
    referencia: str
    descricao: str | None = None
    familia: str | None = None
    ean: str | None = None
    preco_tabela: float | None = None
    grupo_desconto: str | None = None
    unidade: str = DEFAULT_UNIT
    quantidade_minima: float | None = None
    peso: float | None = None
    updated_at: str | None = None

    def to_row(self, updated_at: str) -> dict[str, Any]:
        """Store payload for this record, stamped with *updated_at*."""
        row = asdict(self)
        row["unidade"] = self.unidade or DEFAULT_UNIT
        row["updated_at"] = updated_at
        return row


@dataclass
class DiscountRecord:
    """Discount percentage for one discount group of a brand."""

    idmarca: int
    grupo_desconto: str
    valor_desconto: float
    updated_at: str | None = None

    @property
    def display_value(self) -> float | None:
        return correct_discount_fraction(self.valor_desconto)

    def to_row(self, updated_at: str) -> dict[str, Any]:
        row = asdict(self)
        row["updated_at"] = updated_at
        return row


@dataclass(frozen=True)
class Brand:
    idmarca: int
    nome: str


@dataclass
class ImportResult:
    """Outcome of delivering records to the store."""

    success_count: int = 0
    error_count: int = 0
    messages: list[str] = field(default_factory=list)
    aborted: bool = False
    suppressed_messages: int = 0

    def add_message(self, message: str, limit: int, force: bool = False) -> None:
        """
        Append a diagnostic message, keeping at most *limit* of them.

        Messages beyond the limit are counted in suppressed_messages.
        *force* bypasses the limit (terminal diagnostics must always show).
        """
        if force or len(self.messages) < limit:
            self.messages.append(message)
        else:
            self.suppressed_messages += 1

    @property
    def total(self) -> int:
        return self.success_count + self.error_count
