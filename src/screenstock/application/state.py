from __future__ import annotations

from dataclasses import dataclass, field

from screenstock.domain.ledgers import InventoryLedger, SalesLedger


@dataclass
class AppState:
    """Session state owned by the composition root and passed to services."""

    inventory: InventoryLedger = field(default_factory=InventoryLedger)
    sales: SalesLedger = field(default_factory=SalesLedger)
    ai_enabled: bool = False


def load_state(repo) -> AppState:
    return AppState(
        inventory=InventoryLedger(repo.load_inventory()),
        sales=SalesLedger(repo.load_sales()),
        ai_enabled=repo.load_ai_enabled(),
    )
