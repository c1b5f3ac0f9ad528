import sys
from datetime import datetime
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


def build_test_container(tmp_path: Path, api_key: str | None = None, name: str = "state.db"):
    from screenstock.application.container import build_container
    from screenstock.config import AiSettings

    return build_container(tmp_path / name, ai_settings=AiSettings(api_key=api_key))


def add_screen(inventory, brand="Samsung", model="A12", quality=None, quantity=10, price=30.0, **kwargs):
    from screenstock.domain.models import ScreenQuality

    return inventory.add_item(
        brand=brand,
        model=model,
        quality=quality or ScreenQuality.OEM,
        quantity=quantity,
        purchase_price=price,
        supplier=kwargs.pop("supplier", "Acme Parts"),
        entry_date=kwargs.pop("entry_date", datetime(2024, 1, 1, 10, 0)),
        **kwargs,
    )


def make_sale(brand="Samsung", model="A12", quality=None, qty=1, unit_cost=30.0, unit_price=45.0,
              sale_date=None, sale_id=None):
    from screenstock.domain.models import SaleTransaction, ScreenQuality

    return SaleTransaction(
        id=sale_id or f"sale-{brand}-{model}-{qty}-{unit_price}",
        original_screen_id=f"scr-{brand}-{model}",
        brand=brand,
        model=model,
        quality=quality or ScreenQuality.OEM,
        purchase_price=unit_cost,
        sale_price=unit_price * qty,
        profit=(unit_price - unit_cost) * qty,
        quantity_sold=qty,
        sale_date=sale_date or datetime(2024, 3, 1, 12, 0),
    )
