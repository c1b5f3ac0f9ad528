from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from screenstock.application.state import AppState, load_state
from screenstock.config import AiSettings
from screenstock.repositories.sqlite_store import SqliteKeyValueStore
from screenstock.repositories.state_repo import StateRepository
from screenstock.services.ai_service import AiAdvisoryGateway, AiConnectionService
from screenstock.services.excel_service import ExcelService
from screenstock.services.inventory_service import InventoryService
from screenstock.services.reporting_service import ReportingService
from screenstock.services.sales_service import SalesService


@dataclass(frozen=True)
class AppContainer:
    repo: StateRepository
    state: AppState
    inventory: InventoryService
    sales: SalesService
    reporting: ReportingService
    excel: ExcelService
    ai: AiAdvisoryGateway
    ai_connection: AiConnectionService


def build_container(db_path: Path | str, ai_settings: AiSettings | None = None) -> AppContainer:
    store = SqliteKeyValueStore(db_path)
    store.init_db()
    repo = StateRepository(store)

    state = load_state(repo)

    inventory = InventoryService(state, repo)
    sales = SalesService(state, repo)
    reporting = ReportingService(state)
    excel = ExcelService()
    ai = AiAdvisoryGateway(ai_settings or AiSettings.from_env())
    ai_connection = AiConnectionService(state, repo, ai)
    ai_connection.sync_with_credentials()

    return AppContainer(
        repo=repo,
        state=state,
        inventory=inventory,
        sales=sales,
        reporting=reporting,
        excel=excel,
        ai=ai,
        ai_connection=ai_connection,
    )
