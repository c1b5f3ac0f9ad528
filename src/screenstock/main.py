from __future__ import annotations

import logging

from screenstock.application.container import build_container
from screenstock.config import get_app_paths
from screenstock.logging_config import setup_logging
from screenstock.ui.app import App


def main() -> None:
    paths = get_app_paths()
    setup_logging(paths.logs_dir, level=logging.INFO)

    c = build_container(paths.db_path)

    app = App(
        inventory_service=c.inventory,
        sales_service=c.sales,
        reporting_service=c.reporting,
        excel_service=c.excel,
        ai_gateway=c.ai,
        ai_connection=c.ai_connection,
        db_path=str(paths.db_path),
        logs_dir=str(paths.logs_dir),
    )
    app.mainloop()


if __name__ == "__main__":
    main()
