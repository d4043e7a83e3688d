"""Top-level package for the family budget engine.

The primary modules are:

* ``analytics`` – pure forecasting, strategy and tracking computations
* ``db`` – the SQLite ledger the engine reads from
* ``engine`` – request-level entry points wiring the ledger to the analytics
* ``visualization`` – functions that generate Plotly figures
* ``dashboard`` – a Streamlit app that ties everything together

To run the dashboard from the command line you can execute:

```bash
streamlit run family_budget/dashboard.py
```
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from .settings import get_config_value


def configure_logging(level: Optional[str] = None) -> None:
    """Set up root logging from ``FAMILY_BUDGET_LOGLEVEL`` or the engine settings."""
    level = level or os.environ.get("FAMILY_BUDGET_LOGLEVEL") or get_config_value(
        'engine', 'logging', 'level', default='INFO'
    )
    logging.basicConfig(
        level=str(level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger().setLevel(str(level).upper())


__all__ = ["configure_logging"]
