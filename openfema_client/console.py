"""
Interactive console helpers (rich prompts and tables).

Kept apart from the retrieval engine, which only ever sees the
``confirm(plan) -> bool`` callback.
"""

from typing import Optional

import pandas as pd
from rich.console import Console
from rich.prompt import Confirm
from rich.table import Table

from openfema_client.data.planner import RetrievalPlan, describe

_console = Console(stderr=True)


def console_confirm(plan: RetrievalPlan, console: Optional[Console] = None) -> bool:
    """Show the plan and ask for a yes/no answer on the terminal."""
    console = console or _console
    console.print(describe(plan))
    return Confirm.ask("Continue with the retrieval?", default=False, console=console)


def render_table(frame: pd.DataFrame, max_rows: int = 50, console: Optional[Console] = None) -> None:
    """Print the first ``max_rows`` rows of a result table."""
    console = console or Console()
    table = Table(title=f"{frame.attrs.get('dataset', '')} ({len(frame)} rows)")
    for name in frame.columns:
        table.add_column(str(name), overflow="fold")
    for row in frame.head(max_rows).itertuples(index=False):
        table.add_row(*["" if pd.isna(value) else str(value) for value in row])
    console.print(table)
