"""
Assemble fetched pages into one homogeneous pandas DataFrame.

Steps:
1. Check page row counts against the page-size contract (truncated transport)
2. Union the columns of every page; rows missing a column get a null
3. Replace embedded line breaks in string cells
4. Parse date-like columns into UTC timestamps (unparseable -> NaT)
5. Tag each column as string, numeric, boolean or timestamp
"""

import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence

import pandas as pd
from pandas.api import types as ptypes

from openfema_client.api.errors import ResultAssemblyError
from openfema_client.api.models import RawPage

logger = logging.getLogger(__name__)

_LINE_BREAKS = re.compile(r"[\r\n]+")
_DATE_NAME = re.compile(r"(Date|DateTime|Timestamp)$|^dateOf[A-Z]|^date$|^lastRefresh$")


def is_date_field(name: str, known_date_fields: Iterable[str] = ()) -> bool:
    """True for catalog date fields and names following OpenFEMA date naming."""
    return name in set(known_date_fields) or bool(_DATE_NAME.search(name))


def strip_line_breaks(value: Any) -> Any:
    if isinstance(value, str) and ("\n" in value or "\r" in value):
        return _LINE_BREAKS.sub(" ", value).strip()
    return value


def parse_dates(series: pd.Series) -> pd.Series:
    """
    Parse OpenFEMA date strings (``2021-07-25T00:00:00.000Z`` or ``2021-07-25``)
    into UTC timestamps. Bare dates map to midnight UTC; anything that does
    not parse becomes NaT.
    """
    text = series.map(lambda v: v if isinstance(v, str) and v.strip() else None)
    return pd.to_datetime(text, errors="coerce", utc=True, format="ISO8601")


def column_type(series: pd.Series) -> str:
    if ptypes.is_datetime64_any_dtype(series):
        return "timestamp"
    if ptypes.is_bool_dtype(series):
        return "boolean"
    if ptypes.is_numeric_dtype(series):
        return "numeric"
    return "string"


def check_page_sizes(
    pages: Sequence[RawPage], page_size: int, expected_total: Optional[int] = None
) -> None:
    """
    Raise ResultAssemblyError when a page holds more rows than requested, or a
    page other than the last holds fewer.
    """
    for index, page in enumerate(pages):
        requested = page_size
        if expected_total is not None:
            requested = max(min(page_size, expected_total - index * page_size), 0)
        is_last = index == len(pages) - 1
        if len(page) > requested:
            raise ResultAssemblyError(
                f"Page {index + 1} returned {len(page)} rows but only {requested} were requested",
                page_index=index,
            )
        if not is_last and len(page) < requested:
            raise ResultAssemblyError(
                f"Page {index + 1} returned {len(page)} of {requested} rows before the final "
                f"page; the response appears truncated",
                page_index=index,
            )


def union_columns(
    pages: Sequence[RawPage], selected_fields: Optional[Sequence[str]] = None
) -> List[str]:
    """
    Every field seen across all pages, without duplicates.

    Selected fields come first and are kept even when no row carries them,
    since the API omits fields whose value is null.
    """
    columns: Dict[str, None] = dict.fromkeys(selected_fields or ())
    for page in pages:
        for row in page:
            for key in row:
                columns.setdefault(key, None)
    return list(columns)


def empty_table(
    dataset_id: str,
    selected_fields: Optional[Sequence[str]] = None,
    date_fields: Iterable[str] = (),
) -> pd.DataFrame:
    """
    Zero-row result, with the selected columns when a selection was given.

    Date-like columns get a UTC timestamp dtype so empty and non-empty results
    carry the same column types.
    """
    known_dates = set(date_fields)
    columns: Dict[str, pd.Series] = {}
    types: Dict[str, str] = {}
    for name in dict.fromkeys(selected_fields or ()):
        if is_date_field(name, known_dates):
            columns[name] = pd.Series([], dtype="datetime64[ns, UTC]")
            types[name] = "timestamp"
        else:
            columns[name] = pd.Series([], dtype=object)
            types[name] = "string"
    frame = pd.DataFrame(columns)
    frame.attrs["dataset"] = dataset_id
    frame.attrs["column_types"] = types
    return frame


def normalize(
    pages: Sequence[RawPage],
    dataset_id: str,
    page_size: int,
    expected_total: Optional[int] = None,
    date_fields: Iterable[str] = (),
    selected_fields: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """
    Assemble pages into the final result table.

    Args:
        pages: Reconciled pages in fetch order
        dataset_id: Canonical dataset name (stored in ``attrs``)
        page_size: Rows requested per page
        expected_total: Planned record total, when known
        date_fields: Catalog date fields for the dataset
        selected_fields: Field selection, used for column order

    Returns:
        DataFrame with a uniform column set and ``attrs["column_types"]``

    Raises:
        ResultAssemblyError: If page row counts indicate truncated transport
    """
    check_page_sizes(pages, page_size, expected_total)

    columns = union_columns(pages, selected_fields)
    rows = [{name: row.get(name) for name in columns} for page in pages for row in page]
    frame = pd.DataFrame(rows, columns=columns)

    known_dates = set(date_fields)
    for name in columns:
        series = frame[name]
        if is_date_field(name, known_dates):
            frame[name] = parse_dates(series)
            continue
        if ptypes.is_object_dtype(series) or ptypes.is_string_dtype(series):
            series = series.map(strip_line_breaks)
        if len(series):
            series = series.convert_dtypes()
        frame[name] = series

    frame.attrs["dataset"] = dataset_id
    frame.attrs["column_types"] = {name: column_type(frame[name]) for name in columns}

    expected_rows = sum(len(page) for page in pages)
    if len(frame) != expected_rows:
        raise ResultAssemblyError(
            f"Assembled {len(frame)} rows from pages holding {expected_rows}"
        )
    logger.info(f"{dataset_id}: assembled {len(frame)} rows x {len(columns)} columns")
    return frame
