"""
Event-log import.

Logs are handled as pandas DataFrames in pm4py's column convention
('case:concept:name', 'concept:name', 'time:timestamp') and turned into
plain traces (ordered case id -> list of activity tokens) for alignment.
"""

import logging
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Union

import pandas as pd
import pm4py

from .exceptions import ParseError

CASE_COLUMN = 'case:concept:name'
ACTIVITY_COLUMN = 'concept:name'
TIMESTAMP_COLUMN = 'time:timestamp'

CSV_COLUMNS = {
    'case_id': CASE_COLUMN,
    'activity': ACTIVITY_COLUMN,
    'timestamp': TIMESTAMP_COLUMN,
}

logger = logging.getLogger(__name__)


def traces_from_dataframe(
    df: pd.DataFrame,
    case_col: str = CASE_COLUMN,
    activity_col: str = ACTIVITY_COLUMN,
    timestamp_col: Optional[str] = TIMESTAMP_COLUMN,
) -> Dict[str, List[str]]:
    """
    Group an event DataFrame into traces.

    Events are ordered by a stable sort on `timestamp_col` when that column
    is present, otherwise they keep their row order. Case ids are returned as
    strings, sorted.

    Parameters
    ----------
    df : pd.DataFrame
        One row per event.
    case_col, activity_col : str
        Case identifier and activity columns (both required).
    timestamp_col : str, optional
        Ordering column; ignored when None or absent from `df`.

    Returns
    -------
    dict
        Case id -> list of activity tokens.
    """
    for column in (case_col, activity_col):
        if column not in df.columns:
            raise ValueError(f"DataFrame missing required column: '{column}'")

    events = df
    if timestamp_col is not None and timestamp_col in df.columns:
        events = df.sort_values(timestamp_col, kind='mergesort')

    events = events.assign(**{case_col: events[case_col].astype(str)})
    grouped = events.groupby(case_col, sort=True)[activity_col].apply(lambda s: [str(a) for a in s])
    return {case_id: activities for case_id, activities in grouped.items()}


def read_csv_log(path: Union[str, Path]) -> pd.DataFrame:
    """
    Load a CSV event log with `case_id, activity, timestamp` headers.

    Header names are matched case-insensitively and renamed to pm4py's
    columns. Rows with an empty case id or activity, or a timestamp that
    cannot be parsed, are dropped.

    Raises
    ------
    ParseError
        If the file has no rows or lacks one of the required headers.
    """
    try:
        df = pd.read_csv(path, dtype=str, keep_default_na=False, skipinitialspace=True)
    except pd.errors.EmptyDataError:
        raise ParseError('CSV file is empty') from None

    lookup = {str(column).strip().lower(): column for column in df.columns}
    missing = [name for name in CSV_COLUMNS if name not in lookup]
    if missing:
        raise ParseError('CSV must include headers: case_id, activity, timestamp')

    df = df.rename(columns={lookup[name]: target for name, target in CSV_COLUMNS.items()})
    for column in (CASE_COLUMN, ACTIVITY_COLUMN):
        df[column] = df[column].str.strip()
    df[TIMESTAMP_COLUMN] = pd.to_datetime(
        df[TIMESTAMP_COLUMN].str.strip(), format='mixed', errors='coerce', utc=True
    )

    keep = (df[CASE_COLUMN] != '') & (df[ACTIVITY_COLUMN] != '') & df[TIMESTAMP_COLUMN].notna()
    dropped = int((~keep).sum())
    if dropped:
        logger.info(f"Dropped {dropped} incomplete or unparsable rows from {path}")
    df = df[keep].reset_index(drop=True)

    logger.debug(f"Read {len(df)} events in {df[CASE_COLUMN].nunique()} cases from {path}")
    return df


def read_xes_log(path: Union[str, Path]) -> pd.DataFrame:
    """Load an XES event log through pm4py."""
    df = pm4py.read_xes(str(path))
    logger.debug(f"Read {len(df)} events from {path}")
    return df


def read_event_log(path: Union[str, Path]) -> pd.DataFrame:
    """Dispatch on the file extension (.csv or .xes)."""
    suffix = Path(path).suffix.lower()
    if suffix == '.csv':
        return read_csv_log(path)
    if suffix == '.xes':
        return read_xes_log(path)
    raise ValueError(f"Unsupported event log format '{suffix}' (expected .csv or .xes)")


def group_cases_by_variant(traces: Mapping[str, Sequence[str]]) -> pd.DataFrame:
    """
    Group cases that share the same activity sequence.

    Returns
    -------
    pd.DataFrame
        Columns 'variant' (tuple of activities), 'case_list', 'trace_length'
        and 'frequency', most frequent variant first.
    """
    columns = ['variant', 'case_list', 'trace_length', 'frequency']
    if not traces:
        return pd.DataFrame(columns=columns)

    cases = pd.DataFrame({
        'case_id': list(traces.keys()),
        'variant': [tuple(activities) for activities in traces.values()],
    })
    grouped = cases.groupby('variant', sort=False)['case_id'].apply(list).reset_index()
    grouped = grouped.rename(columns={'case_id': 'case_list'})
    grouped['trace_length'] = grouped['variant'].apply(len)
    grouped['frequency'] = grouped['case_list'].apply(len)
    grouped = grouped.sort_values('frequency', ascending=False, kind='mergesort').reset_index(drop=True)
    return grouped[columns]
