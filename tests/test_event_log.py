import pandas as pd
import pytest

from petri_workbench.event_log import (
    ACTIVITY_COLUMN,
    CASE_COLUMN,
    TIMESTAMP_COLUMN,
    group_cases_by_variant,
    read_csv_log,
    read_event_log,
    traces_from_dataframe,
)
from petri_workbench.exceptions import ParseError

CSV_LOG = """Case_ID,Activity,Timestamp,resource
c2,Begin,2024-01-01 10:05:00,bob
c1,Enqueue,2024-01-01T09:00:00Z,ann
c1,Begin,2024-01-01 09:10:00,ann
c2,Enqueue,2024-01-01 10:00:00,bob
c1,,2024-01-01 09:20:00,ann
c3,Enqueue,not a date,carl
,Finish,2024-01-01 09:30:00,ann
c1,Finish,2024-01-01 09:30:00,ann
"""


@pytest.fixture
def csv_log(tmp_path):
    path = tmp_path / 'log.csv'
    path.write_text(CSV_LOG, encoding='utf-8')
    return path


def test_read_csv_log_drops_incomplete_rows(csv_log):
    df = read_csv_log(csv_log)
    assert len(df) == 5
    assert {CASE_COLUMN, ACTIVITY_COLUMN, TIMESTAMP_COLUMN} <= set(df.columns)
    assert set(df[CASE_COLUMN]) == {'c1', 'c2'}


def test_traces_are_ordered_by_timestamp(csv_log):
    traces = traces_from_dataframe(read_event_log(csv_log))
    assert list(traces) == ['c1', 'c2']
    assert traces['c1'] == ['Enqueue', 'Begin', 'Finish']
    assert traces['c2'] == ['Enqueue', 'Begin']


def test_missing_headers(tmp_path):
    path = tmp_path / 'log.csv'
    path.write_text('case,activity,timestamp\n1,a,2024-01-01\n', encoding='utf-8')
    with pytest.raises(ParseError, match='CSV must include headers'):
        read_csv_log(path)


def test_empty_csv(tmp_path):
    path = tmp_path / 'empty.csv'
    path.write_text('', encoding='utf-8')
    with pytest.raises(ParseError, match='CSV file is empty'):
        read_csv_log(path)


def test_unsupported_log_extension(tmp_path):
    with pytest.raises(ValueError, match='Unsupported event log format'):
        read_event_log(tmp_path / 'log.txt')


def test_traces_without_timestamps_keep_row_order():
    df = pd.DataFrame({
        'case': [2, 1, 2, 1],
        'act': ['x', 'a', 'y', 'b'],
    })
    traces = traces_from_dataframe(df, case_col='case', activity_col='act', timestamp_col=None)
    assert traces == {'1': ['a', 'b'], '2': ['x', 'y']}


def test_traces_from_dataframe_requires_columns():
    with pytest.raises(ValueError, match="missing required column: 'concept:name'"):
        traces_from_dataframe(pd.DataFrame({CASE_COLUMN: ['1']}))


def test_group_cases_by_variant():
    variants = group_cases_by_variant({
        'a': ['x', 'y'],
        'b': ['x'],
        'c': ['x', 'y'],
    })
    assert list(variants.columns) == ['variant', 'case_list', 'trace_length', 'frequency']
    first = variants.iloc[0]
    assert first['variant'] == ('x', 'y')
    assert first['case_list'] == ['a', 'c']
    assert first['frequency'] == 2
    assert first['trace_length'] == 2
    assert variants.iloc[1]['case_list'] == ['b']


def test_group_cases_by_variant_empty():
    assert group_cases_by_variant({}).empty
