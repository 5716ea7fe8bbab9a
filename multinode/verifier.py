"""
Count verification: expected result construction, response parsing and comparison
"""

import logging
from typing import Dict, Any, Tuple

from diff import render_diff, structurally_equal
from errors import ResponseParseError, ResultMismatchError
from es_client import SqlRestClient
from models import ABSENT, ColumnInfo, SqlResult

logger = logging.getLogger(__name__)

PLAIN_MODE = "plain"
JDBC_MODE = "jdbc"

COUNT_EXPRESSION = "COUNT(1)"
LONG_TYPE = "long"
BIGINT_JDBC_TYPE = -5  # java.sql.Types.BIGINT
LONG_DISPLAY_SIZE = 20

_REQUIRED_COLUMN_KEYS = {"name", "type"}
_OPTIONAL_COLUMN_KEYS = {"jdbc_type", "display_size"}

def column_info(mode: str, name: str, es_type: str, jdbc_type: int, display_size: int) -> ColumnInfo:
    """Column descriptor as the engine reports it in `mode`"""
    if mode == JDBC_MODE:
        return ColumnInfo(name=name, type=es_type, jdbc_type=jdbc_type, display_size=display_size)
    return ColumnInfo(name=name, type=es_type)

def mode_fields(mode: str) -> Dict[str, Any]:
    """Request body fields selecting the response mode"""
    if mode == PLAIN_MODE:
        return {}
    return {"mode": mode}

def count_query(index: str) -> str:
    return f"SELECT COUNT(*) FROM {index}"

def expected_count_result(count: int, mode: str) -> SqlResult:
    column = column_info(mode, COUNT_EXPRESSION, LONG_TYPE, BIGINT_JDBC_TYPE, LONG_DISPLAY_SIZE)
    return SqlResult(columns=(column,), rows=((count,),))

def _parse_column(index: int, column: Any) -> ColumnInfo:
    if not isinstance(column, dict):
        raise ResponseParseError("sql", f"column {index} is not an object")
    missing = _REQUIRED_COLUMN_KEYS - column.keys()
    if missing:
        raise ResponseParseError("sql", f"column {index} lacks {sorted(missing)}")
    unknown = column.keys() - _REQUIRED_COLUMN_KEYS - _OPTIONAL_COLUMN_KEYS
    if unknown:
        raise ResponseParseError("sql", f"column {index} has unexpected keys {sorted(unknown)}")
    return ColumnInfo(
        name=column['name'],
        type=column['type'],
        jdbc_type=column.get('jdbc_type', ABSENT),
        display_size=column.get('display_size', ABSENT)
    )

def parse_sql_response(payload: Any) -> SqlResult:
    """Parse a SQL response body into columns and rows"""
    if not isinstance(payload, dict):
        raise ResponseParseError("sql", f"expected an object, got {type(payload).__name__}")
    if set(payload.keys()) != {"columns", "rows"}:
        raise ResponseParseError("sql", f"expected keys ['columns', 'rows'], got {sorted(payload.keys())}")

    columns = payload['columns']
    rows = payload['rows']
    if not isinstance(columns, list):
        raise ResponseParseError("sql", "'columns' is not a list")
    if not isinstance(rows, list) or not all(isinstance(row, list) for row in rows):
        raise ResponseParseError("sql", "'rows' is not a list of lists")

    return SqlResult(
        columns=tuple(_parse_column(i, column) for i, column in enumerate(columns)),
        rows=tuple(tuple(row) for row in rows)
    )

def compare_results(expected: SqlResult, actual: SqlResult):
    """Raise ResultMismatchError unless both results are structurally identical"""
    expected_dict = expected.to_dict()
    actual_dict = actual.to_dict()
    if not structurally_equal(actual_dict, expected_dict):
        diff = render_diff(actual_dict, expected_dict)
        raise ResultMismatchError(expected_dict, actual_dict, diff)

class CountVerifier:
    """Checks COUNT(*) over the test index through a given entry point"""

    def __init__(self, index: str, sql_endpoint: str, mode: str = PLAIN_MODE):
        self.index = index
        self.sql_endpoint = sql_endpoint
        self.mode = mode

    async def verify(self, client: SqlRestClient, expected_count: int) -> Tuple[SqlResult, SqlResult]:
        """Return (expected, actual) once they match; raise ResultMismatchError otherwise"""
        expected = expected_count_result(expected_count, self.mode)
        response = await client.sql_query(
            self.sql_endpoint, count_query(self.index), mode_fields(self.mode)
        )
        actual = parse_sql_response(response)

        try:
            compare_results(expected, actual)
        except ResultMismatchError as e:
            logger.error(f"Count through {client!r} in {self.mode} mode does not match:\n{e.diff}")
            raise

        logger.info(f"✓ {client!r} counted {expected_count} documents ({self.mode} mode)")
        return expected, actual
