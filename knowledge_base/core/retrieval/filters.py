"""
Metadata filter compilation.

Accepts either a flat equality map::

    {"region": "germany", "year": 2020}

or the Bedrock knowledge-base filter grammar::

    {"andAll": [{"equals": {"key": "region", "value": "germany"}},
                {"greaterThan": {"key": "year", "value": 2018}}]}

and compiles both to an MQL predicate over ``metadata.<key>`` using only
operators that ``$vectorSearch`` pre-filters accept.

Dependencies: json
System role: Filter translation for hybrid retrieval
"""

import json
import logging
from typing import Any

from knowledge_base.core.exceptions import FilterError

logger = logging.getLogger(__name__)

METADATA_PREFIX = "metadata."

COMPARISON_OPERATORS = {
    "equals": "$eq",
    "notEquals": "$ne",
    "greaterThan": "$gt",
    "greaterThanOrEquals": "$gte",
    "lessThan": "$lt",
    "lessThanOrEquals": "$lte",
    "in": "$in",
    "notIn": "$nin",
}
LOGICAL_OPERATORS = {"andAll": "$and", "orAll": "$or"}
UNSUPPORTED_OPERATORS = {"startsWith", "stringContains", "listContains"}


def is_expression(filters: dict[str, Any]) -> bool:
    """
    True when ``filters`` uses the structured grammar instead of a flat map.

    A single key named like an operator only counts as grammar when its
    operand has the grammar's shape, so ``{"in": "x"}`` stays an equality.
    """
    if len(filters) != 1:
        return False
    ((operator, operand),) = filters.items()
    if operator in LOGICAL_OPERATORS:
        return isinstance(operand, list)
    if operator in COMPARISON_OPERATORS or operator in UNSUPPORTED_OPERATORS:
        return isinstance(operand, dict) and "key" in operand
    return False


def _field(key: Any) -> str:
    if not isinstance(key, str) or not key:
        raise FilterError("Filter key must be a non-empty string", {"key": key})
    if key.startswith("$"):
        raise FilterError("Filter key must not start with '$'", {"key": key})
    return f"{METADATA_PREFIX}{key}"


def _compile_expression(expression: Any) -> dict[str, Any]:
    if not isinstance(expression, dict) or len(expression) != 1:
        raise FilterError("Filter expression must be an object with one operator", {"expression": expression})

    (operator, operand) = next(iter(expression.items()))

    if operator in LOGICAL_OPERATORS:
        if not isinstance(operand, list) or len(operand) < 2:
            raise FilterError(f"'{operator}' requires a list of at least two expressions")
        return {LOGICAL_OPERATORS[operator]: [_compile_expression(item) for item in operand]}

    if operator in COMPARISON_OPERATORS:
        if not isinstance(operand, dict) or "key" not in operand or "value" not in operand:
            raise FilterError(f"'{operator}' requires 'key' and 'value'", {"operand": operand})
        value = operand["value"]
        mql_operator = COMPARISON_OPERATORS[operator]
        if mql_operator in ("$in", "$nin") and not isinstance(value, list):
            raise FilterError(f"'{operator}' requires a list value", {"value": value})
        return {_field(operand["key"]): {mql_operator: value}}

    raise FilterError(f"Unsupported filter operator: {operator}")


def _compile_flat(filters: dict[str, Any]) -> dict[str, Any]:
    compiled: dict[str, Any] = {}
    for key, value in filters.items():
        if isinstance(value, list):
            compiled[_field(key)] = {"$in": value}
        elif isinstance(value, dict):
            raise FilterError("Flat filters only accept scalar or list values", {"key": key})
        else:
            compiled[_field(key)] = {"$eq": value}
    return compiled


def compile_filter(filters: dict[str, Any] | None) -> dict[str, Any] | None:
    """
    Compile a filter into an MQL predicate over chunk metadata.

    Args:
        filters: Flat equality map or structured expression (None/empty for no filter)

    Returns:
        dict | None: MQL predicate, or None when nothing needs filtering

    Raises:
        FilterError: Malformed expression or unsupported operator
    """
    if not filters:
        return None
    if not isinstance(filters, dict):
        raise FilterError("Filter must be a JSON object", {"type": type(filters).__name__})
    if is_expression(filters):
        return _compile_expression(filters)
    return _compile_flat(filters)


def parse_filter_json(raw: str | None) -> dict[str, Any]:
    """
    Parse a JSON filter string as received from the agent.

    Args:
        raw: JSON text (None or blank for no filter)

    Returns:
        dict: Parsed filter, empty when absent

    Raises:
        FilterError: Invalid JSON or not an object
    """
    if raw is None or not raw.strip():
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        raise FilterError(f"Invalid filter JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise FilterError("Filter must be a JSON object", {"type": type(parsed).__name__})
    return parsed


def merge_filters(
    session_filters: dict[str, Any] | None,
    call_filters: dict[str, Any] | None,
) -> dict[str, Any]:
    """
    Merge session-level and call-level filters.

    Flat maps merge key by key with the call-level value winning. A
    structured expression cannot be merged key-wise, so a non-empty call-level
    filter replaces the session-level one whenever either side is structured.
    """
    session_filters = session_filters or {}
    call_filters = call_filters or {}
    if not call_filters:
        return dict(session_filters)
    if not session_filters:
        return dict(call_filters)
    if is_expression(session_filters) or is_expression(call_filters):
        logger.info("merge_filters - Structured filter present, call-level filter replaces session filter")
        return dict(call_filters)
    return {**session_filters, **call_filters}
