"""Recover the author's column order from the text of a SELECT statement.

Drivers report result columns, but exports read best when columns appear in
the order the query author wrote them.  This is a small hand-written
scanner, not a SQL parser: it only understands ``WITH``, parentheses,
top-level commas, ``FROM`` and ``AS``.
"""

from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)

_WITH_RE = re.compile(r"with\s", re.IGNORECASE)
_SELECT_RE = re.compile(r"select\s", re.IGNORECASE)
_AS_RE = re.compile(r"\sas\s", re.IGNORECASE)


def extract_columns(sql: str) -> list[str]:
    """Return the aliases of the outermost SELECT list, left to right.

    Only aliased expressions (``expr AS name``) contribute a name;
    unaliased ones are skipped.  Duplicates are kept.  Returns an empty
    list when the statement has no SELECT list or its parentheses don't
    balance.  Never raises.
    """
    sql = sql.strip()

    # Skip CTE bodies: the final projection follows the last SELECT
    if _WITH_RE.match(sql):
        selects = list(_SELECT_RE.finditer(sql))
        if selects:
            sql = sql[selects[-1].start():]

    select = _SELECT_RE.search(sql)
    if select is None:
        return []

    columns: list[str] = []
    depth = 0
    start = select.end()
    last = start
    i = start
    while i < len(sql):
        char = sql[i]
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth < 0:
                logger.debug("Unbalanced ')' at offset %d; giving up on column order", i)
                return []
        elif char == "," and depth == 0:
            _append_alias(columns, sql[last:i])
            last = i + 1
        elif depth == 0 and _is_from(sql, i):
            _append_alias(columns, sql[last:i])
            return columns
        i += 1

    if depth != 0:
        logger.debug("Unclosed '(' in SELECT list; giving up on column order")
        return []

    # SELECT without FROM: the list runs to the end of the statement
    _append_alias(columns, sql[last:].rstrip().rstrip(";"))
    return columns


def extract_alias(expression: str) -> str:
    """Return the alias after the last ``AS`` in *expression*, or ``""``."""
    matches = list(_AS_RE.finditer(expression))
    if not matches:
        return ""
    alias = expression[matches[-1].end():].strip().rstrip(")").strip()
    if len(alias) >= 2 and alias[0] == alias[-1] == '"':
        alias = alias[1:-1]
    return alias


def _append_alias(columns: list[str], expression: str) -> None:
    expression = expression.strip()
    if not expression:
        return
    alias = extract_alias(expression)
    if alias:
        columns.append(alias)


def _is_from(sql: str, i: int) -> bool:
    """True if a whitespace-bounded ``FROM`` keyword starts after offset *i*."""
    if not sql[i].isspace() or sql[i + 1 : i + 5].lower() != "from":
        return False
    return i + 5 >= len(sql) or sql[i + 5].isspace()
