"""
=====================================
Positional placeholder expansion.
=====================================

Builder statements use MySQL-driver style ``?`` placeholders, where the value
decides what a placeholder expands to:

- a mapping expands to ``col = value`` assignments (``SET ?``)
- a list or tuple expands to a comma separated value list
- anything else expands to a single value

expand_placeholders rewrites such a statement into SQLAlchemy ``text()``
syntax with named bind parameters, so values never enter the statement text.
Placeholders beyond the supplied values are left untouched.

Example:
    >>> expand_placeholders('INSERT INTO users SET ?', {'name': 'a'})
    ('INSERT INTO users SET `name` = :p0_name', {'p0_name': 'a'})
"""

import re
from typing import Any, Dict, List, Mapping, Optional, Tuple

_COLUMN_PATTERN = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')
_BIND_NAME_PATTERN = re.compile(r'\W')


def _escape_colons(text: str) -> str:
    # text() would otherwise read ':word' inside literals as a bind parameter
    return text.replace(':', r'\:')


def _normalize_params(params: Any) -> List[Any]:
    if params is None:
        return []
    if isinstance(params, Mapping):
        return [params]
    if isinstance(params, (list, tuple)):
        return list(params)
    return [params]


def _expand_value(index: int, value: Any, binds: Dict[str, Any]) -> str:
    if isinstance(value, Mapping):
        assignments = []
        for column, item in value.items():
            if not _COLUMN_PATTERN.match(str(column)):
                raise ValueError(f'Invalid column name: {column}')
            name = f"p{index}_{_BIND_NAME_PATTERN.sub('_', str(column))}"
            binds[name] = item
            assignments.append(f"`{column}` = :{name}")
        return ', '.join(assignments)

    if isinstance(value, (list, tuple)):
        names = []
        for position, item in enumerate(value):
            name = f"p{index}_{position}"
            binds[name] = item
            names.append(f":{name}")
        return ', '.join(names)

    name = f"p{index}"
    binds[name] = value
    return f":{name}"


def expand_placeholders(statement: str, params: Optional[Any] = None) -> Tuple[str, Dict[str, Any]]:
    """
    Convert ``?`` placeholders into named SQLAlchemy bind parameters.

    Args:
        statement: Statement text using ``?`` placeholders
        params: None, one mapping (treated as a single value) or a sequence
            with one value per placeholder

    Returns:
        Tuple of (text() compatible SQL, bind parameter dict)

    Raises:
        ValueError: If a mapping key is not a plain column name
    """
    values = _normalize_params(params)
    binds: Dict[str, Any] = {}

    pieces = statement.split('?')
    output = [_escape_colons(pieces[0])]
    for index, piece in enumerate(pieces[1:]):
        if index < len(values):
            output.append(_expand_value(index, values[index], binds))
        else:
            output.append('?')
        output.append(_escape_colons(piece))

    return ''.join(output), binds
