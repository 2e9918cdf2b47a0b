"""
SQL safety utilities for building DDL and session statements.

Catalog names are user data, so every identifier interpolated into SQL goes
through quote_ident(). PostgreSQL allows any character in a quoted
identifier; embedded double quotes are escaped by doubling them.
"""


def validate_identifier(identifier: str) -> None:
    """
    Validate a SQL identifier before quoting.

    Raises:
        ValueError: If the identifier is empty or contains a NUL byte
    """
    if not identifier:
        raise ValueError("SQL identifier cannot be empty")

    if "\x00" in identifier:
        raise ValueError(f"Invalid SQL identifier: {identifier!r}. NUL bytes are not allowed.")


def quote_ident(identifier: str) -> str:
    """
    Quote a single PostgreSQL identifier.

    Example:
        >>> quote_ident('users')
        '"users"'
        >>> quote_ident('odd"name')
        '"odd""name"'
    """
    validate_identifier(identifier)
    return '"' + identifier.replace('"', '""') + '"'


def quote_ident_full(table) -> str:
    """
    Quote a schema-qualified table.

    Args:
        table: Object with ``schema`` and ``name`` attributes

    Returns:
        ``"schema"."name"``
    """
    return f"{quote_ident(table.schema)}.{quote_ident(table.name)}"

