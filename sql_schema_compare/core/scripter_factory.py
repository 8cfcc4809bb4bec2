from __future__ import annotations

from typing import Dict, Optional, Type, Union

from sql_schema_compare.core.errors import UnsupportedOperationError
from sql_schema_compare.core.model import Dialect
from sql_schema_compare.core.mssql_scripter import MicrosoftSqlScripter
from sql_schema_compare.core.mysql_scripter import MySqlScripter
from sql_schema_compare.core.options import ScriptingOptions
from sql_schema_compare.core.postgres_scripter import PostgreSqlScripter
from sql_schema_compare.core.scripter import DatabaseScripter, DialectScripter

SCRIPTERS: Dict[Dialect, Type[DialectScripter]] = {
    Dialect.MICROSOFT_SQL: MicrosoftSqlScripter,
    Dialect.MYSQL: MySqlScripter,
    Dialect.POSTGRESQL: PostgreSqlScripter,
}


def create_scripter(dialect: Union[Dialect, str], options: Optional[ScriptingOptions] = None) -> DatabaseScripter:
    """Build the scripter of a dialect.

    Args:
        dialect: Dialect or its value ("mssql", "mysql", "postgresql")
        options: Scripting options, defaults when None

    Returns:
        DatabaseScripter wired to the dialect's statement hooks
    """
    try:
        dialect = Dialect(dialect)
    except ValueError:
        raise UnsupportedOperationError(f"Unsupported dialect: {dialect}") from None
    return DatabaseScripter(SCRIPTERS[dialect](), options)
