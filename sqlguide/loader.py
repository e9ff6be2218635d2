"""SQL file loader for named statements.

Lesson queries, the schema DDL and the seed inserts are kept in ``.sql`` files
using aiosql-style ``-- name:`` markers. This module loads those files and
hands statements out by name.
"""

import hashlib
import re
import time
from dataclasses import dataclass, field
from difflib import get_close_matches
from pathlib import Path
from typing import Optional, Union

from sqlguide.exceptions import SQLFileNotFoundError, SQLFileParseError
from sqlguide.utils.logging import get_logger

__all__ = (
    "SUPPORTED_DIALECTS",
    "NamedStatement",
    "SQLFile",
    "SQLFileLoader",
    "normalize_dialect",
)

logger = get_logger("loader")

# Matches: -- name: query_name (supports hyphens and special suffixes)
QUERY_NAME_PATTERN = re.compile(r"^\s*--\s*name\s*:\s*([\w-]+[^\w\s]*)\s*$", re.MULTILINE | re.IGNORECASE)
TRIM_SPECIAL_CHARS = re.compile(r"[^\w-]")

# Matches: -- dialect: dialect_name (optional dialect specification)
DIALECT_PATTERN = re.compile(r"^\s*--\s*dialect\s*:\s*(?P<dialect>[a-zA-Z0-9_]+)\s*$", re.IGNORECASE | re.MULTILINE)

# Dialect names understood by sqlglot that the guide can be rendered in
SUPPORTED_DIALECTS = frozenset({
    "sqlite",
    "postgres",
    "mysql",
    "oracle",
    "tsql",
    "bigquery",
    "snowflake",
    "redshift",
    "duckdb",
    "clickhouse",
    "databricks",
    "spark",
    "trino",
    "presto",
    "hive",
    "teradata",
})

DIALECT_ALIASES = {
    "postgresql": "postgres",
    "pg": "postgres",
    "plsql": "oracle",
    "oracledb": "oracle",
    "mssql": "tsql",
    "sqlserver": "tsql",
}


def _normalize_query_name(name: str) -> str:
    """Normalize query name to be a valid Python identifier.

    Strips special characters (like ``$`` or ``!`` from aiosql) and replaces
    hyphens with underscores. Each dotted namespace segment is normalized on
    its own, so ``reports.top-spenders`` becomes ``reports.top_spenders``.

    Args:
        name: Raw query name from SQL file

    Returns:
        converted query name suitable as Python identifier
    """
    return ".".join(TRIM_SPECIAL_CHARS.sub("", part).replace("-", "_") for part in name.split("."))


def normalize_dialect(dialect: str) -> str:
    """Normalize dialect name with aliases.

    Args:
        dialect: Raw dialect name

    Returns:
        Normalized dialect name
    """
    normalized = dialect.lower().strip()
    return DIALECT_ALIASES.get(normalized, normalized)


def _resolve_dialect(dialect: str, where: str = "") -> str:
    """Normalize a dialect, warning about names sqlglot may not know."""
    normalized = normalize_dialect(dialect)
    if normalized in SUPPORTED_DIALECTS:
        return normalized
    warning_msg = f"Unknown dialect '{dialect}'{where}"
    if suggestions := get_close_matches(normalized, SUPPORTED_DIALECTS, n=3, cutoff=0.6):
        warning_msg += f". Did you mean: {', '.join(suggestions)}?"
    warning_msg += f". Supported dialects: {', '.join(sorted(SUPPORTED_DIALECTS))}. Using dialect as-is."
    logger.warning(warning_msg)
    return normalized


class NamedStatement:
    """A parsed SQL statement with its name, optional dialect and position in the file."""

    __slots__ = ("dialect", "name", "sql", "start_line")

    def __init__(self, name: str, sql: str, dialect: "Optional[str]" = None, start_line: int = 0) -> None:
        self.name = name
        self.sql = sql
        self.dialect = dialect
        self.start_line = start_line

    def __repr__(self) -> str:
        return f"NamedStatement(name={self.name!r}, dialect={self.dialect!r}, start_line={self.start_line})"


@dataclass
class SQLFile:
    """Represents a loaded SQL file with metadata."""

    content: str
    """The raw SQL content from the file."""

    path: str
    """Path where the SQL file was loaded from."""

    checksum: str = field(init=False)
    """MD5 checksum of the SQL content."""

    def __post_init__(self) -> None:
        self.checksum = hashlib.md5(self.content.encode(), usedforsecurity=False).hexdigest()


class SQLFileLoader:
    """Loads and parses SQL files with aiosql-style named queries.

    Example:
        ```python
        loader = SQLFileLoader()
        loader.load_sql("queries/lessons.sql")
        statement = loader.get_sql("select_all_customers")
        ```
    """

    def __init__(self, *, encoding: str = "utf-8") -> None:
        """Initialize the SQL file loader.

        Args:
            encoding: Text encoding for reading SQL files.
        """
        self.encoding = encoding
        self._queries: dict[str, NamedStatement] = {}
        self._files: dict[str, SQLFile] = {}
        self._query_to_file: dict[str, str] = {}

    def _read_file_content(self, path: Path) -> str:
        """Read file content.

        Raises:
            SQLFileNotFoundError: If file does not exist.
            SQLFileParseError: If file cannot be read.
        """
        path_str = str(path)
        try:
            return path.read_text(encoding=self.encoding)
        except FileNotFoundError as e:
            raise SQLFileNotFoundError(path.name, path=path_str) from e
        except (OSError, UnicodeDecodeError) as e:
            raise SQLFileParseError(path.name, path_str, e) from e

    @staticmethod
    def _strip_leading_comments(sql_text: str) -> str:
        """Remove leading comment lines from a SQL string."""
        lines = sql_text.strip().split("\n")
        for i, line in enumerate(lines):
            if line.strip() and not line.strip().startswith("--"):
                return "\n".join(lines[i:]).strip()
        return ""

    @staticmethod
    def _parse_sql_content(content: str, file_path: str) -> "dict[str, NamedStatement]":
        """Parse SQL content and extract named statements with optional dialect specifications.

        Args:
            content: Raw SQL file content to parse
            file_path: File path for error reporting

        Returns:
            Dictionary mapping normalized statement names to NamedStatement objects

        Raises:
            SQLFileParseError: If no named statements are found or a name is duplicated.
        """
        statements: dict[str, NamedStatement] = {}

        name_matches = list(QUERY_NAME_PATTERN.finditer(content))
        if not name_matches:
            raise SQLFileParseError(
                file_path, file_path, ValueError("No named SQL statements found (-- name: statement_name)")
            )

        for i, match in enumerate(name_matches):
            raw_statement_name = match.group(1).strip()
            statement_start_line = content[: match.start()].count("\n")

            start_pos = match.end()
            end_pos = name_matches[i + 1].start() if i + 1 < len(name_matches) else len(content)
            statement_section = content[start_pos:end_pos].strip()
            if not raw_statement_name or not statement_section:
                continue

            dialect = None
            statement_sql = statement_section
            section_lines = [line.strip() for line in statement_section.split("\n") if line.strip()]
            if section_lines and (dialect_match := DIALECT_PATTERN.match(section_lines[0])):
                dialect = _resolve_dialect(dialect_match.group("dialect"), f" at line {statement_start_line + 1}")
                statement_sql = "\n".join(statement_section.split("\n")[1:])

            clean_sql = SQLFileLoader._strip_leading_comments(statement_sql)
            if not clean_sql:
                continue
            normalized_name = _normalize_query_name(raw_statement_name)
            if normalized_name in statements:
                raise SQLFileParseError(
                    file_path, file_path, ValueError(f"Duplicate statement name: {raw_statement_name}")
                )
            statements[normalized_name] = NamedStatement(
                name=normalized_name, sql=clean_sql, dialect=dialect, start_line=statement_start_line
            )

        if not statements:
            raise SQLFileParseError(file_path, file_path, ValueError("No valid SQL statements found after parsing"))

        return statements

    def load_sql(self, *paths: Union[str, Path]) -> None:
        """Load SQL files and parse named queries.

        Directories are searched recursively; statements found in a
        subdirectory are namespaced with its dotted relative path.

        Args:
            *paths: One or more file paths or directory paths to load.

        Raises:
            SQLFileNotFoundError: If a path does not exist.
        """
        start_time = time.perf_counter()
        loaded_count = 0
        query_count_before = len(self._queries)

        try:
            for path in paths:
                path_obj = Path(path)
                if path_obj.is_dir():
                    loaded_count += self._load_directory(path_obj)
                elif path_obj.exists():
                    self._load_single_file(path_obj, None)
                    loaded_count += 1
                else:
                    raise SQLFileNotFoundError(path_obj.name, path=str(path_obj))
        except Exception:
            logger.exception("Failed to load SQL files after %.3fms", (time.perf_counter() - start_time) * 1000)
            raise

        logger.debug(
            "Loaded %d SQL files with %d new queries in %.3fms",
            loaded_count,
            len(self._queries) - query_count_before,
            (time.perf_counter() - start_time) * 1000,
        )

    def _load_directory(self, dir_path: Path) -> int:
        """Load all SQL files from a directory with namespacing."""
        sql_files = sorted(dir_path.rglob("*.sql"))
        for file_path in sql_files:
            namespace_parts = file_path.relative_to(dir_path).parent.parts
            namespace = ".".join(namespace_parts) if namespace_parts else None
            self._load_single_file(file_path, namespace)
        return len(sql_files)

    def _load_single_file(self, file_path: Path, namespace: Optional[str]) -> None:
        """Load a single SQL file with optional namespace.

        Files already loaded with an unchanged checksum are skipped.
        """
        path_str = str(file_path)
        content = self._read_file_content(file_path)
        sql_file = SQLFile(content=content, path=path_str)
        if (previous := self._files.get(path_str)) is not None and previous.checksum == sql_file.checksum:
            return

        statements = self._parse_sql_content(content, path_str)
        for name, statement in statements.items():
            namespaced_name = f"{namespace}.{name}" if namespace else name
            existing_file = self._query_to_file.get(namespaced_name)
            if existing_file is not None and existing_file != path_str:
                raise SQLFileParseError(
                    path_str,
                    path_str,
                    ValueError(f"Query name '{namespaced_name}' already exists in file: {existing_file}"),
                )
        for name, statement in statements.items():
            namespaced_name = f"{namespace}.{name}" if namespace else name
            self._queries[namespaced_name] = statement
            self._query_to_file[namespaced_name] = path_str
        self._files[path_str] = sql_file

    def get_sql(self, name: str) -> NamedStatement:
        """Get a named statement.

        Args:
            name: Name of the statement (from -- name: in SQL file).
                  Hyphens in names are automatically converted to underscores.

        Returns:
            The named statement.

        Raises:
            SQLFileNotFoundError: If statement name not found.
        """
        safe_name = _normalize_query_name(name)
        if safe_name not in self._queries:
            message = f"Statement '{name}' not found"
            if suggestions := get_close_matches(safe_name, self._queries, n=3, cutoff=0.6):
                message += f". Did you mean: {', '.join(suggestions)}?"
            logger.error(message)
            raise SQLFileNotFoundError(name, path=message)
        return self._queries[safe_name]

    def get_query_text(self, name: str) -> str:
        """Get raw SQL text for a query."""
        return self.get_sql(name).sql

    def list_queries(self) -> "list[str]":
        """List all available query names."""
        return sorted(self._queries.keys())

    def has_query(self, name: str) -> bool:
        """Check if a query exists."""
        return _normalize_query_name(name) in self._queries
