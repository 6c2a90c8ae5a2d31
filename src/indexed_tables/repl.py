"""Interactive REPL for the ITQ query language."""

from __future__ import annotations

import argparse
import json
import readline  # noqa: F401 - enables line editing in input()
import sys
from pathlib import Path
from typing import Any

from indexed_tables.collection import Collection
from indexed_tables.errors import IndexedTablesError
from indexed_tables.parsing.query_parser import QueryParser
from indexed_tables.query_executor import QueryExecutor, QueryResult


def _split_statements(content: str) -> list[str]:
    """Split content into statements on semicolons outside string literals."""
    statements = []
    current = []
    in_string = False
    escape_next = False

    for ch in content:
        if escape_next:
            escape_next = False
            current.append(ch)
            continue
        if in_string:
            if ch == "\\":
                escape_next = True
            elif ch == '"':
                in_string = False
            current.append(ch)
            continue

        if ch == '"':
            in_string = True
            current.append(ch)
        elif ch == ";":
            stmt = "".join(current).strip()
            if stmt:
                statements.append(stmt)
            current = []
        else:
            current.append(ch)

    # Handle any remaining content
    stmt = "".join(current).strip()
    if stmt:
        statements.append(stmt)

    return statements


def _is_blank(statement: str) -> bool:
    """Return whether a statement holds nothing but whitespace and comments."""
    return all(
        not line.strip() or line.strip().startswith("--")
        for line in statement.splitlines()
    )


def parse_index_spec(spec: str) -> tuple[str, list[str]]:
    """Parse 'name=field1,field2' (or just 'field') into (name, fields)."""
    name, sep, fields = spec.partition("=")
    name = name.strip()
    if not name:
        raise ValueError(f"Invalid index specification: {spec!r}")
    if not sep:
        return name, [name]
    field_list = [f.strip() for f in fields.split(",") if f.strip()]
    if not field_list:
        raise ValueError(f"Invalid index specification: {spec!r}")
    return name, field_list


def load_collection(
    path: Path,
    index_specs: list[str] | None = None,
    id_attribute: str = "id",
) -> Collection:
    """Load a JSON array (or JSON lines file) of records into a collection."""
    text = path.read_text()
    if path.suffix == ".jsonl":
        records = [json.loads(line) for line in text.splitlines() if line.strip()]
    else:
        records = json.loads(text)
    if not isinstance(records, list):
        raise ValueError(f"Expected a JSON array of records in {path}")

    collection = Collection(records, id_attribute=id_attribute)
    for spec in index_specs or []:
        name, fields = parse_index_spec(spec)
        collection.create_index(name, fields)
    return collection


def format_value(value: Any, max_items: int = 10, max_width: int = 40) -> str:
    """Format a value for display.

    Args:
        value: The value to format
        max_items: Maximum number of list items to show before eliding
        max_width: Maximum character width before truncating
    """
    if value is None:
        return "NULL"
    elif isinstance(value, bool):
        return "true" if value else "false"
    elif isinstance(value, float):
        return f"{value:.6g}"
    elif isinstance(value, str):
        if len(value) > max_width:
            return repr(value[:max_width - 3] + "...")
        return repr(value)
    elif isinstance(value, list):
        formatted = []
        for i, v in enumerate(value):
            if i >= max_items:
                remaining = len(value) - max_items
                formatted.append(f"...+{remaining} more")
                break
            formatted.append(format_value(v, max_items, max_width))

        result = "[" + ", ".join(formatted) + "]"
        if len(result) > max_width:
            return result[:max_width - 4] + "...]"
        return result
    else:
        s = str(value)
        if len(s) > max_width:
            return s[:max_width - 3] + "..."
        return s


def print_result(result: QueryResult) -> None:
    """Print query results in a formatted table."""
    if result.message:
        print(f"Error: {result.message}")
        return

    if not result.rows:
        print("(no results)")
        return

    # Calculate column widths
    col_widths = {col: len(col) for col in result.columns}
    for row in result.rows:
        for col in result.columns:
            col_widths[col] = max(col_widths[col], len(format_value(row.get(col))))

    # Cap column widths
    max_col_width = 40
    for col in col_widths:
        col_widths[col] = min(col_widths[col], max_col_width)

    header = " | ".join(col.ljust(col_widths[col])[:col_widths[col]] for col in result.columns)
    print(header)
    print("-" * len(header))

    for row in result.rows:
        values = []
        for col in result.columns:
            val = format_value(row.get(col))
            if len(val) > col_widths[col]:
                val = val[: col_widths[col] - 3] + "..."
            values.append(val.ljust(col_widths[col]))
        print(" | ".join(values))

    print(f"\n({len(result.rows)} row{'s' if len(result.rows) != 1 else ''})")


def print_indexes(collection: Collection) -> None:
    """Print the primary and secondary indexes of a collection."""
    print(f"(primary): {', '.join(collection.index.fields)}")
    for name, index in sorted(collection.indexes.items()):
        print(f"{name}: {', '.join(index.fields)}")


def print_help() -> None:
    """Print help information."""
    print("""
ITQ - Indexed Tables Query Language

Retrieval (optional, at most one):
  get KEY [, KEY ...] [using INDEX]
  between KEY and KEY [using INDEX] [inclusive | exclusive]

  A KEY is a literal or a composite key like [18, "Alice"].

Filtering, sorting and paging (each optional, in this order):
  where COND [and|or COND ...]      Evaluated strictly left to right
  sort by FIELD [asc|desc], ...
  offset N
  limit N

Conditions:
  FIELD = VALUE, ==, ===, !=, !==, <, <=, >, >=
  FIELD [not] in [V, ...]
  FIELD [not] contains VALUE
  FIELD [not] like "pat%_"          % any run, _ one character
  FIELD [not] ilike "pat%"          Case-insensitive like
  FIELD [not] intersects [V, ...]

Commands:
  indexes                           List indexes
  help                              Show this help
  exit, quit                        Leave the REPL

Examples:
  get 25
  get "draft", "review" using status
  between 18 and 30 using age where name like "A%" sort by name limit 10
""")


def execute_statement(
    parser: QueryParser, executor: QueryExecutor, statement: str
) -> QueryResult:
    """Parse and execute one statement."""
    return executor.execute(parser.parse(statement))


def run_file(file_path: Path, collection: Collection, verbose: bool = False) -> int:
    """Execute ITQ statements from a file. Returns 0 on success."""
    statements = [s for s in _split_statements(file_path.read_text()) if not _is_blank(s)]
    parser = QueryParser()
    executor = QueryExecutor(collection)

    for statement in statements:
        if verbose:
            for i, line in enumerate(statement.split("\n")):
                prefix = ">>> " if i == 0 else "... "
                print(f"{prefix}{line}")
        try:
            print_result(execute_statement(parser, executor, statement))
        except SyntaxError as e:
            print(f"Syntax error: {e}", file=sys.stderr)
            return 1
        except (IndexedTablesError, TypeError, ValueError) as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    return 0


def run_repl(collection: Collection, source: Path | None = None) -> int:
    """Run the interactive REPL."""
    print("ITQ REPL - Indexed Tables Query Language")
    if source:
        print(f"Loaded {len(collection)} record(s) from {source}")
    print("Type 'help' for commands, 'exit' to quit.\n")

    parser = QueryParser()
    executor = QueryExecutor(collection)

    while True:
        try:
            line = input("itq> ").strip()
        except EOFError:
            print()
            break

        if not line or _is_blank(line):
            continue

        lower = line.lower().rstrip(";")
        if lower in ("exit", "quit"):
            break
        elif lower == "help":
            print_help()
            continue
        elif lower == "indexes":
            print_indexes(collection)
            continue

        for statement in _split_statements(line):
            if _is_blank(statement):
                continue
            try:
                print_result(execute_statement(parser, executor, statement))
            except SyntaxError as e:
                print(f"Syntax error: {e}")
            except (IndexedTablesError, TypeError, ValueError) as e:
                print(f"Error: {e}")
        print()

    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    arg_parser = argparse.ArgumentParser(
        description="Query a JSON file of records with the Indexed Tables Query Language"
    )
    arg_parser.add_argument(
        "records",
        type=Path,
        help="Path to a JSON array (or .jsonl file) of records",
    )
    arg_parser.add_argument(
        "-i", "--index",
        action="append",
        default=[],
        metavar="NAME=FIELD[,FIELD]",
        help="Create a secondary index (may be repeated)",
    )
    arg_parser.add_argument(
        "--id-attribute",
        default="id",
        help="Field identifying each record (default: id)",
    )
    arg_parser.add_argument(
        "-c", "--command",
        type=str,
        help="Execute a single query and exit",
    )
    arg_parser.add_argument(
        "-f", "--file",
        type=Path,
        help="Execute queries from a file and exit",
    )
    arg_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Print each query before executing (for -f/--file)",
    )

    args = arg_parser.parse_args(argv)

    if not args.records.exists():
        print(f"Error: File not found: {args.records}", file=sys.stderr)
        return 1

    try:
        collection = load_collection(args.records, args.index, args.id_attribute)
    except (OSError, ValueError) as e:
        print(f"Error loading records: {e}", file=sys.stderr)
        return 1

    if args.file:
        if not args.file.exists():
            print(f"Error: File not found: {args.file}", file=sys.stderr)
            return 1
        return run_file(args.file, collection, args.verbose)

    if args.command:
        try:
            result = execute_statement(QueryParser(), QueryExecutor(collection), args.command)
        except SyntaxError as e:
            print(f"Syntax error: {e}", file=sys.stderr)
            return 1
        except (IndexedTablesError, TypeError, ValueError) as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        print_result(result)
        return 0 if result.message is None else 1

    return run_repl(collection, args.records)


if __name__ == "__main__":
    sys.exit(main())
