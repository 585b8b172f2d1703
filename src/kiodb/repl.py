"""Interactive shell for kiodb snapshot files."""

from __future__ import annotations

import argparse
import json
import re
import readline  # noqa: F401 - enables line editing in input()
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from kiodb.config import DatabaseConfig
from kiodb.database import Database
from kiodb.dump import export_markdown, render_table
from kiodb.errors import KiodbError

_ADD_COLUMN = re.compile(
    r"^add\s+column\s+(?P<name>\S+)"
    r"(?:\s+(?P<type>string|number|boolean|object))?"
    r"(?:\s+default\s+(?P<default>.+?))?"
    r"(?P<unique>\s+unique)?\s*$",
    re.IGNORECASE,
)
_WHERE = re.compile(r"^where\s+(?P<conditions>.*)$", re.IGNORECASE | re.DOTALL)

HELP_TEXT = """\
Commands:
  columns                                   Show the schema
  add column NAME [TYPE] [default JSON] [unique]
  drop column NAME
  insert {JSON}                             Insert one record
  select [where CONDITIONS]                 Show matching records
  update {JSON} [where CONDITIONS]          Merge values into matching records
  delete [where CONDITIONS]                 Remove matching records
  clear                                     Remove all records
  count                                     Show the number of records
  save                                      Write the snapshot to disk
  export FILE [COUNT]                       Write a markdown table to FILE.md
  help                                      Show this text
  exit | quit                               Leave the shell

Conditions are comparisons joined by 'and', e.g.  age >= 18 and active == true
Operators: == (or =), !=, <, <=, >, >=
"""


@dataclass
class CommandResult:
    """Result of a shell command."""

    columns: list[str] = field(default_factory=list)
    rows: list[dict[str, Any]] = field(default_factory=list)
    message: str | None = None


def _split_json(text: str) -> tuple[Any, str]:
    """Decode a JSON value at the start of text and return it with the rest."""
    text = text.strip()
    value, end = json.JSONDecoder().raw_decode(text)
    return value, text[end:].strip()


def _parse_where(text: str) -> str | None:
    """Return the condition text of an optional ``where`` clause."""
    text = text.strip()
    if not text:
        return None
    match = _WHERE.match(text)
    if match is None:
        raise SyntaxError(f"Expected 'where <conditions>', got '{text}'")
    return match.group("conditions")


def execute_command(db: Database, line: str) -> CommandResult:
    """Execute one shell command against the database."""
    line = line.strip().rstrip(";").strip()
    keyword, _, rest = line.partition(" ")
    keyword = keyword.lower()
    rest = rest.strip()

    if keyword == "columns":
        return CommandResult(
            columns=["name", "type", "default", "unique"],
            rows=[column.to_dict() for column in db.columns],
        )
    if keyword == "add":
        match = _ADD_COLUMN.match(line)
        if match is None:
            raise SyntaxError("Usage: add column NAME [TYPE] [default JSON] [unique]")
        default = json.loads(match.group("default")) if match.group("default") else None
        db.add_column(
            match.group("name"),
            (match.group("type") or "string").lower(),
            default=default,
            unique=bool(match.group("unique")),
        )
        return CommandResult(message=f"Added column {match.group('name')}")
    if keyword == "drop":
        parts = rest.split()
        if len(parts) != 2 or parts[0].lower() != "column":
            raise SyntaxError("Usage: drop column NAME")
        db.delete_column(parts[1])
        return CommandResult(message=f"Dropped column {parts[1]}")
    if keyword == "insert":
        values, remainder = _split_json(rest)
        if remainder:
            raise SyntaxError(f"Unexpected text after record: '{remainder}'")
        record = db.insert(values)
        return CommandResult(columns=db.column_names, rows=[record], message="Inserted 1 record")
    if keyword == "select":
        rows = db.select(_parse_where(rest))
        return CommandResult(columns=db.column_names, rows=rows)
    if keyword == "update":
        values, remainder = _split_json(rest)
        updated = db.update(values, _parse_where(remainder))
        return CommandResult(message=f"Updated {updated} record{'s' if updated != 1 else ''}")
    if keyword == "delete":
        deleted = db.delete(_parse_where(rest))
        return CommandResult(message=f"Deleted {deleted} record{'s' if deleted != 1 else ''}")
    if keyword == "clear":
        removed = db.clear()
        return CommandResult(message=f"Cleared {removed} record{'s' if removed != 1 else ''}")
    if keyword == "count":
        return CommandResult(columns=["count"], rows=[{"count": db.count}])
    if keyword == "save":
        db.save()
        return CommandResult(message=f"Saved {db.path}")
    if keyword == "export":
        parts = rest.split()
        if not parts or len(parts) > 2:
            raise SyntaxError("Usage: export FILE [COUNT]")
        count = int(parts[1]) if len(parts) == 2 else 10
        written = export_markdown(db, parts[0], count)
        return CommandResult(message=f"Exported to {written}")
    if keyword == "help":
        return CommandResult(message=HELP_TEXT)
    raise SyntaxError(f"Unknown command: '{keyword}' (type 'help' for commands)")


def print_result(result: CommandResult) -> None:
    """Print a command result as a message and/or an aligned table."""
    if result.message:
        print(result.message)
    if not result.columns:
        return
    if not result.rows:
        print("(no results)")
        return
    rows = [[row.get(col) for col in result.columns] for row in result.rows]
    print(render_table(result.columns, rows), end="")
    print(f"\n({len(result.rows)} row{'s' if len(result.rows) != 1 else ''})")


def run_repl(db: Database) -> int:
    """Run the interactive shell."""
    print("kiodb shell")
    print(f"Snapshot: {db.path}")
    print("Type 'help' for commands, 'exit' to quit.\n")

    history_file = Path.home() / ".kiodb_history"
    try:
        readline.read_history_file(history_file)
    except FileNotFoundError:
        pass

    try:
        while True:
            try:
                line = input("kiodb> ").strip()
            except EOFError:
                print()
                break
            if not line or line.startswith("--"):
                continue
            if line.lower() in ("exit", "quit"):
                break
            try:
                print_result(execute_command(db, line))
            except SyntaxError as e:
                print(f"Syntax error: {e}")
            except (KiodbError, ValueError, TypeError) as e:
                print(f"Error: {e}")
    except KeyboardInterrupt:
        print()
    finally:
        try:
            readline.write_history_file(history_file)
        except OSError:
            pass
    return 0


def run_file(db: Database, file_path: Path, verbose: bool = False) -> int:
    """Execute commands from a file, one per line; stop at the first error."""
    for lineno, raw in enumerate(file_path.read_text(encoding="utf-8").splitlines(), 1):
        line = raw.strip()
        if not line or line.startswith("--"):
            continue
        if verbose:
            print(f"kiodb> {line}")
        try:
            print_result(execute_command(db, line))
        except SyntaxError as e:
            print(f"Syntax error on line {lineno}: {e}", file=sys.stderr)
            return 1
        except (KiodbError, ValueError, TypeError) as e:
            print(f"Error on line {lineno}: {e}", file=sys.stderr)
            return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    arg_parser = argparse.ArgumentParser(
        description="Interactive shell for kiodb snapshot files"
    )
    arg_parser.add_argument(
        "path",
        type=Path,
        help="Path to the .kiod snapshot (created if missing)",
    )
    arg_parser.add_argument(
        "-c", "--command",
        type=str,
        help="Execute a single command and exit",
    )
    arg_parser.add_argument(
        "-f", "--file",
        type=Path,
        help="Execute commands from a file and exit",
    )
    arg_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Print each command before executing (for -f/--file)",
    )

    args = arg_parser.parse_args(argv)

    if args.file and not args.file.exists():
        print(f"Error: File not found: {args.file}", file=sys.stderr)
        return 1

    try:
        db = Database(args.path, DatabaseConfig.from_env())
    except KiodbError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    with db:
        if args.file:
            return run_file(db, args.file, args.verbose)
        if args.command:
            try:
                print_result(execute_command(db, args.command))
            except SyntaxError as e:
                print(f"Syntax error: {e}", file=sys.stderr)
                return 1
            except (KiodbError, ValueError, TypeError) as e:
                print(f"Error: {e}", file=sys.stderr)
                return 1
            return 0
        return run_repl(db)


if __name__ == "__main__":
    sys.exit(main())
