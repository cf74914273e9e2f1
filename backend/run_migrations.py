#!/usr/bin/env python3
"""
Database migration runner for the Tenure schema.

Applies the SQL files in migrations/ to the Supabase PostgreSQL database,
in file-name order, recording each one in a tracking table.

Usage:
    python run_migrations.py              # Apply pending migrations
    python run_migrations.py --status     # Show applied / pending / changed
    python run_migrations.py --dry-run    # List what would be applied

Configuration:
    SUPABASE_DB_URL=postgresql://postgres.[project-ref]:[password]@[host]:6543/postgres
"""

import argparse
import hashlib
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import psycopg2
from psycopg2 import sql
from rich.console import Console
from rich.table import Table

from shared.config import get_settings

console = Console()

MIGRATIONS_DIR = Path(__file__).parent / "migrations"
MIGRATIONS_TABLE = "_tenure_migrations"


@dataclass(frozen=True)
class Migration:
    name: str
    path: Path
    checksum: str

    def read(self) -> str:
        return self.path.read_text()


def checksum_of(content: str) -> str:
    return hashlib.sha256(content.encode()).hexdigest()[:16]


def discover_migrations(directory: Path = MIGRATIONS_DIR) -> list[Migration]:
    """All *.sql files in the directory, sorted by name."""
    if not directory.exists():
        return []
    return [
        Migration(name=path.name, path=path, checksum=checksum_of(path.read_text()))
        for path in sorted(directory.glob("*.sql"))
    ]


def plan_migrations(
    migrations: list[Migration],
    applied: dict[str, str],
) -> tuple[list[Migration], list[Migration]]:
    """
    Split migrations into (pending, changed).

    `applied` maps migration name to the checksum recorded when it ran.
    A changed migration is never re-applied automatically.
    """
    pending = [m for m in migrations if m.name not in applied]
    changed = [m for m in migrations if m.name in applied and applied[m.name] != m.checksum]
    return pending, changed


def connect(db_url: Optional[str] = None):
    db_url = db_url or get_settings().supabase_db_url
    if not db_url:
        console.print("[red]Error:[/red] SUPABASE_DB_URL is not set.")
        console.print("Find it in Supabase Dashboard → Settings → Database → Connection string → URI")
        sys.exit(1)
    try:
        return psycopg2.connect(db_url)
    except psycopg2.Error as e:
        console.print(f"[red]Database connection failed:[/red] {e}")
        sys.exit(1)


def load_applied(conn) -> dict[str, str]:
    with conn.cursor() as cur:
        cur.execute(
            sql.SQL(
                "CREATE TABLE IF NOT EXISTS {} ("
                " name VARCHAR(255) PRIMARY KEY,"
                " checksum VARCHAR(64) NOT NULL,"
                " applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW())"
            ).format(sql.Identifier(MIGRATIONS_TABLE))
        )
        cur.execute(sql.SQL("SELECT name, checksum FROM {}").format(sql.Identifier(MIGRATIONS_TABLE)))
        rows = cur.fetchall()
    conn.commit()
    return {name: checksum for name, checksum in rows}


def apply(conn, migration: Migration) -> None:
    """Run one migration and record it in the same transaction."""
    console.print(f"[blue]Applying:[/blue] {migration.name}")
    try:
        with conn.cursor() as cur:
            cur.execute(migration.read())
            cur.execute(
                sql.SQL("INSERT INTO {} (name, checksum) VALUES (%s, %s)").format(
                    sql.Identifier(MIGRATIONS_TABLE)
                ),
                (migration.name, migration.checksum),
            )
        conn.commit()
    except psycopg2.Error as e:
        conn.rollback()
        console.print(f"[red]✗[/red] {migration.name} failed: {e}")
        raise
    console.print(f"[green]✓[/green] {migration.name}")


def print_status(migrations: list[Migration], applied: dict[str, str]) -> None:
    pending, changed = plan_migrations(migrations, applied)
    pending_names = {m.name for m in pending}
    changed_names = {m.name for m in changed}

    table = Table(title="Migration Status")
    table.add_column("Migration", style="cyan")
    table.add_column("Status")
    table.add_column("Checksum")
    for migration in migrations:
        if migration.name in pending_names:
            state = "[yellow]Pending[/yellow]"
        elif migration.name in changed_names:
            state = "[red]Changed since applied[/red]"
        else:
            state = "[green]Applied[/green]"
        table.add_row(migration.name, state, migration.checksum)
    console.print(table)


def main():
    parser = argparse.ArgumentParser(description="Apply Tenure database migrations")
    parser.add_argument("--status", action="store_true", help="Show migration status and exit")
    parser.add_argument("--dry-run", action="store_true", help="List pending migrations without applying them")
    args = parser.parse_args()

    console.print("[bold]Tenure Database Migrations[/bold]")
    migrations = discover_migrations()
    conn = connect()

    try:
        applied = load_applied(conn)
        if args.status:
            print_status(migrations, applied)
            return

        pending, changed = plan_migrations(migrations, applied)
        for migration in changed:
            console.print(f"[yellow]Warning:[/yellow] {migration.name} has changed since it was applied")

        if not pending:
            console.print("[green]All migrations are up to date![/green]")
            return

        for migration in pending:
            if args.dry_run:
                console.print(f"[cyan]Would apply:[/cyan] {migration.name}")
            else:
                apply(conn, migration)
    finally:
        conn.close()


if __name__ == "__main__":
    main()
