"""
Schema migrations for the lot ledger database.

Migrations are SQL scripts named v001_<name>.sql, applied in version order
and recorded with a checksum in schema_migrations. An applied script that
has since changed on disk is never re-run: initialization stops and
reports it.

When migrations are pending on an existing database the file is backed up
first and restored if any of them fails.

verify_schema_integrity() checks what the ledger relies on beyond SQLite's
own integrity: the append-only triggers, lot bounds, one receipt per lot
and lot remaining quantities that agree with the recorded draws.
"""

import asyncio
import hashlib
import re
import shutil
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import aiosqlite

from lotledger.config import get_logger, get_settings

logger = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent

_FILENAME = re.compile(r"v(\d+)_(.+)\.sql")

REQUIRED_TABLES = (
    "schema_migrations",
    "items",
    "lots",
    "movements",
    "movement_draws",
)

REQUIRED_TRIGGERS = (
    "lots_no_delete",
    "movements_no_update",
    "movements_no_delete",
    "movement_draws_no_update",
    "movement_draws_no_delete",
)

# Lots snap float dust to zero on commit, so balances agree to this much
BALANCE_TOLERANCE = 1e-6


@dataclass
class MigrationInfo:
    """A migration script found on disk."""

    version: str
    name: str
    path: Path
    checksum: str

    @classmethod
    def from_file(cls, path: Path) -> "MigrationInfo":
        match = _FILENAME.fullmatch(path.name)
        if not match:
            raise ValueError(f"Invalid migration filename: {path.name}")
        content = path.read_text(encoding="utf-8")
        return cls(
            version=match.group(1),
            name=match.group(2),
            path=path,
            checksum=hashlib.sha256(content.encode()).hexdigest()[:16],
        )


@dataclass
class MigrationResult:
    """Outcome of one migration."""

    version: str
    name: str
    success: bool
    execution_time_ms: int = 0
    error: str | None = None


def discover_migrations(directory: Path = MIGRATIONS_DIR) -> list[MigrationInfo]:
    """Migration scripts in directory, lowest version first."""
    migrations = []
    for path in sorted(directory.glob("v*.sql")):
        try:
            migrations.append(MigrationInfo.from_file(path))
        except ValueError as e:
            logger.warning("skipping_invalid_migration", path=str(path), error=str(e))
    return migrations


async def get_applied_migrations(conn: aiosqlite.Connection) -> dict[str, str]:
    """Applied versions mapped to the checksum they were applied with."""
    try:
        cursor = await conn.execute("SELECT version, checksum FROM schema_migrations")
    except aiosqlite.OperationalError:
        # Fresh database, v001 creates the table
        return {}
    return {row[0]: row[1] for row in await cursor.fetchall()}


def _resolve_db_path(db_path: Path | None) -> Path:
    return db_path if db_path is not None else get_settings().storage.db_path


async def _read_applied(db_path: Path) -> dict[str, str]:
    """Applied migrations of db_path, with the WAL folded into the main file."""
    if not db_path.exists():
        return {}
    async with aiosqlite.connect(db_path) as conn:
        applied = await get_applied_migrations(conn)
        # A file copy of the database must see every committed page
        await conn.execute("PRAGMA wal_checkpoint(TRUNCATE)")
    return applied


async def _apply(conn: aiosqlite.Connection, migration: MigrationInfo) -> MigrationResult:
    logger.info("applying_migration", version=migration.version, name=migration.name)
    start = time.perf_counter()
    error = None
    try:
        await conn.executescript(migration.path.read_text(encoding="utf-8"))
        elapsed_ms = int((time.perf_counter() - start) * 1000)
        await conn.execute(
            "INSERT INTO schema_migrations (version, name, checksum, execution_time_ms) "
            "VALUES (?, ?, ?, ?)",
            (migration.version, migration.name, migration.checksum, elapsed_ms),
        )
        # Checked before commit so a bad migration is never recorded
        cursor = await conn.execute("PRAGMA foreign_key_check")
        violations = len(await cursor.fetchall())
        if violations:
            error = f"{violations} foreign key violations after migration"
    except aiosqlite.Error as e:
        error = str(e)

    if error is not None:
        await conn.rollback()
        logger.error(
            "migration_failed",
            version=migration.version,
            name=migration.name,
            error=error,
        )
        return MigrationResult(
            version=migration.version,
            name=migration.name,
            success=False,
            execution_time_ms=int((time.perf_counter() - start) * 1000),
            error=error,
        )

    await conn.commit()
    logger.info(
        "migration_applied",
        version=migration.version,
        name=migration.name,
        execution_time_ms=elapsed_ms,
    )
    return MigrationResult(
        version=migration.version,
        name=migration.name,
        success=True,
        execution_time_ms=elapsed_ms,
    )


def create_backup(db_path: Path) -> Path:
    """Copy the database file next to itself with a timestamp suffix."""
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    backup_path = db_path.with_suffix(f".backup_{timestamp}.db")
    shutil.copy2(db_path, backup_path)
    logger.info("database_backup_created", backup_path=str(backup_path))
    return backup_path


def restore_backup(db_path: Path, backup_path: Path) -> None:
    """Put a backup back in place, dropping any WAL written since."""
    for suffix in ("-wal", "-shm"):
        db_path.with_name(db_path.name + suffix).unlink(missing_ok=True)
    shutil.copy2(backup_path, db_path)
    logger.warning("database_restored_from_backup", backup_path=str(backup_path))


async def initialize_database(
    db_path: Path | None = None,
    create_backup_before: bool = True,
    migrations_dir: Path = MIGRATIONS_DIR,
) -> list[MigrationResult]:
    """
    Apply every pending migration in version order.

    Stops at the first failure. Returns one result per migration attempted,
    so an up-to-date database yields an empty list. An applied migration
    whose script has changed yields a failed result and nothing is applied.
    """
    db_path = _resolve_db_path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    migrations = discover_migrations(migrations_dir)
    if not migrations:
        logger.warning("no_migrations_found", directory=str(migrations_dir))
        return []

    applied = await _read_applied(db_path)
    changed = [m for m in migrations if m.version in applied and applied[m.version] != m.checksum]
    if changed:
        for m in changed:
            logger.error(
                "applied_migration_changed",
                version=m.version,
                recorded_checksum=applied[m.version],
                checksum=m.checksum,
            )
        return [
            MigrationResult(
                version=m.version,
                name=m.name,
                success=False,
                error="script changed after it was applied",
            )
            for m in changed
        ]

    pending = [m for m in migrations if m.version not in applied]
    if not pending:
        logger.info("database_up_to_date", db_path=str(db_path), version=max(applied))
        return []

    logger.info(
        "initializing_database",
        db_path=str(db_path),
        pending=[m.version for m in pending],
    )
    backup_path = create_backup(db_path) if create_backup_before and db_path.exists() else None

    results: list[MigrationResult] = []
    try:
        async with aiosqlite.connect(db_path) as conn:
            await conn.execute("PRAGMA journal_mode=WAL")
            await conn.execute("PRAGMA foreign_keys=ON")
            for migration in pending:
                result = await _apply(conn, migration)
                results.append(result)
                if not result.success:
                    break
    except Exception:
        if backup_path is not None:
            restore_backup(db_path, backup_path)
        raise

    if backup_path is not None:
        if all(r.success for r in results):
            backup_path.unlink()
        else:
            restore_backup(db_path, backup_path)
    return results


async def get_migration_status(db_path: Path | None = None) -> dict:
    """Current version plus applied and pending migration versions."""
    db_path = _resolve_db_path(db_path)
    exists = db_path.exists()
    applied = await _read_applied(db_path)
    discovered = discover_migrations()

    return {
        "exists": exists,
        "current_version": max(applied) if applied else None,
        "applied_migrations": sorted(applied),
        "pending_migrations": [m.version for m in discovered if m.version not in applied],
        "total_migrations": len(discovered),
    }


# Integrity checks


async def _count(conn: aiosqlite.Connection, sql: str, params: tuple = ()) -> int:
    cursor = await conn.execute(sql, params)
    return (await cursor.fetchone())[0]


async def _names(conn: aiosqlite.Connection, kind: str) -> set[str]:
    cursor = await conn.execute("SELECT name FROM sqlite_master WHERE type = ?", (kind,))
    return {row[0] for row in await cursor.fetchall()}


async def _check_foreign_keys(conn: aiosqlite.Connection) -> dict:
    cursor = await conn.execute("PRAGMA foreign_key_check")
    violations = len(await cursor.fetchall())
    return {"status": "PASS" if not violations else "FAIL", "violations": violations}


async def _check_integrity(conn: aiosqlite.Connection) -> dict:
    cursor = await conn.execute("PRAGMA integrity_check")
    result = (await cursor.fetchone())[0]
    return {"status": "PASS" if result == "ok" else "FAIL", "result": result}


async def _check_required_tables(conn: aiosqlite.Connection) -> dict:
    missing = [t for t in REQUIRED_TABLES if t not in await _names(conn, "table")]
    return {"status": "PASS" if not missing else "FAIL", "missing": missing}


async def _check_append_only_triggers(conn: aiosqlite.Connection) -> dict:
    missing = [t for t in REQUIRED_TRIGGERS if t not in await _names(conn, "trigger")]
    return {"status": "PASS" if not missing else "FAIL", "missing": missing}


async def _check_lot_bounds(conn: aiosqlite.Connection) -> dict:
    violations = await _count(
        conn,
        "SELECT COUNT(*) FROM lots "
        "WHERE remaining_quantity < 0 OR remaining_quantity > original_quantity",
    )
    return {"status": "PASS" if not violations else "FAIL", "violations": violations}


async def _check_lot_receipts(conn: aiosqlite.Connection) -> dict:
    """Every lot was created by exactly one IN movement."""
    violations = await _count(
        conn,
        """
        SELECT COUNT(*) FROM lots l
        WHERE (SELECT COUNT(*) FROM movements m
               WHERE m.direction = 'IN' AND m.lot_id = l.lot_id) != 1
        """,
    )
    return {"status": "PASS" if not violations else "FAIL", "violations": violations}


async def _check_lot_balances(conn: aiosqlite.Connection) -> dict:
    """remaining == original - everything drawn from the lot."""
    cursor = await conn.execute(
        """
        SELECT l.lot_id FROM lots l
        LEFT JOIN (
            SELECT lot_id, SUM(quantity) AS drawn FROM movement_draws GROUP BY lot_id
        ) d ON d.lot_id = l.lot_id
        WHERE ABS(l.original_quantity - COALESCE(d.drawn, 0) - l.remaining_quantity) > ?
        """,
        (BALANCE_TOLERANCE,),
    )
    lots = [row[0] for row in await cursor.fetchall()]
    return {"status": "PASS" if not lots else "FAIL", "lots": lots}


CheckFn = Callable[[aiosqlite.Connection], Awaitable[dict]]

INTEGRITY_CHECKS: tuple[tuple[str, CheckFn], ...] = (
    ("foreign_keys", _check_foreign_keys),
    ("integrity", _check_integrity),
    ("required_tables", _check_required_tables),
    ("append_only_triggers", _check_append_only_triggers),
    ("lot_bounds", _check_lot_bounds),
    ("lot_receipts", _check_lot_receipts),
    ("lot_balances", _check_lot_balances),
)

# Checks that query ledger tables and cannot run without them
_LEDGER_CHECKS = {"lot_bounds", "lot_receipts", "lot_balances"}


async def verify_schema_integrity(db_path: Path | None = None) -> list[dict]:
    """Run every integrity check; each result carries check and status keys."""
    db_path = _resolve_db_path(db_path)
    checks = []
    async with aiosqlite.connect(db_path) as conn:
        has_tables = set(REQUIRED_TABLES) <= await _names(conn, "table")
        for name, check in INTEGRITY_CHECKS:
            if name in _LEDGER_CHECKS and not has_tables:
                checks.append({"check": name, "status": "SKIPPED"})
                continue
            checks.append({"check": name, **await check(conn)})

    failed = [c["check"] for c in checks if c["status"] == "FAIL"]
    if failed:
        logger.warning("schema_integrity_failed", db_path=str(db_path), failed=failed)
    return checks


def main() -> None:
    """CLI entry point: apply migrations, or report status or integrity."""
    import argparse

    parser = argparse.ArgumentParser(description="Lot ledger database migrator")
    parser.add_argument("--db-path", type=Path, help="Database path (default from settings)")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--status", action="store_true", help="Show migration status")
    mode.add_argument("--verify", action="store_true", help="Verify schema integrity")
    parser.add_argument("--no-backup", action="store_true", help="Skip backup before migrating")
    args = parser.parse_args()

    async def run() -> int:
        if args.status:
            status = await get_migration_status(args.db_path)
            print(f"Database exists: {status['exists']}")
            print(f"Current version: {status['current_version'] or 'none'}")
            print(f"Applied: {', '.join(status['applied_migrations']) or '-'}")
            print(f"Pending: {', '.join(status['pending_migrations']) or '-'}")
            return 0

        if args.verify:
            checks = await verify_schema_integrity(args.db_path)
            for check in checks:
                print(f"[{check['status']}] {check['check']}")
                if check["status"] == "FAIL":
                    for key, value in check.items():
                        if key not in ("check", "status"):
                            print(f"       {key}: {value}")
            return 1 if any(c["status"] == "FAIL" for c in checks) else 0

        results = await initialize_database(args.db_path, create_backup_before=not args.no_backup)
        if not results:
            print("Database is up to date")
        for result in results:
            outcome = "OK" if result.success else "FAILED"
            print(f"[{outcome}] v{result.version}: {result.name} ({result.execution_time_ms}ms)")
            if result.error:
                print(f"       {result.error}")
        return 0 if all(r.success for r in results) else 1

    raise SystemExit(asyncio.run(run()))


if __name__ == "__main__":
    main()
