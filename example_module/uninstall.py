"""
Example Module uninstaller

Removes the module in a fixed order: optional backup snapshot, deactivation,
data tables, settings cache, permissions, registration row, module cache and
finally files. The destructive database steps share one transaction. When a
step fails the transaction is rolled back and the tables are restored from the
snapshot, so a failed uninstall leaves the data as it was.

Usage:
    example-module-uninstall [--remove-data] [--remove-files] [--no-backup]
                             [--force] [--keep-settings]
"""

import argparse
import asyncio
import logging
import re
import sys
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

from sqlalchemy import delete, insert, inspect, select, text, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from example_module.config import settings as app_settings
from example_module.constants.module import (
    AUDIT_TABLE,
    BACKUP_TABLE_PREFIX,
    CACHE_TABLE,
    DATA_TABLE,
    MODULE_NAME,
    MODULE_TABLES,
    SETTINGS_CACHE_GROUP,
)
from example_module.database import build_engine
from example_module.database import engine as default_engine
from example_module.exceptions import BackupError, UninstallError
from example_module.install import ASSET_DIR, CSS_FILE, JS_FILE, VIEW_DIR, WIDGET_FILE, table_exists
from example_module.models import AuditEntry, CacheEntry, ContentItem, Module, Permission, RolePermission
from example_module.plugins.base import PluginBase
from example_module.plugins.events import EventBus
from example_module.plugins.hooks import HOOK_AFTER_UNINSTALL, HOOK_BEFORE_UNINSTALL, HOOK_DEACTIVATING
from example_module.services.audit_service import ACTION_BACKUP

logger = logging.getLogger(__name__)

# Source table → backup suffix
BACKUP_SOURCES = (
    (ContentItem, "data"),
    (CacheEntry, "cache"),
    (AuditEntry, "audit"),
)
SETTINGS_BACKUP_SUFFIX = "settings"

CACHE_DIR = "cache"

_BACKUP_DATE = re.compile(rf"^{BACKUP_TABLE_PREFIX}(\d{{8}})_")


@dataclass
class UninstallOptions:
    remove_data: bool = False
    remove_settings: bool = True
    remove_files: bool = False
    create_backup: bool = True
    force_removal: bool = False
    module_path: Optional[Path] = None

    def as_payload(self) -> dict[str, bool]:
        return {
            "remove_data": self.remove_data,
            "remove_settings": self.remove_settings,
            "remove_files": self.remove_files,
            "create_backup": self.create_backup,
            "force_removal": self.force_removal,
        }


def _quote(conn: AsyncConnection, name: str) -> str:
    return conn.dialect.identifier_preparer.quote(name)


def backup_prefix_for(moment: datetime) -> str:
    return f"{BACKUP_TABLE_PREFIX}{moment:%Y%m%d_%H%M%S_%f}"


async def list_backup_tables(conn: AsyncConnection) -> list[str]:
    names = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
    return sorted(name for name in names if name.startswith(BACKUP_TABLE_PREFIX))


# ============================================================================
# Backup / restore
# ============================================================================


async def create_uninstall_backup(engine: AsyncEngine) -> Optional[str]:
    """
    Snapshot the module tables and registration row into backup tables.

    The snapshot is committed on its own so it survives a rolled back
    uninstall. Returns the backup prefix, or None on failure.
    """
    now = datetime.now(timezone.utc)
    prefix = backup_prefix_for(now)
    try:
        async with engine.begin() as conn:
            for model, suffix in BACKUP_SOURCES:
                source = model.__tablename__
                if not await table_exists(conn, source):
                    continue
                await conn.execute(
                    text(f"CREATE TABLE {_quote(conn, f'{prefix}_{suffix}')} AS SELECT * FROM {_quote(conn, source)}")
                )

            if await table_exists(conn, Module.__tablename__):
                await conn.execute(
                    text(
                        f"CREATE TABLE {_quote(conn, f'{prefix}_{SETTINGS_BACKUP_SUFFIX}')} AS "
                        f"SELECT * FROM {_quote(conn, Module.__tablename__)} WHERE name = :name"
                    ),
                    {"name": MODULE_NAME},
                )

            if await table_exists(conn, AUDIT_TABLE):
                await conn.execute(
                    insert(AuditEntry).values(action=ACTION_BACKUP, data={"backup_prefix": prefix}, created_at=now)
                )
    except SQLAlchemyError as e:
        logger.error(f"Backup creation error: {e}")
        return None

    logger.info(f"Example Module backup created with prefix {prefix}")
    return prefix


async def find_latest_backup(conn: AsyncConnection) -> Optional[str]:
    """Most recent backup prefix, from the audit log or the table names."""
    if await table_exists(conn, AUDIT_TABLE):
        result = await conn.execute(
            select(AuditEntry.data).where(AuditEntry.action == ACTION_BACKUP).order_by(AuditEntry.id.desc()).limit(1)
        )
        data = result.scalar()
        if isinstance(data, dict) and data.get("backup_prefix"):
            return data["backup_prefix"]

    data_backups = [name for name in await list_backup_tables(conn) if name.endswith("_data")]
    if not data_backups:
        return None
    return data_backups[-1][: -len("_data")]


async def restore_from_backup(engine: AsyncEngine, backup_prefix: Optional[str] = None) -> bool:
    """
    Put the snapshot back: re-create missing tables, replace their rows and
    re-insert the registration row.
    """
    try:
        async with engine.begin() as conn:
            prefix = backup_prefix or await find_latest_backup(conn)
            if not prefix:
                logger.warning("No backup available to restore from")
                return False

            for model, suffix in BACKUP_SOURCES:
                backup = f"{prefix}_{suffix}"
                if not await table_exists(conn, backup):
                    continue
                table = model.__table__
                await conn.run_sync(lambda sync_conn, t=table: t.create(sync_conn, checkfirst=True))
                await conn.execute(delete(table))
                await conn.execute(
                    text(f"INSERT INTO {_quote(conn, table.name)} SELECT * FROM {_quote(conn, backup)}")
                )

            settings_backup = f"{prefix}_{SETTINGS_BACKUP_SUFFIX}"
            if await table_exists(conn, settings_backup):
                await conn.execute(delete(Module).where(Module.name == MODULE_NAME))
                await conn.execute(
                    text(
                        f"INSERT INTO {_quote(conn, Module.__tablename__)} "
                        f"SELECT * FROM {_quote(conn, settings_backup)}"
                    )
                )
    except SQLAlchemyError as e:
        logger.error(f"Backup restoration error: {e}")
        return False

    logger.info(f"Example Module restored from backup {prefix}")
    return True


async def cleanup_old_backups(engine: AsyncEngine, keep_days: int = 30) -> list[str]:
    """Drop backup tables older than `keep_days`; returns the dropped names."""
    cutoff = date.today() - timedelta(days=keep_days)
    dropped: list[str] = []
    try:
        async with engine.begin() as conn:
            for name in await list_backup_tables(conn):
                match = _BACKUP_DATE.match(name)
                if not match:
                    continue
                if datetime.strptime(match.group(1), "%Y%m%d").date() < cutoff:
                    await conn.execute(text(f"DROP TABLE {_quote(conn, name)}"))
                    dropped.append(name)
    except SQLAlchemyError as e:
        logger.error(f"Backup cleanup error: {e}")
        return []

    for name in dropped:
        logger.info(f"Cleaned up old backup table {name}")
    return dropped


# ============================================================================
# Uninstall steps
# ============================================================================


async def deactivate_module(conn: AsyncConnection) -> None:
    await conn.execute(
        update(Module)
        .where(Module.name == MODULE_NAME)
        .values(enabled=False, status="inactive", updated_at=datetime.now(timezone.utc))
    )


async def remove_module_data(conn: AsyncConnection) -> None:
    for model, _suffix in BACKUP_SOURCES:
        table = model.__table__
        await conn.run_sync(lambda sync_conn, t=table: t.drop(sync_conn, checkfirst=True))
        logger.info(f"Removed table {table.name}")


async def remove_module_settings(conn: AsyncConnection) -> None:
    if await table_exists(conn, CACHE_TABLE):
        await conn.execute(delete(CacheEntry).where(CacheEntry.cache_group == SETTINGS_CACHE_GROUP))


async def remove_module_permissions(conn: AsyncConnection) -> None:
    if not await table_exists(conn, Permission.__tablename__):
        return
    module_permission_ids = select(Permission.id).where(Permission.module == MODULE_NAME)
    if await table_exists(conn, RolePermission.__tablename__):
        await conn.execute(delete(RolePermission).where(RolePermission.permission_id.in_(module_permission_ids)))
    await conn.execute(delete(Permission).where(Permission.module == MODULE_NAME))


async def deregister_module(conn: AsyncConnection) -> None:
    await conn.execute(delete(Module).where(Module.name == MODULE_NAME))
    logger.info("Example Module deregistered")


async def clear_module_cache(conn: AsyncConnection) -> None:
    if await table_exists(conn, CACHE_TABLE):
        await conn.execute(delete(CacheEntry))


def remove_module_files(module_path: Path) -> list[Path]:
    """Delete the files the installer writes, then any directory left empty."""
    removed: list[Path] = []
    files = (
        module_path / ASSET_DIR / CSS_FILE,
        module_path / ASSET_DIR / JS_FILE,
        module_path / VIEW_DIR / WIDGET_FILE,
    )
    try:
        for path in files:
            if path.exists():
                path.unlink()
                removed.append(path)
        cache_dir = module_path / CACHE_DIR
        if cache_dir.is_dir():
            for cached in cache_dir.iterdir():
                if cached.is_file():
                    cached.unlink()
        for directory in (module_path / ASSET_DIR, module_path / VIEW_DIR, cache_dir):
            if directory.is_dir() and not any(directory.iterdir()):
                directory.rmdir()
    except OSError as e:
        logger.error(f"File removal error: {e}")
    return removed


async def _run_step(
    conn: AsyncConnection,
    name: str,
    step: Callable[[AsyncConnection], Awaitable[None]],
) -> bool:
    """Run one step inside a savepoint so a forced uninstall can carry on."""
    try:
        async with conn.begin_nested():
            await step(conn)
    except SQLAlchemyError as e:
        logger.error(f"{name} error: {e}")
        return False
    return True


# ============================================================================
# Entry points
# ============================================================================


async def uninstall_module(
    engine: AsyncEngine,
    options: Optional[UninstallOptions] = None,
    bus: Optional[EventBus] = None,
    module: Optional[PluginBase] = None,
) -> bool:
    """
    Uninstall the module.

    Returns:
        True on success. On failure everything is rolled back, restored from
        the backup when one was taken, and False is returned.
    """
    options = options or UninstallOptions()
    module_path = options.module_path or app_settings.module_path

    if bus is not None:
        await bus.emit(HOOK_BEFORE_UNINSTALL, options.as_payload())

    backup_prefix = None
    try:
        if options.create_backup:
            backup_prefix = await create_uninstall_backup(engine)
            if backup_prefix is None and not options.force_removal:
                raise BackupError()

        if module is not None:
            await module.deactivate()
        elif bus is not None:
            await bus.emit(HOOK_DEACTIVATING, {"module": MODULE_NAME})

        async with engine.begin() as conn:
            if not await _run_step(conn, "Deactivation", deactivate_module) and not options.force_removal:
                raise UninstallError("Failed to deactivate module", step="deactivate")

            if options.remove_data:
                if not await _run_step(conn, "Data removal", remove_module_data) and not options.force_removal:
                    raise UninstallError("Failed to remove module data", step="remove_data")

            if options.remove_settings:
                if not await _run_step(conn, "Settings removal", remove_module_settings):
                    raise UninstallError("Failed to remove module settings", step="remove_settings")

            if not await _run_step(conn, "Permission removal", remove_module_permissions) and not options.force_removal:
                raise UninstallError("Failed to remove module permissions", step="remove_permissions")

            if not await _run_step(conn, "Deregistration", deregister_module):
                raise UninstallError("Failed to deregister module", step="deregister")

            await _run_step(conn, "Cache clearing", clear_module_cache)
    except (UninstallError, SQLAlchemyError) as e:
        logger.error(f"Example Module uninstall error: {e}")
        if backup_prefix is not None:
            await restore_from_backup(engine, backup_prefix)
        return False

    if options.remove_files:
        remove_module_files(module_path)

    logger.info("Example Module uninstallation completed successfully")
    if bus is not None:
        await bus.emit(HOOK_AFTER_UNINSTALL, options.as_payload())
    return True


async def verify_uninstall(engine: AsyncEngine, module_path: Optional[Path] = None) -> dict[str, bool]:
    module_path = module_path or app_settings.module_path
    results = {
        "module_removed": False,
        "tables_removed": False,
        "permissions_removed": False,
        "files_removed": False,
        "success": False,
    }

    try:
        async with engine.connect() as conn:
            if await table_exists(conn, Module.__tablename__):
                row = (await conn.execute(select(Module.id).where(Module.name == MODULE_NAME))).first()
                results["module_removed"] = row is None
            else:
                results["module_removed"] = True

            remaining = [table for table in MODULE_TABLES if await table_exists(conn, table)]
            results["tables_removed"] = not remaining

            if await table_exists(conn, Permission.__tablename__):
                row = (await conn.execute(select(Permission.id).where(Permission.module == MODULE_NAME))).first()
                results["permissions_removed"] = row is None
            else:
                results["permissions_removed"] = True
    except SQLAlchemyError as e:
        logger.error(f"Verification error: {e}")

    results["files_removed"] = not any(
        (module_path / ASSET_DIR / name).exists() for name in (CSS_FILE, JS_FILE)
    )
    results["success"] = results["module_removed"] and results["tables_removed"] and results["permissions_removed"]
    return results


def options_from_args(args: argparse.Namespace) -> UninstallOptions:
    return UninstallOptions(
        remove_data=args.remove_data,
        remove_settings=not args.keep_settings,
        remove_files=args.remove_files,
        create_backup=not args.no_backup,
        force_removal=args.force,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Uninstall the Example Module")
    parser.add_argument("--remove-data", action="store_true", help="drop the module data tables")
    parser.add_argument("--remove-files", action="store_true", help="delete the module asset files")
    parser.add_argument("--no-backup", action="store_true", help="skip the backup snapshot")
    parser.add_argument("--force", action="store_true", help="continue past non-critical errors")
    parser.add_argument("--keep-settings", action="store_true", help="keep cached module settings")
    parser.add_argument("--database-url", default=None, help="database URL (defaults to the configured one)")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    return parser


def _print_options(options: UninstallOptions) -> None:
    print("Uninstall options:")
    for key, value in options.as_payload().items():
        print(f"- {key.replace('_', ' ').title()}: {'Yes' if value else 'No'}")
    print()


async def _run(args: argparse.Namespace) -> int:
    engine = build_engine(args.database_url) if args.database_url else default_engine
    options = options_from_args(args)

    print("Example Module Uninstaller")
    print("==========================")
    print()
    _print_options(options)

    try:
        if not await uninstall_module(engine, options):
            print("Example Module uninstallation failed!")
            print("Check error logs for details.")
            return 1

        print("Example Module uninstalled successfully!")
        verification = await verify_uninstall(engine)
    finally:
        await engine.dispose()

    print("\nVerification Results:")
    for key, label in (
        ("module_removed", "Module removed"),
        ("tables_removed", "Tables removed"),
        ("permissions_removed", "Permissions removed"),
        ("files_removed", "Files removed"),
        ("success", "Overall success"),
    ):
        print(f"{label}: {'Yes' if verification[key] else 'No'}")

    if not options.remove_data:
        print(f"\nData tables were kept: {', '.join([DATA_TABLE, CACHE_TABLE, AUDIT_TABLE])}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    return asyncio.run(_run(args))


if __name__ == "__main__":
    sys.exit(main())
