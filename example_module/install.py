"""
Example Module installer

Creates the module tables, registers the module with the host, optionally
seeds sample content, sets up permissions and writes default asset files.
Everything that touches the database runs in one transaction; a fatal step
rolls the whole installation back.

Usage:
    example-module-install [--sample-data] [--database-url URL]
"""

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from sqlalchemy import inspect, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, async_sessionmaker
from sqlalchemy.schema import CreateTable

from example_module.config import settings as app_settings
from example_module.constants.content import SAMPLE_DATA
from example_module.constants.module import (
    DATA_TABLE,
    MODULE_AUTHOR,
    MODULE_AUTHOR_URL,
    MODULE_DESCRIPTION,
    MODULE_INSTALL_PATH,
    MODULE_LICENSE,
    MODULE_NAME,
    MODULE_NAMESPACE,
    MODULE_PERMISSIONS,
    MODULE_PRIORITY,
    MODULE_REQUIRED_VERSION,
    MODULE_TAGS,
    MODULE_TITLE,
    MODULE_VERSION,
)
from example_module.database import build_engine
from example_module.database import engine as default_engine
from example_module.exceptions import InstallationError
from example_module.models import AuditEntry, CacheEntry, ContentItem, Module, Permission
from example_module.plugins.events import EventBus
from example_module.plugins.hooks import HOOK_INSTALLED, REGISTERED_HOOKS
from example_module.schemas.settings import normalize_settings
from example_module.services.settings_service import SettingsStore, has_legacy_values

logger = logging.getLogger(__name__)

MODULE_TABLE_MODELS = (ContentItem, CacheEntry, AuditEntry)

ASSET_DIR = "assets"
VIEW_DIR = "views"
CSS_FILE = "example-module.css"
JS_FILE = "example-module.js"
WIDGET_FILE = "widget.html"

DEFAULT_CSS = """/* Example Module Styles */
.example-module-widget { padding: 15px; border: 1px solid #ddd; border-radius: 5px; }
.example-module-data .data-item { margin-bottom: 10px; padding: 10px; background: #f9f9f9; }
.example-module-form { max-width: 800px; margin: 0 auto; }
.form-control { width: 100%; padding: 8px; margin: 5px 0; border: 1px solid #ccc; border-radius: 3px; }
"""

DEFAULT_JS = """// Example Module JavaScript
document.addEventListener('DOMContentLoaded', function() {
    const forms = document.querySelectorAll('.example-module-form');
    forms.forEach(form => {
        const content = form.querySelector('textarea[name="content"]');
        const counter = form.querySelector('.character-counter .current');
        if (content && counter) {
            content.addEventListener('input', () => { counter.textContent = content.value.length; });
        }
    });
});
"""

DEFAULT_WIDGET = """<div class="example-module-widget {{ style }}">
    <h3>{{ title }}</h3>
    <p>{{ message }}</p>
{% if show_date %}
    <p><small>Today: {{ today }}</small></p>
{% endif %}
</div>
"""


@dataclass
class InstallOptions:
    create_sample_data: bool = False
    # Overrides merged over the default settings
    settings: dict[str, Any] = field(default_factory=dict)
    module_path: Optional[Path] = None


def get_default_module_settings(overrides: Optional[dict[str, Any]] = None) -> dict[str, Any]:
    """Flat default settings plus the informational install keys."""
    values = normalize_settings(overrides or {})
    values["installation_date"] = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
    values["version"] = MODULE_VERSION
    return values


def get_installation_sql(conn: AsyncConnection) -> str:
    """CREATE TABLE statements for the module tables, kept for reference."""
    statements = [
        str(CreateTable(model.__table__).compile(dialect=conn.dialect)).strip() + ";"
        for model in MODULE_TABLE_MODELS
    ]
    return "-- Example Module Installation SQL\n" + "\n\n".join(statements)


async def table_exists(conn: AsyncConnection, table_name: str) -> bool:
    return await conn.run_sync(lambda sync_conn: inspect(sync_conn).has_table(table_name))


async def is_registered(conn: AsyncConnection) -> bool:
    if not await table_exists(conn, Module.__tablename__):
        return False
    result = await conn.execute(select(Module.id).where(Module.name == MODULE_NAME))
    return result.first() is not None


# ============================================================================
# Database steps
# ============================================================================


async def create_tables(conn: AsyncConnection) -> None:
    """Create the module tables; existing tables are left alone."""
    tables = [model.__table__ for model in MODULE_TABLE_MODELS]
    try:
        await conn.run_sync(lambda sync_conn: ContentItem.metadata.create_all(sync_conn, tables=tables))
    except SQLAlchemyError as e:
        raise InstallationError(f"Failed to create module tables: {e}", step="tables") from e
    logger.info("Example Module tables created")


async def register_module(conn: AsyncConnection, options: InstallOptions) -> None:
    """Insert the registration row, or refresh it when already present."""
    try:
        result = await conn.execute(select(Module.id).where(Module.name == MODULE_NAME))
        if result.first() is not None:
            await update_existing_module(conn, options)
            return

        now = datetime.now(timezone.utc)
        await conn.execute(
            insert(Module).values(
                name=MODULE_NAME,
                title=MODULE_TITLE,
                description=MODULE_DESCRIPTION,
                version=MODULE_VERSION,
                author=MODULE_AUTHOR,
                author_url=MODULE_AUTHOR_URL,
                license=MODULE_LICENSE,
                enabled=True,
                settings=json.dumps(get_default_module_settings(options.settings)),
                hooks=json.dumps(REGISTERED_HOOKS),
                permissions=json.dumps(list(MODULE_PERMISSIONS)),
                install_path=MODULE_INSTALL_PATH,
                namespace=MODULE_NAMESPACE,
                install_sql=get_installation_sql(conn),
                status="active",
                priority=MODULE_PRIORITY,
                is_core=False,
                is_commercial=False,
                price=0.0,
                required_version=MODULE_REQUIRED_VERSION,
                dependencies=json.dumps([]),
                tags=json.dumps(MODULE_TAGS),
                created_at=now,
                updated_at=now,
            )
        )
    except SQLAlchemyError as e:
        raise InstallationError(f"Failed to register module: {e}", step="register") from e
    logger.info("Example Module registered")


async def update_existing_module(conn: AsyncConnection, options: InstallOptions) -> None:
    await conn.execute(
        update(Module)
        .where(Module.name == MODULE_NAME)
        .values(
            version=MODULE_VERSION,
            settings=json.dumps(get_default_module_settings(options.settings)),
            status="active",
            updated_at=datetime.now(timezone.utc),
        )
    )
    logger.info("Existing Example Module registration updated")


async def create_sample_data(conn: AsyncConnection) -> int:
    """Seed demonstration rows. Failure is logged and not fatal."""
    now = datetime.now(timezone.utc)
    rows = [{**sample, "created_at": now, "updated_at": now} for sample in SAMPLE_DATA]
    try:
        async with conn.begin_nested():
            await conn.execute(insert(ContentItem), rows)
    except SQLAlchemyError as e:
        logger.error(f"Sample data creation error: {e}")
        return 0
    logger.info(f"Created {len(rows)} sample data items")
    return len(rows)


async def setup_module_permissions(conn: AsyncConnection) -> int:
    """Add the module permissions to the host table when it exists."""
    if not await table_exists(conn, Permission.__tablename__):
        return 0

    created = 0
    try:
        async with conn.begin_nested():
            result = await conn.execute(select(Permission.name).where(Permission.name.in_(list(MODULE_PERMISSIONS))))
            existing = set(result.scalars().all())
            for name, description in MODULE_PERMISSIONS.items():
                if name in existing:
                    continue
                await conn.execute(insert(Permission).values(name=name, description=description, module=MODULE_NAME))
                created += 1
    except SQLAlchemyError as e:
        logger.error(f"Permission setup error: {e}")
        return 0
    return created


# ============================================================================
# File steps
# ============================================================================


def create_module_config_files(module_path: Path) -> list[Path]:
    """Write default CSS, JS and widget template files that are missing."""
    defaults = {
        module_path / ASSET_DIR / CSS_FILE: DEFAULT_CSS,
        module_path / ASSET_DIR / JS_FILE: DEFAULT_JS,
        module_path / VIEW_DIR / WIDGET_FILE: DEFAULT_WIDGET,
    }
    created: list[Path] = []
    try:
        for path, content in defaults.items():
            if path.exists():
                continue
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
            created.append(path)
    except OSError as e:
        logger.error(f"Config file creation error: {e}")
    return created


def cleanup_installation_files(module_path: Path) -> None:
    """Remove asset/view directories the installer left empty."""
    for directory in (module_path / ASSET_DIR, module_path / VIEW_DIR):
        try:
            if directory.is_dir() and not any(directory.iterdir()):
                directory.rmdir()
        except OSError as e:
            logger.error(f"Cleanup error for {directory}: {e}")


# ============================================================================
# Entry points
# ============================================================================


async def install_module(
    engine: AsyncEngine,
    options: Optional[InstallOptions] = None,
    bus: Optional[EventBus] = None,
) -> bool:
    """
    Install the module.

    Returns:
        True when every fatal step succeeded; False after rollback otherwise
    """
    options = options or InstallOptions()
    module_path = options.module_path or app_settings.module_path

    try:
        async with engine.begin() as conn:
            await create_tables(conn)
            await register_module(conn, options)
            if options.create_sample_data:
                await create_sample_data(conn)
            await setup_module_permissions(conn)
            create_module_config_files(module_path)
    except (InstallationError, SQLAlchemyError) as e:
        logger.error(f"Example Module installation error: {e}")
        cleanup_installation_files(module_path)
        return False

    logger.info("Example Module installation completed successfully")
    if bus is not None:
        await bus.emit(HOOK_INSTALLED, {"module": MODULE_NAME, "version": MODULE_VERSION})
    return True


async def verify_installation(engine: AsyncEngine, module_path: Optional[Path] = None) -> dict[str, bool]:
    module_path = module_path or app_settings.module_path
    results = {
        "module_registered": False,
        "tables_created": False,
        "settings_valid": False,
        "files_created": False,
        "success": False,
    }

    try:
        async with engine.connect() as conn:
            if await table_exists(conn, Module.__tablename__):
                row = (
                    await conn.execute(
                        select(Module.id, Module.settings).where(Module.name == MODULE_NAME, Module.status == "active")
                    )
                ).first()
                results["module_registered"] = row is not None
                if row is not None and row.settings:
                    stored = json.loads(row.settings)
                    results["settings_valid"] = (
                        isinstance(stored, dict) and "enabled" in stored and not has_legacy_values(stored)
                    )
            results["tables_created"] = await table_exists(conn, DATA_TABLE)
    except (SQLAlchemyError, json.JSONDecodeError) as e:
        logger.error(f"Verification error: {e}")

    results["files_created"] = all(
        (module_path / ASSET_DIR / name).exists() for name in (CSS_FILE, JS_FILE)
    )
    results["success"] = all(
        results[key] for key in ("module_registered", "tables_created", "settings_valid", "files_created")
    )
    return results


async def fix_existing_installation(engine: AsyncEngine) -> bool:
    """Flatten a registration row whose settings still hold objects."""
    store = SettingsStore(async_sessionmaker(engine, expire_on_commit=False))
    return await store.fix_legacy_settings()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Install the Example Module")
    parser.add_argument("--sample-data", action="store_true", help="seed sample content items")
    parser.add_argument("--database-url", default=None, help="database URL (defaults to the configured one)")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    return parser


async def _run(args: argparse.Namespace) -> int:
    engine = build_engine(args.database_url) if args.database_url else default_engine

    print("Example Module Installer")
    print("========================")

    try:
        async with engine.connect() as conn:
            registered = await is_registered(conn)
        if registered:
            print("Existing installation detected. Attempting to fix...")
            if await fix_existing_installation(engine):
                print("Existing installation fixed successfully!")
            else:
                print("Could not fix existing installation. Proceeding with fresh install...")

        if not await install_module(engine, InstallOptions(create_sample_data=args.sample_data)):
            print("Example Module installation failed!")
            print("Check error logs for details.")
            return 1

        print("Example Module installed successfully!")
        verification = await verify_installation(engine)
    finally:
        await engine.dispose()

    print("\nVerification Results:")
    for key, label in (
        ("module_registered", "Module registered"),
        ("tables_created", "Tables created"),
        ("settings_valid", "Settings valid"),
        ("files_created", "Files created"),
        ("success", "Overall success"),
    ):
        print(f"{label}: {'Yes' if verification[key] else 'No'}")
    return 0 if verification["success"] else 1


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    return asyncio.run(_run(args))


if __name__ == "__main__":
    sys.exit(main())
