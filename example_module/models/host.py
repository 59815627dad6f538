"""
Host framework tables

The module registry, permission and role-permission tables belong to the host
CMS. They are mapped here so the installer can write to them; the installer
never creates or drops them.
"""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, String, Text

from example_module.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Module(Base):
    __tablename__ = "modules"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, index=True)
    title = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    version = Column(String(20), nullable=True)
    author = Column(String(255), nullable=True)
    author_url = Column(String(255), nullable=True)
    license = Column(String(50), nullable=True)
    enabled = Column(Boolean, default=True, nullable=False)
    # JSON blobs, stored serialized
    settings = Column(Text, nullable=True)
    hooks = Column(Text, nullable=True)
    permissions = Column(Text, nullable=True)
    install_path = Column(String(255), nullable=True)
    namespace = Column(String(255), nullable=True)
    install_sql = Column(Text, nullable=True)
    status = Column(String(20), default="active", nullable=False)
    priority = Column(Integer, default=10, nullable=False)
    is_core = Column(Boolean, default=False, nullable=False)
    is_commercial = Column(Boolean, default=False, nullable=False)
    price = Column(Numeric(10, 2, asdecimal=False), default=0, nullable=False)
    required_version = Column(String(20), nullable=True)
    dependencies = Column(Text, nullable=True)
    tags = Column(Text, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)


class Permission(Base):
    __tablename__ = "permissions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(String(255), nullable=True)
    module = Column(String(100), nullable=True, index=True)


class RolePermission(Base):
    __tablename__ = "role_permissions"

    role_id = Column(Integer, primary_key=True)
    permission_id = Column(Integer, primary_key=True)
