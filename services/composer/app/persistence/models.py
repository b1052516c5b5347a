"""SQLAlchemy models for the composer service."""
from __future__ import annotations

import enum
import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Enum, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class CompositionStatus(enum.Enum):
    composed = "Composed"
    rejected = "Rejected"


class BlueprintRecord(Base):
    __tablename__ = "blueprint"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[CompositionStatus] = mapped_column(Enum(CompositionStatus), nullable=False)
    artifact: Mapped[dict[str, Any] | None] = mapped_column(JSON)
    errors: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    report: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    artifact_ref: Mapped[str | None] = mapped_column(String)
    catalog_version: Mapped[str] = mapped_column(String, nullable=False)
    module_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    wall_time_ms: Mapped[int | None] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, onupdate=datetime.utcnow)

    modules: Mapped[list["BlueprintModule"]] = relationship(back_populates="blueprint", cascade="all, delete-orphan")
    connections: Mapped[list["BlueprintConnection"]] = relationship(
        back_populates="blueprint", cascade="all, delete-orphan"
    )


class BlueprintModule(Base):
    __tablename__ = "blueprint_module"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    blueprint_id: Mapped[str] = mapped_column(ForeignKey("blueprint.id"), nullable=False)
    module_id: Mapped[int] = mapped_column(Integer, nullable=False)
    module_type: Mapped[str] = mapped_column(String, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    parameters: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    routes: Mapped[list[dict[str, Any]] | None] = mapped_column(JSON)
    order_hint: Mapped[int] = mapped_column(Integer, nullable=False)

    blueprint: Mapped[BlueprintRecord] = relationship(back_populates="modules")

    __table_args__ = (UniqueConstraint("blueprint_id", "module_id", name="uq_module_blueprint_id"),)


class BlueprintConnection(Base):
    __tablename__ = "blueprint_connection"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    blueprint_id: Mapped[str] = mapped_column(ForeignKey("blueprint.id"), nullable=False)
    source: Mapped[int] = mapped_column(Integer, nullable=False)
    target: Mapped[int] = mapped_column(Integer, nullable=False)
    route: Mapped[Any | None] = mapped_column(JSON)

    blueprint: Mapped[BlueprintRecord] = relationship(back_populates="connections")


class AuditLog(Base):
    __tablename__ = "audit_log"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    principal: Mapped[str] = mapped_column(String, nullable=False)
    action: Mapped[str] = mapped_column(String, nullable=False)
    old_val: Mapped[dict[str, Any] | None] = mapped_column(JSON)
    new_val: Mapped[dict[str, Any] | None] = mapped_column(JSON)
    correlation_id: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)


__all__ = [
    "Base",
    "BlueprintRecord",
    "BlueprintModule",
    "BlueprintConnection",
    "AuditLog",
    "CompositionStatus",
]
