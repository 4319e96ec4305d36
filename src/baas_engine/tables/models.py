"""SQLAlchemy models for tables and their columns."""

from typing import TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from baas_engine.common.models import Base, TimestampMixin

if TYPE_CHECKING:
    from baas_engine.projects.models import ProjectModel


class TableModel(Base, TimestampMixin):
    __tablename__ = "tables"
    __table_args__ = (
        UniqueConstraint("project_id", "pg_table_identifier", name="uq_table_project_identifier"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(63), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    pg_table_identifier: Mapped[str] = mapped_column(String(63), nullable=False)
    creator_id: Mapped[int] = mapped_column(Integer, nullable=False)

    project: Mapped["ProjectModel"] = relationship(back_populates="tables")
    columns: Mapped[list["ColumnModel"]] = relationship(
        back_populates="table",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ColumnModel.id",
    )


class ColumnModel(Base, TimestampMixin):
    __tablename__ = "columns"
    __table_args__ = (
        UniqueConstraint("table_id", "pg_column_identifier", name="uq_column_table_identifier"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    table_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tables.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(63), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    column_type: Mapped[str] = mapped_column(String(20), nullable=False)
    pg_column_identifier: Mapped[str] = mapped_column(String(63), nullable=False)
    required: Mapped[bool] = mapped_column(Boolean, default=False)

    table: Mapped["TableModel"] = relationship(back_populates="columns")
