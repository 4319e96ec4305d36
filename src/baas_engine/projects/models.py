"""SQLAlchemy model for projects."""

from typing import TYPE_CHECKING, Optional

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from baas_engine.common.models import Base, TimestampMixin

if TYPE_CHECKING:
    from baas_engine.api_tokens.models import ApiTokenModel
    from baas_engine.tables.models import TableModel


class ProjectModel(Base, TimestampMixin):
    __tablename__ = "projects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(63), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    workspace_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    creator_id: Mapped[int] = mapped_column(Integer, nullable=False)
    pg_schema_identifier: Mapped[str] = mapped_column(String(63), unique=True, nullable=False)
    pg_schema_owner: Mapped[str] = mapped_column(String(63), unique=True, nullable=False)
    pg_schema_owner_password: Mapped[str] = mapped_column(Text, nullable=False)
    pg_schema_owner_password_iv: Mapped[str] = mapped_column(String(32), nullable=False)

    tables: Mapped[list["TableModel"]] = relationship(
        back_populates="project", cascade="all, delete-orphan", passive_deletes=True
    )
    api_token: Mapped[Optional["ApiTokenModel"]] = relationship(
        back_populates="project", cascade="all, delete-orphan", passive_deletes=True
    )
