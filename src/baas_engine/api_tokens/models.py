"""SQLAlchemy model for per-project API tokens."""

from typing import TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from baas_engine.common.models import Base, TimestampMixin

if TYPE_CHECKING:
    from baas_engine.projects.models import ProjectModel


class ApiTokenModel(Base, TimestampMixin):
    __tablename__ = "api_tokens"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("projects.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    token: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    read_only: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    generated_by_user_id: Mapped[int] = mapped_column(Integer, nullable=False)

    project: Mapped["ProjectModel"] = relationship(back_populates="api_token")
