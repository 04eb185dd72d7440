"""Category model."""
from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, UpdatableMixin


class Category(UpdatableMixin, Base):
    """Groups images in the library."""

    __tablename__ = "categories"

    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    images = relationship("Image", back_populates="category")
