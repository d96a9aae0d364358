"""
SQLAlchemy models for the peripheral cache and the view history.
Used by catalog_store_real when DATABASE_URL is set.
"""
from __future__ import annotations
from sqlalchemy import BigInteger, Boolean, Float, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class PeripheralRecord(Base):
    __tablename__ = "peripherals"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False, index=True)
    brand: Mapped[str] = mapped_column(String(128), nullable=False)
    category: Mapped[str] = mapped_column(String(128), nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    image_url: Mapped[str] = mapped_column(Text, default="", nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    # JSON text, decoded by database.codec
    specs: Mapped[str] = mapped_column(Text, default="{}", nullable=False)
    features: Mapped[str] = mapped_column(Text, default="[]", nullable=False)
    is_favorite: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
    last_updated: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)


class HistoryRecord(Base):
    __tablename__ = "history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    peripheral_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    viewed_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
