from __future__ import annotations
import datetime
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column, declarative_base
from sqlalchemy import Integer, JSON, String, TIMESTAMP, func


Base = declarative_base()

JsonHexStr = str


class StoredMast(Base):
    __tablename__ = 'masts'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    threshold: Mapped[int] = mapped_column(Integer, nullable=False)
    participants: Mapped[list[JsonHexStr]] = mapped_column(JSON, nullable=False)
    prune_budget: Mapped[Optional[int]] = mapped_column(Integer)
    dropped_count: Mapped[int] = mapped_column(Integer, nullable=False)
    merkle_root: Mapped[JsonHexStr] = mapped_column(String, nullable=False)
    internal_key: Mapped[JsonHexStr] = mapped_column(String, nullable=False)
    output_key: Mapped[JsonHexStr] = mapped_column(String, nullable=False)
    leaf_hashes: Mapped[list[JsonHexStr]] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime.datetime] = mapped_column(TIMESTAMP, server_default=func.now(), nullable=False)

    def __repr__(self):
        return (
            f"<StoredMast(name={self.name}, id={self.id}, "
            f"threshold={self.threshold}-of-{len(self.participants)}, "
            f"leaves={len(self.leaf_hashes)}, dropped={self.dropped_count}, root={self.merkle_root})>")
