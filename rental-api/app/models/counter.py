from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.db import Base, SCHEMA


class Counter(Base):
    __tablename__ = "counters"
    __table_args__ = {"schema": SCHEMA}

    name: Mapped[str] = mapped_column(String(32), primary_key=True)
    last_ticket_number: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
