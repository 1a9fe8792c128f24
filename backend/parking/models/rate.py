"""Hourly parking rate. Lowest-id active row is the current rate; updated in place (no history)."""
from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric
from sqlalchemy.sql import expression, func

from parking.db.base import Base


class Rate(Base):
    __tablename__ = "rates"

    id = Column(Integer, primary_key=True, autoincrement=True)
    rate_per_hour = Column(Numeric(10, 2), nullable=False, default=50, server_default="50.00")
    is_active = Column(Boolean, nullable=False, default=True, server_default=expression.true(), index=True)
    effective_from = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
