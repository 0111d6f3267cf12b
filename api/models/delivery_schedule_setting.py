"""DeliveryScheduleSetting ORM model — operator-tunable gap per subscription type."""

import uuid
from datetime import datetime
from sqlalchemy import String, Integer, Boolean, Text
from sqlalchemy.orm import Mapped, mapped_column
from db.database import Base, TZDateTime, utcnow


class DeliveryScheduleSetting(Base):
    __tablename__ = "delivery_schedule_settings"

    subscription_type: Mapped[str] = mapped_column(String(32), primary_key=True)
    delivery_gap_days: Mapped[int] = mapped_column(Integer, nullable=False)
    is_daily: Mapped[bool] = mapped_column(Boolean, default=False)
    description: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    updated_by: Mapped[uuid.UUID | None] = mapped_column()
    updated_at: Mapped[datetime] = mapped_column(TZDateTime(), default=utcnow, onupdate=utcnow)
