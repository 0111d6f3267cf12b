"""AdminPause ORM model — operator-initiated delivery holds (never deleted)."""

import uuid
from datetime import datetime
from sqlalchemy import Integer, Text, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column
from db.database import Base, JSONType, TZDateTime, utcnow
from schemas.enums import AdminPauseStatus, PauseType


class AdminPause(Base):
    __tablename__ = "admin_subscription_pauses"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    pause_type: Mapped[PauseType] = mapped_column(
        SAEnum(PauseType, name="admin_pause_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    affected_user_ids: Mapped[list | None] = mapped_column(JSONType)  # None for pause_type=all
    start_date: Mapped[datetime] = mapped_column(TZDateTime(), nullable=False)
    end_date: Mapped[datetime | None] = mapped_column(TZDateTime())  # None = indefinite
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    admin_user_id: Mapped[uuid.UUID] = mapped_column(nullable=False)
    status: Mapped[AdminPauseStatus] = mapped_column(
        SAEnum(AdminPauseStatus, name="admin_pause_status", values_callable=lambda e: [m.value for m in e]),
        default=AdminPauseStatus.ACTIVE,
        index=True,
    )
    affected_subscription_count: Mapped[int] = mapped_column(Integer, default=0)
    reactivated_at: Mapped[datetime | None] = mapped_column(TZDateTime())
    reactivated_by: Mapped[uuid.UUID | None] = mapped_column()
    created_at: Mapped[datetime] = mapped_column(TZDateTime(), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(TZDateTime(), default=utcnow, onupdate=utcnow)
