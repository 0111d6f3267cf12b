"""SubscriptionDelivery ORM model — one row per (subscription, delivery date)."""

import uuid
from datetime import datetime
from sqlalchemy import ForeignKey, UniqueConstraint, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from db.database import Base, JSONType, TZDateTime, utcnow
from schemas.enums import DeliveryStatus


class SubscriptionDelivery(Base):
    __tablename__ = "subscription_deliveries"
    __table_args__ = (
        UniqueConstraint("subscription_id", "delivery_date", name="uq_subscription_delivery_date"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    subscription_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("user_subscriptions.id"), nullable=False)
    delivery_date: Mapped[datetime] = mapped_column(TZDateTime(), nullable=False)
    status: Mapped[DeliveryStatus] = mapped_column(
        SAEnum(DeliveryStatus, name="delivery_status", values_callable=lambda e: [m.value for m in e]),
        default=DeliveryStatus.SCHEDULED,
    )
    items: Mapped[list] = mapped_column(JSONType, default=list)  # snapshot, never edited
    admin_pause_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("admin_subscription_pauses.id"))
    admin_reactivated_at: Mapped[datetime | None] = mapped_column(TZDateTime())
    created_at: Mapped[datetime] = mapped_column(TZDateTime(), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(TZDateTime(), default=utcnow, onupdate=utcnow)

    # Relationships
    subscription = relationship("Subscription", back_populates="deliveries")
