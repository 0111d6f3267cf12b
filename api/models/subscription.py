"""Subscription ORM model — plan, cadence and pause linkage."""

import uuid
from datetime import datetime
from sqlalchemy import String, Integer, Text, ForeignKey, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from db.database import Base, JSONType, TZDateTime, utcnow
from schemas.enums import DeliveryFrequency, SubscriptionStatus


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Subscription(Base):
    __tablename__ = "user_subscriptions"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    plan_id: Mapped[str] = mapped_column(String(64), nullable=False)

    # Cadence
    delivery_frequency: Mapped[DeliveryFrequency] = mapped_column(
        SAEnum(DeliveryFrequency, name="delivery_frequency", values_callable=_enum_values),
        nullable=False,
    )
    next_delivery_date: Mapped[datetime | None] = mapped_column(TZDateTime())
    subscription_start_date: Mapped[datetime] = mapped_column(TZDateTime(), nullable=False)
    subscription_end_date: Mapped[datetime] = mapped_column(TZDateTime(), nullable=False)
    subscription_duration: Mapped[int] = mapped_column(Integer, nullable=False)

    status: Mapped[SubscriptionStatus] = mapped_column(
        SAEnum(SubscriptionStatus, name="subscription_status", values_callable=_enum_values),
        default=SubscriptionStatus.ACTIVE,
        index=True,
    )

    # Self-service pause
    pause_date: Mapped[datetime | None] = mapped_column(TZDateTime())
    pause_reason: Mapped[str | None] = mapped_column(Text)
    reactivation_deadline: Mapped[datetime | None] = mapped_column(TZDateTime())

    # Admin pause
    admin_pause_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("admin_subscription_pauses.id"), index=True,
    )
    admin_pause_start: Mapped[datetime | None] = mapped_column(TZDateTime())
    admin_pause_end: Mapped[datetime | None] = mapped_column(TZDateTime())
    admin_reactivated_at: Mapped[datetime | None] = mapped_column(TZDateTime())
    admin_reactivated_by: Mapped[uuid.UUID | None] = mapped_column()

    # Payload
    selected_items: Mapped[list] = mapped_column(JSONType, default=list)
    delivery_address: Mapped[dict | None] = mapped_column(JSONType)
    pricing: Mapped[dict | None] = mapped_column(JSONType)

    created_at: Mapped[datetime] = mapped_column(TZDateTime(), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(TZDateTime(), default=utcnow, onupdate=utcnow)

    # Relationships
    user = relationship("User", back_populates="subscriptions", lazy="selectin")
    deliveries = relationship(
        "SubscriptionDelivery", back_populates="subscription", lazy="noload",
        order_by="SubscriptionDelivery.delivery_date",
    )
