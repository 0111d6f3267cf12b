"""Status and scope enums shared by the ORM models, services and API schemas."""

from enum import Enum


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"              # user-initiated
    ADMIN_PAUSED = "admin_paused"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class DeliveryStatus(str, Enum):
    SCHEDULED = "scheduled"
    ADMIN_PAUSED = "admin_paused"
    DELIVERED = "delivered"
    SKIPPED = "skipped"


class DeliveryFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class PauseType(str, Enum):
    ALL = "all"
    SELECTED = "selected"


class AdminPauseStatus(str, Enum):
    ACTIVE = "active"
    REACTIVATED = "reactivated"
    EXPIRED = "expired"


class ReactivationType(str, Enum):
    ALL = "all"
    SELECTED = "selected"


class SubscriptionType(str, Enum):
    JUICES = "juices"
    FRUIT_BOWLS = "fruit_bowls"
    CUSTOMIZED = "customized"


class AuditAction(str, Enum):
    ADMIN_PAUSE_SUBSCRIPTIONS = "ADMIN_PAUSE_SUBSCRIPTIONS"
    ADMIN_REACTIVATE_SUBSCRIPTIONS = "ADMIN_REACTIVATE_SUBSCRIPTIONS"
    ADMIN_PAUSE_EXPIRED = "ADMIN_PAUSE_EXPIRED"
    DELIVERY_SCHEDULE_SETTING_UPDATED = "DELIVERY_SCHEDULE_SETTING_UPDATED"


class ItemType(str, Enum):
    JUICE = "juice"
    FRUIT_BOWL = "fruit_bowl"
