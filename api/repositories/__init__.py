from repositories.subscriptions import SubscriptionRepository
from repositories.deliveries import DeliveryRepository
from repositories.admin_pauses import AdminPauseStore
from repositories.audit_logs import AuditLogStore
from repositories.schedule_settings import ScheduleSettingsRepository
from repositories.users import UserRepository

__all__ = [
    "SubscriptionRepository", "DeliveryRepository", "AdminPauseStore",
    "AuditLogStore", "ScheduleSettingsRepository", "UserRepository",
]
