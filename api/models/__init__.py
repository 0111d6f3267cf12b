from models.user import User
from models.subscription import Subscription
from models.delivery import SubscriptionDelivery
from models.admin_pause import AdminPause
from models.audit_log import AdminAuditLog
from models.delivery_schedule_setting import DeliveryScheduleSetting

__all__ = [
    "User", "Subscription", "SubscriptionDelivery",
    "AdminPause", "AdminAuditLog", "DeliveryScheduleSetting",
]
