from autowhiz.models.profile import Profile
from autowhiz.models.subscription_plan import SubscriptionPlan
from autowhiz.models.subscription import Subscription
from autowhiz.models.analysis import Analysis, VehicleHistory, VisualAnalysis, AudioAnalysis, MarketValue
from autowhiz.models.notification import Notification
from autowhiz.models.activity_log import ActivityLog
from autowhiz.models.payment import Payment
from autowhiz.models.saved_vehicle import SavedVehicle
from autowhiz.models.webhook_event import WebhookEvent

__all__ = [
    "Profile",
    "SubscriptionPlan",
    "Subscription",
    "Analysis",
    "VehicleHistory",
    "VisualAnalysis",
    "AudioAnalysis",
    "MarketValue",
    "Notification",
    "ActivityLog",
    "Payment",
    "SavedVehicle",
    "WebhookEvent",
]
