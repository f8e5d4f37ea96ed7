from booking_engine.notifications.center import NotificationCenter
from booking_engine.notifications.channel import ConnectionState, ReconnectingChannel

__all__ = ["NotificationCenter", "ReconnectingChannel", "ConnectionState"]
