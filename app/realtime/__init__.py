from .hub import ChangeHub, Subscription, channel_name, hub

__all__ = ["ChangeHub", "Subscription", "channel_name", "hub"]
