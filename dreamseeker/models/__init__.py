from .dream import Dream, Action, DeviceToken

__all__ = ["Dream", "Action", "DeviceToken"]
