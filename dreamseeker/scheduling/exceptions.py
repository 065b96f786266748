class NotificationPlatformError(Exception):
    """The device cannot schedule local notifications."""


class NotificationPermissionError(NotificationPlatformError):
    """The user has not granted notification permission."""


class TimerStateError(RuntimeError):
    """An operation is not allowed in the timer's current state."""
