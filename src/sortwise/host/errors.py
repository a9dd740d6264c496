"""Host capability errors."""


class HostError(Exception):
    """Base exception for host file-system capability failures."""


class CapabilityUnsupportedError(HostError):
    """Raised when the host cannot provide a folder-pick capability."""


class PickerCancelledError(HostError):
    """Raised when the user dismisses the folder picker."""
