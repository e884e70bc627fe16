class KDEConnectError(Exception):
    """Base class for failures raised by this package, not by the bus."""


class NoDeviceFound(KDEConnectError):
    def __init__(self, message: str = "No KDE Connect device found"):
        super().__init__(message)
