"""Exception types for eyeballs."""


class EyeballsError(Exception):
    """Base class for all eyeballs errors."""


class ResolutionFailure(EyeballsError):
    """A single lookup attempt returned no addresses."""


class ConnectFailure(EyeballsError):
    """A single TCP connect attempt failed."""

    def __init__(self, address, reason: str):
        super().__init__(f"connect to {address} failed: {reason}")
        self.address = address
        self.reason = reason


class NotConnectedYet(EyeballsError):
    """The winning connection was requested before a race produced one."""


class WorkerFailure(EyeballsError):
    """A per-host worker aborted unexpectedly."""

    def __init__(self, host: str, phase: str, reason: str):
        super().__init__(f"{phase} worker for {host} failed: {reason}")
        self.host = host
        self.phase = phase
        self.reason = reason


class ConfigurationError(EyeballsError):
    """The batch source or run parameters are unusable."""
