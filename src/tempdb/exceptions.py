"""Error taxonomy for tempdb.

Every failure surfaces as a subclass of TempDBError, which is itself a
RuntimeError, so callers can catch as broadly or narrowly as they like.
"""


class TempDBError(RuntimeError):
    """Base class for all failures raised by tempdb."""


class HostEnvironmentError(TempDBError):
    """The host lacks something the engine needs. Never retried."""


class NotInstalledError(HostEnvironmentError):
    """The engine's executables could not be found."""


class ServiceAccountError(HostEnvironmentError):
    """Running as superuser but the engine's service account does not exist."""


class ProvisioningError(TempDBError):
    """Creating or handing over the private storage failed."""


class BootstrapError(TempDBError):
    """The one-shot data directory initialization failed."""


class StartupError(TempDBError):
    """The server could not be spawned or never became reachable."""


class ProcessExitedError(StartupError):
    """The server process exited before it accepted connections."""


class ShutdownError(TempDBError):
    """The server did not shut down cleanly."""
