"""Domain-specific errors for starprnt."""


class StarPrntError(Exception):
    """Base error for starprnt."""


class ProfileValidationError(StarPrntError):
    """Raised when a printer profile file does not conform to schema or semantics."""


class ProfileLoadError(StarPrntError):
    """Raised when loading printer profile sources fails."""


class JobValidationError(StarPrntError):
    """Raised when a print job document does not conform to the job schema."""


class JobLoadError(StarPrntError):
    """Raised when a print job file cannot be read."""


class UnsupportedCommandError(StarPrntError):
    """Raised when an emulation has no byte sequence for a command."""


class DeviceDiscoveryError(StarPrntError):
    """Raised when a port discovery sub-scan fails."""


class StatusCheckError(StarPrntError):
    """Raised when the printer status could not be queried."""


class ConnectError(StarPrntError):
    """Raised when a persistent printer connection cannot be established."""


class ConnectionBusyError(ConnectError):
    """Raised when a connect attempt races another one on the same connection."""


class PrintTransportError(StarPrntError):
    """Raised when the port fails mid print session.

    The message carries the diagnostic trail of the steps completed before the
    failure; the trail is also available as ``trail``.
    """

    def __init__(self, message: str, trail: str) -> None:
        super().__init__(f"{message} Failed After {trail}")
        self.trail = trail


class DispatchQueueFullError(StarPrntError):
    """Raised when the dispatcher already holds its maximum of pending calls."""


class NotImplementedMethodError(StarPrntError):
    """Raised for dispatched method names without a handler."""


class TransportError(StarPrntError):
    """Base transport error."""


class TransportConnectError(TransportError):
    """Raised when a port cannot be opened."""


class TransportSendError(TransportError):
    """Raised when writing to or reading from a port fails."""


class TransportTimeoutError(TransportError):
    """Raised when a port operation times out."""


class PrinterSelectionError(StarPrntError):
    """Raised when no port or profile identifies the target printer."""
