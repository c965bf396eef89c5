"""IVR error taxonomy.

Only ``ConfigError`` (and its subclasses) may stop the service; they are
raised while the menu registry and response renderer are built at startup.
Everything else is absorbed by the session controller and turned into a
spoken response, because the other end of a webhook is a live phone call.
"""


class IVRError(Exception):
    """Base class for IVR engine errors."""


class ConfigError(IVRError):
    """Invalid menu catalogue or service configuration."""


class MenuNotFound(ConfigError):
    """A menu id that does not resolve in the registry."""

    def __init__(self, menu_id: str):
        super().__init__(f"Menu '{menu_id}' not found")
        self.menu_id = menu_id


class UnsupportedBackend(ConfigError):
    """Telephony backend with no translation table."""

    def __init__(self, backend: str):
        super().__init__(f"Unsupported IVR backend: '{backend}'")
        self.backend = backend


class SessionNotFound(IVRError):
    """Unknown, expired or already ended call session."""

    def __init__(self, session_id: str):
        super().__init__(f"Session '{session_id}' not found")
        self.session_id = session_id


class SessionAlreadyExists(IVRError):
    """A session with the same id is already live."""

    def __init__(self, session_id: str):
        super().__init__(f"Session '{session_id}' already exists")
        self.session_id = session_id


class SessionConflict(IVRError):
    """The stored session changed between read and replace."""

    def __init__(self, session_id: str, expected_version: int, actual_version: int):
        super().__init__(
            f"Session '{session_id}' version mismatch: "
            f"expected {expected_version}, found {actual_version}"
        )
        self.session_id = session_id
        self.expected_version = expected_version
        self.actual_version = actual_version


class InvalidInput(IVRError):
    """Keypress outside the DTMF alphabet or not legal for the current menu."""

    def __init__(self, digit: str, menu_id: str = ""):
        super().__init__(f"Invalid input '{digit}' for menu '{menu_id}'")
        self.digit = digit
        self.menu_id = menu_id


class UpstreamFeedError(IVRError):
    """An information feed could not be read."""

    def __init__(self, topic: str, reason: str = ""):
        message = f"Feed '{topic}' unavailable"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.topic = topic
