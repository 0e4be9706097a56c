"""Error taxonomy shared by the digitizer client, the web app and the CLI."""

DIGITIZE_ERROR_PREFIX = "Failed to digitize pattern: "


class ConfigurationError(RuntimeError):
    """Required configuration (e.g. the API credential) is missing or invalid. Fatal at startup."""


class InputError(ValueError):
    """The user action cannot proceed with the current input (e.g. no image selected)."""


class SessionBusyError(RuntimeError):
    """A digitization request is already in flight for this session."""


class EncodingError(OSError):
    """Reading or base64-encoding the selected image failed."""


class DigitizeError(Exception):
    """
    Base for every failure of a digitization call.

    str() always carries DIGITIZE_ERROR_PREFIX so callers can display the message as-is.
    """

    kind = "digitize"

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"{DIGITIZE_ERROR_PREFIX}{detail}")


class TransportError(DigitizeError):
    """Network failure, non-2xx status, or a response without candidates."""

    kind = "transport"


class ResponseValidationError(DigitizeError):
    """The model answered, but the text is not JSON or does not match the PatternData contract."""

    kind = "validation"


class EmptyResultError(ResponseValidationError):
    """The model answered with a valid document whose files array is empty."""

    kind = "empty_result"

    def __init__(self, detail: str = "AI response did not include any downloadable files.") -> None:
        super().__init__(detail)
