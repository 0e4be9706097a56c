"""Factory and async entry point for digitizers."""

import asyncio
import logging

from pattern_digitizer.ai.digitizer_base import BaseDigitizer
from pattern_digitizer.ai.schema import PatternData
from pattern_digitizer.core.config import Settings
from pattern_digitizer.core.encoding import EncodedImage
from pattern_digitizer.core.errors import DigitizeError

_log = logging.getLogger(__name__)


def get_digitizer(settings: Settings) -> BaseDigitizer:
    """Return a digitizer by settings.digitizer. Imports are lazy so the mock never loads requests."""
    name = settings.digitizer
    if name == "mock":
        from pattern_digitizer.ai.digitizer_base import MockDigitizer

        return MockDigitizer()
    if name == "gemini":
        from pattern_digitizer.ai.digitizer_gemini import GeminiDigitizer

        return GeminiDigitizer(settings)
    raise ValueError(f"Unknown digitizer: {name}")


async def digitize_pattern(digitizer: BaseDigitizer, image: EncodedImage) -> PatternData:
    """
    Run the blocking digitize call in a worker thread so the event loop stays responsive.

    Anything the backend raises that is not already a DigitizeError is wrapped in one, so
    callers only ever handle a single error family.
    """
    try:
        return await asyncio.to_thread(digitizer.digitize, image.data, image.mime_type)
    except DigitizeError:
        _log.warning("Digitization failed", exc_info=True)
        raise
    except Exception as e:
        _log.error("Digitizer raised an unexpected error", exc_info=True)
        raise DigitizeError(str(e) or e.__class__.__name__) from e
