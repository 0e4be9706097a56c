"""AI module: PatternData contracts and digitizer abstraction."""

from pattern_digitizer.ai.schema import ColorInfo, FileOutput, ModelCard, PatternData, RepeatType
from pattern_digitizer.ai.digitizer_base import BaseDigitizer, MockDigitizer
from pattern_digitizer.ai.factory import digitize_pattern, get_digitizer

__all__ = [
    "BaseDigitizer",
    "ColorInfo",
    "FileOutput",
    "MockDigitizer",
    "ModelCard",
    "PatternData",
    "RepeatType",
    "digitize_pattern",
    "get_digitizer",
]
