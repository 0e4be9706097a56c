from pattern_digitizer.core.config import get_config, validate_settings
from pattern_digitizer.core.logging import setup_logging

__all__ = ["get_config", "setup_logging", "validate_settings"]
