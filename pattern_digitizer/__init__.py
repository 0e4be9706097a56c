"""Pattern Digitizer: upload a fabric photo, get back a seamless print-ready pattern tile."""

__version__ = "0.1.0"
