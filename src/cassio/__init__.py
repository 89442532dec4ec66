"""cassio: normalize AI coding-session logs into one session model."""

__version__ = "0.3.0"
