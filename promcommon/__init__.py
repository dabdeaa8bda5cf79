"""Building blocks for monitoring components: models, logging, version info, config and WSGI routing."""

__version__ = "0.1.0"