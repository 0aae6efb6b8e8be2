"""archguard - architecture conformance checks for Python projects."""

__version__ = "0.3.0"
