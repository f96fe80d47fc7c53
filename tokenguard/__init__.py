"""TokenGuard: short-lived bearer tokens with single-use refresh"""

__version__ = "0.1.0"
