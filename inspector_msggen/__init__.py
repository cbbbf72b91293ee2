"""Generate C++ message declarations from DevTools-style protocol descriptions."""

__version__ = "0.1.0"
