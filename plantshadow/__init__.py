"""Plant moisture monitor whose emotional servo is kept in sync through an MQTT device shadow."""

__version__ = "0.1.0"

__all__ = ["__version__"]