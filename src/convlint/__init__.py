"""convlint: check source files against structured coding conventions."""

__version__ = "0.3.0"
