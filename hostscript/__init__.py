"""Run small shell script files against a list of hosts over SSH."""

__version__ = "0.3.0"
