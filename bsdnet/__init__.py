"""Syslog logger command and building blocks of the talk protocol, daemon table and client screen."""

__version__ = "0.1.0"