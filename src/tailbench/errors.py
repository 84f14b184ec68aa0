# Copyright (c) Syntropy Systems
"""Exceptions raised by tailbench."""


class TailbenchError(Exception):
    """Base class for tailbench errors."""


class InvalidConfigurationError(TailbenchError, ValueError):
    """Distribution parameters are missing or out of range."""


class InvalidVersionTagError(TailbenchError, ValueError):
    """A version tag is not of the form x.y or x.y.z."""
