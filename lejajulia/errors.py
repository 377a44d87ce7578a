"""Exceptions raised by the Leja/Julia toolkit."""

from __future__ import annotations


class LejaJuliaError(Exception):
    """Base class for all errors raised by :mod:`lejajulia`."""


class InvalidArgumentError(LejaJuliaError, ValueError):
    """A caller supplied an argument outside the accepted domain."""


class InvalidStateError(LejaJuliaError, RuntimeError):
    """An operation was invoked on an object that cannot perform it anymore."""


class LejaFormatError(InvalidArgumentError):
    """A persisted Leja point file is malformed."""
