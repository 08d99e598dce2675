# src/gammaeff/errors.py
from __future__ import annotations


class GammaEffError(Exception):
    """Base class for gamma efficiency errors."""


class MissingPrimaryTrackId(GammaEffError, LookupError):
    """
    A simulated step hit carries neither a track id nor a parent track id.

    This breaks the contract of the simulation bank and aborts the run.
    """


class EventSkip(GammaEffError):
    """
    Stop processing the current event and move on to the next one.

    Raised for recoverable conditions (missing banks, empty collections,
    secondary particle contamination). Skipped events are not scored.
    """

    def __init__(self, reason: str, detail: str = "") -> None:
        self.reason = reason
        self.detail = detail
        msg = reason if not detail else f"{reason}: {detail}"
        super().__init__(msg)
