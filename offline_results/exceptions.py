"""Exceptions raised by the offline result pipeline."""


class OfflineResultsError(Exception):
    """Base error for offline result delivery."""


class ResultQueueError(OfflineResultsError):
    """A result could not be written to the durable queue."""
