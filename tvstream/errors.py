class TvStreamError(Exception):
    pass


class EventDecodeError(TvStreamError, ValueError):
    """Inbound message could not be decoded into a known event."""


class QuoteMergeError(EventDecodeError):
    pass


class NotConnectedError(TvStreamError, RuntimeError):
    pass
