class DiscoveryError(Exception):
    pass


class InvalidQuery(DiscoveryError):
    """Caller sent a request the engine cannot answer (e.g. no coordinate)."""


class NotFound(DiscoveryError):
    pass


class UpstreamFailure(DiscoveryError):
    """
    The catalog could not be reached, answered with an error status,
    or returned a payload that does not validate.
    """
