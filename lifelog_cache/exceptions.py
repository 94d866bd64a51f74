class LifelogCacheError(Exception):
    """Base class for every failure the cache reports to its callers."""


class RemoteFetchError(LifelogCacheError):
    """The lifelog provider could not be reached or returned an unusable response."""


class StorageError(LifelogCacheError):
    """The local database rejected a read or write."""


class InvalidQueryError(LifelogCacheError, ValueError):
    """The caller asked for a range or option that cannot be served."""
