class CatalogSyncError(Exception):
    """Base class for errors raised by the catalog sync engine."""


class CatalogApiError(CatalogSyncError):
    """The catalog service kept rejecting a request and the client gave up."""


class CatalogFetchError(CatalogSyncError):
    """The catalog could not be fetched; the run cannot proceed."""
