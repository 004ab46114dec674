"""Error taxonomy for the search and indexing subsystem."""


class SearchServiceError(Exception):
    """Base class for search subsystem errors."""


class InvalidQueryError(SearchServiceError):
    """Query string missing or shorter than the minimum length.

    Raised before any storage access.
    """

    def __init__(self, min_length: int) -> None:
        self.min_length = min_length
        super().__init__(f"Search query must be at least {min_length} characters")


class NotFoundError(SearchServiceError):
    """A document or annotation the caller required does not exist for the owner."""

    def __init__(self, resource: str, resource_id: object) -> None:
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} not found")


class ConflictError(SearchServiceError):
    """Insert would create a second content unit for the same annotation."""


class IndexingFailure(SearchServiceError):
    """A document or annotation could not be indexed."""


class StorageFailure(SearchServiceError):
    """The content store is unreachable or rejected an operation."""
