"""Repository exception hierarchy.

Only two failure kinds leave a repository: a lookup that found nothing on an
"or fail" operation, and a query failure on operations that do not convert
errors into sentinels.
"""

from typing import Any


class RepositoryError(Exception):
    """Base exception for all repository operations.

    Example:
        try:
            authors = await repo.get_all()
        except RepositoryError as e:
            logger.error("Listing failed", error=str(e))
    """
    pass


class NotFoundError(RepositoryError):
    """Raised when a requested entity is not found.

    Raised by ``get_by_id_or_fail``, ``update_blank`` and
    ``get_by_id_empty_attributes``. Applications can use this to return HTTP
    404 responses or fall back to defaults.

    Example:
        try:
            author = await repo.get_by_id_or_fail(author_id)
        except NotFoundError:
            raise HTTPException(status_code=404, detail="Author not found")
    """

    def __init__(self, model: str, key: Any) -> None:
        self.model = model
        self.key = key
        super().__init__(f"{model} with {_describe(key)} not found")


class QueryError(RepositoryError):
    """Raised when the database rejects a query on a propagating operation.

    The original ``SQLAlchemyError`` is chained as ``__cause__``.
    """
    pass


def _describe(key: Any) -> str:
    if isinstance(key, dict):
        criteria = ", ".join(f"{name}={value!r}" for name, value in key.items())
        return f"criteria ({criteria})"
    return f"id {key}"
