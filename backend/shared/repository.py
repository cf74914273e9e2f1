"""
Base repository class for database access.

Provides a common abstraction layer for the Supabase-backed repositories,
encapsulating client access and the timestamp mapping every table needs.
"""

from datetime import datetime
from typing import TypeVar, Generic, Optional, Any
from supabase import Client

from .exceptions import StorageError


T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Base class for all Supabase repositories.

    Provides common functionality for database operations:
    - Supabase client access via self._db
    - ISO-8601 timestamp conversion in both directions
    - Wrapping of client failures in StorageError

    Subclasses implement domain-specific data access methods and handle
    dict-to-Pydantic model mapping internally.

    Example:
        class CodeRepository(BaseRepository[AccessCode]):
            def get(self, code: str) -> Optional[AccessCode]:
                result = self._execute(
                    self._db.table("access_codes").select("*").eq("code", code)
                )
                if not result.data:
                    return None
                return self._map_to_code(result.data[0])
    """

    def __init__(self, db: Client) -> None:
        """
        Initialize the repository with a Supabase client.

        Args:
            db: Supabase client instance for database operations.
        """
        self._db = db

    def _execute(self, query: Any) -> Any:
        """Run a query, converting client failures into StorageError."""
        try:
            return query.execute()
        except Exception as e:
            raise StorageError(details={"cause": str(e)}) from e

    @staticmethod
    def _to_iso(value: Optional[datetime]) -> Optional[str]:
        return value.isoformat() if value is not None else None

    @staticmethod
    def _from_iso(value: Optional[str]) -> Optional[datetime]:
        if not value:
            return None
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
