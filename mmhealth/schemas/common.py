"""Response envelope shared by every read endpoint."""

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class QueryResponse(BaseModel, Generic[T]):
    """Mirror of a hook read: ``data`` plus the loading / error flags."""

    data: Optional[T] = None
    loading: bool = False
    error: Optional[str] = None
