"""
Shared field types for MongoDB-backed models.
"""
from datetime import datetime, timezone
from typing import Annotated, Any

from bson import ObjectId
from pydantic import BeforeValidator, PlainSerializer


def _coerce_object_id(value: Any) -> Any:
    """Accept ObjectId instances or their 24-char hex form."""
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return value


def _coerce_text(value: Any) -> str:
    """Vendor feeds send numbers, nulls and padded strings; normalize to str."""
    if value is None:
        return ""
    return str(value).strip()


# ObjectId stays an ObjectId in python-mode dumps (what MongoDB wants) and
# becomes a hex string in JSON-mode dumps (what reports want).
PyObjectId = Annotated[
    ObjectId,
    BeforeValidator(_coerce_object_id),
    PlainSerializer(lambda oid: str(oid), return_type=str, when_used="json"),
]

VendorText = Annotated[str, BeforeValidator(_coerce_text)]


def utcnow() -> datetime:
    """Timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)
