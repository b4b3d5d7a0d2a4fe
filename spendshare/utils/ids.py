from bson import ObjectId

from spendshare.core.errors import LedgerValidationError


def parse_id(value, field: str = "id") -> ObjectId:
    """ObjectId from a path/body value, or a validation error naming the field."""
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    raise LedgerValidationError(f"Invalid {field}: {value!r}", code="invalid_id")


def canonical_id(value) -> str:
    """Lower-case hex form of an ObjectId string; anything else is returned as given."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, str) and ObjectId.is_valid(value):
        return str(ObjectId(value))
    return value
