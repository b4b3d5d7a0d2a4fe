from typing import Type, TypeVar

from pydantic import BaseModel

from spendshare.models.base import MongoModel

ResponseT = TypeVar("ResponseT", bound=BaseModel)


def to_response(schema: Type[ResponseT], model: MongoModel, **extra) -> ResponseT:
    """Build an API schema from a stored model (ObjectIds become strings)."""
    data = model.model_dump(mode="json", by_alias=True)
    data.update(extra)
    return schema.model_validate(data)
