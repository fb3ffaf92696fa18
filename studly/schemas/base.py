from datetime import datetime
from typing import Annotated, Any, ClassVar, Dict, FrozenSet

from pydantic import BaseModel, ConfigDict, StringConstraints
from pydantic.alias_generators import to_camel

ShortName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
Description = Annotated[str, StringConstraints(strip_whitespace=True, max_length=1000)]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class UpdateModel(CamelModel):
    """Partial update payload.

    Only fields present in the request count as changes. An explicit ``null``
    is kept for the columns listed in ``nullable_fields`` and dropped for the
    others.
    """

    nullable_fields: ClassVar[FrozenSet[str]] = frozenset({"description"})

    def changes(self) -> Dict[str, Any]:
        data = self.model_dump(exclude_unset=True)
        return {key: value for key, value in data.items() if value is not None or key in self.nullable_fields}


class TimestampedOut(CamelModel):
    id: int
    created_at: datetime
    updated_at: datetime


class Pagination(CamelModel):
    total: int
    limit: int
    offset: int
    has_more: bool
