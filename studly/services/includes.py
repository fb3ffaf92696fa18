"""Eager-loading of related rows requested through ``?include=a,b``.

Each resource declares the relation names it accepts; anything else is a
validation error.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Type

from pydantic import BaseModel
from sqlalchemy.orm import selectinload

from studly.core.errors import ValidationError


@dataclass(frozen=True)
class Relation:
    attribute: str
    schema: Type[BaseModel]
    many: bool = True
    through: Optional[str] = None


Includes = Dict[str, Relation]


def parse_includes(raw: Optional[str], allowed: Mapping[str, Relation]) -> Includes:
    if not raw:
        return {}
    names = [name.strip() for name in raw.split(",") if name.strip()]
    unknown = [name for name in names if name not in allowed]
    if unknown:
        raise ValidationError.for_field(
            "include",
            f"Unknown include: {', '.join(unknown)}. Allowed: {', '.join(sorted(allowed))}",
        )
    return {name: allowed[name] for name in names}


def loader_options(model: Type[Any], includes: Includes) -> List[Any]:
    options = []
    for relation in includes.values():
        attribute = getattr(model, relation.attribute)
        option = selectinload(attribute)
        if relation.through:
            target = attribute.property.mapper.class_
            option = option.selectinload(getattr(target, relation.through))
        options.append(option)
    return options


def dump(schema: Type[BaseModel], obj: Any) -> Dict[str, Any]:
    return schema.model_validate(obj).model_dump(by_alias=True, mode="json")


def serialize(obj: Any, schema: Type[BaseModel], includes: Optional[Includes] = None) -> Dict[str, Any]:
    data = dump(schema, obj)
    for name, relation in (includes or {}).items():
        value = getattr(obj, relation.attribute)
        if relation.many:
            if relation.through:
                value = [getattr(item, relation.through) for item in value]
            data[name] = [dump(relation.schema, item) for item in value]
        else:
            data[name] = dump(relation.schema, value) if value is not None else None
    return data
