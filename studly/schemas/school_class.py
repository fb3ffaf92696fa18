from typing import Optional

from studly.schemas.base import CamelModel, ShortName, TimestampedOut, UpdateModel


class ClassCreate(CamelModel):
    name: ShortName


class ClassUpdate(UpdateModel):
    name: Optional[ShortName] = None


class ClassOut(TimestampedOut):
    name: str
