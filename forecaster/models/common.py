"""Common types shared across models."""

from typing import TypeAlias

RunId: TypeAlias = str
CityId: TypeAlias = int
