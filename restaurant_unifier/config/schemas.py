"""
Schemas for the operator-editable configuration files.

Matching behaviour is retuned by editing these JSON documents, never code:
- variation patterns (ordered extraction rules + abbreviation table)
- product groups (canonical name + suffix and/or keywords)
- locations (canonical name + each platform's native id)
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Type, TypeVar, Union

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from restaurant_unifier.errors import ConfigurationError

VariationTypeName = Literal['quantity', 'size', 'serving', 'strength']

ConfigT = TypeVar('ConfigT', bound=BaseModel)


class VariationPatternConfig(BaseModel):
    """One ordered extraction rule: regex + formatter template + category tag."""
    name: str = Field(min_length=1)
    regex: str = Field(min_length=1)
    flags: Optional[str] = None
    type: VariationTypeName
    format: str = Field(min_length=1)


class VariationPatternsConfig(BaseModel):
    patterns: List[VariationPatternConfig] = Field(min_length=1)
    abbreviations: Dict[str, str] = Field(default_factory=dict)


class ProductGroupConfig(BaseModel):
    """
    A configured canonical product.

    At least one recognizer is required: a single trailing suffix word
    ("wings") and/or a keyword list (["coffee", "espresso"]).
    """
    base_name: str = Field(min_length=1)
    suffix: Optional[str] = None
    keywords: Optional[List[str]] = None

    @model_validator(mode='after')
    def require_recognizer(self):
        if not self.suffix and not self.keywords:
            raise ValueError('At least one of suffix or keywords must be provided')
        return self


class ProductGroupsConfig(BaseModel):
    description: Optional[str] = None
    groups: List[ProductGroupConfig] = Field(min_length=1)


class LocationConfig(BaseModel):
    name: str = Field(min_length=1)
    toast_id: Optional[str] = None
    doordash_id: Optional[str] = None
    square_id: Optional[str] = None

    @field_validator('toast_id', 'doordash_id', 'square_id')
    @classmethod
    def blank_to_none(cls, v):
        if v is not None and not v.strip():
            return None
        return v

    @model_validator(mode='after')
    def require_platform_id(self):
        if not (self.toast_id or self.doordash_id or self.square_id):
            raise ValueError(f"Location '{self.name}' needs at least one platform id")
        return self


class LocationsConfig(BaseModel):
    locations: List[LocationConfig] = Field(min_length=1)

    @model_validator(mode='after')
    def unique_names(self):
        seen = set()
        for loc in self.locations:
            if loc.name in seen:
                raise ValueError(f"Duplicate location name '{loc.name}'")
            seen.add(loc.name)
        return self


def format_validation_errors(error: ValidationError) -> str:
    """Renders pydantic errors as one '  - path: message' line per issue."""
    lines = []
    for issue in error.errors():
        path = '.'.join(str(p) for p in issue.get('loc', ()))
        lines.append(f"  - {path or '<root>'}: {issue.get('msg')}")
    return '\n'.join(lines)


def parse_config(data: Any, schema: Type[ConfigT], label: str) -> ConfigT:
    """Validates already-decoded configuration data against ``schema``."""
    try:
        return schema.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid {label} config:\n{format_validation_errors(e)}") from e


def load_config(path: Union[str, Path], schema: Type[ConfigT], label: str) -> ConfigT:
    """Reads a JSON configuration file and validates it against ``schema``."""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot read {label} config at {path}: {e}") from e
    return parse_config(data, schema, label)
