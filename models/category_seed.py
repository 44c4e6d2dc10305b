"""Seed file schema for bulk category creation."""

import json
from pathlib import Path
from typing import List, Optional
from pydantic import BaseModel, Field, TypeAdapter


class CategorySeed(BaseModel):
    """One category entry in a seed file, with nested children."""

    name: str = Field(min_length=1)
    slug: Optional[str] = None
    description: Optional[str] = None
    is_active: bool = True
    children: List["CategorySeed"] = Field(default_factory=list)


CategorySeed.model_rebuild()

_SEED_LIST = TypeAdapter(List[CategorySeed])


def load_seed_file(seed_file: Path) -> List[CategorySeed]:
    """Load and validate a JSON seed file.

    Args:
        seed_file: Path to a JSON file holding a list of category entries.

    Returns:
        List of validated top-level CategorySeed entries.

    Raises:
        FileNotFoundError: If the seed file doesn't exist.
        json.JSONDecodeError: If the file is not valid JSON.
        pydantic.ValidationError: If an entry doesn't match the schema.
    """
    with open(seed_file, "r") as f:
        data = json.load(f)

    return _SEED_LIST.validate_python(data)
