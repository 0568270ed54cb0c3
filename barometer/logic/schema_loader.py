"""Form schema loading from YAML."""

from __future__ import annotations

from pathlib import Path
from typing import Union
import logging

import yaml
from pydantic import ValidationError as PydanticValidationError

from barometer.models.form_schema import FormSchema


logger = logging.getLogger(__name__)

DEFAULT_SCHEMA_PATH = Path(__file__).resolve().parents[1] / "data" / "barometer_form.yaml"


def parse_schema(text: str) -> FormSchema:
    """Parse a YAML document into a validated FormSchema."""
    raw = yaml.safe_load(text) or {}
    if not isinstance(raw, dict):
        raise ValueError("form schema must be a mapping at top level")
    try:
        return FormSchema.model_validate(raw)
    except PydanticValidationError as e:
        logger.error("form_schema_invalid errors=%s", e.error_count())
        raise


def load_schema(path: Union[str, Path, None] = None) -> FormSchema:
    schema_path = Path(path) if path else DEFAULT_SCHEMA_PATH
    logger.info("form_schema_load path=%s", schema_path)
    return parse_schema(schema_path.read_text(encoding="utf-8"))


__all__ = ["DEFAULT_SCHEMA_PATH", "parse_schema", "load_schema"]
