"""
Persisted account record.

Pydantic models describing the JSON document an account is stored as:

    {
      "id": "<uuid>",
      "label": "alice@example.com",
      "issuer": "Example" | null,
      "generator": {
        "algorithm": "SHA1",
        "secret": "<base64>",
        "factor": {"counter": 0} | {"timer": 30.0},
        "digits": 6
      }
    }
"""

import json
from typing import Any, Dict, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationError, model_validator

from otpvault.exceptions import DecodeError


class FactorRecord(BaseModel):
    """Moving factor: exactly one of counter or timer."""

    model_config = ConfigDict(extra="forbid")

    # Range is checked by Counter; values may exceed what a signed int64 holds
    counter: Optional[StrictInt] = None
    timer: Optional[float] = Field(None, gt=0)

    @model_validator(mode="after")
    def _one_variant(self) -> "FactorRecord":
        if (self.counter is None) == (self.timer is None):
            raise ValueError("factor must hold exactly one of 'counter' or 'timer'")
        return self


class GeneratorRecord(BaseModel):
    """Generator parameters; the secret is base64 text."""

    algorithm: str
    secret: str = Field(..., min_length=1)
    factor: FactorRecord
    digits: StrictInt


class AccountRecord(BaseModel):
    """Top-level stored account."""

    id: UUID
    label: str = Field(..., min_length=1)
    issuer: Optional[str] = None
    generator: GeneratorRecord


def parse_record(data: Union[bytes, str]) -> Dict[str, Any]:
    """
    Validate a stored document and return it as plain data.

    Args:
        data: JSON document

    Returns:
        Dictionary in the wire shape, ready for Account.from_dict

    Raises:
        DecodeError: If the document is not valid JSON or has the wrong shape
    """
    try:
        document = json.loads(data)
    except (ValueError, RecursionError) as e:
        raise DecodeError(f"Account record is not JSON: {e}") from e

    try:
        record = AccountRecord.model_validate(document)
    except ValidationError as e:
        raise DecodeError(f"Malformed account record: {e.error_count()} error(s)") from e

    result = record.model_dump(mode="json")
    result["generator"]["factor"] = record.generator.factor.model_dump(exclude_none=True)
    return result
