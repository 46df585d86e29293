"""
Transaction input records for recurring pattern detection.

Transactions are owned by the storage collaborator; the detector only reads
them. This module defines the typed record the detector consumes and the
boundary function that turns raw mappings into records.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from utils.temporal_utils import parse_timestamp

logger = logging.getLogger(__name__)


class TransactionRecord(BaseModel):
    """
    A single past expense as seen by the recurring pattern detector.

    Records are immutable. The grouping key is the merchant key, falling back
    to the free-text description when no merchant is recorded.
    """
    merchant_key: Optional[str] = Field(default=None, alias="merchantKey", max_length=1000)
    description: Optional[str] = Field(default=None, max_length=1000)
    amount: Decimal
    occurred_at: Optional[datetime] = Field(default=None, alias="occurredAt")
    category: Optional[str] = Field(default=None, max_length=255)

    model_config = ConfigDict(
        populate_by_name=True,
        frozen=True,
        extra="ignore",
        json_encoders={Decimal: str}
    )

    @field_validator('amount', mode='before')
    @classmethod
    def coerce_amount(cls, v: Any) -> Any:
        # floats go through str so 12.99 stays 12.99
        if isinstance(v, float):
            return Decimal(str(v))
        return v

    @field_validator('occurred_at', mode='before')
    @classmethod
    def parse_occurred_at(cls, v: Any) -> Optional[datetime]:
        """Unparseable timestamps become None instead of failing validation."""
        parsed = parse_timestamp(v)
        if parsed is None and v is not None:
            logger.debug(f"Could not parse transaction timestamp {v!r}; record will be undated")
        return parsed

    @property
    def grouping_key(self) -> Optional[str]:
        """Merchant key if set, otherwise the description."""
        for candidate in (self.merchant_key, self.description):
            if candidate and candidate.strip():
                return candidate
        return None

    @property
    def is_dated(self) -> bool:
        return self.occurred_at is not None


def parse_transaction_records(raw_items: Iterable[Dict[str, Any]]) -> List[TransactionRecord]:
    """
    Validate raw transaction mappings into TransactionRecords.

    Records that fail validation (missing or unparseable amount, wrong types)
    are logged and skipped; this function never raises for a bad record.

    Args:
        raw_items: Iterable of mappings, snake_case or camelCase keys

    Returns:
        List of valid TransactionRecord objects, input order preserved
    """
    records: List[TransactionRecord] = []
    skipped = 0

    for index, item in enumerate(raw_items):
        if isinstance(item, TransactionRecord):
            records.append(item)
            continue
        if not isinstance(item, dict):
            logger.warning(f"Skipping transaction at index {index}: expected an object, got {type(item).__name__}")
            skipped += 1
            continue
        try:
            records.append(TransactionRecord.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Skipping invalid transaction at index {index}: {e.error_count()} validation error(s)")
            skipped += 1

    if skipped:
        logger.info(f"Parsed {len(records)} transactions, skipped {skipped} invalid records")
    return records
