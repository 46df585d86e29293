"""
Recurring Pattern Models.

This module provides the models for recurring-transaction detection: the
transient amount cluster, the detected pattern record, and the read-only
projections (monthly equivalents and upcoming charges).
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing_extensions import Self

from models.transaction import TransactionRecord

logger = logging.getLogger(__name__)

# Constants
CONFIDENCE_ERROR_MESSAGE = "confidence must be between 0.0 and 1.0"
SAMPLE_COUNT_ERROR_MESSAGE = "sample_count must be at least 2"


class RecurrenceFrequency(str, Enum):
    """Named cadences of recurring charges."""
    DAILY = "daily"            # ~1 day intervals
    WEEKLY = "weekly"          # 6-8 day intervals
    BI_WEEKLY = "bi-weekly"    # 13-16 day intervals
    MONTHLY = "monthly"        # 25-35 day intervals
    QUARTERLY = "quarterly"    # 85-95 day intervals
    YEARLY = "yearly"          # 355-375 day intervals
    IRREGULAR = "irregular"    # No clear pattern


def every_n_days_label(days: int) -> str:
    """Label used when the mean interval matches no named cadence."""
    return f"every {days} days"


@dataclass
class AmountCluster:
    """
    Transactions from one merchant whose amounts are close enough to be the
    same recurring charge. Created per detection run and never persisted.
    """
    representative_amount: Decimal
    members: List[TransactionRecord] = field(default_factory=list)

    @property
    def category(self) -> Optional[str]:
        """Category of the chronologically last dated member."""
        dated = sorted(
            (m for m in self.members if m.occurred_at is not None),
            key=lambda m: m.occurred_at
        )
        return dated[-1].category if dated else None

    @property
    def size(self) -> int:
        return len(self.members)


class RecurringPattern(BaseModel):
    """
    A recurring charge, either detected or entered by the user.

    Patterns are keyed by merchant key. Detection recomputes them from scratch
    on every run; the interval statistics (sample count, interval mean and
    spread, last transaction date) are only present on detected patterns.
    """
    merchant_key: str = Field(alias="merchantKey")
    category: Optional[str] = None

    avg_amount: Decimal = Field(alias="avgAmount")
    frequency_label: str = Field(alias="frequencyLabel")
    confidence: float = Field(ge=0.0, le=1.0)
    sample_count: Optional[int] = Field(default=None, alias="sampleCount", ge=2)

    avg_interval_days: Optional[float] = Field(default=None, alias="avgIntervalDays", ge=0.0)
    std_dev_days: Optional[float] = Field(default=None, alias="stdDevDays", ge=0.0)

    last_transaction_date: Optional[date] = Field(default=None, alias="lastTransactionDate")
    next_due_date: date = Field(alias="nextDueDate")

    is_subscription: bool = Field(default=True, alias="isSubscription")

    model_config = ConfigDict(
        populate_by_name=True,
        frozen=True,
        extra="ignore",
        json_encoders={Decimal: str}
    )

    @field_validator('confidence')
    @classmethod
    def validate_confidence(cls, v: float) -> float:
        if not (0.0 <= v <= 1.0):
            raise ValueError(CONFIDENCE_ERROR_MESSAGE)
        return v

    @field_validator('sample_count')
    @classmethod
    def validate_sample_count(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 2:
            raise ValueError(SAMPLE_COUNT_ERROR_MESSAGE)
        return v

    @property
    def frequency(self) -> RecurrenceFrequency:
        """Named cadence, IRREGULAR for "every N days" labels."""
        try:
            return RecurrenceFrequency(self.frequency_label)
        except ValueError:
            return RecurrenceFrequency.IRREGULAR

    def to_dynamodb_item(self, user_id: str) -> Dict[str, Any]:
        """
        Convert to DynamoDB item format.

        DynamoDB rejects floats, so float fields are stored as Decimal and
        dates as ISO strings.
        """
        data = self.model_dump(by_alias=True, exclude_none=True)

        data['userId'] = user_id
        data['confidence'] = Decimal(str(self.confidence))
        if self.avg_interval_days is not None:
            data['avgIntervalDays'] = Decimal(str(self.avg_interval_days))
        if self.std_dev_days is not None:
            data['stdDevDays'] = Decimal(str(self.std_dev_days))
        if self.last_transaction_date is not None:
            data['lastTransactionDate'] = self.last_transaction_date.isoformat()
        data['nextDueDate'] = self.next_due_date.isoformat()
        data['updatedAt'] = int(datetime.now(timezone.utc).timestamp() * 1000)

        return data

    @classmethod
    def from_dynamodb_item(cls, data: Dict[str, Any]) -> Self:
        """Create from DynamoDB item data."""
        converted_data = data.copy()

        for key in ('userId', 'updatedAt'):
            converted_data.pop(key, None)

        float_fields = ['confidence', 'avgIntervalDays', 'stdDevDays']
        for field_name in float_fields:
            if isinstance(converted_data.get(field_name), Decimal):
                converted_data[field_name] = float(converted_data[field_name])

        if isinstance(converted_data.get('sampleCount'), Decimal):
            converted_data['sampleCount'] = int(converted_data['sampleCount'])

        return cls.model_validate(converted_data)


class MonthlyEquivalent(BaseModel):
    """A pattern's amount expressed as an approximate monthly figure."""
    merchant_key: str = Field(alias="merchantKey")
    category: Optional[str] = None
    frequency_label: str = Field(alias="frequencyLabel")
    amount: Decimal
    monthly_amount: Decimal = Field(alias="monthlyAmount")

    model_config = ConfigDict(
        populate_by_name=True,
        json_encoders={Decimal: str}
    )


class UpcomingCharge(BaseModel):
    """A pattern whose next occurrence falls inside the requested horizon."""
    pattern: RecurringPattern
    days_until_due: int = Field(alias="daysUntilDue", ge=0)

    model_config = ConfigDict(
        populate_by_name=True,
        json_encoders={Decimal: str}
    )
