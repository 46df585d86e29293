"""
Unit tests for RecurringPatternDetectionService.

Tests the full grouping, clustering, interval and scoring pipeline on
hand-built transaction histories.
"""

import pytest
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from models.transaction import TransactionRecord
from services.recurring_patterns.config import (
    AmountClusteringConfig,
    ClusteringStrategy,
    DetectionConfig,
)
from services.recurring_patterns.detection_service import (
    RecurringPatternDetectionService,
    detect_recurring_patterns,
)

BASE_DATE = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _txn(merchant, amount, day, category=None):
    return TransactionRecord(
        merchant_key=merchant,
        amount=Decimal(str(amount)),
        occurred_at=BASE_DATE + timedelta(days=day),
        category=category,
    )


def _series(merchant, amount, days, category=None):
    return [_txn(merchant, amount, d, category) for d in days]


class TestRecurringPatternDetectionService:
    """Test suite for RecurringPatternDetectionService."""

    @pytest.fixture
    def detection_service(self):
        return RecurringPatternDetectionService()

    def test_monthly_spotify(self, detection_service):
        """Three $12.99 charges at day 0, 30 and 61."""
        patterns = detection_service.detect_recurring_patterns(
            _series("Spotify", "12.99", [0, 30, 61], category="Music")
        )

        assert len(patterns) == 1
        pattern = patterns[0]
        assert pattern.merchant_key == "Spotify"
        assert pattern.frequency_label == "monthly"
        assert pattern.sample_count == 3
        assert pattern.confidence == 0.8
        assert pattern.avg_interval_days == pytest.approx(30.5)
        assert pattern.std_dev_days == pytest.approx(0.5)
        assert pattern.avg_amount == Decimal("12.99")
        assert pattern.category == "Music"
        assert pattern.is_subscription is True

    def test_next_due_rounds_half_up(self, detection_service):
        pattern = detection_service.detect_recurring_patterns(
            _series("Spotify", "12.99", [0, 30, 61])
        )[0]

        assert pattern.last_transaction_date == date(2024, 3, 2)
        assert pattern.next_due_date == date(2024, 4, 2)

    def test_weekly_gym(self, detection_service):
        patterns = detection_service.detect_recurring_patterns(_series("Gym", "40.00", [0, 7]))

        assert len(patterns) == 1
        assert patterns[0].frequency_label == "weekly"
        assert patterns[0].confidence == 0.8
        assert patterns[0].sample_count == 2

    def test_amounts_too_far_apart(self, detection_service):
        transactions = [_txn("Shop", "20.00", 0), _txn("Shop", "35.00", 30)]
        assert detection_service.detect_recurring_patterns(transactions) == []

    def test_electric_company_with_six_bills(self, detection_service):
        """Gaps of 30, 31, 29, 33 and 28 days: mean 30.2, std ~1.72."""
        days = [0, 30, 61, 90, 123, 151]
        pattern = detection_service.detect_recurring_patterns(
            _series("Electric Co", "85.00", days)
        )[0]

        assert pattern.frequency_label == "monthly"
        assert pattern.avg_interval_days == pytest.approx(30.2)
        assert pattern.std_dev_days == pytest.approx(1.72, abs=0.01)
        assert pattern.sample_count == 6
        assert pattern.confidence == 1.0

    def test_electric_company_with_five_bills(self, detection_service):
        pattern = detection_service.detect_recurring_patterns(
            _series("Electric Co", "85.00", [0, 30, 61, 90, 123])
        )[0]

        assert pattern.sample_count == 5
        assert pattern.confidence == 0.9

    @pytest.mark.parametrize("transactions", [[], [_txn("Spotify", "12.99", 0)]])
    def test_empty_and_single_input(self, detection_service, transactions):
        assert detection_service.detect_recurring_patterns(transactions) == []

    def test_irregular_spacing_rejected(self, detection_service):
        transactions = _series("Coffee", "4.50", [0, 2, 30, 31, 70])
        assert detection_service.detect_recurring_patterns(transactions) == []

    def test_unnamed_cadence(self, detection_service):
        pattern = detection_service.detect_recurring_patterns(
            _series("Haircut", "30.00", [0, 45, 90, 135])
        )[0]

        assert pattern.frequency_label == "every 45 days"
        assert pattern.confidence == 0.7
        assert pattern.next_due_date == date(2024, 1, 1) + timedelta(days=180)

    def test_one_merchant_can_yield_multiple_patterns(self, detection_service):
        transactions = (
            _series("Amazon", "14.99", [0, 30, 60, 90])
            + _series("Amazon", "139.00", [10, 375])
        )

        patterns = detection_service.detect_recurring_patterns(transactions)

        assert [(p.merchant_key, p.frequency_label) for p in patterns] == [
            ("Amazon", "monthly"),
            ("Amazon", "yearly"),
        ]
        assert patterns[0].confidence == 0.9
        assert patterns[1].confidence == 0.7

    def test_sorted_by_confidence_with_stable_ties(self, detection_service):
        transactions = (
            _series("Gym", "40.00", [0, 7])
            + _series("Insurance", "300.00", [0, 91, 182, 273])
            + _series("Spotify", "12.99", [0, 30, 61])
            + _series("Netflix", "15.99", [0, 31, 62, 92, 123, 153])
        )

        patterns = detection_service.detect_recurring_patterns(transactions)

        assert [p.merchant_key for p in patterns] == ["Netflix", "Gym", "Insurance", "Spotify"]
        assert [p.confidence for p in patterns] == [1.0, 0.8, 0.8, 0.8]

    def test_category_comes_from_latest_transaction(self, detection_service):
        transactions = [
            _txn("Spotify", "12.99", 61, category="Entertainment"),
            _txn("Spotify", "12.99", 0, category="Music"),
            _txn("Spotify", "12.99", 30, category="Music"),
        ]

        pattern = detection_service.detect_recurring_patterns(transactions)[0]

        assert pattern.category == "Entertainment"

    def test_raw_mappings_are_validated_at_the_boundary(self, detection_service):
        raw = [
            {"merchantKey": "Spotify", "amount": "12.99", "occurredAt": "2024-01-01T00:00:00Z"},
            {"merchantKey": "Spotify", "amount": "12.99", "occurredAt": "2024-01-31T00:00:00Z"},
            {"merchantKey": "Spotify", "amount": "not money", "occurredAt": "2024-02-15T00:00:00Z"},
            {"merchantKey": "Spotify", "amount": "12.99", "occurredAt": "garbage"},
            {"merchantKey": "Spotify", "amount": "12.99", "occurredAt": "2024-03-02T00:00:00Z"},
        ]

        patterns = detection_service.detect_recurring_patterns(raw)

        assert len(patterns) == 1
        assert patterns[0].sample_count == 3

    def test_accepted_patterns_satisfy_gate(self, detection_service):
        transactions = (
            _series("A", "10", [0, 30, 61, 92])
            + _series("B", "10", [0, 7, 14, 22])
            + _series("C", "10", [0, 14, 29, 43])
            + _series("D", "10", [0, 3, 40, 41])
        )

        for pattern in detection_service.detect_recurring_patterns(transactions):
            assert pattern.sample_count >= 2
            assert pattern.std_dev_days <= 0.25 * pattern.avg_interval_days
            assert 0.0 <= pattern.confidence <= 1.0

    def test_rerun_is_identical(self, detection_service):
        transactions = (
            _series("Spotify", "12.99", [0, 30, 61])
            + _series("Gym", "40.00", [3, 10, 17, 24])
        )

        first = detection_service.detect_recurring_patterns(transactions)
        second = detection_service.detect_recurring_patterns(transactions)

        assert first == second

    def test_centroid_strategy_keeps_drifting_price_together(self):
        transactions = [
            _txn("Utility", "100", 0),
            _txn("Utility", "108", 30),
            _txn("Utility", "112", 60),
        ]
        config = DetectionConfig(
            amount_clustering=AmountClusteringConfig(strategy=ClusteringStrategy.CENTROID)
        )

        greedy = RecurringPatternDetectionService().detect_recurring_patterns(transactions)
        centroid = RecurringPatternDetectionService(config).detect_recurring_patterns(transactions)

        assert greedy[0].sample_count == 2
        assert centroid[0].sample_count == 3
        assert centroid[0].avg_amount == Decimal("106.67")

    def test_module_level_shortcut(self):
        patterns = detect_recurring_patterns(_series("Gym", "40.00", [0, 7]))
        assert patterns[0].frequency_label == "weekly"
