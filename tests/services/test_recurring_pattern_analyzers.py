"""
Unit tests for the recurring pattern analyzers and their configuration.
"""

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from models.recurring_pattern import AmountCluster, RecurrenceFrequency
from models.transaction import TransactionRecord
from services.recurring_patterns.analyzers import (
    AmountClusterer,
    ConfidenceScoreCalculator,
    FrequencyClassifier,
    IntervalAnalyzer,
    MerchantGrouper,
)
from services.recurring_patterns.config import (
    AmountClusteringConfig,
    ClusteringStrategy,
    ConfidenceBonuses,
    ConsistencyConfig,
    DetectionConfig,
)

BASE_DATE = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _txn(amount, day=None, merchant="Spotify", category=None, description=None):
    return TransactionRecord(
        merchant_key=merchant,
        description=description,
        amount=Decimal(str(amount)),
        occurred_at=BASE_DATE + timedelta(days=day) if day is not None else None,
        category=category,
    )


class TestMerchantGrouper:

    def test_groups_by_merchant_in_first_seen_order(self):
        transactions = [_txn(1, 0, "B"), _txn(1, 0, "A"), _txn(1, 1, "B"), _txn(1, 1, "A")]

        groups = MerchantGrouper().group(transactions)

        assert list(groups.keys()) == ["B", "A"]
        assert len(groups["B"]) == 2

    def test_drops_single_member_groups(self):
        groups = MerchantGrouper().group([_txn(1, 0, "A"), _txn(1, 0, "B"), _txn(1, 1, "B")])
        assert list(groups.keys()) == ["B"]

    def test_falls_back_to_description(self):
        transactions = [
            _txn(9.99, 0, merchant=None, description="NETFLIX.COM"),
            _txn(9.99, 30, merchant=None, description="NETFLIX.COM"),
        ]
        assert list(MerchantGrouper().group(transactions).keys()) == ["NETFLIX.COM"]

    def test_skips_records_without_any_key(self):
        transactions = [_txn(1, 0, merchant=None), _txn(1, 1, merchant=None)]
        assert MerchantGrouper().group(transactions) == {}

    def test_keys_are_exact(self):
        groups = MerchantGrouper().group([_txn(1, 0, "Spotify"), _txn(1, 1, "SPOTIFY")])
        assert groups == {}


class TestAmountClusterer:

    def test_within_tolerance_joins_cluster(self):
        clusters = AmountClusterer().cluster([_txn("100.00", 0), _txn("110.00", 30)])

        assert len(clusters) == 1
        assert clusters[0].representative_amount == Decimal("100.00")
        assert clusters[0].size == 2

    def test_outside_tolerance_opens_new_cluster(self):
        # 75% apart: two one-member clusters, both discarded
        assert AmountClusterer().cluster([_txn("20.00", 0), _txn("35.00", 30)]) == []

    def test_separates_subscription_from_purchases(self):
        transactions = [
            _txn("12.99", 0), _txn("80.00", 5), _txn("12.99", 30), _txn("79.00", 40), _txn("12.99", 61),
        ]

        clusters = AmountClusterer().cluster(transactions)

        assert [c.representative_amount for c in clusters] == [Decimal("12.99"), Decimal("80.00")]
        assert [c.size for c in clusters] == [3, 2]

    def test_greedy_representative_never_moves(self):
        # each step within 10% of its predecessor, but not of the first amount
        transactions = [_txn("100", 0), _txn("108", 30), _txn("116", 60), _txn("124", 90)]

        clusters = AmountClusterer().cluster(transactions)

        assert [c.representative_amount for c in clusters] == [Decimal("100"), Decimal("116")]

    def test_centroid_strategy_tracks_running_mean(self):
        # 112 is 12% above the first amount but within 10% of the mean of 100 and 108
        transactions = [_txn("100", 0), _txn("108", 30), _txn("112", 60)]

        greedy = AmountClusterer().cluster(transactions)
        centroid = AmountClusterer(
            AmountClusteringConfig(strategy=ClusteringStrategy.CENTROID)
        ).cluster(transactions)

        assert [c.size for c in greedy] == [2]
        assert len(centroid) == 1
        assert centroid[0].size == 3
        assert centroid[0].representative_amount == Decimal("106.67")

    def test_non_positive_amounts_are_excluded(self):
        transactions = [_txn("0", 0), _txn("-5", 1), _txn("0", 2), _txn("-5", 3)]
        assert AmountClusterer().cluster(transactions) == []

    def test_every_member_within_tolerance_of_representative(self):
        transactions = [_txn(a, i) for i, a in enumerate(["50", "54", "46", "55", "45", "60", "40"])]

        clusterer = AmountClusterer()
        for cluster in clusterer.cluster(transactions):
            for member in cluster.members:
                assert clusterer.is_within_tolerance(member.amount, cluster.representative_amount)

    def test_invalid_config_rejected(self):
        with pytest.raises(ValueError):
            AmountClusteringConfig(tolerance=-0.1)
        with pytest.raises(ValueError):
            AmountClusteringConfig(min_cluster_size=1)


class TestIntervalAnalyzer:

    def test_statistics_for_unsorted_cluster(self):
        cluster = AmountCluster(
            representative_amount=Decimal("12.99"),
            members=[_txn("12.99", 61), _txn("12.99", 0), _txn("12.99", 30)],
        )

        stats = IntervalAnalyzer().analyze(cluster)

        assert stats.intervals == [30, 31]
        assert stats.avg_interval_days == pytest.approx(30.5)
        assert stats.std_dev_days == pytest.approx(0.5)
        assert stats.sample_count == 3
        assert stats.last_transaction.occurred_at == BASE_DATE + timedelta(days=61)

    def test_population_standard_deviation(self):
        days = [0, 30, 61, 90, 123, 151]
        cluster = AmountCluster(Decimal("80"), [_txn("80", d) for d in days])

        stats = IntervalAnalyzer().analyze(cluster)

        assert stats.avg_interval_days == pytest.approx(30.2)
        assert stats.std_dev_days == pytest.approx(1.7204650534)

    def test_undated_members_are_dropped(self):
        cluster = AmountCluster(Decimal("5"), [_txn("5", 0), _txn("5", None), _txn("5", 7)])

        stats = IntervalAnalyzer().analyze(cluster)

        assert stats.sample_count == 2
        assert stats.intervals == [7]

    def test_too_few_dated_members(self):
        cluster = AmountCluster(Decimal("5"), [_txn("5", 0), _txn("5", None)])
        assert IntervalAnalyzer().analyze(cluster) is None

    def test_consistency_gate(self):
        analyzer = IntervalAnalyzer()
        regular = analyzer.analyze(AmountCluster(Decimal("5"), [_txn("5", d) for d in [0, 30, 61]]))
        irregular = analyzer.analyze(AmountCluster(Decimal("5"), [_txn("5", d) for d in [0, 5, 60, 65]]))

        assert analyzer.is_consistent(regular) is True
        assert analyzer.is_consistent(irregular) is False

    def test_gate_is_inclusive(self):
        # intervals 6 and 10: mean 8, std 2, ratio exactly 0.25
        cluster = AmountCluster(Decimal("5"), [_txn("5", d) for d in [0, 6, 16]])
        analyzer = IntervalAnalyzer(ConsistencyConfig(max_std_dev_ratio=0.25))

        assert analyzer.is_consistent(analyzer.analyze(cluster)) is True


class TestFrequencyClassifier:

    @pytest.mark.parametrize("avg,label,base", [
        (30.5, "monthly", "0.8"),
        (25, "monthly", "0.8"),
        (35, "monthly", "0.8"),
        (7, "weekly", "0.8"),
        (6, "weekly", "0.8"),
        (8, "weekly", "0.8"),
        (14, "bi-weekly", "0.7"),
        (13, "bi-weekly", "0.7"),
        (16, "bi-weekly", "0.7"),
        (91, "quarterly", "0.7"),
        (365, "yearly", "0.7"),
        (375, "yearly", "0.7"),
    ])
    def test_named_cadences(self, avg, label, base):
        result = FrequencyClassifier().classify(avg)

        assert result.label == label
        assert result.base_confidence == Decimal(base)

    @pytest.mark.parametrize("avg,label", [
        (45, "every 45 days"),
        (10.5, "every 11 days"),
        (20.4, "every 20 days"),
        (1, "every 1 days"),
        (0, "every 0 days"),
    ])
    def test_fallback_label(self, avg, label):
        result = FrequencyClassifier().classify(avg)

        assert result.label == label
        assert result.frequency == RecurrenceFrequency.IRREGULAR
        assert result.base_confidence == Decimal("0.6")


class TestConfidenceScoreCalculator:

    @pytest.mark.parametrize("base,samples,expected", [
        ("0.8", 2, 0.8),
        ("0.8", 3, 0.8),
        ("0.8", 4, 0.9),
        ("0.8", 5, 0.9),
        ("0.8", 6, 1.0),
        ("0.8", 50, 1.0),
        ("0.7", 4, 0.8),
        ("0.7", 6, 0.9),
        ("0.6", 6, 0.8),
    ])
    def test_sample_size_bonuses(self, base, samples, expected):
        assert ConfidenceScoreCalculator().calculate(Decimal(base), samples) == expected

    def test_monotonic_in_sample_count(self):
        calculator = ConfidenceScoreCalculator()
        for base in ("0.6", "0.7", "0.8"):
            scores = [calculator.calculate(Decimal(base), n) for n in range(2, 12)]
            assert scores == sorted(scores)
            assert all(0.0 <= s <= 1.0 for s in scores)

    def test_custom_cap(self):
        calculator = ConfidenceScoreCalculator(ConfidenceBonuses(max_confidence=Decimal("0.85")))
        assert calculator.calculate(Decimal("0.8"), 6) == 0.85

    def test_negative_bonus_rejected(self):
        with pytest.raises(ValueError):
            ConfidenceBonuses(bonuses=[(4, Decimal("-0.1"))])


class TestDetectionConfig:

    def test_defaults(self):
        config = DetectionConfig()

        assert config.amount_clustering.tolerance == 0.10
        assert config.amount_clustering.strategy == ClusteringStrategy.GREEDY
        assert config.consistency.max_std_dev_ratio == 0.25
        assert [r.frequency for r in config.frequency_thresholds.rules][0] == RecurrenceFrequency.MONTHLY

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("RECURRING_AMOUNT_TOLERANCE", "0.05")
        monkeypatch.setenv("RECURRING_CONSISTENCY_RATIO", "0.2")
        monkeypatch.setenv("RECURRING_CLUSTER_STRATEGY", "CENTROID")

        config = DetectionConfig.from_environment()

        assert config.amount_clustering.tolerance == 0.05
        assert config.amount_clustering.strategy == ClusteringStrategy.CENTROID
        assert config.consistency.max_std_dev_ratio == 0.2

    def test_from_environment_rejects_unknown_strategy(self, monkeypatch):
        monkeypatch.setenv("RECURRING_CLUSTER_STRATEGY", "kmeans")
        with pytest.raises(ValueError):
            DetectionConfig.from_environment()

    def test_weekly_rule_follows_monthly(self):
        weekly = DetectionConfig().frequency_thresholds.rules[1]
        assert weekly.frequency == RecurrenceFrequency.WEEKLY
        assert (weekly.min_days, weekly.max_days) == (6, 8)
