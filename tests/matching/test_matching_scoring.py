"""Tests for expense/sale scoring and candidate ranking."""

from datetime import date, timedelta
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

import pytest

from reconciler.models import MatchStrategy, TransactionStatus
from reconciler.services.errors import InvalidConfiguration, InvalidTransactionData
from reconciler.services.matching import (
    MatchConfiguration,
    calculate_match_score,
    default_match_configuration,
    match_reasons,
    rank_candidates,
    score_amount,
    score_date,
    score_description,
)
from tests.factories import ExpenseFactory, SaleFactory

MARCH_1 = date(2024, 3, 1)


def config(strategy=MatchStrategy.AMOUNT_AND_DATE, tolerance=7, threshold=95) -> MatchConfiguration:
    return MatchConfiguration(
        date_tolerance_days=tolerance,
        auto_match_threshold=threshold,
        match_strategy=strategy,
    )


class TestAmountTerm:
    @pytest.mark.parametrize(
        ("sale_amount", "expected"),
        [
            ("100.00", 70),
            ("104.99", 50),
            ("95.01", 50),
            ("105.00", 30),  # exactly 5% falls to the next tier
            ("109.99", 30),
            ("110.00", 10),
            ("119.99", 10),
            ("120.00", 0),
            ("250.00", 0),
        ],
    )
    def test_tiers_against_expense_amount(self, sale_amount, expected):
        assert score_amount(Decimal("100.00"), Decimal(sale_amount)) == expected

    def test_negative_expense_tiers_by_magnitude(self):
        assert score_amount(Decimal("-100.00"), Decimal("-104.00")) == 50

    def test_zero_expense_only_matches_exactly(self):
        assert score_amount(Decimal("0"), Decimal("0")) == 70
        assert score_amount(Decimal("0"), Decimal("0.01")) == 0

    def test_tier_base_is_the_expense_side(self):
        # 9.50 apart is under 10% of 100 but over 10% of 90.50
        assert score_amount(Decimal("100.00"), Decimal("90.50")) == 30
        assert score_amount(Decimal("90.50"), Decimal("100.00")) == 10


class TestDateTerm:
    @pytest.mark.parametrize(
        ("days_apart", "expected"),
        [(0, 20), (1, 15), (2, 10), (7, 10), (8, 0), (30, 0)],
    )
    def test_proximity_points(self, days_apart, expected):
        assert score_date(days_apart, config()) == expected

    def test_amount_only_ignores_dates(self):
        assert score_date(0, config(MatchStrategy.AMOUNT_ONLY)) == 0

    def test_zero_tolerance_is_honoured(self):
        strict = config(tolerance=0)
        assert score_date(0, strict) == 20
        assert score_date(1, strict) == 15
        assert score_date(2, strict) == 0


class TestDescriptionTerm:
    def test_only_fuzzy_strategy_scores_descriptions(self):
        assert score_description("Invoice 123", "Invoice 123", config()) == 0
        assert score_description("Invoice 123", "Invoice 123", config(MatchStrategy.FUZZY_MATCH)) == 10

    def test_rounds_half_up(self):
        fuzzy = config(MatchStrategy.FUZZY_MATCH)
        # 11 of 20 characters kept -> 0.55 -> 5.5 -> 6
        assert score_description("a" * 20, "a" * 11 + "b" * 9, fuzzy) == 6
        # 0.6 -> 6
        assert score_description("abcdefghij", "abcdefxxxx", fuzzy) == 6

    def test_missing_descriptions_are_identical(self):
        assert score_description(None, "", config(MatchStrategy.FUZZY_MATCH)) == 10


class TestCalculateMatchScore:
    def test_exact_amount_same_date_scores_ninety(self):
        expense = ExpenseFactory.build(amount=Decimal("100.00"), txn_date=MARCH_1)
        sale = SaleFactory.build(amount=Decimal("100.00"), txn_date=MARCH_1)

        assert calculate_match_score(expense, sale, config()) == 90

    def test_fuzzy_exact_pair_scores_hundred(self):
        expense = ExpenseFactory.build(amount=Decimal("100.00"), txn_date=MARCH_1, description="Invoice 123")
        sale = SaleFactory.build(amount=Decimal("100.00"), txn_date=MARCH_1, description="Invoice 123")

        assert calculate_match_score(expense, sale, config(MatchStrategy.FUZZY_MATCH)) == 100

    def test_amount_only_never_uses_date_or_description(self):
        expense = ExpenseFactory.build(amount=Decimal("100.00"), txn_date=MARCH_1, description="rent")
        sale = SaleFactory.build(
            amount=Decimal("100.00"), txn_date=MARCH_1 + timedelta(days=200), description="groceries"
        )

        assert calculate_match_score(expense, sale, config(MatchStrategy.AMOUNT_ONLY)) == 70

    def test_score_depends_only_on_field_values(self):
        expense = ExpenseFactory.build(amount=Decimal("50.00"), txn_date=MARCH_1)
        sale = SaleFactory.build(amount=Decimal("52.00"), txn_date=MARCH_1 + timedelta(days=1))
        twin_expense = ExpenseFactory.build(amount=Decimal("50.00"), txn_date=MARCH_1)
        twin_sale = SaleFactory.build(amount=Decimal("52.00"), txn_date=MARCH_1 + timedelta(days=1))

        assert calculate_match_score(expense, sale, config()) == calculate_match_score(
            twin_expense, twin_sale, config()
        )

    def test_swapping_sides_can_change_amount_tier(self):
        # Tiers are measured against the expense amount: 4.80 is under 5% of
        # 100.00 but not of 95.20
        big = ExpenseFactory.build(amount=Decimal("100.00"), txn_date=MARCH_1)
        small = SaleFactory.build(amount=Decimal("95.20"), txn_date=MARCH_1)
        small_as_expense = ExpenseFactory.build(amount=Decimal("95.20"), txn_date=MARCH_1)
        big_as_sale = SaleFactory.build(amount=Decimal("100.00"), txn_date=MARCH_1)

        assert calculate_match_score(big, small, config(MatchStrategy.AMOUNT_ONLY)) == 50
        assert calculate_match_score(small_as_expense, big_as_sale, config(MatchStrategy.AMOUNT_ONLY)) == 30

    @pytest.mark.parametrize("strategy", list(MatchStrategy))
    def test_score_stays_within_bounds(self, strategy):
        amounts = ["0", "1", "99.99", "100", "-100", "1000000"]
        for expense_amount in amounts:
            for sale_amount in amounts:
                for offset in (0, 1, 5, 400):
                    expense = ExpenseFactory.build(amount=Decimal(expense_amount), txn_date=MARCH_1)
                    sale = SaleFactory.build(
                        amount=Decimal(sale_amount), txn_date=MARCH_1 + timedelta(days=offset)
                    )
                    score = calculate_match_score(expense, sale, config(strategy))
                    assert 0 <= score <= 100

    def test_malformed_amount_raises(self):
        expense = SimpleNamespace(id=uuid4(), txn_date=MARCH_1, amount="not-a-number", description="")
        sale = SaleFactory.build()

        with pytest.raises(InvalidTransactionData):
            calculate_match_score(expense, sale, config())

    def test_non_finite_amount_raises(self):
        expense = SimpleNamespace(id=uuid4(), txn_date=MARCH_1, amount=Decimal("NaN"), description="")

        with pytest.raises(InvalidTransactionData):
            calculate_match_score(expense, SaleFactory.build(), config())

    def test_malformed_date_raises(self):
        sale = SimpleNamespace(id=uuid4(), txn_date="2024-03-01", amount=Decimal("100.00"), description="")

        with pytest.raises(InvalidTransactionData):
            calculate_match_score(ExpenseFactory.build(), sale, config())


class TestMatchConfiguration:
    def test_defaults(self):
        defaults = default_match_configuration()
        assert defaults.date_tolerance_days == 7
        assert defaults.auto_match_threshold == 95
        assert defaults.match_strategy is MatchStrategy.AMOUNT_AND_DATE

    def test_strategy_string_is_coerced(self):
        assert config("fuzzy_match").match_strategy is MatchStrategy.FUZZY_MATCH

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"tolerance": -1},
            {"tolerance": 366},
            {"threshold": 49},
            {"threshold": 101},
            {"strategy": "closest"},
        ],
    )
    def test_out_of_range_values_rejected(self, kwargs):
        with pytest.raises(InvalidConfiguration):
            config(**kwargs)

    def test_non_integer_threshold_rejected(self):
        with pytest.raises(InvalidConfiguration):
            MatchConfiguration(
                date_tolerance_days=7,
                auto_match_threshold=95.5,
                match_strategy=MatchStrategy.AMOUNT_ONLY,
            )


class TestMatchReasons:
    def test_exact_same_day_fuzzy(self):
        expense = ExpenseFactory.build(amount=Decimal("100.00"), txn_date=MARCH_1, description="Invoice 123")
        sale = SaleFactory.build(amount=Decimal("100.00"), txn_date=MARCH_1, description="Invoice 123")

        assert match_reasons(expense, sale, config(MatchStrategy.FUZZY_MATCH)) == [
            "Exact amount match",
            "Same date",
            "Description 100% similar",
        ]

    def test_within_days(self):
        expense = ExpenseFactory.build(amount=Decimal("100.00"), txn_date=MARCH_1)
        next_day = SaleFactory.build(amount=Decimal("101.00"), txn_date=MARCH_1 + timedelta(days=1))
        later = SaleFactory.build(amount=Decimal("100.00"), txn_date=MARCH_1 + timedelta(days=3))

        assert match_reasons(expense, next_day, config()) == ["Within 1 day"]
        assert match_reasons(expense, later, config()) == ["Exact amount match", "Within 3 days"]


class TestRankCandidates:
    def test_scenario_ninety_is_ranked_not_auto_matched(self):
        expense = ExpenseFactory.build(amount=Decimal("100.00"), txn_date=MARCH_1)
        sale = SaleFactory.build(amount=Decimal("100.00"), txn_date=MARCH_1)

        candidates = rank_candidates(expense, [sale], config(), min_score=20, top_n=3)

        assert [(c.sale, c.score, c.days_apart) for c in candidates] == [(sale, 90, 0)]

    def test_returns_top_n_above_floor_sorted_descending(self):
        expense = ExpenseFactory.build(amount=Decimal("100.00"), txn_date=MARCH_1)
        sales = [
            SaleFactory.build(amount=Decimal("115.00"), txn_date=MARCH_1 + timedelta(days=30)),  # 10
            SaleFactory.build(amount=Decimal("103.00"), txn_date=MARCH_1 + timedelta(days=2)),  # 60
            SaleFactory.build(amount=Decimal("100.00"), txn_date=MARCH_1),  # 90
            SaleFactory.build(amount=Decimal("108.00"), txn_date=MARCH_1 + timedelta(days=1)),  # 45
            SaleFactory.build(amount=Decimal("100.00"), txn_date=MARCH_1 + timedelta(days=5)),  # 80
        ]

        candidates = rank_candidates(expense, sales, config(), min_score=20, top_n=3)

        assert [c.score for c in candidates] == [90, 80, 60]
        assert all(c.score > 20 for c in candidates)

    def test_score_equal_to_floor_is_dropped(self):
        expense = ExpenseFactory.build(amount=Decimal("100.00"), txn_date=MARCH_1)
        # 10 (amount) + 10 (date) == 20
        sale = SaleFactory.build(amount=Decimal("115.00"), txn_date=MARCH_1 + timedelta(days=4))

        assert rank_candidates(expense, [sale], config(), min_score=20) == []

    def test_ties_keep_pool_order(self):
        expense = ExpenseFactory.build(amount=Decimal("100.00"), txn_date=MARCH_1)
        first = SaleFactory.build(amount=Decimal("100.00"), txn_date=MARCH_1)
        second = SaleFactory.build(amount=Decimal("100.00"), txn_date=MARCH_1)

        candidates = rank_candidates(expense, [first, second], config())

        assert [c.sale for c in candidates] == [first, second]

    def test_non_pending_sales_are_skipped(self):
        expense = ExpenseFactory.build(amount=Decimal("100.00"), txn_date=MARCH_1)
        ignored = SaleFactory.build(amount=Decimal("100.00"), txn_date=MARCH_1, status=TransactionStatus.IGNORED)

        assert rank_candidates(expense, [ignored], config()) == []

    def test_uses_configured_defaults(self, monkeypatch):
        from reconciler.services import matching

        monkeypatch.setattr(matching.settings, "candidate_top_n", 1)
        expense = ExpenseFactory.build(amount=Decimal("100.00"), txn_date=MARCH_1)
        sales = [SaleFactory.build(amount=Decimal("100.00"), txn_date=MARCH_1) for _ in range(3)]

        assert len(rank_candidates(expense, sales, config())) == 1
