"""Tests for the metadata aggregators."""

from datetime import date
from decimal import Decimal

from finance_control.aggregators import dashboard as dashboard_views
from finance_control.aggregators import goals as goal_views
from finance_control.aggregators import investments as investment_views
from finance_control.aggregators import reference as reference_views
from finance_control.aggregators import transactions as transaction_views
from finance_control.config.settings import MetadataSettings
from finance_control.models.goal import FinancialGoal, GoalStatus, GoalType
from finance_control.models.investment import InvestmentType
from finance_control.models.reference import TransactionCategory, TransactionSubcategory
from finance_control.models.transaction import (
    Responsibility,
    TransactionSource,
    TransactionType,
)

from factories import make_investment, make_transaction


class TestTransactionAggregators:
    """Transaction views."""

    def _sample(self):
        return [
            make_transaction(1, amount="100.00", on=date(2024, 2, 3), source=TransactionSource.CASH),
            make_transaction(2, amount="3000.00", type=TransactionType.INCOME, on=date(2024, 1, 5),
                             category_id=2),
            make_transaction(3, amount="50.00", on=date(2024, 1, 20)),
        ]

    def test_distinct_values(self):
        items = self._sample()
        assert transaction_views.distinct_types(items) == [TransactionType.EXPENSE, TransactionType.INCOME]
        assert transaction_views.distinct_sources(items) == [TransactionSource.CASH, TransactionSource.PIX]
        assert transaction_views.distinct_categories(items) == [1, 2]
        assert transaction_views.count(items) == 3

    def test_monthly_summary_is_chronological(self):
        """Test per-month income, expense and net."""
        summary = transaction_views.monthly_summary(self._sample())
        assert [s.month for s in summary] == ["2024-01", "2024-02"]
        january = summary[0]
        assert january.income == Decimal("3000.00")
        assert january.expense == Decimal("50.00")
        assert january.net == Decimal("2950.00")
        assert january.count == 2

    def test_metrics_over_date_range(self):
        """Test totals only include the requested range."""
        metrics = transaction_views.metrics(self._sample(), date(2024, 1, 1), date(2024, 1, 31))
        assert metrics.total_income == Decimal("3000.00")
        assert metrics.total_expense == Decimal("50.00")
        assert metrics.balance == Decimal("2950.00")
        assert metrics.transaction_count == 2
        assert metrics.average_expense == Decimal("50.00")

    def test_category_totals(self):
        totals = transaction_views.category_totals(self._sample(), 1)
        assert totals.count == 2
        assert totals.expense == Decimal("150.00")
        assert totals.income == Decimal("0.00")

    def test_responsible_summary(self):
        """Test calculated amounts are summed per party."""
        shared = make_transaction(4, amount="10.00")
        shared.responsibilities = [
            Responsibility(responsible_id=1, percentage=Decimal("70"), calculated_amount=Decimal("7.00")),
            Responsibility(responsible_id=2, percentage=Decimal("30"), calculated_amount=Decimal("3.00")),
        ]
        summary = transaction_views.responsible_summary(self._sample() + [shared])
        assert [s.responsible_id for s in summary] == [1, 2]
        assert summary[0].expense_amount == Decimal("157.00")
        assert summary[0].income_amount == Decimal("3000.00")
        assert summary[0].transaction_count == 4
        assert summary[1].total_amount == Decimal("3.00")

    def test_empty_input(self):
        """Test that every view tolerates an empty collection."""
        assert transaction_views.distinct_types([]) == []
        assert transaction_views.monthly_summary([]) == []
        assert transaction_views.responsible_summary([]) == []
        metrics = transaction_views.metrics([], date(2024, 1, 1), date(2024, 12, 31))
        assert metrics.transaction_count == 0
        assert metrics.average_expense == Decimal("0.00")


class TestGoalAggregators:
    """Goal views."""

    def _goal(self, id, status=GoalStatus.ACTIVE, deadline=None, target="100", current="0",
              goal_type=GoalType.SAVINGS):
        return FinancialGoal(
            id=id,
            user_id=1,
            name=f"Goal {id}",
            goal_type=goal_type,
            target_amount=Decimal(target),
            current_amount=Decimal(current),
            status=status,
            deadline=deadline,
        )

    def test_status_summary(self):
        goals = [
            self._goal(1, target="100", current="50"),
            self._goal(2, status=GoalStatus.COMPLETED, target="300", current="300"),
        ]
        summary = goal_views.status_summary(goals)
        assert summary.total_goals == 2
        assert summary.active_goals == 1
        assert summary.completed_goals == 1
        assert summary.overall_progress == Decimal("87.50")

    def test_active_sorted_by_deadline(self):
        """Test nearest deadline first, goals without a deadline last."""
        goals = [
            self._goal(1),
            self._goal(2, deadline=date(2025, 6, 1)),
            self._goal(3, deadline=date(2024, 12, 1)),
            self._goal(4, status=GoalStatus.COMPLETED, deadline=date(2024, 1, 1)),
        ]
        assert [g.id for g in goal_views.active(goals)] == [3, 2, 1]
        assert [g.id for g in goal_views.completed(goals)] == [4]

    def test_types_and_empty(self):
        goals = [self._goal(1, goal_type=GoalType.DEBT_PAYOFF), self._goal(2)]
        assert goal_views.distinct_types(goals) == [GoalType.DEBT_PAYOFF, GoalType.SAVINGS]
        summary = goal_views.status_summary([])
        assert summary.total_goals == 0
        assert summary.overall_progress == Decimal("0.00")


class TestInvestmentAggregators:
    """Investment views."""

    def _portfolio(self):
        return [
            make_investment(1, "PETR4", current_price="11.00", previous_close="10.00",
                            dividend_yield="8.5", sector="Energy"),
            make_investment(2, "VALE3", current_price="9.00", previous_close="10.00", sector="mining"),
            make_investment(3, "HGLG11", investment_type=InvestmentType.FII, current_price="11.00",
                            previous_close="10.00", dividend_yield="9.1"),
            make_investment(4, "NEW3"),
        ]

    def test_distinct_values(self):
        items = self._portfolio()
        assert investment_views.distinct_sectors(items) == ["Energy", "mining"]
        assert investment_views.distinct_types(items) == [InvestmentType.FII, InvestmentType.STOCK]
        assert investment_views.exchanges(MetadataSettings(supported_exchanges="b3, nyse")) == ["B3", "NYSE"]

    def test_top_performers_ties_by_id(self):
        """Test ranking with a tie and a holding without prices."""
        ranked = investment_views.top_performers(self._portfolio(), limit=10)
        assert [i.id for i in ranked] == [1, 3, 2]

    def test_worst_performers_and_limit(self):
        ranked = investment_views.worst_performers(self._portfolio(), limit=1)
        assert [i.id for i in ranked] == [2]

    def test_top_dividend_yield(self):
        ranked = investment_views.top_dividend_yield(self._portfolio(), limit=10)
        assert [i.id for i in ranked] == [3, 1]

    def test_portfolio_summary(self):
        """Test totals and the per-type breakdown."""
        summary = investment_views.portfolio_summary(self._portfolio())
        assert summary.total_investments == 4
        assert summary.total_market_value == Decimal("310.00")
        assert summary.total_cost == Decimal("400.00")
        assert summary.total_profit == Decimal("-90.00")
        assert summary.profit_percentage == Decimal("-22.50")
        assert [b.investment_type for b in summary.by_type] == [InvestmentType.FII, InvestmentType.STOCK]
        assert summary.by_type[0].market_value == Decimal("110.00")

    def test_empty_portfolio_is_all_zeros(self):
        summary = investment_views.portfolio_summary([])
        assert summary.total_market_value == Decimal("0.00")
        assert summary.profit_percentage == Decimal("0.00")
        assert summary.total_investments == 0
        assert summary.by_type == []
        assert investment_views.top_performers([], limit=10) == []


class TestReferenceAggregators:
    """Category and subcategory views."""

    def test_usage_stats(self):
        """Test most used category first, unused categories kept."""
        categories = [
            TransactionCategory(id=1, user_id=1, name="Food"),
            TransactionCategory(id=2, user_id=1, name="Salary"),
            TransactionCategory(id=3, user_id=1, name="Travel"),
        ]
        transactions = [
            make_transaction(1, amount="10.00", category_id=2),
            make_transaction(2, amount="20.00", category_id=2),
            make_transaction(3, amount="5.00", category_id=1),
        ]
        usage = reference_views.usage_stats(categories, transactions)
        assert [u.category_id for u in usage] == [2, 1, 3]
        assert usage[0].total_amount == Decimal("30.00")
        assert usage[2].transaction_count == 0

    def test_subcategories_by_category(self):
        subcategories = [
            TransactionSubcategory(id=1, user_id=1, category_id=1, name="Market"),
            TransactionSubcategory(id=2, user_id=1, category_id=2, name="Bonus"),
            TransactionSubcategory(id=3, user_id=1, category_id=1, name="Bakery"),
        ]
        assert [s.id for s in reference_views.subcategories_by_category(subcategories, 1)] == [1, 3]
        assert reference_views.count_by_category(subcategories, 2) == 1
        assert reference_views.count(subcategories) == 3


class TestDashboardAggregators:
    """Dashboard period views."""

    AS_OF = date(2024, 3, 20)

    def _sample(self):
        return [
            make_transaction(1, amount="4000.00", type=TransactionType.INCOME, on=date(2024, 3, 5),
                             reconciled=True),
            make_transaction(2, amount="1000.00", on=date(2024, 3, 6), category_id=1),
            make_transaction(3, amount="500.00", on=date(2024, 3, 7), category_id=2),
            make_transaction(4, amount="500.00", on=date(2024, 3, 8), category_id=3),
            make_transaction(5, amount="250.00", on=date(2024, 1, 10), category_id=1),
            make_transaction(6, amount="999.00", on=date(2023, 12, 31), category_id=1),
        ]

    def test_current_month_metrics(self):
        metrics = dashboard_views.current_month_metrics(self._sample(), self.AS_OF)
        assert metrics.period_start == date(2024, 3, 1)
        assert metrics.period_end == date(2024, 3, 31)
        assert metrics.total_income == Decimal("4000.00")
        assert metrics.total_expense == Decimal("2000.00")
        assert metrics.balance == Decimal("2000.00")
        assert metrics.savings_rate == Decimal("50.00")
        assert metrics.transaction_count == 4
        assert metrics.income_count == 1
        assert metrics.expense_count == 3
        assert metrics.average_transaction_amount == Decimal("1500.00")
        assert metrics.largest_transaction == Decimal("4000.00")
        assert metrics.smallest_transaction == Decimal("500.00")

    def test_year_to_date_stops_at_the_reference_day(self):
        metrics = dashboard_views.year_to_date_metrics(self._sample(), self.AS_OF)
        assert metrics.period_start == date(2024, 1, 1)
        assert metrics.total_expense == Decimal("2250.00")
        assert metrics.transaction_count == 5

    def test_empty_period(self):
        metrics = dashboard_views.period_metrics([], date(2024, 1, 1), date(2024, 1, 31))
        assert metrics.savings_rate == Decimal("0.00")
        assert metrics.average_transaction_amount == Decimal("0.00")
        assert metrics.largest_transaction is None

    def test_top_spending_categories(self):
        """Test ranking by amount, ties by category id, cut at the limit."""
        ranked = dashboard_views.top_spending_categories(
            self._sample(), date(2024, 3, 1), date(2024, 3, 31), limit=2
        )
        assert [(c.category_id, c.amount) for c in ranked] == [
            (1, Decimal("1000.00")),
            (2, Decimal("500.00")),
        ]
        assert ranked[0].percentage == Decimal("50.00")
        assert ranked[1].percentage == Decimal("25.00")

    def test_monthly_trends_include_empty_months(self):
        trends = dashboard_views.monthly_trends(self._sample(), self.AS_OF, 4)
        assert [t.month for t in trends] == ["2023-12", "2024-01", "2024-02", "2024-03"]
        assert trends[0].expense == Decimal("999.00")
        assert trends[2].transaction_count == 0
        assert trends[3].balance == Decimal("2000.00")

    def test_summary(self):
        goals = [
            FinancialGoal(id=1, user_id=1, name="Car", goal_type=GoalType.SAVINGS,
                          target_amount=Decimal("100"), current_amount=Decimal("50")),
            FinancialGoal(id=2, user_id=1, name="House", goal_type=GoalType.SAVINGS,
                          target_amount=Decimal("100"), current_amount=Decimal("100"),
                          status=GoalStatus.COMPLETED),
        ]
        summary = dashboard_views.summary(self._sample(), goals, self.AS_OF)

        assert summary.monthly_balance == Decimal("2000.00")
        assert summary.net_worth == Decimal("1750.00")
        assert summary.total_transactions == 6
        assert summary.pending_reconciliations == 5
        assert summary.active_goals == 1
        assert summary.completed_goals == 1
        assert summary.total_goal_progress == Decimal("50.00")
        assert len(summary.monthly_trends) == 12
        assert summary.monthly_trends[-1].month == "2024-03"
        assert [g.goal_id for g in summary.goal_progress] == [1]
