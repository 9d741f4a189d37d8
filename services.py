from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config import get_settings
from models import (
    Budget,
    BudgetCategoryLimit,
    Category,
    DismissedSuggestion,
    RecurringPayment,
    SuggestionType,
    Transaction,
    TransactionType,
)
from periods import (
    MonthPeriod,
    add_months,
    next_month_period,
    resolve_target_month,
    trailing_window_start,
)
from recommendations import CategoryFacts, run_rules
from recurrence import (
    RecurringSchedule,
    ScheduledPayment,
    local_today,
    projection_window,
    resolve_schedule,
)
from savings import BudgetEntry, find_savings_opportunities
from schemas import (
    DismissalIn,
    RecommendationOut,
    RecommendationsResponse,
    SavingsOpportunityOut,
    SummaryOut,
)
from spending import HISTORY_MONTHS, ExpenseRecord, aggregate_spending

logger = logging.getLogger(__name__)


class UpstreamDataError(RuntimeError):
    pass


def cents_to_units(cents: int) -> float:
    return cents / 100


@dataclass(frozen=True)
class BudgetSnapshot:
    entries: dict[int, BudgetEntry]
    next_month_limits: dict[int, float]


class BudgetService:
    def __init__(self, session: Session, user_id: int) -> None:
        self.session = session
        self.user_id = user_id

    def limits_for_month(self, period: MonthPeriod) -> dict[int, BudgetEntry]:
        stmt = (
            select(
                BudgetCategoryLimit.category_id,
                BudgetCategoryLimit.limit_cents,
                Category.name,
            )
            .join(Budget, BudgetCategoryLimit.budget_id == Budget.id)
            .outerjoin(Category, BudgetCategoryLimit.category_id == Category.id)
            .where(
                Budget.user_id == self.user_id,
                Budget.year == period.year,
                Budget.month == period.month,
            )
        )
        limits: dict[int, BudgetEntry] = {}
        for row in self.session.execute(stmt):
            if row.category_id is None:
                continue
            limits[row.category_id] = BudgetEntry(
                name=row.name or "Unknown",
                limit=cents_to_units(row.limit_cents or 0),
            )
        return limits

    def spent_by_category_for_month(self, period: MonthPeriod) -> dict[int, float]:
        stmt = (
            select(
                Transaction.category_id,
                func.coalesce(func.sum(func.abs(Transaction.amount_cents)), 0).label(
                    "spent"
                ),
            )
            .where(
                Transaction.user_id == self.user_id,
                Transaction.deleted_at.is_(None),
                Transaction.type == TransactionType.expense,
                Transaction.category_id.is_not(None),
                Transaction.date.between(period.start, period.end),
            )
            .group_by(Transaction.category_id)
        )
        return {
            row.category_id: cents_to_units(int(row.spent or 0))
            for row in self.session.execute(stmt)
        }

    def resolve(self, target: MonthPeriod) -> BudgetSnapshot:
        limits = self.limits_for_month(target)
        next_limits = self.limits_for_month(next_month_period(target))
        spent = self.spent_by_category_for_month(target)

        entries = {
            category_id: BudgetEntry(
                name=entry.name,
                limit=entry.limit,
                spent_to_date=spent.get(category_id, 0.0),
            )
            for category_id, entry in limits.items()
        }
        return BudgetSnapshot(
            entries=entries,
            next_month_limits={cid: e.limit for cid, e in next_limits.items()},
        )


class RecommendationService:
    def __init__(
        self, session: Session, user_id: int, *, today: Optional[date] = None
    ) -> None:
        self.session = session
        self.user_id = user_id
        self.today = today or local_today()
        self.settings = get_settings()

    def expense_history(self) -> list[ExpenseRecord]:
        start = trailing_window_start(self.today, HISTORY_MONTHS)
        stmt = (
            select(
                Transaction.category_id,
                Category.name,
                Transaction.date,
                Transaction.amount_cents,
            )
            .outerjoin(Category, Transaction.category_id == Category.id)
            .where(
                Transaction.user_id == self.user_id,
                Transaction.deleted_at.is_(None),
                Transaction.type == TransactionType.expense,
                Transaction.date.between(start, self.today),
            )
        )
        return [
            ExpenseRecord(
                category_id=row.category_id,
                category_name=row.name,
                month=row.date.strftime("%Y-%m"),
                amount_cents=row.amount_cents,
            )
            for row in self.session.execute(stmt)
        ]

    def scheduled_payments(self) -> list[ScheduledPayment]:
        stmt = select(RecurringPayment).where(
            RecurringPayment.user_id == self.user_id,
            RecurringPayment.is_active.is_(True),
            RecurringPayment.type == TransactionType.expense,
        )
        return [
            ScheduledPayment(
                category_id=payment.category_id,
                amount_cents=payment.amount_cents,
                cadence=payment.cadence,
                start_date=payment.start_date,
                end_date=payment.end_date,
            )
            for payment in self.session.scalars(stmt)
        ]

    def expense_category_count(self) -> int:
        stmt = select(func.count(Category.id)).where(
            Category.user_id == self.user_id,
            Category.type == TransactionType.expense,
        )
        return int(self.session.execute(stmt).scalar_one() or 0)

    def build(self, month: Optional[str] = None) -> RecommendationsResponse:
        target = resolve_target_month(month, today=self.today)
        try:
            history = self.expense_history()
            budgets = BudgetService(self.session, self.user_id).resolve(target)
            payments = self.scheduled_payments()
            total_categories = self.expense_category_count()
        except SQLAlchemyError as exc:
            logger.error(
                f"recommendations_failed: user_id={self.user_id} month={target.slug} error={exc}"
            )
            raise UpstreamDataError(str(exc)) from exc

        window_start, window_end = projection_window(target, self.today)
        schedule = resolve_schedule(payments, window_start, window_end)
        response = self.assemble(budgets, history, schedule, total_categories)
        logger.info(
            f"recommendations: user_id={self.user_id} month={target.slug} "
            f"analyzed={response.summary.categories_analyzed} "
            f"issues={response.summary.issues_found} "
            f"savings={response.summary.savings_opportunities}"
        )
        return response

    def assemble(
        self,
        budgets: BudgetSnapshot,
        history: list[ExpenseRecord],
        schedule: RecurringSchedule,
        total_categories: int,
    ) -> RecommendationsResponse:
        symbol = self.settings.currency_symbol
        stats = aggregate_spending(history)
        stats_by_category = {s.category_id: s for s in stats}

        facts = []
        for stat in stats:
            entry = budgets.entries.get(stat.category_id)
            facts.append(
                CategoryFacts(
                    stats=stat,
                    limit=entry.limit if entry else 0.0,
                    next_month_limit=budgets.next_month_limits.get(stat.category_id),
                    currency_symbol=symbol,
                )
            )
        engine_result = run_rules(facts)
        opportunities = find_savings_opportunities(
            budgets.entries,
            schedule,
            stats_by_category,
            budgets.next_month_limits,
            currency_symbol=symbol,
        )

        summary = SummaryOut(
            total_categories=total_categories,
            categories_analyzed=len(stats),
            issues_found=len(engine_result.recommendations),
            potential_savings=engine_result.potential_savings,
            savings_opportunities=len(opportunities),
            total_savings_opportunity=round(
                sum(o.available_to_save for o in opportunities), 2
            ),
            total_overspending=engine_result.total_overspending,
            categories_with_recurring=len(schedule.committed_category_ids),
            recurring_monthly_total=round(
                sum(schedule.monthly_equivalent_by_category.values()), 2
            ),
            upcoming_recurring_total=round(
                sum(schedule.upcoming_by_category.values()), 2
            ),
        )
        return RecommendationsResponse(
            recommendations=[
                RecommendationOut.model_validate(asdict(rec))
                for rec in engine_result.recommendations
            ],
            savings_opportunities=[
                SavingsOpportunityOut.model_validate(asdict(opp))
                for opp in opportunities
            ],
            summary=summary,
        )


def dismissal_cutoff_month(today: date, retention_months: int) -> str:
    year, month = add_months(today.year, today.month, -retention_months)
    return f"{year:04d}-{month:02d}"


def purge_dismissed_suggestions(session: Session, cutoff_month: str) -> int:
    result = session.execute(
        delete(DismissedSuggestion).where(DismissedSuggestion.month < cutoff_month)
    )
    session.commit()
    return result.rowcount or 0


class DismissedSuggestionService:
    def __init__(self, session: Session, user_id: int) -> None:
        self.session = session
        self.user_id = user_id

    def list_for_month(self, month: str) -> list[str]:
        stmt = (
            select(DismissedSuggestion)
            .where(
                DismissedSuggestion.user_id == self.user_id,
                DismissedSuggestion.month == month,
            )
            .order_by(DismissedSuggestion.id)
        )
        ids = []
        for row in self.session.scalars(stmt):
            if row.suggestion_type == SuggestionType.savings:
                ids.append(f"savings-{row.category_id}")
            else:
                ids.append(str(row.category_id))
        return ids

    def dismiss(self, data: DismissalIn) -> DismissedSuggestion:
        category = self.session.get(Category, data.category_id)
        if not category or category.user_id != self.user_id:
            raise ValueError("Category not found")

        stmt = select(DismissedSuggestion).where(
            DismissedSuggestion.user_id == self.user_id,
            DismissedSuggestion.category_id == data.category_id,
            DismissedSuggestion.suggestion_type == data.suggestion_type,
            DismissedSuggestion.month == data.month,
        )
        recommendation_type = (
            data.recommendation_type.value if data.recommendation_type else None
        )
        existing = self.session.scalar(stmt)
        if existing:
            existing.recommendation_type = recommendation_type
            existing.dismissed_at = datetime.utcnow()
            self.session.commit()
            self.session.refresh(existing)
            return existing

        dismissal = DismissedSuggestion(
            user_id=self.user_id,
            category_id=data.category_id,
            suggestion_type=data.suggestion_type,
            recommendation_type=recommendation_type,
            month=data.month,
            dismissed_at=datetime.utcnow(),
        )
        self.session.add(dismissal)
        self.session.commit()
        self.session.refresh(dismissal)
        return dismissal

    def undismiss(
        self, category_id: int, suggestion_type: SuggestionType, month: str
    ) -> None:
        self.session.execute(
            delete(DismissedSuggestion).where(
                DismissedSuggestion.user_id == self.user_id,
                DismissedSuggestion.category_id == category_id,
                DismissedSuggestion.suggestion_type == suggestion_type,
                DismissedSuggestion.month == month,
            )
        )
        self.session.commit()
