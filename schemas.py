from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from models import SuggestionType
from recommendations import Priority, RecommendationType


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RecommendationStatsOut(CamelModel):
    min: float
    max: float
    std_dev: float
    months_analyzed: int
    recent_3_avg: Optional[float] = Field(default=None, alias="recent3Avg")
    prior_3_avg: Optional[float] = Field(default=None, alias="prior3Avg")


class RecommendationOut(CamelModel):
    category_id: int
    category_name: str
    type: RecommendationType
    priority: Priority
    current_budget: float
    avg_spending: float
    suggested_budget: int
    message: str
    stats: RecommendationStatsOut
    trend_percent: Optional[int] = None
    next_month_budget: Optional[float] = None


class SavingsStatsOut(CamelModel):
    avg_spending: float
    months_analyzed: int


class SavingsOpportunityOut(CamelModel):
    category_id: int
    category_name: str
    type: str = "potential_savings"
    priority: Priority
    current_budget: float
    spent: float
    remaining: float
    upcoming_recurring: float
    available_to_save: float
    has_recurring: bool = False
    message: str
    stats: Optional[SavingsStatsOut] = None
    next_month_budget: Optional[float] = None


class SummaryOut(CamelModel):
    total_categories: int
    categories_analyzed: int
    issues_found: int
    potential_savings: float
    savings_opportunities: int
    total_savings_opportunity: float
    total_overspending: float
    categories_with_recurring: int
    recurring_monthly_total: float
    upcoming_recurring_total: float


class RecommendationsResponse(CamelModel):
    recommendations: list[RecommendationOut]
    savings_opportunities: list[SavingsOpportunityOut]
    summary: SummaryOut


class DismissalIn(CamelModel):
    category_id: int
    suggestion_type: SuggestionType
    recommendation_type: Optional[RecommendationType] = None
    month: str = Field(..., pattern=r"^\d{4}-(0[1-9]|1[0-2])$")


class DismissalOut(CamelModel):
    category_id: int
    suggestion_type: SuggestionType
    recommendation_type: Optional[str] = None
    month: str
    dismissed_at: datetime


class DismissedListOut(CamelModel):
    dismissed: list[str]
    count: int
