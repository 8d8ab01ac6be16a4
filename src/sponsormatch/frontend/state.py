"""State container for the dashboard session."""

from __future__ import annotations

from dataclasses import dataclass, field

from sponsormatch.core.filters import MATCH_FILTER_ALL, FilterCriteria
from sponsormatch.core.models import KIND_OPPORTUNITY, Category


@dataclass
class DashboardState:
    criteria: FilterCriteria = field(default_factory=FilterCriteria)
    discover_kind: str = KIND_OPPORTUNITY
    match_status: str = MATCH_FILTER_ALL
    match_query: str = ""
    categories: list[Category] = field(default_factory=list)
    error: str | None = None

    def category_name(self, category_id: str | None) -> str:
        for category in self.categories:
            if category.id == category_id:
                return category.name
        return ""
