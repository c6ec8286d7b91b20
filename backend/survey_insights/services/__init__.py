"""Service layer package."""

from survey_insights.services import (
    auth_service,
    confidence_service,
    data_service,
    metric_service,
    insight_service,
    recommendation_service,
    analytics_service,
    survey_service,
)
