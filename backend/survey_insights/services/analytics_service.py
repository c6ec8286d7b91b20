"""Builds the dashboard payloads served by the analytics API."""

import logging
from collections import Counter
from datetime import datetime
from typing import List, Optional, Tuple

from survey_insights.errors import ApiError
from survey_insights.schemas.analytics import (
    AllMetrics,
    Insight,
    InsightsByCategory,
    Recommendation,
    ValidatedResponses,
)
from survey_insights.services import (
    data_service,
    insight_service,
    metric_service,
    recommendation_service,
)
from survey_insights.storage.base import SurveyStore
from survey_insights.utils.helpers import round_half_up

logger = logging.getLogger(__name__)

FUNNEL_STAGES = [
    "Initial Inquiry",
    "Application Started",
    "Document Collection",
    "Review Process",
    "Decision Stage",
]
# Per stage: weight applied to its share of loss-stage answers, and the count used when nobody picked it.
FUNNEL_DROP_WEIGHTS = {
    "Initial Inquiry": (30, 1),
    "Application Started": (30, 2),
    "Document Collection": (30, 3),
    "Review Process": (15, 1),
    "Decision Stage": (10, 0.5),
}
FUNNEL_TOTAL_LEADS = 1245
STAGE_LOSS_REASONS = {
    "Initial Inquiry": ("Incomplete contact information", 45),
    "Application Started": ("Document collection difficulties", 65),
    "Document Collection": ("Missing required documents", 72),
    "Review Process": ("Delayed review process", 38),
    "Decision Stage": ("Declined offers", 85),
}
LOSS_STAGE_QUESTION_ID = 364


def data_quality(valid_count: int) -> str:
    if valid_count > 20:
        return "high"
    if valid_count > 10:
        return "medium"
    return "low"


def participation_rate(total_responses: int) -> str:
    if total_responses >= 20:
        return "HIGH"
    if total_responses >= 10:
        return "MEDIUM"
    return "LOW"


def calculate_system_health(metrics: AllMetrics) -> float:
    """Weighted 0-10 health; complexity and bottlenecks count inverted."""
    time_score = metrics.time.time_efficiency_score.value
    system_score = 10 - metrics.system.overall_complexity_score.value
    team_score = metrics.collaboration.overall_collaboration_score.value
    process_score = 10 - metrics.process.overall_bottleneck_score.value
    weighted = time_score * 0.3 + system_score * 0.2 + team_score * 0.2 + process_score * 0.3
    return round_half_up(weighted * 10) / 10


def health_status(score: float) -> str:
    if score >= 7.5:
        return "Good"
    if score >= 5:
        return "Fair"
    return "Needs Attention"


def load_pipeline(store: SurveyStore) -> Tuple[ValidatedResponses, AllMetrics, InsightsByCategory]:
    validated = data_service.validate_responses(data_service.fetch_survey_data(store))
    metrics = metric_service.calculate_all_metrics(validated)
    insights = insight_service.generate_all_insights(metrics)
    return validated, metrics, insights


def _by_severity(insights: List[Insight], severity: str, limit: Optional[int] = None) -> List[Insight]:
    matched = [insight for insight in insights if insight.severity == severity]
    if limit is None:
        return matched
    return sorted(matched, key=lambda insight: insight.confidence, reverse=True)[:limit]


def _meta(role: str, validated: ValidatedResponses, **extra) -> dict:
    return {
        "last_updated": datetime.utcnow().isoformat(),
        "role": role,
        "data_quality": data_quality(validated.valid_count),
        **extra,
    }


def build_summary(store: SurveyStore, role: str) -> dict:
    stats = store.get_completion_stats()
    validated, metrics, insights = load_pipeline(store)
    every_insight = insights.all()
    health = calculate_system_health(metrics)
    return {
        "participation": {
            "total_responses": stats.total_responses,
            "participation_rate": participation_rate(stats.total_responses),
            "avg_completion_time": stats.avg_response_time,
            "manager_responses": stats.manager_responses,
            "sales_responses": stats.sales_responses,
        },
        "health": {
            "score": health,
            "status": health_status(health),
            "trend": "Stable",
        },
        "key_metrics": {
            "time": {
                "admin_time": metrics.time.admin_time.model_dump(),
                "sales_time": metrics.time.sales_time.model_dump(),
                "time_efficiency_score": metrics.time.time_efficiency_score.model_dump(),
            },
            "system": {
                "tool_count": metrics.system.tool_count.model_dump(),
                "overall_complexity_score": metrics.system.overall_complexity_score.model_dump(),
            },
            "team": {
                "information_sharing_quality": metrics.collaboration.information_sharing_quality.model_dump(),
                "overall_collaboration_score": metrics.collaboration.overall_collaboration_score.model_dump(),
            },
            "process": {
                "lead_loss_frequency": metrics.process.lead_loss_frequency.model_dump(),
                "primary_loss_stage": metrics.process.primary_loss_stage.model_dump(),
            },
        },
        "insights": {
            "critical": [i.model_dump() for i in _by_severity(every_insight, "critical")],
            "warnings": [i.model_dump() for i in _by_severity(every_insight, "warning", 3)],
            "positive": [i.model_dump() for i in _by_severity(every_insight, "positive", 2)],
        },
        "meta": _meta(role, validated),
    }


def _filter_by_area(recommendations: List[Recommendation], *keywords: str) -> List[Recommendation]:
    return [rec for rec in recommendations if any(keyword in rec.impact.area for keyword in keywords)]


def calculate_application_funnel(validated: ValidatedResponses) -> dict:
    picks = Counter(
        str(answer.answer_value or "Unknown")
        for response in validated.responses
        for answer in response.answers
        if answer.question_id == LOSS_STAGE_QUESTION_ID
    )
    total_picks = sum(picks.values()) or 10

    drops = {}
    for stage, (weight, fallback) in FUNNEL_DROP_WEIGHTS.items():
        drops[stage] = int(round_half_up((picks.get(stage) or fallback) / total_picks * weight))

    # Share of leads reaching each stage; Decision Stage losses happen after the funnel ends.
    reach = [100]
    for stage in FUNNEL_STAGES[:-1]:
        reach.append(max(0, reach[-1] - drops[stage]))

    counts = [FUNNEL_TOTAL_LEADS]
    for index in range(1, len(FUNNEL_STAGES)):
        previous = reach[index - 1]
        ratio = reach[index] / previous if previous else 0
        counts.append(int(round_half_up(counts[-1] * ratio)))

    stages = []
    for index, name in enumerate(FUNNEL_STAGES):
        count = counts[index]
        if index == 0:
            dropoff = 0
        else:
            previous_count = counts[index - 1]
            dropoff = int(round_half_up((previous_count - count) / previous_count * 100)) if previous_count else 0
        if dropoff > 30:
            severity = "high"
        elif dropoff > 15:
            severity = "medium"
        elif dropoff > 5:
            severity = "low"
        else:
            severity = "none"
        reasons = []
        if dropoff > 0:
            reason, share = STAGE_LOSS_REASONS[name]
            reasons.append({"reason": reason, "percentage": share})
        stages.append({
            "id": name.lower().replace(" ", "-"),
            "name": name,
            "count": count,
            "percentage": int(round_half_up(count / counts[0] * 100)),
            "dropoff_percentage": dropoff,
            "bottleneck_severity": severity,
            "details": {
                "top_reasons": reasons,
                "completion_rate": 100 - dropoff,
            },
        })

    conversion_rates = [
        {
            "from": FUNNEL_STAGES[index - 1],
            "to": FUNNEL_STAGES[index],
            "rate": int(round_half_up(counts[index] / counts[index - 1] * 100)) if counts[index - 1] else 0,
        }
        for index in range(1, len(FUNNEL_STAGES))
    ]
    return {
        "stages": stages,
        "conversion_rates": conversion_rates,
        "total_conversion": int(round_half_up(counts[-1] / counts[0] * 100)),
    }


def process_source_questions() -> List[int]:
    return [
        question.id
        for question in data_service.get_question_metadata()
        if question.section == "Process Bottlenecks"
        or {"process", "leads", "conversion"}.intersection(question.tags)
    ]


def build_process_view(store: SurveyStore, role: str) -> dict:
    validated, metrics, insights = load_pipeline(store)
    process_only = InsightsByCategory(process=insights.process)
    recommendations = _filter_by_area(
        recommendation_service.prioritize_recommendations(process_only),
        "Process", "Conversion", "Stage",
    )
    source_questions = process_source_questions()
    quality = data_quality(validated.valid_count)
    return {
        "metrics": metrics.process.model_dump(),
        "funnel": calculate_application_funnel(validated),
        "bottlenecks": {
            "primary_bottleneck": metrics.process.primary_loss_stage.value,
            "bottleneck_trend": "Stable",
        },
        "insights": [insight.model_dump() for insight in insights.process],
        "recommendations": [rec.model_dump() for rec in recommendations[:3]],
        "source_questions": source_questions,
        "response_count": validated.valid_count,
        "confidence_level": quality,
        "meta": _meta(role, validated, source_questions=source_questions, response_count=validated.valid_count),
    }


def build_team_view(store: SurveyStore, role: str) -> dict:
    validated, metrics, insights = load_pipeline(store)
    team_only = InsightsByCategory(collaboration=insights.collaboration)
    recommendations = _filter_by_area(
        recommendation_service.prioritize_recommendations(team_only),
        "Team", "Communication", "Collaboration",
    )
    return {
        "metrics": metrics.collaboration.model_dump(),
        "insights": [insight.model_dump() for insight in insights.collaboration],
        "recommendations": [rec.model_dump() for rec in recommendations[:3]],
        "meta": _meta(role, validated),
    }


def _with_details_url(recommendation: Recommendation) -> dict:
    return {
        **recommendation.model_dump(),
        "details_url": f"/api/analytics/recommendations?id={recommendation.id}",
    }


def build_recommendations_view(store: SurveyStore, role: str) -> dict:
    validated, _, insights = load_pipeline(store)
    recommendations = recommendation_service.filter_recommendations_by_role(
        recommendation_service.prioritize_recommendations(insights), role
    )
    grouped = recommendation_service.group_recommendations_by_category(recommendations)
    quick_wins = [
        rec for rec in recommendations
        if rec.impact.magnitude == "high" and rec.effort.level == "quick-win"
    ][:3]
    return {
        "recommendations": [_with_details_url(rec) for rec in recommendations],
        "by_category": {name: [rec.model_dump() for rec in recs] for name, recs in grouped.items()},
        "quick_wins": [rec.model_dump() for rec in quick_wins],
        "implementation": recommendation_service.calculate_implementation_metrics(recommendations),
        "focus_areas": recommendation_service.get_focus_areas_by_role(role),
        "meta": _meta(role, validated, total_recommendations=len(recommendations)),
    }


def build_recommendation_detail(store: SurveyStore, rec_id: str, role: str) -> dict:
    _, _, insights = load_pipeline(store)
    recommendations = recommendation_service.prioritize_recommendations(insights)
    detail = recommendation_service.get_recommendation_details(rec_id, role, recommendations, insights)
    if detail is None:
        raise ApiError(404, "Recommendation not found")
    return detail
