"""Metric calculation for the four dashboard groups.

Most metrics are still fixed defaults (``status="default"``). Metrics backed
by a single question whose answers share the metric's scale are aggregated
from validated answers when any exist and are marked ``status="computed"``.
"""

from collections import Counter
from typing import Any, List, Optional, Sequence

from survey_insights.schemas.analytics import (
    AllMetrics,
    CollaborationMetrics,
    MetricWithSource,
    ProcessMetrics,
    SystemMetrics,
    TimeMetrics,
    Trend,
    ValidatedResponses,
)
from survey_insights.services.confidence_service import calculate_confidence
from survey_insights.services.data_service import extract_numeric_value
from survey_insights.utils.helpers import round_half_up

STABLE_TREND = Trend(direction="stable", change=0, period="30 days")

DEFAULT_CRITICAL_WORKAROUNDS = [
    "Manual data entry for lead scoring",
    "Spreadsheet for tracking document collection",
    "Email searches for applicant history",
]


def _value_type(value: Any) -> Any:
    if isinstance(value, list):
        return List[str]
    if isinstance(value, str):
        return str
    return float


def _response_count(responses: Optional[ValidatedResponses]) -> int:
    return responses.valid_count if responses is not None else 0


def _metric(
    value: Any,
    source_questions: Sequence[int],
    responses: Optional[ValidatedResponses],
    *,
    trend: Optional[Trend] = None,
    computed: bool = False,
) -> MetricWithSource:
    return MetricWithSource[_value_type(value)](
        value=value,
        source_questions=list(source_questions),
        response_count=_response_count(responses),
        confidence=calculate_confidence(responses, source_questions),
        trend=trend,
        status="computed" if computed else "default",
    )


def _answers_for(responses: Optional[ValidatedResponses], question_id: int) -> List[Any]:
    if responses is None:
        return []
    return [
        answer
        for response in responses.responses
        for answer in response.answers
        if answer.question_id == question_id
    ]


def _numeric_metric(
    responses: Optional[ValidatedResponses],
    question_id: int,
    default: float,
) -> MetricWithSource:
    values = []
    for answer in _answers_for(responses, question_id):
        value = answer.answer_numeric
        if value is None:
            value = extract_numeric_value(answer.answer_value)
        if value is not None:
            values.append(float(value))
    if not values:
        return _metric(default, [question_id], responses)
    return _metric(round_half_up(sum(values) / len(values), 1), [question_id], responses, computed=True)


def _most_common_choice(
    responses: Optional[ValidatedResponses],
    question_id: int,
    default: str,
) -> MetricWithSource:
    choices = [
        str(answer.answer_value).strip()
        for answer in _answers_for(responses, question_id)
        if str(answer.answer_value or "").strip()
    ]
    if not choices:
        return _metric(default, [question_id], responses)
    # Counter.most_common keeps first-seen order on ties.
    return _metric(Counter(choices).most_common(1)[0][0], [question_id], responses, computed=True)


def _distinct_texts(
    responses: Optional[ValidatedResponses],
    question_id: int,
    default: List[str],
) -> MetricWithSource:
    texts: List[str] = []
    for answer in _answers_for(responses, question_id):
        text = str(answer.answer_text or answer.answer_value or "").strip()
        if text and text not in texts:
            texts.append(text)
    if not texts:
        return _metric(list(default), [question_id], responses)
    return _metric(texts, [question_id], responses, computed=True)


def calculate_time_efficiency_score(admin_time: float, sales_time: float, strategic_time: float) -> float:
    """Sales share of admin+sales time, boosted by strategic time, on a 0-10 scale."""
    total = admin_time + sales_time
    if total <= 0:
        return 0.0
    ratio = sales_time / total
    if strategic_time > 0:
        ratio = ratio * (1 + strategic_time / 100)
    return min(10.0, round_half_up(ratio * 10 * 10) / 10)


def calculate_time_metrics(responses: Optional[ValidatedResponses]) -> TimeMetrics:
    admin_time = _metric(45, [172, 248], responses, trend=STABLE_TREND)
    sales_time = _metric(35, [172, 248], responses, trend=STABLE_TREND)
    strategic_time = _metric(20, [57], responses, trend=STABLE_TREND)
    system_problem_time = _metric(
        25, [57, 131], responses, trend=Trend(direction="declining", change=5, period="30 days")
    )
    time_efficiency_score = _metric(
        calculate_time_efficiency_score(admin_time.value, sales_time.value, strategic_time.value),
        [172, 248, 57],
        responses,
        computed=True,
    )
    return TimeMetrics(
        admin_time=admin_time,
        sales_time=sales_time,
        strategic_time=strategic_time,
        system_problem_time=system_problem_time,
        time_efficiency_score=time_efficiency_score,
    )


def calculate_system_metrics(responses: Optional[ValidatedResponses]) -> SystemMetrics:
    return SystemMetrics(
        tool_count=_numeric_metric(responses, 218, 6.2),
        login_fragmentation=_numeric_metric(responses, 258, 3.5),
        workaround_prevalence=_metric(4.2, [131, 290], responses),
        critical_workarounds=_distinct_texts(responses, 141, DEFAULT_CRITICAL_WORKAROUNDS),
        overall_complexity_score=_metric(6.5, [218, 258, 131, 290], responses),
    )


def calculate_collaboration_metrics(responses: Optional[ValidatedResponses]) -> CollaborationMetrics:
    return CollaborationMetrics(
        information_sharing_quality=_metric(7.2, [322], responses),
        handoff_effectiveness=_metric(5.8, [332], responses),
        communication_gap=_metric(3.5, [342, 354], responses),
        pipeline_review_frequency=_numeric_metric(responses, 354, 2.5),
        overall_collaboration_score=_metric(6.8, [322, 332, 342, 354], responses),
    )


def calculate_process_metrics(responses: Optional[ValidatedResponses]) -> ProcessMetrics:
    return ProcessMetrics(
        lead_loss_frequency=_numeric_metric(responses, 161, 25),
        primary_loss_stage=_most_common_choice(responses, 364, "Document Collection"),
        lead_tracking_confidence=_metric(5.5, [270], responses),
        data_access_time=_numeric_metric(responses, 310, 8.5),
        overall_bottleneck_score=_metric(7.2, [161, 364, 270, 310], responses),
    )


def calculate_all_metrics(responses: Optional[ValidatedResponses]) -> AllMetrics:
    return AllMetrics(
        time=calculate_time_metrics(responses),
        system=calculate_system_metrics(responses),
        collaboration=calculate_collaboration_metrics(responses),
        process=calculate_process_metrics(responses),
    )
