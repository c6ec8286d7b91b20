"""Analytics pipeline types: responses, metrics, insights and recommendations."""

from datetime import datetime
from typing import Generic, List, Literal, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")

Severity = Literal["info", "warning", "critical", "positive"]
ConfidenceLevel = Literal["high", "medium", "low"]
Magnitude = Literal["high", "medium", "low"]
EffortLevel = Literal["quick-win", "medium", "significant"]
MetricStatus = Literal["computed", "default"]


class AnswerRecord(BaseModel):
    question_id: int
    answer_value: Optional[str] = None
    answer_numeric: Optional[float] = None
    answer_text: Optional[str] = None


class ResponseRecord(BaseModel):
    id: Optional[int] = None
    survey_id: Optional[int] = None
    user_id: Optional[int] = None
    role: Optional[str] = None
    completed_at: Optional[datetime] = None
    answers: List[AnswerRecord] = Field(default_factory=list)


class ValidatedResponses(BaseModel):
    responses: List[ResponseRecord] = Field(default_factory=list)
    valid_count: int = 0
    invalid_count: int = 0
    validation_issues: List[str] = Field(default_factory=list)


class QuestionMetadata(BaseModel):
    id: int
    section: str
    text: str
    type: str
    options: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)


class QuestionGroup(BaseModel):
    question_id: int
    metadata: QuestionMetadata
    answers: List[AnswerRecord] = Field(default_factory=list)


class ConfidenceScore(BaseModel):
    score: float
    response_count: int
    question_count: int
    distribution_quality: float


class Confidence(BaseModel):
    score: float = Field(ge=0, le=1)
    level: ConfidenceLevel
    factors: List[str] = Field(default_factory=list)


class Trend(BaseModel):
    direction: Literal["increasing", "decreasing", "declining", "stable"]
    change: float
    period: str


class MetricWithSource(BaseModel, Generic[T]):
    value: T
    source_questions: List[int] = Field(min_length=1)
    response_count: int
    confidence: Confidence
    trend: Optional[Trend] = None
    # "default" marks a placeholder value that was not aggregated from answers.
    status: MetricStatus = "default"


class TimeMetrics(BaseModel):
    admin_time: MetricWithSource[float]
    sales_time: MetricWithSource[float]
    strategic_time: MetricWithSource[float]
    system_problem_time: MetricWithSource[float]
    time_efficiency_score: MetricWithSource[float]


class SystemMetrics(BaseModel):
    tool_count: MetricWithSource[float]
    login_fragmentation: MetricWithSource[float]
    workaround_prevalence: MetricWithSource[float]
    critical_workarounds: MetricWithSource[List[str]]
    overall_complexity_score: MetricWithSource[float]


class CollaborationMetrics(BaseModel):
    information_sharing_quality: MetricWithSource[float]
    handoff_effectiveness: MetricWithSource[float]
    communication_gap: MetricWithSource[float]
    pipeline_review_frequency: MetricWithSource[float]
    overall_collaboration_score: MetricWithSource[float]


class ProcessMetrics(BaseModel):
    lead_loss_frequency: MetricWithSource[float]
    primary_loss_stage: MetricWithSource[str]
    lead_tracking_confidence: MetricWithSource[float]
    data_access_time: MetricWithSource[float]
    overall_bottleneck_score: MetricWithSource[float]


class AllMetrics(BaseModel):
    time: TimeMetrics
    system: SystemMetrics
    collaboration: CollaborationMetrics
    process: ProcessMetrics


class Insight(BaseModel):
    id: str
    title: str
    description: str
    severity: Severity
    source_metrics: List[str]
    confidence: float


class InsightsByCategory(BaseModel):
    time: List[Insight] = Field(default_factory=list)
    system: List[Insight] = Field(default_factory=list)
    collaboration: List[Insight] = Field(default_factory=list)
    process: List[Insight] = Field(default_factory=list)

    def all(self) -> List[Insight]:
        return [*self.time, *self.system, *self.collaboration, *self.process]


class Impact(BaseModel):
    area: str
    magnitude: Magnitude
    description: str


class Effort(BaseModel):
    level: EffortLevel
    description: str
    time_estimate: str


class Recommendation(BaseModel):
    id: str
    title: str
    description: str
    steps: List[str]
    impact: Impact
    effort: Effort
    priority: float = 0
    source_insights: List[str]


class ImpactEstimate(BaseModel):
    area: str
    magnitude: Magnitude
    description: str
    numeric_value: float
