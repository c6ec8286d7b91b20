"""Threshold rules that turn metrics into insights."""

import math
from typing import List

from survey_insights.schemas.analytics import (
    AllMetrics,
    CollaborationMetrics,
    Insight,
    InsightsByCategory,
    ProcessMetrics,
    SystemMetrics,
    TimeMetrics,
)


def generate_time_insights(metrics: TimeMetrics) -> List[Insight]:
    insights: List[Insight] = []
    admin = metrics.admin_time
    if admin.value > 40:
        insights.append(Insight(
            id="high-admin-time",
            title="High Administrative Time Burden",
            description=(
                f"Staff spend {admin.value:.0f}% of time on administrative tasks, "
                "which is significantly above the optimal range (20-30%)"
            ),
            severity="warning",
            source_metrics=["adminTime"],
            confidence=admin.confidence.score,
        ))
    elif admin.value < 20:
        insights.append(Insight(
            id="low-admin-time",
            title="Excellent Administrative Efficiency",
            description=(
                f"Staff spend only {admin.value:.0f}% of time on administrative tasks, "
                "which is within the optimal range"
            ),
            severity="positive",
            source_metrics=["adminTime"],
            confidence=admin.confidence.score,
        ))

    strategic = metrics.strategic_time
    system_problem = metrics.system_problem_time
    if strategic.value < 20 and system_problem.value > 30:
        insights.append(Insight(
            id="low-strategic-time",
            title="Low Strategic Planning Time",
            description=(
                "Managers spend significantly more time addressing system problems "
                "than on strategic planning"
            ),
            severity="critical",
            source_metrics=["strategicTime", "systemProblemTime"],
            confidence=min(strategic.confidence.score, system_problem.confidence.score),
        ))

    sales = metrics.sales_time
    if admin.value > 0 or sales.value > 0:
        ratio = sales.value / admin.value if admin.value > 0 else math.inf
        ratio_text = f"{ratio:.1f}:1" if math.isfinite(ratio) else "no administrative time"
        confidence = min(sales.confidence.score, admin.confidence.score)
        if ratio < 0.8:
            insights.append(Insight(
                id="poor-time-allocation",
                title="Poor Time Allocation Balance",
                description=(
                    "Staff spend more time on administrative tasks than core sales activities "
                    f"(ratio: {ratio_text})"
                ),
                severity="warning",
                source_metrics=["salesTime", "adminTime"],
                confidence=confidence,
            ))
        elif ratio > 2:
            insights.append(Insight(
                id="excellent-time-allocation",
                title="Excellent Time Allocation Balance",
                description=(
                    "Staff spend significantly more time on core sales activities than "
                    f"administrative tasks (ratio: {ratio_text})"
                ),
                severity="positive",
                source_metrics=["salesTime", "adminTime"],
                confidence=confidence,
            ))

    efficiency = metrics.time_efficiency_score
    if efficiency.value < 5:
        insights.append(Insight(
            id="low-time-efficiency",
            title="Low Overall Time Efficiency",
            description=(
                f"The overall time efficiency score of {efficiency.value:.1f}/10 indicates "
                "significant opportunities for process improvement"
            ),
            severity="critical",
            source_metrics=["timeEfficiencyScore"],
            confidence=efficiency.confidence.score,
        ))
    elif efficiency.value >= 8:
        insights.append(Insight(
            id="high-time-efficiency",
            title="High Overall Time Efficiency",
            description=(
                f"The overall time efficiency score of {efficiency.value:.1f}/10 indicates "
                "excellent process optimization"
            ),
            severity="positive",
            source_metrics=["timeEfficiencyScore"],
            confidence=efficiency.confidence.score,
        ))
    return insights


def generate_system_insights(metrics: SystemMetrics) -> List[Insight]:
    insights: List[Insight] = []
    tools = metrics.tool_count
    if tools.value > 5:
        insights.append(Insight(
            id="high-tool-count",
            title="Excessive Tool Count",
            description=(
                f"Staff use {tools.value:.1f} different tools on average, "
                "which is above the recommended maximum of 5"
            ),
            severity="warning",
            source_metrics=["toolCount"],
            confidence=tools.confidence.score,
        ))

    logins = metrics.login_fragmentation
    if logins.value > 3:
        insights.append(Insight(
            id="high-login-fragmentation",
            title="Multiple Login Requirements",
            description=(
                f"Staff must log into {logins.value:.1f} different systems on average, "
                "creating friction in workflows"
            ),
            severity="warning",
            source_metrics=["loginFragmentation"],
            confidence=logins.confidence.score,
        ))

    workarounds = metrics.workaround_prevalence
    if workarounds.value > 3:
        insights.append(Insight(
            id="high-workaround-prevalence",
            title="High Reliance on Workarounds",
            description="Staff frequently use workarounds to compensate for system limitations",
            severity="critical",
            source_metrics=["workaroundPrevalence"],
            confidence=workarounds.confidence.score,
        ))

    critical = metrics.critical_workarounds
    if critical.value:
        insights.append(Insight(
            id="critical-workarounds-identified",
            title="Critical Workarounds Identified",
            description=(
                f"{len(critical.value)} critical workarounds were identified, "
                f"including: {', '.join(critical.value)}"
            ),
            severity="critical",
            source_metrics=["criticalWorkarounds"],
            confidence=critical.confidence.score,
        ))

    complexity = metrics.overall_complexity_score
    if complexity.value > 6:
        insights.append(Insight(
            id="high-system-complexity",
            title="High Overall System Complexity",
            description=(
                f"The system complexity score of {complexity.value:.1f}/10 indicates "
                "significant opportunities for simplification"
            ),
            severity="warning",
            source_metrics=["overallComplexityScore"],
            confidence=complexity.confidence.score,
        ))
    elif complexity.value <= 3:
        insights.append(Insight(
            id="low-system-complexity",
            title="Excellent System Simplicity",
            description=(
                f"The system complexity score of {complexity.value:.1f}/10 indicates "
                "a well-optimized system architecture"
            ),
            severity="positive",
            source_metrics=["overallComplexityScore"],
            confidence=complexity.confidence.score,
        ))
    return insights


def generate_collaboration_insights(metrics: CollaborationMetrics) -> List[Insight]:
    insights: List[Insight] = []
    sharing = metrics.information_sharing_quality
    if sharing.value < 6:
        insights.append(Insight(
            id="poor-information-sharing",
            title="Poor Information Sharing",
            description=(
                f"Information sharing quality score of {sharing.value:.1f}/10 indicates "
                "significant communication barriers"
            ),
            severity="critical",
            source_metrics=["informationSharingQuality"],
            confidence=sharing.confidence.score,
        ))
    elif sharing.value >= 8:
        insights.append(Insight(
            id="excellent-information-sharing",
            title="Excellent Information Sharing",
            description=(
                f"Information sharing quality score of {sharing.value:.1f}/10 indicates "
                "strong team communication"
            ),
            severity="positive",
            source_metrics=["informationSharingQuality"],
            confidence=sharing.confidence.score,
        ))

    handoffs = metrics.handoff_effectiveness
    if handoffs.value < 6:
        insights.append(Insight(
            id="poor-handoff-effectiveness",
            title="Poor Process Handoffs",
            description=(
                f"Handoff effectiveness score of {handoffs.value:.1f}/10 indicates "
                "significant friction in process transitions"
            ),
            severity="warning",
            source_metrics=["handoffEffectiveness"],
            confidence=handoffs.confidence.score,
        ))

    gap = metrics.communication_gap
    if gap.value > 5:
        insights.append(Insight(
            id="large-communication-gap",
            title="Large Communication Gap",
            description=(
                f"Communication gap score of {gap.value:.1f}/10 indicates "
                "misalignment between team members"
            ),
            severity="critical",
            source_metrics=["communicationGap"],
            confidence=gap.confidence.score,
        ))

    reviews = metrics.pipeline_review_frequency
    if reviews.value < 2:
        insights.append(Insight(
            id="infrequent-pipeline-reviews",
            title="Infrequent Pipeline Reviews",
            description=(
                f"Pipeline reviews occur only {reviews.value:.1f} times per month, "
                "which is below the recommended minimum of 2"
            ),
            severity="warning",
            source_metrics=["pipelineReviewFrequency"],
            confidence=reviews.confidence.score,
        ))
    elif reviews.value >= 4:
        insights.append(Insight(
            id="frequent-pipeline-reviews",
            title="Frequent Pipeline Reviews",
            description=(
                f"Pipeline reviews occur {reviews.value:.1f} times per month, "
                "which indicates strong management engagement"
            ),
            severity="positive",
            source_metrics=["pipelineReviewFrequency"],
            confidence=reviews.confidence.score,
        ))

    overall = metrics.overall_collaboration_score
    if overall.value < 6:
        insights.append(Insight(
            id="poor-team-collaboration",
            title="Poor Overall Team Collaboration",
            description=(
                f"The overall collaboration score of {overall.value:.1f}/10 indicates "
                "significant team alignment issues"
            ),
            severity="critical",
            source_metrics=["overallCollaborationScore"],
            confidence=overall.confidence.score,
        ))
    elif overall.value >= 8:
        insights.append(Insight(
            id="excellent-team-collaboration",
            title="Excellent Team Collaboration",
            description=(
                f"The overall collaboration score of {overall.value:.1f}/10 indicates "
                "strong team cohesion"
            ),
            severity="positive",
            source_metrics=["overallCollaborationScore"],
            confidence=overall.confidence.score,
        ))
    return insights


def generate_process_insights(metrics: ProcessMetrics) -> List[Insight]:
    insights: List[Insight] = []
    lead_loss = metrics.lead_loss_frequency
    if lead_loss.value > 20:
        insights.append(Insight(
            id="high-lead-loss",
            title="High Lead Loss Rate",
            description=(
                f"{lead_loss.value:.0f}% of leads are lost during the application process, "
                "which is above the acceptable threshold"
            ),
            severity="critical",
            source_metrics=["leadLossFrequency"],
            confidence=lead_loss.confidence.score,
        ))
    elif lead_loss.value <= 10:
        insights.append(Insight(
            id="low-lead-loss",
            title="Excellent Lead Retention",
            description=(
                f"Only {lead_loss.value:.0f}% of leads are lost during the application process, "
                "which is below the industry average"
            ),
            severity="positive",
            source_metrics=["leadLossFrequency"],
            confidence=lead_loss.confidence.score,
        ))

    stage = metrics.primary_loss_stage
    insights.append(Insight(
        id="primary-loss-stage",
        title="Primary Lead Loss Stage Identified",
        description=f'The "{stage.value}" stage accounts for the highest percentage of lead losses',
        severity="warning",
        source_metrics=["primaryLossStage"],
        confidence=stage.confidence.score,
    ))

    tracking = metrics.lead_tracking_confidence
    if tracking.value < 6:
        insights.append(Insight(
            id="low-lead-tracking-confidence",
            title="Low Lead Tracking Confidence",
            description=(
                f"Lead tracking confidence score of {tracking.value:.1f}/10 indicates "
                "uncertainty in pipeline visibility"
            ),
            severity="warning",
            source_metrics=["leadTrackingConfidence"],
            confidence=tracking.confidence.score,
        ))

    access = metrics.data_access_time
    if access.value > 5:
        insights.append(Insight(
            id="slow-data-access",
            title="Slow Data Access",
            description=(
                f"Staff spend an average of {access.value:.1f} minutes accessing required data, "
                "which creates process friction"
            ),
            severity="warning",
            source_metrics=["dataAccessTime"],
            confidence=access.confidence.score,
        ))
    elif access.value <= 2:
        insights.append(Insight(
            id="fast-data-access",
            title="Excellent Data Access Speed",
            description=(
                f"Staff spend an average of only {access.value:.1f} minutes accessing required data, "
                "which indicates efficient information systems"
            ),
            severity="positive",
            source_metrics=["dataAccessTime"],
            confidence=access.confidence.score,
        ))

    bottleneck = metrics.overall_bottleneck_score
    if bottleneck.value > 6:
        insights.append(Insight(
            id="significant-process-bottlenecks",
            title="Significant Process Bottlenecks",
            description=(
                f"The overall bottleneck score of {bottleneck.value:.1f}/10 indicates "
                "major process flow issues"
            ),
            severity="critical",
            source_metrics=["overallBottleneckScore"],
            confidence=bottleneck.confidence.score,
        ))
    elif bottleneck.value <= 3:
        insights.append(Insight(
            id="minimal-process-bottlenecks",
            title="Minimal Process Bottlenecks",
            description=(
                f"The overall bottleneck score of {bottleneck.value:.1f}/10 indicates "
                "smooth process flows"
            ),
            severity="positive",
            source_metrics=["overallBottleneckScore"],
            confidence=bottleneck.confidence.score,
        ))
    return insights


def generate_all_insights(metrics: AllMetrics) -> InsightsByCategory:
    return InsightsByCategory(
        time=generate_time_insights(metrics.time),
        system=generate_system_insights(metrics.system),
        collaboration=generate_collaboration_insights(metrics.collaboration),
        process=generate_process_insights(metrics.process),
    )
