"""Recommendation templates, priority scoring and role-facing views."""

import math
import re
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional

from survey_insights.schemas.analytics import (
    Effort,
    Impact,
    ImpactEstimate,
    Insight,
    InsightsByCategory,
    Recommendation,
)
from survey_insights.utils.helpers import clamp, round_half_up

SEVERITY_WEIGHTS = {"critical": 1.5, "warning": 0.75, "info": 0.25}
MAGNITUDE_WEIGHTS = {"high": 1.5, "medium": 0.75, "low": 0.25}
EFFORT_ADJUSTMENTS = {"quick-win": 1.0, "significant": -0.5}

# Midpoints of the magnitude ranges high 8-10, medium 5-8, low 2-5.
IMPACT_VALUES = {"high": 9.0, "medium": 6.5, "low": 3.5}

AREA_ENHANCEMENTS = {
    "Time Allocation": "This would free up staff time for higher-value activities and improve overall productivity.",
    "Management Effectiveness": "This would improve strategic direction and long-term planning capabilities.",
    "Productivity": "This would directly improve key performance metrics and staff satisfaction.",
    "System Efficiency": "This would reduce system complexity and maintenance costs.",
    "User Experience": "This would improve staff satisfaction and reduce training requirements.",
    "Process Efficiency": "This would streamline operations and reduce errors.",
    "Team Collaboration": "This would improve information flow and reduce communication gaps.",
    "Process Continuity": "This would reduce errors during handoffs and improve accountability.",
    "Management Oversight": "This would improve decision-making and resource allocation.",
    "Conversion Rate": "This would directly impact revenue and growth metrics.",
    "Stage Conversion": "This would address a critical bottleneck in the application process.",
    "Pipeline Visibility": "This would improve forecasting accuracy and resource planning.",
    "Operational Efficiency": "This would improve daily productivity across all team members.",
}
DEFAULT_AREA_ENHANCEMENT = "This would improve overall system performance."

ROI_INDICATIONS = {
    "high": "Expected ROI is significant, with benefits likely to exceed implementation costs by 3-5x.",
    "medium": "Expected ROI is positive, with benefits likely to exceed implementation costs by 2-3x.",
    "low": "Expected ROI is moderate, with benefits likely to match implementation costs.",
}

# First matching keyword wins.
STEP_DETAILS = [
    ("Document", "Gather input from all stakeholders and create a comprehensive inventory"),
    ("Identify", "Use data-driven analysis to find the highest-impact opportunities"),
    ("Implement", "Create a phased implementation plan with clear success metrics"),
    ("Configure", "Ensure all settings are optimized for the specific workflow"),
    ("Create", "Design with user experience as the primary consideration"),
]
DEFAULT_STEP_DETAIL = "Ensure alignment with organizational goals and measure outcomes"

_QUOTED_RE = re.compile(r'"([^"]+)"')


def _recommendation(
    rec_id: str,
    title: str,
    description: str,
    steps: List[str],
    impact: tuple,
    effort: tuple,
    priority: float,
    source_insights: List[str],
) -> Recommendation:
    area, magnitude, impact_description = impact
    level, effort_description, time_estimate = effort
    return Recommendation(
        id=rec_id,
        title=title,
        description=description,
        steps=steps,
        impact=Impact(area=area, magnitude=magnitude, description=impact_description),
        effort=Effort(level=level, description=effort_description, time_estimate=time_estimate),
        priority=priority,
        source_insights=source_insights,
    )


def _has(insights: Iterable[Insight], *insight_ids: str) -> bool:
    return any(insight.id in insight_ids for insight in insights)


def generate_time_recommendations(insights: List[Insight]) -> List[Recommendation]:
    recommendations = []
    if _has(insights, "high-admin-time"):
        recommendations.append(_recommendation(
            "reduce-admin-time",
            "Reduce Administrative Burden",
            "Implement automation for repetitive administrative tasks to reduce time burden",
            [
                "Document most time-consuming administrative processes",
                "Identify automation opportunities in each process",
                "Implement templates and standardized workflows",
                "Configure automated reminders and notifications",
            ],
            ("Time Allocation", "high", "Could reduce administrative time by 15-20%"),
            ("medium", "2-4 weeks with IT resources", "2-4 weeks"),
            8,
            ["high-admin-time"],
        ))
    if _has(insights, "low-strategic-time"):
        recommendations.append(_recommendation(
            "increase-strategic-time",
            "Increase Strategic Planning Time",
            "Allocate dedicated time for strategic planning and process improvement",
            [
                "Schedule regular strategic planning sessions",
                "Delegate system problem resolution to appropriate team members",
                "Create decision-making framework for prioritizing system issues",
                "Implement strategic planning templates and processes",
            ],
            ("Management Effectiveness", "high", "Could increase strategic planning time by 10-15%"),
            ("quick-win", "Primarily requires scheduling changes", "1-2 weeks"),
            7,
            ["low-strategic-time"],
        ))
    if _has(insights, "poor-time-allocation"):
        recommendations.append(_recommendation(
            "optimize-time-allocation",
            "Optimize Time Allocation Balance",
            "Rebalance time allocation to focus more on core sales activities",
            [
                "Audit daily activities and identify administrative time sinks",
                "Create standard operating procedures for common tasks",
                "Implement time tracking for key activities",
                "Train staff on time management techniques",
            ],
            ("Productivity", "high", "Could improve sales/admin time ratio by 30-40%"),
            ("medium", "Requires process changes and training", "3-4 weeks"),
            9,
            ["poor-time-allocation"],
        ))
    return recommendations


def generate_system_recommendations(insights: List[Insight]) -> List[Recommendation]:
    recommendations = []
    if _has(insights, "high-tool-count"):
        recommendations.append(_recommendation(
            "consolidate-tools",
            "Consolidate System Tools",
            "Reduce the number of separate tools by consolidating functionality",
            [
                "Create comprehensive tool inventory",
                "Map functionality overlap between tools",
                "Identify primary systems for key functions",
                "Create migration plan for consolidated system",
            ],
            ("System Efficiency", "high", "Could reduce tool count by 20-30%"),
            ("significant", "Requires system integration work", "2-3 months"),
            7,
            ["high-tool-count"],
        ))
    if _has(insights, "high-login-fragmentation"):
        recommendations.append(_recommendation(
            "implement-sso",
            "Implement Single Sign-On",
            "Reduce login friction by implementing single sign-on across systems",
            [
                "Inventory all systems requiring separate authentication",
                "Select SSO provider compatible with existing systems",
                "Implement authentication service integration",
                "Roll out SSO solution with user training",
            ],
            ("User Experience", "medium", "Could save 5-10 minutes per user per day"),
            ("medium", "Requires IT resources for implementation", "4-6 weeks"),
            6,
            ["high-login-fragmentation"],
        ))
    if _has(insights, "high-workaround-prevalence", "critical-workarounds-identified"):
        recommendations.append(_recommendation(
            "address-workarounds",
            "Address Critical Workarounds",
            "Implement system improvements to eliminate the need for common workarounds",
            [
                "Document all current workarounds and their root causes",
                "Prioritize workarounds based on frequency and impact",
                "Develop system enhancements to address top workarounds",
                "Create transition plan to new processes",
            ],
            ("Process Efficiency", "high", "Could eliminate 70-80% of workarounds"),
            ("significant", "Requires system development and process changes", "2-3 months"),
            8,
            ["high-workaround-prevalence", "critical-workarounds-identified"],
        ))
    return recommendations


def generate_collaboration_recommendations(insights: List[Insight]) -> List[Recommendation]:
    recommendations = []
    if _has(insights, "poor-information-sharing"):
        recommendations.append(_recommendation(
            "improve-information-sharing",
            "Improve Information Sharing",
            "Implement structured information sharing processes and tools",
            [
                "Create centralized information repository",
                "Define standard information sharing protocols",
                "Implement regular team knowledge sharing sessions",
                "Create role-specific dashboards for key information",
            ],
            ("Team Collaboration", "high", "Could improve information sharing quality by 30-40%"),
            ("medium", "Requires process changes and tool configuration", "4-6 weeks"),
            8,
            ["poor-information-sharing"],
        ))
    if _has(insights, "poor-handoff-effectiveness"):
        recommendations.append(_recommendation(
            "standardize-handoffs",
            "Standardize Process Handoffs",
            "Create structured handoff processes between team members and stages",
            [
                "Document current handoff processes and pain points",
                "Create standardized handoff templates for each transition",
                "Implement handoff checklists in workflow",
                "Train team on new handoff protocols",
            ],
            ("Process Continuity", "medium", "Could improve handoff effectiveness by 25-35%"),
            ("quick-win", "Primarily requires process standardization", "2-3 weeks"),
            7,
            ["poor-handoff-effectiveness"],
        ))
    if _has(insights, "infrequent-pipeline-reviews"):
        recommendations.append(_recommendation(
            "increase-pipeline-reviews",
            "Increase Pipeline Review Frequency",
            "Implement more frequent and structured pipeline reviews",
            [
                "Schedule regular pipeline review sessions",
                "Create standardized pipeline review template",
                "Define clear action items from each review",
                "Implement follow-up tracking system",
            ],
            ("Management Oversight", "medium", "Could improve pipeline visibility and management"),
            ("quick-win", "Primarily requires scheduling changes", "1-2 weeks"),
            6,
            ["infrequent-pipeline-reviews"],
        ))
    return recommendations


def _stage_name(insights: List[Insight]) -> str:
    for insight in insights:
        if insight.id == "primary-loss-stage":
            match = _QUOTED_RE.search(insight.description)
            if match:
                return match.group(1)
    return "identified stage"


def generate_process_recommendations(insights: List[Insight]) -> List[Recommendation]:
    recommendations = []
    if _has(insights, "high-lead-loss"):
        recommendations.append(_recommendation(
            "reduce-lead-loss",
            "Reduce Lead Loss Rate",
            "Implement processes to reduce lead losses during the application process",
            [
                "Analyze detailed lead loss reasons",
                "Create stage-specific retention strategies",
                "Implement lead nurturing automation",
                "Define service level agreements for follow-up",
            ],
            ("Conversion Rate", "high", "Could reduce lead loss rate by 20-30%"),
            ("medium", "Requires process changes and automation", "4-6 weeks"),
            9,
            ["high-lead-loss"],
        ))
    if _has(insights, "primary-loss-stage"):
        stage = _stage_name(insights)
        recommendations.append(_recommendation(
            "optimize-loss-stage",
            f"Optimize {stage} Stage",
            f"Improve processes specifically in the {stage} stage to reduce lead losses",
            [
                f"Document detailed {stage} stage workflow",
                "Identify specific friction points in the process",
                "Implement targeted improvements for key friction points",
                "Create tracking metrics for stage-specific performance",
            ],
            ("Stage Conversion", "high", f"Could reduce losses in {stage} stage by 30-40%"),
            ("medium", "Requires focused process improvements", "3-4 weeks"),
            8,
            ["primary-loss-stage"],
        ))
    if _has(insights, "low-lead-tracking-confidence"):
        recommendations.append(_recommendation(
            "improve-lead-tracking",
            "Improve Lead Tracking Visibility",
            "Enhance lead tracking systems to improve pipeline visibility",
            [
                "Audit current lead tracking process and gaps",
                "Implement standardized lead status definitions",
                "Create comprehensive lead tracking dashboard",
                "Train team on consistent tracking procedures",
            ],
            ("Pipeline Visibility", "medium", "Could improve lead tracking confidence by 30-40%"),
            ("medium", "Requires system and process changes", "4-5 weeks"),
            7,
            ["low-lead-tracking-confidence"],
        ))
    if _has(insights, "slow-data-access"):
        recommendations.append(_recommendation(
            "improve-data-access",
            "Improve Data Access Speed",
            "Optimize data access systems to reduce time spent searching for information",
            [
                "Identify most frequently accessed data types",
                "Create role-specific quick access interfaces",
                "Implement search optimization and indexing",
                "Create favorite/recent items functionality",
            ],
            ("Operational Efficiency", "medium", "Could reduce data access time by 40-60%"),
            ("medium", "Requires interface and system optimization", "4-6 weeks"),
            6,
            ["slow-data-access"],
        ))
    return recommendations


def get_source_insights(insight_ids: Iterable[str], insights: InsightsByCategory) -> List[Insight]:
    wanted = set(insight_ids)
    return [insight for insight in insights.all() if insight.id in wanted]


def calculate_priority_score(source_insights: List[Insight], recommendation: Recommendation) -> float:
    score = 5.0
    for insight in source_insights:
        score += SEVERITY_WEIGHTS.get(insight.severity, 0)
    avg_confidence = sum(insight.confidence for insight in source_insights) / (len(source_insights) or 1)
    score = score * (0.75 + avg_confidence * 0.5)
    score += MAGNITUDE_WEIGHTS.get(recommendation.impact.magnitude, 0)
    score += EFFORT_ADJUSTMENTS.get(recommendation.effort.level, 0)
    return clamp(round_half_up(score * 10) / 10, 1, 10)


def prioritize_recommendations(insights: InsightsByCategory) -> List[Recommendation]:
    recommendations = [
        *generate_time_recommendations(insights.time),
        *generate_system_recommendations(insights.system),
        *generate_collaboration_recommendations(insights.collaboration),
        *generate_process_recommendations(insights.process),
    ]
    scored = [
        recommendation.model_copy(update={
            "priority": calculate_priority_score(
                get_source_insights(recommendation.source_insights, insights), recommendation
            ),
        })
        for recommendation in recommendations
    ]
    # sorted() is stable, so equal priorities keep template order.
    return sorted(scored, key=lambda rec: rec.priority, reverse=True)


def generate_action_steps(recommendation: Recommendation) -> List[str]:
    detailed = []
    for step in recommendation.steps:
        detail = next((text for keyword, text in STEP_DETAILS if keyword in step), DEFAULT_STEP_DETAIL)
        detailed.append(f"{step} - {detail}")
    return detailed


def enhance_impact_description(description: str, area: str, magnitude: str) -> str:
    enhancement = AREA_ENHANCEMENTS.get(area, DEFAULT_AREA_ENHANCEMENT)
    return f"{description}. {enhancement} {ROI_INDICATIONS.get(magnitude, ROI_INDICATIONS['low'])}"


def estimate_impact(recommendation: Recommendation) -> ImpactEstimate:
    impact = recommendation.impact
    return ImpactEstimate(
        area=impact.area,
        magnitude=impact.magnitude,
        description=enhance_impact_description(impact.description, impact.area, impact.magnitude),
        numeric_value=IMPACT_VALUES[impact.magnitude],
    )


def filter_recommendations_by_role(recommendations: List[Recommendation], role: str) -> List[Recommendation]:
    if role == "coordinator":
        keywords = ("Team", "Communication", "Process", "Conversion", "Pipeline")
        return [
            rec for rec in recommendations
            if any(keyword in rec.impact.area for keyword in keywords) or rec.impact.magnitude == "high"
        ]
    if role == "assessor":
        return [
            rec for rec in recommendations
            if "Management" not in rec.impact.area
            and "Strategic" not in rec.impact.area
            and (rec.effort.level == "quick-win" or rec.priority >= 7)
        ]
    return list(recommendations)


def group_recommendations_by_category(recommendations: List[Recommendation]) -> Dict[str, List[Recommendation]]:
    groups: Dict[str, List[Recommendation]] = {
        "Time Allocation": [],
        "System Efficiency": [],
        "Team Collaboration": [],
        "Process Improvement": [],
    }
    for rec in recommendations:
        area = rec.impact.area
        if "Time" in area or "Productivity" in area:
            groups["Time Allocation"].append(rec)
        elif "System" in area or "User Experience" in area:
            groups["System Efficiency"].append(rec)
        elif "Team" in area or "Communication" in area or "Collaboration" in area:
            groups["Team Collaboration"].append(rec)
        else:
            groups["Process Improvement"].append(rec)
    return groups


def calculate_implementation_metrics(recommendations: List[Recommendation], today: Optional[date] = None) -> dict:
    today = today or date.today()
    efforts = [rec.effort.level for rec in recommendations]
    magnitudes = [rec.impact.magnitude for rec in recommendations]
    quick_wins = efforts.count("quick-win")
    medium_effort = efforts.count("medium")
    significant_effort = efforts.count("significant")

    # Weeks per item; three streams run in parallel.
    total_effort = quick_wins * 1.5 + medium_effort * 4 + significant_effort * 8
    timeline_weeks = math.ceil(total_effort / 3)

    return {
        "effort_distribution": {
            "quick_wins": quick_wins,
            "medium_effort": medium_effort,
            "significant_effort": significant_effort,
        },
        "impact_distribution": {
            "high_impact": magnitudes.count("high"),
            "medium_impact": magnitudes.count("medium"),
            "low_impact": magnitudes.count("low"),
        },
        "implementation_waves": {
            "wave1": sum(1 for rec in recommendations if rec.priority >= 8),
            "wave2": sum(1 for rec in recommendations if 5 <= rec.priority < 8),
            "wave3": sum(1 for rec in recommendations if rec.priority < 5),
            "total_recommendations": len(recommendations),
        },
        "timeline": {
            "total_effort_weeks": total_effort,
            "estimated_timeline_weeks": timeline_weeks,
            "earliest_completion_date": (today + timedelta(weeks=timeline_weeks)).isoformat(),
        },
    }


FOCUS_AREAS = {
    "admin": [
        {
            "area": "Strategic Planning",
            "description": "Focus on long-term improvements with the highest organizational impact",
            "key_metrics": ["timeEfficiencyScore", "overallBottleneckScore", "overallCollaborationScore"],
        },
        {
            "area": "Resource Allocation",
            "description": "Optimize resource allocation across the admissions process",
            "key_metrics": ["adminTime", "systemProblemTime", "leadLossFrequency"],
        },
        {
            "area": "System Architecture",
            "description": "Address fundamental system limitations and integration opportunities",
            "key_metrics": ["toolCount", "loginFragmentation", "workaroundPrevalence"],
        },
    ],
    "coordinator": [
        {
            "area": "Team Effectiveness",
            "description": "Improve communication and handoff processes between team members",
            "key_metrics": ["handoffEffectiveness", "informationSharingQuality", "communicationGap"],
        },
        {
            "area": "Process Optimization",
            "description": "Identify and address bottlenecks in the application process",
            "key_metrics": ["leadLossFrequency", "primaryLossStage", "dataAccessTime"],
        },
        {
            "area": "Workload Balance",
            "description": "Ensure efficient allocation of time and tasks across the team",
            "key_metrics": ["adminTime", "salesTime", "timeEfficiencyScore"],
        },
    ],
    "assessor": [
        {
            "area": "Daily Efficiency",
            "description": "Improve your daily workflow and reduce administrative burden",
            "key_metrics": ["adminTime", "salesTime", "dataAccessTime"],
        },
        {
            "area": "Tool Usability",
            "description": "Address workarounds and system limitations that affect your work",
            "key_metrics": ["workaroundPrevalence", "toolCount", "loginFragmentation"],
        },
        {
            "area": "Communication",
            "description": "Enhance information sharing and collaboration with team members",
            "key_metrics": ["informationSharingQuality", "handoffEffectiveness", "communicationGap"],
        },
    ],
}
DEFAULT_FOCUS_AREAS = [
    {
        "area": "Process Improvement",
        "description": "General process improvement opportunities",
        "key_metrics": ["timeEfficiencyScore", "overallBottleneckScore", "overallCollaborationScore"],
    }
]


def get_focus_areas_by_role(role: str) -> List[dict]:
    return FOCUS_AREAS.get(role, DEFAULT_FOCUS_AREAS)


KEY_METRICS_BY_AREA = {
    "Time Allocation": ["adminTime", "salesTime", "timeEfficiencyScore"],
    "Management Effectiveness": ["strategicTime", "systemProblemTime", "timeEfficiencyScore"],
    "Productivity": ["adminTime", "salesTime", "timeEfficiencyScore"],
    "System Efficiency": ["toolCount", "loginFragmentation", "workaroundPrevalence"],
    "User Experience": ["workaroundPrevalence", "dataAccessTime", "leadTrackingConfidence"],
    "Process Efficiency": ["leadLossFrequency", "primaryLossStage", "dataAccessTime"],
    "Team Collaboration": ["informationSharingQuality", "handoffEffectiveness", "communicationGap"],
    "Process Continuity": ["handoffEffectiveness", "communicationGap", "leadTrackingConfidence"],
    "Management Oversight": ["pipelineReviewFrequency", "informationSharingQuality"],
    "Conversion Rate": ["leadLossFrequency", "primaryLossStage", "overallBottleneckScore"],
    "Stage Conversion": ["leadLossFrequency", "primaryLossStage"],
    "Pipeline Visibility": ["leadTrackingConfidence", "pipelineReviewFrequency"],
    "Operational Efficiency": ["adminTime", "dataAccessTime", "toolCount"],
}


def get_key_metrics_affected(area: str) -> List[str]:
    for known_area, metrics in KEY_METRICS_BY_AREA.items():
        if known_area in area:
            return metrics
    return ["timeEfficiencyScore", "overallBottleneckScore", "overallCollaborationScore"]


def get_time_to_realize(effort_level: str) -> str:
    if effort_level == "quick-win":
        return "2-4 weeks"
    if effort_level == "medium":
        return "1-3 months"
    return "3-6 months"


ROLE_CONTENT = {
    "admin": {
        "focus_areas": ["Strategic impact", "Resource allocation", "Long-term benefits"],
        "key_considerations": ["Budget implications", "Organizational alignment", "Change management"],
        "success_metrics": ["Process efficiency improvement", "Staff productivity increase", "Cost savings"],
    },
    "coordinator": {
        "focus_areas": ["Team coordination", "Process standardization", "Information flow"],
        "key_considerations": ["Team adoption", "Training requirements", "Implementation schedule"],
        "success_metrics": ["Handoff quality improvement", "Bottleneck reduction", "Lead conversion increase"],
    },
    "assessor": {
        "focus_areas": ["Daily workflow impact", "Usability improvement", "Time savings"],
        "key_considerations": ["Learning curve", "Process changes", "Tool adjustments"],
        "success_metrics": ["Administrative time reduction", "Faster data access", "Fewer workarounds"],
    },
}
DEFAULT_ROLE_CONTENT = {
    "focus_areas": ["Process improvement", "Efficiency", "Collaboration"],
    "key_considerations": ["Implementation requirements", "Team impact", "Timeline"],
    "success_metrics": ["Efficiency improvement", "Quality improvement", "Time savings"],
}

# Fixed per effort level: total weeks, staff hours, IT, training, external support.
EFFORT_PROFILES = {
    "quick-win": {"weeks": 2, "staff_hours": 8, "it": False, "training": False, "external": False},
    "medium": {"weeks": 4, "staff_hours": 28, "it": True, "training": True, "external": False},
    "significant": {"weeks": 9, "staff_hours": 80, "it": True, "training": True, "external": True},
}


def create_implementation_timeline(
    recommendation: Recommendation,
    action_steps: List[str],
    today: Optional[date] = None,
) -> dict:
    today = today or date.today()
    total_weeks = EFFORT_PROFILES[recommendation.effort.level]["weeks"]
    planning = max(1, math.floor(total_weeks * 0.2))
    implementation = max(1, math.floor(total_weeks * 0.6))
    validation = max(1, total_weeks - (planning + implementation))
    return {
        "total_weeks": total_weeks,
        "start_date": today.isoformat(),
        "estimated_completion_date": (today + timedelta(weeks=total_weeks)).isoformat(),
        "phases": [
            {
                "name": "Planning",
                "duration": planning,
                "steps": ["Define scope and objectives", "Identify stakeholders", "Create detailed implementation plan"],
                "start_week": 1,
            },
            {
                "name": "Implementation",
                "duration": implementation,
                "steps": action_steps[:3],
                "start_week": planning + 1,
            },
            {
                "name": "Validation",
                "duration": validation,
                "steps": ["Verify implementation", "Measure impact", "Adjust as needed"],
                "start_week": planning + 1 + implementation,
            },
        ],
    }


def create_resource_requirements(recommendation: Recommendation) -> dict:
    profile = EFFORT_PROFILES[recommendation.effort.level]
    area = recommendation.impact.area
    roles: List[str] = []
    if "Management" in area or "Strategic" in area:
        roles.append("Manager")
    if "Team" in area or "Process" in area or "Pipeline" in area:
        roles.append("Coordinator")
    if "User Experience" in area or "Operational" in area or "Time Allocation" in area:
        roles.append("Assessor")
    if profile["it"]:
        roles.append("IT Support")
    if not roles:
        roles.append("Coordinator")
    roles = list(dict.fromkeys(roles))

    if profile["external"]:
        budget = "Medium"
    elif profile["it"]:
        budget = "Low"
    else:
        budget = "Minimal"
    return {
        "staff_time_hours": profile["staff_hours"],
        "primary_owner": roles[0],
        "roles_involved": roles,
        "technical_resources": profile["it"],
        "training_required": profile["training"],
        "external_support": profile["external"],
        "budget_impact": budget,
    }


def get_related_recommendations(recommendation: Recommendation, recommendations: List[Recommendation]) -> List[dict]:
    area = recommendation.impact.area
    area_head = area.split(" ")[0]
    shared = set(recommendation.source_insights)
    related = []
    for other in recommendations:
        if other.id == recommendation.id:
            continue
        other_area = other.impact.area
        similar_area = (
            other_area == area
            or area_head in other_area
            or other_area.split(" ")[0] in area
        )
        if similar_area or shared.intersection(other.source_insights):
            related.append(other)
    related.sort(key=lambda rec: rec.priority, reverse=True)
    return [
        {
            "id": rec.id,
            "title": rec.title,
            "impact": rec.impact.model_dump(),
            "priority": rec.priority,
            "details_url": f"/api/analytics/recommendations?id={rec.id}",
        }
        for rec in related[:3]
    ]


def get_recommendation_details(
    rec_id: str,
    role: str,
    recommendations: List[Recommendation],
    insights: InsightsByCategory,
    today: Optional[date] = None,
) -> Optional[dict]:
    recommendation = next((rec for rec in recommendations if rec.id == rec_id), None)
    if recommendation is None:
        return None
    action_steps = generate_action_steps(recommendation)
    impact = estimate_impact(recommendation).model_dump()
    impact["key_metrics_affected"] = get_key_metrics_affected(recommendation.impact.area)
    impact["time_to_realize"] = get_time_to_realize(recommendation.effort.level)
    return {
        **recommendation.model_dump(),
        "detailed_steps": action_steps,
        "impact": impact,
        "source_insights": [
            insight.model_dump() for insight in get_source_insights(recommendation.source_insights, insights)
        ],
        "implementation_timeline": create_implementation_timeline(recommendation, action_steps, today),
        "resource_requirements": create_resource_requirements(recommendation),
        "role_specific": ROLE_CONTENT.get(role, DEFAULT_ROLE_CONTENT),
        "related_recommendations": get_related_recommendations(recommendation, recommendations),
    }
