"""Confidence scoring for metrics derived from a set of responses."""

import math
from typing import List, Optional, Sequence

from survey_insights.schemas.analytics import Confidence, ConfidenceScore, ValidatedResponses

# Placeholder until answer spread is measured per question.
DISTRIBUTION_QUALITY = 0.8


def calculate_confidence_score(
    responses: Optional[ValidatedResponses],
    question_ids: Sequence[int],
) -> ConfidenceScore:
    response_count = responses.valid_count if responses is not None else 0
    question_count = len(question_ids)

    # Logistic curve on sample size: ~0.05 at 0 responses, 0.5 at 30.
    sample_factor = 1 - 1 / (1 + math.exp(response_count / 10 - 3))
    # Each extra source question costs 5%, floored at 0.7.
    question_factor = max(0.7, 1 - (question_count - 1) * 0.05)

    return ConfidenceScore(
        score=sample_factor * question_factor,
        response_count=response_count,
        question_count=question_count,
        distribution_quality=DISTRIBUTION_QUALITY,
    )


def get_confidence_level(score: float) -> str:
    if score >= 0.7:
        return "high"
    if score >= 0.4:
        return "medium"
    return "low"


def get_confidence_factors(confidence: ConfidenceScore) -> List[str]:
    if confidence.response_count < 10:
        sample = "Limited sample size"
    elif confidence.response_count < 30:
        sample = "Moderate sample size"
    else:
        sample = "Strong sample size"

    if confidence.distribution_quality < 0.5:
        distribution = "Uneven response distribution"
    elif confidence.distribution_quality >= 0.8:
        distribution = "Well-distributed responses"
    else:
        distribution = ""

    if confidence.question_count > 1:
        consistency = "Based on multiple related questions"
    else:
        consistency = "Based on a single question"

    factors = [sample, distribution, consistency, "Data from the past 30 days"]
    return [factor for factor in factors if factor]


def calculate_confidence(
    responses: Optional[ValidatedResponses],
    question_ids: Sequence[int],
) -> Confidence:
    confidence = calculate_confidence_score(responses, question_ids)
    return Confidence(
        score=confidence.score,
        level=get_confidence_level(confidence.score),
        factors=get_confidence_factors(confidence),
    )
