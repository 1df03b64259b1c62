"""
Risk scoring matrix.

score = likelihood x impact, where likelihood is one of five canonical
weights and impact comes from the five-point scale of the risk's category.
The level is bucketed from the exact product; the two-decimal score is for
display and storage only.
"""
import enum
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Dict, NamedTuple, Tuple, Union

from services.errors import ValidationError

Number = Union[Decimal, float, int, str]

TWO_PLACES = Decimal("0.01")


class RiskCategory(str, enum.Enum):
    FINANCIAL = "Financial"
    REPUTATION = "Reputation"
    LEGAL = "Legal/Regulatory"
    ENVIRONMENTAL = "Environmental"
    TIME = "Time/Schedule"
    OTHER = "Other"


class RiskLevel(str, enum.Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class ScalePoint(NamedTuple):
    value: Decimal
    label: str
    description: str = ""


class ScoreResult(NamedTuple):
    raw: Decimal
    score: Decimal
    level: RiskLevel


LIKELIHOOD_SCALE: Tuple[ScalePoint, ...] = (
    ScalePoint(Decimal("0.05"), "Very Low",
               "Historically the event has occurred very infrequently; were it to occur it would be "
               "considered exceptional."),
    ScalePoint(Decimal("0.1"), "Low",
               "Historically the event has been known to occur infrequently; were it to occur it "
               "would be considered remarkable."),
    ScalePoint(Decimal("0.2"), "Moderate",
               "Historically the event has been known to occur; it is plausible for it to occur over "
               "the course of the project."),
    ScalePoint(Decimal("0.4"), "High",
               "Historically the event has been known to occur frequently; were it to occur it would "
               "be considered unremarkable."),
    ScalePoint(Decimal("0.8"), "Very High",
               "Historically the event has been known to occur very frequently; it is expected to "
               "occur over the course of the project."),
)

GENERIC_IMPACT_SCALE: Tuple[ScalePoint, ...] = (
    ScalePoint(Decimal("0.05"), "Very Low"),
    ScalePoint(Decimal("0.1"), "Low"),
    ScalePoint(Decimal("0.2"), "Moderate"),
    ScalePoint(Decimal("0.4"), "High"),
    ScalePoint(Decimal("0.8"), "Very High"),
)

IMPACT_SCALES: Dict[RiskCategory, Tuple[ScalePoint, ...]] = {
    RiskCategory.FINANCIAL: GENERIC_IMPACT_SCALE,
    RiskCategory.REPUTATION: (
        ScalePoint(Decimal("0.1"), "Very Low",
                   "Local inconvenience. Negative comment about the operations at regional level."),
        ScalePoint(Decimal("0.3"), "Low",
                   "Local concern with no potential for escalation. Short term negative regional "
                   "media attention."),
        ScalePoint(Decimal("0.5"), "Moderate",
                   "Local concern with potential for escalation to state media. Regulator conducts "
                   "formal inquiry."),
        ScalePoint(Decimal("0.7"), "High",
                   "Negative state wide media attention and regulatory intervention."),
        ScalePoint(Decimal("0.9"), "Very High",
                   "Prolonged negative national media coverage. Inquiry alleges improper conduct."),
    ),
    RiskCategory.LEGAL: (
        ScalePoint(Decimal("0.1"), "Very Low", "Not applicable."),
        ScalePoint(Decimal("0.3"), "Low",
                   "Breach of contractual obligation resulting in potential criticism."),
        ScalePoint(Decimal("0.5"), "Moderate",
                   "Breach of legislative provision resulting in potential monetary penalty."),
        ScalePoint(Decimal("0.7"), "High",
                   "Breach resulting in a substantial penalty or potential suspension of work."),
        ScalePoint(Decimal("0.9"), "Very High",
                   "Breach resulting in potential incarceration, a severe penalty or suspension of work."),
    ),
    RiskCategory.ENVIRONMENTAL: (
        ScalePoint(Decimal("0.1"), "Very Low",
                   "Promptly reversible or trivial impact on air, water, soil, flora, fauna or habitat."),
        ScalePoint(Decimal("0.3"), "Low",
                   "Short term (under one year) impact on native populations or environmental quality."),
        ScalePoint(Decimal("0.5"), "Moderate",
                   "Medium term (one to three years) impact on native populations or environmental "
                   "quality."),
        ScalePoint(Decimal("0.7"), "High",
                   "Long term (three to five years) impact on significant populations or environmental "
                   "quality."),
        ScalePoint(Decimal("0.9"), "Very High",
                   "Permanent impact on significant populations or a previously undisturbed ecosystem."),
    ),
    RiskCategory.TIME: (
        ScalePoint(Decimal("0.1"), "Very Low", "Minimal or no impact on timelines."),
        ScalePoint(Decimal("0.3"), "Low", "Minor delays or schedule changes."),
        ScalePoint(Decimal("0.5"), "Moderate", "Significant impact on completion dates or milestones."),
        ScalePoint(Decimal("0.7"), "High",
                   "Severe delays leading to missed deadlines, contract penalties or cancellation."),
        ScalePoint(Decimal("0.9"), "Very High",
                   "Catastrophic delays leading to project failure or legal liabilities."),
    ),
    RiskCategory.OTHER: GENERIC_IMPACT_SCALE,
}

# (level, inclusive lower, inclusive upper)
LEVEL_BANDS: Tuple[Tuple[RiskLevel, Decimal, Decimal], ...] = (
    (RiskLevel.LOW, Decimal("0.01"), Decimal("0.05")),
    (RiskLevel.MEDIUM, Decimal("0.06"), Decimal("0.15")),
    (RiskLevel.HIGH, Decimal("0.16"), Decimal("0.35")),
    (RiskLevel.CRITICAL, Decimal("0.36"), Decimal("0.72")),
)

LIKELIHOOD_VALUES = frozenset(p.value for p in LIKELIHOOD_SCALE)


def to_decimal(value: Number, field: str) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(field, f"{value!r} is not a number")
    try:
        return value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(field, f"{value!r} is not a number")


def parse_category(category) -> RiskCategory:
    if isinstance(category, RiskCategory):
        return category
    try:
        return RiskCategory(category)
    except ValueError:
        allowed = ", ".join(c.value for c in RiskCategory)
        raise ValidationError("category", f"{category!r} is not one of: {allowed}")


def impact_scale(category) -> Tuple[ScalePoint, ...]:
    return IMPACT_SCALES[parse_category(category)]


def check_likelihood(likelihood: Number) -> Decimal:
    value = to_decimal(likelihood, "likelihood")
    if value not in LIKELIHOOD_VALUES:
        allowed = ", ".join(str(v) for v in sorted(LIKELIHOOD_VALUES))
        raise ValidationError("likelihood", f"{likelihood} is not one of: {allowed}")
    return value


def check_impact(category, impact: Number) -> Decimal:
    scale = impact_scale(category)
    value = to_decimal(impact, "impact")
    if value not in {p.value for p in scale}:
        allowed = ", ".join(str(p.value) for p in scale)
        raise ValidationError(
            "impact",
            f"{impact} is not on the {parse_category(category).value} scale ({allowed})",
        )
    return value


def level_for(product: Decimal) -> RiskLevel:
    """Bucket an exact product.

    Anything under the first band is Low. A value in the seam between two
    bands goes to the band above it.
    """
    for level, _lower, upper in LEVEL_BANDS:
        if product <= upper:
            return level
    return RiskLevel.CRITICAL


def score(category, likelihood: Number, impact: Number) -> ScoreResult:
    """Score a (category, likelihood, impact) triple.

    Raises ValidationError naming the offending field when any input is
    outside its canonical set.
    """
    parse_category(category)
    lik = check_likelihood(likelihood)
    imp = check_impact(category, impact)
    raw = lik * imp
    return ScoreResult(
        raw=raw,
        score=raw.quantize(TWO_PLACES, rounding=ROUND_HALF_UP),
        level=level_for(raw),
    )


def matrix() -> dict:
    """Reference data for selection fields."""
    return {
        "likelihood": [p._asdict() for p in LIKELIHOOD_SCALE],
        "impact": {c.value: [p._asdict() for p in scale] for c, scale in IMPACT_SCALES.items()},
        "levels": [
            {"level": level.value, "min": lower, "max": upper}
            for level, lower, upper in LEVEL_BANDS
        ],
    }
