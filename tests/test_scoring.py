from decimal import Decimal

import pytest

from services import scoring
from services.errors import ValidationError
from services.scoring import RiskCategory, RiskLevel


def test_boundary_score_is_high():
    result = scoring.score("Financial", 0.4, 0.4)
    assert result.score == Decimal("0.16")
    assert result.level is RiskLevel.HIGH


def test_score_below_first_band_is_low():
    result = scoring.score("Reputation", 0.05, 0.1)
    assert result.raw == Decimal("0.005")
    assert result.level is RiskLevel.LOW


def test_smallest_generic_product_is_low():
    result = scoring.score(RiskCategory.OTHER, "0.05", "0.05")
    assert result.raw == Decimal("0.0025")
    assert result.score == Decimal("0.00")
    assert result.level is RiskLevel.LOW


def test_maximum_score_is_critical():
    result = scoring.score("Time/Schedule", 0.8, 0.9)
    assert result.score == Decimal("0.72")
    assert result.level is RiskLevel.CRITICAL


def test_environmental_scenario():
    result = scoring.score("Environmental", 0.2, 0.5)
    assert result.score == Decimal("0.10")
    assert result.level is RiskLevel.MEDIUM


@pytest.mark.parametrize("category", list(RiskCategory))
def test_every_canonical_pair_gets_exactly_one_level(category):
    for likelihood in scoring.LIKELIHOOD_SCALE:
        for impact in scoring.impact_scale(category):
            result = scoring.score(category, likelihood.value, impact.value)
            assert result.level in set(RiskLevel)
            assert result.raw == likelihood.value * impact.value


def test_same_inputs_same_outputs():
    first = scoring.score("Legal/Regulatory", 0.4, 0.7)
    second = scoring.score("Legal/Regulatory", 0.4, 0.7)
    assert first == second
    assert first.level is RiskLevel.HIGH


@pytest.mark.parametrize(
    "product, level",
    [
        ("0.01", RiskLevel.LOW),
        ("0.05", RiskLevel.LOW),
        ("0.06", RiskLevel.MEDIUM),
        ("0.15", RiskLevel.MEDIUM),
        ("0.35", RiskLevel.HIGH),
        ("0.36", RiskLevel.CRITICAL),
        ("0.055", RiskLevel.MEDIUM),
    ],
)
def test_band_edges(product, level):
    assert scoring.level_for(Decimal(product)) is level


def test_impact_from_other_scale_is_rejected():
    # 0.3 belongs to the reputation family of scales, not the generic one
    with pytest.raises(ValidationError) as exc:
        scoring.score("Financial", 0.2, 0.3)
    assert exc.value.field == "impact"


def test_unknown_likelihood_is_rejected():
    with pytest.raises(ValidationError) as exc:
        scoring.score("Financial", 0.3, 0.2)
    assert exc.value.field == "likelihood"


def test_unknown_category_is_rejected():
    with pytest.raises(ValidationError) as exc:
        scoring.score("Technical", 0.2, 0.2)
    assert exc.value.field == "category"


def test_non_numeric_input_is_rejected():
    with pytest.raises(ValidationError) as exc:
        scoring.score("Financial", "high", 0.2)
    assert exc.value.field == "likelihood"


def test_scales_are_five_strictly_increasing_points():
    for scale in scoring.IMPACT_SCALES.values():
        values = [p.value for p in scale]
        assert len(values) == 5
        assert values == sorted(set(values))


def test_matrix_lists_every_category():
    data = scoring.matrix()
    assert set(data["impact"]) == {c.value for c in RiskCategory}
    assert [b["level"] for b in data["levels"]] == ["Low", "Medium", "High", "Critical"]
