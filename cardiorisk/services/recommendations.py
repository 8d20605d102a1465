"""Static lifestyle recommendations per risk tier."""

from cardiorisk.domain.models import RiskTier

RECOMMENDATIONS: dict[RiskTier, tuple[str, ...]] = {
    RiskTier.LOW: (
        "Maintain your current healthy lifestyle",
        "Continue regular exercise routine",
        "Keep monitoring your vitals regularly",
    ),
    RiskTier.MEDIUM: (
        "Consider increasing physical activity",
        "Monitor your diet and reduce sodium intake",
        "Schedule regular check-ups with your doctor",
    ),
    RiskTier.HIGH: (
        "Consult with a healthcare provider immediately",
        "Consider lifestyle modifications",
        "Monitor blood pressure and heart rate daily",
    ),
}


def recommendations_for(tier: RiskTier | str | None) -> list[str]:
    """Ordered tips for a tier; unknown tiers get an empty list."""
    try:
        key = RiskTier(tier)
    except ValueError:
        return []
    return list(RECOMMENDATIONS[key])
