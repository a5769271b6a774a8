from models import RiskAssessment, RiskLevel, WeatherSnapshot


def classify_risk(weather: WeatherSnapshot) -> RiskAssessment:
    """High: hot and dry. Medium: hot. Low: everything else."""
    if weather.temperature > 30 and weather.humidity < 40:
        return RiskAssessment(RiskLevel.HIGH)
    if weather.temperature > 28:
        return RiskAssessment(RiskLevel.MEDIUM)
    return RiskAssessment(RiskLevel.LOW)
