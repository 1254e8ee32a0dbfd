"""
Downlink data-rate prediction.

Estimates the achievable downlink rate for a frequency band from the
elevation angle, the weather over the ground station and solar activity.
Weather and solar conditions are simulated until real feeds (NOAA/SWPC,
a weather API) are wired in.
"""
import logging
import random
from datetime import datetime
from typing import Dict, List

from utils.errors import ValidationError
from utils.time_util import ensure_utc

logger = logging.getLogger(__name__)

# Higher frequencies suffer more from rain, lower ones from the ionosphere.
# base_rate in Mbps, attenuation in dB/km.
FREQUENCY_BAND_SPECS = {
    'Ka-band': {'base_rate': 1000, 'weather_sensitivity': 0.9, 'ionosphere_sensitivity': 0.1,
                'atmospheric_attenuation': 0.5},
    'Ku-band': {'base_rate': 500, 'weather_sensitivity': 0.7, 'ionosphere_sensitivity': 0.2,
                'atmospheric_attenuation': 0.3},
    'X-band': {'base_rate': 300, 'weather_sensitivity': 0.4, 'ionosphere_sensitivity': 0.3,
               'atmospheric_attenuation': 0.2},
    'C-band': {'base_rate': 200, 'weather_sensitivity': 0.3, 'ionosphere_sensitivity': 0.5,
               'atmospheric_attenuation': 0.15},
    'S-band': {'base_rate': 100, 'weather_sensitivity': 0.15, 'ionosphere_sensitivity': 0.7,
               'atmospheric_attenuation': 0.1},
    'L-band': {'base_rate': 50, 'weather_sensitivity': 0.1, 'ionosphere_sensitivity': 0.8,
               'atmospheric_attenuation': 0.05},
}

WEATHER_IMPACT = {
    'clear': {'attenuation': 0.0, 'variability': 0.05},
    'partly-cloudy': {'attenuation': 0.05, 'variability': 0.1},
    'overcast': {'attenuation': 0.15, 'variability': 0.15},
    'light-rain': {'attenuation': 0.35, 'variability': 0.25},
    'heavy-rain': {'attenuation': 0.65, 'variability': 0.35},
    'storm': {'attenuation': 0.85, 'variability': 0.5},
}

SOLAR_ACTIVITY_IMPACT = {
    'low': {'ionosphere_disturbance': 0.0, 'variability': 0.05},
    'moderate': {'ionosphere_disturbance': 0.2, 'variability': 0.15},
    'high': {'ionosphere_disturbance': 0.5, 'variability': 0.3},
    'severe': {'ionosphere_disturbance': 0.8, 'variability': 0.5},
}

# Floor on the adjusted rate as a share of the band's base rate
MIN_RATE_FRACTION = 0.05


def calculate_elevation_factor(elevation_degrees: float) -> float:
    """Lower elevation means a longer path through the atmosphere."""
    if elevation_degrees >= 70:
        return 1.0
    if elevation_degrees >= 45:
        return 0.95
    if elevation_degrees >= 30:
        return 0.85
    if elevation_degrees >= 20:
        return 0.7
    if elevation_degrees >= 10:
        return 0.5
    return 0.3


def certainty_description(certainty: float) -> str:
    if certainty >= 0.9:
        return 'Very High'
    if certainty >= 0.7:
        return 'High'
    if certainty >= 0.5:
        return 'Moderate'
    if certainty >= 0.3:
        return 'Low'
    return 'Very Low'


def format_data_rate(mbps: float) -> str:
    if mbps >= 1000:
        return f"{mbps / 1000:.2f} Gbps"
    return f"{mbps:.2f} Mbps"


class DownlinkService:
    """
    Service for downlink data-rate predictions.

    The random source for simulated conditions is injectable so that
    predictions can be reproduced.
    """

    def __init__(self, rng: random.Random = None):
        self.rng = rng or random.Random()

    # ==================== Simulated Conditions ====================

    def get_current_solar_activity(self, now: datetime = None) -> Dict:
        """Simulated solar activity; more likely to run high around midday UTC."""
        hour = ensure_utc(now).hour
        r = self.rng.random()

        if 10 <= hour <= 14 and r > 0.6:
            level = 'high'
            solar_flux = 150 + r * 100
            kp_index = 5 + r * 3
            wind_speed = 500 + r * 200
            xray_flux = f"M{1 + r * 5:.1f}"
        elif r > 0.8:
            level = 'moderate'
            solar_flux = 100 + r * 50
            kp_index = 3 + r * 2
            wind_speed = 400 + r * 100
            xray_flux = f"C{5 + r * 5:.1f}"
        else:
            level = 'low'
            solar_flux = 70 + r * 30
            kp_index = r * 3
            wind_speed = 300 + r * 100
            xray_flux = f"B{1 + r * 9:.1f}"

        return {
            'level': level,
            'solarFluxIndex': solar_flux,
            'geomagneticIndex': kp_index,
            'solarWindSpeed': wind_speed,
            'xRayFlux': xray_flux,
            'protonFlux': 10 + r * 100 if level == 'high' else r * 10,
        }

    def get_current_weather(self, lat: float, lon: float) -> Dict:
        """Simulated weather over a ground station."""
        r = self.rng.random()

        if r > 0.9:
            condition, cloud, precipitation, visibility = 'storm', 95 + r * 5, 20 + r * 30, 1 + r * 2
        elif r > 0.75:
            condition, cloud, precipitation, visibility = 'heavy-rain', 90 + r * 10, 10 + r * 10, 3 + r * 2
        elif r > 0.6:
            condition, cloud, precipitation, visibility = 'light-rain', 70 + r * 20, 2 + r * 5, 5 + r * 5
        elif r > 0.4:
            condition, cloud, precipitation, visibility = 'overcast', 80 + r * 20, 0, 10 + r * 10
        elif r > 0.2:
            condition, cloud, precipitation, visibility = 'partly-cloudy', 30 + r * 40, 0, 15 + r * 10
        else:
            condition, cloud, precipitation, visibility = 'clear', r * 20, 0, 20 + r * 30

        return {
            'condition': condition,
            'cloudCoverage': cloud,
            'precipitationRate': precipitation,
            'temperature': 15 + r * 15 - lat / 10,
            'humidity': min(100, cloud * 0.7 + r * 20),
            'atmosphericPressure': 1013 + (r - 0.5) * 30,
            'windSpeed': 40 + r * 40 if condition == 'storm' else r * 30,
            'visibility': visibility,
        }

    # ==================== Prediction ====================

    def calculate_downlink_rate(
        self,
        band: str,
        elevation: float,
        solar: Dict,
        weather: Dict,
    ) -> Dict:
        """
        Projected downlink rate for one band under the given conditions.

        Raises:
            ValidationError: unknown band, weather condition or solar level
        """
        spec = FREQUENCY_BAND_SPECS.get(band)
        if spec is None:
            raise ValidationError(
                f"Unknown frequency band: {band}. Valid: {', '.join(FREQUENCY_BAND_SPECS)}", field='band'
            )
        weather_impact = WEATHER_IMPACT.get(weather.get('condition'))
        if weather_impact is None:
            raise ValidationError(f"Unknown weather condition: {weather.get('condition')}", field='weather')
        solar_impact = SOLAR_ACTIVITY_IMPACT.get(solar.get('level'))
        if solar_impact is None:
            raise ValidationError(f"Unknown solar activity level: {solar.get('level')}", field='solar')

        elevation_factor = calculate_elevation_factor(elevation)
        weather_factor = 1 - weather_impact['attenuation'] * spec['weather_sensitivity']
        solar_factor = 1 - solar_impact['ionosphere_disturbance'] * spec['ionosphere_sensitivity']
        atmospheric_factor = 1 - spec['atmospheric_attenuation'] * (1 - elevation_factor) * 0.3

        total = elevation_factor * weather_factor * solar_factor * atmospheric_factor
        base_rate = spec['base_rate']

        variability = min(
            weather_impact['variability'] * spec['weather_sensitivity']
            + solar_impact['variability'] * spec['ionosphere_sensitivity']
            + (0.3 if elevation < 20 else 0.1),
            0.9,
        )
        certainty = 1 - variability

        return {
            'band': band,
            'baseDataRate': base_rate,
            'adjustedDataRate': max(base_rate * total, base_rate * MIN_RATE_FRACTION),
            'certaintyFactor': certainty,
            'certainty': certainty_description(certainty),
            'degradationFactors': {
                'solar': solar_factor,
                'weather': weather_factor,
                'atmospheric': atmospheric_factor,
                'elevation': elevation_factor,
            },
            'recommendations': self._recommendations(spec, elevation, weather, solar, total, certainty),
            'riskLevel': self._risk_level(total, certainty),
            'weatherData': weather,
            'solarData': solar,
        }

    def _recommendations(self, spec, elevation, weather, solar, total, certainty) -> List[str]:
        recommendations = []

        if elevation < 20:
            recommendations.append('Low elevation angle - expect significant signal degradation')

        if weather['condition'] in ('heavy-rain', 'storm'):
            if spec['weather_sensitivity'] > 0.6:
                recommendations.append('Heavy precipitation - consider rescheduling or using lower frequency band')
            else:
                recommendations.append('Weather conditions detected - C-band or lower recommended')

        if solar['level'] in ('high', 'severe'):
            if spec['ionosphere_sensitivity'] > 0.5:
                recommendations.append('High solar activity - consider using higher frequency bands (Ka/Ku)')
            else:
                recommendations.append('Solar activity elevated - ionospheric effects possible')

        if total > 0.8:
            recommendations.append('Excellent conditions for high-speed data transmission')
        elif total < 0.4:
            recommendations.append('Poor conditions - recommend waiting for improvement')

        if certainty < 0.5:
            recommendations.append('High uncertainty - actual performance may vary significantly')

        return recommendations

    @staticmethod
    def _risk_level(total: float, certainty: float) -> str:
        if total > 0.75 and certainty > 0.7:
            return 'low'
        if total > 0.5 and certainty > 0.5:
            return 'moderate'
        if total > 0.3 or certainty > 0.3:
            return 'high'
        return 'critical'

    def get_optimal_band(self, elevation: float, solar: Dict, weather: Dict) -> Dict:
        """Band with the best adjusted rate weighted by certainty."""
        best = None
        best_score = 0.0
        for band in FREQUENCY_BAND_SPECS:
            prediction = self.calculate_downlink_rate(band, elevation, solar, weather)
            score = prediction['adjustedDataRate'] * prediction['certaintyFactor']
            if best is None or score > best_score:
                best, best_score = prediction, score
        return {'band': best['band'], 'prediction': best}

    def predict(self, band: str, elevation: float, lat: float, lon: float, now: datetime = None) -> Dict:
        """Prediction under freshly simulated conditions for a station location."""
        solar = self.get_current_solar_activity(now)
        weather = self.get_current_weather(lat, lon)
        return self.calculate_downlink_rate(band, elevation, solar, weather)


# Singleton instance
downlink_service = DownlinkService()
