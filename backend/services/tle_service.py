"""
TLE (Two-Line Element) data service.
Handles fetching and parsing satellite TLE feeds.

Feeds are plain text, three lines per satellite:
    name
    1 NNNNNC ...
    2 NNNNN ...
"""

import logging
import math
from datetime import datetime
from typing import Dict, List, Optional

import requests

from config import Config
from models.orbital import OrbitalElementSet

logger = logging.getLogger(__name__)


class TLEService:
    """
    Service for fetching and parsing TLE text.
    """

    # Earth constants for orbital calculations
    EARTH_RADIUS_KM = 6378.137
    EARTH_MU = 398600.4418  # km^3/s^2

    def __init__(self, base_url: str = None, timeout: int = None):
        self.celestrak_url = base_url or Config.CELESTRAK_BASE_URL
        self.timeout = timeout or Config.TLE_FETCH_TIMEOUT

    # ==================== Fetch Methods ====================

    def get_celestrak_url(self, group: str, format: str = "tle") -> str:
        """Generate CelesTrak API URL for a satellite group."""
        return f"{self.celestrak_url}?GROUP={group}&FORMAT={format}"

    def fetch_tle_text(self, url: str) -> str:
        """
        Fetch raw TLE text from a feed URL.

        Raises:
            requests.RequestException: on network failure or non-success status
        """
        response = requests.get(url, timeout=self.timeout)
        response.raise_for_status()
        logger.debug(f"Fetched {len(response.text)} bytes from {url}")
        return response.text

    # ==================== TLE Parsing Methods ====================

    def parse_tle_epoch(self, line1: str) -> Optional[datetime]:
        """Parse epoch from TLE line 1 (None if malformed)."""
        return OrbitalElementSet('', line1, '').epoch

    def parse_norad_id(self, line1: str) -> Optional[int]:
        """Extract NORAD catalog ID from TLE line 1."""
        try:
            return int(line1[2:7].strip())
        except (ValueError, IndexError):
            return None

    def parse_mean_motion(self, line2: str) -> Optional[float]:
        """Extract mean motion (rev/day) from TLE line 2."""
        try:
            return float(line2[52:63].strip())
        except (ValueError, IndexError):
            return None

    def calculate_orbital_params(self, line2: str) -> Dict:
        """
        Calculate orbital parameters from TLE line 2.
        """
        try:
            inclination = float(line2[8:16].strip())
            eccentricity = float("0." + line2[26:33].strip())
            mean_motion = float(line2[52:63].strip())

            period_minutes = 1440.0 / mean_motion
            period_seconds = period_minutes * 60
            semi_major_axis = (
                self.EARTH_MU * (period_seconds / (2 * math.pi)) ** 2
            ) ** (1 / 3)

            apogee = semi_major_axis * (1 + eccentricity) - self.EARTH_RADIUS_KM
            perigee = semi_major_axis * (1 - eccentricity) - self.EARTH_RADIUS_KM

            return {
                "inclination": inclination,
                "eccentricity": eccentricity,
                "mean_motion": mean_motion,
                "period_minutes": period_minutes,
                "semi_major_axis_km": semi_major_axis,
                "apogee_km": apogee,
                "perigee_km": perigee,
            }
        except (ValueError, IndexError, ZeroDivisionError):
            return {}

    def parse_tle_text(self, tle_text: str, category: str = None) -> List[OrbitalElementSet]:
        """
        Parse raw TLE text into element sets.

        Blank lines are dropped before grouping into name/line1/line2
        triples. A triple whose element lines do not start with "1 " and
        "2 " is skipped; parsing continues with the next triple.
        """
        lines = [line.strip() for line in tle_text.splitlines() if line.strip()]
        element_sets = []
        skipped = 0

        for i in range(0, len(lines) - 2, 3):
            name, line1, line2 = lines[i], lines[i + 1], lines[i + 2]

            if line1.startswith("1 ") and line2.startswith("2 "):
                element_sets.append(OrbitalElementSet(
                    name=name,
                    line1=line1,
                    line2=line2,
                    category=category or 'Unknown',
                ))
            else:
                skipped += 1
                logger.debug(f"Skipping malformed TLE record near line {i + 1}: {name!r}")

        if skipped:
            logger.info(f"Parsed {len(element_sets)} TLE records, skipped {skipped} malformed")

        return element_sets


# Singleton instance
tle_service = TLEService()
