"""
Kakao Mobility directions client.

Only the car directions endpoint is used. Distances come back in metres and
durations in seconds; both are converted here.
"""
import logging
import time

import requests
from django.conf import settings

logger = logging.getLogger(__name__)


class KakaoDirectionsError(Exception):
    """The directions API could not produce a route"""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def format_coordinates(coordinates):
    """Kakao expects 'lng,lat'"""
    return f"{coordinates['lng']},{coordinates['lat']}"


def get_directions(origin, destination, priority='RECOMMEND'):
    """
    Request a car route between two coordinates

    Args:
        origin / destination: {'lat': float, 'lng': float}
        priority: RECOMMEND, TIME or DISTANCE

    Returns:
        dict with distance_km, duration_min, response_time_ms and the raw route summary

    Raises:
        KakaoDirectionsError: API key missing, HTTP failure or no route found
    """
    api_key = settings.KAKAO_REST_API_KEY
    if not api_key:
        raise KakaoDirectionsError('KAKAO_REST_API_KEY is not configured')

    params = {
        'origin': format_coordinates(origin),
        'destination': format_coordinates(destination),
        'priority': priority,
    }
    headers = {
        'Authorization': f'KakaoAK {api_key}',
        'Content-Type': 'application/json',
    }

    started = time.monotonic()
    try:
        response = requests.get(
            settings.KAKAO_DIRECTIONS_URL,
            params=params,
            headers=headers,
            timeout=settings.KAKAO_TIMEOUT,
        )
        response.raise_for_status()
        data = response.json()
    except requests.exceptions.Timeout:
        logger.warning(f"Kakao directions timed out after {settings.KAKAO_TIMEOUT}s")
        raise KakaoDirectionsError('Directions API timed out')
    except requests.exceptions.HTTPError as e:
        status_code = e.response.status_code if e.response is not None else None
        logger.warning(f"Kakao directions HTTP error {status_code}: {str(e)}")
        raise KakaoDirectionsError(f'Directions API returned HTTP {status_code}', status_code=status_code)
    except requests.exceptions.RequestException as e:
        logger.warning(f"Kakao directions request failed: {str(e)}")
        raise KakaoDirectionsError(f'Directions API request failed: {str(e)}')
    except ValueError:
        raise KakaoDirectionsError('Directions API returned invalid JSON')
    elapsed_ms = int((time.monotonic() - started) * 1000)

    routes = data.get('routes') or []
    if not routes:
        raise KakaoDirectionsError('Directions API returned no routes')

    route = routes[0]
    if route.get('result_code', 0) != 0:
        raise KakaoDirectionsError(route.get('result_msg') or f"No route found (code {route.get('result_code')})")

    summary = route.get('summary') or {}
    distance_m = summary.get('distance')
    duration_s = summary.get('duration')
    if distance_m is None or duration_s is None:
        raise KakaoDirectionsError('Directions API response has no summary')

    return {
        'distance_km': round(distance_m / 1000, 2),
        'duration_min': round(duration_s / 60),
        'response_time_ms': elapsed_ms,
        'route_summary': {
            'distance': distance_m,
            'duration': duration_s,
            'fare': summary.get('fare', {}),
            'priority': summary.get('priority', priority),
        },
    }
