"""Conversions between WGS84 latitude/longitude and UTM coordinates."""

from __future__ import annotations

import logging
import math
import subprocess

logger = logging.getLogger(__name__)

UTM_ZONE_LETTERS = "CDEFGHJKLMNPQRSTUVWX"

_SEMI_MAJOR_AXIS = 6378137.0
_FLATTENING = 1.0 / 298.257223563
_N = _FLATTENING / (2.0 - _FLATTENING)
_ECCENTRICITY = math.sqrt(_FLATTENING * (2.0 - _FLATTENING))
_E2M = 1.0 - _ECCENTRICITY**2
_SCALE = 0.9996
_FALSE_EASTING = 500_000.0
_FALSE_NORTHING_SOUTH = 10_000_000.0

_RECTIFYING_RADIUS = (
    _SEMI_MAJOR_AXIS / (1.0 + _N) * (1.0 + _N**2 / 4.0 + _N**4 / 64.0 + _N**6 / 256.0)
)

_ALPHA = (
    _N / 2 - 2 * _N**2 / 3 + 5 * _N**3 / 16 + 41 * _N**4 / 180 - 127 * _N**5 / 288
    + 7891 * _N**6 / 37800,
    13 * _N**2 / 48 - 3 * _N**3 / 5 + 557 * _N**4 / 1440 + 281 * _N**5 / 630
    - 1983433 * _N**6 / 1935360,
    61 * _N**3 / 240 - 103 * _N**4 / 140 + 15061 * _N**5 / 26880 + 167603 * _N**6 / 181440,
    49561 * _N**4 / 161280 - 179 * _N**5 / 168 + 6601661 * _N**6 / 7257600,
    34729 * _N**5 / 80640 - 3418889 * _N**6 / 1995840,
    212378941 * _N**6 / 319334400,
)

_BETA = (
    _N / 2 - 2 * _N**2 / 3 + 37 * _N**3 / 96 - _N**4 / 360 - 81 * _N**5 / 512
    + 96199 * _N**6 / 604800,
    _N**2 / 48 + _N**3 / 15 - 437 * _N**4 / 1440 + 46 * _N**5 / 105
    - 1118711 * _N**6 / 3870720,
    17 * _N**3 / 480 - 37 * _N**4 / 840 - 209 * _N**5 / 4480 + 5569 * _N**6 / 90720,
    4397 * _N**4 / 161280 - 11 * _N**5 / 504 - 830251 * _N**6 / 7257600,
    4583 * _N**5 / 161280 - 108847 * _N**6 / 3991680,
    20648693 * _N**6 / 638668800,
)

_TO_LAT_LON_COMMAND = (
    "python3 -c \"from utm import to_latlon; "
    "print(to_latlon({x:.2f}, {y:.2f}, {zone:d}, '{letter}'))\""
)
_FROM_LAT_LON_COMMAND = (
    "python3 -c \"from utm import from_latlon; print(from_latlon({lat:.6f}, {lon:.6f}))\""
)


def run_shell_command(command: str) -> str:
    """Run ``command`` in a shell and return its output without surrounding whitespace."""
    completed = subprocess.run(command, shell=True, capture_output=True, text=True, check=False)
    return completed.stdout.strip(" \n\r\t")


def utm_zone(lon: float) -> int:
    """UTM zone number (1 to 60) of a longitude in degrees."""
    wrapped = math.fmod(lon + 180.0, 360.0)
    if wrapped < 0:
        wrapped += 360.0
    return int(math.floor(wrapped / 6.0)) + 1


def utm_zone_letter(lat: float) -> str:
    """UTM latitude band letter, clamped to the bands C to X."""
    index = int((lat + 80.0) / 8.0)
    index = min(max(index, 0), len(UTM_ZONE_LETTERS) - 1)
    return UTM_ZONE_LETTERS[index]


def _central_meridian(zone: int) -> float:
    return (zone - 1) * 6.0 - 180.0 + 3.0


def _wrap_degrees(angle: float) -> float:
    return (angle + 180.0) % 360.0 - 180.0


def _conformal_tan(lat_rad: float) -> float:
    sin_lat = math.sin(lat_rad)
    if abs(sin_lat) >= 1.0:
        return math.copysign(math.inf, sin_lat)
    return math.sinh(math.atanh(sin_lat) - _ECCENTRICITY * math.atanh(_ECCENTRICITY * sin_lat))


def _geodetic_tan(tau_prime: float) -> float:
    """Invert the conformal latitude tangent by Newton iteration."""
    tau = tau_prime / _E2M
    for _ in range(10):
        root = math.sqrt(1.0 + tau * tau)
        sigma = math.sinh(_ECCENTRICITY * math.atanh(_ECCENTRICITY * tau / root))
        tau_i = tau * math.sqrt(1.0 + sigma * sigma) - sigma * root
        delta = (
            (tau_prime - tau_i)
            / math.sqrt(1.0 + tau_i * tau_i)
            * (1.0 + _E2M * tau * tau)
            / (_E2M * root)
        )
        tau += delta
        if abs(delta) < 1e-14 * max(1.0, abs(tau)):
            break
    return tau


def lat_lon_to_utm(lat: float, lon: float) -> tuple[float, float, int, str]:
    """Project WGS84 degrees to UTM: (easting, northing, zone, band letter)."""
    if not (math.isfinite(lat) and math.isfinite(lon)) or abs(lat) > 90.0:
        raise ValueError(f"Invalid coordinate: lat={lat}, lon={lon}")

    zone = utm_zone(lon)
    letter = utm_zone_letter(lat)
    dlon = math.radians(_wrap_degrees(lon - _central_meridian(zone)))

    tau = _conformal_tan(math.radians(lat))
    xi_p = math.atan2(tau, math.cos(dlon))
    eta_p = math.atanh(math.sin(dlon) / math.sqrt(1.0 + tau * tau)) if math.isfinite(tau) else 0.0

    xi = xi_p
    eta = eta_p
    for j, alpha in enumerate(_ALPHA, start=1):
        xi += alpha * math.sin(2 * j * xi_p) * math.cosh(2 * j * eta_p)
        eta += alpha * math.cos(2 * j * xi_p) * math.sinh(2 * j * eta_p)

    easting = _FALSE_EASTING + _SCALE * _RECTIFYING_RADIUS * eta
    northing = _SCALE * _RECTIFYING_RADIUS * xi
    if lat < 0:
        northing += _FALSE_NORTHING_SOUTH
    if not (math.isfinite(easting) and math.isfinite(northing)):
        raise ValueError(f"Invalid coordinate: lat={lat}, lon={lon}")
    return easting, northing, zone, letter


def utm_to_lat_lon(utm_x: float, utm_y: float, zone: int, zone_letter: str) -> tuple[float, float]:
    """Unproject UTM to WGS84 degrees: (latitude, longitude).

    Band letters from ``N`` on are the northern hemisphere.
    """
    if not 1 <= zone <= 60:
        raise ValueError(f"Invalid UTM zone: {zone}")

    northing = utm_y if zone_letter >= "N" else utm_y - _FALSE_NORTHING_SOUTH
    xi = northing / (_SCALE * _RECTIFYING_RADIUS)
    eta = (utm_x - _FALSE_EASTING) / (_SCALE * _RECTIFYING_RADIUS)

    xi_p = xi
    eta_p = eta
    for j, beta in enumerate(_BETA, start=1):
        xi_p -= beta * math.sin(2 * j * xi) * math.cosh(2 * j * eta)
        eta_p -= beta * math.cos(2 * j * xi) * math.sinh(2 * j * eta)

    tau_prime = math.sin(xi_p) / math.sqrt(math.sinh(eta_p) ** 2 + math.cos(xi_p) ** 2)
    dlon = math.atan2(math.sinh(eta_p), math.cos(xi_p))
    lat = math.degrees(math.atan(_geodetic_tan(tau_prime)))
    lon = _wrap_degrees(_central_meridian(zone) + math.degrees(dlon))

    if not (math.isfinite(lat) and math.isfinite(lon)):
        raise ValueError("Coordinate transformation failed.")
    return lat, lon


def _tokens(output: str) -> list[str]:
    for char in "(),":
        output = output.replace(char, "")
    return output.split()


def utm_to_lat_lon_python(
    utm_x: float, utm_y: float, zone: int, zone_letter: str
) -> tuple[float, float]:
    """Convert UTM to latitude/longitude with the external ``utm`` Python tool."""
    command = _TO_LAT_LON_COMMAND.format(x=utm_x, y=utm_y, zone=zone, letter=zone_letter)
    tokens = _tokens(run_shell_command(command))
    if len(tokens) < 2:
        raise ValueError("Unexpected output from UTM conversion command.")
    return float(tokens[0]), float(tokens[1])


def lat_lon_to_utm_python(lat: float, lon: float) -> tuple[float, float, int, str]:
    """Convert latitude/longitude to UTM with the external ``utm`` Python tool."""
    command = _FROM_LAT_LON_COMMAND.format(lat=lat, lon=lon)
    logger.debug("Shell command: %s", command)
    tokens = _tokens(run_shell_command(command))
    if len(tokens) < 4:
        raise ValueError("Unexpected output from UTM conversion command.")
    letter_token = tokens[3]
    if len(letter_token) != 3 or not letter_token[1].isalpha():
        raise RuntimeError("Invalid utm zone letter identifier received.")
    return float(tokens[0]), float(tokens[1]), int(tokens[2]), letter_token[1]