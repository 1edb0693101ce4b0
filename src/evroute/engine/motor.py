"""Electric motor model — load-dependent efficiency and input power.

Efficiency fit (Genikomsakis & Mitrentsis 2017, eq. 9–11) over the
normalised load x = |P_out| / P_rated:

  x < 0.25          η = (c1·x + c2) / (x + c3)
  0.25 ≤ x < 0.75   η = d1·x + d2
  x ≥ 0.75          η = e1·x + e2

with one coefficient table per motor family and per direction of power flow.
Smaller motors are less efficient overall; ``efficiency_normalization_factor``
scales the curve by motor size using the IEC efficiency-class ratios.
"""

from __future__ import annotations

from bisect import bisect_left
from typing import NamedTuple

from evroute.engine.errors import EnergyModelError


class _EfficiencyFit(NamedTuple):
    c1: float
    c2: float
    c3: float
    d1: float
    d2: float
    e1: float
    e2: float


# ═══════════════════════════════════════════════════════════════════════════
# Coefficient tables: (motor_type, motoring?) → fit
# ═══════════════════════════════════════════════════════════════════════════

_EFFICIENCY_FITS: dict[tuple[str, bool], _EfficiencyFit] = {
    ("induction_motor", True): _EfficiencyFit(0.9243, 0.000127, 0.01273, 0.08, 0.86, -0.0736, 0.9752),
    ("permanent_magnet_motor", True): _EfficiencyFit(0.942269, 0.000061, 0.006118, 0.06, 0.905, -0.076, 1.007),
    ("induction_motor", False): _EfficiencyFit(
        0.925473, 0.000148, 0.014849, 0.075312, 0.858605, -0.062602, 0.971034,
    ),
    ("permanent_magnet_motor", False): _EfficiencyFit(
        0.942545, 0.000067, 0.006732, 0.057945, 0.904254, -0.066751, 1.002698,
    ),
}

_LOW_LOAD = 0.25
_HIGH_LOAD = 0.75

# Rated power (kW) upper bounds → normalisation factor. A motor takes the
# factor of the first bound at or above its rating; anything above the last
# bound is treated as full size (1.0).
_NORM_FACTOR_BOUNDS_KW: tuple[float, ...] = (
    0.75, 1.1, 1.5, 2.2, 3.0, 4.0, 5.5, 7.5, 11.0, 15.0, 18.5,
    22.0, 30.0, 37.0, 45.0, 55.0, 75.0, 90.0, 110.0, 132.0, 160.0,
)
_NORM_FACTORS: tuple[float, ...] = (
    0.817, 0.836, 0.851, 0.867, 0.879, 0.891, 0.903, 0.914, 0.926, 0.935, 0.942,
    0.946, 0.953, 0.958, 0.963, 0.970, 0.980, 0.990, 0.993, 0.996, 0.998,
)

# Default regen speed bounds (m/s): 5 km/h and 17 km/h.
U1_DEFAULT = 1.39
U2_DEFAULT = 4.72


def motor_efficiency(motor_output_power_w: float, rated_power_kw: float, motor_type: str) -> float:
    """Load efficiency of the motor at the given shaft power.

    Parameters
    ----------
    motor_output_power_w : float
        Mechanical power at the shaft (W). Negative when regenerating.
    rated_power_kw : float
        Rated motor power (kW).
    motor_type : str
        ``"induction_motor"`` or ``"permanent_magnet_motor"``.

    Returns
    -------
    float
        Efficiency in [0, 1].
    """
    if rated_power_kw <= 0:
        raise EnergyModelError(f"rated motor power must be positive, got {rated_power_kw}")
    x = abs(motor_output_power_w) / (rated_power_kw * 1_000)
    if x < 0:
        raise EnergyModelError(f"normalised motor load is negative: {x}")

    fit = _EFFICIENCY_FITS.get((motor_type, motor_output_power_w > 0))
    if fit is None:
        raise EnergyModelError(f"unknown motor type: {motor_type!r}")

    if x < _LOW_LOAD:
        return (fit.c1 * x + fit.c2) / (x + fit.c3)
    if x < _HIGH_LOAD:
        return fit.d1 * x + fit.d2
    return fit.e1 * x + fit.e2


def efficiency_normalization_factor(rated_power_kw: float) -> float:
    """Size correction for the efficiency curve, in [0.817, 1.0]."""
    if rated_power_kw < 0:
        raise EnergyModelError(f"rated motor power must not be negative, got {rated_power_kw}")
    idx = bisect_left(_NORM_FACTOR_BOUNDS_KW, rated_power_kw)
    if idx == len(_NORM_FACTOR_BOUNDS_KW):
        return 1.0
    return _NORM_FACTORS[idx]


def regen_factor(speed: float, u1: float = U1_DEFAULT, u2: float = U2_DEFAULT) -> float:
    """Share of the braking energy that is actually recovered at ``speed``.

    0 below ``u1`` (too slow, friction brakes do the work), 1 above ``u2``,
    linear in between.
    """
    if u1 < 0 or u2 < 0:
        raise EnergyModelError(f"regen speed bounds must be non-negative, got u1={u1}, u2={u2}")
    if u2 < u1:
        raise EnergyModelError(f"regen upper bound u2={u2} is below lower bound u1={u1}")
    if speed <= u1:
        return 0.0
    if speed >= u2:
        return 1.0
    return (speed - u1) / (u2 - u1)


def motor_input_power(
    motor_output_power_w: float,
    regen: float,
    efficiency: float,
    norm_factor: float,
    tractive_power_w: float,
) -> float:
    """Electrical power at the motor terminals (W).

    Generator mode (``tractive_power_w ≤ 0``) returns the recovered power,
    scaled by how much of it the regen system captures. Motor mode divides by
    the size-normalised efficiency.
    """
    if not 0 <= regen <= 1:
        raise EnergyModelError(f"regen factor must be within [0, 1], got {regen}")
    if not 0 <= efficiency <= 1:
        raise EnergyModelError(f"efficiency must be within [0, 1], got {efficiency}")

    if tractive_power_w <= 0:
        return motor_output_power_w * regen * efficiency * norm_factor
    denominator = efficiency * norm_factor
    if denominator == 0:
        raise EnergyModelError("efficiency × norm_factor is zero in motor mode")
    return motor_output_power_w / denominator
