"""Road-load forces and power at the wheels.

Equations from Genikomsakis & Mitrentsis (2017), §2.1:

  F_te = F_ad + F_rr + F_hc + F_la + F_ωa
  P_te = F_te × v

Acceleration is taken as 0 at segment granularity, so F_la and F_ωa are
kept for completeness but vanish in ``segment_energy_wh``.
"""

from __future__ import annotations

import math

from evroute.engine.errors import EnergyModelError

GRAVITY = 9.81


def aerodynamic_drag_force(air_density: float, drag_coefficient: float, frontal_area: float, speed: float) -> float:
    """F_ad = ½ ρ c_d A v²  (N)."""
    return 0.5 * air_density * drag_coefficient * frontal_area * speed ** 2


def rolling_resistance_force(
    coefficient: float, mass: float, slope_angle: float, gravity: float = GRAVITY,
) -> float:
    """F_rr = μ_rr m g cos θ  (N)."""
    return coefficient * mass * gravity * math.cos(slope_angle)


def hill_climbing_force(mass: float, slope_angle: float, gravity: float = GRAVITY) -> float:
    """F_hc = m g sin θ  (N). Negative downhill."""
    return mass * gravity * math.sin(slope_angle)


def linear_acceleration_force(mass: float, acceleration: float) -> float:
    """F_la = m a  (N)."""
    return mass * acceleration


def inertial_force(correction_factor: float, mass: float, acceleration: float) -> float:
    """F_ωa = c_i m a  (N) — rotating parts spun up along with the vehicle."""
    return correction_factor * mass * acceleration


def tractive_effort(
    aerodynamic: float, rolling: float, hill_climbing: float, linear_acceleration: float, inertial: float,
) -> float:
    """Total force the wheels must deliver (N)."""
    return aerodynamic + rolling + hill_climbing + linear_acceleration + inertial


def tractive_power(effort: float, speed: float) -> float:
    """P_te = F_te × v  (W)."""
    return effort * speed


def motor_output_power(tractive_power_w: float, gear_efficiency: float) -> float:
    """Mechanical power at the motor shaft (W).

    Transmission losses oppose the direction of power flow: when motoring the
    motor must supply more than reaches the wheels, when regenerating it
    receives less than the wheels give up.
    """
    if tractive_power_w < 0:
        return tractive_power_w * gear_efficiency
    return tractive_power_w / gear_efficiency


def motor_angular_speed(gear_ratio: float, wheel_angular_speed: float, wheel_radius: float) -> float:
    """ω_motor = G × (ω_wheel × r_wheel)."""
    return gear_ratio * wheel_angular_speed * wheel_radius


def motor_output_torque(motor_output_power_w: float, angular_speed: float) -> float:
    """T = P_out / ω_motor  (Nm)."""
    if angular_speed == 0:
        raise EnergyModelError("motor angular speed is zero; torque is undefined")
    return motor_output_power_w / angular_speed
