"""Net battery energy for one road segment.

Composes the traction, transmission, motor and battery models:

  wheels → gearbox → motor → battery bus (+ accessories) → cells

Speed and slope are segment averages (v = d / t, θ = atan(Δh / d)) and
acceleration is taken as zero.
"""

from __future__ import annotations

import math

from evroute.config.vehicle import VehicleConfig
from evroute.engine.battery import battery_power_flow, battery_terminal_power
from evroute.engine.motor import motor_efficiency, motor_input_power, regen_factor
from evroute.engine.traction import (
    GRAVITY,
    aerodynamic_drag_force,
    hill_climbing_force,
    inertial_force,
    linear_acceleration_force,
    motor_output_power,
    rolling_resistance_force,
    tractive_effort,
    tractive_power,
)


def segment_battery_power_w(
    speed: float,
    slope_angle: float,
    vehicle: VehicleConfig,
    air_density: float,
    gravity: float = GRAVITY,
) -> float:
    """Power drawn from (positive) or fed into (negative) the cells, in W."""
    effort = tractive_effort(
        aerodynamic_drag_force(air_density, vehicle.drag_coefficient, vehicle.frontal_area_m2, speed),
        rolling_resistance_force(vehicle.rolling_resistance_coefficient, vehicle.mass_kg, slope_angle, gravity),
        hill_climbing_force(vehicle.mass_kg, slope_angle, gravity),
        linear_acceleration_force(vehicle.mass_kg, 0.0),
        inertial_force(vehicle.mass_correction_factor, vehicle.mass_kg, 0.0),
    )
    p_te = tractive_power(effort, speed)
    p_out = motor_output_power(p_te, vehicle.gear_efficiency)

    p_in = motor_input_power(
        p_out,
        regen_factor(speed, vehicle.regen_speed_lower_ms, vehicle.regen_speed_upper_ms),
        motor_efficiency(p_out, vehicle.motor_rated_power_kw, vehicle.motor_type),
        vehicle.norm_factor,
        p_te,
    )
    return battery_terminal_power(
        battery_power_flow(p_in, vehicle.accessory_power_w),
        vehicle.round_trip_efficiency,
    )


def segment_energy_wh(
    distance: float,
    duration: float,
    elevation_start: float,
    elevation_end: float,
    vehicle: VehicleConfig,
    air_density: float,
    gravity: float = GRAVITY,
) -> float:
    """Net energy exchanged with the battery over the segment (Wh).

    Parameters
    ----------
    distance : float
        Segment length (m).
    duration : float
        Travel time (s). Zero-duration segments cost nothing.
    elevation_start, elevation_end : float
        Elevation at either end (m). Only the difference matters.
    vehicle : VehicleConfig
        Vehicle parameters.
    air_density : float
        Air density (kg/m³).

    Returns
    -------
    float
        Energy in Wh; negative when regeneration outweighs the accessory load.
    """
    if duration == 0:
        return 0.0
    if duration < 0 or distance < 0:
        raise ValueError(f"segment distance and duration must be non-negative, got {distance} m / {duration} s")

    speed = distance / duration
    # A zero-length segment with time on it is a standstill on level ground.
    slope_angle = math.atan((elevation_end - elevation_start) / distance) if distance > 0 else 0.0

    power_w = segment_battery_power_w(speed, slope_angle, vehicle, air_density, gravity)
    return duration * power_w / 3600
