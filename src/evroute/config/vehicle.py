"""Vehicle configuration — static parameters of the energy model.

Defaults reproduce the reference compact EV from Genikomsakis & Mitrentsis
(2017), "A computationally efficient simulation model for estimating energy
consumption of electric vehicles in the context of route planning
applications", Transportation Research Part D 50, 98–118.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

MotorType = Literal["induction_motor", "permanent_magnet_motor"]


class VehicleConfig(BaseModel):
    """One vehicle, fixed for a whole planning run."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(default="Reference compact EV", description="Human label")

    # --- Body & road load ---
    mass_kg: float = Field(default=1663.0, gt=0, description="Vehicle mass incl. driver (kg)")
    frontal_area_m2: float = Field(default=2.19, gt=0, description="Frontal area (m²)")
    drag_coefficient: float = Field(default=0.29, gt=0, description="Aerodynamic drag coefficient c_d")
    rolling_resistance_coefficient: float = Field(
        default=0.008, ge=0, description="Tyre rolling resistance coefficient μ_rr",
    )
    mass_correction_factor: float = Field(
        default=0.05, ge=0,
        description="c_i — extra apparent mass from rotating parts, as a fraction of mass",
    )
    accessory_power_w: float = Field(
        default=300.0, ge=0, description="Constant auxiliary draw (HVAC, lights, electronics) in W",
    )

    # --- Motor ---
    motor_type: MotorType = Field(default="induction_motor", description="Efficiency curve family")
    motor_rated_power_kw: float = Field(default=80.0, gt=0, description="Rated motor power (kW)")
    norm_factor: float = Field(
        default=1.0, gt=0, le=1.0,
        description="Efficiency normalisation factor for the motor size. "
                    "Looked up from the IEC class table when not given explicitly.",
    )

    # --- Battery ---
    battery_capacity_kwh: float = Field(default=24.0, gt=0, description="Usable battery capacity (kWh)")
    round_trip_efficiency: float = Field(
        default=0.95, gt=0, le=1.0, description="Battery round-trip efficiency (0, 1]",
    )

    # --- Regenerative braking ---
    regen_speed_lower_ms: float = Field(
        default=1.39, ge=0, description="u1 — below this speed nothing is recovered (1.39 m/s = 5 km/h)",
    )
    regen_speed_upper_ms: float = Field(
        default=4.72, ge=0, description="u2 — above this speed regeneration is fully effective (17 km/h)",
    )

    # --- Transmission ---
    gear_efficiency: float = Field(default=0.97, gt=0, le=1.0, description="Transmission efficiency")

    @model_validator(mode="before")
    @classmethod
    def _fill_norm_factor(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("norm_factor") is None:
            from evroute.engine.motor import efficiency_normalization_factor

            rated = data.get("motor_rated_power_kw", cls.model_fields["motor_rated_power_kw"].default)
            data = {**data, "norm_factor": efficiency_normalization_factor(float(rated))}
        return data

    @model_validator(mode="after")
    def _check_regen_bounds(self) -> VehicleConfig:
        if self.regen_speed_upper_ms < self.regen_speed_lower_ms:
            raise ValueError("regen_speed_upper_ms (u2) must not be below regen_speed_lower_ms (u1)")
        return self
