"""Charging-station directory records.

Field aliases follow the upstream directory JSON (``outletList``,
``costKwh``, ``costMin``) so responses validate without remapping.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class OutletGroup(BaseModel):
    """One group of identical outlets at a station."""

    model_config = ConfigDict(populate_by_name=True)

    capacity_kw: float = Field(alias="capacity", gt=0, description="Maximum charging power (kW)")
    cost_per_kwh: float | None = Field(
        default=None, alias="costKwh", ge=0, description="Energy price per kWh (None = not published)",
    )
    cost_per_minute: float | None = Field(
        default=None, alias="costMin", ge=0, description="Time price per minute (None = not published)",
    )

    @property
    def is_priced(self) -> bool:
        """True when at least one non-zero price is published."""
        return bool(self.cost_per_kwh) or bool(self.cost_per_minute)


class StationLocation(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class ChargingStation(BaseModel):
    """A charging station near the route, with its outlet groups and prices."""

    model_config = ConfigDict(populate_by_name=True)

    slug: str = Field(description="Directory identifier")
    title: str = Field(default="", description="Display name")
    location: StationLocation
    outlets: list[OutletGroup] = Field(default_factory=list, alias="outletList")

    def usable_outlets(self, minimum_capacity_kw: float = 0.0) -> list[OutletGroup]:
        """Priced outlet groups at or above ``minimum_capacity_kw``.

        Groups that share a rounded capacity collapse onto one charge-level
        node id, so only the first such group is kept.
        """
        usable: list[OutletGroup] = []
        seen: set[int] = set()
        for outlet in self.outlets:
            if outlet.capacity_kw < minimum_capacity_kw or not outlet.is_priced:
                continue
            key = round(outlet.capacity_kw)
            if key in seen:
                continue
            seen.add(key)
            usable.append(outlet)
        return usable
