"""Engine — energy model, label codec, segmenter, graph builder and search.

Only the leaf modules are re-exported here. Import the builder, search,
planner and experiment harness from their own modules.
"""

from evroute.engine.errors import EnergyModelError, GraphConstructionError, LabelCodecError
from evroute.engine.battery import ChargingModel, battery_power_flow, battery_terminal_power
from evroute.engine.motor import (
    efficiency_normalization_factor,
    motor_efficiency,
    motor_input_power,
    regen_factor,
)
from evroute.engine.segment_energy import segment_energy_wh
from evroute.engine.label_codec import (
    LabelRecord,
    decode_label,
    decode_node_id,
    decode_path,
    encode_label,
    encode_node_id,
    encode_path,
)

__all__ = [
    "EnergyModelError",
    "GraphConstructionError",
    "LabelCodecError",
    "ChargingModel",
    "battery_power_flow",
    "battery_terminal_power",
    "efficiency_normalization_factor",
    "motor_efficiency",
    "motor_input_power",
    "regen_factor",
    "segment_energy_wh",
    # Label codec
    "LabelRecord",
    "encode_node_id",
    "decode_node_id",
    "encode_label",
    "decode_label",
    "encode_path",
    "decode_path",
]
