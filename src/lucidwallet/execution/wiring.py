"""
Output threading between plan steps.

Each OutputWire copies named fields from a producer step's recorded output
into a consumer step's input, overriding the static placeholders the plan
builder wrote there. A missing producer output leaves the input untouched.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Tuple

TX_FIELDS: Tuple[str, ...] = ("to", "data", "value")


@dataclass(frozen=True)
class OutputWire:
    producer: str
    consumer: str
    fields: Tuple[str, ...]


def _wires_for(kind: str) -> List[OutputWire]:
    build = f"build_{kind}_tx"
    sign = f"sign_{kind}_tx"
    send = f"send_{kind}_tx"
    return [
        OutputWire(build, f"simulate_{kind}_tx", TX_FIELDS),
        OutputWire(build, sign, TX_FIELDS),
        OutputWire(sign, send, ("signed_tx",)),
        OutputWire(send, f"wait_confirm_{kind}", ("tx_hash",)),
    ]


OUTPUT_WIRING: List[OutputWire] = [w for kind in ("approve", "swap", "transfer") for w in _wires_for(kind)]


def resolve_step_input(
    step_id: str,
    static_input: Mapping[str, Any],
    outputs: Mapping[str, Mapping[str, Any]],
    wiring: List[OutputWire] = OUTPUT_WIRING,
) -> Dict[str, Any]:
    resolved = dict(static_input)
    for wire in wiring:
        if wire.consumer != step_id:
            continue
        produced = outputs.get(wire.producer)
        if not produced:
            continue
        for name in wire.fields:
            if name in produced and produced[name] is not None:
                resolved[name] = produced[name]
    return resolved
