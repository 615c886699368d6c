from __future__ import annotations

from dataclasses import dataclass, replace

# Model-space rectangle every node is clamped into (width, height).
SIMULATION_BOUNDS = (300.0, 300.0)


@dataclass(frozen=True)
class PhysicsConstants:
    stiffness: float = 0.01
    repulsion: float = 15000.0
    damping: float = 0.95
    ideal_length: float = 100.0
    centering_force: float = 0.001
    distance_epsilon: float = 1e-3
    time_step: float = 1 / 60
    velocity_threshold: float = 0.05
    max_steps: int = 200

    # Pairs closer than distance_epsilon get a random push of
    # repulsion * coincident_jitter instead of repulsion / eps**2.
    coincident_jitter: float = 0.01
    scale_threshold_by_count: bool = False
    asymmetric_attraction: bool = False
    use_barnes_hut: bool = False
    barnes_hut_max_depth: int = 64

    def with_changes(self, **changes) -> "PhysicsConstants":
        return replace(self, **changes)

    def stability_threshold(self, node_count: int) -> float:
        if self.scale_threshold_by_count:
            return self.velocity_threshold * node_count
        return self.velocity_threshold


DEFAULT_CONSTANTS = PhysicsConstants()

LOW_POWER_CONSTANTS = DEFAULT_CONSTANTS.with_changes(time_step=1 / 30)

RESPONSIVE_CONSTANTS = PhysicsConstants(
    stiffness=0.8,
    repulsion=4000.0,
    damping=0.85,
    ideal_length=90.0,
    centering_force=0.015,
    time_step=0.05,
    velocity_threshold=0.2,
    max_steps=500,
    scale_threshold_by_count=True,
)

PRESETS = {
    "default": DEFAULT_CONSTANTS,
    "low_power": LOW_POWER_CONSTANTS,
    "responsive": RESPONSIVE_CONSTANTS,
}


def preset(name: str) -> PhysicsConstants:
    try:
        return PRESETS[name]
    except KeyError:
        raise ValueError(f"Unknown physics preset: {name!r}") from None
