MPS_TO_KMH = 3.6


class SmoothedSpeed:
    """Exponential smoothing of instantaneous speed, clamped to [0, max_kmh]."""

    def __init__(self, alpha: float = 0.3, max_kmh: float = 120.0, initial_kmh: float = 0.0):
        if not 0.0 < alpha <= 1.0:
            raise ValueError(f"alpha must be in (0, 1], got {alpha}")
        self.alpha, self.max_kmh = alpha, max_kmh
        self.value = initial_kmh

    def update(self, instantaneous_kmh: float) -> float:
        v = (1.0 - self.alpha) * self.value + self.alpha * instantaneous_kmh
        self.value = min(max(v, 0.0), self.max_kmh)
        return self.value

    def update_mps(self, mps: float) -> float:
        return self.update(mps * MPS_TO_KMH)

    def reset(self) -> None:
        self.value = 0.0


def tick_speed_kmh(distance_m: float, interval_s: float) -> float:
    """Speed implied by covering distance_m in one simulation tick."""
    return 0.0 if interval_s <= 0 else distance_m / interval_s * MPS_TO_KMH


def average_speed_kmh(
    distance_m: float, elapsed_s: float, *, min_elapsed_s: float = 1.0, max_kmh: float = 120.0
) -> float:
    hours = max(elapsed_s, min_elapsed_s) / 3600.0
    return min(max((distance_m / 1000.0) / hours, 0.0), max_kmh)
