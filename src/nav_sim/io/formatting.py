# io/formatting.py
#
# Display helpers. Everything upstream works in metres, seconds and km/h.


def format_distance(meters: float | None, *, km_decimals: int = 1) -> str:
    """'850 m' under a kilometre, '12.3 km' above; 'N/A' when unknown."""
    if meters is None:
        return "N/A"
    if meters >= 1000:
        return f"{meters / 1000:.{km_decimals}f} km"
    return f"{round(meters)} m"


def format_duration(seconds: float | None) -> str:
    if seconds is None:
        return "N/A"
    seconds = max(0.0, seconds)
    if seconds < 60:
        return f"{round(seconds)} s"
    if seconds < 3600:
        return f"{round(seconds / 60)} min"
    hours = int(seconds // 3600)
    minutes = round((seconds % 3600) / 60)
    if minutes == 60:
        hours, minutes = hours + 1, 0
    return f"{hours} h {minutes} min" if minutes else f"{hours} h"


def format_speed(speed_kmh: float) -> str:
    return f"{round(speed_kmh)} km/h"
