from __future__ import annotations

HEAVY_TASK_HOURS = 72
LIGHT_TASK_HOURS = 4


def estimate_hours(heavy_tasks: int, light_tasks: int) -> int:
    return int(heavy_tasks or 0) * HEAVY_TASK_HOURS + int(light_tasks or 0) * LIGHT_TASK_HOURS


def format_eta(total_hours: int) -> str:
    if total_hours <= 0:
        return "Ready Now"
    if total_hours < 24:
        return f"{total_hours} hours"
    days, extra_hours = divmod(total_hours, 24)
    return f"{days}d {extra_hours}h" if extra_hours > 0 else f"{days} days"


def tailor_eta(heavy_tasks: int, light_tasks: int) -> str:
    return format_eta(estimate_hours(heavy_tasks, light_tasks))
