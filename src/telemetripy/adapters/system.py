"""Host CPU and memory usage for the flush scheduler."""

import psutil


def cpu_usage_percent() -> float:
    """One-minute load average normalized by core count, as a percentage."""
    load_1m = psutil.getloadavg()[0]
    cores = psutil.cpu_count() or 1
    return round(load_1m / cores * 100, 2)


def memory_usage_percent() -> float:
    """Share of physical memory in use, as a percentage."""
    mem = psutil.virtual_memory()
    return round((mem.total - mem.available) / mem.total * 100, 2)


def system_usage() -> tuple[float, float]:
    """Return (cpu_percent, memory_percent)."""
    return cpu_usage_percent(), memory_usage_percent()
