"""Human-readable timing and allocation summaries."""

import math

COUNT_UNITS = ("", " k", " M", " G", " T", " P")
MEMORY_UNITS = ("byte", "KiB", "MiB", "GiB", "TiB", "PiB")


def scale_units(value: float, numunits: int, factor: int) -> tuple[float, int]:
    """Scale ``value`` down by powers of ``factor``.

    Returns the scaled value and the 1-based index of the unit it is
    expressed in; index 1 means the value was not scaled.
    """
    if value in (0, 1):
        return value, 1
    unit = 1
    while unit < numunits and value > factor**unit:
        unit += 1
    return value / factor ** (unit - 1), unit


def format_bytes(nbytes: int) -> str:
    """Format a byte count, e.g. ``"512 bytes"`` or ``"2.000 KiB"``."""
    value, unit = scale_units(nbytes, len(MEMORY_UNITS), 1024)
    if unit == 1:
        plural = "" if value == 1 else "s"
        return f"{int(value)} {MEMORY_UNITS[0]}{plural}"
    return f"{value:.3f} {MEMORY_UNITS[unit - 1]}"


def format_allocations(allocs: int, nbytes: int) -> str:
    value, unit = scale_units(allocs, len(COUNT_UNITS), 1000)
    if unit == 1:
        noun = "allocation" if value == 1 else "allocations"
        count = f"{int(value)} {noun}"
    else:
        count = f"{value:.2f}{COUNT_UNITS[unit - 1]} allocations"
    return f"{count}: {format_bytes(nbytes)}"


def percent(part: int, whole: int) -> float:
    """Return ``part`` as a percentage of ``whole``, infinite when ``whole`` is 0."""
    if whole == 0:
        return math.inf if part > 0 else math.nan
    return 100 * part / whole


def format_timing(
    *,
    elapsed: int,
    nbytes: int = 0,
    gc_time: int = 0,
    allocs: int = 0,
    compile_time: int = 0,
    recompile_time: int = 0,
) -> str:
    """Format run statistics, e.g. ``"0.123456 seconds (5 allocations: 80 bytes)"``.

    All times are in nanoseconds and expected to be non-negative. Shares of a
    zero total are shown as ``inf``.
    """
    text = f"{elapsed / 1e9:.6f} seconds"
    segments: list[str] = []
    if nbytes != 0 or allocs != 0:
        segments.append(format_allocations(allocs, nbytes))
    if gc_time > 0:
        segments.append(f"{percent(gc_time, elapsed):.2f}% gc time")
    if compile_time > 0:
        share = percent(compile_time, elapsed)
        segments.append(f"{share:.2f}% compilation time")
    parens = bool(segments)
    details = ", ".join(segments)
    if recompile_time > 0:
        perc = percent(recompile_time, compile_time)
        # "0%" would read as no recompilation at all
        shown = "<1" if perc < 1 else f"{perc:.0f}"
        details += f": {shown}% of which was recompilation"
    text += f" ({details})" if parens else details
    return text
