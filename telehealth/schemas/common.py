import re
from datetime import time

HH_MM_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):([0-5][0-9])$")


def parse_hh_mm(value):
    """Accept ``HH:MM`` strings (single-digit hours allowed) and ``time`` objects."""
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    if not isinstance(value, str):
        raise ValueError("Time must be a string in HH:MM format")
    match = HH_MM_PATTERN.match(value.strip())
    if not match:
        raise ValueError("Time must be in HH:MM format")
    return time(int(match.group(1)), int(match.group(2)))
