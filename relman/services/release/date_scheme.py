"""Calendar based release names: `YYYY.MM.NNN[-module]`.

The running number is always present and is one more than the highest number
already used for the same month and module. Each (month, module) pair keeps
its own counter, so `2024.01.001-api` does not advance `web` releases.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import date

__all__ = [
    "DATE_PREFIX_FORMAT",
    "date_prefix",
    "next_running_number",
    "propose_date_release",
    "used_running_numbers",
]

DATE_PREFIX_FORMAT = "%Y.%m."
RUNNING_NUMBER_WIDTH = 3


def date_prefix(today: date) -> str:
    """Format the injected date as `YYYY.MM.`; no clock is read here."""
    return today.strftime(DATE_PREFIX_FORMAT)


def _running_number_re(prefix: str, module: str) -> re.Pattern[str]:
    suffix = f"-{re.escape(module)}" if module else ""
    return re.compile(rf"^{re.escape(prefix)}(\d+){suffix}$")


def used_running_numbers(prefix: str, tags: Iterable[str], module: str = "") -> list[int]:
    """Running numbers already taken for `prefix` and `module`.

    Tags with a non-numeric trailing part are not counted.
    """
    pattern = _running_number_re(prefix, module)
    numbers: list[int] = []
    for tag in tags:
        m = pattern.match(tag)
        if m is not None:
            numbers.append(int(m.group(1)))
    return numbers


def next_running_number(prefix: str, tags: Iterable[str], module: str = "") -> int:
    return max(used_running_numbers(prefix, tags, module), default=0) + 1


def propose_date_release(today: date, existing_tags: Iterable[str], module: str = "") -> str:
    """Propose the next date based release name.

    Example:
        >>> propose_date_release(date(2024, 1, 9), {"2024.01.001", "2024.01.002"})
        '2024.01.003'
        >>> propose_date_release(date(2024, 1, 9), {"2024.01.001-api"}, "web")
        '2024.01.001-web'
    """
    prefix = date_prefix(today)
    number = next_running_number(prefix, existing_tags, module)
    name = f"{prefix}{number:0{RUNNING_NUMBER_WIDTH}d}"
    if module:
        name = f"{name}-{module}"
    return name
