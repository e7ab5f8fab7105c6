from __future__ import annotations

import datetime
from collections.abc import Callable

# Every timestamp the service stores is an int of UNIX epoch seconds (UTC).
Clock = Callable[[], int]


def utc_now() -> int:
    return int(datetime.datetime.now(datetime.UTC).timestamp())
