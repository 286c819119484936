import os
from typing import Dict, Optional, Union

from core.config import Settings


def parse_int_param(raw: Optional[str], default: int) -> int:
    """
    Parse a path parameter as a non-negative integer.

    Missing, non-numeric and negative values fall back to ``default``.

    Example:
    ```python
    parse_int_param("250", 100)   # 250
    parse_int_param("abc", 100)   # 100
    parse_int_param(None, 100)    # 100
    ```
    """
    if raw is None:
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        return default
    return value if value >= 0 else default


def instance_info(settings: Settings) -> Dict[str, Union[str, int]]:
    """Identity of the serving process, attached to every response."""
    return {"instance_id": settings.HOSTNAME, "pid": os.getpid()}
