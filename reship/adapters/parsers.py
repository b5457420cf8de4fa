"""
Parsing helpers for operator input.

Operators type weights and amounts with either a comma or a dot as decimal
separator ("2,5 kg", "1.200,50") and describe box assignments as compact
lists ("FCD1001:1, FCD1002:2"). The helpers here turn that text into plain
Python values and raise ``ValueError`` with a readable message otherwise.
"""

from __future__ import annotations

import re
from typing import Dict, Optional

_NUM_RE = re.compile(r"[-+]?\d[\d.,]*")


def parse_decimal(txt: Optional[str]) -> Optional[float]:
    """Interpret a number typed with comma or dot separators.

    The last separator found is taken as the decimal one when it is followed
    by one or two digits; any other separator is a thousands separator.

    Examples:
        "2,5"       → 2.5
        "2.5 kg"    → 2.5
        "1.200,50"  → 1200.5
        "1,200"     → 1200.0
        ""          → None

    Args:
        txt: Text to interpret.

    Returns:
        The number, or None for empty input.
    """
    if txt is None:
        return None
    s = str(txt).strip()
    if not s:
        return None
    m = _NUM_RE.search(s)
    if not m:
        raise ValueError(f"not a number: {txt!r}")
    num = m.group(0).rstrip(".,")
    last = max(num.rfind(","), num.rfind("."))
    if last != -1 and 1 <= len(num) - last - 1 <= 2:
        whole = re.sub(r"[.,]", "", num[:last])
        return float(f"{whole}.{num[last + 1:]}")
    return float(re.sub(r"[.,]", "", num))


def parse_assignments(txt: Optional[str], default_box: int = 1) -> Dict[str, int]:
    """Parse ``"ORDER[:BOX], ORDER[:BOX]..."`` into ``{order: box}``.

    Orders without an explicit box go to ``default_box``.

    Examples:
        "FCD1001:1, FCD1002:2" → {"FCD1001": 1, "FCD1002": 2}
        "FCD1001 FCD1003"      → {"FCD1001": 1, "FCD1003": 1}
    """
    out: Dict[str, int] = {}
    if not txt:
        return out
    for token in re.split(r"[,\s;]+", txt.strip()):
        if not token:
            continue
        ref, _, box = token.partition(":")
        if not ref:
            raise ValueError(f"missing order in {token!r}")
        try:
            out[ref] = int(box) if box else default_box
        except ValueError:
            raise ValueError(f"invalid box number in {token!r}") from None
    return out
