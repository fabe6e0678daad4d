from __future__ import annotations

import json
import re
from typing import Any, Mapping

_TOKEN = re.compile(r"__([A-Z]+(?:_[A-Z]+)*)__")


def fill_template(template: str, values: Mapping[str, str]) -> str:
    """Substitute ``__NAME__`` tokens in one pass; inserted text is never rescanned."""
    return _TOKEN.sub(lambda match: values[match.group(1)], template)


def script_json(value: Any) -> str:
    """JSON that is safe to inline inside a <script> element."""
    encoded = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    return (
        encoded.replace("&", "\\u0026")
        .replace("<", "\\u003c")
        .replace(">", "\\u003e")
        .replace("\u2028", "\\u2028")
        .replace("\u2029", "\\u2029")
    )
