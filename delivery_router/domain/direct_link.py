"""Direct-link (wa.me) builder.

A direct link is the universal fallback artifact: the user opens it and
sends the pre-filled message manually. It needs no credentials and no
network call.
"""

from __future__ import annotations

import urllib.parse

from .phone import digits_only

DIRECT_LINK_BASE_URL = "https://wa.me"

# Same unreserved set as JavaScript's encodeURIComponent.
_URI_COMPONENT_SAFE = "-_.!~*'()"


def build_direct_link(recipient: str | None, message: str | None) -> str:
    encoded_message = urllib.parse.quote(message or "", safe=_URI_COMPONENT_SAFE)
    return f"{DIRECT_LINK_BASE_URL}/{digits_only(recipient)}?text={encoded_message}"
