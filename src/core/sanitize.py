"""Output sanitization for user-visible notification content."""

import html
import re
from urllib.parse import urlsplit

ALLOWED_MESSAGE_TAGS = ("b", "i", "em", "strong")
SAFE_URL_SCHEMES = ("http", "https", "mailto", "tel")
MAX_URL_LENGTH = 500
MAX_ID_LENGTH = 100

_TAG_RE = re.compile(r"<[^>]*>")
_DANGEROUS_BLOCK_RE = re.compile(
    r"<(script|style|iframe|object|embed)\b[^>]*>.*?</\1\s*>",
    re.IGNORECASE | re.DOTALL,
)
_ALLOWED_TAG_RE = re.compile(
    r"&lt;(/?)(" + "|".join(ALLOWED_MESSAGE_TAGS) + r")&gt;",
    re.IGNORECASE,
)


def _strip_tags(value: str) -> str:
    value = _DANGEROUS_BLOCK_RE.sub("", value)
    return _TAG_RE.sub("", value)


def sanitize_title(value: str | None) -> str:
    """Plain text only: markup is removed, the text content is kept."""
    if not value:
        return ""
    return html.escape(html.unescape(_strip_tags(value)), quote=False).strip()


def sanitize_message(value: str | None) -> str:
    """Escape everything, then re-enable bare ``<b> <i> <em> <strong>`` tags.

    Allowed tags lose any attributes they carried.
    """
    if not value:
        return ""
    value = _DANGEROUS_BLOCK_RE.sub("", value)
    value = re.sub(
        r"<(/?)(" + "|".join(ALLOWED_MESSAGE_TAGS) + r")\b[^>]*>",
        r"<\1\2>",
        value,
        flags=re.IGNORECASE,
    )
    escaped = html.escape(value, quote=False)
    restored = _ALLOWED_TAG_RE.sub(lambda m: f"<{m.group(1)}{m.group(2).lower()}>", escaped)
    # Anything still looking like a tag was not on the allowlist
    return re.sub(r"&lt;/?[a-zA-Z][^&]*?&gt;", "", restored).strip()


def sanitize_url(value: str | None) -> str | None:
    """Keep absolute http(s)/mailto/tel URLs, capped in length; drop the rest."""
    if not value or not isinstance(value, str):
        return None
    try:
        scheme = urlsplit(value.strip()).scheme.lower()
    except ValueError:
        return None
    if scheme not in SAFE_URL_SCHEMES:
        return None
    return value.strip()[:MAX_URL_LENGTH]


def truncate_id(value: object) -> str:
    return str(value)[:MAX_ID_LENGTH]
