"""Slug generation for article identifiers"""

import re
import unicodedata


URL_UNSAFE_RE = re.compile(r'[^a-z0-9-]')
TITLE_PUNCTUATION_RE = re.compile(r'[!"#$%&\'()*+,./:;<=>?@\[\\\]^`{|}~…„“”‘’«»]')


def _collapse(text: str) -> str:
    return re.sub(r'-+', '-', text).strip('-')


def fold(text: str) -> str:
    """Strip diacritics (č -> c, š -> s) so slugs stay ASCII."""
    decomposed = unicodedata.normalize('NFKD', text)
    return ''.join(c for c in decomposed if not unicodedata.combining(c))


def slugify(text: str) -> str:
    """Convert a title to a lowercase, hyphen-separated URL-safe slug."""
    text = TITLE_PUNCTUATION_RE.sub('', fold(text).lower())
    text = re.sub(r'[\s_–—]+', '-', text)
    return _collapse(URL_UNSAFE_RE.sub('', text))


def slug_from_url(url: str) -> str:
    """Derive a slug from a legacy url field (a bare slug or a full URL)."""
    segment = url.strip().rstrip('/').rsplit('/', 1)[-1]
    return _collapse(URL_UNSAFE_RE.sub('', fold(segment).lower()))
