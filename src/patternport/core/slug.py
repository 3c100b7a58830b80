import hashlib
import re
import unicodedata

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(title: str) -> str:
    """Normalise a pattern title into its slug.

    The slug is the record's identity and the base name of its pattern file,
    so it only ever contains ``[a-z0-9-]``. Titles without any usable
    character fall back to a stable hash of the title.
    """
    ascii_title = (
        unicodedata.normalize("NFKD", title).encode("ascii", "ignore").decode("ascii")
    )
    slug = _NON_ALNUM.sub("-", ascii_title.lower()).strip("-")
    if not slug:
        digest = hashlib.sha1(title.encode("utf-8")).hexdigest()[:8]
        slug = f"pattern-{digest}"
    return slug
