"""Turn book titles into URL-safe search tokens."""
import re
import unicodedata

# Turkish letters that NFKD does not decompose (ı) or that should fold
# regardless of normalization form.
_TURKISH_FOLD = str.maketrans({
    "ç": "c", "Ç": "C",
    "ğ": "g", "Ğ": "G",
    "ı": "i", "İ": "I",
    "ö": "o", "Ö": "O",
    "ş": "s", "Ş": "S",
    "ü": "u", "Ü": "U",
})

_WHITESPACE = re.compile(r"\s+")
_DISALLOWED = re.compile(r"[^a-z0-9_-]+")
_HYPHEN_RUNS = re.compile(r"-{2,}")


def slugify(text) -> str:
    """
    Convert text to a lowercase, hyphen-separated ASCII slug.

    Args:
        text: Any string (None is treated as empty)

    Returns:
        Slug made only of a-z, 0-9, underscore and single hyphens
    """
    if not text:
        return ""

    folded = str(text).translate(_TURKISH_FOLD)
    folded = unicodedata.normalize("NFKD", folded)
    folded = "".join(ch for ch in folded if not unicodedata.combining(ch))

    slug = folded.lower()
    slug = _WHITESPACE.sub("-", slug)
    slug = _DISALLOWED.sub("", slug)
    slug = _HYPHEN_RUNS.sub("-", slug)
    return slug.strip("-")
