"""Small text helpers shared by seeding and imports."""

import re
import unicodedata

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_HEADING_CLEAN = re.compile(r"[^0-9a-zA-Z]+")


def slugify(value: str, separator: str = "-") -> str:
    """ASCII, lowercase, separator-joined slug of `value`."""
    ascii_value = (
        unicodedata.normalize("NFKD", value or "").encode("ascii", "ignore").decode("ascii")
    )
    return _NON_ALNUM.sub(separator, ascii_value.lower()).strip(separator)


def snake_heading(value: object) -> str:
    """Normalise a spreadsheet heading: "Country Code" -> "country_code"."""
    text = "" if value is None else str(value)
    return _HEADING_CLEAN.sub("_", text.strip()).strip("_").lower()
