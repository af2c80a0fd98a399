import math
from typing import Any, Optional


class BookValidator:
    """Write-time rules shared by create and update.

    ``check`` returns the reason a payload is rejected, or None when it is acceptable.
    The caller prefixes the reason with the operation ("Failed to add book." ...).
    """

    NAME_REQUIRED = "Please provide the book name"
    READ_PAGE_EXCEEDS = "readPage must not be greater than pageCount"

    @staticmethod
    def has_name(fields: dict) -> bool:
        return fields.get("name") is not None

    @staticmethod
    def read_page_within_count(fields: dict) -> bool:
        read_page = fields.get("readPage")
        page_count = fields.get("pageCount")
        # Without both numbers there is nothing to compare.
        if read_page is None or page_count is None:
            return True
        return read_page <= page_count

    @classmethod
    def check(cls, fields: dict) -> Optional[str]:
        if not cls.has_name(fields):
            return cls.NAME_REQUIRED
        if not cls.read_page_within_count(fields):
            return cls.READ_PAGE_EXCEEDS
        return None


class FlagCoercer:
    """Numeric coercion for the ``reading`` and ``finished`` list filters.

    ``true``/``false`` become 1/0, numeric text (including unsigned ``0x``/``0o``/``0b``
    literals) becomes its value, anything else becomes NaN, which never compares
    equal, so it matches no book. Spellings of infinity differ from JavaScript
    (``inf`` is accepted, ``Infinity`` too), which cannot change a 0/1 match.
    """

    @staticmethod
    def to_number(value: Any) -> float:
        if value is None:
            return math.nan
        if isinstance(value, bool):
            return 1.0 if value else 0.0
        if isinstance(value, (int, float)):
            return float(value)
        text = str(value).strip()
        if not text:
            return 0.0
        # float() accepts digit separators, Number() does not
        if "_" in text:
            return math.nan
        if text[:2].lower() in ("0x", "0o", "0b"):
            try:
                return float(int(text, 0))
            except ValueError:
                return math.nan
        try:
            return float(text)
        except ValueError:
            return math.nan

    @classmethod
    def matches(cls, stored: Any, requested: Any) -> bool:
        return cls.to_number(stored) == cls.to_number(requested)
