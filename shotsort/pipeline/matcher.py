"""
Recognise default macOS screenshot filenames.

Example: ``Screenshot 2024-03-05 at 10.15.42 PM.png``. Newer macOS releases
put a narrow no-break space before the meridiem; ``\\s`` matches it.
Not tested for other locales' naming formats.
"""

import re

SCREENSHOT_PATTERN = re.compile(
    r"Screenshot \d{4}-\d{2}-\d{2} at \d{1,2}\.\d{2}\.\d{2}\s(?:AM|PM)\.png"
)
DATE_PATTERN = re.compile(r"(\d{4})-(\d{2})-(\d{2})")


def is_screenshot_name(name: str) -> bool:
    """Check if ``name`` follows the screenshot naming convention."""
    return SCREENSHOT_PATTERN.fullmatch(name) is not None


def extract_date(name: str) -> str:
    """
    Convert the capture date in ``name`` to a ``YYMMDD`` string.

    Returns an empty string when no date is present.
    """
    match = DATE_PATTERN.search(name)
    if match is None:
        return ""

    year, month, day = match.groups()
    return f"{year[2:]}{month}{day}"
