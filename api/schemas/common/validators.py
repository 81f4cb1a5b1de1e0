"""Common Pydantic schema validators

Contains only specific validators that cannot be implemented through Field constraints.
For basic checks, use built-in Pydantic capabilities:
- Field(min_length=X, max_length=Y) for string length
- Field(ge=0) for number ranges
- @field_validator with mode="before" for transformations (strip, lower, etc)
"""


def strip_or_none(v: str | None) -> str | None:
    """
    Strip surrounding whitespace, turning blank strings into None.

    Args:
        v: Optional free-text value

    Returns:
        Stripped value or None if nothing is left
    """
    if v is None:
        return None
    stripped = v.strip()
    return stripped or None
