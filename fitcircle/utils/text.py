from typing import Optional

from fitcircle.utils.exceptions import ValidationError


def clean_text(value: Optional[str], max_length: int, label: str = "Message") -> str:
    """Trim user supplied text and enforce the non-empty and length constraints"""
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{label} text required")
    if len(text) > max_length:
        raise ValidationError(f"{label} must be at most {max_length} characters")
    return text
