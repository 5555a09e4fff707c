from __future__ import annotations

import hashlib
import unicodedata
from typing import Final

__all__: list[str] = ["StringUtils"]

LOG_PREVIEW_LENGTH: Final[int] = 40


class StringUtils:
    """Helpers for text normalization, hashing and log-friendly previews."""

    @staticmethod
    def ensure_str(value: str | None) -> str:
        """Ensure that the value is a string, returning an empty string if None.

        Whitespace is preserved; callers decide whether it is significant.

        Args:
            value (str | None): The value to ensure as a string.

        Returns:
            str: The value as a string, or empty string if None.
        """
        if not isinstance(value, str):
            value = str(value) if value is not None else ""
        return value

    @staticmethod
    def compress_blanks(value: str) -> str:
        """Collapse runs of whitespace into single spaces and strip both ends."""
        return " ".join(StringUtils.ensure_str(value).split())

    @staticmethod
    def is_blank(value: str | None) -> bool:
        return not StringUtils.ensure_str(value).strip()

    @staticmethod
    def normalize_text(text: str) -> str:
        """Normalize text using Unicode NFC normalization.

        Args:
            text (str): Text to normalize.

        Returns:
            str: Normalized text.
        """
        return unicodedata.normalize("NFC", StringUtils.ensure_str(text))

    @staticmethod
    def generate_hash_key(*parts: str) -> str:
        """Generate a SHA-256 hex digest over pipe-joined key parts.

        Args:
            *parts (str): Key components in a fixed order. None-like values must be converted
                to empty strings by the caller.

        Returns:
            str: Hex digest identifying the combination of parts.
        """
        key_data: str = "|".join(parts)
        return hashlib.sha256(key_data.encode("utf-8")).hexdigest()

    @staticmethod
    def truncate_middle(text: str, keep: int = 10) -> str:
        """Shorten long text to ``head + length + tail``.

        Text up to ``2 * keep`` characters is returned unchanged. This is the input form the
        Youdao v3 signature expects.

        Args:
            text (str): Text to shorten.
            keep (int): Number of characters kept at each end.

        Returns:
            str: The shortened text.
        """
        text = StringUtils.ensure_str(text)
        if len(text) <= keep * 2:
            return text
        return f"{text[:keep]}{len(text)}{text[-keep:]}"

    @staticmethod
    def preview(text: str, length: int = LOG_PREVIEW_LENGTH) -> str:
        """Return a single-line preview of text for log messages."""
        text = StringUtils.compress_blanks(text)
        if len(text) <= length:
            return text
        return text[: max(length - 3, 0)] + "..."
