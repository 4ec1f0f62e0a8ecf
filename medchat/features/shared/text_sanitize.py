from __future__ import annotations

import logging
import re
from dataclasses import dataclass

# Inclusive code point ranges kept by ``sanitize_extracted_text``.
_ALLOWED_RANGES: tuple[tuple[int, int], ...] = (
    (0x09, 0x0A),  # tab, line feed
    (0x0D, 0x0D),  # carriage return (normalized below)
    (0x20, 0x7E),  # printable ASCII
    (0xA0, 0xFF),  # Latin-1 supplement
    (0x0100, 0x017F),  # Latin Extended-A
    (0x0180, 0x024F),  # Latin Extended-B
    (0x1E00, 0x1EFF),  # Latin Extended Additional
    (0x2000, 0x206F),  # General Punctuation
    (0x20A0, 0x20CF),  # Currency Symbols
    (0x2100, 0x214F),  # Letterlike Symbols
)

_MULTI_SPACE_RE = re.compile(r" {2,}")
_MULTI_NEWLINE_RE = re.compile(r"\n{3,}")


@dataclass
class SanitizationStats:
    nul_removed: int = 0
    surrogates_replaced: int = 0
    newlines_normalized: int = 0
    disallowed_replaced: int = 0
    changed: bool = False


def _compute_changed(stats: SanitizationStats) -> None:
    stats.changed = (
        stats.nul_removed > 0
        or stats.surrogates_replaced > 0
        or stats.newlines_normalized > 0
        or stats.disallowed_replaced > 0
    )


def is_allowed_codepoint(codepoint: int) -> bool:
    for low, high in _ALLOWED_RANGES:
        if codepoint < low:
            return False
        if codepoint <= high:
            return True
    return False


def sanitize_text(
    value: str,
    *,
    strip: bool,
    normalize_newlines: bool = True,
) -> tuple[str, SanitizationStats]:
    stats = SanitizationStats()
    chars: list[str] = []
    index = 0
    length = len(value)

    while index < length:
        char = value[index]

        if char == "\x00":
            stats.nul_removed += 1
            index += 1
            continue

        codepoint = ord(char)
        if 0xD800 <= codepoint <= 0xDFFF:
            chars.append("\uFFFD")
            stats.surrogates_replaced += 1
            index += 1
            continue

        if normalize_newlines and char == "\r":
            next_char = value[index + 1] if index + 1 < length else ""
            chars.append("\n")
            stats.newlines_normalized += 1
            if next_char == "\n":
                index += 2
            else:
                index += 1
            continue

        chars.append(char)
        index += 1

    sanitized = "".join(chars)
    if strip:
        sanitized = sanitized.strip()

    _compute_changed(stats)
    return sanitized, stats


def sanitize_extracted_text_with_stats(value: str | None) -> tuple[str, SanitizationStats]:
    """Reduce decoded document text to the model-safe character set.

    Code points outside the allow-list become a single space so word
    boundaries survive. Afterwards line endings are unified, tabs become
    spaces, space runs collapse to one, blank-line runs collapse to one blank
    line and the result is trimmed.
    """
    stats = SanitizationStats()
    if not value:
        return "", stats

    chars: list[str] = []
    for char in value:
        codepoint = ord(char)
        if is_allowed_codepoint(codepoint):
            chars.append(char)
            continue
        if 0xD800 <= codepoint <= 0xDFFF:
            stats.surrogates_replaced += 1
        else:
            stats.disallowed_replaced += 1
        chars.append(" ")

    sanitized = "".join(chars)
    if "\r" in sanitized:
        stats.newlines_normalized = sanitized.count("\r")
        sanitized = sanitized.replace("\r\n", "\n").replace("\r", "\n")
    sanitized = sanitized.replace("\t", " ")
    sanitized = _MULTI_SPACE_RE.sub(" ", sanitized)
    sanitized = _MULTI_NEWLINE_RE.sub("\n\n", sanitized)

    _compute_changed(stats)
    return sanitized.strip(), stats


def sanitize_extracted_text(value: str | None) -> str:
    sanitized, _ = sanitize_extracted_text_with_stats(value)
    return sanitized


def log_sanitization_stats(
    logger: logging.Logger,
    *,
    location: str,
    stats: SanitizationStats,
) -> None:
    if not stats.changed:
        return
    logger.debug(
        (
            "Sanitized text for %s "
            "(nul_removed=%d, surrogates_replaced=%d, newlines_normalized=%d, disallowed_replaced=%d)."
        ),
        location,
        stats.nul_removed,
        stats.surrogates_replaced,
        stats.newlines_normalized,
        stats.disallowed_replaced,
    )


__all__ = [
    "SanitizationStats",
    "is_allowed_codepoint",
    "log_sanitization_stats",
    "sanitize_extracted_text",
    "sanitize_extracted_text_with_stats",
    "sanitize_text",
]
