import re

_CODE_FENCE_RE = re.compile(r"```json\n?|\n?```", re.IGNORECASE)


def strip_code_fences(text: str) -> str:
    """Remove Markdown code-fence markers a model may wrap JSON in.

    Handles both ```` ```json ```` and bare ```` ``` ```` fences, wherever
    they appear, then trims surrounding whitespace.

    Args:
        text: Raw model output.

    Returns:
        str: Text with fence markers removed.
    """
    return _CODE_FENCE_RE.sub("", text).strip()


def truncate(text: str, max_chars: int) -> str:
    """Shorten text for log output, marking the cut."""
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + "…"
