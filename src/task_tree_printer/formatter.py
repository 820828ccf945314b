"""Text layout for double-size glyphs on receipt paper."""

from typing import List

# Safe character count per line at double width on 80mm paper.
LINE_WIDTH = 16


def wrap_text(text: str, width: int = LINE_WIDTH) -> List[str]:
    """Greedily pack words into lines of at most ``width`` characters.

    Words longer than ``width`` are hard-split into ``width``-sized chunks
    (no hyphenation); the last chunk starts the current line so following
    words can still join it.
    """
    lines = []
    current = ""

    for word in text.split():
        candidate = f"{current} {word}" if current else word
        if len(candidate) <= width:
            current = candidate
            continue

        if current:
            lines.append(current)
        while len(word) > width:
            lines.append(word[:width])
            word = word[width:]
        current = word

    if current:
        lines.append(current)
    return lines


def center_line(line: str, width: int = LINE_WIDTH) -> str:
    # odd remainders favour the left side
    return " " * ((width - len(line)) // 2) + line


def format_task_for_print(name: str, width: int = LINE_WIDTH) -> str:
    """Console rendering of a task: wrapped, upper-cased and centered."""
    return "\n".join(center_line(line.upper(), width) for line in wrap_text(name, width))
