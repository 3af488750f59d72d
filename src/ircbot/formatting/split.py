"""Split replies into IRC-sized lines."""

from __future__ import annotations


def _split_line(line: str, max_bytes: int) -> list[str]:
    """Split one line into chunks of at most ``max_bytes`` UTF-8 bytes.

    Prefers the last space in the second half of a chunk; never cuts a character.
    """
    chunks: list[str] = []
    while len(line.encode("utf-8")) > max_bytes:
        size = 0
        cut = 0
        for i, ch in enumerate(line):
            size += len(ch.encode("utf-8"))
            if size > max_bytes:
                break
            cut = i + 1
        cut = max(cut, 1)
        space = line.rfind(" ", 0, cut)
        if space > cut // 2:
            cut = space + 1
        chunk = line[:cut].rstrip(" ")
        if chunk:
            chunks.append(chunk)
        line = line[cut:]
    if line:
        chunks.append(line)
    return chunks


def split_reply(text: str, max_bytes: int = 400) -> list[str]:
    """Turn a reply into PRIVMSG payloads: one per line, long lines split, blanks dropped.

    IRC messages are capped at 512 bytes including prefix, command and target,
    so 400 leaves room for ``PRIVMSG #channel :``.
    """
    lines: list[str] = []
    for raw in text.replace("\r", "").split("\n"):
        if not raw.strip():
            continue
        lines.extend(_split_line(raw, max_bytes))
    return lines
