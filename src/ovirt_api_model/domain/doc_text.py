"""Parser for the AsciiDoc subset used in declaration documentation."""

from __future__ import annotations

import re
import textwrap
from typing import Optional

from pydantic import BaseModel, ConfigDict

LISTING_DELIMITERS = ("----", "....")
ADMONITIONS = ("NOTE", "IMPORTANT", "TIP", "WARNING", "CAUTION")

_ATTRIBUTE_RE = re.compile(r"^\[(?P<style>[a-z]+)(?:,\s*(?P<language>[\w+-]+))?\]$")
_ADMONITION_RE = re.compile(rf"^(?P<label>{'|'.join(ADMONITIONS)}):\s+(?P<text>.*)$")
_BULLET_RE = re.compile(r"^[-*]\s+(?P<text>.*)$")
_REQUEST_RE = re.compile(r"^\s*(?P<method>GET|POST|PUT|DELETE|PATCH)\s+(?P<path>/\S*)")
INLINE_CODE_RE = re.compile(r"`([^`]+)`")


class DocBlock(BaseModel):
    """One block of documentation text."""

    model_config = ConfigDict(frozen=True)

    kind: str
    text: str = ""
    language: Optional[str] = None
    label: Optional[str] = None
    items: tuple[str, ...] = ()


class RequestExample(BaseModel):
    """HTTP request line quoted in a listing block."""

    model_config = ConfigDict(frozen=True)

    method: str
    path: str

    def __str__(self) -> str:
        return f"{self.method} {self.path}"


class _BlockParser:
    def __init__(self) -> None:
        self.blocks: list[DocBlock] = []
        self.paragraph: list[str] = []
        self.items: list[str] = []
        self.language: Optional[str] = None

    def flush(self) -> None:
        if self.paragraph:
            text = " ".join(line.strip() for line in self.paragraph)
            match = _ADMONITION_RE.match(text)
            if match:
                self.blocks.append(
                    DocBlock(kind="admonition", label=match["label"], text=match["text"])
                )
            else:
                self.blocks.append(DocBlock(kind="paragraph", text=text))
            self.paragraph = []
        if self.items:
            self.blocks.append(DocBlock(kind="list", items=tuple(self.items)))
            self.items = []

    def parse(self, text: str) -> list[DocBlock]:
        lines = textwrap.dedent(text or "").strip("\n").splitlines()
        index = 0
        while index < len(lines):
            line = lines[index]
            stripped = line.strip()
            index += 1

            if not stripped:
                self.flush()
                continue

            attribute = _ATTRIBUTE_RE.match(stripped)
            if attribute:
                self.flush()
                self.language = attribute["language"]
                continue

            if stripped in LISTING_DELIMITERS:
                self.flush()
                body = []
                while index < len(lines) and lines[index].strip() != stripped:
                    body.append(lines[index])
                    index += 1
                index += 1  # closing delimiter
                self.blocks.append(
                    DocBlock(
                        kind="listing",
                        text=textwrap.dedent("\n".join(body)),
                        language=self.language,
                    )
                )
                self.language = None
                continue

            bullet = _BULLET_RE.match(stripped)
            if bullet:
                if self.paragraph:
                    self.flush()
                self.items.append(bullet["text"])
                continue

            if self.items:
                self.items[-1] = f"{self.items[-1]} {stripped}"
                continue

            self.paragraph.append(stripped)

        self.flush()
        return self.blocks


def parse_doc(text: str) -> list[DocBlock]:
    """Split documentation text into paragraphs, listings, admonitions and lists."""
    return _BlockParser().parse(text)


def request_examples(text: str) -> list[RequestExample]:
    """Return the HTTP request lines quoted in listing blocks of ``text``."""
    examples = []
    for block in parse_doc(text):
        if block.kind != "listing":
            continue
        for line in block.text.splitlines():
            match = _REQUEST_RE.match(line)
            if match:
                examples.append(RequestExample(method=match["method"], path=match["path"]))
    return examples


def split_inline_code(text: str) -> list[tuple[str, bool]]:
    """Split text into ``(fragment, is_code)`` pairs around backtick spans."""
    parts: list[tuple[str, bool]] = []
    position = 0
    for match in INLINE_CODE_RE.finditer(text):
        if match.start() > position:
            parts.append((text[position:match.start()], False))
        parts.append((match.group(1), True))
        position = match.end()
    if position < len(text):
        parts.append((text[position:], False))
    return parts
