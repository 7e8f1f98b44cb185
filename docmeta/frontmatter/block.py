"""Line-oriented tokenizer for the field entries inside a metadata block."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

import yaml

# A column-zero key: a quoted scalar, or plain text up to the first colon that
# is followed by a blank or the end of the line. Indented lines, list items,
# comments and flow collections never open an entry.
_KEY_PATTERN = re.compile(
    r"""^(?P<key>"(?:[^"\\]|\\.)*"|'(?:[^']|'')*'|[^\s#'"\-?:\[\]{}|>&*!%@`][^#]*?)"""
    r"[ \t]*:(?:[ \t]|$)"
)


@dataclass(frozen=True)
class FieldEntry:
    """A top-level `name: value` entry with its continuation lines, kept verbatim."""

    name: str
    text: str

    @classmethod
    def from_value(cls, name: str, value: Any) -> "FieldEntry":
        rendered = yaml.safe_dump(
            {name: value},
            sort_keys=False,
            allow_unicode=True,
            default_flow_style=False,
            width=float("inf"),
        )
        return cls(name=name, text=rendered.rstrip("\n"))

    def value(self) -> Any:
        try:
            loaded = yaml.safe_load(self.text)
        except yaml.YAMLError:
            match = _KEY_PATTERN.match(self.text)
            rest = self.text[match.end() :] if match else ""
            return rest.strip() or None
        if isinstance(loaded, dict):
            for key, value in loaded.items():
                if str(key) == self.name:
                    return value
        return None

    def is_empty(self) -> bool:
        value = self.value()
        if value is None:
            return True
        if isinstance(value, str):
            return not value.strip()
        if isinstance(value, (list, dict)):
            return not value
        return False


@dataclass(frozen=True)
class MetadataBlock:
    """Ordered field entries of a metadata block, plus any text ahead of the first field."""

    entries: Tuple[FieldEntry, ...] = ()
    preamble: str = ""

    def names(self) -> List[str]:
        return [entry.name for entry in self.entries]

    def get(self, name: str) -> Optional[FieldEntry]:
        for entry in self.entries:
            if entry.name == name:
                return entry
        return None

    def render(self) -> str:
        parts = [self.preamble] if self.preamble else []
        parts.extend(entry.text for entry in self.entries)
        return "\n".join(parts)

    def values(self) -> Dict[str, Any]:
        """Return the block loaded as YAML, or an empty mapping when it does not parse."""
        try:
            loaded = yaml.safe_load(self.render())
        except yaml.YAMLError:
            return {}
        return loaded if isinstance(loaded, dict) else {}


def parse_block(text: str) -> MetadataBlock:
    """Split block text into top-level field entries.

    Any column-zero key line opens an entry, including dotted (`og.image:`),
    colon-containing (`twitter:card:`), quoted and digit-leading keys. Indented
    lines, list items, comments and blank lines belong to the entry above them.
    """
    preamble: List[str] = []
    entries: List[FieldEntry] = []
    current_name: Optional[str] = None
    current_lines: List[str] = []

    for line in text.replace("\r\n", "\n").split("\n"):
        name = key_of(line)
        if name is not None:
            if current_name is not None:
                entries.append(_build_entry(current_name, current_lines))
            current_name = name
            current_lines = [line]
        elif current_name is None:
            preamble.append(line)
        else:
            current_lines.append(line)

    if current_name is not None:
        entries.append(_build_entry(current_name, current_lines))

    return MetadataBlock(entries=tuple(entries), preamble="\n".join(preamble).strip("\n"))


def key_of(line: str) -> Optional[str]:
    """Return the top-level key a block line opens, or None for any other line."""
    match = _KEY_PATTERN.match(line)
    if match is None:
        return None
    key = match.group("key")
    if key[0] in "\"'":
        try:
            loaded = yaml.safe_load(key)
        except yaml.YAMLError:
            return key[1:-1]
        return str(loaded)
    return key.rstrip()


def dedupe_entries(entries: Iterable[FieldEntry]) -> List[FieldEntry]:
    """Keep the first entry for each field name."""
    seen: set[str] = set()
    unique: List[FieldEntry] = []
    for entry in entries:
        if entry.name in seen:
            continue
        seen.add(entry.name)
        unique.append(entry)
    return unique


def _build_entry(name: str, lines: List[str]) -> FieldEntry:
    trimmed = list(lines)
    while len(trimmed) > 1 and not trimmed[-1].strip():
        trimmed.pop()
    return FieldEntry(name=name, text="\n".join(trimmed))


__all__ = ["FieldEntry", "MetadataBlock", "dedupe_entries", "key_of", "parse_block"]
