"""PowerShell module manifest (.psd1) field access.

Manifests are edited textually so comments and layout survive, and are
written back with their original encoding and line endings. Only the
top-level `Key = value` assignments the build needs are understood:

    @{
        ModuleVersion = '1.2.0'  # comments are ignored
        # FunctionsToExport = @()
        RequiredModules = @('PSFramework', @{ ModuleName = 'Pester'; ModuleVersion = '5.5.0' })
    }
"""

from __future__ import annotations

import codecs
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from modbuild.core.result import Err, Ok, Result
from modbuild.platform.files import atomic_write_text

__all__ = [
    "ManifestError",
    "ManifestStore",
    "Psd1ManifestStore",
    "format_value",
    "parse_list",
]

# Windows PowerShell 5.1 writes UTF-16 LE manifests with a BOM.
_BOMS = (
    (codecs.BOM_UTF8, "utf-8-sig"),
    (codecs.BOM_UTF16_LE, "utf-16"),
    (codecs.BOM_UTF16_BE, "utf-16"),
)


@dataclass(frozen=True, slots=True)
class ManifestError:
    message: str
    path: Path | None = None


class ManifestStore(Protocol):
    def read_field(self, path: Path, field_name: str) -> str | None: ...

    def write_field(
        self, path: Path, field_name: str, value: str | list[str]
    ) -> Result[None, ManifestError]: ...

    def enable_field(self, path: Path, field_name: str) -> bool: ...


@dataclass(frozen=True, slots=True)
class _Span:
    start: int
    end: int
    value: str


def _read_manifest(path: Path) -> tuple[str, str]:
    """Return the manifest text and the encoding to write it back with."""
    data = path.read_bytes()
    encoding = next((enc for bom, enc in _BOMS if data.startswith(bom)), "utf-8")
    return data.decode(encoding), encoding


def _assignment_re(field_name: str, *, commented: bool) -> re.Pattern[str]:
    prefix = r"[ \t]*#[ \t]?" if commented else r"[ \t]*"
    return re.compile(
        rf"^{prefix}{re.escape(field_name)}[ \t]*=[ \t]*(?P<value>.*)$",
        re.MULTILINE | re.IGNORECASE,
    )


def _mask(text: str, *, strings: bool) -> str:
    """Blank out comments, and string contents when `strings` is set.

    The result has the same length and line breaks as text, so offsets
    found in it apply to the original. A quote left open outside nested
    arrays and hashtables ends at the line break.
    """
    out = list(text)
    n = len(text)
    depth = 0
    i = 0

    def blank(begin: int, end: int, fill: str) -> None:
        for k in range(begin, end):
            if out[k] not in "\r\n":
                out[k] = fill

    while i < n:
        ch = text[i]
        if ch in ("'", '"'):
            j = i + 1
            while j < n:
                c = text[j]
                if ch == '"' and c == "`":
                    j += 2
                    continue
                if c == ch:
                    if j + 1 < n and text[j + 1] == ch:
                        j += 2
                        continue
                    break
                if c == "\n" and depth <= 1:
                    break
                j += 1
            end = min(j, n)
            if strings:
                blank(i + 1, end, "_")
            i = end + 1 if end < n and text[end] == ch else end
            continue
        if text.startswith("<#", i):
            close = text.find("#>", i + 2)
            end = n if close == -1 else close + 2
            blank(i, end, " ")
            i = end
            continue
        if ch == "#":
            close = text.find("\n", i)
            end = n if close == -1 else close
            blank(i, end, " ")
            i = end
            continue
        if ch in "({":
            depth += 1
        elif ch in ")}":
            depth -= 1
        i += 1
    return "".join(out)


def _depth(code: str, pos: int) -> int:
    return (
        code.count("(", 0, pos)
        + code.count("{", 0, pos)
        - code.count(")", 0, pos)
        - code.count("}", 0, pos)
    )


def _find_field(text: str, field_name: str) -> _Span | None:
    """Locate an active assignment in the manifest's root hashtable.

    Follows multi-line @( ... ) values. Keys of nested hashtables (such as a
    RequiredModules entry's ModuleVersion) and trailing comments are ignored.
    """
    code = _mask(text, strings=True)
    for m in _assignment_re(field_name, commented=False).finditer(code):
        if _depth(code, m.start()) != 1:
            continue

        value_start = m.start("value")
        end = value_start
        depth = 0
        for pos in range(value_start, len(code)):
            ch = code[pos]
            if ch in "({":
                depth += 1
            elif ch in ")}":
                depth -= 1
                if depth < 0:
                    break
            elif ch == "\n" and depth <= 0:
                break
            if not ch.isspace():
                end = pos + 1

        value = _mask(text[value_start:end], strings=False).strip()
        return _Span(start=m.start(), end=end, value=value)
    return None


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def format_value(value: str | list[str]) -> str:
    """Render a Python value as a PowerShell literal."""
    if isinstance(value, str):
        return "'" + value.replace("'", "''") + "'"
    if not value:
        return "@()"
    return "@(" + ", ".join(format_value(v) for v in value) + ")"


_HASHTABLE_NAME_RE = re.compile(r"ModuleName\s*=\s*['\"]([^'\"]+)['\"]", re.IGNORECASE)
_QUOTED_RE = re.compile(r"'([^']*)'|\"([^\"]*)\"")


def parse_list(value: str) -> list[str]:
    """Extract names from a manifest array value.

    Plain strings are taken as-is; hashtable entries contribute their
    `ModuleName`. A single quoted string yields a one-element list.
    """
    names: list[str] = []
    pos = 0
    while pos < len(value):
        if value.startswith("@{", pos):
            end = value.find("}", pos)
            if end == -1:
                end = len(value)
            m = _HASHTABLE_NAME_RE.search(value, pos, end)
            if m is not None:
                names.append(m.group(1))
            pos = end + 1
            continue
        m = _QUOTED_RE.match(value, pos)
        if m is not None:
            names.append(m.group(1) if m.group(1) is not None else m.group(2))
            pos = m.end()
            continue
        pos += 1
    return [n for n in names if n]


class Psd1ManifestStore:
    """ManifestStore working on .psd1 text files."""

    def read_field(self, path: Path, field_name: str) -> str | None:
        """Return the raw value of an active field, unquoted for plain strings."""
        try:
            text, _ = _read_manifest(path)
        except (OSError, UnicodeDecodeError):
            return None
        span = _find_field(text, field_name)
        if span is None:
            return None
        return _unquote(span.value)

    def write_field(
        self, path: Path, field_name: str, value: str | list[str]
    ) -> Result[None, ManifestError]:
        """Set a field, appending it before the closing brace when absent."""
        try:
            text, encoding = _read_manifest(path)
        except (OSError, UnicodeDecodeError) as e:
            return Err(ManifestError(f"Cannot read manifest: {e}", path=path))

        literal = format_value(value)
        span = _find_field(text, field_name)
        if span is not None:
            indent = _leading_ws(text[span.start :])
            new_text = text[: span.start] + f"{indent}{field_name} = {literal}" + text[span.end :]
        else:
            close = _mask(text, strings=True).rfind("}")
            if close == -1:
                return Err(ManifestError("Manifest has no closing brace", path=path))
            newline = "\r\n" if "\r\n" in text else "\n"
            new_text = (
                text[:close].rstrip() + f"{newline}    {field_name} = {literal}{newline}" + text[close:]
            )

        atomic_write_text(path, new_text, encoding=encoding)
        return Ok(None)

    def enable_field(self, path: Path, field_name: str) -> bool:
        """Uncomment `# Field = ...`. Returns True if the field is now active."""
        try:
            text, encoding = _read_manifest(path)
        except (OSError, UnicodeDecodeError):
            return False

        if _find_field(text, field_name) is not None:
            return True

        code = _mask(text, strings=True)
        for m in _assignment_re(field_name, commented=True).finditer(text):
            # The whole line must be a comment in the root hashtable.
            if code[m.start() : m.end()].strip() or _depth(code, m.start()) != 1:
                continue
            line = m.group(0)
            enabled = _leading_ws(line) + line.lstrip()[1:].lstrip(" \t")
            atomic_write_text(path, text[: m.start()] + enabled + text[m.end() :], encoding=encoding)
            return True
        return False


def _leading_ws(s: str) -> str:
    return s[: len(s) - len(s.lstrip(" \t"))]
