"""
Parse and serialize the TODO.md checklist format.

    # Todo List

    ## Work

    - [ ] write report
    - [x] ship release

Only two kinds of line carry meaning: `## <name>` section headers and
`- [ ] <text>` / `- [x] <text>` items. Everything else is ignored, so parse()
never fails on any input.
"""
import re
from enum import Enum
from typing import NamedTuple, Optional

from pydantic import BaseModel

TITLE = "Todo List"
DEFAULT_SECTION = "General"

_HEADER_RE = re.compile(r"^## (.+)$")
_ITEM_RE = re.compile(r"^- \[([ xX])\] (.+)$")


class Item(BaseModel):
    done: bool = False
    text: str


class Section(BaseModel):
    name: str
    items: list[Item] = []

    def item_at(self, index: int) -> Optional[Item]:
        if 0 <= index < len(self.items):
            return self.items[index]
        return None


class Document(BaseModel):
    sections: list[Section] = []

    def find_section(self, name: str) -> Optional[Section]:
        for section in self.sections:
            if section.name == name:
                return section
        return None

    def ensure_default_section(self) -> None:
        if not self.sections:
            self.sections.append(Section(name=DEFAULT_SECTION))


class LineKind(Enum):
    HEADER = "header"
    ITEM = "item"
    OTHER = "other"


class Line(NamedTuple):
    kind: LineKind
    text: str = ""
    done: bool = False


def classify_line(line: str) -> Line:
    """Headers and items with nothing but whitespace after the marker are OTHER."""
    line = line.rstrip("\r")
    m = _HEADER_RE.match(line)
    if m and m.group(1).strip():
        return Line(LineKind.HEADER, m.group(1).strip())
    m = _ITEM_RE.match(line)
    if m and m.group(2).strip():
        return Line(LineKind.ITEM, m.group(2).strip(), m.group(1) != " ")
    return Line(LineKind.OTHER)


def parse(text: Optional[str]) -> Document:
    doc = Document()
    current = None
    for line in (text or "").split("\n"):
        tagged = classify_line(line)
        if tagged.kind is LineKind.HEADER:
            current = Section(name=tagged.text)
            doc.sections.append(current)
        elif tagged.kind is LineKind.ITEM and current is not None:
            current.items.append(Item(done=tagged.done, text=tagged.text))
    doc.ensure_default_section()
    return doc


def serialize(doc: Document) -> str:
    out = [f"# {TITLE}\n"]
    for section in doc.sections:
        out.append(f"\n## {section.name}\n\n")
        for item in section.items:
            out.append(f"- [{'x' if item.done else ' '}] {item.text}\n")
    return "".join(out)


def clean_text(value: str) -> str:
    """Flatten user input onto one line so it cannot break the line grammar."""
    return value.replace("\r", " ").replace("\n", " ").strip()
