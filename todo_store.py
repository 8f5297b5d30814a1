"""
Todo operations on top of a git-backed TODO.md.

Every call pulls first, parses the file, applies one change and, when
something changed, writes the file back and publishes it with a commit
message describing the change. Unknown sections and out-of-range indexes are
silent no-ops: the caller gets the document back unchanged.
"""
import logging
import threading
from typing import Optional

from git_store import GitRepo, GitResult
from todo_md import Document, Item, Section, clean_text, parse, serialize

logger = logging.getLogger(__name__)


class TodoStore:
    def __init__(self, repo: GitRepo):
        self.repo = repo
        # One request at a time: refresh -> mutate -> publish is a
        # read-modify-write on a single file.
        self._lock = threading.RLock()

    def _load(self) -> Document:
        self.repo.refresh()
        return parse(self.repo.read_document())

    def _save(self, doc: Document, message: str) -> GitResult:
        self.repo.write_document(serialize(doc))
        return self.repo.publish(message)

    def refresh(self) -> GitResult:
        with self._lock:
            return self.repo.refresh()

    def list(self) -> Document:
        with self._lock:
            return self._load()

    def sync(self) -> Document:
        return self.list()

    def add_item(self, section: str, text: str) -> Document:
        text = clean_text(text)
        with self._lock:
            doc = self._load()
            sec = doc.find_section(section)
            if sec is None or not text:
                logger.debug("add_item ignored: section=%r text=%r", section, text)
                self.repo.publish(f"Add: {text}")
                return doc
            sec.items.append(Item(done=False, text=text))
            self._save(doc, f"Add: {text}")
            return doc

    def toggle_item(self, section: str, index: int) -> Document:
        with self._lock:
            doc = self._load()
            item = self._item(doc, section, index)
            if item is None:
                return doc
            item.done = not item.done
            verb = "Complete" if item.done else "Reopen"
            self._save(doc, f"{verb}: {item.text}")
            return doc

    def edit_item(self, section: str, index: int, text: str) -> Document:
        text = clean_text(text)
        with self._lock:
            doc = self._load()
            item = self._item(doc, section, index)
            if item is None or not text or text == item.text:
                return doc
            old = item.text
            item.text = text
            self._save(doc, f'Edit: "{old}" → "{text}"')
            return doc

    def remove_item(self, section: str, index: int) -> Document:
        with self._lock:
            doc = self._load()
            if self._item(doc, section, index) is None:
                return doc
            removed = doc.find_section(section).items.pop(index)
            self._save(doc, f"Remove: {removed.text}")
            return doc

    def add_section(self, name: str) -> Document:
        name = clean_text(name)
        with self._lock:
            doc = self._load()
            if not name or doc.find_section(name) is not None:
                logger.debug("add_section ignored: %r", name)
                return doc
            doc.sections.append(Section(name=name))
            self._save(doc, f"Add section: {name}")
            return doc

    def remove_section(self, name: str) -> Document:
        with self._lock:
            doc = self._load()
            doc.sections = [s for s in doc.sections if s.name != name]
            doc.ensure_default_section()
            self._save(doc, f"Remove section: {name}")
            return doc

    @staticmethod
    def _item(doc: Document, section: str, index: int) -> Optional[Item]:
        sec = doc.find_section(section)
        item = sec.item_at(index) if sec is not None else None
        if item is None:
            logger.debug("No item %r[%d]", section, index)
        return item
