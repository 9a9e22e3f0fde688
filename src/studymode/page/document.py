"""
Live document abstraction.

The suppression engine works against ``Document``: CSS queries, parent
traversal, attribute and inline-style access, one stylesheet slot per id, and
a subtree-change watch. ``HtmlDocument`` implements it over a BeautifulSoup
tree and reports child-list mutations made through its own mutation API to
registered watches, the way a browser reports them to a MutationObserver.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from bs4 import BeautifulSoup, Tag
from soupsieve import SelectorSyntaxError

from ..exceptions import RuleQueryError

logger = logging.getLogger(__name__)

Element = Any


@dataclass
class MutationRecord:
    """A child-list change below ``target``."""

    target: Element
    added: list[Element] = field(default_factory=list)
    removed: list[Element] = field(default_factory=list)


MutationCallback = Callable[[list[MutationRecord]], None]


class MutationWatch:
    """Handle for a registered watch. ``disconnect`` is idempotent."""

    def __init__(self, owner: HtmlDocument, callback: MutationCallback) -> None:
        self._owner = owner
        self._callback = callback
        self._connected = True

    @property
    def connected(self) -> bool:
        return self._connected

    def deliver(self, records: list[MutationRecord]) -> None:
        if self._connected:
            self._callback(records)

    def disconnect(self) -> None:
        if not self._connected:
            return
        self._connected = False
        self._owner._watches.remove(self)


class Document(ABC):
    @abstractmethod
    def select(self, selector: str) -> list[Element]: ...

    @abstractmethod
    def parent(self, element: Element) -> Element | None: ...

    @abstractmethod
    def tag_name(self, element: Element) -> str: ...

    @abstractmethod
    def get_attribute(self, element: Element, name: str) -> str | None: ...

    @abstractmethod
    def set_attribute(self, element: Element, name: str, value: str) -> None: ...

    @abstractmethod
    def remove_attribute(self, element: Element, name: str) -> None: ...

    @abstractmethod
    def get_style_property(self, element: Element, name: str) -> str: ...

    @abstractmethod
    def set_style_property(self, element: Element, name: str, value: str) -> None: ...

    @abstractmethod
    def get_stylesheet(self, style_id: str) -> str | None: ...

    @abstractmethod
    def set_stylesheet(self, style_id: str, css: str) -> None: ...

    @abstractmethod
    def remove_stylesheet(self, style_id: str) -> None: ...

    @abstractmethod
    def observe(self, callback: MutationCallback) -> MutationWatch: ...


def split_declarations(text: str | None) -> list[str]:
    """Split an inline ``style`` attribute into raw declarations.

    Semicolons inside parentheses or quotes (``url(data:...;base64,...)``,
    ``content: ";"``) do not end a declaration.
    """
    parts: list[str] = []
    current: list[str] = []
    depth = 0
    quote = ""
    escaped = False
    for ch in text or "":
        if escaped:
            escaped = False
        elif ch == "\\":
            escaped = True
        elif quote:
            if ch == quote:
                quote = ""
        elif ch in "\"'":
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")" and depth:
            depth -= 1
        elif ch == ";" and not depth:
            parts.append("".join(current))
            current = []
            continue
        current.append(ch)
    parts.append("".join(current))
    return [p.strip() for p in parts if p.strip()]


def property_key(name: str) -> str:
    """Custom properties are case-sensitive, standard ones are not."""
    name = name.strip()
    return name if name.startswith("--") else name.lower()


def parse_style(text: str | None) -> dict[str, str]:
    """Parse an inline ``style`` attribute into property -> value."""
    declarations: dict[str, str] = {}
    for part in split_declarations(text):
        name, sep, value = part.partition(":")
        key = property_key(name)
        if sep and key:
            declarations[key] = value.strip()
    return declarations


class HtmlDocument(Document):
    """Headless live document over BeautifulSoup (lxml parser)."""

    def __init__(self, markup: str = "", url: str = "") -> None:
        self.url = url
        self._soup = BeautifulSoup(markup, "lxml")
        self._watches: list[MutationWatch] = []

    @property
    def soup(self) -> BeautifulSoup:
        return self._soup

    @property
    def root(self) -> Tag:
        """The document element (``<html>``), or the soup itself for fragments."""
        html = self._soup.find("html")
        return html if isinstance(html, Tag) else self._soup

    def to_html(self) -> str:
        return str(self._soup)

    # -- queries --

    def select(self, selector: str) -> list[Element]:
        try:
            return list(self._soup.select(selector))
        except SelectorSyntaxError as e:
            raise RuleQueryError(selector, str(e)) from e

    def select_one(self, selector: str) -> Element | None:
        matches = self.select(selector)
        return matches[0] if matches else None

    def get_element_by_id(self, element_id: str) -> Element | None:
        return self._soup.find(id=element_id)

    def parent(self, element: Element) -> Element | None:
        parent = element.parent
        # BeautifulSoup is itself a Tag; the document node is not an element.
        if parent is None or isinstance(parent, BeautifulSoup):
            return None
        return parent

    def tag_name(self, element: Element) -> str:
        return (element.name or "").lower()

    def get_attribute(self, element: Element, name: str) -> str | None:
        value = element.get(name)
        if value is None:
            return None
        if isinstance(value, list):
            return " ".join(value)
        return str(value)

    def set_attribute(self, element: Element, name: str, value: str) -> None:
        element[name] = value

    def remove_attribute(self, element: Element, name: str) -> None:
        if name in element.attrs:
            del element[name]

    def get_style_property(self, element: Element, name: str) -> str:
        return parse_style(self.get_attribute(element, "style")).get(property_key(name), "")

    def set_style_property(self, element: Element, name: str, value: str) -> None:
        """Set or (with an empty value) remove one declaration.

        Other declarations are kept verbatim and in place.
        """
        key = property_key(name)
        parts: list[str] = []
        written = False
        for part in split_declarations(self.get_attribute(element, "style")):
            part_name, sep, _ = part.partition(":")
            if sep and property_key(part_name) == key:
                if value and not written:
                    parts.append(f"{key}: {value}")
                    written = True
                continue
            parts.append(part)

        if value and not written:
            parts.append(f"{key}: {value}")

        if parts:
            element["style"] = "; ".join(parts)
        else:
            self.remove_attribute(element, "style")

    # -- stylesheets --

    def get_stylesheet(self, style_id: str) -> str | None:
        el = self.get_element_by_id(style_id)
        if el is None:
            return None
        return el.string or ""

    def set_stylesheet(self, style_id: str, css: str) -> None:
        el = self.get_element_by_id(style_id)
        if el is None:
            el = self._soup.new_tag("style", attrs={"id": style_id, "type": "text/css"})
            el.string = css
            self.append_child(self.root, el)
            return

        if (el.string or "") == css:
            return
        old = list(el.contents)
        el.string = css
        self._notify(MutationRecord(target=el, added=list(el.contents), removed=old))

    def remove_stylesheet(self, style_id: str) -> None:
        el = self.get_element_by_id(style_id)
        if el is not None:
            self.remove(el)

    # -- mutation API --

    def create_fragment(self, markup: str) -> list[Element]:
        """Parse markup into detached top-level nodes."""
        fragment = BeautifulSoup(markup, "lxml")
        body = fragment.body
        container = body if body is not None else fragment
        return [node.extract() for node in list(container.contents)]

    def append_child(self, parent: Element, child: Element) -> Element:
        parent.append(child)
        self._notify(MutationRecord(target=parent, added=[child]))
        return child

    def append_html(self, parent: Element, markup: str) -> list[Element]:
        """Insert parsed markup at the end of ``parent``; one record for the batch."""
        nodes = self.create_fragment(markup)
        for node in nodes:
            parent.append(node)
        if nodes:
            self._notify(MutationRecord(target=parent, added=nodes))
        return nodes

    def remove(self, element: Element) -> None:
        parent = element.parent
        element.extract()
        if parent is not None:
            self._notify(MutationRecord(target=parent, removed=[element]))

    # -- watches --

    def observe(self, callback: MutationCallback) -> MutationWatch:
        watch = MutationWatch(self, callback)
        self._watches.append(watch)
        return watch

    def _notify(self, record: MutationRecord) -> None:
        for watch in list(self._watches):
            watch.deliver([record])
