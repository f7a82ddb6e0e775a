"""Headless stand-in for the page elements a viewer reads and writes.

A ``Display`` maps field names to ``FieldElement`` objects, the way a page maps
``data-field`` attributes to DOM nodes.  The ``editable`` flag on an element
is the ``editing``/``idle`` switch that decides whether remote updates may
touch its text.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

ChangeListener = Callable[["FieldElement", str, str], None]


class FieldElement:
    """One displayed field value."""

    def __init__(self, field: str, text: str = "") -> None:
        self.field = field
        self._text = text
        self.editable = False
        self.focused = False
        self.selected = False
        self._listeners: list[ChangeListener] = []

    @property
    def text(self) -> str:
        return self._text

    @text.setter
    def text(self, value: str) -> None:
        old = self._text
        self._text = value
        if old != value:
            for fn in list(self._listeners):
                fn(self, old, value)

    def add_listener(self, fn: ChangeListener) -> None:
        """Call ``fn(element, old_text, new_text)`` whenever the text changes."""
        self._listeners.append(fn)

    def focus(self, select_all: bool = False) -> None:
        self.focused = True
        self.selected = select_all

    def blur(self) -> None:
        self.focused = False
        self.selected = False

    def __repr__(self) -> str:
        state = "editing" if self.editable else "idle"
        return f"FieldElement({self.field!r}, {self._text!r}, {state})"


class Display:
    """Lookup table from field name to its displayed element."""

    def __init__(self, fields: Iterable[str] = ()) -> None:
        self._elements: dict[str, FieldElement] = {}
        self._listeners: list[ChangeListener] = []
        for field in fields:
            self.add(field)

    def add(self, field: str, text: str = "") -> FieldElement:
        element = self._elements.get(field)
        if element is None:
            element = self._elements[field] = FieldElement(field, text)
            for fn in self._listeners:
                element.add_listener(fn)
        return element

    def add_listener(self, fn: ChangeListener) -> None:
        """Watch text changes on every element, current and future."""
        self._listeners.append(fn)
        for element in self._elements.values():
            element.add_listener(fn)

    def lookup(self, field: str) -> FieldElement | None:
        return self._elements.get(field)

    def __len__(self) -> int:
        return len(self._elements)
