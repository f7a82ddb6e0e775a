"""Tests for client/display.py."""

from __future__ import annotations

from livefields.client.display import Display, FieldElement


class TestFieldElement:
    def test_listener_fires_only_on_change(self):
        element = FieldElement("amount", "100")
        changes = []
        element.add_listener(lambda el, old, new: changes.append((el.field, old, new)))
        element.text = "100"
        element.text = "250"
        assert changes == [("amount", "100", "250")]

    def test_focus_and_blur(self):
        element = FieldElement("name")
        element.focus(select_all=True)
        assert element.focused and element.selected
        element.blur()
        assert not element.focused and not element.selected


class TestDisplay:
    def test_lookup(self):
        display = Display(["amount", "name"])
        assert display.lookup("amount").field == "amount"
        assert display.lookup("currency") is None
        assert len(display) == 2

    def test_add_returns_existing(self):
        display = Display()
        first = display.add("amount", "1")
        assert display.add("amount", "2") is first
        assert first.text == "1"

    def test_listener_covers_future_elements(self):
        display = Display(["amount"])
        changes = []
        display.add_listener(lambda el, old, new: changes.append((el.field, new)))
        display.add("name")
        display.lookup("amount").text = "5"
        display.lookup("name").text = "Al"
        assert changes == [("amount", "5"), ("name", "Al")]
        assert display.lookup("amount").text == "5"
        assert display.lookup("name").text == "Al"
