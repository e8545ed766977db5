"""Unit tests for the terminal rendering context, driven through a recording rich Console."""

import io

import pytest
from rich.console import Console

from scribe_relay.core.errors import ErrorKind, ErrorSignal
from scribe_relay.models.sections import LcdStatus
from scribe_relay.services.result_renderer import ResultRenderer
from scribe_relay.ui.display import ERROR_PANEL, RESULTS_PANEL, ConsoleDisplay, status_badge


def recording_display(collapsed=()) -> ConsoleDisplay:
    console = Console(record=True, file=io.StringIO(), width=120, color_system=None)
    return ConsoleDisplay(console, collapsed=collapsed)


def render_document(display: ConsoleDisplay, document) -> str:
    assert ResultRenderer().render(document, display) is not None
    display.scroll_into_view(RESULTS_PANEL)
    return display.console.export_text()


class TestBusyIndicator:
    def test_start_and_stop_pair(self) -> None:
        display = recording_display()
        display.set_busy(True)
        status = display._status
        assert display.busy is True
        assert status is not None

        display.set_busy(True)
        assert display._status is status

        display.set_busy(False)
        assert display.busy is False
        assert display._status is None

    def test_stop_without_start_is_harmless(self) -> None:
        display = recording_display()
        display.set_busy(False)
        assert display._status is None

    def test_submit_control_state(self) -> None:
        display = recording_display()
        display.set_submit_enabled(False)
        assert display.submit_enabled is False
        display.set_submit_enabled(True)
        assert display.submit_enabled is True


class TestCollapse:
    def test_named_sections_start_collapsed(self, chest_pain_result) -> None:
        display = recording_display(collapsed=["CPT Codes"])
        text = render_document(display, chest_pain_result)

        states = {section.name: section.expanded for section in display.sections}
        assert states == {"Clinical Note": True, "CPT Codes": False}
        assert "▸ CPT Codes" in text
        assert "(collapsed)" in text
        assert "99213" not in text
        assert "chest pain" in text

    def test_toggled_section_redraws_expanded(self, chest_pain_result) -> None:
        display = recording_display(collapsed=["CPT Codes"])
        render_document(display, chest_pain_result)

        cpt = next(section for section in display.sections if section.name == "CPT Codes")
        assert cpt.toggle() is True
        display.scroll_into_view(RESULTS_PANEL)
        text = display.console.export_text()

        assert "▾ CPT Codes" in text
        assert "99213" in text

    def test_clear_results_prints_nothing(self, chest_pain_result) -> None:
        display = recording_display()
        ResultRenderer().render(chest_pain_result, display)
        display.clear_results()
        display.scroll_into_view(RESULTS_PANEL)
        assert display.console.export_text() == ""


class TestStatusBadges:
    @pytest.mark.parametrize("status, text, expected, style", [
        (LcdStatus.MEETS, "Meets", "✔ Meets", "green"),
        (LcdStatus.PARTIALLY_MEETS, "Partially Meets", "◐ Partially Meets", "yellow"),
        (LcdStatus.DOES_NOT_MEET, "Does Not Meet", "✘ Does Not Meet", "red"),
        (LcdStatus.UNCLASSIFIED, None, "? Not evaluated", "dim"),
    ])
    def test_badge_per_status(self, status, text, expected, style) -> None:
        badge = status_badge(status, text)
        assert badge.plain == expected
        assert badge.style == style

    def test_badge_printed_with_entry(self, chest_pain_result) -> None:
        text = render_document(recording_display(), chest_pain_result)
        assert "LCD Status: ✔ Meets" in text


class TestUpstreamTextIsLiteral:
    def test_bracketed_value_kept(self) -> None:
        text = render_document(recording_display(), {"patient_info": {"note": "[bold]x"}})
        assert "[bold]x" in text

    def test_closing_tag_in_value(self) -> None:
        text = render_document(recording_display(), {"patient_info": {"name": "pain [/] radiating"}})
        assert "pain [/] radiating" in text

    def test_bracketed_scalar_and_list_values(self) -> None:
        document = {
            "chief_complaint": "[red]cough[/red]",
            "icd_codes": ["[/] J20.9"],
            "custom_field": "[link=x]y",
        }
        text = render_document(recording_display(), document)
        assert "[red]cough[/red]" in text
        assert "[/] J20.9" in text
        assert "[link=x]y" in text

    def test_bracketed_error_message(self) -> None:
        display = recording_display()
        display.show_error(ErrorSignal(kind=ErrorKind.UPSTREAM_HTTP_ERROR, message="field [/body] missing"))
        display.scroll_into_view(ERROR_PANEL)
        text = display.console.export_text()
        assert "field [/body] missing" in text
        assert ErrorKind.UPSTREAM_HTTP_ERROR.value in text

    def test_cleared_error_prints_nothing(self) -> None:
        display = recording_display()
        display.show_error(ErrorSignal(kind=ErrorKind.NETWORK, message="offline"))
        display.clear_error()
        display.scroll_into_view(ERROR_PANEL)
        assert display.console.export_text() == ""
