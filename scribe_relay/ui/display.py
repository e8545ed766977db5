"""Rendering contexts: the display regions the controller and renderer drive."""

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from scribe_relay.core.errors import ErrorSignal
from scribe_relay.models.sections import (
    LcdStatus, Section, ListField, ObjectField, CodedEntryView, ValidationEntryView,
)

RESULTS_PANEL = "results"
ERROR_PANEL = "error"


class DisplaySurface(ABC):
    """Handles to the submit control, busy indicator, error panel and results panel."""

    @abstractmethod
    def set_submit_enabled(self, enabled: bool) -> None: ...

    @abstractmethod
    def set_busy(self, busy: bool) -> None: ...

    @abstractmethod
    def show_error(self, signal: ErrorSignal) -> None: ...

    @abstractmethod
    def clear_error(self) -> None: ...

    @abstractmethod
    def show_results(self, sections: List[Section]) -> None: ...

    @abstractmethod
    def clear_results(self) -> None: ...

    @abstractmethod
    def scroll_into_view(self, panel: str) -> None: ...


STATUS_STYLES = {
    LcdStatus.MEETS: ("✔", "green"),
    LcdStatus.PARTIALLY_MEETS: ("◐", "yellow"),
    LcdStatus.DOES_NOT_MEET: ("✘", "red"),
    LcdStatus.UNCLASSIFIED: ("?", "dim"),
}


def status_badge(status: LcdStatus, text: Optional[str]) -> Text:
    symbol, style = STATUS_STYLES[status]
    return Text(f"{symbol} {text or 'Not evaluated'}", style=style)


class ConsoleDisplay(DisplaySurface):
    """
    Terminal rendering context. Keeps the current sections so a section can
    be collapsed and the panel redrawn.
    """

    def __init__(self, console: Optional[Console] = None, collapsed: Iterable[str] = ()):
        self.console = console or Console()
        self.collapsed = set(collapsed)
        self.sections: List[Section] = []
        self.error: Optional[ErrorSignal] = None
        self.submit_enabled = True
        self.busy = False
        self._status = None

    def set_submit_enabled(self, enabled: bool) -> None:
        self.submit_enabled = enabled

    def set_busy(self, busy: bool) -> None:
        self.busy = busy
        if busy and self._status is None:
            self._status = self.console.status("Processing...")
            self._status.start()
        elif not busy and self._status is not None:
            self._status.stop()
            self._status = None

    def show_error(self, signal: ErrorSignal) -> None:
        self.error = signal

    def clear_error(self) -> None:
        self.error = None

    def show_results(self, sections: List[Section]) -> None:
        self.sections = list(sections)
        for section in self.sections:
            if section.name in self.collapsed and section.expanded:
                section.toggle()

    def clear_results(self) -> None:
        self.sections = []

    def scroll_into_view(self, panel: str) -> None:
        if panel == ERROR_PANEL and self.error is not None:
            self.console.print(Panel(Text(self.error.one_line()), title=self.error.kind.value, style="red"))
        elif panel == RESULTS_PANEL:
            for section in self.sections:
                self.console.print(self.render_section(section))

    def render_section(self, section: Section) -> Panel:
        if not section.expanded:
            return Panel(Text("(collapsed)", style="dim"), title=Text(f"▸ {section.name}"), title_align="left")

        parts = []
        for field in section.fields:
            if isinstance(field, ListField):
                parts.append(Text(field.label, style="bold"))
                for index, entry in enumerate(field.entries, start=1):
                    parts.append(self._render_entry(index, entry))
            elif isinstance(field, ObjectField):
                table = Table(title=Text(field.label), show_header=False, title_justify="left")
                for item in field.items:
                    table.add_row(Text(item.label), Text(item.value))
                parts.append(table)
            else:
                line = Text()
                line.append(f"{field.label}: ", style="bold")
                line.append(field.value)
                parts.append(line)
        return Panel(Group(*parts), title=Text(f"▾ {section.name}"), title_align="left")

    def _render_entry(self, index: int, entry) -> Text:
        lines = entry.lines()
        text = Text(f"  {index}. ")
        if isinstance(entry, CodedEntryView) and entry.status is not None:
            text.append("\n     ".join(line for line in lines if not line.startswith("LCD Status:")))
            text.append("\n     LCD Status: ")
            text.append_text(status_badge(entry.status, entry.status_text))
            return text
        if isinstance(entry, ValidationEntryView):
            text.append("\n     ".join(line for line in lines if not line.startswith("Status:")))
            text.append("\n     Status: ")
            text.append_text(status_badge(entry.status, entry.status_text))
            return text
        text.append("\n     ".join(lines))
        return text
