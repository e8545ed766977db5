from enum import Enum
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field


class LcdStatus(str, Enum):
    MEETS = "meets"
    PARTIALLY_MEETS = "partially meets"
    DOES_NOT_MEET = "does not meet"
    UNCLASSIFIED = "unclassified"


class KeyValue(BaseModel):
    label: str
    value: str


# --- List entries ---

class ScalarEntry(BaseModel):
    kind: Literal["scalar"] = "scalar"
    value: str

    def lines(self) -> List[str]:
        return [self.value]


class GenericEntry(BaseModel):
    kind: Literal["generic"] = "generic"
    items: List[KeyValue] = Field(default_factory=list)

    def lines(self) -> List[str]:
        return [f"{item.label}: {item.value}" for item in self.items]


class CodedEntryView(BaseModel):
    """One recommended CPT code."""

    kind: Literal["cpt"] = "cpt"
    code: str
    description: str
    requires_lcd: bool
    requirement: str  # "Yes – L12345", "Yes" or "No"
    lcd_code: Optional[str] = None
    status: Optional[LcdStatus] = None  # only set when coverage is required
    status_text: Optional[str] = None
    extras: List[KeyValue] = Field(default_factory=list)

    def lines(self) -> List[str]:
        lines = [f"{self.code}: {self.description}", f"LCD Required: {self.requirement}"]
        if not self.requires_lcd and self.lcd_code:
            lines.append(f"LCD Code: {self.lcd_code}")
        if self.status is not None:
            lines.append(f"LCD Status: {self.status_text or 'Not evaluated'} [{self.status.value}]")
        lines.extend(f"{item.label}: {item.value}" for item in self.extras)
        return lines


class ValidationEntryView(BaseModel):
    kind: Literal["lcd_validation"] = "lcd_validation"
    cpt_code: Optional[str] = None
    lcd_code: Optional[str] = None
    status: LcdStatus = LcdStatus.UNCLASSIFIED
    status_text: Optional[str] = None
    requirements: List[str] = Field(default_factory=list)
    extras: List[KeyValue] = Field(default_factory=list)

    def lines(self) -> List[str]:
        lines = []
        if self.cpt_code:
            lines.append(f"CPT Code: {self.cpt_code}")
        lines.append(f"LCD Code: {self.lcd_code or 'Not specified'}")
        lines.append(f"Status: {self.status_text or 'Not evaluated'} [{self.status.value}]")
        lines.extend(f"- {requirement}" for requirement in self.requirements)
        lines.extend(f"{item.label}: {item.value}" for item in self.extras)
        return lines


Entry = Union[ScalarEntry, GenericEntry, CodedEntryView, ValidationEntryView]


# --- Fields ---

class ScalarField(BaseModel):
    kind: Literal["scalar"] = "scalar"
    name: str
    label: str
    value: str

    def lines(self) -> List[str]:
        return [f"{self.label}: {self.value}"]


class ObjectField(BaseModel):
    kind: Literal["object"] = "object"
    name: str
    label: str
    items: List[KeyValue] = Field(default_factory=list)

    def lines(self) -> List[str]:
        return [f"{self.label}:"] + [f"  {item.label}: {item.value}" for item in self.items]


class ListField(BaseModel):
    kind: Literal["list"] = "list"
    name: str
    label: str
    entries: List[Entry] = Field(default_factory=list)

    def lines(self) -> List[str]:
        lines = [f"{self.label}:"]
        for index, entry in enumerate(self.entries, start=1):
            entry_lines = entry.lines()
            if not entry_lines:
                continue
            lines.append(f"  {index}. {entry_lines[0]}")
            lines.extend(f"     {line}" for line in entry_lines[1:])
        return lines


FieldView = Union[ScalarField, ObjectField, ListField]


class Section(BaseModel):
    name: str
    fields: List[FieldView] = Field(default_factory=list)
    expanded: bool = True

    def toggle(self) -> bool:
        """Flip the collapsed/expanded state; returns the new expanded flag."""
        self.expanded = not self.expanded
        return self.expanded

    def field(self, name: str) -> Optional[FieldView]:
        for field in self.fields:
            if field.name == name:
                return field
        return None

    def plain_text(self) -> str:
        lines = [self.name]
        if self.expanded:
            for field in self.fields:
                lines.extend(field.lines())
        return "\n".join(lines)
