from typing import Any, Dict, List, NamedTuple, Optional, Tuple
import json
import logging
import re

from pydantic import ValidationError

from scribe_relay.core.errors import ErrorKind, ErrorSignal, DISPLAY_FAULT_MESSAGE
from scribe_relay.models.clinical_result import (
    ClinicalResult, CPTCode, LCDValidationResult,
    PATIENT_FIELDS, NOTE_FIELDS, PAIN_FIELD, ICD_FIELD, CPT_FIELD,
    LCD_VALIDATION_FIELD, QPP_FIELD, FOLLOW_UP_FIELD, GPT_RESPONSE_FIELD,
)
from scribe_relay.models.sections import (
    Entry, FieldView, KeyValue, LcdStatus, Section,
    ScalarEntry, GenericEntry, CodedEntryView, ValidationEntryView,
    ScalarField, ObjectField, ListField,
)

logger = logging.getLogger(__name__)


class Category(NamedTuple):
    name: str
    fields: Tuple[str, ...]


# Processed in order; the first category naming a field claims it
CATEGORIES: Tuple[Category, ...] = (
    Category("Patient Information", PATIENT_FIELDS),
    Category("Clinical Note", NOTE_FIELDS),
    Category("Pain Assessment", (PAIN_FIELD,)),
    Category("ICD Codes", (ICD_FIELD,)),
    Category("CPT Codes", (CPT_FIELD,)),
    Category("LCD Validation", (LCD_VALIDATION_FIELD,)),
    Category("QPP Measures", (QPP_FIELD,)),
    Category("Follow-Up", (FOLLOW_UP_FIELD,)),
    Category("Model Response", (GPT_RESPONSE_FIELD,)),
)
OTHER_CATEGORY = "Other Information"

STATUS_BY_TEXT = {
    "meets": LcdStatus.MEETS,
    "partially meets": LcdStatus.PARTIALLY_MEETS,
    "does not meet": LcdStatus.DOES_NOT_MEET,
}

_WORD_SEPARATORS = re.compile(r"[\s_\-.]+")


def format_label(name: str) -> str:
    """
    Turn a field name into a display label.

    "history_of_present_illness" -> "History Of Present Illness"
    """
    words = [word for word in _WORD_SEPARATORS.split(str(name)) if word]
    return " ".join(word[:1].upper() + word[1:] for word in words)


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, dict)):
        return not value
    return False


def format_value(value: Any) -> str:
    if value is None:
        return "Not specified"
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    # Nested containers inside a dump
    return json.dumps(value, ensure_ascii=False, default=str)


def classify_status(status: Optional[str]) -> LcdStatus:
    """Case-insensitive exact match; anything else is unclassified."""
    if not isinstance(status, str):
        return LcdStatus.UNCLASSIFIED
    return STATUS_BY_TEXT.get(status.lower(), LcdStatus.UNCLASSIFIED)


def group_fields(result: ClinicalResult) -> List[Tuple[str, List[str]]]:
    """
    Assign every non-empty top-level field to a category.

    Args:
        result: Parsed upstream document

    Returns:
        Ordered (category name, field names) pairs, empty categories omitted,
        with unclaimed fields last under "Other Information"
    """
    claimed = set()
    groups: List[Tuple[str, List[str]]] = []
    for category in CATEGORIES:
        present = [name for name in category.fields if name in result and not is_empty(result[name])]
        claimed.update(category.fields)
        if present:
            groups.append((category.name, present))

    others = [name for name, value in result.items() if name not in claimed and not is_empty(value)]
    if others:
        groups.append((OTHER_CATEGORY, others))
    return groups


def _dump(mapping: Dict[str, Any]) -> List[KeyValue]:
    return [KeyValue(label=format_label(key), value=format_value(value)) for key, value in mapping.items()]


def render_cpt_entry(raw: Dict[str, Any]) -> CodedEntryView:
    cpt = CPTCode.model_validate(raw)
    requires_lcd = bool(cpt.requires_lcd)
    if requires_lcd:
        requirement = f"Yes – {cpt.lcd_code}" if cpt.lcd_code else "Yes"
    else:
        requirement = "No"
    return CodedEntryView(
        code=cpt.code or "Not specified",
        description=cpt.description or "Not specified",
        requires_lcd=requires_lcd,
        requirement=requirement,
        lcd_code=cpt.lcd_code,
        status=classify_status(cpt.lcd_status) if requires_lcd else None,
        status_text=cpt.lcd_status if requires_lcd else None,
        extras=_dump(cpt.extras()),
    )


def render_validation_entry(raw: Dict[str, Any]) -> ValidationEntryView:
    validation = LCDValidationResult.model_validate(raw)
    return ValidationEntryView(
        cpt_code=validation.cpt_code,
        lcd_code=validation.lcd_code,
        status=classify_status(validation.status),
        status_text=validation.status,
        requirements=list(validation.requirements),
        extras=_dump(validation.extras()),
    )


# Arrays whose object entries have a dedicated view
ENTRY_RENDERERS = {
    CPT_FIELD: render_cpt_entry,
    LCD_VALIDATION_FIELD: render_validation_entry,
}


def render_entry(field_name: str, element: Any) -> Entry:
    if isinstance(element, dict):
        renderer = ENTRY_RENDERERS.get(field_name)
        if renderer is not None:
            try:
                return renderer(element)
            except ValidationError as e:
                logger.warning(f"Entry in {field_name} does not fit its record shape, dumping: {e.error_count()} error(s)")
        return GenericEntry(items=_dump(element))
    return ScalarEntry(value=format_value(element))


def render_field(name: str, value: Any) -> FieldView:
    """Dispatch on the runtime shape of one top-level value."""
    label = format_label(name)
    if isinstance(value, list):
        return ListField(name=name, label=label, entries=[render_entry(name, element) for element in value])
    if isinstance(value, dict):
        return ObjectField(name=name, label=label, items=_dump(value))
    return ScalarField(name=name, label=label, value=format_value(value))


def build_sections(result: ClinicalResult) -> List[Section]:
    """
    Build one Section per non-empty category.

    Raises:
        TypeError: If result is not a mapping
    """
    if not isinstance(result, dict):
        raise TypeError(f"result must be a JSON object, got {type(result).__name__}")
    return [
        Section(name=name, fields=[render_field(field, result[field]) for field in fields])
        for name, fields in group_fields(result)
    ]


class ResultRenderer:
    """
    Renders a ClinicalResult into the supplied display context. Never raises:
    a fault while building sections becomes a DisplayFault signal.
    """

    def render(self, result: ClinicalResult, context) -> Optional[List[Section]]:
        """
        Replace everything the context shows with sections for this result.

        Args:
            result: Parsed upstream document
            context: DisplaySurface owning the results and error panels

        Returns:
            The displayed sections, or None when rendering failed
        """
        try:
            sections = build_sections(result)
        except Exception as e:
            logger.error(f"Error displaying results: {e.__class__.__name__}: {str(e)}")
            context.clear_results()
            context.show_error(ErrorSignal(
                kind=ErrorKind.DISPLAY_FAULT,
                message=DISPLAY_FAULT_MESSAGE,
                detail=str(e),
            ))
            return None

        context.show_results(sections)
        return sections
