from pydantic import BaseModel, Field, field_validator
from typing import List, Optional, Dict, Any

# A parsed upstream document: open-ended, field name -> JSON value
ClinicalResult = Dict[str, Any]

# Known top-level fields
PATIENT_FIELDS = (
    "patient_info", "patient_name", "patient_id", "age", "sex", "gender",
    "date_of_birth", "visit_date", "visit_location",
)
NOTE_FIELDS = ("chief_complaint", "history_of_present_illness", "assessment", "plan")
PAIN_FIELD = "pain_rating"
ICD_FIELD = "icd_codes"
CPT_FIELD = "recommended_cpt_codes"
LCD_VALIDATION_FIELD = "lcd_validation"
QPP_FIELD = "qpp_measures"
FOLLOW_UP_FIELD = "follow_up_instructions"
GPT_RESPONSE_FIELD = "gpt_response"


def _stringify(value: Any) -> Any:
    # Upstream occasionally sends numeric codes
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class CPTCode(BaseModel):
    code: Optional[str] = None
    description: Optional[str] = None
    requires_lcd: Optional[bool] = None
    lcd_code: Optional[str] = None
    lcd_status: Optional[str] = None # e.g., "Meets" | "Partially Meets" | "Does Not Meet"

    class Config:
        extra = "allow"

    @field_validator("code", "description", "lcd_code", "lcd_status", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return _stringify(value)

    def extras(self) -> Dict[str, Any]:
        """Fields the upstream sent beyond the known ones, in arrival order."""
        return dict(self.model_extra or {})


class LCDValidationResult(BaseModel):
    cpt_code: Optional[str] = None
    lcd_code: Optional[str] = None
    requirements: List[str] = Field(default_factory=list)
    status: Optional[str] = None

    class Config:
        extra = "allow"

    @field_validator("cpt_code", "lcd_code", "status", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return _stringify(value)

    @field_validator("requirements", mode="before")
    @classmethod
    def _coerce_requirements(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        if isinstance(value, list):
            return [_stringify(item) for item in value]
        return value

    def extras(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})
