from typing import Any, Dict

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictStr, model_validator

# Lowercased wire key -> canonical key. Older clients send SurfId/EMail
_CANONICAL_KEYS = {
    "name": "Name",
    "surfid": "SurfId",
    "externalid": "SurfId",
    "external_id": "SurfId",
    "email": "EMail",
}


class SubmissionRequest(BaseModel):
    """
    Form payload of a single registration. Values are taken verbatim,
    any string (including empty) is accepted.
    """
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    name: StrictStr = Field(default="", validation_alias=AliasChoices("Name"))
    external_id: StrictStr = Field(default="", validation_alias=AliasChoices("SurfId"))
    email: StrictStr = Field(default="", validation_alias=AliasChoices("EMail"))

    @model_validator(mode="before")
    @classmethod
    def match_keys_case_insensitively(cls, data: Any) -> Any:
        # JSON null decodes to an empty submission
        if data is None:
            return {}
        if not isinstance(data, dict):
            return data
        normalized: Dict[str, Any] = {}
        for key, value in data.items():
            canonical = _CANONICAL_KEYS.get(key.lower()) if isinstance(key, str) else None
            # null leaves the field at its default, like a missing key
            if canonical is not None and value is not None:
                normalized[canonical] = value
        return normalized
