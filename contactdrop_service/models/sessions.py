from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional

# 100 years; keeps the computed expiry a finite integer
MAX_SESSION_MINUTES = 100 * 365 * 24 * 60


def _falsy_as_missing(v):
    # "", 0 and false count as missing, not as values
    if isinstance(v, (bool, int, float, str)) and not v:
        return None
    return v


class Contact(BaseModel):
    name: str
    phone: str


class Session(BaseModel):
    """Persisted session document.

    Serialised with the wire keys ``id``, ``name``, ``expiresAt`` and
    ``contacts``; use ``model_dump(by_alias=True)`` when writing it out.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    expires_at: int = Field(alias="expiresAt")
    contacts: list[Contact] = Field(default_factory=list)


class CreateSessionRequest(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    sessionName: Optional[str] = None
    minutes: Optional[float] = Field(default=None, allow_inf_nan=False,
                                     ge=-MAX_SESSION_MINUTES, le=MAX_SESSION_MINUTES)

    @field_validator("minutes", mode="before")
    @classmethod
    def blank_minutes_as_missing(cls, v):
        # Form posts send an untouched input as ""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("sessionName", mode="before")
    @classmethod
    def falsy_name_as_missing(cls, v):
        return _falsy_as_missing(v)


class ContactRequest(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    name: Optional[str] = None
    phone: Optional[str] = None

    @field_validator("name", "phone", mode="before")
    @classmethod
    def falsy_as_missing(cls, v):
        return _falsy_as_missing(v)
