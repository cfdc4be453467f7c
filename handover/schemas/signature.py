# This project was developed with assistance from AI tools.
"""Handover checklist signature schemas."""

from pydantic import BaseModel, ConfigDict


class Signatory(BaseModel):
    """An owner who must sign the handover checklist."""

    model_config = ConfigDict(frozen=True)

    id: int | str
    display_name: str
    is_primary: bool = False


class SignatureRecord(BaseModel):
    """A signature captured on the checklist form.

    ``image_data`` holds the drawn signature, either raw bytes or the data URL
    produced by the drawing canvas.
    """

    signatory_id: int | str | None = None
    name: str = ""
    image_data: bytes | str | None = None

    @property
    def is_valid(self) -> bool:
        return bool(self.name.strip()) and bool(self.image_data)


class SignatureSetResult(BaseModel):
    """Outcome of validating the owner signatures on one checklist."""

    model_config = ConfigDict(frozen=True)

    complete: bool
    missing: list[Signatory] = []
    poa_substituted: bool = False
