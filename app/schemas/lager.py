"""
Pydantic schemas for the lager.json snapshot.
The snapshot maps a location name to the list of items stocked there.
"""

from typing import Dict, List, Optional
from pydantic import BaseModel, Field, RootModel, field_validator


class AlternativeArticle(BaseModel):
    """Cross reference to another maker code / article number"""
    markeskod: str = Field(..., alias="märkeskod")
    artikelnummer: str

    class Config:
        populate_by_name = True

    @field_validator("markeskod", "artikelnummer", mode="before")
    @classmethod
    def number_to_str(cls, v):
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class LagerItem(BaseModel):
    """One raw snapshot item, keyed as in the export"""
    mk: Optional[str] = Field(None, alias="MK")
    artikelnr: Optional[str] = Field(None, alias="Artikelnr")
    benamning: Optional[str] = Field(None, alias="Benämning")
    benamning2: Optional[str] = Field(None, alias="Benämning2")
    status: Optional[str] = Field(None, alias="Status")
    extrainfo: Optional[str] = Field(None, alias="ExtraInfo")
    lagerplats: Optional[str] = Field(None, alias="Lagerplats")
    bild: Optional[bool] = Field(None, alias="Bild")
    paket: Optional[List[str]] = Field(None, alias="Paket")
    fordon: Optional[List[str]] = Field(None, alias="Fordon")
    alternativart: Optional[List[AlternativeArticle]] = Field(None, alias="AlternativArt")

    class Config:
        populate_by_name = True
        extra = "forbid"

    @field_validator("mk", "artikelnr", "lagerplats", "status", mode="before")
    @classmethod
    def number_to_str(cls, v):
        # Article numbers are sometimes exported as bare numbers
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class LagerSnapshot(RootModel[Dict[str, List[LagerItem]]]):
    """Whole snapshot: location -> items"""
    pass
