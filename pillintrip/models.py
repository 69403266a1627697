# pillintrip/models.py
"""Request envelopes and response shapes of the Pillintrip search endpoint."""

from __future__ import annotations

from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Оба запроса идут на один и тот же endpoint и отличаются только набором полей
SEARCH_STATE = "main_search"
ANALOG_LANGUAGE = "ru"


class _Response(BaseModel):
    # API иногда присылает id числами, лишние поля просто игнорируем
    model_config = ConfigDict(
        extra="ignore",
        frozen=True,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )


# ─────────────────────────────────────────────
# Requests
# ─────────────────────────────────────────────

class SearchMedicineRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    api_key: str = Field(repr=False)
    state: str = SEARCH_STATE
    home_country: int
    query: str


class SearchAnalogRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    api_key: str = Field(repr=False)
    state: str = SEARCH_STATE
    home_country: int
    target_country: int
    language: str = ANALOG_LANGUAGE
    medicine: int


# ─────────────────────────────────────────────
# Responses
# ─────────────────────────────────────────────

class Medicine(_Response):
    id: str = ""
    name: str = ""
    components: str = ""
    slug: str = ""
    is_popular: int = Field(0, alias="ispopular")


class MedicineInfo(_Response):
    medicine_id: str = ""
    medicine_name: str = ""
    medicine_slug: str = ""
    date_revision: str = ""


class Analog(_Response):
    analog_id: str = ""
    analog_name: str = ""
    analog_slug: str = ""
    components_match: int = 0
    applyings_match: int = 0
    treatments_match: int = 0
    percentage: int = 0

    @property
    def label(self) -> str:
        return f"{self.analog_name} ({self.percentage}%)"


class SearchMedicineResponse(_Response):
    medicines: List[Medicine] = Field(default_factory=list)

    @field_validator("medicines", mode="before")
    @classmethod
    def none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("medicines")
    @classmethod
    def drop_without_id(cls, value: List[Medicine]) -> List[Medicine]:
        # без id не собрать callback для поиска аналогов
        return [m for m in value if m.id]


class AnalogSearchResult(_Response):
    """Decoded analog search.

    ``medicine_info`` describes the queried medicine, ``home_country`` its
    home-country equivalent. The latter is decoded but not shown to the user.
    """

    medicine_info: MedicineInfo = Field(default_factory=MedicineInfo)
    home_country: MedicineInfo = Field(default_factory=MedicineInfo)
    analogs: List[Analog] = Field(default_factory=list, alias="medicine_analogs")

    @field_validator("medicine_info", "home_country", mode="before")
    @classmethod
    def none_to_info(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("analogs", mode="before")
    @classmethod
    def none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value
