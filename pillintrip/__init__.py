"""Pillintrip API package.

Request envelopes, response models and the async HTTP client used by the bot
to search medicines by name and to look up their analogs in another country.
"""

from .client import (
    PillintripClient,
    PillintripDecodeError,
    PillintripError,
    PillintripTransportError,
)
from .models import (
    Analog,
    AnalogSearchResult,
    Medicine,
    MedicineInfo,
    SearchAnalogRequest,
    SearchMedicineRequest,
)

__all__ = [
    "Analog",
    "AnalogSearchResult",
    "Medicine",
    "MedicineInfo",
    "PillintripClient",
    "PillintripDecodeError",
    "PillintripError",
    "PillintripTransportError",
    "SearchAnalogRequest",
    "SearchMedicineRequest",
]
