# ebay_watch/schemas.py
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

Number = Union[int, float, str]

DEFAULT_MAX_RESULTS = 20
MAX_RESULTS_CAP = 100


class SearchCriteria(BaseModel):
    # Stored verbatim: any JSON value is accepted, coercion happens where a field is used.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    email: Any = None
    keyword: Any = None
    category: Any = None
    condition: Any = None
    min_price: Any = None
    max_price: Any = None
    min_bids: Any = None
    max_results: Any = None

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_unset=True)


class Listing(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: Optional[str] = None
    price: Number = "N/A"
    bids: Union[int, str] = 0
    end_time: Optional[str] = None
    condition: str = "Unknown"
    url: Optional[str] = None
    image: Optional[str] = None
    seller: Optional[str] = None
    shipping: Number = "Free"

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)
