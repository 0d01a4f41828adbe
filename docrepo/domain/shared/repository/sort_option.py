from pydantic import BaseModel, ConfigDict

from docrepo.domain.enums.sort_order import SortOrder


class SortOption(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    order: SortOrder = SortOrder.ASC
