from typing import Annotated

from pydantic import BaseModel, Field

from docrepo.domain.shared.data_types import PositiveInt, RefreshPolicy


class RepositoryConfiguration(BaseModel):
    refresh: Annotated[
        RefreshPolicy,
        Field(description="Refresh policy used on writes (near-real-time when false)"),
    ] = "false"
    lookup_size: Annotated[
        PositiveInt,
        Field(description="Maximum hits returned by field and range lookups"),
    ] = 10000
    bulk_chunk_size: Annotated[
        PositiveInt, Field(description="Documents sent per bulk request")
    ] = 500
    default_page_size: PositiveInt = 10
