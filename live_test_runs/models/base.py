"""Base model configuration for all API records."""

from pydantic import BaseModel, ConfigDict


class Model(BaseModel):
    """Base model with standard configuration.

    Records are immutable and accept both the API's wire names (``_id``,
    ``startedAt``) and the Python field names.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)
