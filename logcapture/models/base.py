"""Base model shared by items, setups, statistics and result trees."""

from pydantic import BaseModel, ConfigDict


class Model(BaseModel):
    """Immutable model rejecting unknown fields in relayed results."""

    model_config = ConfigDict(frozen=True, extra="forbid")
