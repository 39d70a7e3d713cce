from pydantic import BaseModel, ConfigDict, Field


class UserContext(BaseModel):
    """The acting user, passed explicitly into every board mutation."""

    model_config = ConfigDict(frozen=True)

    user_id: str = Field(min_length=1, description="Identifier of the acting user.")
