from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TvRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    method: str = Field(alias="m")
    params: list[Any] = Field(default_factory=list, alias="p")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class TvEvent(BaseModel):
    type: str | None = Field(default=None, alias="m")
    params: list[Any] | None = Field(default=None, alias="p")


class QsdEnvelope(BaseModel):
    symbol: str = Field(alias="n")
    status: str | None = Field(default=None, alias="s")
    data: Any = Field(default=None, alias="v")
