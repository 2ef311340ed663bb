from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case still accepted on input."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    def dump(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class ErrorDetail(BaseModel):
    code: str
    message: str
    details: dict = {}


class ErrorResponse(BaseModel):
    error: ErrorDetail
