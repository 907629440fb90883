from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from accommodation.utils.sanitizers import sanitize_string

# Free text with any markup stripped
SafeStr = Annotated[str, AfterValidator(sanitize_string)]


class RequestSchema(BaseModel):
    """
    Base for request bodies.

    Fields accept both the snake_case name and its camelCase alias, since the
    web client sends camelCase. Unknown keys are ignored.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra='ignore',
    )

    def provided(self):
        """Only the fields the client actually sent, for partial updates"""
        return self.model_dump(exclude_unset=True)
