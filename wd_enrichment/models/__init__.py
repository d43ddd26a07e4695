from typing import Any

# 3rd party imports
from pydantic import BaseModel, ConfigDict


class ValidatedModel(BaseModel):
    """A strict BaseModel rejecting attribute names the model does not declare."""

    model_config = ConfigDict(use_enum_values=True)

    @classmethod
    def attribute_in_model(cls, attr_name: str):
        """Check if a given attribute name is present in the model fields."""
        return attr_name in cls.model_fields

    def __init__(self, **data: Any):
        """
        Initialize the model with the given data.

        :param data: A dictionary of attribute names and their values.

        :raises ValueError: If an attribute name in the data is not valid for the model.
        """
        for name in data:
            if not self.attribute_in_model(name):
                raise ValueError(
                    f"{name} is not a valid attribute for {self.__class__.__name__}"
                )
        super().__init__(**data)


# import models into model package
from wd_enrichment.models.documents import *  # noqa: E402, F403
from wd_enrichment.models.events import *  # noqa: E402, F403
