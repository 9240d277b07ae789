"""Base Pydantic model for schemaguard.

Every data-model class in the package inherits from :class:`GuardBaseModel`
so that configuration is consistent:

- Strict field validation (no extra fields allowed)
- Immutable instances, safe to share between concurrent validations

Example:
    >>> from schemaguard.models import GuardBaseModel
    >>>
    >>> class Thing(GuardBaseModel):
    ...     name: str
    >>>
    >>> Thing(name="a").model_dump()
    {'name': 'a'}
"""

from pydantic import BaseModel, ConfigDict


class GuardBaseModel(BaseModel):
    """Base model for all schemaguard Pydantic models.

    - extra="forbid": Rejects any fields not defined in the model
    - frozen=True: Makes instances immutable for thread safety
    """

    model_config = ConfigDict(extra="forbid", frozen=True)
