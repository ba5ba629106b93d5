import logging
from typing import Any, Type, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError

log = logging.getLogger(__name__)

T = TypeVar("T", bound="BaseConfigModel")


class BaseConfigModel(BaseModel):
    """
    Base class for all configuration schemas.
    Provides a best-effort loading mechanism.
    """

    model_config = ConfigDict(validate_assignment=True, extra="ignore")

    @classmethod
    def load_best_effort(cls: Type[T], data: Any) -> T:
        """
        Build an instance from data, validating each field on its own.
        Invalid fields are dropped and fall back to their defaults.
        """
        if not isinstance(data, dict):
            return cls.model_validate({})

        valid_data = {}
        for field_name, field_info in cls.model_fields.items():
            if field_name not in data:
                continue

            value = data[field_name]
            target_type = field_info.annotation

            # Nested sections repair themselves
            if hasattr(target_type, "load_best_effort"):
                valid_data[field_name] = target_type.load_best_effort(value)
                continue

            try:
                cls.model_validate({field_name: value})
                valid_data[field_name] = value
            except ValidationError:
                log.warning("Config field '%s.%s' is invalid. Using default.", cls.__name__, field_name)

        return cls.model_validate(valid_data)
