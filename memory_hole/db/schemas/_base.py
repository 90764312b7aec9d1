from pydantic import BaseModel, ConfigDict

from memory_hole.db.keys import to_kebab_key


class PayloadModel(BaseModel):
    """Accepts snake_case or hyphenated keys; dumps hyphenated keys."""

    model_config = ConfigDict(alias_generator=to_kebab_key, populate_by_name=True)

    def payload(self, *, exclude=None) -> dict:
        return self.model_dump(by_alias=True, exclude=exclude)

    @classmethod
    def coerce(cls, value):
        """Return ``value`` as an instance, validating mappings."""
        if isinstance(value, cls):
            return value
        return cls.model_validate(value)
