"""Run-wide setup data shared by every test unit."""

import random
from collections.abc import Mapping

from tint.models.base import Model

# Environment variables that can pin the generated resource names.
RESOURCE_NAME_VARIABLES: Mapping[str, str] = {
    "resource_name": "TINT_RESOURCE_NAME",
    "resource_name_1": "TINT_RESOURCE_NAME_1",
    "resource_name_2": "TINT_RESOURCE_NAME_2",
}


class SetupData(Model):
    """Generated resource names for one run."""

    resource_name: str
    resource_name_1: str
    resource_name_2: str

    @classmethod
    def generate(cls, prefix: str, rng: random.Random | None = None) -> "SetupData":
        """Generate three resource names of the form ``<prefix><0..10000>``."""
        rng = rng or random.Random()
        return cls(
            **{
                field: f"{prefix}{rng.randint(0, 10000)}"
                for field in RESOURCE_NAME_VARIABLES
            }
        )

    def resolve(self, environment: Mapping[str, str]) -> "SetupData":
        """Prefer externally supplied names over generated ones."""
        return self.model_copy(
            update={
                field: environment[variable]
                for field, variable in RESOURCE_NAME_VARIABLES.items()
                if environment.get(variable)
            }
        )

    def as_variables(self) -> dict[str, str]:
        """Variables handed to the provisioner's apply step."""
        return self.model_dump()
