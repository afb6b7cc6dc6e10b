"""Environment variable kind."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from ccswitch.files import write_environment_file
from ccswitch.registry.descriptors import ConfigDescriptor, Endpoints


class EnvironmentVariableData(BaseModel):
    """Payload of an environment variable record."""

    model_config = ConfigDict(extra="forbid")

    key: str = Field(..., min_length=1, description="Variable name, e.g. NODE_ENV")
    value: str = Field("", description="Variable value")
    scope: Literal["global", "project"] = Field("global", description="Where the variable applies")


environment_kind = ConfigDescriptor(
    kind_id="environment",
    display_name="Environment Variables",
    description="Manage environment variable configuration",
    default_data={"key": "", "value": "", "scope": "global"},
    endpoints=Endpoints(
        create="create_environment_variable",
        list="get_environment_variables_config",
        update="update_environment_variable",
        delete="delete_environment_variable",
    ),
    external_file_path="~/.config/environment.json",
    on_activate=write_environment_file,
    data_model=EnvironmentVariableData,
    secret_fields=("value",),
)
