"""Claude Code API credential kind."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ccswitch.files import write_claude_settings
from ccswitch.registry.descriptors import ConfigDescriptor, Endpoints, MarkerSpec

DEFAULT_BASE_URL = "https://api.anthropic.com"


class ApiKeyData(BaseModel):
    """Payload of an API credential record.

    Attributes:
        anthropic_auth_token: Token projected into ANTHROPIC_AUTH_TOKEN and
            ANTHROPIC_API_KEY.
        anthropic_base_url: Optional API base URL.

    """

    model_config = ConfigDict(extra="forbid")

    anthropic_auth_token: str = Field(
        ...,
        description="ANTHROPIC_AUTH_TOKEN value",
    )
    anthropic_base_url: str | None = Field(
        DEFAULT_BASE_URL,
        description="ANTHROPIC_BASE_URL value",
    )

    @field_validator("anthropic_auth_token")
    @classmethod
    def _token_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("anthropic_auth_token is required")
        return value


claude_code_kind = ConfigDescriptor(
    kind_id="claude-code",
    display_name="Claude Code API Keys",
    description="Manage Claude Code API credentials",
    default_data={
        "anthropic_auth_token": "",
        "anthropic_base_url": DEFAULT_BASE_URL,
    },
    endpoints=Endpoints(
        create="create_api_key",
        list="get_api_keys_config",
        update="update_api_key",
        delete="delete_api_key",
        set_active="set_api_key_active",
    ),
    external_file_path="~/.claude/settings.json",
    on_activate=write_claude_settings,
    marker=MarkerSpec(
        data_field="anthropic_auth_token",
        file_keys=("ANTHROPIC_AUTH_TOKEN", "ANTHROPIC_API_KEY"),
    ),
    data_model=ApiKeyData,
    secret_fields=("anthropic_auth_token",),
)
