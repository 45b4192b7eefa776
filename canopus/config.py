import logging
from pathlib import Path

import toml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from canopus.exceptions import ConfigurationNotFoundError, InvalidConfigurationError

CONFIG_LOCATION = Path(".github") / "canopus.toml"


class CanopusConfig(BaseModel):
    """Project settings read from .github/canopus.toml.

    Keys use kebab-case in the TOML file, e.g. `github-organization`.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    github_organization: str = Field(..., alias="github-organization", min_length=1)
    offline_checks_only: bool = Field(default=False, alias="offline-checks-only")
    enforce_one_owner_per_line: bool = Field(
        default=False, alias="enforce-one-owner-per-line"
    )
    enforce_github_teams_owners: bool = Field(
        default=False, alias="enforce-github-teams-owners"
    )
    forbid_email_owners: bool = Field(default=False, alias="forbid-email-owners")


def load_config(project_root: Path) -> CanopusConfig:
    config_location = project_root / CONFIG_LOCATION

    if not config_location.exists():
        raise ConfigurationNotFoundError(
            f"expecting configuration at : {config_location}"
        )
    if not config_location.is_file():
        raise ConfigurationNotFoundError(
            f"expecting a file not a directory : {config_location}"
        )

    logging.debug(f"Found canopus config at : {config_location}")

    try:
        contents = toml.loads(config_location.read_text(encoding="utf-8"))
        return CanopusConfig.model_validate(contents)
    except toml.TomlDecodeError as e:
        raise InvalidConfigurationError(
            f"cannot parse {config_location}: {e}"
        ) from None
    except ValidationError as e:
        raise InvalidConfigurationError(
            f"invalid configuration at {config_location}: {e}"
        ) from None
