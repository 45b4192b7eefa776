from collections.abc import Callable, Generator
from pathlib import Path

import pytest
import stamina

from canopus.config import CONFIG_LOCATION


@pytest.fixture(autouse=True, scope="session")
def deactivate_retries() -> None:
    """Disable stamina retries globally for all tests.

    Individual retry tests can re-enable with the enable_retry fixture.
    """
    stamina.set_active(False)


@pytest.fixture
def enable_retry() -> Generator[None, None, None]:
    stamina.set_active(True)
    stamina.set_testing(True, attempts=3)
    yield
    stamina.set_testing(False)
    stamina.set_active(False)


@pytest.fixture
def project_builder(tmp_path: Path) -> Callable[..., Path]:
    """Lays out a project under tmp_path.

    Example:
        project_builder(
            codeowners="*.rs @org/crabbers\\n",
            config='github-organization = "org"\\n',
            files=["main.rs"],
        )
    """

    def builder(
        codeowners: str | None = None,
        config: str | None = None,
        files: list[str] | None = None,
        codeowners_location: str = ".github/CODEOWNERS",
    ) -> Path:
        if codeowners is not None:
            location = tmp_path / codeowners_location
            location.parent.mkdir(parents=True, exist_ok=True)
            location.write_text(codeowners, encoding="utf-8")
        if config is not None:
            location = tmp_path / CONFIG_LOCATION
            location.parent.mkdir(parents=True, exist_ok=True)
            location.write_text(config, encoding="utf-8")
        for name in files or []:
            path = tmp_path / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("", encoding="utf-8")
        return tmp_path

    return builder
