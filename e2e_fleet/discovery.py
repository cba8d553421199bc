"""Discovery of repositories in a GitHub organization."""

import logging
from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

import aiohttp
from pydantic import BaseModel, Field, SecretStr

from e2e_fleet.models.task import clone_locator

log = logging.getLogger(__name__)


class DiscoveryError(RuntimeError):
    """Raised when the repository listing cannot be retrieved."""


class DiscoveryConfig(BaseModel):
    """Configuration for GitHub organization discovery."""

    token: SecretStr
    org: str = "openshift"
    name_filter: str = "operator"
    api_base_url: str = "https://api.github.com"
    clone_host: str = "https://github.com"
    per_page: int = Field(default=100, ge=1, le=100)


class GitHubRepository(BaseModel):
    """A repository from the GitHub organization listing API."""

    name: str


@dataclass(frozen=True, kw_only=True)
class GitHubDiscovery:
    """List clone locators of an organization's repositories."""

    config: DiscoveryConfig
    session: aiohttp.ClientSession = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: DiscoveryConfig
    ) -> AsyncGenerator["GitHubDiscovery", None]:
        """Create discovery client with managed session lifecycle."""
        headers = {
            "Authorization": f"Bearer {config.token.get_secret_value()}",
            "Accept": "application/vnd.github+json",
        }
        async with aiohttp.ClientSession(
            base_url=config.api_base_url,
            headers=headers,
        ) as session:
            yield cls(config=config, session=session)

    async def list_repositories(self) -> Sequence[str]:
        """Return clone locators of repositories whose name matches the filter.

        Names are matched case-insensitively against `name_filter`; each
        repository appears once, in listing order.
        """
        name_filter = self.config.name_filter.lower()
        locators: dict[str, None] = {}

        async for repository in self._iter_repositories():
            if name_filter not in repository.name.lower():
                continue
            locator = clone_locator(
                self.config.org, repository.name, self.config.clone_host
            )
            locators.setdefault(locator, None)

        log.info(
            "Discovered %d repositories in %s matching '%s'",
            len(locators),
            self.config.org,
            self.config.name_filter,
        )
        return list(locators)

    async def _iter_repositories(self) -> AsyncGenerator[GitHubRepository, None]:
        url = f"/orgs/{self.config.org}/repos"
        page = 1

        while True:
            params = {"per_page": str(self.config.per_page), "page": str(page)}

            async with self.session.get(url, params=params) as response:
                if response.status != 200:
                    text = await response.text()
                    raise DiscoveryError(
                        f"Failed to list repositories: {response.status} {text}"
                    )
                data = await response.json()

            repositories = [GitHubRepository.model_validate(item) for item in data]
            for repository in repositories:
                yield repository

            if len(repositories) < self.config.per_page:
                break

            page += 1
