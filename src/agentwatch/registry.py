"""Look up the newest published version of an installed agent.

Each install-method family has its own source of truth: the npm registry
via ``npm view``, PyPI's JSON API for pip, pipx and uv, and ``brew info``
for Homebrew. Standalone binaries have no registry to ask.
"""

from __future__ import annotations

import json
import logging

import httpx

from agentwatch.agents.installation import InstallMethod, Installation
from agentwatch.agents.version import Version, parse_version
from agentwatch.catalog.schema import AgentDef
from agentwatch.detector.strategies.brew import resolve_brew_package
from agentwatch.detector.strategies.npm import extract_npm_package_name
from agentwatch.detector.strategies.pip import extract_pip_package_name
from agentwatch.errors import CommandError, RegistryError
from agentwatch.utils.context import Context
from agentwatch.utils.subprocess import CommandRunner, run_command

logger = logging.getLogger(__name__)

PYPI_URL = "https://pypi.org/pypi/{package}/json"

# Seconds allowed for one registry query
REGISTRY_TIMEOUT = 15.0

PYTHON_METHODS = frozenset({InstallMethod.PIP, InstallMethod.PIPX, InstallMethod.UV})


def package_for(installation: Installation, agent: AgentDef | None) -> str:
    """Registry package name for ``installation``.

    Prefers the name recorded at detection time and falls back to the
    catalog entry of the matching install method.
    """
    package = installation.metadata.get("package", "")
    if package or agent is None:
        return package

    method = agent.get_install_method(installation.method.value)
    if method is None:
        return ""
    if installation.method is InstallMethod.NPM:
        return method.package or extract_npm_package_name(method.command)
    if installation.method in PYTHON_METHODS:
        return extract_pip_package_name(method.package, method.command)
    if installation.method is InstallMethod.BREW:
        return resolve_brew_package(method)[0]
    return method.package


def parse_brew_latest(output: str, is_cask: bool) -> str:
    """Stable version from ``brew info --json=v2`` output."""
    try:
        data = json.loads(output)
        if is_cask:
            version = data["casks"][0]["version"]
        else:
            version = data["formulae"][0]["versions"]["stable"]
    except (json.JSONDecodeError, KeyError, IndexError, TypeError) as e:
        raise RegistryError(f"Unexpected brew info output: {e}") from e
    if not isinstance(version, str):
        raise RegistryError("brew info reported no version")
    # Casks may append a build identifier after a comma
    return version.split(",", 1)[0]


class LatestVersionResolver:
    """Resolve the latest published version for installations."""

    def __init__(
        self,
        runner: CommandRunner | None = None,
        http_client: httpx.Client | None = None,
        timeout: float = REGISTRY_TIMEOUT,
    ) -> None:
        """Initialize the resolver.

        Args:
            runner: Callable used for ``npm view`` and ``brew info``
            http_client: Client used for PyPI; one is created if omitted
            timeout: Timeout in seconds for each query
        """
        self.runner: CommandRunner = runner or run_command
        self.timeout = timeout
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=timeout, follow_redirects=True)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> LatestVersionResolver:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def supports(self, method: InstallMethod) -> bool:
        return (
            method in PYTHON_METHODS
            or method is InstallMethod.NPM
            or method is InstallMethod.BREW
        )

    def latest_version(
        self, ctx: Context, installation: Installation, agent: AgentDef | None = None
    ) -> Version | None:
        """Latest published version of ``installation``.

        Returns:
            The version, or None when the install method has no registry

        Raises:
            RegistryError: If the registry could not be queried
            DetectionCancelled: If ``ctx`` is cancelled
        """
        ctx.raise_if_cancelled()
        if not self.supports(installation.method):
            return None

        package = package_for(installation, agent)
        if not package:
            raise RegistryError(f"No package name known for {installation.agent_id}")

        if installation.method is InstallMethod.NPM:
            text = self._npm_latest(ctx, package)
        elif installation.method is InstallMethod.BREW:
            is_cask = installation.metadata.get("type") == "cask"
            if agent is not None and "type" not in installation.metadata:
                method = agent.get_install_method("brew")
                is_cask = method is not None and resolve_brew_package(method)[1]
            text = self._brew_latest(ctx, package, is_cask)
        else:
            text = self._pypi_latest(package)

        version = parse_version(text)
        logger.debug(f"Latest {installation.method.value} version of {package}: {version}")
        return version

    def _npm_latest(self, ctx: Context, package: str) -> str:
        try:
            result = self.runner(ctx, ["npm", "view", package, "version"], timeout=self.timeout)
        except CommandError as e:
            raise RegistryError(f"npm view {package} failed: {e}") from e
        if not result.ok or not result.stdout.strip():
            raise RegistryError(f"npm view {package} exited with {result.returncode}")
        return result.stdout.strip().splitlines()[-1].strip().strip("'\"")

    def _brew_latest(self, ctx: Context, package: str, is_cask: bool) -> str:
        args = ["brew", "info", "--json=v2"]
        if is_cask:
            args.append("--cask")
        args.append(package)
        try:
            result = self.runner(ctx, args, timeout=self.timeout)
        except CommandError as e:
            raise RegistryError(f"brew info {package} failed: {e}") from e
        if not result.ok:
            raise RegistryError(f"brew info {package} exited with {result.returncode}")
        return parse_brew_latest(result.stdout, is_cask)

    def _pypi_latest(self, package: str) -> str:
        url = PYPI_URL.format(package=package)
        try:
            response = self._client.get(url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise RegistryError(f"PyPI lookup for {package} failed: {e}") from e
        except ValueError as e:
            raise RegistryError(f"PyPI returned invalid JSON for {package}: {e}") from e

        info = data.get("info") if isinstance(data, dict) else None
        version = info.get("version") if isinstance(info, dict) else None
        if not isinstance(version, str) or not version:
            raise RegistryError(f"PyPI has no version for {package}")
        return version
