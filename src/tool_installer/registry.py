"""Tool registry: manifest models, tool specs and dependency ordering."""

from __future__ import annotations

import heapq
import logging
import os
import shutil
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Annotated, Literal, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from tool_installer.checks import DEFAULT_VERSION_PATTERN, CommandCheck
from tool_installer.detector import OSFamily, PackageManagerName, Platform
from tool_installer.errors import CyclicDependencyError, ManifestError
from tool_installer.package_managers import BasePackageManager, get_package_manager
from tool_installer.protocols import CommandRunner, Downloader, FileSystem, InstallStrategy
from tool_installer.strategies import (
    ARCHIVE_FORMATS,
    ArchiveLayout,
    PackageManagerInstall,
    ReleaseDownload,
    VendorScript,
)

logger = logging.getLogger(__name__)

DEFAULT_MANIFEST = "tools.yaml"

# Keys accepted under a tool's `install` mapping, most specific first.
PLATFORM_KEYS = (
    *(m.value for m in PackageManagerName),
    *(o.value for o in OSFamily),
    "default",
)


# ============================================================================
# Manifest models
# ============================================================================


class _ManifestModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class PackageInstallConfig(_ManifestModel):
    """Install through the system package manager."""

    type: Literal["package"] = "package"
    package: str | list[str] | None = None

    def package_names(self, default: str) -> list[str]:
        """Packages to install, defaulting to the tool name."""
        if self.package is None:
            return [default]
        if isinstance(self.package, str):
            return [self.package]
        return list(self.package)


class ReleaseInstallConfig(_ManifestModel):
    """Install a binary from a release archive."""

    type: Literal["release"]
    url: str
    version: str
    binary: str | None = None
    format: str = "tar.gz"
    member: str | None = None
    arch_map: dict[str, str] = Field(default_factory=dict, alias="archMap")
    sha256: dict[str, str] = Field(default_factory=dict)

    @field_validator("format")
    @classmethod
    def _known_format(cls, value: str) -> str:
        if value not in ARCHIVE_FORMATS:
            raise ValueError(f"format must be one of {ARCHIVE_FORMATS}")
        return value


class ScriptInstallConfig(_ManifestModel):
    """Install by running a vendor install script."""

    type: Literal["script"]
    url: str
    shell: str = "sh"
    args: list[str] = Field(default_factory=list)
    env: dict[str, str] = Field(default_factory=dict)
    paths: list[str] = Field(default_factory=list)


StrategyConfig = Annotated[
    Union[PackageInstallConfig, ReleaseInstallConfig, ScriptInstallConfig],
    Field(discriminator="type"),
]


class CheckConfig(_ManifestModel):
    """How to tell whether a tool is already installed."""

    command: str | None = None
    min_version: str | None = Field(default=None, alias="minVersion")
    version_args: list[str] = Field(default_factory=lambda: ["--version"], alias="versionArgs")
    version_pattern: str = Field(default=DEFAULT_VERSION_PATTERN, alias="versionPattern")
    paths: list[str] = Field(default_factory=list)


class ToolDefinition(_ManifestModel):
    """A tool entry in the manifest."""

    name: str = Field(min_length=1)
    description: str = ""
    depends_on: list[str] = Field(default_factory=list, alias="dependsOn")
    check: CheckConfig | None = None
    post_install: list[list[str]] = Field(default_factory=list, alias="postInstall")
    install: dict[str, StrategyConfig]

    @field_validator("install")
    @classmethod
    def _known_platform_keys(cls, value: dict[str, StrategyConfig]) -> dict[str, StrategyConfig]:
        unknown = sorted(set(value) - set(PLATFORM_KEYS))
        if unknown:
            raise ValueError(f"unknown install keys {unknown}; expected {list(PLATFORM_KEYS)}")
        if not value:
            raise ValueError("at least one install strategy is required")
        return value

    def strategy_for(self, platform: Platform) -> StrategyConfig | None:
        """Pick the most specific strategy for a platform.

        Lookup order: package manager, OS family, default.
        """
        for key in (platform.package_manager.value, platform.os.value, "default"):
            if key in self.install:
                return self.install[key]
        return None


class ToolManifest(_ManifestModel):
    """Declarative list of tools to provision."""

    version: str = "1.0"
    tools: list[ToolDefinition] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_names(self) -> ToolManifest:
        seen: set[str] = set()
        for tool in self.tools:
            if tool.name in seen:
                raise ValueError(f"duplicate tool name: {tool.name}")
            seen.add(tool.name)
        return self

    @property
    def names(self) -> list[str]:
        """Tool names in declaration order."""
        return [t.name for t in self.tools]

    @classmethod
    def from_yaml(cls, text: str, origin: str = "<string>") -> ToolManifest:
        """Parse a manifest from YAML text.

        Raises:
            ManifestError: If the YAML is invalid or fails validation.
        """
        try:
            data = yaml.safe_load(text) or {}
            return cls.model_validate(data)
        except (yaml.YAMLError, ValidationError) as e:
            raise ManifestError(f"Invalid tool manifest {origin}: {e}") from e

    @classmethod
    def from_file(cls, path: Path) -> ToolManifest:
        """Load a manifest from a YAML file.

        Raises:
            ManifestError: If the file is missing or invalid.
        """
        if not path.exists():
            raise ManifestError(f"Tool manifest not found: {path}")
        return cls.from_yaml(path.read_text(), origin=str(path))

    @classmethod
    def load_default(cls) -> ToolManifest:
        """Load the manifest bundled with the package."""
        text = resources.files("tool_installer").joinpath(DEFAULT_MANIFEST).read_text()
        return cls.from_yaml(text, origin=DEFAULT_MANIFEST)


# ============================================================================
# Tool specs
# ============================================================================


@dataclass(frozen=True)
class ToolSpec:
    """A tool resolved for the current platform.

    Attributes:
        name: Tool name.
        strategy: How to install it.
        depends_on: Tools that must be provisioned first.
        check_installed: Presence predicate. Falls back to the strategy's
            own check when None.
        description: Short description for display.
    """

    name: str
    strategy: InstallStrategy
    depends_on: tuple[str, ...] = ()
    check_installed: Callable[[], bool] | None = None
    description: str = ""

    def is_installed(self) -> bool:
        """Check whether the tool is present. Never cached."""
        if self.check_installed is not None:
            return self.check_installed()
        return self.strategy.is_installed()

    def install(self, timeout: float | None = None) -> None:
        """Install the tool.

        Raises:
            InstallError: If installation fails.
        """
        self.strategy.install(timeout=timeout)


def resolve_order(specs: Sequence[ToolSpec]) -> list[ToolSpec]:
    """Order specs so every dependency precedes its dependents.

    Ties are broken by declaration order. Dependencies on tools outside
    `specs` do not constrain the order.

    Args:
        specs: Tool specs in declaration order.

    Returns:
        Specs in install order.

    Raises:
        ValueError: If two specs share a name.
        CyclicDependencyError: If the dependencies contain a cycle.
    """
    index: dict[str, int] = {}
    for i, spec in enumerate(specs):
        if spec.name in index:
            raise ValueError(f"Duplicate tool: {spec.name}")
        index[spec.name] = i

    indegree = [0] * len(specs)
    dependents: list[list[int]] = [[] for _ in specs]
    for i, spec in enumerate(specs):
        for dep in dict.fromkeys(spec.depends_on):
            j = index.get(dep)
            if j is None:
                logger.debug("%s depends on %s, which is not part of this run", spec.name, dep)
                continue
            indegree[i] += 1
            dependents[j].append(i)

    # Min-heap of declaration indices keeps the order stable.
    ready = [i for i, degree in enumerate(indegree) if degree == 0]
    heapq.heapify(ready)
    order: list[ToolSpec] = []
    while ready:
        i = heapq.heappop(ready)
        order.append(specs[i])
        for k in dependents[i]:
            indegree[k] -= 1
            if indegree[k] == 0:
                heapq.heappush(ready, k)

    if len(order) < len(specs):
        raise CyclicDependencyError(specs[i].name for i, degree in enumerate(indegree) if degree)
    return order


def _expand_path(value: str, install_dir: Path) -> Path:
    return Path(os.path.expandvars(value.replace("{install_dir}", str(install_dir)))).expanduser()


class ToolRegistry:
    """Builds tool specs for a platform from a manifest.

    Follows Separate Use from Creation: constructor requires all dependencies.
    Use factory method `create()` for production instantiation with defaults.
    """

    def __init__(
        self,
        manifest: ToolManifest,
        runner: CommandRunner,
        downloader: Downloader,
        filesystem: FileSystem,
        install_dir: Path,
        use_sudo: bool | None = None,
        which: Callable[[str], str | None] | None = None,
    ) -> None:
        """Initialize the registry with required dependencies.

        Args:
            manifest: Tool manifest.
            runner: Command runner for package managers, scripts and checks.
            downloader: Downloader for releases and scripts.
            filesystem: Filesystem abstraction.
            install_dir: Directory for release binaries.
            use_sudo: Sudo policy for system package managers.
            which: PATH lookup function. Defaults to shutil.which.
        """
        self.manifest = manifest
        self.runner = runner
        self.downloader = downloader
        self.fs = filesystem
        self.install_dir = install_dir
        self.use_sudo = use_sudo
        self.which = which or shutil.which

    @classmethod
    def create(
        cls,
        runner: CommandRunner,
        downloader: Downloader,
        filesystem: FileSystem,
        install_dir: Path,
        manifest_path: Path | None = None,
        use_sudo: bool | None = None,
    ) -> ToolRegistry:
        """Factory method for production instantiation.

        Args:
            runner: Command runner.
            downloader: Downloader.
            filesystem: Filesystem abstraction.
            install_dir: Directory for release binaries.
            manifest_path: Manifest file. The bundled manifest if None.
            use_sudo: Sudo policy for system package managers.

        Returns:
            Configured ToolRegistry instance.
        """
        manifest = (
            ToolManifest.from_file(manifest_path) if manifest_path else ToolManifest.load_default()
        )
        return cls(
            manifest=manifest,
            runner=runner,
            downloader=downloader,
            filesystem=filesystem,
            install_dir=install_dir,
            use_sudo=use_sudo,
        )

    def build_specs(
        self,
        platform: Platform,
        only: Iterable[str] | None = None,
        skip: Iterable[str] | None = None,
    ) -> list[ToolSpec]:
        """Build specs for the tools available on a platform.

        Args:
            platform: Detected platform.
            only: Restrict to these tools plus their transitive dependencies.
            skip: Exclude these tools.

        Returns:
            Specs in manifest order.

        Raises:
            ValueError: If `only` or `skip` name an unknown tool.
        """
        only = list(only or [])
        skip = list(skip or [])
        unknown = [n for n in [*only, *skip] if n not in self.manifest.names]
        if unknown:
            raise ValueError(
                f"Unknown tool(s): {', '.join(unknown)}. Known: {', '.join(self.manifest.names)}"
            )

        manager = get_package_manager(platform.package_manager, self.runner, self.use_sudo)
        specs: list[ToolSpec] = []
        for definition in self.manifest.tools:
            config = definition.strategy_for(platform)
            if config is None:
                logger.info("%s has no install strategy for %s", definition.name, platform)
                continue
            specs.append(self._build_spec(definition, config, platform, manager))

        if only:
            available = {s.name for s in specs}
            for name in only:
                if name not in available:
                    logger.warning("%s is not available on %s", name, platform)
            wanted = self._with_dependencies(only, specs)
            specs = [s for s in specs if s.name in wanted]
        if skip:
            specs = [s for s in specs if s.name not in set(skip)]
        return specs

    @staticmethod
    def _with_dependencies(names: Iterable[str], specs: Sequence[ToolSpec]) -> set[str]:
        by_name = {s.name: s for s in specs}
        wanted: set[str] = set()
        stack = list(names)
        while stack:
            name = stack.pop()
            if name in wanted:
                continue
            wanted.add(name)
            spec = by_name.get(name)
            if spec is not None:
                stack.extend(spec.depends_on)
        return wanted

    def _build_spec(
        self,
        definition: ToolDefinition,
        config: StrategyConfig,
        platform: Platform,
        manager: BasePackageManager,
    ) -> ToolSpec:
        strategy = self._build_strategy(definition, config, platform, manager)
        check = None
        if definition.check is not None:
            check = CommandCheck(
                command=definition.check.command or definition.name,
                runner=self.runner,
                min_version=definition.check.min_version,
                version_args=definition.check.version_args,
                version_pattern=definition.check.version_pattern,
                paths=[_expand_path(p, self.install_dir) for p in definition.check.paths],
                which=self.which,
            )
        return ToolSpec(
            name=definition.name,
            strategy=strategy,
            depends_on=tuple(definition.depends_on),
            check_installed=check,
            description=definition.description,
        )

    def _build_strategy(
        self,
        definition: ToolDefinition,
        config: StrategyConfig,
        platform: Platform,
        manager: BasePackageManager,
    ) -> InstallStrategy:
        post_install = definition.post_install
        if isinstance(config, PackageInstallConfig):
            return PackageManagerInstall(
                tool=definition.name,
                packages=config.package_names(definition.name),
                manager=manager,
                runner=self.runner,
                post_install=post_install,
            )
        if isinstance(config, ReleaseInstallConfig):
            return ReleaseDownload(
                tool=definition.name,
                url_template=config.url,
                version=config.version,
                install_dir=self.install_dir,
                arch=platform.arch,
                downloader=self.downloader,
                filesystem=self.fs,
                runner=self.runner,
                binary=config.binary,
                layout=ArchiveLayout(format=config.format, member=config.member),
                arch_map=config.arch_map,
                sha256=config.sha256,
                post_install=post_install,
            )
        return VendorScript(
            tool=definition.name,
            url=config.url,
            downloader=self.downloader,
            runner=self.runner,
            filesystem=self.fs,
            command=definition.check.command if definition.check else None,
            shell=config.shell,
            args=config.args,
            env=config.env,
            paths=[_expand_path(p, self.install_dir) for p in config.paths],
            which=self.which,
            post_install=post_install,
        )
