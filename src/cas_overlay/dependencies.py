"""Dependency, repository and boot wiring derived from the overlay config."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from .config import CasConfig, require_version

logger = logging.getLogger(__name__)

CAS_GROUP = "org.apereo.cas"
TOMCAT_STARTER = ("org.springframework.boot", "spring-boot-starter-tomcat", "1.4.1.RELEASE")
TOMCAT_JASPER = ("org.apache.tomcat.embed", "tomcat-embed-jasper", "8.5.5")


@dataclass(frozen=True)
class Dependency:
    """A compile dependency coordinate."""

    group: str
    artifact: str
    version: str
    classifier: str | None = None
    transitive: bool = True
    changing: bool = False

    @property
    def notation(self) -> str:
        """Coordinate in group:artifact:version[:classifier] form."""
        parts = [self.group, self.artifact, self.version]
        if self.classifier:
            parts.append(self.classifier)
        return ":".join(parts)

    @property
    def file_name(self) -> str:
        suffix = f"-{self.classifier}" if self.classifier else ""
        return f"{self.artifact}-{self.version}{suffix}.jar"

    def maven_path(self, repo_root: Path) -> Path:
        """Location of the jar in a Maven repository layout."""
        return (
            repo_root.joinpath(*self.group.split("."))
            / self.artifact
            / self.version
            / self.file_name
        )


@dataclass(frozen=True)
class Repository:
    """An artifact repository the overlay resolves from."""

    name: str
    url: str


@dataclass(frozen=True)
class BootSettings:
    """Spring Boot run and repackage settings."""

    main_class: str
    add_resources: bool = True


DEFAULT_REPOSITORIES = [
    Repository("mavenLocal", "~/.m2/repository"),
    Repository("mavenCentral", "https://repo.maven.apache.org/maven2/"),
    Repository("jcenter", "https://jcenter.bintray.com/"),
    Repository("sonatype-snapshots", "https://oss.sonatype.org/content/repositories/snapshots"),
    Repository("maven2", "http://repo.maven.apache.org/maven2"),
    Repository("jitpack", "https://jitpack.io"),
    Repository("jasig-legacy", "http://developer.jasig.org/repo/content/groups/m2-legacy/"),
    Repository("shibboleth", "https://build.shibboleth.net/nexus/content/repositories/releases"),
    Repository("couchbase", "http://files.couchbase.com/maven2"),
    Repository("spring-milestone", "http://repo.spring.io/milestone"),
    Repository("unicon", "https://dl.bintray.com/uniconiam/maven"),
]


def _cas(artifact: str, version: str, classifier: str | None = None) -> Dependency:
    return Dependency(
        group=CAS_GROUP,
        artifact=artifact,
        version=version,
        classifier=classifier,
        transitive=True,
        changing=True,
    )


def declare_dependencies(config: CasConfig) -> list[Dependency]:
    """
    Build the compile dependencies for the configured version and features.

    Raises:
        ConfigError: if no version is configured
    """
    version = require_version(config)

    dependencies = [
        # Contains the main Boot CasWebApplication
        _cas("cas-server-webapp-init", version),
        _cas("cas-server-webapp", version, classifier="resources"),
        Dependency(*TOMCAT_STARTER),
        Dependency(*TOMCAT_JASPER),
    ]
    for feature in config.sorted_features():
        dependencies.append(_cas(f"cas-server-support-{feature}", version))

    logger.debug("Declared %d dependencies for CAS %s", len(dependencies), version)
    return dependencies


def declare_repositories(config: CasConfig) -> list[Repository]:
    """Default repositories followed by any configured extras."""
    repositories = list(DEFAULT_REPOSITORIES)
    for i, url in enumerate(config.extra_repositories, start=1):
        repositories.append(Repository(f"extra-{i}", url))
    return repositories


def boot_settings(config: CasConfig) -> BootSettings:
    return BootSettings(main_class=config.main_class)


def resolve_artifacts(
    config: CasConfig,
    dependencies: list[Dependency] | None = None,
) -> list[Path]:
    """
    Collect the locally available jars forming the resolved dependency set.

    Declared coordinates present in the Maven local repository come first,
    then every jar found in the configured artifact directories.
    """
    if dependencies is None:
        dependencies = declare_dependencies(config)

    artifacts: list[Path] = []

    repo_root = Path(config.maven_local).expanduser()
    for dependency in dependencies:
        jar = dependency.maven_path(repo_root)
        if jar.is_file():
            artifacts.append(jar)

    for directory in config.artifact_dirs:
        artifact_dir = Path(directory).expanduser()
        if not artifact_dir.is_dir():
            logger.debug("Skipping missing artifact directory %s", artifact_dir)
            continue
        artifacts.extend(sorted(artifact_dir.glob("*.jar")))

    return artifacts
