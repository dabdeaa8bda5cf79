"""Build and version information."""

from __future__ import annotations

import platform
import sys

# Set these at build time.
VERSION = ""
REVISION = ""
BRANCH = ""
BUILD_USER = ""
BUILD_DATE = ""
PYTHON_VERSION = platform.python_version()
OS = sys.platform
ARCH = platform.machine()

_VERSION_INFO_TEMPLATE = """
{program}, version {version} (branch: {branch}, revision: {revision})
  build user:       {build_user}
  build date:       {build_date}
  python version:   {python_version}
  platform:         {platform}
  tags:             {tags}
"""


def _compute_revision(settings: dict[str, str]) -> tuple[str, str]:
    revision = settings.get("vcs.revision", "unknown")
    tags = settings.get("-tags", "unknown")
    if settings.get("vcs.modified") == "true":
        return revision + "-modified", tags
    return revision, tags


# Version-control settings recorded at build time, if any.
_BUILD_SETTINGS: dict[str, str] = {}
_computed_revision, _computed_tags = _compute_revision(_BUILD_SETTINGS)


def get_revision() -> str:
    """The configured revision, or the one recorded at build time."""
    return REVISION or _computed_revision


def get_tags() -> str:
    """The build tags."""
    return _computed_tags


def print_version(program: str) -> str:
    """Multi-line version information for ``program``."""
    return _VERSION_INFO_TEMPLATE.format(
        program=program,
        version=VERSION,
        revision=get_revision(),
        branch=BRANCH,
        build_user=BUILD_USER,
        build_date=BUILD_DATE,
        python_version=PYTHON_VERSION,
        platform=f"{OS}/{ARCH}",
        tags=get_tags(),
    ).strip()


def info() -> str:
    """Version, branch and revision."""
    return f"(version={VERSION}, branch={BRANCH}, revision={get_revision()})"


def build_context() -> str:
    """Interpreter version, platform, build user, build date and tags."""
    return (
        f"(python={PYTHON_VERSION}, platform={OS}/{ARCH}, user={BUILD_USER}, "
        f"date={BUILD_DATE}, tags={get_tags()})"
    )