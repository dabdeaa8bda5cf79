import pytest

from promcommon import version


@pytest.fixture
def build(monkeypatch):
    monkeypatch.setattr(version, "VERSION", "1.2.3")
    monkeypatch.setattr(version, "REVISION", "abc123")
    monkeypatch.setattr(version, "BRANCH", "main")
    monkeypatch.setattr(version, "BUILD_USER", "builder@example.com")
    monkeypatch.setattr(version, "BUILD_DATE", "20240101-00:00:00")


def test_info(build):
    assert version.info() == "(version=1.2.3, branch=main, revision=abc123)"


def test_revision_falls_back_to_computed(monkeypatch):
    monkeypatch.setattr(version, "REVISION", "")
    assert version.get_revision() == "unknown"


def test_revision_prefers_configured(build):
    assert version.get_revision() == "abc123"


def test_print_version_first_line(build):
    lines = version.print_version("prog").splitlines()
    assert lines[0] == "prog, version 1.2.3 (branch: main, revision: abc123)"
    assert len(lines) == 6


def test_print_version_fields(build):
    text = version.print_version("prog")
    assert "  build user:       builder@example.com" in text
    assert "  build date:       20240101-00:00:00" in text
    assert f"{version.OS}/{version.ARCH}" in text
    assert text == text.strip()


def test_build_context(build):
    context = version.build_context()
    assert context.startswith(f"(python={version.PYTHON_VERSION}, ")
    assert "user=builder@example.com" in context
    assert context.endswith(f"tags={version.get_tags()})")


def test_compute_revision_modified():
    settings = {"vcs.revision": "abc", "vcs.modified": "true", "-tags": "netgo"}
    assert version._compute_revision(settings) == ("abc-modified", "netgo")


def test_compute_revision_without_settings():
    assert version._compute_revision({}) == ("unknown", "unknown")