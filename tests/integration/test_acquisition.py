"""Integration tests for repository acquisition using real git repositories."""

from pathlib import Path

import pytest

from e2e_fleet.acquisition import (
    GitCloner,
    RepositoryNotFoundError,
    TestDirectoryResolver,
    has_test_sources,
)

from .conftest import CreateRepoFn


class TestGitCloner:
    """Tests for GitCloner."""

    async def test_clones_repository(
        self, tmp_path: Path, create_repo: CreateRepoFn
    ) -> None:
        """Clones into the destination and returns it."""
        locator = create_repo("addon-operator", {"README.md": "# addon\n"})
        destination = tmp_path / "clones" / "addon-operator"

        result = await GitCloner().clone(locator, destination)

        assert result == destination
        assert (destination / "README.md").read_text() == "# addon\n"

    async def test_raises_when_repository_missing(self, tmp_path: Path) -> None:
        """Any clone failure is reported as not found."""
        with pytest.raises(RepositoryNotFoundError, match="Git clone of"):
            await GitCloner().clone(
                f"file://{tmp_path}/does-not-exist", tmp_path / "clone"
            )

    async def test_raises_when_git_missing(self, tmp_path: Path) -> None:
        """A missing git executable is also a not-found failure."""
        cloner = GitCloner(executable=str(tmp_path / "no-git"))

        with pytest.raises(RepositoryNotFoundError, match="was not found in PATH"):
            await cloner.clone("https://example.invalid/repo.git", tmp_path / "clone")


class TestTestDirectoryResolver:
    """Tests for TestDirectoryResolver."""

    def test_resolves_e2e_directory_with_go_files(self, tmp_path: Path) -> None:
        """Returns test/e2e when it holds Go sources."""
        test_dir = tmp_path / "test" / "e2e"
        test_dir.mkdir(parents=True)
        (test_dir / "e2e_suite_test.go").write_text("package e2e\n")

        assert TestDirectoryResolver().resolve(tmp_path) == test_dir

    def test_absent_without_directory(self, tmp_path: Path) -> None:
        """Returns None when test/e2e does not exist."""
        assert TestDirectoryResolver().resolve(tmp_path) is None

    def test_absent_without_sources(self, tmp_path: Path) -> None:
        """Returns None when test/e2e holds no Go files directly."""
        test_dir = tmp_path / "test" / "e2e"
        (test_dir / "nested").mkdir(parents=True)
        (test_dir / "nested" / "deep_test.go").write_text("package nested\n")
        (test_dir / "README.md").write_text("docs\n")

        assert TestDirectoryResolver().resolve(tmp_path) is None

    def test_absent_when_path_is_file(self, tmp_path: Path) -> None:
        """A file named like the test directory does not qualify."""
        (tmp_path / "test").mkdir()
        (tmp_path / "test" / "e2e").write_text("not a directory\n")

        assert TestDirectoryResolver().resolve(tmp_path) is None

    def test_custom_layout(self, tmp_path: Path) -> None:
        """The relative path and suffixes are configurable."""
        test_dir = tmp_path / "osde2e"
        test_dir.mkdir()
        (test_dir / "suite.py").write_text("")

        resolver = TestDirectoryResolver(
            relative_path=("osde2e",), source_suffixes=frozenset({".py"})
        )

        assert resolver.resolve(tmp_path) == test_dir


def test_has_test_sources_ignores_directories(tmp_path: Path) -> None:
    """A directory named like a source file does not count."""
    (tmp_path / "pkg.go").mkdir()

    assert not has_test_sources(tmp_path, frozenset({".go"}))


async def test_clone_then_resolve(tmp_path: Path, create_repo: CreateRepoFn) -> None:
    """A cloned repository's test directory is found."""
    locator = create_repo(
        "route-monitor-operator",
        {"test/e2e/e2e_test.go": "package e2e\n", "main.go": "package main\n"},
    )

    local_path = await GitCloner().clone(locator, tmp_path / "work" / "rmo")

    assert TestDirectoryResolver().resolve(local_path) == local_path / "test" / "e2e"
