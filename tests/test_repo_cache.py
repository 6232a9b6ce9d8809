"""Repo cache tests."""

import asyncio

import pytest

from app.services.errors import InvalidSourceError, RepoSyncError
from app.services.repo_cache import RepoCache, cache_key, validate_git_url
from tests.conftest import SKILLS_REPO


def test_validate_git_url():
    validate_git_url("https://github.com/acme/skills.git")
    validate_git_url("http://git.local/skills")
    validate_git_url("git@github.com:acme/skills.git")
    for bad in ("ftp://host/repo", "file:///etc", "/tmp/repo", "", "--upload-pack=evil"):
        with pytest.raises(InvalidSourceError):
            validate_git_url(bad)


def test_cache_key_is_stable():
    assert cache_key(SKILLS_REPO) == cache_key(SKILLS_REPO)
    assert len(cache_key(SKILLS_REPO)) == 16
    assert cache_key(SKILLS_REPO) != cache_key(SKILLS_REPO + "x")


@pytest.mark.asyncio
async def test_resolve_twice_returns_same_path(settings, git, skills_repo):
    cache = RepoCache(settings.data_dir, git)
    first = await cache.resolve_checkout(skills_repo)
    second = await cache.resolve_checkout(skills_repo)

    assert first == second
    assert first.is_absolute()
    assert first.name == cache_key(skills_repo)
    assert (first / "skills" / "foo" / "SKILL.md").is_file()
    assert git.calls == [("clone", skills_repo), ("pull", skills_repo)]


@pytest.mark.asyncio
async def test_invalid_url_has_no_side_effects(settings, git):
    cache = RepoCache(settings.data_dir, git)
    with pytest.raises(InvalidSourceError):
        await cache.resolve_checkout("ftp://example.com/repo.git")
    assert git.calls == []
    assert not (settings.data_dir / "skill-repos").exists()


@pytest.mark.asyncio
async def test_clone_failure_raises_with_stderr(settings, git):
    cache = RepoCache(settings.data_dir, git)
    with pytest.raises(RepoSyncError) as exc_info:
        await cache.resolve_checkout("https://github.com/acme/missing.git")
    assert "not found" in exc_info.value.stderr


@pytest.mark.asyncio
async def test_incomplete_checkout_is_recloned(settings, git, skills_repo):
    cache = RepoCache(settings.data_dir, git)
    leftover = cache.checkout_path(skills_repo)
    leftover.mkdir(parents=True)
    (leftover / "partial").write_text("x")

    repo_dir = await cache.resolve_checkout(skills_repo)
    assert not (repo_dir / "partial").exists()
    assert git.calls == [("clone", skills_repo)]


@pytest.mark.asyncio
async def test_concurrent_resolves_clone_once(settings, git, skills_repo):
    git.delay = 0.05
    cache = RepoCache(settings.data_dir, git)

    first, second = await asyncio.gather(
        cache.resolve_checkout(skills_repo),
        cache.resolve_checkout(skills_repo),
    )

    assert first == second
    assert git.calls == [("clone", skills_repo), ("pull", skills_repo)]
    assert len(cache._locks) == 0
