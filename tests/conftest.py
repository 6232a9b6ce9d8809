"""Shared fixtures: temporary database, fake git remotes, fake gateway runtime."""

import asyncio
import shutil
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import app.models  # noqa: F401  register mappers
from app.adapters.base import GatewayRuntime, GitClient
from app.config import Settings
from app.database import Base, enable_sqlite_foreign_keys, get_db
from app.main import app as fastapi_app
from app.main import configure_services
from app.schemas.organization import OrgCreate
from app.schemas.user import UserSync
from app.services import org_service, user_service
from app.services.errors import GatewayError, RepoSyncError

SKILLS_REPO = "https://github.com/acme/skills.git"


def write_tree(root: Path, files: dict[str, str]) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return root


def skill_md(description: str) -> str:
    return f"---\ndescription: {description}\n---\n\nInstructions.\n"


class FakeGitClient(GitClient):
    """Serves "remotes" from local directories; unknown URLs fail like git does."""

    def __init__(self):
        self.remotes: dict[str, Path] = {}
        self.calls: list[tuple[str, str]] = []
        self._origins: dict[Path, str] = {}
        self.delay = 0.0

    def add_remote(self, url: str, source: Path) -> None:
        self.remotes[url] = source

    async def clone(self, url, dest, *, depth=1, timeout=60.0):
        self.calls.append(("clone", url))
        await asyncio.sleep(self.delay)
        if url not in self.remotes:
            raise RepoSyncError("git clone failed", f"fatal: repository '{url}' not found")
        shutil.copytree(self.remotes[url], dest, symlinks=True)
        (dest / ".git").mkdir()
        self._origins[dest] = url

    async def pull(self, directory, *, timeout=30.0):
        url = self._origins[directory]
        self.calls.append(("pull", url))
        await asyncio.sleep(self.delay)
        if url not in self.remotes:
            raise RepoSyncError("git pull failed", "fatal: unable to access remote")
        shutil.copytree(self.remotes[url], directory, symlinks=True, dirs_exist_ok=True)


class FakeRuntime(GatewayRuntime):
    def __init__(self):
        self.running: dict[Path, int] = {}
        self.starts: list[tuple[Path, int, dict]] = []
        self.fail_start = False
        self.stop_delay = 0.0

    async def start(self, gateway_dir, *, port, token, env):
        if self.fail_start:
            raise GatewayError("Gateway process exited (code=1)")
        self.starts.append((gateway_dir, port, env))
        self.running[gateway_dir] = port

    async def stop(self, gateway_dir):
        await asyncio.sleep(self.stop_delay)
        self.running.pop(gateway_dir, None)

    async def is_running(self, port):
        return port in self.running.values()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(data_dir=tmp_path / "data", gateway_port_start=19000, gateway_port_end=19002)


@pytest.fixture
def git() -> FakeGitClient:
    return FakeGitClient()


@pytest.fixture
def runtime() -> FakeRuntime:
    return FakeRuntime()


@pytest.fixture
def skills_repo(tmp_path, git) -> str:
    """A remote with two nested skills, registered under SKILLS_REPO."""
    source = write_tree(tmp_path / "remotes" / "skills", {
        "README.md": "# skills\n",
        "skills/foo/SKILL.md": skill_md("Does foo"),
        "skills/foo/scripts/run.sh": "echo foo\n",
        "skills/bar/SKILL.md": "# bar\n",
    })
    git.add_remote(SKILLS_REPO, source)
    return SKILLS_REPO


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    enable_sqlite_foreign_keys(engine.sync_engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory, settings, git, runtime):
    async def _get_db():
        async with session_factory() as session:
            yield session

    fastapi_app.dependency_overrides[get_db] = _get_db
    configure_services(fastapi_app, settings, git, runtime)
    async with AsyncClient(transport=ASGITransport(app=fastapi_app), base_url="http://test") as ac:
        yield ac
    fastapi_app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def owner(db):
    return await user_service.sync_user(db, UserSync(email="owner@example.com", name="Olive Owner"))


@pytest_asyncio.fixture
async def org(db, owner):
    return await org_service.create_org(db, OrgCreate(name="Acme"), owner=owner)


@pytest_asyncio.fixture
async def member_user(db, org):
    user = await user_service.sync_user(db, UserSync(email="max@example.com", name="Max Member"))
    await org_service.add_member(db, org.id, user, "member")
    return user


@pytest_asyncio.fixture
async def member(db, org, member_user):
    return await org_service.get_membership(db, org.id, member_user.id)


@pytest.fixture
def owner_headers(owner) -> dict[str, str]:
    return {"X-User-Id": owner.id}


@pytest.fixture
def member_headers(member_user) -> dict[str, str]:
    return {"X-User-Id": member_user.id}
