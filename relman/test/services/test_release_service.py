from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from relman.core.result import Err, Ok
from relman.git.identity import Identity
from relman.git.repository import Remote, Repository
from relman.output.console import MockConsole
from relman.services.release.model import ReleaseRequest, ReleaseState
from relman.services.release.service import check_push_remote, propose_releases, run_release
from relman.test.fakes import SSH_KEY_TEXT, FakeRepository
from relman.test.gitutil import remote_tags

JAN = date(2024, 1, 17)
SSH_ORIGIN = Remote("origin", "git@example.com:org/repo.git")


@pytest.fixture
def console() -> MockConsole:
    return MockConsole()


class TestCheckPushRemote:
    def test_not_pushing_skips_check(self) -> None:
        repo = FakeRepository(remotes=())
        assert check_push_remote(repo, ReleaseRequest(push=False)) == Ok(None)

    def test_missing_remote(self) -> None:
        repo = FakeRepository()

        result = check_push_remote(repo, ReleaseRequest(push=True, remote="upstream"))

        assert isinstance(result, Err)
        assert result.error.kind == "remote_not_configured"
        assert result.error.hint is not None


class TestProposeReleases:
    def test_date_release(self, console: MockConsole) -> None:
        repo = FakeRepository(tags=["2024.01.001", "2024.01.002"])

        result = propose_releases(repo, ReleaseRequest(), today=JAN, console=console)

        assert result == Ok(("2024.01.003",))

    def test_date_modules_with_independent_counters(self, console: MockConsole) -> None:
        repo = FakeRepository(tags=["2024.01.001-api"])
        request = ReleaseRequest(modules=("api", "web"))

        result = propose_releases(repo, request, today=JAN, console=console)

        assert result == Ok(("2024.01.002-api", "2024.01.001-web"))

    def test_repeated_module_keeps_counting(self, console: MockConsole) -> None:
        repo = FakeRepository()
        request = ReleaseRequest(modules=("api", "api"))

        result = propose_releases(repo, request, today=JAN, console=console)

        assert result == Ok(("2024.01.001-api", "2024.01.002-api"))

    def test_semver_release(self, console: MockConsole) -> None:
        repo = FakeRepository(tags=["v1.4.7", "1.2.0", "junk"], branch="feature/login")
        request = ReleaseRequest(scheme="semver", modules=("", "api"), inc_minor=True)

        result = propose_releases(repo, request, today=JAN, console=console)

        assert result == Ok(("1.5.0-feature-login", "1.5.0-api-feature-login"))

    def test_semver_detached_head(self, console: MockConsole) -> None:
        repo = FakeRepository(branch=None)

        result = propose_releases(repo, ReleaseRequest(scheme="semver"), today=JAN, console=console)

        assert isinstance(result, Err)
        assert result.error.kind == "detached_head"

    def test_push_remote_checked_in_dry_run(self, console: MockConsole) -> None:
        repo = FakeRepository(remotes=())

        result = propose_releases(repo, ReleaseRequest(push=True), today=JAN, console=console)

        assert isinstance(result, Err)
        assert result.error.kind == "remote_not_configured"

    def test_does_not_create_tags(self, console: MockConsole) -> None:
        repo = FakeRepository(tags=["2024.01.001"])

        propose_releases(repo, ReleaseRequest(modules=("a", "b")), today=JAN, console=console)

        assert set(repo.tags) == {"2024.01.001"}


class TestRunReleaseDate:
    def test_creates_next_date_tag(self, console: MockConsole) -> None:
        repo = FakeRepository(tags=["2024.01.001", "2024.01.002"])

        result = run_release(repo, ReleaseRequest(), today=JAN, console=console)

        assert isinstance(result, Ok)
        batch = result.value
        assert batch.ok
        assert batch.names == ("2024.01.003",)
        assert batch.releases[0].state is ReleaseState.CREATED
        assert "2024.01.003" in repo.tags
        assert console.find("created release: 2024.01.003")

    def test_tags_are_reread_per_module(self, console: MockConsole) -> None:
        repo = FakeRepository()
        request = ReleaseRequest(modules=("api", "api", "web"))

        result = run_release(repo, request, today=JAN, console=console)

        assert isinstance(result, Ok)
        assert result.value.names == ("2024.01.001-api", "2024.01.002-api", "2024.01.001-web")
        # each module re-reads tags, then create_tag checks them again
        assert repo.list_tags_calls >= 3

    def test_annotated_tags_carry_identity(self, console: MockConsole) -> None:
        repo = FakeRepository()
        identity = Identity("Ada", "ada@example.com")

        run_release(
            repo,
            ReleaseRequest(message="monthly", identity=identity),
            today=JAN,
            console=console,
        )

        assert repo.tags["2024.01.001"].message == "monthly"
        assert repo.tags["2024.01.001"].identity == identity

    def test_partial_global_identity_still_creates_plain_tag(
        self, console: MockConsole
    ) -> None:
        repo = FakeRepository()

        result = run_release(
            repo,
            ReleaseRequest(identity=Identity(name="Ada")),
            today=JAN,
            console=console,
        )

        assert isinstance(result, Ok)
        batch = result.value
        assert batch.ok
        assert batch.releases[0].state is ReleaseState.CREATED
        assert batch.releases[0].tag is not None
        assert batch.releases[0].tag.annotated is False
        assert repo.tags["2024.01.001"].message is None
        assert not console.has_error()

    def test_missing_identity_is_recorded_per_module(self, console: MockConsole) -> None:
        repo = FakeRepository()
        request = ReleaseRequest(modules=("api", "web"), message="needs a tagger")

        result = run_release(repo, request, today=JAN, console=console)

        assert isinstance(result, Ok)
        batch = result.value
        assert not batch.ok
        assert [r.state for r in batch.releases] == [ReleaseState.CREATE_FAILED] * 2
        assert all(
            r.error is not None and r.error.kind == "missing_identity" for r in batch.releases
        )
        assert repo.tags == {}


class TestRunReleaseSemver:
    def test_creates_incremented_version(self, console: MockConsole) -> None:
        repo = FakeRepository(tags=["1.4.7"])
        request = ReleaseRequest(scheme="semver", inc_major=True)

        result = run_release(repo, request, today=JAN, console=console)

        assert isinstance(result, Ok)
        assert result.value.names == ("2.0.0",)
        assert "2.0.0" in repo.tags

    def test_same_version_twice_fails_without_overwrite(self, console: MockConsole) -> None:
        repo = FakeRepository(tags=["1.4.7"])
        before = repo.tags["1.4.7"]

        result = run_release(repo, ReleaseRequest(scheme="semver"), today=JAN, console=console)

        assert isinstance(result, Ok)
        release = result.value.releases[0]
        assert release.state is ReleaseState.CREATE_FAILED
        assert release.error is not None and release.error.kind == "tag_exists"
        assert repo.tags["1.4.7"] is before
        assert console.has_error()

    def test_failure_does_not_stop_next_module(self, console: MockConsole) -> None:
        repo = FakeRepository(tags=["1.0.0", "1.0.0-api"])
        request = ReleaseRequest(scheme="semver", modules=("api", "web"))

        result = run_release(repo, request, today=JAN, console=console)

        assert isinstance(result, Ok)
        states = [r.state for r in result.value.releases]
        assert states == [ReleaseState.CREATE_FAILED, ReleaseState.CREATED]
        assert [r.name for r in result.value.created] == ["1.0.0-web"]
        assert "1.0.0-web" in repo.tags

    def test_detached_head_is_fatal_before_tagging(self, console: MockConsole) -> None:
        repo = FakeRepository(branch=None)

        result = run_release(repo, ReleaseRequest(scheme="semver"), today=JAN, console=console)

        assert isinstance(result, Err)
        assert result.error.kind == "detached_head"
        assert repo.tags == {}


class TestRunReleasePush:
    def test_missing_remote_is_fatal_before_tagging(self, console: MockConsole) -> None:
        repo = FakeRepository()
        request = ReleaseRequest(push=True, remote="upstream")

        result = run_release(repo, request, today=JAN, console=console)

        assert isinstance(result, Err)
        assert result.error.kind == "remote_not_configured"
        assert repo.tags == {}

    def test_push_success(self, console: MockConsole) -> None:
        repo = FakeRepository()

        result = run_release(repo, ReleaseRequest(push=True), today=JAN, console=console)

        assert isinstance(result, Ok)
        release = result.value.releases[0]
        assert release.state is ReleaseState.PUSHED
        assert release.push_message == "pushed tag 2024.01.001 to origin"
        assert repo.pushes[0].refspec == "refs/tags/2024.01.001:refs/tags/2024.01.001"

    def test_push_failure_keeps_tag_and_continues(self, console: MockConsole) -> None:
        repo = FakeRepository(push_errors={"2024.01.001-api": "fatal: unable to access remote"})
        request = ReleaseRequest(push=True, modules=("api", "web"))

        result = run_release(repo, request, today=JAN, console=console)

        assert isinstance(result, Ok)
        batch = result.value
        assert [r.state for r in batch.releases] == [ReleaseState.PUSH_FAILED, ReleaseState.PUSHED]
        assert len(batch.push_failures) == 1
        assert not batch.create_failures
        assert not batch.ok
        assert {"2024.01.001-api", "2024.01.001-web"} <= set(repo.tags)
        assert console.find("git tag -d 2024.01.001-api")

    def test_ssh_remote_uses_key(self, console: MockConsole, tmp_path: Path) -> None:
        key = tmp_path / "deploy_key"
        key.write_text(SSH_KEY_TEXT)
        repo = FakeRepository(remotes=(SSH_ORIGIN,))

        result = run_release(
            repo,
            ReleaseRequest(push=True, ssh_key=key),
            today=JAN,
            console=console,
        )

        assert isinstance(result, Ok)
        assert result.value.ok
        assert str(key) in repo.pushes[0].env["GIT_SSH_COMMAND"]

    def test_unreadable_key_fails_push_only(self, console: MockConsole, tmp_path: Path) -> None:
        repo = FakeRepository(remotes=(SSH_ORIGIN,))
        request = ReleaseRequest(push=True, ssh_key=tmp_path / "missing", modules=("a", "b"))

        result = run_release(repo, request, today=JAN, console=console)

        assert isinstance(result, Ok)
        batch = result.value
        assert [r.state for r in batch.releases] == [ReleaseState.PUSH_FAILED] * 2
        assert all(
            r.error is not None and "ssh key not found" in r.error.message
            for r in batch.releases
        )
        assert repo.pushes == []
        assert {"2024.01.001-a", "2024.01.001-b"} <= set(repo.tags)


class TestRunReleaseRealGit:
    def test_date_release_pushed(
        self, git_repo: Path, bare_remote: Path, console: MockConsole
    ) -> None:
        repo = Repository(git_repo)
        request = ReleaseRequest(push=True, modules=("api", "web"))

        result = run_release(repo, request, today=JAN, console=console)

        assert isinstance(result, Ok)
        assert result.value.ok
        assert remote_tags(bare_remote) == ["2024.01.001-api", "2024.01.001-web"]

    def test_dry_run_leaves_tags_untouched(self, git_repo: Path, console: MockConsole) -> None:
        repo = Repository(git_repo)
        repo.create_tag("2024.01.001")
        before = repo.list_tags()

        proposed = propose_releases(repo, ReleaseRequest(), today=JAN, console=console)

        assert proposed == Ok(("2024.01.002",))
        assert repo.list_tags() == before
