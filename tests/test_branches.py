import re
from datetime import datetime, timezone

import pytest

from catalog_mcp import branches
from catalog_mcp.branches import allocate_branch, generate_branch_name
from catalog_mcp.exceptions import BranchAllocationError, RemoteAPIError

from conftest import FakeGitHub, Sequence, branch_collision, not_found

REFS = "/repos/o/r/git/refs"


def test_branch_name_format():
    now = datetime(2024, 3, 5, 14, 7, tzinfo=timezone.utc)

    name = generate_branch_name(".gitignore", now=now)

    assert re.fullmatch(r"update-config--gitignore-20240305T1407-[a-z0-9]{6}", name)


def test_branch_name_attempt_suffix(monkeypatch):
    monkeypatch.setattr(branches.random, "choice", lambda alphabet: "a")
    now = datetime(2024, 1, 1, 0, 0, tzinfo=timezone.utc)

    assert generate_branch_name("App.md", 2, now=now) == "update-config-app-md-20240101T0000-aaaaaa-2"


def _names(*names):
    queue = list(names)
    calls = []

    def factory(base_name, attempt):
        calls.append((base_name, attempt))
        return queue.pop(0)

    return factory, calls


@pytest.mark.asyncio
async def test_first_name_is_used_when_free():
    client = FakeGitHub({("POST", REFS): {"ref": "refs/heads/b1"}})
    factory, calls = _names("b1")

    allocation = await allocate_branch(
        client, full_name="o/r", base_name="f.json", base_sha="sha1", name_factory=factory
    )

    assert allocation.name == "b1"
    assert allocation.attempts == 1
    assert client.calls_to("POST", REFS)[0][3] == {"ref": "refs/heads/b1", "sha": "sha1"}
    assert calls == [("f.json", 0)]


@pytest.mark.asyncio
async def test_collision_retries_with_new_name():
    client = FakeGitHub({("POST", REFS): Sequence([branch_collision(), {"ref": "x"}])})
    factory, calls = _names("b1", "b2")

    allocation = await allocate_branch(
        client, full_name="o/r", base_name="f", base_sha="sha1", name_factory=factory
    )

    assert allocation.name == "b2"
    assert allocation.attempts == 2
    assert [attempt for _, attempt in calls] == [0, 1]


@pytest.mark.asyncio
async def test_last_attempt_deletes_and_recreates():
    client = FakeGitHub(
        {
            ("POST", REFS): Sequence(
                [branch_collision(), branch_collision(), branch_collision(), {"ref": "x"}]
            ),
            ("DELETE", f"{REFS}/heads/b3"): None,
        }
    )
    factory, calls = _names("b1", "b2", "b3")

    allocation = await allocate_branch(
        client, full_name="o/r", base_name="f", base_sha="sha1", name_factory=factory
    )

    assert allocation.name == "b3"
    assert allocation.attempts == 3
    assert len(calls) == 3
    assert len(client.calls_to("DELETE")) == 1


@pytest.mark.asyncio
async def test_delete_not_found_is_tolerated():
    client = FakeGitHub(
        {
            ("POST", REFS): Sequence([branch_collision(), {"ref": "x"}]),
            ("DELETE", f"{REFS}/heads/b1"): not_found(),
        }
    )
    factory, _ = _names("b1")

    allocation = await allocate_branch(
        client,
        full_name="o/r",
        base_name="f",
        base_sha="sha1",
        max_attempts=1,
        name_factory=factory,
    )

    assert allocation.name == "b1"


@pytest.mark.asyncio
async def test_persistent_collisions_fail_after_budget():
    client = FakeGitHub(
        {
            ("POST", REFS): lambda params, body: branch_collision(),
            ("DELETE", f"{REFS}/heads/b3"): None,
        }
    )
    factory, calls = _names("b1", "b2", "b3")

    with pytest.raises(BranchAllocationError) as excinfo:
        await allocate_branch(
            client, full_name="o/r", base_name="f", base_sha="sha1", name_factory=factory
        )

    assert excinfo.value.attempts == 3
    assert "after 3 attempts" in str(excinfo.value)
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_delete_failure_aborts():
    client = FakeGitHub(
        {
            ("POST", REFS): branch_collision(),
            ("DELETE", f"{REFS}/heads/b1"): RemoteAPIError(403, "Forbidden", "{}"),
        }
    )
    factory, _ = _names("b1")

    with pytest.raises(BranchAllocationError):
        await allocate_branch(
            client,
            full_name="o/r",
            base_name="f",
            base_sha="sha1",
            max_attempts=1,
            name_factory=factory,
        )


@pytest.mark.asyncio
async def test_other_errors_propagate_unchanged():
    forbidden = RemoteAPIError(403, "Forbidden", '{"message":"Resource not accessible"}')
    client = FakeGitHub({("POST", REFS): forbidden})
    factory, calls = _names("b1", "b2")

    with pytest.raises(RemoteAPIError) as excinfo:
        await allocate_branch(
            client, full_name="o/r", base_name="f", base_sha="sha1", name_factory=factory
        )

    assert excinfo.value is forbidden
    assert len(calls) == 1
