import base64

import pytest

from catalog_mcp.exceptions import AccessDeniedError, RemoteAPIError, ToolExecutionError, UsageError
from catalog_mcp.rendering import result_text
from catalog_mcp.repo_tools.files import add_or_update_file, check_file_exists, get_file_content

from conftest import Sequence, branch_collision, not_found

DOC_FILE = "/repos/org/docs/contents/docs/app/app.md"
GIT_FILE = "/repos/org/config/contents/config/git/.gitignore"
REF = "/repos/org/config/git/ref/heads/main"
REFS = "/repos/org/config/git/refs"
PULLS = "/repos/org/config/pulls"


def _encoded(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


@pytest.mark.asyncio
async def test_check_missing_file_is_not_an_error(make_ctx, fake_github):
    ctx = make_ctx("org/config/config/git")

    result = await check_file_exists(ctx, "config/git/.gitignore")

    assert not result.isError
    assert result_text(result) == (
        "❌ File does not exist: config/git/.gitignore\n"
        "🔒 Folder Restriction: config/git"
    )


@pytest.mark.asyncio
async def test_check_path_outside_folder_is_rejected_without_rerooting(make_ctx, fake_github):
    ctx = make_ctx("org/config/config/git")

    with pytest.raises(AccessDeniedError):
        await check_file_exists(ctx, "other/.gitignore")

    assert fake_github.calls == []


@pytest.mark.asyncio
async def test_check_existing_file(make_ctx, fake_github):
    fake_github.routes[("GET", GIT_FILE)] = {
        "size": 512,
        "html_url": "https://github.com/org/config/blob/main/config/git/.gitignore",
    }
    ctx = make_ctx("org/config/config/git")

    text = result_text(await check_file_exists(ctx, "config/git/.gitignore"))

    assert text == (
        "✅ File exists: config/git/.gitignore\n"
        "📏 Size: 0.5KB\n"
        "🔗 URL: https://github.com/org/config/blob/main/config/git/.gitignore\n"
        "🔒 Folder Restriction: config/git"
    )


@pytest.mark.asyncio
async def test_check_other_failure_is_an_error(make_ctx, fake_github):
    fake_github.routes[("GET", GIT_FILE)] = RemoteAPIError(500, "Server Error", "boom")
    ctx = make_ctx("org/config/config/git")

    result = await check_file_exists(ctx, "config/git/.gitignore")

    assert result.isError
    assert result_text(result).startswith("❌ Error checking file: config/git/.gitignore\n")


@pytest.mark.asyncio
async def test_folder_entry_without_file_path_is_a_usage_error(make_ctx):
    ctx = make_ctx("org/config/config/git", name="gitignore")

    with pytest.raises(UsageError) as excinfo:
        await get_file_content(ctx)

    assert 'Config "gitignore" points to a folder' in str(excinfo.value)


@pytest.mark.asyncio
async def test_get_content_of_file_entry_ignores_file_path(make_ctx, fake_github):
    fake_github.routes[("GET", DOC_FILE)] = {
        "type": "file",
        "size": 2048,
        "encoding": "base64",
        "content": _encoded("# App\nhello ✓\n"),
    }
    ctx = make_ctx("org/docs/docs/app/app.md")

    result = await get_file_content(ctx, "somewhere/else.md")

    assert fake_github.calls == [("GET", DOC_FILE, {"ref": "main"}, None)]
    text = result_text(result)
    assert text.startswith(
        "📄 File: docs/app/app.md\n"
        "🌿 Branch: main\n"
        "📏 Size: 2.0KB\n"
        "🧠 Auto-detected from configuration\n"
        "🔒 Folder Restriction: docs/app\n"
    )
    assert text.endswith("📝 Content:\n```\n# App\nhello ✓\n\n```")


@pytest.mark.asyncio
async def test_get_content_reroots_relative_path_and_uses_branch(make_ctx, fake_github):
    fake_github.routes[("GET", GIT_FILE)] = {"type": "file", "encoding": "base64", "content": ""}
    ctx = make_ctx("org/config/config/git")

    await get_file_content(ctx, ".gitignore", branch="develop")

    assert fake_github.calls[0][1:3] == (GIT_FILE, {"ref": "develop"})


@pytest.mark.asyncio
async def test_get_content_not_found_suggests_add_tool(make_ctx, fake_github):
    ctx = make_ctx("org/config/config/git")

    result = await get_file_content(ctx, ".gitignore")

    text = result_text(result)
    assert not result.isError
    assert text.startswith("❌ File not found: config/git/.gitignore\n")
    assert text.endswith("You can create it using the global_docs_add_or_update_file tool.")


@pytest.mark.asyncio
async def test_get_content_of_directory_is_an_error(make_ctx, fake_github):
    fake_github.routes[("GET", GIT_FILE)] = [{"name": "x", "type": "file"}]
    ctx = make_ctx("org/config/config/git")

    result = await get_file_content(ctx, ".gitignore")

    assert result.isError
    assert "is not a file (it's a dir)" in result_text(result)


@pytest.mark.asyncio
async def test_get_content_too_large_returns_download_url(make_ctx, fake_github):
    fake_github.routes[("GET", GIT_FILE)] = {
        "type": "file",
        "encoding": "none",
        "size": 5 * 1024 * 1024,
        "download_url": "https://raw.example/big",
    }
    ctx = make_ctx("org/config/config/git")

    text = result_text(await get_file_content(ctx, ".gitignore"))

    assert "⚠️ Content is too large" in text
    assert text.endswith("🔗 Download URL: https://raw.example/big")


def _write_routes(fake_github, *, existing=None):
    fake_github.routes[("GET", GIT_FILE)] = existing if existing is not None else not_found()
    fake_github.routes[("GET", REF)] = {"object": {"sha": "base-sha"}}
    fake_github.routes[("POST", REFS)] = {"ref": "refs/heads/new"}
    fake_github.routes[("PUT", GIT_FILE)] = {"content": {"sha": "new-sha"}}
    fake_github.routes[("POST", PULLS)] = {
        "number": 7,
        "html_url": "https://github.com/org/config/pull/7",
    }


@pytest.mark.asyncio
async def test_add_new_file_opens_pull_request(make_ctx, fake_github):
    _write_routes(fake_github)
    ctx = make_ctx("org/config/config/git")

    result = await add_or_update_file(
        ctx,
        file_content="node_modules/\n",
        commit_message="Add gitignore",
        pr_title="Add gitignore",
        file_path=".gitignore",
    )

    methods = [(method, path) for method, path, _, _ in fake_github.calls]
    assert methods == [
        ("GET", GIT_FILE),
        ("GET", REF),
        ("POST", REFS),
        ("PUT", GIT_FILE),
        ("POST", PULLS),
    ]

    ref_body = fake_github.calls_to("POST", REFS)[0][3]
    assert ref_body["sha"] == "base-sha"
    branch = ref_body["ref"][len("refs/heads/"):]
    assert branch.startswith("update-config--gitignore-")

    put_body = fake_github.calls_to("PUT", GIT_FILE)[0][3]
    assert put_body == {
        "message": "Add gitignore",
        "content": _encoded("node_modules/\n"),
        "branch": branch,
    }

    pull_body = fake_github.calls_to("POST", PULLS)[0][3]
    assert pull_body["head"] == branch
    assert pull_body["base"] == "main"
    assert pull_body["draft"] is False
    assert pull_body["body"] == (
        "Automated addition of configuration file: config/git/.gitignore"
        "\n🔒 Folder Restriction: config/git"
    )

    text = result_text(result)
    assert text.startswith("🎉 Successfully added file!\n\n📄 File: config/git/.gitignore\n")
    assert "🔄 Pull Request: #7\n" in text
    assert text.endswith("The pull request has been created and is ready for review.")


@pytest.mark.asyncio
async def test_update_sends_existing_sha(make_ctx, fake_github):
    _write_routes(fake_github, existing={"sha": "old-sha", "type": "file"})
    ctx = make_ctx("org/config/config/git")

    result = await add_or_update_file(
        ctx,
        file_content="x",
        commit_message="Update",
        pr_title="Update",
        file_path=".gitignore",
        pr_description="Custom body",
    )

    assert fake_github.calls_to("PUT", GIT_FILE)[0][3]["sha"] == "old-sha"
    assert fake_github.calls_to("POST", PULLS)[0][3]["body"] == "Custom body"
    assert result_text(result).startswith("🎉 Successfully updated file!")


@pytest.mark.asyncio
async def test_branch_collision_is_retried_during_add(make_ctx, fake_github):
    _write_routes(fake_github)
    fake_github.routes[("POST", REFS)] = Sequence([branch_collision(), {"ref": "x"}])
    ctx = make_ctx("org/config/config/git")

    await add_or_update_file(ctx, "x", "m", "t", file_path=".gitignore")

    first, second = [call[3]["ref"] for call in fake_github.calls_to("POST", REFS)]
    assert first != second


@pytest.mark.asyncio
async def test_missing_base_sha_fails_before_branching(make_ctx, fake_github):
    _write_routes(fake_github)
    fake_github.routes[("GET", REF)] = {"object": {}}
    ctx = make_ctx("org/config/config/git")

    with pytest.raises(ToolExecutionError) as excinfo:
        await add_or_update_file(ctx, "x", "m", "t", file_path=".gitignore")

    assert "Missing SHA" in str(excinfo.value)
    assert fake_github.calls_to("POST") == []


@pytest.mark.asyncio
async def test_failure_after_branch_creation_wraps_cause(make_ctx, fake_github):
    _write_routes(fake_github)
    fake_github.routes[("POST", PULLS)] = RemoteAPIError(422, "Unprocessable Entity", "no commits")
    ctx = make_ctx("org/config/config/git")

    with pytest.raises(ToolExecutionError) as excinfo:
        await add_or_update_file(ctx, "x", "m", "t", file_path=".gitignore")

    error = excinfo.value
    assert error.path == "config/git/.gitignore"
    assert error.folder == "config/git"
    assert error.status_code == 422
    assert str(error).startswith(
        "Failed to add or update file: config/git/.gitignore (folder restriction: config/git)"
    )


@pytest.mark.asyncio
async def test_check_directory_reports_directory(make_ctx, fake_github):
    fake_github.routes[("GET", "/repos/o/r/contents/docs/sub")] = [
        {"name": "a.md", "type": "file", "size": 1}
    ]
    ctx = make_ctx("o/r/docs")

    result = await check_file_exists(ctx, file_path="docs/sub")

    assert not result.isError
    assert result_text(result) == (
        "📁 Path exists but is a directory: docs/sub\n"
        "🔒 Folder Restriction: docs"
    )


@pytest.mark.asyncio
async def test_check_dir_object_reports_directory(make_ctx, fake_github):
    fake_github.routes[("GET", "/repos/o/r/contents/docs/sub")] = {"type": "dir", "name": "sub"}
    ctx = make_ctx("o/r/docs")

    text = result_text(await check_file_exists(ctx, file_path="docs/sub"))

    assert text.startswith("📁 Path exists but is a directory: docs/sub")


@pytest.mark.asyncio
async def test_get_content_of_directory_listing_names_path_and_folder(make_ctx, fake_github):
    fake_github.routes[("GET", "/repos/o/r/contents/docs/sub")] = [{"name": "a.md", "type": "file"}]
    ctx = make_ctx("o/r/docs")

    result = await get_file_content(ctx, "sub")

    assert result.isError
    assert result_text(result) == (
        '❌ Error: "docs/sub" is not a file (it\'s a dir)\n'
        "🔒 Folder Restriction: docs"
    )


@pytest.mark.asyncio
async def test_add_onto_existing_directory_fails_with_path_and_folder(make_ctx, fake_github):
    fake_github.routes[("GET", "/repos/o/r/contents/docs/sub")] = [{"name": "a.md", "type": "file"}]
    ctx = make_ctx("o/r/docs")

    with pytest.raises(ToolExecutionError) as excinfo:
        await add_or_update_file(ctx, "x", "m", "t", file_path="docs/sub")

    error = excinfo.value
    assert error.path == "docs/sub"
    assert error.folder == "docs"
    assert isinstance(error.cause, UsageError)
    assert "is a directory" in str(error)
    assert [call[0] for call in fake_github.calls] == ["GET"]
