"""Tests for the Forest facade and its commands"""
import os

import pytest

from forest.constants import ErrorCode
from forest.core import config_command
from forest.config import ConfigStore
from forest.models.result import CommandResult
from tests.conftest import MAIN_PATH

AUTH = "/wt/widgets/feature-auth"
LOGIN = "/wt/widgets/bugfix-login"


class TestCommandResult:
    """Test exit code mapping."""

    def test_success(self):
        assert CommandResult.ok(count=1).exit_code == 0

    @pytest.mark.parametrize(
        "code",
        [ErrorCode.INVALID_ARGS, ErrorCode.INVALID_PATH, ErrorCode.INVALID_BRANCH, ErrorCode.UNKNOWN_COMMAND],
    )
    def test_usage_errors(self, code):
        assert CommandResult.failure(code, "bad").exit_code == 2

    @pytest.mark.parametrize("code", ["ADD_ERROR", ErrorCode.NOT_FOUND, ErrorCode.SYNC_FAILED])
    def test_operation_errors(self, code):
        assert CommandResult.failure(code, "failed").exit_code == 1

    def test_to_dict(self):
        result = CommandResult.failure(ErrorCode.NOT_FOUND, "Worktree not found: x", "Use 'forest list'")
        assert result.to_dict() == {
            "success": False,
            "error": {"code": "NOT_FOUND", "message": "Worktree not found: x", "suggestion": "Use 'forest list'"},
        }


class TestListAndGroups:
    """Test read-only inventory commands."""

    def test_list(self, forest):
        result = forest.list_command()
        assert result.success
        assert result.data["count"] == 4
        assert result.data["worktrees"][0]["is_main"]

    def test_list_group(self, forest):
        result = forest.list_command(group="feature")
        assert [wt["branch"] for wt in result.data["worktrees"]] == ["feature/auth", "feature/api"]

    def test_list_failure_is_empty(self, forest, fake_gateway):
        fake_gateway.fail("list")
        result = forest.list_command()
        assert result.success
        assert result.data == {"worktrees": [], "count": 0}

    def test_groups(self, forest):
        result = forest.groups_command()
        assert result.data["total_groups"] == 3
        assert [g["name"] for g in result.data["groups"]] == ["(root)", "feature", "bugfix"]
        assert [g["count"] for g in result.data["groups"]] == [1, 2, 1]


class TestAdd:
    """Test worktree creation."""

    def test_add_branch_under_root(self, forest, fake_gateway, worktree_root):
        result = forest.add_command("feature/new", new_branch=True)

        expected = os.path.join(str(worktree_root), "widgets", "feature-new")
        assert result.success
        assert result.data["path"] == expected
        assert result.data["branch"] == "feature/new"
        assert result.data["message"] == f"Worktree created: {expected} → feature/new"
        assert fake_gateway.added[0]["new_branch"] is True

    def test_add_explicit_path(self, forest, fake_gateway, temp_dir):
        target = str(temp_dir / "elsewhere")
        result = forest.add_command(target, "topic")

        assert result.data["path"] == target
        assert fake_gateway.added == [
            {"path": target, "branch": "topic", "new_branch": False, "base": None, "detach": False}
        ]

    def test_add_from_base(self, forest, fake_gateway):
        forest.add_command("hotfix", new_branch=True, base="v1.0")
        assert fake_gateway.added[0]["base"] == "v1.0"

    def test_add_with_group(self, forest, worktree_root):
        result = forest.add_command("login", new_branch=True, group="bugfix")
        assert result.data["branch"] == "bugfix/login"
        assert result.data["path"].endswith("bugfix-login")

    def test_add_group_already_prefixed(self, forest):
        result = forest.add_command("bugfix/login", group="bugfix")
        assert result.data["branch"] == "bugfix/login"

    @pytest.mark.parametrize(
        "args,code",
        [
            (("",), ErrorCode.INVALID_BRANCH),
            (("b" * 257,), ErrorCode.INVALID_BRANCH),
            (("/tmp/x\0", "topic"), ErrorCode.INVALID_PATH),
            (("/tmp/x", "bad\nbranch"), ErrorCode.INVALID_BRANCH),
        ],
    )
    def test_invalid_arguments_never_reach_git(self, forest, fake_gateway, args, code):
        result = forest.add_command(*args)

        assert result.error.code == code
        assert result.exit_code == 2
        assert fake_gateway.calls_to("add") == []

    def test_git_failure(self, forest, fake_gateway):
        fake_gateway.fail("add", message="fatal: 'topic' is already checked out")
        result = forest.add_command("topic")

        assert result.error.code == "ADD_ERROR"
        assert "already checked out" in result.error.message
        assert result.error.suggestion
        assert result.exit_code == 1


class TestTargetedCommands:
    """Test commands taking a branch-or-path argument."""

    def test_remove(self, forest, fake_gateway):
        result = forest.remove_command("feature/auth")
        assert result.success
        assert result.data["path"] == AUTH
        assert fake_gateway.calls_to("remove") == [AUTH]

    def test_remove_not_found(self, forest):
        result = forest.remove_command("nope")
        assert result.error.code == ErrorCode.NOT_FOUND
        assert result.exit_code == 1

    def test_branch_target_validated_before_lookup(self, forest, fake_gateway):
        result = forest.remove_command("bad\nbranch")

        assert result.error.code == ErrorCode.INVALID_BRANCH
        assert result.exit_code == 2
        assert fake_gateway.calls_to("list") == []
        assert fake_gateway.calls_to("remove") == []

    def test_remove_main_refused(self, forest, fake_gateway):
        result = forest.remove_command(MAIN_PATH)
        assert result.error.code == "REMOVE_ERROR"
        assert fake_gateway.calls_to("remove") == []

    def test_info(self, forest):
        result = forest.info_command("feature/auth")
        assert result.data["branch"] == "feature/auth"
        assert result.data["commit"] == "2222222"
        assert result.data["last_commit"] == "Initial commit"

    def test_path_of_registered_branch(self, forest):
        result = forest.path_command("feature/auth")
        assert result.data == {"path": AUTH, "branch": "feature/auth", "exists": True}

    def test_path_of_unknown_branch(self, forest, worktree_root):
        result = forest.path_command("topic")
        assert result.data["path"] == os.path.join(str(worktree_root), "widgets", "topic")
        assert result.data["exists"] is False

    def test_lock_and_unlock(self, forest, fake_gateway):
        assert forest.lock_command("feature/auth", reason="travelling").success
        assert fake_gateway.calls_to("lock") == [AUTH]

        result = forest.unlock_command("feature/auth")
        assert result.error.code == ErrorCode.NOT_LOCKED

        assert forest.unlock_command("feature/auth", force=True).success
        assert forest.unlock_command("bugfix/login").success
        assert fake_gateway.calls_to("unlock") == [AUTH, LOGIN]

    def test_clone(self, forest, fake_gateway, worktree_root):
        result = forest.clone_command("feature/auth", "spike", new_branch=True)

        assert result.success
        assert result.data["path"] == os.path.join(str(worktree_root), "widgets", "spike")
        assert result.data["branch"] == "spike"
        assert result.data["source"] == AUTH
        assert len(result.data["source_commit"]) == 7

    def test_clone_detached(self, forest, fake_gateway):
        result = forest.clone_command("main", "spike")
        assert result.data["branch"] == "detached"
        assert fake_gateway.added[0]["detach"] is True

    def test_clone_unknown_source(self, forest, fake_gateway):
        result = forest.clone_command("ghost", "spike")
        assert result.error.code == ErrorCode.NOT_FOUND
        assert fake_gateway.added == []

    def test_prune(self, forest, fake_gateway):
        fake_gateway.worktree_output += "\nworktree /wt/widgets/gone\nHEAD 5555555\nprunable gitdir file points to non-existent location\n"
        result = forest.prune_command(dry_run=True)
        assert result.data["count"] == 1
        assert result.data["pruned"] == ["/wt/widgets/gone"]
        assert result.data["dry_run"] is True


class TestStatusAndSync:
    """Test status and sync over the linked worktrees."""

    def test_status_excludes_main(self, forest):
        result = forest.status_command()
        assert result.data["summary"]["total"] == 3
        assert MAIN_PATH not in [s["path"] for s in result.data["worktrees"]]

    def test_status_root_group(self, forest):
        result = forest.status_command(group="(root)", include_main=True)
        assert [s["branch"] for s in result.data["worktrees"]] == ["main"]

    def test_status_include_main(self, forest):
        assert forest.status_command(include_main=True).data["summary"]["total"] == 4

    def test_status_group_and_target(self, forest, fake_gateway):
        fake_gateway.statuses[AUTH] = "UU conflict.py\n"

        grouped = forest.status_command(group="feature")
        assert grouped.data["summary"]["total"] == 2
        assert grouped.data["summary"]["conflicts"] == 1

        single = forest.status_command("feature/auth")
        assert single.data["worktrees"][0]["conflicts"] is True

    def test_sync_success_with_skips(self, forest, fake_gateway):
        fake_gateway.upstreams[AUTH] = "origin/feature/auth"
        result = forest.sync_command()

        assert result.success
        assert result.data["results"]["synced"] == [AUTH]
        assert result.data["summary"] == {"total": 3, "synced": 1, "skipped": 2, "failed": 0}

    def test_sync_failure(self, forest, fake_gateway):
        fake_gateway.upstreams[AUTH] = "origin/feature/auth"
        fake_gateway.fail("pull", AUTH, "fatal: Not possible to fast-forward")
        result = forest.sync_command(group="feature")

        assert result.error.code == ErrorCode.SYNC_FAILED
        assert result.exit_code == 1
        assert result.data["results"]["failed"][0]["path"] == AUTH


class TestConfigCommand:
    """Test forest config get|set|reset."""

    @pytest.fixture
    def store(self, isolated_home):
        return ConfigStore()

    def test_set_get_reset(self, store, isolated_home):
        result = config_command(store, "set", "directory", "~/trees")
        assert result.data["value"] == str(isolated_home / "trees")

        assert config_command(store, "get", "directory").data == {
            "key": "directory",
            "value": str(isolated_home / "trees"),
        }

        reset = config_command(store, "reset")
        assert reset.data["value"] == str(isolated_home / ".forest" / "worktrees")

    @pytest.mark.parametrize(
        "args,code",
        [
            (("bogus",), ErrorCode.INVALID_ARGS),
            ((None,), ErrorCode.INVALID_ARGS),
            (("get",), ErrorCode.INVALID_ARGS),
            (("get", "colour"), ErrorCode.UNKNOWN_CONFIG_KEY),
            (("set", "directory", "/etc"), ErrorCode.INVALID_CONFIG),
        ],
    )
    def test_usage_errors(self, store, args, code):
        result = config_command(store, *args)
        assert result.error.code == code
        assert result.exit_code == 2

    def test_forest_delegates(self, forest):
        result = forest.config_command("get", "directory")
        assert result.success
