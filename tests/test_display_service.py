"""Tests for human-readable output"""
from forest.models.result import CommandResult, SyncOutcome, SyncState
from forest.models.worktree import Worktree
from forest.services.display_service import DisplayService, format_changes, format_upstream


def test_format_changes():
    assert format_changes({"staged_files": 1, "unstaged_files": 2, "untracked_files": 3}) == "S1 M2 U3"
    assert format_changes({}) == ""
    assert format_changes({"conflicts": True, "staged_files": 1}) == "S1 [red]![/red]"


def test_format_upstream():
    assert format_upstream({"has_upstream": False}) == "[dim]no upstream[/dim]"
    assert format_upstream({"has_upstream": True, "ahead": 0, "behind": 0}) == "up to date"
    assert format_upstream({"has_upstream": True, "ahead": 2, "behind": 1}) == "↑2 ↓1"


class TestDisplayService:
    """Test rendering of command results."""

    def test_empty_list(self, capsys):
        DisplayService().render("list", CommandResult.ok(worktrees=[], count=0))
        assert "No worktrees found." in capsys.readouterr().out

    def test_message_fallback(self, capsys):
        DisplayService().render("lock", CommandResult.ok(message="Worktree locked: /wt/[x]"))
        assert "Worktree locked: /wt/[x]" in capsys.readouterr().out

    def test_error_with_suggestion(self, capsys):
        result = CommandResult.failure("ADD_ERROR", "Git operation 'add' failed", "Check the branch")
        DisplayService().render("add", result)
        captured = capsys.readouterr()
        assert "Error (ADD_ERROR): Git operation 'add' failed" in captured.err
        assert "Suggestion: Check the branch" in captured.err

    def test_failed_sync_prints_summary(self, capsys):
        result = CommandResult.failure(
            "SYNC_FAILED",
            "1 worktree(s) failed to sync",
            summary={"total": 2, "synced": 1, "skipped": 0, "failed": 1},
        )
        DisplayService().render("sync", result)
        captured = capsys.readouterr()
        assert "Sync complete: 1 synced, 0 skipped, 1 failed (of 2)" in captured.out
        assert "SYNC_FAILED" in captured.err

    def test_sync_progress(self, capsys):
        wt = Worktree(path="/wt/a", branch="feature/a", commit="1234567")
        display = DisplayService()
        display.display_sync_progress(SyncOutcome(worktree=wt, state=SyncState.SYNCED, stashed=True))
        display.display_sync_progress(
            SyncOutcome(worktree=wt, state=SyncState.SKIPPED_NO_UPSTREAM, reason="no upstream branch configured")
        )
        out = capsys.readouterr().out
        assert "Synced feature/a (local changes stashed)" in out
        assert "Skipped feature/a: no upstream branch configured" in out

    def test_verbose_groups_list_members(self, capsys):
        data = {
            "groups": [{"name": "feature", "count": 1, "worktrees": [{"branch": "feature/a", "path": "/wt/a"}]}],
            "total_groups": 1,
        }
        DisplayService(verbose=True).render("groups", CommandResult.ok(**data))
        out = capsys.readouterr().out
        assert "feature (1)" in out
        assert "feature/a" in out

    def test_info_with_bracketed_text(self, capsys):
        data = {
            "path": "/wt/[green]x",
            "branch": "fix/[bold]",
            "commit": "1234567",
            "locked": False,
            "prunable": False,
            "is_main": False,
            "last_commit": "Fix [/red] parsing",
        }
        DisplayService().render("info", CommandResult.ok(**data))
        out = capsys.readouterr().out
        assert "Last commit: Fix [/red] parsing" in out
        assert "Worktree: /wt/[green]x" in out
        assert "Branch: fix/[bold]" in out

    def test_groups_and_list_with_bracketed_names(self, capsys):
        wt = {"branch": "[/x]/a", "path": "/wt/[/dim]", "commit": "1234567", "locked": False, "prunable": False}
        display = DisplayService(verbose=True)
        display.render("groups", CommandResult.ok(groups=[{"name": "[/x]", "count": 1, "worktrees": [wt]}], total_groups=1))
        display.render("list", CommandResult.ok(worktrees=[wt], count=1))
        display.render("prune", CommandResult.ok(message="Pruned 1 worktree(s)", count=1, pruned=["/wt/[/b]"], dry_run=False))
        out = capsys.readouterr().out
        assert "[/x] (1)" in out
        assert "/wt/[/b]" in out
