"""Tests for the specflow command-line entrypoint."""

import argparse
import json
from pathlib import Path
from unittest.mock import patch

import pytest

from specflow.cli import main, build_parser
from specflow.commands.common import parse_issue_number
from specflow.commands.provision import agent_config_from_args
from specflow.lib.config import load_config
from specflow.lib.locking import LockTimeout
from specflow.workflow.issues import BackfillResult


def _write_state(project: Path, items: list) -> Path:
    state_file = project / ".specflow" / "backlog.json"
    state_file.parent.mkdir(parents=True, exist_ok=True)
    state_file.write_text(json.dumps({
        "createdAt": "2026-01-05T10:00:00.000Z",
        "sourceFile": str(project / "backlog.md"),
        "repo": "octo/repo",
        "items": items,
    }, indent=2) + "\n")
    return state_file


def _item(index: int, priority: str, score: int, **markers) -> dict:
    data = {
        "id": f"item-{index}",
        "raw": f"work {index}",
        "formattedTitle": f"Work {index}",
        "formattedDescription": f"Type: task. Priority: {priority}. Topic: General.",
        "topic": "General",
        "type": "task",
        "priority": priority,
        "priorityScore": score,
    }
    data.update(markers)
    return data


@pytest.fixture
def project(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for name in ("ANTI_GRAVITY_AGENT_COMMAND", "SPECFLOW_DEFAULT_BRANCH", "SPECFLOW_WORKTREE_ROOT"):
        monkeypatch.delenv(name, raising=False)
    return tmp_path


class TestUsage:
    """Test argument handling."""

    def test_missing_subcommand(self, project, capsys):
        assert main([]) == 2
        assert "usage: specflow" in capsys.readouterr().err

    def test_unknown_subcommand(self, project):
        with pytest.raises(SystemExit) as exc_info:
            main(["launch-rockets"])
        assert exc_info.value.code == 2

    def test_bad_issue_number(self, project):
        with pytest.raises(SystemExit) as exc_info:
            main(["create-pr", "--issue", "abc"])
        assert exc_info.value.code == 2

    def test_parse_issue_number(self):
        assert parse_issue_number("#12") == 12
        assert parse_issue_number("7") == 7
        with pytest.raises(argparse.ArgumentTypeError):
            parse_issue_number("0")

    def test_cleanup_requires_one_selector(self, project, capsys):
        assert main(["cleanup"]) == 2
        assert "ERROR: cleanup requires exactly one of" in capsys.readouterr().err


class TestErrors:
    """Test exit codes for operator-facing failures."""

    def test_missing_state_file(self, project, capsys):
        assert main(["status"]) == 2
        assert "ERROR: State file not found" in capsys.readouterr().err

    def test_lock_held(self, project, capsys):
        _write_state(project, [])
        with patch("specflow.commands.create_issues.open_state", side_effect=LockTimeout("Could not acquire lock")):
            assert main(["create-issues"]) == 3
        assert "Could not acquire lock" in capsys.readouterr().err

    def test_invalid_state(self, project, capsys):
        _write_state(project, [_item(1, "P9", 50)])
        assert main(["status"]) == 1
        assert "ERROR: [backlog]" in capsys.readouterr().err


class TestIntake:
    """Test specflow intake."""

    @patch("specflow.commands.intake.github.get_repo_name_with_owner", return_value="octo/repo")
    def test_writes_state_and_plan(self, mock_repo, project, capsys):
        (project / "backlog.md").write_text("- fix login bug\n- P1 add export feature\n")

        assert main(["intake", "--input", "backlog.md"]) == 0

        state = json.loads((project / ".specflow" / "backlog.json").read_text())
        assert state["repo"] == "octo/repo"
        assert [item["id"] for item in state["items"]] == ["item-1", "item-2"]
        assert (project / ".specflow" / "grouped-plan.md").exists()
        assert "Parsed 2 items." in capsys.readouterr().out

    def test_missing_input(self, project, capsys):
        assert main(["intake", "--input", "nope.md"]) == 2
        assert "Input file not found" in capsys.readouterr().out

    @patch("specflow.commands.intake.github.get_repo_name_with_owner")
    def test_refuses_to_replace_existing_state(self, mock_repo, project, capsys):
        (project / "backlog.md").write_text("- fix login bug\n")
        state_file = _write_state(project, [_item(1, "P2", 50, createdIssueNumber=7)])
        before = state_file.read_text()

        assert main(["intake", "--input", "backlog.md"]) == 2

        assert "State file already exists" in capsys.readouterr().out
        assert state_file.read_text() == before
        mock_repo.assert_not_called()

    @patch("specflow.commands.intake.github.get_repo_name_with_owner", return_value="octo/repo")
    def test_force_replaces_existing_state(self, mock_repo, project):
        (project / "backlog.md").write_text("- fix login bug\n- add export feature\n")
        state_file = _write_state(project, [_item(1, "P2", 50, createdIssueNumber=7)])

        assert main(["intake", "--input", "backlog.md", "--force"]) == 0

        state = json.loads(state_file.read_text())
        assert len(state["items"]) == 2
        assert all("createdIssueNumber" not in item for item in state["items"])


class TestBackfill:
    """Backfill reports failures but still exits 0."""

    @patch("specflow.commands.backfill.backfill_development_branches")
    def test_exit_zero_with_failures(self, mock_backfill, project, capsys):
        _write_state(project, [])
        mock_backfill.side_effect = lambda state, repo, base: BackfillResult(state=state, linked_count=2, failed_count=1)

        with patch.dict("os.environ", {"SPECFLOW_DEFAULT_BRANCH": "main"}):
            assert main(["backfill-development-branches"]) == 0

        out = capsys.readouterr().out
        assert "Backfilled development branches: 2" in out
        assert "Failed to backfill: 1" in out


class TestStatus:
    """Test specflow status."""

    def test_lists_by_priority(self, project, capsys):
        _write_state(project, [
            _item(1, "P3", 25),
            _item(2, "P0", 100, createdIssueNumber=4, branch="issue/4-work-2"),
        ])

        assert main(["status"]) == 0

        out = capsys.readouterr().out
        assert out.index("Work 2") < out.index("Work 1")
        assert "branched" in out
        assert "branch: issue/4-work-2" in out


class TestStateFlag:
    """Test --state placement before and after the subcommand."""

    @pytest.mark.parametrize("argv", [
        ["intake", "--input", "backlog.md"],
        ["create-issues"],
        ["backfill-development-branches"],
        ["provision-worktrees"],
        ["create-pr", "--issue", "1"],
        ["merge-pr", "--pr", "1"],
        ["cleanup", "--branch", "issue/1-a"],
        ["status"],
    ])
    def test_accepted_after_every_subcommand(self, argv):
        args = build_parser().parse_args(argv + ["--state", "alt.json"])
        assert args.state == "alt.json"

    def test_accepted_before_the_subcommand(self):
        args = build_parser().parse_args(["--state", "alt.json", "status"])
        assert args.state == "alt.json"

    def test_subcommand_value_wins(self):
        args = build_parser().parse_args(["--state", "first.json", "status", "--state", "second.json"])
        assert args.state == "second.json"

    def test_defaults_to_none(self):
        assert build_parser().parse_args(["status"]).state is None

    def test_status_reads_state_named_after_subcommand(self, project, capsys):
        default_file = _write_state(project, [_item(1, "P2", 50)])
        default_file.rename(project / "other.json")

        assert main(["status", "--state", "other.json"]) == 0
        assert "Work 1" in capsys.readouterr().out


class TestProvisionFlags:
    """CLI flags layer over configured agent settings."""

    def test_agent_command_enables_agent(self, tmp_path):
        args = build_parser().parse_args([
            "provision-worktrees", "--agent-command", "agent {issueNumber}", "--agent-required",
            "--agent-subdir", ".ws", "--agent-skill", "docs/skill.md",
        ])
        agent = agent_config_from_args(args, load_config(tmp_path, env={}))
        assert agent.enabled is True
        assert agent.required is True
        assert agent.command_template == "agent {issueNumber}"
        assert agent.subdir == ".ws"
        assert agent.skill_file == tmp_path.resolve() / "docs" / "skill.md"

    def test_agent_flag_without_command(self, tmp_path):
        args = build_parser().parse_args(["provision-worktrees", "--agent"])
        agent = agent_config_from_args(args, load_config(tmp_path, env={}))
        assert agent.enabled is True
        assert agent.command_template is None

    def test_defaults_leave_agent_disabled(self, tmp_path):
        args = build_parser().parse_args(["provision-worktrees"])
        assert agent_config_from_args(args, load_config(tmp_path, env={})).enabled is False
