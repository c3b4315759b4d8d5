"""Tests for the optimus command-line entry point.

Network functions are monkeypatched on the optimus.cli module; archives
are written to a per-test temp dir.
"""

import tempfile
import zipfile

import pytest
import yaml

from optimus import cli
from optimus.core.errors import ServerRejected
from optimus.eligibility.types import Competition, EligibilityDecision
from optimus.packaging.types import UploadResult
from optimus.update.types import InstallOutcome, ReleaseAsset, ReleaseInfo


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    project = tmp_path / "solution"
    project.mkdir()
    (project / "a.py").write_text("print('a')\n")
    (project / "README.md").write_text("# readme\n")
    (project / "submission.yml").write_text(yaml.safe_dump({
        "api_key": "key-1",
        "server_url": "http://server:3000",
        "competition_id": "competition-123",
    }))
    monkeypatch.chdir(project)
    return project


@pytest.fixture
def scratch(tmp_path, monkeypatch):
    path = tmp_path / "scratch"
    path.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(path))
    return path


def _fake_checker(decision, calls=None):
    def _check(server_url, api_key, competition_id=None, timeout=None):
        if calls is not None:
            calls.append((server_url, api_key, competition_id))
        return decision

    return _check


def _fake_uploader(captured):
    def _upload(artifact, api_key, server_url, competition_id=None):
        with zipfile.ZipFile(artifact.path) as zf:
            captured["names"] = sorted(n for n in zf.namelist() if not n.endswith("/"))
        captured["competition"] = competition_id
        artifact.path.unlink()
        return UploadResult(status_code=200, body="ok", data={"message": "File received successfully"})

    return _upload


class TestSend:
    def test_successful_submission(self, workdir, scratch, monkeypatch, capsys):
        calls = []
        captured = {}
        decision = EligibilityDecision(
            approved=True, required_format="py", remaining_attempts=3,
            competition_name="Demo Competition",
        )
        monkeypatch.setattr(cli, "check_eligibility", _fake_checker(decision, calls))
        monkeypatch.setattr(cli, "upload_archive", _fake_uploader(captured))

        code = cli.main(["send", "--yes"])

        out = capsys.readouterr().out
        assert code == 0
        assert calls == [("http://server:3000", "key-1", "competition-123")]
        assert captured["names"] == ["a.py"]
        assert captured["competition"] == "competition-123"
        assert "Submission accepted: File received successfully" in out
        assert not (scratch / "solution.zip").exists()

    def test_not_approved_exits_zero(self, workdir, scratch, monkeypatch, capsys):
        decision = EligibilityDecision(approved=False, required_format="py", remaining_attempts=0)
        monkeypatch.setattr(cli, "check_eligibility", _fake_checker(decision))
        monkeypatch.setattr(cli, "upload_archive", pytest.fail)

        code = cli.main(["send", "--yes"])

        assert code == 0
        assert "not approved" in capsys.readouterr().out
        assert list(scratch.iterdir()) == []

    def test_server_error_exits_nonzero(self, workdir, scratch, monkeypatch, capsys):
        def _check(*args, **kwargs):
            raise ServerRejected(500, "internal error", "http://server:3000/check")

        monkeypatch.setattr(cli, "check_eligibility", _check)

        code = cli.main(["send", "--yes"])

        err = capsys.readouterr().err
        assert code == 1
        assert "500" in err
        assert "internal error" in err
        assert list(scratch.iterdir()) == []

    def test_decline_exits_zero(self, workdir, scratch, monkeypatch, capsys):
        decision = EligibilityDecision(approved=True, required_format="repo", remaining_attempts=2)
        monkeypatch.setattr(cli, "check_eligibility", _fake_checker(decision))
        monkeypatch.setattr(cli, "upload_archive", pytest.fail)
        monkeypatch.setattr("builtins.input", lambda prompt: "n")

        code = cli.main(["send"])

        assert code == 0
        assert "Submission cancelled." in capsys.readouterr().out
        assert list(scratch.iterdir()) == []

    def test_forced_format_and_overrides(self, workdir, scratch, monkeypatch):
        captured = {}
        monkeypatch.setattr(cli, "check_eligibility", pytest.fail)
        monkeypatch.setattr(cli, "upload_archive", _fake_uploader(captured))

        code = cli.main([
            "send", "--yes", "--format", "repo", "--competition", "competition-456",
            "--compression", "best", "--exclude", "README",
        ])

        assert code == 0
        assert captured["names"] == ["a.py"]
        assert captured["competition"] == "competition-456"

    def test_invalid_forced_format(self, workdir, scratch, monkeypatch, capsys):
        monkeypatch.setattr(cli, "check_eligibility", pytest.fail)

        code = cli.main(["send", "--yes", "--format", "tarball"])

        assert code == 1
        assert "tarball" in capsys.readouterr().err

    def test_missing_config(self, tmp_path, monkeypatch, capsys):
        monkeypatch.chdir(tmp_path)

        code = cli.main(["send", "--yes"])

        assert code == 1
        assert "optimus init" in capsys.readouterr().err

    def test_custom_config_name_not_archived(self, workdir, scratch, monkeypatch):
        (workdir / "submission.yml").rename(workdir / "optimus.yml")
        monkeypatch.setattr(cli, "upload_archive", pytest.fail)

        code = cli.main([
            "--config", str(workdir / "optimus.yml"),
            "send", "--path", str(workdir), "--format", "repo", "--yes", "--dry-run",
        ])

        assert code == 0
        with zipfile.ZipFile(scratch / "solution.zip") as zf:
            names = sorted(n for n in zf.namelist() if not n.endswith("/"))
        assert names == ["README.md", "a.py"]

    def test_config_from_env_var_not_archived(self, workdir, scratch, monkeypatch):
        (workdir / "submission.yml").rename(workdir / "team.yml")
        monkeypatch.setenv("OPTIMUS_CONFIG_PATH", "team.yml")
        monkeypatch.setattr(cli, "upload_archive", pytest.fail)

        assert cli.main(["send", "--format", "repo", "--yes", "--dry-run"]) == 0
        with zipfile.ZipFile(scratch / "solution.zip") as zf:
            assert "team.yml" not in zf.namelist()

    def test_dry_run_keeps_archive(self, workdir, scratch, monkeypatch, capsys):
        monkeypatch.setattr(cli, "upload_archive", pytest.fail)

        code = cli.main(["send", "--yes", "--format", "py", "--dry-run"])

        assert code == 0
        assert (scratch / "solution.zip").exists()
        assert "Dry run" in capsys.readouterr().out


class TestInit:
    def test_creates_config(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        assert cli.main(["init"]) == 0
        assert (tmp_path / "submission.yml").exists()

    def test_keeps_existing_when_declined(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "submission.yml").write_text("api_key: mine\n")
        monkeypatch.setattr("builtins.input", lambda prompt: "")

        assert cli.main(["init"]) == 0
        assert (tmp_path / "submission.yml").read_text() == "api_key: mine\n"

    def test_overwrites_when_confirmed(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "submission.yml").write_text("api_key: mine\n")
        monkeypatch.setattr("builtins.input", lambda prompt: "y")

        assert cli.main(["init"]) == 0
        assert "your-api-key-goes-here" in (tmp_path / "submission.yml").read_text()

    def test_force_skips_prompt(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "submission.yml").write_text("api_key: mine\n")
        monkeypatch.setattr("builtins.input", pytest.fail)

        assert cli.main(["init", "--force"]) == 0

    def test_custom_config_path(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert cli.main(["--config", "custom.yml", "init"]) == 0
        assert (tmp_path / "custom.yml").exists()


class TestCompetitions:
    def test_lists_competitions(self, workdir, monkeypatch, capsys):
        def _list(server_url, api_key, timeout=None):
            assert server_url == "http://server:3000"
            return [
                Competition(id="competition-123", name="Demo Competition", max_attempts=3),
                Competition(id="c-2", name="Open", max_attempts=None),
            ]

        monkeypatch.setattr(cli, "list_competitions", _list)

        assert cli.main(["competitions"]) == 0
        out = capsys.readouterr().out
        assert "competition-123  Demo Competition (3 attempts)" in out
        assert "Open (unlimited attempts)" in out

    def test_works_without_config_file(self, tmp_path, monkeypatch, capsys):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(cli, "list_competitions", lambda *a, **k: [])

        assert cli.main(["competitions", "--api-key", "k"]) == 0
        assert "No competitions" in capsys.readouterr().out


class TestUpdate:
    def _release(self):
        return ReleaseInfo(
            tag_name="v9.0.0",
            assets=[
                ReleaseAsset(name="optimus-linux.sh", browser_download_url="https://x/linux.sh"),
                ReleaseAsset(name="optimus-darwin.pkg", browser_download_url="https://x/mac.pkg"),
                ReleaseAsset(name="optimus-windows.msi", browser_download_url="https://x/win.msi"),
            ],
        )

    def test_up_to_date(self, monkeypatch, capsys):
        monkeypatch.setattr(cli, "current_version", lambda: "1.0.0")
        monkeypatch.setattr(cli, "check_for_update", lambda installed, feed: None)

        assert cli.main(["update"]) == 0
        assert "up to date" in capsys.readouterr().out

    def test_check_only(self, monkeypatch, capsys):
        monkeypatch.setattr(cli, "current_version", lambda: "1.0.0")
        monkeypatch.setattr(cli, "check_for_update", lambda installed, feed: self._release())
        monkeypatch.setattr(cli, "download_asset", pytest.fail)

        assert cli.main(["update", "--check-only"]) == 0
        assert "1.0.0 -> 9.0.0" in capsys.readouterr().out

    def test_installs_with_yes(self, tmp_path, monkeypatch, capsys):
        downloaded = tmp_path / "optimus-linux.sh"
        ran = {}

        class _FakeAction:
            def run(self):
                ran["yes"] = True
                return InstallOutcome.EXECUTED

        monkeypatch.setattr(cli.sys, "platform", "linux")
        monkeypatch.setattr(cli, "current_version", lambda: "1.0.0")
        monkeypatch.setattr(cli, "check_for_update", lambda installed, feed: self._release())
        monkeypatch.setattr(cli, "download_asset", lambda asset, dest: downloaded)
        monkeypatch.setattr(cli, "installer_for", lambda path, platform: _FakeAction())

        assert cli.main(["update", "--yes"]) == 0
        assert ran == {"yes": True}
        assert "Installed optimus 9.0.0" in capsys.readouterr().out

    def test_declined(self, monkeypatch, capsys):
        monkeypatch.setattr(cli.sys, "platform", "linux")
        monkeypatch.setattr(cli, "current_version", lambda: "1.0.0")
        monkeypatch.setattr(cli, "check_for_update", lambda installed, feed: self._release())
        monkeypatch.setattr(cli, "download_asset", pytest.fail)
        monkeypatch.setattr("builtins.input", lambda prompt: "no")

        assert cli.main(["update"]) == 0
        assert "Update cancelled." in capsys.readouterr().out


def test_no_command_prints_help(capsys):
    assert cli.main([]) == 1
    assert "usage: optimus" in capsys.readouterr().out


def test_ask_yes_no_eof_uses_default(monkeypatch):
    def _eof(prompt):
        raise EOFError

    monkeypatch.setattr("builtins.input", _eof)
    assert cli.ask_yes_no("Proceed?") is False
    assert cli.ask_yes_no("Proceed?", default=True) is True
