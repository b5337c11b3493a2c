from datetime import datetime

import pytest
from click.testing import CliRunner

from ec2shell import cli as cli_module
from ec2shell.cli import cli, split_login
from ec2shell.directory.base import ReservedInstanceRecord
from ec2shell.errors import CommandFailed
from ec2shell.session.models import AddressPreference

from conftest import FakeDirectory, instance


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "ec2shell.yml"
    path.write_text("login_name: admin\nidentity_file: ~/.ssh/work\nregion: us-east-1\n")
    return path


@pytest.fixture
def directory(monkeypatch):
    directory = FakeDirectory()
    made_with = []

    def make_directory(settings):
        made_with.append(settings)
        return directory

    monkeypatch.setattr(cli_module, "make_directory", make_directory)
    directory.made_with = made_with
    return directory


class RecordingOrchestrator:
    instances = []
    error = None

    def __init__(self, directory, connect_timeout=None):
        self.directory = directory
        self.connect_timeout = connect_timeout
        self.requests = []
        RecordingOrchestrator.instances.append(self)

    def run(self, request):
        self.requests.append(request)
        if RecordingOrchestrator.error:
            raise RecordingOrchestrator.error
        return []


@pytest.fixture
def orchestrator(monkeypatch):
    RecordingOrchestrator.instances = []
    RecordingOrchestrator.error = None
    monkeypatch.setattr(cli_module, "SessionOrchestrator", RecordingOrchestrator)
    return RecordingOrchestrator


def test_split_login():
    assert split_login("ubuntu@web", "ec2-user") == ("ubuntu", "web")
    assert split_login("web", "ec2-user") == ("ec2-user", "web")
    assert split_login("@web", "ec2-user") == ("ec2-user", "web")


def test_ssh_builds_request_from_config(runner, config_file, directory, orchestrator):
    result = runner.invoke(cli, ["--config", str(config_file), "ssh", "web"], obj={})

    assert result.exit_code == 0, result.output
    (request,) = orchestrator.instances[0].requests
    assert request.filter_tag == "web"
    assert request.login_name == "admin"
    assert request.identity_file == "~/.ssh/work"
    assert request.address_preference is AddressPreference.PUBLIC
    assert request.command is None


def test_ssh_options_and_command(runner, config_file, directory, orchestrator):
    result = runner.invoke(cli, [
        "--config", str(config_file), "--region", "eu-west-1",
        "ssh", "-i", "/keys/id", "--private", "ubuntu@Env:prod", "ls", "-la", "/tmp",
    ], obj={})

    assert result.exit_code == 0, result.output
    (request,) = orchestrator.instances[0].requests
    assert request.login_name == "ubuntu"
    assert request.filter_tag == "Env:prod"
    assert request.identity_file == "/keys/id"
    assert request.address_preference is AddressPreference.PRIVATE
    assert request.command == "ls -la /tmp"
    assert directory.made_with[0].region == "eu-west-1"


def test_ssh_double_dash_is_dropped(runner, config_file, directory, orchestrator):
    result = runner.invoke(cli, ["--config", str(config_file), "ssh", "web", "--", "df", "-h"], obj={})

    assert result.exit_code == 0, result.output
    assert orchestrator.instances[0].requests[0].command == "df -h"


def test_ssh_failure_prints_one_error(runner, config_file, directory, orchestrator):
    orchestrator.error = CommandFailed(
        "failed to execute command: false: exited with status 1 on 10.0.0.2",
        host="10.0.0.2", command="false", exit_status=1,
    )
    result = runner.invoke(cli, ["--config", str(config_file), "ssh", "web", "false"], obj={})

    assert result.exit_code == 1
    assert "Error: failed to execute command: false" in result.output


def test_ssh_multiple_instances_without_command(runner, tmp_path, ed25519_key_file, directory):
    directory.records = [
        instance("i-1", public="203.0.113.1"),
        instance("i-2", public="203.0.113.2"),
    ]
    result = runner.invoke(cli, [
        "--config", str(tmp_path / "none.yml"),
        "ssh", "-i", str(ed25519_key_file), "web",
    ], obj={})

    assert result.exit_code == 2
    assert "Error: multiple instances found" in result.output


def test_ssh_no_match(runner, tmp_path, ed25519_key_file, directory):
    result = runner.invoke(cli, [
        "--config", str(tmp_path / "none.yml"),
        "ssh", "-i", str(ed25519_key_file), "web", "uptime",
    ], obj={})

    assert result.exit_code == 1
    assert "Error: no such instance: web" in result.output


def test_ssh_unreadable_key(runner, tmp_path, directory):
    result = runner.invoke(cli, [
        "--config", str(tmp_path / "none.yml"),
        "ssh", "-i", str(tmp_path / "missing"), "web",
    ], obj={})

    assert result.exit_code == 1
    assert "unable to read private key" in result.output
    assert directory.calls == []


def test_ls(runner, tmp_path, directory):
    directory.records = [
        instance("i-1", public="203.0.113.1", name="web-1", state="running"),
        instance("i-2", private="10.0.0.2", name="web-2", state="stopped"),
    ]
    result = runner.invoke(cli, [
        "--config", str(tmp_path / "none.yml"),
        "ls", "--all", "-F", "InstanceId,Name,PublicIpAddress", "web",
    ], obj={})

    assert result.exit_code == 0, result.output
    assert result.output.splitlines() == [
        "i-1\tweb-1\t203.0.113.1",
        "i-2\tweb-2\tN/A",
    ]
    assert directory.calls == [("web", False)]


def test_ls_quiet_running_only(runner, tmp_path, directory):
    directory.records = [instance("i-1"), instance("i-2")]
    result = runner.invoke(cli, ["--config", str(tmp_path / "none.yml"), "ls", "-q"], obj={})

    assert result.output.splitlines() == ["i-1", "i-2"]
    assert directory.calls == [(None, True)]


def test_ls_unknown_field(runner, tmp_path, directory):
    result = runner.invoke(cli, ["--config", str(tmp_path / "none.yml"), "ls", "-F", "Nope"], obj={})
    assert result.exit_code == 2
    assert "Nope" in result.output


def test_malformed_config_fails(runner, tmp_path):
    path = tmp_path / "bad.yml"
    path.write_text("- not\n- a mapping\n")
    result = runner.invoke(cli, ["--config", str(path), "ls"], obj={})

    assert result.exit_code == 1
    assert "Error: invalid config" in result.output


def test_init_config(runner, tmp_path):
    path = tmp_path / "ec2shell.yml"

    first = runner.invoke(cli, ["--config", str(path), "init", "config"], obj={})
    assert first.exit_code == 0, first.output
    assert path.exists()

    second = runner.invoke(cli, ["--config", str(path), "init", "config"], obj={})
    assert second.exit_code == 1
    assert "already exists" in second.output


def test_init_profile(runner, tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    result = runner.invoke(cli, ["--config", str(tmp_path / "none.yml"), "init", "profile"], obj={})

    assert result.exit_code == 0, result.output
    assert (tmp_path / ".aws" / "credentials").exists()


def test_ec2ri_ls(runner, tmp_path, directory):
    directory.reserved = [
        ReservedInstanceRecord(
            reserved_instances_id="ri-1", instance_type="c5.xlarge", instance_count=2,
            state="active", scope="Region", start=datetime(2025, 3, 1),
            end=datetime(2026, 3, 1), duration=31536000,
        ),
    ]
    result = runner.invoke(cli, [
        "--config", str(tmp_path / "none.yml"),
        "ec2ri", "ls", "-F", "ReservedInstancesId,InstanceCount,End,Duration",
    ], obj={})

    assert result.exit_code == 0, result.output
    assert result.output.splitlines() == ["ri-1\t  2\t2026-03-01\t 1year"]
    assert directory.reserved_calls == [False]


def test_ec2ri_ls_all_quiet(runner, tmp_path, directory):
    directory.reserved = [
        ReservedInstanceRecord(
            reserved_instances_id="ri-9", instance_type="c5.xlarge", instance_count=1,
            state="retired", scope="Region", start=datetime(2020, 3, 1),
            end=datetime(2021, 3, 1), duration=31536000,
        ),
    ]
    result = runner.invoke(cli, ["--config", str(tmp_path / "none.yml"), "ec2ri", "ls", "--all", "-q"], obj={})

    assert result.output.splitlines() == ["ri-9"]
    assert directory.reserved_calls == [True]
