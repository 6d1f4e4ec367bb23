import os
from types import SimpleNamespace

import pytest

from bashrun.shell.errors import InvalidArgumentError
from bashrun.shell.platform import OperatingSystem, ShellInvocation
from bashrun.shell.process import ChildProcess, build_launch_spec
from tests.helpers import SPEC

BASH = ShellInvocation(os=OperatingSystem.LINUX, executable="/bin/bash", prefix=("-c",))


@pytest.mark.parametrize("stream", ["stdout", "stderr"])
def test_unpiped_stream_raises(stream: str) -> None:
    process = SimpleNamespace(pid=1, returncode=None, stdout=None, stderr=None)
    child = ChildProcess(process, SPEC)  # type: ignore[arg-type]

    with pytest.raises(RuntimeError, match=f"{stream} is not piped"):
        getattr(child, stream)


def test_launch_spec_passes_command_as_one_argument() -> None:
    spec = build_launch_spec("echo a; echo b", BASH, cwd="/tmp")

    assert spec.argv == ("/bin/bash", "-c", "echo a; echo b")
    assert spec.executable == "/bin/bash"
    assert spec.cwd == "/tmp"
    assert spec.env is None


def test_launch_spec_layers_env_over_current_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BASHRUN_INHERITED", "yes")

    spec = build_launch_spec("true", BASH, env={"EXTRA": "1"})

    assert spec.env is not None
    assert spec.env["EXTRA"] == "1"
    assert spec.env["BASHRUN_INHERITED"] == "yes"
    assert "EXTRA" not in os.environ


@pytest.mark.parametrize("command", [None, 42, "", "  \t"])
def test_invalid_commands_rejected(command) -> None:  # type: ignore[no-untyped-def]
    with pytest.raises(InvalidArgumentError):
        build_launch_spec(command, BASH)
