from __future__ import annotations

import json
from pathlib import Path

import pytest

from fakes import FakeProvisioner, FakeRuntime
from node_engine import gate
from node_engine.config import NodeConfig
from node_engine.errors import (
    GateBlockedError,
    MissingFileError,
    NodeWizardError,
    RuntimeCommandError,
    UserDeclinedError,
    WaitInterrupted,
)
from node_engine.lifecycle import LifecycleController, is_affirmative

NOW = 1_750_000_000


class Harness:
    def __init__(self, tmp_path: Path, *, runtime: FakeRuntime | None = None, now: int = NOW) -> None:
        self.config = NodeConfig(home=tmp_path)
        self.runtime = runtime or FakeRuntime()
        self.provisioner = FakeProvisioner()
        self.now = now
        self.waits: list[int] = []
        self.out: list[str] = []
        self.controller = LifecycleController(
            self.config,
            self.runtime,
            self.provisioner,
            clock=lambda: self.now,
            wait_factory=self._wait_factory,
            out=self.out.append,
        )

    def _wait_factory(self, seconds: int):
        def _wait() -> None:
            self.waits.append(seconds)

        return _wait

    def initialize_node(self) -> None:
        self.config.data_directory.mkdir(parents=True, exist_ok=True)
        self.config.credentials_path.write_text(
            json.dumps({"priv_key": "A", "pub_key": "B", "address": "C"}), encoding="utf-8"
        )


@pytest.fixture
def harness(tmp_path: Path) -> Harness:
    return Harness(tmp_path)


def test_install_runs_steps_in_order(harness: Harness) -> None:
    harness.controller.install()
    assert harness.provisioner.calls == ["prepare_host", "ensure_container_runtime"]
    assert harness.runtime.steps() == ["pull", "initialize"]
    assert harness.runtime.calls[1][2] == harness.config.data_directory
    assert harness.config.data_directory.is_dir()
    assert any("faucet" in line for line in harness.out)
    assert any(str(harness.config.credentials_path) in line for line in harness.out)


def test_install_twice_is_idempotent(harness: Harness) -> None:
    harness.controller.install()
    harness.controller.install()
    assert harness.runtime.steps() == ["pull", "initialize", "pull", "initialize"]


def test_install_pull_failure_is_fatal_before_initialize(tmp_path: Path) -> None:
    h = Harness(tmp_path, runtime=FakeRuntime(fail={"pull"}))
    with pytest.raises(RuntimeCommandError) as excinfo:
        h.controller.install()
    assert excinfo.value.step == "pull"
    assert h.runtime.steps() == ["pull"]
    assert not h.config.data_directory.exists()


def test_install_initialize_failure_is_fatal(tmp_path: Path) -> None:
    h = Harness(tmp_path, runtime=FakeRuntime(fail={"initialize"}))
    with pytest.raises(RuntimeCommandError, match="initialize"):
        h.controller.install()
    assert h.out == []


def test_activate_without_prior_timestamp_waits_launches_and_records(harness: Harness) -> None:
    harness.initialize_node()
    container_id = harness.controller.activate()
    assert container_id == "c0ffee"
    assert harness.waits == [1200]
    launch = harness.runtime.calls[-1]
    assert launch[0] == "launch"
    assert launch[3][:3] == ("accuse", "--rpc-endpoint", harness.config.rpc_endpoint)
    assert "--block-start" in launch[3]
    assert gate.read_last_activation(harness.config.timestamp_path) == NOW


def test_activate_blocked_after_500_seconds_reports_700(harness: Harness) -> None:
    harness.initialize_node()
    gate.record_activation(harness.config.timestamp_path, NOW - 500)
    with pytest.raises(GateBlockedError) as excinfo:
        harness.controller.activate()
    assert excinfo.value.remaining_seconds == 700
    assert excinfo.value.exit_code == 1
    assert harness.waits == []
    assert harness.runtime.calls == []
    assert gate.read_last_activation(harness.config.timestamp_path) == NOW - 500


def test_activate_allowed_once_cooldown_elapsed(harness: Harness) -> None:
    harness.initialize_node()
    gate.record_activation(harness.config.timestamp_path, NOW - 1200)
    harness.controller.activate()
    assert harness.runtime.steps() == ["launch"]


def test_activate_records_instant_after_launch(harness: Harness) -> None:
    harness.initialize_node()

    def advancing_wait(seconds: int):
        def _wait() -> None:
            harness.now += seconds

        return _wait

    harness.controller._wait_factory = advancing_wait
    harness.controller.activate()
    assert gate.read_last_activation(harness.config.timestamp_path) == NOW + 1200


def test_activate_launch_failure_leaves_gate_untouched(tmp_path: Path) -> None:
    h = Harness(tmp_path, runtime=FakeRuntime(fail={"launch"}))
    h.initialize_node()
    with pytest.raises(RuntimeCommandError, match="launch"):
        h.controller.activate()
    assert h.waits == [1200]
    assert not h.config.timestamp_path.exists()


def test_activate_interrupted_wait_leaves_gate_untouched(harness: Harness) -> None:
    harness.initialize_node()

    def interrupted(seconds: int):
        def _wait() -> None:
            raise WaitInterrupted(30, seconds)

        return _wait

    harness.controller._wait_factory = interrupted
    with pytest.raises(WaitInterrupted):
        harness.controller.activate()
    assert harness.runtime.calls == []
    assert not harness.config.timestamp_path.exists()
    harness.controller._wait_factory = harness._wait_factory
    harness.controller.activate()
    assert harness.waits == [1200]


def test_activate_requires_initialized_node(harness: Harness) -> None:
    with pytest.raises(MissingFileError):
        harness.controller.activate()
    assert harness.waits == []


def test_remove_declined_touches_nothing(harness: Harness) -> None:
    harness.initialize_node()
    prompts = []

    def decline(prompt: str) -> bool:
        prompts.append(prompt)
        return False

    with pytest.raises(UserDeclinedError) as excinfo:
        harness.controller.remove(decline)
    assert excinfo.value.exit_code == 0
    assert prompts and "[y/N]" in prompts[0]
    assert harness.runtime.calls == []
    assert harness.config.credentials_path.exists()


def test_remove_confirmed_stops_container_and_deletes_data(harness: Harness) -> None:
    harness.initialize_node()
    harness.controller.remove(lambda _prompt: True)
    assert harness.runtime.calls == [
        ("stop", harness.config.container_name),
        ("remove", harness.config.container_name),
    ]
    assert not harness.config.product_root.exists()


def test_remove_container_failure_keeps_data(tmp_path: Path) -> None:
    h = Harness(tmp_path, runtime=FakeRuntime(fail={"remove"}))
    h.initialize_node()
    with pytest.raises(RuntimeCommandError):
        h.controller.remove(lambda _prompt: True)
    assert h.config.credentials_path.exists()


def test_remove_delete_failure_is_fatal(harness: Harness) -> None:
    harness.initialize_node()

    def fail_rmtree(path: Path) -> None:
        raise PermissionError("denied")

    harness.controller._remove_tree = fail_rmtree
    with pytest.raises(NodeWizardError, match="remove data"):
        harness.controller.remove(lambda _prompt: True)
    assert ("remove", harness.config.container_name) in harness.runtime.calls


def test_update_tolerates_teardown_failures(tmp_path: Path) -> None:
    h = Harness(tmp_path, runtime=FakeRuntime(fail={"stop", "remove", "remove_image", "prune"}))
    h.controller.update()
    assert h.runtime.steps() == ["stop", "remove", "remove_image", "prune", "pull", "launch"]


def test_update_final_launch_failure_is_fatal(tmp_path: Path) -> None:
    h = Harness(tmp_path, runtime=FakeRuntime(fail={"launch"}))
    with pytest.raises(RuntimeCommandError, match="launch"):
        h.controller.update()


def test_update_does_not_touch_gate(harness: Harness) -> None:
    harness.controller.update()
    assert not harness.config.timestamp_path.exists()


def test_logs_follows_named_container(harness: Harness) -> None:
    assert harness.controller.logs() == 0
    assert harness.runtime.calls == [("tail_logs", harness.config.container_name, True)]


def test_credentials_prints_labeled_fields(harness: Harness) -> None:
    harness.initialize_node()
    record = harness.controller.credentials()
    assert record.address == "C"
    assert harness.out == ["Private Key: A", "Public Key: B", "Address: C"]


def test_credentials_missing_file_outputs_nothing(harness: Harness) -> None:
    with pytest.raises(MissingFileError):
        harness.controller.credentials()
    assert harness.out == []


@pytest.mark.parametrize("answer", ["y", "Y", "yes", "YES", " Yes "])
def test_is_affirmative_accepts_yes(answer: str) -> None:
    assert is_affirmative(answer) is True


@pytest.mark.parametrize("answer", ["", "n", "no", "yep", None])
def test_is_affirmative_rejects_everything_else(answer) -> None:
    assert is_affirmative(answer) is False


def test_activate_again_after_cooldown_replaces_running_container(harness: Harness) -> None:
    harness.initialize_node()
    harness.controller.activate()
    harness.now += 5000
    harness.controller.activate()
    assert harness.waits == [1200, 1200]
    assert harness.runtime.steps() == ["launch", "stop", "remove", "launch"]
    assert harness.runtime.containers == {harness.config.container_name: "running"}
    assert gate.read_last_activation(harness.config.timestamp_path) == NOW + 5000


def test_activate_clears_crashed_container_before_waiting(tmp_path: Path) -> None:
    h = Harness(tmp_path, runtime=FakeRuntime(containers={"nillion_accuser": "exited"}))
    h.initialize_node()
    order = []
    h.controller._wait_factory = lambda seconds: (lambda: order.append(("wait", dict(h.runtime.containers))))
    h.controller.activate()
    assert order == [("wait", {})]
    assert h.runtime.steps() == ["stop", "remove", "launch"]


def test_activate_blocked_gate_leaves_running_container_alone(tmp_path: Path) -> None:
    h = Harness(tmp_path, runtime=FakeRuntime(containers={"nillion_accuser": "running"}))
    h.initialize_node()
    gate.record_activation(h.config.timestamp_path, NOW - 10)
    with pytest.raises(GateBlockedError):
        h.controller.activate()
    assert h.runtime.calls == []
    assert h.runtime.containers == {"nillion_accuser": "running"}


def test_activate_teardown_failure_is_fatal_before_waiting(tmp_path: Path) -> None:
    h = Harness(tmp_path, runtime=FakeRuntime(fail={"remove"}, containers={"nillion_accuser": "exited"}))
    h.initialize_node()
    with pytest.raises(RuntimeCommandError, match="remove"):
        h.controller.activate()
    assert h.waits == []
    assert "launch" not in h.runtime.steps()
    assert not h.config.timestamp_path.exists()
