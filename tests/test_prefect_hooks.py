import json
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from uuid import uuid4

from conftest import make_settings
from dingtalk_alerter import prefect_hooks
from dingtalk_alerter.execution import Status

STARTED = datetime(2024, 1, 1, 3, 0, 0, tzinfo=timezone.utc)


def state(type_name, message=None, timestamp=None):
    return SimpleNamespace(type=SimpleNamespace(value=type_name), message=message, timestamp=timestamp)


def task_run(name, type_name, offset_seconds):
    return SimpleNamespace(
        name=name,
        state=state(type_name),
        start_time=STARTED + timedelta(seconds=offset_seconds),
        expected_start_time=None,
    )


def make_run(tags=("project:warehouse",)):
    return SimpleNamespace(id="run-1", tags=list(tags), start_time=STARTED, end_time=None)


def test_status_from_state():
    assert prefect_hooks.status_from_state(state("FAILED")) is Status.FAILED
    assert prefect_hooks.status_from_state(state("CRASHED")) is Status.FAILED
    assert prefect_hooks.status_from_state(state("COMPLETED")) is Status.SUCCEEDED
    assert prefect_hooks.status_from_state(state("CANCELLED")) is Status.CANCELLED
    assert prefect_hooks.status_from_state(state("UNKNOWN")) is Status.READY


def test_project_from_tags():
    assert prefect_hooks.project_from_tags(["nightly", "project:warehouse"], "default") == "warehouse"
    assert prefect_hooks.project_from_tags(["project:"], "default") == "default"
    assert prefect_hooks.project_from_tags(None, "default") == "default"


def test_executable_flow_from_run_orders_nodes():
    runs = [
        task_run("load_table-0", "FAILED", 30),
        task_run("extract-0", "COMPLETED", 0),
        task_run("publish-0", "FAILED", 60),
    ]
    finished = STARTED + timedelta(seconds=90)
    executable = prefect_hooks.executable_flow_from_run(
        SimpleNamespace(name="etl_daily"),
        make_run(),
        state("FAILED", timestamp=finished),
        make_settings(),
        runs,
    )
    assert executable.flow_id == "etl_daily"
    assert executable.execution_id == "run-1"
    assert executable.project_name == "warehouse"
    assert executable.start_time == int(STARTED.timestamp() * 1000)
    assert executable.end_time == int(finished.timestamp() * 1000)
    assert executable.status is Status.FAILED
    assert [n.id for n in executable.nodes] == ["extract-0", "load_table-0", "publish-0"]


def test_executable_flow_without_times_or_tags():
    run = SimpleNamespace(id="run-2", tags=[], start_time=None, end_time=None)
    executable = prefect_hooks.executable_flow_from_run(
        SimpleNamespace(name="f"), run, state("CRASHED"), make_settings(ALERT_DEFAULT_PROJECT="ops")
    )
    assert executable.project_name == "ops"
    assert executable.start_time == -1
    assert executable.end_time == -1
    assert executable.nodes == []


def test_hook_sends_alert(monkeypatch, captured_posts):
    settings = make_settings()
    monkeypatch.setattr(prefect_hooks, "get_settings", lambda: settings)
    monkeypatch.setattr(
        prefect_hooks,
        "_read_task_runs",
        lambda flow_run_id: [task_run("extract-0", "COMPLETED", 0), task_run("load_table-0", "FAILED", 10)],
    )

    prefect_hooks.dingtalk_on_failure(
        SimpleNamespace(name="etl_daily"),
        make_run(),
        state("FAILED", message="Flow run encountered an exception", timestamp=STARTED + timedelta(minutes=1)),
    )

    assert len(captured_posts) == 1
    text = json.loads(captured_posts[0]["data"].decode("utf-8"))["markdown"]["text"]
    assert "# Execution run-1 of flow etl_daily of project warehouse" in text
    reason_lines = text.split("## Reason \n", 1)[1].splitlines()
    assert reason_lines == [
        "- [Failed job 'load_table-0' Link](https://localhost:8443/executor?execid=run-1&job=load_table-0) ",
        "- Flow run encountered an exception",
    ]


def test_hook_still_alerts_when_task_runs_unavailable(monkeypatch, captured_posts):
    settings = make_settings()
    monkeypatch.setattr(prefect_hooks, "get_settings", lambda: settings)

    def broken(flow_run_id):
        raise RuntimeError("api unavailable")

    monkeypatch.setattr(prefect_hooks, "_read_task_runs", broken)
    prefect_hooks.dingtalk_on_failure(SimpleNamespace(name="f"), make_run(), state("CRASHED"))

    assert len(captured_posts) == 1
    text = json.loads(captured_posts[0]["data"].decode("utf-8"))["markdown"]["text"]
    assert text.endswith("## Reason \n")


def test_hook_is_noop_without_token(monkeypatch):
    settings = make_settings(DINGTALK_TOKEN=None)
    monkeypatch.setattr(prefect_hooks, "get_settings", lambda: settings)

    def fail(*args, **kwargs):
        raise AssertionError("should not be called")

    monkeypatch.setattr(prefect_hooks, "_read_task_runs", fail)
    monkeypatch.setattr("dingtalk_alerter.sender.requests.post", fail)
    prefect_hooks.dingtalk_on_failure(SimpleNamespace(name="f"), make_run(), state("FAILED"))


def test_read_task_runs_filters_by_flow_run(monkeypatch):
    calls = {}
    runs = [task_run("extract-0", "COMPLETED", 0)]

    class FakeClient:
        def __enter__(self):
            return self

        def __exit__(self, *exc):
            calls["closed"] = True
            return False

        def read_task_runs(self, flow_run_filter=None):
            calls["filter"] = flow_run_filter
            return runs

    def fake_get_client(**kwargs):
        calls["kwargs"] = kwargs
        return FakeClient()

    monkeypatch.setattr(prefect_hooks, "get_client", fake_get_client)

    flow_run_id = uuid4()
    assert prefect_hooks._read_task_runs(flow_run_id) == runs
    assert calls["kwargs"] == {"sync_client": True}
    assert calls["closed"] is True
    assert calls["filter"].id.any_ == [flow_run_id]
