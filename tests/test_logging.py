import asyncio
import json

from adcapture.logging import capturelog, current_context, jlog, logging_context, set_global_context


def _records(caplog):
    return [json.loads(r.getMessage()) for r in caplog.records if r.name == "adcapture"]


def test_records_layer_process_task_and_call_fields(caplog):
    set_global_context(app="adcapture-test", skipped=None)
    with caplog.at_level("INFO", logger="adcapture"):
        with logging_context(script="convert", creative="outer"):
            capturelog("classified", creative="banner", rules=["css_keyframes"])
        jlog("info", event="after")

    inside, after = _records(caplog)
    assert inside["app"] == "adcapture-test"
    assert inside["script"] == "convert"
    assert inside["creative"] == "banner"
    assert inside["rules"] == ["css_keyframes"]
    assert "skipped" not in inside
    assert inside["ts"].endswith("+00:00")
    assert "script" not in after


def test_task_context_does_not_leak_between_concurrent_workers():
    seen = {}

    async def worker(n):
        with logging_context(worker=n):
            await asyncio.sleep(0)
            seen[n] = current_context()["worker"]

    async def main():
        await asyncio.gather(worker(1), worker(2))

    asyncio.run(main())
    assert seen == {1: 1, 2: 2}
    assert "worker" not in current_context()


def test_non_json_values_are_stringified(caplog, tmp_path):
    with caplog.at_level("WARNING", logger="adcapture"):
        jlog("warning", event="path_field", path=tmp_path)
    (record,) = _records(caplog)
    assert record["path"] == str(tmp_path)
