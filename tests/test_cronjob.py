import re
from datetime import datetime, timedelta, timezone

import pytest

from kubestatemetrics.cron import CronParseError, parse_standard
from kubestatemetrics.cronjob import METRIC_FAMILIES, get_next_scheduled_time
from kubestatemetrics.metric import compose_metric_gen_funcs, extract_metric_family_headers

_LINE = re.compile(r"^([a-zA-Z_:][\w:]*)(?:\{(.*)\})?\s+(\S+)$")
_LABEL = re.compile(r'(\w+)="((?:[^"\\]|\\.)*)"')

LAST_SCHEDULE = 1520742896
SUSPENDED_LAST_SCHEDULE = 1520742896 + int(5.5 * 3600)
NO_LAST_CREATED = 1520742896 + int(6.5 * 3600)


def _parse(text):
    samples = set()
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        match = _LINE.match(line)
        assert match, line
        labels = frozenset(_LABEL.findall(match.group(2) or ""))
        samples.add((match.group(1), labels, float(match.group(3))))
    return samples


def _generate(obj, names=None):
    text = "".join(compose_metric_gen_funcs(METRIC_FAMILIES)(obj))
    samples = _parse(text)
    if names is not None:
        samples = {s for s in samples if s[0] in names}
    return samples


def _local(seconds):
    return datetime.fromtimestamp(seconds, timezone.utc).astimezone()


def _cronjob(name, schedule, suspend, last=None, created=None, active=()):
    metadata = {
        "name": name,
        "namespace": "ns1",
        "generation": 1,
        "labels": {"app": "example-" + name},
    }
    if created is not None:
        metadata["creationTimestamp"] = created
    return {
        "metadata": metadata,
        "status": {"active": [{"name": a} for a in active], "lastScheduleTime": last},
        "spec": {
            "startingDeadlineSeconds": 300,
            "concurrencyPolicy": "Forbid",
            "suspend": suspend,
            "schedule": schedule,
        },
    }


def test_active_running_cronjob():
    obj = _cronjob(
        "ActiveRunningCronJob1",
        "0 */6 * * *",
        False,
        last=LAST_SCHEDULE,
        active=("FakeJob1", "FakeJob2"),
    )
    obj["metadata"]["labels"] = {"app": "example-active-running-1"}
    last = _local(LAST_SCHEDULE)
    upcoming = last.replace(hour=0, minute=0, second=0) + timedelta(
        hours=(last.hour // 6 + 1) * 6
    )
    want = f"""
        kube_cronjob_info{{concurrency_policy="Forbid",cronjob="ActiveRunningCronJob1",namespace="ns1",schedule="0 */6 * * *"}} 1
        kube_cronjob_labels{{cronjob="ActiveRunningCronJob1",label_app="example-active-running-1",namespace="ns1"}} 1
        kube_cronjob_spec_starting_deadline_seconds{{cronjob="ActiveRunningCronJob1",namespace="ns1"}} 300
        kube_cronjob_spec_suspend{{cronjob="ActiveRunningCronJob1",namespace="ns1"}} 0
        kube_cronjob_status_active{{cronjob="ActiveRunningCronJob1",namespace="ns1"}} 2
        kube_cronjob_status_last_schedule_time{{cronjob="ActiveRunningCronJob1",namespace="ns1"}} 1.520742896e+09
        kube_cronjob_next_schedule_time{{cronjob="ActiveRunningCronJob1",namespace="ns1"}} {int(upcoming.timestamp())}
    """
    assert _generate(obj) == _parse(want)


def test_suspended_cronjob():
    obj = _cronjob("SuspendedCronJob1", "0 */3 * * *", True, last=SUSPENDED_LAST_SCHEDULE)
    obj["metadata"]["labels"] = {"app": "example-suspended-1"}
    want = """
        kube_cronjob_info{concurrency_policy="Forbid",cronjob="SuspendedCronJob1",namespace="ns1",schedule="0 */3 * * *"} 1
        kube_cronjob_labels{cronjob="SuspendedCronJob1",label_app="example-suspended-1",namespace="ns1"} 1
        kube_cronjob_spec_starting_deadline_seconds{cronjob="SuspendedCronJob1",namespace="ns1"} 300
        kube_cronjob_spec_suspend{cronjob="SuspendedCronJob1",namespace="ns1"} 1
        kube_cronjob_status_active{cronjob="SuspendedCronJob1",namespace="ns1"} 0
        kube_cronjob_status_last_schedule_time{cronjob="SuspendedCronJob1",namespace="ns1"} 1.520762696e+09
    """
    assert _generate(obj) == _parse(want)


def test_active_cronjob_never_scheduled():
    obj = _cronjob("ActiveCronJob1NoLastScheduled", "25 * * * *", False, created=NO_LAST_CREATED)
    obj["metadata"]["labels"] = {"app": "example-active-no-last-scheduled-1"}
    created = _local(NO_LAST_CREATED)
    upcoming = created.replace(minute=25, second=0)
    if created.minute >= 25:
        upcoming += timedelta(hours=1)
    want = f"""
        kube_cronjob_spec_starting_deadline_seconds{{cronjob="ActiveCronJob1NoLastScheduled",namespace="ns1"}} 300
        kube_cronjob_status_active{{cronjob="ActiveCronJob1NoLastScheduled",namespace="ns1"}} 0
        kube_cronjob_spec_suspend{{cronjob="ActiveCronJob1NoLastScheduled",namespace="ns1"}} 0
        kube_cronjob_info{{concurrency_policy="Forbid",cronjob="ActiveCronJob1NoLastScheduled",namespace="ns1",schedule="25 * * * *"}} 1
        kube_cronjob_created{{cronjob="ActiveCronJob1NoLastScheduled",namespace="ns1"}} 1.520766296e+09
        kube_cronjob_labels{{cronjob="ActiveCronJob1NoLastScheduled",label_app="example-active-no-last-scheduled-1",namespace="ns1"}} 1
        kube_cronjob_next_schedule_time{{cronjob="ActiveCronJob1NoLastScheduled",namespace="ns1"}} {int(upcoming.timestamp())}
    """
    assert _generate(obj) == _parse(want)


def test_headers():
    headers = extract_metric_family_headers(METRIC_FAMILIES)
    assert "# HELP kube_cronjob_info Info about cronjob.\n# TYPE kube_cronjob_info gauge" in headers
    assert len(headers) == 8


def test_last_schedule_time_takes_precedence():
    result = get_next_scheduled_time("25 * * * *", LAST_SCHEDULE, NO_LAST_CREATED)
    assert result == parse_standard("25 * * * *").next(_local(LAST_SCHEDULE))


def test_falls_back_to_creation_time():
    result = get_next_scheduled_time("25 * * * *", None, NO_LAST_CREATED)
    assert result == parse_standard("25 * * * *").next(_local(NO_LAST_CREATED))


def test_both_times_missing():
    with pytest.raises(ValueError, match="both zero"):
        get_next_scheduled_time("25 * * * *", None, None)


def test_bad_schedule():
    with pytest.raises(CronParseError, match="Failed to parse cron job schedule 'bad'"):
        get_next_scheduled_time("bad", LAST_SCHEDULE, None)


def test_bad_schedule_fails_generation():
    obj = _cronjob("broken", "not a schedule", False, last=LAST_SCHEDULE)
    with pytest.raises(CronParseError):
        _generate(obj)