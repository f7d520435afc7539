import threading

import pytest

from rubrik_client import RubrikClient
from rubrik_client.exceptions import (
    JobCancelledError,
    JobFailedError,
    JobTimeoutError,
    UnexpectedResponseError,
)
from rubrik_client.jobs import JobHandle, JobPoller, JobState

HOST = "rubrik.example.com"
JOB_URL = f"https://{HOST}/api/v1/vmware/vm/request/job-1"


def build_poller(sleeps, **kwargs):
    client = RubrikClient.connect(HOST, "admin", "secret")
    return JobPoller(client, interval=10, sleep=sleeps.append, **kwargs)


def test_polls_until_succeeded(requests_mock):
    sleeps: list[float] = []
    poller = build_poller(sleeps)
    matcher = requests_mock.get(
        JOB_URL,
        [
            {"json": {"status": "QUEUED"}},
            {"json": {"status": "RUNNING"}},
            {"json": {"status": "SUCCEEDED", "id": "job-1"}},
        ],
    )

    status = poller.wait(JobHandle(JOB_URL))

    assert status.succeeded
    assert status.payload["id"] == "job-1"
    assert matcher.call_count == 3
    assert sleeps == [10, 10]


def test_failed_job_raises_with_server_message(requests_mock):
    poller = build_poller([])
    requests_mock.get(JOB_URL, json={"status": "FAILED", "error": {"message": "Snapshot failed"}})

    with pytest.raises(JobFailedError) as excinfo:
        poller.wait(JOB_URL)

    assert str(excinfo.value) == "Snapshot failed"
    assert excinfo.value.status.status == "FAILED"


def test_top_level_job_message_reaches_the_failure(requests_mock):
    poller = build_poller([])
    requests_mock.get(JOB_URL, json={"status": "FAILED", "message": "boom"})

    with pytest.raises(JobFailedError) as excinfo:
        poller.wait(JOB_URL)

    assert str(excinfo.value) == "boom"
    assert excinfo.value.status.status == "FAILED"


def test_progress_message_does_not_stop_polling(requests_mock):
    sleeps: list[float] = []
    poller = build_poller(sleeps)
    requests_mock.get(
        JOB_URL,
        [
            {"json": {"status": "RUNNING", "message": "50% done"}},
            {"json": {"status": "SUCCEEDED"}},
        ],
    )

    assert poller.wait(JOB_URL).succeeded
    assert sleeps == [10]


def test_unknown_terminal_state_is_returned(requests_mock):
    sleeps: list[float] = []
    poller = build_poller(sleeps)
    requests_mock.get(JOB_URL, json={"status": "CANCELLED"})

    status = poller.wait(JOB_URL)

    assert status.state is JobState.OTHER
    assert status.status == "CANCELLED"
    assert sleeps == []


def test_max_wait_raises_timeout(requests_mock):
    now = [0.0]

    def clock():
        return now[0]

    def sleep(seconds):
        now[0] += seconds

    client = RubrikClient.connect(HOST, "admin", "secret")
    poller = JobPoller(client, interval=10, sleep=sleep, clock=clock)
    matcher = requests_mock.get(JOB_URL, json={"status": "RUNNING"})

    with pytest.raises(JobTimeoutError):
        poller.wait(JOB_URL, max_wait=25)

    assert matcher.call_count == 3


def test_cancel_event_stops_polling(requests_mock):
    poller = build_poller([])
    cancel = threading.Event()
    cancel.set()
    matcher = requests_mock.get(JOB_URL, json={"status": "RUNNING"})

    with pytest.raises(JobCancelledError):
        poller.wait(JOB_URL, cancel=cancel)

    assert matcher.call_count == 0


def test_status_url_is_not_re_escaped(requests_mock):
    url = f"https://{HOST}/api/internal/archive/location/job/connect/job%3Aabc"
    matcher = requests_mock.get(url, json={"status": "SUCCEEDED"})

    build_poller([]).wait(url)

    assert matcher.last_request.url == url


def test_missing_status_field_is_rejected(requests_mock):
    requests_mock.get(JOB_URL, json={"id": "job-1"})

    with pytest.raises(UnexpectedResponseError):
        build_poller([]).wait(JOB_URL)


def test_custom_pending_states_for_bootstrap(requests_mock):
    sleeps: list[float] = []
    poller = build_poller(sleeps).with_states(("IN_PROGRESS",), interval=30)
    requests_mock.get(
        JOB_URL,
        [
            {"json": {"status": "IN_PROGRESS", "setupEncryptionAtRest": "RUNNING", "message": "step 1"}},
            {"json": {"status": "SUCCESS", "setupEncryptionAtRest": "SUCCESS", "message": "done"}},
        ],
    )

    status = poller.wait(JOB_URL)

    assert status.status == "SUCCESS"
    assert sleeps == [30]


def test_handle_from_response_uses_first_link():
    handle = JobHandle.from_response({"id": "x", "links": [{"href": JOB_URL, "rel": "self"}]})

    assert handle.href == JOB_URL
    with pytest.raises(UnexpectedResponseError):
        JobHandle.from_response({"id": "x"})
