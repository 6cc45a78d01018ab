"""Tests for the constant-interval retry."""

import time

import pytest

from tempdb.retry import retry


class Flaky:
    def __init__(self, failures, exc=ConnectionError):
        self.failures = failures
        self.exc = exc
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.exc(f"failure {self.calls}")
        return "ok"


class TestRetry:
    def test_first_try(self):
        fn = Flaky(0)
        assert retry(fn, attempts=3, interval=0) == "ok"
        assert fn.calls == 1

    def test_succeeds_after_transient_failures(self):
        fn = Flaky(4)
        assert retry(fn, attempts=5, interval=0, retry_on=(ConnectionError,)) == "ok"
        assert fn.calls == 5

    def test_exhaustion_raises_last_failure(self):
        fn = Flaky(10)
        with pytest.raises(ConnectionError, match="failure 3"):
            retry(fn, attempts=3, interval=0)
        assert fn.calls == 3

    def test_other_errors_are_not_retried(self):
        fn = Flaky(10, exc=ValueError)
        with pytest.raises(ValueError, match="failure 1"):
            retry(fn, attempts=5, interval=0, retry_on=(ConnectionError,))
        assert fn.calls == 1

    def test_constant_interval(self, monkeypatch):
        sleeps = []
        monkeypatch.setattr(time, "sleep", sleeps.append)
        with pytest.raises(ConnectionError):
            retry(Flaky(10), attempts=4, interval=0.25)
        assert sleeps == [0.25, 0.25, 0.25]

    def test_invalid_attempts(self):
        with pytest.raises(ValueError):
            retry(Flaky(0), attempts=0, interval=0)
