import pytest

from e2ejobs.context import Cancellation, ExecutionContext
from e2ejobs.errors import DuplicateKeyError, MissingKeyError
from e2ejobs.ui.logger import null_logger


def make_ctx(**initial):
    return ExecutionContext("job", log=null_logger(), initial=initial)


class TestExecutionContext:
    def test_get_missing_key_raises(self):
        ctx = make_ctx(a=1)
        with pytest.raises(MissingKeyError) as exc_info:
            ctx.get("kubeconfig")
        assert exc_info.value.key == "kubeconfig"
        assert "kubeconfig" in str(exc_info.value)
        assert exc_info.value.available == ["a"]

    def test_missing_key_is_a_key_error(self):
        with pytest.raises(KeyError):
            make_ctx()["nope"]

    def test_get_with_default(self):
        assert make_ctx().get("nope", "fallback") == "fallback"
        assert make_ctx().get("nope", None) is None

    def test_commit_makes_keys_visible(self):
        ctx = make_ctx()
        written = ctx.commit("step", {"cluster": "c1", "region": "eu"})
        assert written == ["cluster", "region"]
        assert ctx.get("cluster") == "c1"
        assert "region" in ctx
        assert len(ctx) == 2

    def test_commit_none_or_empty(self):
        ctx = make_ctx()
        assert ctx.commit("step", None) == []
        assert ctx.commit("step", {}) == []
        assert ctx.keys() == []

    def test_duplicate_key_is_rejected_without_partial_write(self):
        ctx = make_ctx(cluster="c1")
        with pytest.raises(DuplicateKeyError) as exc_info:
            ctx.commit("second", {"fresh": 1, "cluster": "c2"})
        assert exc_info.value.key == "cluster"
        assert exc_info.value.step == "second"
        assert ctx.get("cluster") == "c1"
        assert "fresh" not in ctx

    def test_snapshot_is_read_only_copy(self):
        ctx = make_ctx(a=1)
        snap = ctx.snapshot()
        with pytest.raises(TypeError):
            snap["b"] = 2  # type: ignore[index]
        ctx.commit("s", {"b": 2})
        assert "b" not in snap


class TestCancellation:
    def test_not_cancelled_by_default(self):
        c = Cancellation()
        assert not c.cancelled
        assert c.remaining() is None

    def test_cancel_records_reason_once(self):
        c = Cancellation()
        c.cancel("first")
        c.cancel("second")
        assert c.cancelled
        assert c.reason == "first"

    def test_zero_timeout_is_already_expired(self):
        c = Cancellation(timeout=0)
        assert c.cancelled
        assert c.reason == "deadline exceeded"
        assert c.remaining() == 0.0

    def test_wait_returns_early_when_cancelled(self):
        c = Cancellation()
        c.cancel()
        assert c.wait(5) is True
