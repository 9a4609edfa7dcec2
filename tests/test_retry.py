"""Tests for the retry combinator and server rotation."""

import pytest

from wifisurvey.survey.retry import NoServersError, attempt_schedule, first_success, rotate


class TestRotate:
    @pytest.mark.parametrize("n", [1, 2, 3])
    def test_attempt_starts_at_shifted_item(self, n):
        items = [f"s{i}" for i in range(n)]
        for attempt in range(1, 7):
            rotated = rotate(items, attempt)
            assert rotated[0] == items[(attempt - 1) % n]
            assert sorted(rotated) == sorted(items)

    def test_two_servers_alternate(self):
        assert rotate(["a", "b"], 1) == ["a", "b"]
        assert rotate(["a", "b"], 2) == ["b", "a"]
        assert rotate(["a", "b"], 3) == ["a", "b"]

    def test_empty(self):
        assert rotate([], 2) == []

    def test_input_not_mutated(self):
        items = ["a", "b", "c"]
        rotate(items, 2)
        assert items == ["a", "b", "c"]


class TestAttemptSchedule:
    def test_numbers_and_rotation(self):
        assert attempt_schedule(["a", "b"], 3) == [
            (1, ["a", "b"]),
            (2, ["b", "a"]),
            (3, ["a", "b"]),
        ]

    def test_no_servers_still_schedules_attempts(self):
        assert attempt_schedule([], 2) == [(1, []), (2, [])]


class TestFirstSuccess:
    @pytest.mark.asyncio
    async def test_returns_first_success(self):
        tried = []

        async def op(x):
            tried.append(x)
            if x < 2:
                raise RuntimeError(f"fail {x}")
            return x * 10

        assert await first_success(op, [0, 1, 2, 3]) == 20
        assert tried == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_reports_each_failure(self):
        failures = []

        async def op(x):
            if x == "bad":
                raise ValueError("nope")
            return x

        result = await first_success(
            op, ["bad", "good"], on_failure=lambda c, e: failures.append((c, str(e))),
        )
        assert result == "good"
        assert failures == [("bad", "nope")]

    @pytest.mark.asyncio
    async def test_reraises_last_error(self):
        async def op(x):
            raise RuntimeError(f"fail {x}")

        with pytest.raises(RuntimeError, match="fail 3"):
            await first_success(op, [1, 2, 3])

    @pytest.mark.asyncio
    async def test_empty_candidates(self):
        async def op(x):
            return x

        with pytest.raises(NoServersError, match="No servers"):
            await first_success(op, [], empty_message="No servers provided")

    @pytest.mark.asyncio
    async def test_propagated_error_stops_loop(self):
        class Stop(Exception):
            pass

        tried = []

        async def op(x):
            tried.append(x)
            raise Stop()

        with pytest.raises(Stop):
            await first_success(op, [1, 2, 3], propagate=(Stop,))
        assert tried == [1]
