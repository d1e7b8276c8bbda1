"""Tests de las políticas de reintento (auth y rate limit)."""

from shopee_sync.utils.retry_handler import RetryPolicy, RetryState, parse_retry_after


class TestAuthPolicy:
    """Límite de renovaciones de token."""

    def test_allows_three_refreshes(self):
        policy = RetryPolicy()
        state = RetryState()

        decisions = [policy.should_refresh_token(state) for _ in range(4)]

        assert decisions == [True, True, True, False]

    def test_reset_auth_only_touches_auth_counter(self):
        policy = RetryPolicy()
        state = RetryState(auth_refresh_tries=2, rate_limit_tries=3, rate_limit_waited_ms=6000)

        policy.reset_auth(state)

        assert state.auth_refresh_tries == 0
        assert state.rate_limit_tries == 3
        assert state.rate_limit_waited_ms == 6000


class TestRateLimitPolicy:
    """Espera lineal acotada por presupuesto."""

    def test_linear_waits_without_hint(self):
        policy = RetryPolicy()
        state = RetryState()

        waits = [policy.next_rate_limit_wait(state, None) for _ in range(3)]

        assert waits == [1, 2, 3]
        assert state.rate_limit_waited_ms == 6000

    def test_server_hint_is_minimum(self):
        policy = RetryPolicy()
        state = RetryState()

        assert policy.next_rate_limit_wait(state, 5) == 5
        assert policy.next_rate_limit_wait(state, 0.5) == 2

    def test_budget_is_never_exceeded(self):
        policy = RetryPolicy(max_rate_limit_wait_ms=10_000)
        state = RetryState()

        waits = []
        wait = policy.next_rate_limit_wait(state, None)
        while wait is not None:
            waits.append(wait)
            wait = policy.next_rate_limit_wait(state, None)

        assert waits == [1, 2, 3, 4]
        assert state.rate_limit_waited_ms == 10_000

    def test_budget_counts_only_waits_taken(self):
        policy = RetryPolicy(max_rate_limit_wait_ms=3_000)
        state = RetryState()

        assert policy.next_rate_limit_wait(state, 10) is None
        assert state.rate_limit_waited_ms == 0


class TestParseRetryAfter:
    """Lectura del header Retry-After."""

    def test_seconds(self):
        assert parse_retry_after({"Retry-After": "3"}) == 3.0

    def test_lowercase_header(self):
        assert parse_retry_after({"retry-after": "2.5"}) == 2.5

    def test_missing_or_invalid(self):
        assert parse_retry_after(None) is None
        assert parse_retry_after({}) is None
        assert parse_retry_after({"Retry-After": "Wed, 21 Oct 2015 07:28:00 GMT"}) is None
        assert parse_retry_after({"Retry-After": "-1"}) is None
