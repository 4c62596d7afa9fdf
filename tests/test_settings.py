from solana_trader.settings import Settings


def test_defaults_match_dashboard_timings() -> None:
    settings = Settings()
    assert settings.rpc_url == "https://api.mainnet-beta.solana.com"
    assert settings.log_capacity == 50
    assert settings.session_delay_bounds() == (1.0, 4.0)
    assert settings.funding_tick_seconds == 0.3


def test_session_delay_bounds_never_inverted() -> None:
    settings = Settings(SESSION_MIN_DELAY_SECONDS=3.0, SESSION_MAX_DELAY_SECONDS=1.0)
    assert settings.session_delay_bounds() == (3.0, 3.0)
