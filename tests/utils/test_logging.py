import logging

import pytest
import structlog

from shopcore.utils.logging import configure_logging, get_log_level, log_context


@pytest.fixture()
def clean_env(monkeypatch):
    for name in ("ENV", "ENVIRONMENT", "PROTEAN_ENV", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.mark.parametrize(
    "env, level",
    [("production", "INFO"), ("staging", "INFO"), ("development", "DEBUG"), ("test", "WARNING"), ("other", "INFO")],
)
def test_level_follows_environment(clean_env, env, level):
    clean_env.setenv("PROTEAN_ENV", env)
    assert get_log_level() == level


def test_env_takes_precedence_over_protean_env(clean_env):
    clean_env.setenv("PROTEAN_ENV", "test")
    clean_env.setenv("ENV", "production")
    assert get_log_level() == "INFO"


def test_explicit_level_wins(clean_env):
    clean_env.setenv("PROTEAN_ENV", "production")
    clean_env.setenv("LOG_LEVEL", "ERROR")
    assert get_log_level() == "ERROR"


def test_configure_logging_writes_to_log_dir(clean_env, tmp_path):
    clean_env.setenv("PROTEAN_ENV", "test")
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level

    try:
        configure_logging(log_dir=str(tmp_path))

        assert (tmp_path / "shopcore.log").exists()
        assert (tmp_path / "shopcore_error.log").exists()
        assert root.level == logging.WARNING
        assert logging.getLogger("protean").level == logging.WARNING
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers = saved_handlers
        root.setLevel(saved_level)


def test_log_context_binds_ids_for_the_block_only():
    with log_context(order_id=42, customer_id="c-1"):
        assert structlog.contextvars.get_contextvars() == {"order_id": "42", "customer_id": "c-1"}
        with log_context(product_id="p-1"):
            assert structlog.contextvars.get_contextvars()["product_id"] == "p-1"
        assert "product_id" not in structlog.contextvars.get_contextvars()

    assert structlog.contextvars.get_contextvars() == {}


def test_log_context_is_unbound_when_the_block_raises():
    with pytest.raises(RuntimeError):
        with log_context(order_id="ord-1"):
            raise RuntimeError("boom")

    assert structlog.contextvars.get_contextvars() == {}
