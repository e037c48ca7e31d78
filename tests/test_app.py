# tests/test_app.py

from stocky import create_stocky
from stocky.clients.publisher import LoggingEventPublisher
from stocky.clients.redis_cache import RedisCacheStore


ENV = {
    "STOCKY_DB_URL": "sqlite:///:memory:",
    "STOCKY_REDIS_URL": "redis://127.0.0.1:6399/0",
    "STOCKY_PRICE_TTL_SECONDS": "600",
}


def test_create_stocky_wires_services():
    app = create_stocky(ENV)
    try:
        assert isinstance(app.cache, RedisCacheStore)
        assert isinstance(app.publisher, LoggingEventPublisher)
        assert app.price_cache.ttl_seconds == 600
        assert app.refresher.stop_event is app.shutdown_event
        assert app.reward_service.ledger_writer is app.ledger_writer
        assert app.db_manager.health_check()
    finally:
        app.shutdown(timeout=1)

    assert app.shutdown_event.is_set()
    assert not app.refresher.is_running
