import structlog

from shopsmart.core.logging_config import configure_logging


def test_events_carry_bound_context_and_render_as_json():
    configure_logging()

    processors = structlog.get_config()["processors"]

    assert processors[0] is structlog.contextvars.merge_contextvars
    assert isinstance(processors[-1], structlog.processors.JSONRenderer)


def test_correlation_id_is_echoed(client):
    response = client.get("/health", headers={"X-Correlation-ID": "req-123"})

    assert response.status_code == 200
    assert response.headers["X-Correlation-ID"] == "req-123"
