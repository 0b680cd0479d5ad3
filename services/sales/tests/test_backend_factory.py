import pytest
from services.sales.app.services.backend_factory import get_catalog_backend, reset_mock_backend
from services.sales.app.services.backend_http import HttpCatalogBackend


@pytest.fixture(autouse=True)
def _fresh_mock() -> None:
    reset_mock_backend()


def test_defaults_to_shared_mock(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SAVDO_BACKEND", raising=False)
    backend = get_catalog_backend()
    assert backend.name == "mock"
    assert get_catalog_backend() is backend


def test_http_mode_reads_base_url(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SAVDO_BACKEND", "http")
    monkeypatch.setenv("SAVDO_API_BASE_URL", "http://backend.test/api")
    backend = get_catalog_backend()
    assert isinstance(backend, HttpCatalogBackend)
    backend.close()


def test_rejects_unknown_backend(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SAVDO_BACKEND", "nope")
    with pytest.raises(ValueError, match="Unknown SAVDO_BACKEND"):
        get_catalog_backend()
