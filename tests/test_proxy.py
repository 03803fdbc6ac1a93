from config.settings import Settings
from core.proxy import ProxyConfig, SessionProxyState


def test_disabled_proxy_renders_nothing():
    proxy = ProxyConfig(enabled=False, server="10.0.0.1", port=8080)

    assert proxy.url() is None
    assert proxy.as_playwright() is None
    assert SessionProxyState.for_proxy(proxy).use_proxy is False


def test_proxy_url_with_and_without_credentials():
    assert ProxyConfig(enabled=True, server="h", port=3128).url() == "http://h:3128"
    proxy = ProxyConfig(enabled=True, server="h", port=3128, username="u", password="p")
    assert proxy.url() == "http://u:p@h:3128"
    assert proxy.masked_url() == "http://u:***@h:3128"


def test_proxy_from_settings():
    settings = Settings(PROXY_ENABLED=True, PROXY_SERVER="proxy.local", PROXY_PORT=9000, LOG_FILE="")

    proxy = ProxyConfig.from_settings(settings)

    assert proxy.configured
    assert proxy.as_playwright() == {"server": "http://proxy.local:9000"}
    assert SessionProxyState.for_proxy(proxy).use_proxy is True


def test_state_disable_is_permanent():
    state = SessionProxyState(use_proxy=True)

    state.disable()

    assert state.use_proxy is False
