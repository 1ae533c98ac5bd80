from .models import DEFAULT_API_ROOT, ClientConfig, ProxyConfig, Timeouts
from .system import CLIENT_CONFIG_ENV_VAR, load_client_config, resolve_client_config_path

__all__ = [
    "DEFAULT_API_ROOT",
    "ClientConfig",
    "ProxyConfig",
    "Timeouts",
    "CLIENT_CONFIG_ENV_VAR",
    "load_client_config",
    "resolve_client_config_path",
]
