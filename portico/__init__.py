"""Portico: project tenant services into Kubernetes networking resources."""

__version__ = "0.1.0"

# Lazy imports to avoid loading heavy dependencies for CLI usage
__all__ = [
    "AppService",
    "AppServiceBuild",
    "BuildConfig",
    "BuildResult",
    "CatalogStore",
    "ServiceStore",
    "register_tenant_service",
]


def __getattr__(name):
    if name in ("AppServiceBuild", "BuildResult", "register_tenant_service"):
        from . import builder
        return getattr(builder, name)
    elif name == "AppService":
        from .appservice import AppService
        return AppService
    elif name == "BuildConfig":
        from .models import BuildConfig
        return BuildConfig
    elif name in ("CatalogStore", "ServiceStore"):
        from . import store
        return getattr(store, name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
