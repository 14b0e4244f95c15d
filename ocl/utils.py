from typing import Any, Mapping, TypeVar

T = TypeVar("T", bound=Mapping[str, Any])


def resolve_config(config: Mapping[str, Any] | None, default_config: T) -> T:
    """Overlay the keys of ``config`` that ``default_config`` knows about."""
    _config = dict(default_config)
    if config:
        for key in _config:
            if key in config:
                _config[key] = config[key]
    return _config  # type: ignore[return-value]
