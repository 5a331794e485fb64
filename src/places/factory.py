"""Place provider factory."""

from .base import PlaceProvider


def create_place_provider(config) -> PlaceProvider:
    """Build the configured provider.

    Args:
        config: ReminderConfig
    """
    from cli.retry import retry_from_config

    provider_cfg = config.provider
    if provider_cfg.name == "static":
        from .static import StaticPlaceProvider

        return StaticPlaceProvider.from_file(provider_cfg.places_file)
    elif provider_cfg.name == "overpass":
        from .overpass import OverpassProvider

        return OverpassProvider(
            url=provider_cfg.overpass_url,
            user_agent=provider_cfg.user_agent,
            timeout=provider_cfg.http_timeout_s,
            retry_decorator=retry_from_config(config.retry),
        )
    raise ValueError(f"Unknown provider: {provider_cfg.name}. Use: overpass, static")
