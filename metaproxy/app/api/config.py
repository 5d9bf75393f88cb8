"""Client configuration endpoint.

Never gated or rate limited: outdated clients must always be able to learn
which Discord application to use and which version to upgrade to.
"""

from fastapi import APIRouter, Depends

from metaproxy.app.api.deps import get_settings
from metaproxy.app.core.config import Settings
from metaproxy.app.providers.models import ClientConfig

router = APIRouter(prefix="/api/config", tags=["config"])


@router.get("/discord-id", response_model=ClientConfig)
async def discord_config(config: Settings = Depends(get_settings)) -> ClientConfig:
    return ClientConfig(
        client_id=config.discord_client_id,
        latest_version=config.latest_app_version,
    )
