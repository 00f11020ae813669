"""Settings and provider API endpoints."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..commands import CommandSurface
from .dependencies import get_commands

router = APIRouter(prefix="/api/settings", tags=["settings"])
provider_router = APIRouter(prefix="/api/provider", tags=["provider"])


class SettingValue(BaseModel):
    value: str


@router.get("")
async def get_all_settings(commands: CommandSurface = Depends(get_commands)):
    """All settings except the stored credential."""
    return (await commands.get_all_settings()).to_payload()


@router.get("/{key}")
async def get_setting(key: str, commands: CommandSurface = Depends(get_commands)):
    return (await commands.get_setting(key)).to_payload()


@router.put("/{key}")
async def set_setting(key: str, body: SettingValue, commands: CommandSurface = Depends(get_commands)):
    """Store a setting. ``api_key`` is encrypted when the OS allows it."""
    return (await commands.set_setting(key, body.value)).to_payload()


@provider_router.post("/test")
async def test_provider(commands: CommandSurface = Depends(get_commands)):
    """Send a short fixed prompt to check the API key and model."""
    return (await commands.test_provider()).to_payload()
