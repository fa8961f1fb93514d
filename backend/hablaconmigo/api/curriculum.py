from fastapi import APIRouter, HTTPException

from hablaconmigo.services.curriculum import all_levels, get_level_config, is_valid_level

router = APIRouter(prefix="/api/v1/curriculum", tags=["curriculum"])


@router.get("/levels")
async def list_levels():
    """List all curriculum levels."""
    return {"levels": [cfg.level for cfg in all_levels()]}


@router.get("/levels/{level}")
async def get_level(level: int):
    if not is_valid_level(level):
        raise HTTPException(status_code=404, detail=f"Level {level} not found")
    return get_level_config(level).model_dump(by_alias=True)
