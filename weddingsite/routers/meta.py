# weddingsite/routers/meta.py
from typing import Any, Dict

from fastapi import APIRouter

from weddingsite import config
from weddingsite.utils.validation import ATTENDANCE_VALUES, GUEST_GROUPS, MEAL_PREFERENCES

router = APIRouter(prefix="/api/meta", tags=["meta"])


@router.get("/options")
def get_meta_options() -> Dict[str, Any]:
    """Códigos neutros para los formularios; el frontend los traduce."""
    return {
        "attendance": list(ATTENDANCE_VALUES),
        "meal_preferences": list(MEAL_PREFERENCES),
        "meal_preferences_enabled": config.MEAL_PREFERENCES_ENABLED,
        "guest_groups": list(GUEST_GROUPS),
    }
