"""
Runtime settings (key/value table edited from the admin panel).
"""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import Setting
from domain import constants
from domain.enums import PurchaseEventTrigger

logger = logging.getLogger(__name__)


async def get_setting(db: AsyncSession, key: str, default: str | None = None) -> str | None:
    res = await db.execute(select(Setting.value).where(Setting.key == key))
    value = res.scalar_one_or_none()
    return value if value not in (None, "") else default


async def set_setting(db: AsyncSession, key: str, value: str | None) -> Setting:
    res = await db.execute(select(Setting).where(Setting.key == key))
    setting = res.scalar_one_or_none()
    if setting:
        setting.value = value
    else:
        setting = Setting(key=key, value=value)
        db.add(setting)
    await db.flush()
    return setting


async def get_purchase_event_trigger(db: AsyncSession) -> PurchaseEventTrigger:
    """
    When to report Purchase conversions: at creation ("confirmed", default)
    or once delivered ("delivered"). Unknown values fall back to the default.
    """
    raw = await get_setting(db, constants.SETTING_PURCHASE_EVENT, PurchaseEventTrigger.CONFIRMED.value)
    try:
        return PurchaseEventTrigger(raw)
    except ValueError:
        logger.warning(f"Unknown purchase_event setting {raw!r}, using 'confirmed'")
        return PurchaseEventTrigger.CONFIRMED
