"""
Seed reference data: the 58 wilayas, default shipping rates and default settings.

Idempotent: rows that already exist are left untouched, so admin edits to
rates or settings survive a re-run.

Run from the backend/ directory:
    python scripts/seed_reference_data.py
"""
import asyncio
import os
import sys
from decimal import Decimal

# Add backend/ to path so we can import config
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import Region, Setting, ShippingRate
from domain.enums import DeliveryType

WILAYAS: list[tuple[str, str, str]] = [
    ("01", "Adrar", "أدرار"),
    ("02", "Chlef", "الشلف"),
    ("03", "Laghouat", "الأغواط"),
    ("04", "Oum El Bouaghi", "أم البواقي"),
    ("05", "Batna", "باتنة"),
    ("06", "Béjaïa", "بجاية"),
    ("07", "Biskra", "بسكرة"),
    ("08", "Béchar", "بشار"),
    ("09", "Blida", "البليدة"),
    ("10", "Bouira", "البويرة"),
    ("11", "Tamanrasset", "تمنراست"),
    ("12", "Tébessa", "تبسة"),
    ("13", "Tlemcen", "تلمسان"),
    ("14", "Tiaret", "تيارت"),
    ("15", "Tizi Ouzou", "تيزي وزو"),
    ("16", "Alger", "الجزائر"),
    ("17", "Djelfa", "الجلفة"),
    ("18", "Jijel", "جيجل"),
    ("19", "Sétif", "سطيف"),
    ("20", "Saïda", "سعيدة"),
    ("21", "Skikda", "سكيكدة"),
    ("22", "Sidi Bel Abbès", "سيدي بلعباس"),
    ("23", "Annaba", "عنابة"),
    ("24", "Guelma", "قالمة"),
    ("25", "Constantine", "قسنطينة"),
    ("26", "Médéa", "المدية"),
    ("27", "Mostaganem", "مستغانم"),
    ("28", "M'Sila", "المسيلة"),
    ("29", "Mascara", "معسكر"),
    ("30", "Ouargla", "ورقلة"),
    ("31", "Oran", "وهران"),
    ("32", "El Bayadh", "البيض"),
    ("33", "Illizi", "إليزي"),
    ("34", "Bordj Bou Arreridj", "برج بوعريريج"),
    ("35", "Boumerdès", "بومرداس"),
    ("36", "El Tarf", "الطارف"),
    ("37", "Tindouf", "تندوف"),
    ("38", "Tissemsilt", "تيسمسيلت"),
    ("39", "El Oued", "الوادي"),
    ("40", "Khenchela", "خنشلة"),
    ("41", "Souk Ahras", "سوق أهراس"),
    ("42", "Tipaza", "تيبازة"),
    ("43", "Mila", "ميلة"),
    ("44", "Aïn Defla", "عين الدفلى"),
    ("45", "Naâma", "النعامة"),
    ("46", "Aïn Témouchent", "عين تموشنت"),
    ("47", "Ghardaïa", "غرداية"),
    ("48", "Relizane", "غليزان"),
    ("49", "El M'Ghair", "المغير"),
    ("50", "El Meniaa", "المنيعة"),
    ("51", "Ouled Djellal", "أولاد جلال"),
    ("52", "Bordj Badji Mokhtar", "برج باجي مختار"),
    ("53", "Béni Abbès", "بني عباس"),
    ("54", "Timimoun", "تيميمون"),
    ("55", "Touggourt", "تقرت"),
    ("56", "Djanet", "جانت"),
    ("57", "In Salah", "عين صالح"),
    ("58", "In Guezzam", "عين قزام"),
]

DEFAULT_RATES = {
    DeliveryType.OFFICE: Decimal("400"),
    DeliveryType.HOME: Decimal("600"),
}

# Major cities ship cheaper
RATE_OVERRIDES = {
    ("16", DeliveryType.OFFICE): Decimal("300"),
    ("16", DeliveryType.HOME): Decimal("400"),
    ("31", DeliveryType.OFFICE): Decimal("350"),
    ("31", DeliveryType.HOME): Decimal("500"),
}

DEFAULT_SETTINGS = {
    "purchase_event": "confirmed",
    "consent_banner": "true",
    "facebook": "",
    "instagram": "",
    "tiktok": "",
    "abandoned_cart_minutes": "60",
}


async def seed_reference_data(db: AsyncSession) -> dict[str, int]:
    """Insert missing regions, shipping rates and settings. Commits. Returns rows added per table."""
    added = {"regions": 0, "shipping_rates": 0, "settings": 0}

    existing_regions = set((await db.execute(select(Region.code))).scalars().all())
    for code, name, name_ar in WILAYAS:
        if code not in existing_regions:
            db.add(Region(code=code, name=name, name_ar=name_ar))
            added["regions"] += 1
    await db.flush()

    existing_rates = set(
        (await db.execute(select(ShippingRate.region_code, ShippingRate.delivery_type))).all()
    )
    for code, _, _ in WILAYAS:
        for delivery_type, default_price in DEFAULT_RATES.items():
            if (code, delivery_type.value) in existing_rates:
                continue
            db.add(ShippingRate(
                region_code=code,
                delivery_type=delivery_type.value,
                price=RATE_OVERRIDES.get((code, delivery_type), default_price),
                is_enabled=True,
            ))
            added["shipping_rates"] += 1

    existing_settings = set((await db.execute(select(Setting.key))).scalars().all())
    for key, value in DEFAULT_SETTINGS.items():
        if key not in existing_settings:
            db.add(Setting(key=key, value=value))
            added["settings"] += 1

    await db.commit()
    return added


async def main():
    from database import async_session, init_db

    await init_db()
    async with async_session() as db:
        added = await seed_reference_data(db)
    print(
        f"✅ Seeded {added['regions']} region(s), "
        f"{added['shipping_rates']} shipping rate(s), {added['settings']} setting(s)"
    )


if __name__ == "__main__":
    asyncio.run(main())
