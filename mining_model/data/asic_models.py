# mining_model/data/asic_models.py
from __future__ import annotations

from typing import Dict

from mining_model.core.models import AsicModel

# Predefined hydro-cooled models offered as defaults for new projects.
PREDEFINED_ASIC_MODELS: Dict[str, AsicModel] = {
    "antminer-s19-xp-hyd": AsicModel(
        id="antminer-s19-xp-hyd",
        name="Antminer S19 XP+ Hyd",
        power_w=5301,
        hashrate_ths=279.0,
        price_per_th=8.0,
    ),
    "antminer-s21e-hydro": AsicModel(
        id="antminer-s21e-hydro",
        name="Antminer S21e Hydro",
        power_w=4896,
        hashrate_ths=288.0,
        price_per_th=9.5,
    ),
    "antminer-s23-hydro": AsicModel(
        id="antminer-s23-hydro",
        name="Antminer S23 Hydro",
        power_w=5510,
        hashrate_ths=580.0,
        price_per_th=25.0,
    ),
}
