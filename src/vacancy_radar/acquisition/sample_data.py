"""
Synthetic fallback records for the Bouffay district.

When a registry cannot be reached, record sources substitute these
generated records. They use the same models and plausible value ranges
as the real data, so the scoring engine cannot tell them apart.

Generation is driven by a numpy Generator: the same seed yields the
same records.
"""

from datetime import date
from typing import Optional

import numpy as np
import pandas as pd

from .models import TargetArea
from .records import ENERGY_CLASSES, DiagnosticRecord, TransactionRecord

# Street anchors for synthetic sales: (name, lat, lon)
BOUFFAY_STREETS = [
    ("Rue de la Juiverie", 47.2138, -1.5535),
    ("Rue de la Bâclerie", 47.2145, -1.5528),
    ("Rue des Échevins", 47.2134, -1.5542),
    ("Place du Bouffay", 47.2141, -1.5530),
    ("Rue de la Barillerie", 47.2148, -1.5520),
    ("Rue du Château", 47.2132, -1.5505),
    ("Rue de Strasbourg", 47.2155, -1.5518),
    ("Rue de Verdun", 47.2125, -1.5550),
    ("Rue Beauregard", 47.2160, -1.5540),
    ("Allée Duquesne", 47.2118, -1.5530),
    ("Rue Kervégan", 47.2115, -1.5545),
    ("Cours Olivier de Clisson", 47.2128, -1.5490),
    ("Rue de l'Emery", 47.2150, -1.5555),
    ("Rue Sainte-Croix", 47.2143, -1.5548),
    ("Rue du Moulin", 47.2137, -1.5512),
    ("Rue des Petites Écuries", 47.2153, -1.5502),
    ("Place du Pilori", 47.2146, -1.5538),
    ("Rue de la Marne", 47.2130, -1.5525),
]

# Relative frequency of each energy class in an old city centre
CLASS_WEIGHTS = np.array([2, 5, 12, 20, 25, 22, 14], dtype=float)

POSITION_JITTER = 0.0008


def _months_before(now: date, months: int) -> date:
    return (pd.Timestamp(now) - pd.DateOffset(months=months)).date()


def generate_sample_transactions(
    now: Optional[date] = None,
    seed: Optional[int] = None,
) -> list[TransactionRecord]:
    """
    Generate one synthetic sale per Bouffay street.

    Args:
        now: Reference date the sale ages are counted from.
        seed: Seed for reproducible output.

    Returns:
        List of TransactionRecord, 6 to 41 months old, with price and surface.
    """
    rng = np.random.default_rng(seed)
    now = now or date.today()

    records = []
    for name, lat, lon in BOUFFAY_STREETS:
        months_ago = int(rng.integers(6, 42))
        surface = int(rng.integers(25, 105))
        price_per_sqm = int(rng.integers(3200, 5700))
        records.append(
            TransactionRecord(
                latitude=lat + (rng.random() - 0.5) * POSITION_JITTER,
                longitude=lon + (rng.random() - 0.5) * POSITION_JITTER,
                transaction_date=_months_before(now, months_ago),
                price_total=float(surface * price_per_sqm),
                surface_area=float(surface),
                nature_of_good="Appartement" if rng.random() > 0.3 else "Maison",
                months_ago=months_ago,
                street=name,
            )
        )
    return records


def generate_sample_diagnostics(
    area: Optional[TargetArea] = None,
    seed: Optional[int] = None,
    count: int = 60,
) -> list[DiagnosticRecord]:
    """
    Generate synthetic diagnostics spread uniformly over the district.

    Classes follow CLASS_WEIGHTS; E-G dwellings get a pre-1900 build year,
    the others a post-1950 one.
    """
    rng = np.random.default_rng(seed)
    area = area or TargetArea()

    probabilities = CLASS_WEIGHTS / CLASS_WEIGHTS.sum()
    classes = rng.choice(ENERGY_CLASSES, size=count, p=probabilities)

    records = []
    for energy_class in classes:
        energy_class = str(energy_class)
        if energy_class >= "E":
            year_built = int(rng.integers(1700, 1900))
        else:
            year_built = int(rng.integers(1950, 2020))

        records.append(
            DiagnosticRecord(
                latitude=area.south + rng.random() * (area.north - area.south),
                longitude=area.west + rng.random() * (area.east - area.west),
                energy_class=energy_class,
                ghg_class=energy_class,
                year_built=year_built,
                surface_area=float(rng.integers(20, 110)),
                established_date=date(
                    2020 + int(rng.integers(0, 5)), int(rng.integers(1, 13)), 15
                ),
                building_type="Logement",
            )
        )
    return records
