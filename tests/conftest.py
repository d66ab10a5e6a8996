from __future__ import annotations
from datetime import date

import pytest

from memorial.models import DeathRecord


def make_record(rid="1", name="Jane Doe", death=date(2024, 3, 15), birth=None, **kw) -> DeathRecord:
    return DeathRecord(id=rid, member_name=name, date_of_death=death, date_of_birth=birth, **kw)


@pytest.fixture
def register():
    """A small register covering burial types, notification and funeral dates."""
    return [
        make_record("1", "Alice Mensah", date(2024, 3, 15), date(1950, 3, 20),
                    place_of_death="Korle Bu Hospital", cause_of_death="Heart failure",
                    burial_or_cremation="BURIAL", family_notified=True, funeral_date=date(2024, 4, 2)),
        make_record("2", "Émile Zola", date(2023, 7, 1), date(1990, 1, 1),
                    place_of_death="Home", cause_of_death="Accident",
                    burial_or_cremation="CREMATION", funeral_date=date(2023, 7, 20)),
        make_record("3", "bob Owusu", date(2024, 1, 10), None,
                    place_of_death="Ridge Hospital", cause_of_death="Stroke",
                    burial_or_cremation="BURIAL", family_notified=True),
        make_record("4", "Carla Boateng", date(2022, 12, 30), date(1930, 6, 1),
                    place_of_death="Home", cause_of_death="Old age",
                    burial_or_cremation="BURIAL", family_notified=True, funeral_date=date(2023, 1, 14)),
        make_record("5", "Broken Date", "not a date", date(1940, 1, 1)),
    ]
