import sys
from pathlib import Path
from typing import List

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from collection_search.config import load_config  # noqa: E402
from collection_search.items import ItemRecord, coerce_item  # noqa: E402
from collection_search.tokenizer import Tokenizer  # noqa: E402

DATA_DIR = PROJECT_ROOT / "data"


def make_item(item_id: str, name: str, **fields) -> ItemRecord:
    return coerce_item({"id": item_id, "name": name, **fields})


@pytest.fixture(scope="module")
def search_config():
    return load_config(DATA_DIR / "search_config.json")


@pytest.fixture(scope="module")
def tokenizer(search_config):
    return Tokenizer.from_config(search_config)


@pytest.fixture(scope="module")
def sample_items() -> List[ItemRecord]:
    return [
        make_item(
            "A1",
            "Nendoroid Hatsune Miku Racing 2024",
            category="Nendoroid",
            scale="Non-Scale",
            age_rating="All Ages",
            tags=["Goodsmile", "Vocaloid"],
            created_at=300,
            release_date="2024-11-01",
            notes={"price": "$54.99", "store": "AmiAmi"},
        ),
        make_item(
            "A2",
            "Alter Nendoroid Miku 2024",
            category="Nendoroid",
            scale="Non-Scale",
            age_rating="All Ages",
            tags=["Alter"],
            created_at=200,
            release_date="2024-12-01",
            notes={"price": "1.234,50", "store": "Mandarake"},
        ),
        make_item(
            "A3",
            "Rem Wedding 1/7",
            category="Scale Figure",
            scale="1/7",
            age_rating="All Ages",
            tags="Kadokawa, Re:Zero",
            created_at=100,
            release_date="2023-08-30",
            notes={"price": "$189.00"},
        ),
        make_item(
            "A4",
            "Asuna Bunny 1/4",
            category="Scale Figure",
            scale="1/4",
            age_rating="18+",
            tags=["FREEing"],
            created_at=400,
            release_date="2023-04-10",
            notes={"price": "N/A"},
        ),
        make_item(
            "A5",
            "Makima Draft Listing",
            category="Scale Figure",
            scale="1/7",
            age_rating="All Ages",
            tags=[],
            created_at=50,
            is_draft=True,
        ),
    ]
