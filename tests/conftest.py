"""
Shared test fixtures — API test client and sample drafted quotes.
"""

import pytest
from fastapi.testclient import TestClient

from quotecheck.main import app
from quotecheck.models import ItemKind, LineItem


def make_item(label: str, kind: str, quantity: float, unit_cost: float,
              unit: str = "st") -> LineItem:
    return LineItem(
        label=label,
        kind=ItemKind(kind),
        quantity=quantity,
        unit=unit,
        unit_cost=unit_cost,
        total=round(quantity * unit_cost, 2),
    )


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(app)


@pytest.fixture
def bathroom_items():
    """
    Complete bathroom renovation, 5 m² floor. Every relation rule in band.
    Labor 31 100 kr, material 8 900 kr.
    """
    return [
        make_item("Rivning befintligt badrum", "labor", 10, 650, "tim"),
        make_item("VVS-installation", "labor", 12, 750, "tim"),
        make_item("Tätskiktsarbete", "labor", 8, 650, "tim"),
        make_item("Kakel och klinkersättning", "labor", 16, 650, "tim"),
        make_item("Tätskikt", "material", 6, 250, "kvm"),
        make_item("Klinker golv", "material", 5, 400, "kvm"),
        make_item("Kakel vägg", "material", 12, 350, "kvm"),
        make_item("Golvvärmematta", "material", 4, 300, "kvm"),
    ]


@pytest.fixture
def painting_items():
    """
    Living room walls, 40 m². Every relation rule in band.
    Labor 7 500 kr, material 1 580 kr.
    """
    return [
        make_item("Förberedelser och skydd", "labor", 2, 500, "tim"),
        make_item("Spackling och slipning", "labor", 4, 500, "tim"),
        make_item("Grundmålning", "labor", 3, 500, "tim"),
        make_item("Målning två strykningar", "labor", 6, 500, "tim"),
        make_item("Grundfärg", "material", 4, 120, "liter"),
        make_item("Täckfärg väggfärg", "material", 6, 150, "liter"),
        make_item("Maskering och skyddsduk", "material", 1, 200, "st"),
    ]
