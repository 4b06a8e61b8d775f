from app.schemas.routine import DraftStep
from app.services.product_matcher import match_product, match_steps


def products(*names):
    return [{"_id": i, "name": name} for i, name in enumerate(names)]


def test_containment_resolves_partial_name():
    catalog = products("CeraVe Foaming Cleanser", "The Ordinary Niacinamide")
    assert match_product("foaming cleanser", catalog)["name"] == "CeraVe Foaming Cleanser"


def test_exact_name_resolves():
    catalog = products("CeraVe Foaming Cleanser", "The Ordinary Niacinamide")
    assert match_product("The Ordinary Niacinamide", catalog)["name"] == "The Ordinary Niacinamide"


def test_exact_match_is_case_insensitive():
    catalog = products("CeraVe Foaming Cleanser", "The Ordinary Niacinamide")
    assert match_product("THE ORDINARY niacinamide", catalog)["_id"] == 1


def test_suggested_name_containing_product_name():
    catalog = products("CeraVe Foaming Cleanser", "The Ordinary Niacinamide")
    match = match_product("The Ordinary Niacinamide 10% + Zinc 1%", catalog)
    assert match["name"] == "The Ordinary Niacinamide"


def test_unrelated_name_resolves_to_none():
    catalog = products("CeraVe Foaming Cleanser", "The Ordinary Niacinamide")
    assert match_product("Retinol Night Cream", catalog) is None


def test_empty_name_resolves_to_none():
    assert match_product("   ", products("Cleanser")) is None


def test_exact_tier_beats_earlier_containment_match():
    catalog = products("Foaming Cleanser Deluxe", "Cleanser")
    assert match_product("cleanser", catalog)["_id"] == 1


def test_ties_resolve_to_catalog_order():
    catalog = products("Cleanser", "Foaming Cleanser")
    assert match_product("Gentle Foaming Cleanser", catalog)["name"] == "Cleanser"


def test_containment_of_suggested_in_product_name_is_last_resort():
    catalog = products("Hydrating Toner Mist", "Toner")
    assert match_product("hydrating toner", catalog)["name"] == "Toner"


def test_match_steps_separates_unmatched():
    catalog = products("CeraVe Foaming Cleanser", "The Ordinary Niacinamide")
    steps = [
        DraftStep(stepNumber=1, productName="CeraVe Foaming Cleanser"),
        DraftStep(stepNumber=2, productName="Mystery Oil"),
        DraftStep(stepNumber=3, productName="niacinamide"),
    ]

    bound, dropped = match_steps(steps, catalog)

    assert [(step.step_number, product["_id"]) for step, product in bound] == [(1, 0), (3, 1)]
    assert [step.product_name for step in dropped] == ["Mystery Oil"]
