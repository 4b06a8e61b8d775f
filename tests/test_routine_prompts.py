from app.services.routine_prompts import build_routine_prompt

PRODUCTS = [
    {
        "name": "CeraVe Foaming Cleanser",
        "brand": "CeraVe",
        "type": "cleanser",
        "key_ingredients": [{"name": "Ceramides"}, {"name": "Niacinamide"}],
        "usage": "Morning and night",
    },
    {"name": "Hydro Boost", "brand": "Neutrogena", "type": "moisturizer", "key_ingredients": [], "usage": ""},
]


def test_prompt_lists_products_one_indexed():
    prompt = build_routine_prompt(PRODUCTS, "morning", "oily", ["acne"])

    assert "1. CeraVe Foaming Cleanser by CeraVe (cleanser)" in prompt
    assert "- Ingredients: Ceramides, Niacinamide" in prompt
    assert "- Usage: Morning and night" in prompt
    assert "2. Hydro Boost by Neutrogena (moisturizer)" in prompt


def test_prompt_includes_skin_profile():
    prompt = build_routine_prompt(PRODUCTS, "night", "dry", ["redness", "fine lines"])

    assert "Skin Type: dry" in prompt
    assert "Skin Concerns: redness, fine lines" in prompt
    assert "Routine Type: NIGHT" in prompt


def test_missing_profile_and_product_details_are_not_specified():
    prompt = build_routine_prompt(PRODUCTS, "morning")

    assert "Skin Type: Not specified" in prompt
    assert "Skin Concerns: Not specified" in prompt
    assert "- Ingredients: Not specified" in prompt
    assert "- Usage: Not specified" in prompt


def test_prompt_carries_ordering_step_count_and_schema():
    prompt = build_routine_prompt(PRODUCTS, "morning", "normal", [])

    assert "Cleanser → Toner → Serum → Moisturizer → Sunscreen" in prompt
    assert "Select 3-6 appropriate products" in prompt
    assert "maximum 3 short tips" in prompt
    for key in ('"steps"', '"stepNumber"', '"productName"', '"instruction"', '"waitTime"',
                '"compatibilityWarnings"', '"estimatedDuration"', '"tips"'):
        assert key in prompt


def test_prompt_is_deterministic():
    assert build_routine_prompt(PRODUCTS, "morning", "oily", ["acne"]) == \
        build_routine_prompt(PRODUCTS, "morning", "oily", ["acne"])
