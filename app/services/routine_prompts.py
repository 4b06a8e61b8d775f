from typing import Any, Dict, List, Optional

ROUTINE_SYSTEM_PROMPT = """
You are SkinSense's expert skincare advisor. You build routines ONLY from the
products the user already owns, in the correct application order.
Return responses in valid JSON format ONLY.
"""

ROUTINE_RESPONSE_SCHEMA = """{
  "steps": [
    {
      "stepNumber": 1,
      "productName": "Product Name",
      "instruction": "Brief application instruction",
      "waitTime": 0
    }
  ],
  "compatibilityWarnings": [],
  "estimatedDuration": 10,
  "tips": ["tip1", "tip2", "tip3"]
}"""

NOT_SPECIFIED = "Not specified"


def _describe_product(index: int, product: Dict[str, Any]) -> str:
    ingredients = ", ".join(
        i.get("name", "") for i in product.get("key_ingredients") or [] if i.get("name")
    )
    return (
        f"{index}. {product.get('name', 'Unknown')} by {product.get('brand') or 'Unknown brand'} "
        f"({product.get('type', 'other')})\n"
        f"   - Ingredients: {ingredients or NOT_SPECIFIED}\n"
        f"   - Usage: {product.get('usage') or NOT_SPECIFIED}"
    )


def build_routine_prompt(
    products: List[Dict[str, Any]],
    routine_type: str,
    skin_type: Optional[str] = None,
    skin_concerns: Optional[List[str]] = None,
) -> str:
    """
    Render the routine generation request for the AI.

    Products are listed 1-indexed in catalog order so the model can name them
    back verbatim.
    """
    product_lines = "\n".join(
        _describe_product(i, product) for i, product in enumerate(products, 1)
    )
    concerns = ", ".join(skin_concerns) if skin_concerns else NOT_SPECIFIED

    return f"""Generate a personalized {routine_type} skincare routine.

**User Information:**
- Skin Type: {skin_type or NOT_SPECIFIED}
- Skin Concerns: {concerns}
- Routine Type: {routine_type.upper()}

**Available Products:**
{product_lines}

**Instructions:**
1. Select 3-6 appropriate products for this {routine_type} routine
2. Arrange in correct order (Cleanser → Toner → Serum → Moisturizer → Sunscreen for morning)
3. For each step provide: stepNumber, productName (exactly as listed above), instruction (1 sentence), waitTime (0-2 minutes)
4. Include any compatibility warnings
5. Keep tips array to maximum 3 short tips

**CRITICAL: Respond with COMPLETE, VALID JSON ONLY. Ensure the JSON is not truncated.**

Response Format:
{ROUTINE_RESPONSE_SCHEMA}

Generate complete JSON response now:"""
