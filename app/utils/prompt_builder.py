from app.schemas.classification import WasteCategory


def build_classification_prompt() -> str:
    categories = ", ".join(f'"{c.value}"' for c in WasteCategory)
    return """
        Analyze this waste item image and classify it into one of these categories:

        1. "biodegradable" - organic waste like food scraps, plant matter, paper
        2. "recyclable" - plastic bottles, metal cans, glass, cardboard
        3. "hazardous" - batteries, electronics, chemicals, medical waste

        Respond with ONLY a JSON object in this exact format:
        {{
          "type": one of {categories},
          "item": "specific item name",
          "confidence": 85
        }}

        Be specific about the item (e.g., "Plastic Water Bottle", "Banana Peel", "AA Battery").
        """.format(categories=categories)
