"""
Disposal catalog: one classification template per canonical item key,
plus category-level guidance and the synthesized default.
"""
from typing import Dict, Optional

from app import config
from app.schemas.classification import (
    CategoryGuidance,
    ClassificationResult,
    ClassificationSource,
    WasteCategory,
)

UNIDENTIFIED_ITEM = "Unidentified Item"

_BIODEGRADABLE = WasteCategory.BIODEGRADABLE
_RECYCLABLE = WasteCategory.RECYCLABLE
_HAZARDOUS = WasteCategory.HAZARDOUS


def _entry(category, item_label, confidence, instructions, tips, impact):
    return ClassificationResult(
        category=category,
        confidence=confidence,
        item_label=item_label,
        instructions=instructions,
        tips=tips,
        impact_statement=impact,
        source=ClassificationSource.CATALOG,
    )


WASTE_CATALOG: Dict[str, ClassificationResult] = {
    # Biodegradable
    "food": _entry(
        _BIODEGRADABLE,
        "Food Waste",
        95,
        [
            "Add to your compost bin or organic waste collection",
            "If no composting available, wrap and dispose in biodegradable waste bin",
            "Remove any packaging before composting",
            "Avoid adding meat or dairy to home compost",
        ],
        [
            "Food waste makes excellent compost for gardens",
            "Composting reduces methane emissions from landfills",
            "One ton of food waste can produce 460kg of compost",
        ],
        "Composting this food waste prevents methane emissions and creates nutrient-rich soil!",
    ),
    "plant": _entry(
        _BIODEGRADABLE,
        "Plant Material",
        98,
        [
            "Add to garden compost or green waste bin",
            "Can be used directly as mulch for plants",
            "Chop larger pieces for faster decomposition",
            "Mix with brown materials like dry leaves",
        ],
        [
            "Green plant matter is rich in nitrogen for composting",
            "Decomposes naturally in 2-8 weeks depending on size",
            "Great for creating natural fertilizer",
        ],
        "This organic matter will enrich soil and support plant growth!",
    ),
    # Paper goes to the paper recycling stream, not the compost.
    "paper": _entry(
        _RECYCLABLE,
        "Paper Product",
        90,
        [
            "Remove any plastic coating or tape",
            "Place in paper recycling bin",
            "Keep dry and clean for best recycling results",
            "Shred sensitive documents before recycling",
        ],
        [
            "Recycled paper uses 60% less energy than new paper",
            "One ton of recycled paper saves 17 trees",
            "Paper can be recycled 5-7 times before fibers break down",
        ],
        "Recycling this paper saves trees and reduces energy consumption!",
    ),
    # Recyclable
    "bottle": _entry(
        _RECYCLABLE,
        "Plastic Bottle",
        95,
        [
            "Remove cap and label if possible",
            "Rinse with water to remove residue",
            "Check recycling number on bottom",
            "Place in plastic recycling bin",
        ],
        [
            "PET bottles (#1) are highly recyclable",
            "One recycled bottle saves enough energy to power a 60W bulb for 6 hours",
            "Recycled bottles can become new bottles or clothing",
        ],
        "Recycling this bottle saves 0.5kg of CO2 emissions!",
    ),
    "can": _entry(
        _RECYCLABLE,
        "Metal Can",
        97,
        [
            "Rinse to remove food residue",
            "Remove paper labels if easily detachable",
            "Place in metal recycling bin",
            "Aluminum cans are infinitely recyclable",
        ],
        [
            "Aluminum cans can be recycled indefinitely without quality loss",
            "Recycling one can saves enough energy to run a TV for 3 hours",
            "95% less energy needed than producing new aluminum",
        ],
        "This can will be back on shelves as a new product in 60 days!",
    ),
    "cardboard": _entry(
        _RECYCLABLE,
        "Cardboard",
        92,
        [
            "Remove all tape, staples, and plastic",
            "Flatten boxes to save space",
            "Keep dry and clean",
            "Place in cardboard recycling bin",
        ],
        [
            "Corrugated cardboard is made from recycled materials",
            "Can be recycled 5-7 times before fibers weaken",
            "Recycling cardboard uses 75% less energy than making new",
        ],
        "Recycling this cardboard saves trees and landfill space!",
    ),
    # Hazardous
    "battery": _entry(
        _HAZARDOUS,
        "Battery",
        98,
        [
            "Never throw in regular trash or recycling",
            "Take to designated e-waste collection center",
            "Many electronics stores accept old batteries",
            "Keep terminals covered to prevent short circuits",
        ],
        [
            "Batteries contain toxic metals like lithium, mercury, and lead",
            "One battery can contaminate 20,000 liters of groundwater",
            "Rechargeable batteries can often be refurbished",
        ],
        "Proper disposal prevents soil and water contamination!",
    ),
    "electronics": _entry(
        _HAZARDOUS,
        "Electronic Device",
        94,
        [
            "Remove personal data before disposal",
            "Take to certified e-waste recycling facility",
            "Check if manufacturer has take-back program",
            "Never put in regular trash",
        ],
        [
            "E-waste contains valuable metals like gold and silver",
            "Improper disposal releases toxic chemicals",
            "Many components can be refurbished or recycled",
        ],
        "Proper e-waste recycling recovers valuable materials and prevents pollution!",
    ),
    "chemical": _entry(
        _HAZARDOUS,
        "Chemical Container",
        96,
        [
            "Do not empty contents down drains",
            "Take to hazardous waste collection facility",
            "Keep in original container with label",
            "Follow local hazardous waste disposal guidelines",
        ],
        [
            "Household chemicals can contaminate water supplies",
            "Many communities have special collection days",
            "Some chemicals can be neutralized safely at home",
        ],
        "Safe disposal protects water sources and ecosystems!",
    ),
}

CATALOG_KEYS = frozenset(WASTE_CATALOG)

CATEGORY_GUIDANCE: Dict[WasteCategory, CategoryGuidance] = {
    _BIODEGRADABLE: CategoryGuidance(
        instructions=[
            "Add to your compost bin or organic waste collection",
            "If composting at home, mix with brown materials",
            "Avoid adding meat or dairy to home compost",
            "Decomposes naturally in 2-8 weeks",
        ],
        tips=[
            "Organic waste makes excellent fertilizer",
            "Composting reduces methane emissions from landfills",
            "Can be used to enrich garden soil naturally",
        ],
        impact_statement="Composting this organic waste prevents methane emissions and creates nutrient-rich soil!",
    ),
    _RECYCLABLE: CategoryGuidance(
        instructions=[
            "Clean the item to remove any residue",
            "Check local recycling guidelines",
            "Place in appropriate recycling bin",
            "Remove caps and labels if required",
        ],
        tips=[
            "Recycling saves energy and natural resources",
            "Clean items recycle better than dirty ones",
            "Check recycling numbers on plastic items",
        ],
        impact_statement="Recycling this item saves energy and reduces landfill waste!",
    ),
    _HAZARDOUS: CategoryGuidance(
        instructions=[
            "Never throw in regular trash",
            "Take to designated hazardous waste facility",
            "Check for manufacturer take-back programs",
            "Keep away from children and water",
        ],
        tips=[
            "Hazardous waste can contaminate soil and water",
            "Many electronics stores accept old devices",
            "Proper disposal protects the environment",
        ],
        impact_statement="Proper disposal prevents environmental contamination!",
    ),
}


def lookup(key: str) -> Optional[ClassificationResult]:
    """Return a copy of the catalog entry for ``key``, or None."""
    entry = WASTE_CATALOG.get(key)
    if entry is None:
        return None
    return entry.model_copy(deep=True)


def guidance_for(category: WasteCategory) -> CategoryGuidance:
    return CATEGORY_GUIDANCE[WasteCategory(category)]


def default_classification(confidence: int = config.DEFAULT_CONFIDENCE) -> ClassificationResult:
    """Synthesized result for when nothing could classify the image."""
    return ClassificationResult(
        category=WasteCategory.RECYCLABLE,
        confidence=confidence,
        item_label=UNIDENTIFIED_ITEM,
        instructions=[
            "Check local recycling guidelines",
            "When in doubt, place in general waste",
            "Look for recycling symbols or numbers",
            "Contact local waste management for guidance",
        ],
        tips=[
            "Different materials require different disposal methods",
            "Local recycling programs may vary",
            "When unsure, it's better to ask than contaminate recycling",
        ],
        impact_statement="Every small action towards proper waste disposal makes a difference!",
        source=ClassificationSource.DEFAULT,
    )
