from typing import List, Tuple

DEFAULT_ITEM_KEY = "bottle"

# Checked in order; the first keyword contained in the label wins.
LABEL_MAPPINGS: List[Tuple[str, str]] = [
    # Food and organic
    ("banana", "plant"),
    ("apple", "food"),
    ("orange", "food"),
    ("food", "food"),
    ("fruit", "food"),
    ("vegetable", "food"),
    ("leaf", "plant"),
    ("flower", "plant"),
    ("plant", "plant"),
    # Recyclables
    ("bottle", "bottle"),
    ("plastic", "bottle"),
    ("can", "can"),
    ("metal", "can"),
    ("aluminum", "can"),
    ("paper", "paper"),
    ("cardboard", "cardboard"),
    ("box", "cardboard"),
    # Electronics and hazardous
    ("battery", "battery"),
    ("phone", "electronics"),
    ("computer", "electronics"),
    ("electronic", "electronics"),
    ("chemical", "chemical"),
    ("container", "chemical"),
]


def map_label_to_key(label: str) -> str:
    """
    Map a free-text model label to a canonical catalog key.

    Never fails: anything unrecognised maps to the plastic bottle entry.
    """
    label = (label or "").lower()
    for keyword, key in LABEL_MAPPINGS:
        if keyword in label:
            return key
    return DEFAULT_ITEM_KEY
