from __future__ import annotations

# Dog breeds carrying the MDR1 (ABCB1) mutation.
MDR1_BREEDS = (
    "collie",
    "border collie",
    "australian shepherd",
    "shetland sheepdog",
    "german shepherd",
    "old english sheepdog",
    "whippet",
    "silken windhound",
)

# Generic-name substrings of drugs that MDR1 dogs handle poorly.
MDR1_SENSITIVE_DRUGS = (
    "ivermectin",
    "loperamide",
    "acepromazine",
    "butorphanol",
    "cyclosporine",
    "digoxin",
    "doxorubicin",
)

MDR1_MULTIPLIER = 0.5
GREYHOUND_MULTIPLIER = 0.9


def is_mdr1_breed(breed: str) -> bool:
    lowered = breed.strip().lower()
    if not lowered:
        return False
    return any(name in lowered for name in MDR1_BREEDS)


def is_mdr1_sensitive_drug(generic_name: str) -> bool:
    lowered = generic_name.strip().lower()
    if not lowered:
        return False
    return any(drug in lowered for drug in MDR1_SENSITIVE_DRUGS)


def genetic_multiplier(breed: str, species: str, generic_name: str) -> float | None:
    """Built-in breed rule for dogs, or ``None`` when no rule applies."""
    if species.strip().lower() != "dog":
        return None
    if is_mdr1_breed(breed) and is_mdr1_sensitive_drug(generic_name):
        return MDR1_MULTIPLIER
    if "greyhound" in breed.strip().lower():
        return GREYHOUND_MULTIPLIER
    return None
