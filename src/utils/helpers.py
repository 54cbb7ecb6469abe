import json
from pathlib import Path


def write_json(obj, name="result.json"):
    p = Path(name)
    p.parent.mkdir(parents=True, exist_ok=True)
    with open(p, "w", encoding="utf8") as f:
        json.dump(obj, f, ensure_ascii=False, indent=2)
    return p


def gap_percent(distance, reference):
    """Relative gap of `distance` over `reference`, in percent."""
    if not reference:
        return None
    return round((distance - reference) / reference * 100, 2)
