import math
from typing import Any, Dict, List

DEFAULT_MIN_AGE = 18
DEFAULT_MAX_AGE = 35


def _is_non_empty_str(v: Any) -> bool:
    return isinstance(v, str) and v.strip() != ""


def _as_int(v: Any):
    if isinstance(v, bool):
        raise ValueError("boolean is not an age")
    if isinstance(v, float):
        if not math.isfinite(v):
            raise ValueError("age must be finite")
        return int(v)
    return int(str(v).strip())


def _as_float(v: Any) -> float:
    if isinstance(v, bool):
        raise ValueError("boolean is not a number")
    number = float(str(v).strip()) if not isinstance(v, (int, float)) else float(v)
    if not math.isfinite(number):
        raise ValueError("number must be finite")
    return number


def validate_estimate_params(data: Dict[str, Any]) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.

    Accepts query-string style values (strings) as well as numbers.
    Ages outside 0-99 are not errors; the estimator clamps them.
    """
    errors: List[str] = []

    if "region" not in data:
        errors.append("Missing required field: region")
    elif not _is_non_empty_str(data["region"]):
        errors.append("Field 'region' must be a non-empty string")

    for f in ("minAge", "maxAge"):
        if data.get(f) is None:
            continue
        try:
            _as_int(data[f])
        except (TypeError, ValueError):
            errors.append(f"Field '{f}' must be an integer")

    if data.get("hensachi") is not None:
        try:
            _as_float(data["hensachi"])
        except (TypeError, ValueError):
            errors.append("Field 'hensachi' must be a finite number")

    return errors


def coerce_estimate_params(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Convert validated parameters into estimator keyword arguments.

    Raises:
        ValueError: If the parameters do not validate
    """
    errors = validate_estimate_params(data)
    if errors:
        raise ValueError("; ".join(errors))

    min_age = data.get("minAge")
    max_age = data.get("maxAge")
    hensachi = data.get("hensachi")
    return {
        "region": data["region"].strip(),
        "min_age": DEFAULT_MIN_AGE if min_age is None else _as_int(min_age),
        "max_age": DEFAULT_MAX_AGE if max_age is None else _as_int(max_age),
        "hensachi": None if hensachi is None else _as_float(hensachi),
    }
