import re

from .models import NormalizedQuery

PREFECTURES = (
    "北海道", "青森県", "岩手県", "宮城県", "秋田県", "山形県", "福島県",
    "茨城県", "栃木県", "群馬県", "埼玉県", "千葉県", "東京都", "神奈川県",
    "新潟県", "富山県", "石川県", "福井県", "山梨県", "長野県",
    "岐阜県", "静岡県", "愛知県", "三重県",
    "滋賀県", "京都府", "大阪府", "兵庫県", "奈良県", "和歌山県",
    "鳥取県", "島根県", "岡山県", "広島県", "山口県",
    "徳島県", "香川県", "愛媛県", "高知県",
    "福岡県", "佐賀県", "長崎県", "熊本県", "大分県", "宮崎県", "鹿児島県", "沖縄県",
)

# city / ward / town / village
ADMIN_SUFFIXES = ("区", "市", "町", "村")

_WHITESPACE_RE = re.compile(r"\s+")
_BRACKETS_RE = re.compile(r"[（）()\[\]【】]")
_SUFFIX_RE = re.compile(r"(特別区|[区市町村])$")


def normalize_name(s: str) -> str:
    """Remove all whitespace and bracket punctuation."""
    if s is None:
        return ""
    s = _WHITESPACE_RE.sub("", str(s))
    return _BRACKETS_RE.sub("", s).strip()


def extract_region_hint(name: str) -> str | None:
    for pref in PREFECTURES:
        if pref in name:
            return pref
    return None


def trailing_suffix(name: str) -> str | None:
    if name and name[-1] in ADMIN_SUFFIXES:
        return name[-1]
    return None


def bare_stem(name: str) -> str:
    return _SUFFIX_RE.sub("", name)


def expand_names(normalized: str, hint: str | None) -> tuple[str, ...]:
    """Ordered, de-duplicated lookup variants for an already-normalized name."""
    if not normalized:
        return ()
    without_hint = normalized.replace(hint, "", 1) if hint else normalized
    base = bare_stem(without_hint)
    candidates = [normalized, without_hint, base]
    if base:
        candidates.extend(base + suffix for suffix in ADMIN_SUFFIXES)

    seen = set()
    result = []
    for name in candidates:
        if name and name not in seen:
            seen.add(name)
            result.append(name)
    return tuple(result)


def normalize_query(raw: str) -> NormalizedQuery:
    """Build the canonical name, variants and prefecture hint for raw input.

    Never raises; empty input gives an empty variant tuple.
    """
    canonical = normalize_name(raw)
    hint = extract_region_hint(canonical) if canonical else None
    return NormalizedQuery(
        canonical_name=canonical,
        variants=expand_names(canonical, hint),
        region_hint=hint,
        suffix=trailing_suffix(canonical),
    )
