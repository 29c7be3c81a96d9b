"""Region (mkt) catalogue shared across the application.

Lives in the domain layer so the locale resolver, the API client and the
CLI can share one fallback table without importing each other.
"""

from __future__ import annotations

DEFAULT_MKT = "zh-CN"

# (value, label) pairs; order is the tie-break for prefix matching.
DEFAULT_REGIONS: tuple[tuple[str, str], ...] = (
    ("zh-CN", "中国 (zh-CN)"),
    ("en-US", "美国 (en-US)"),
    ("ja-JP", "日本 (ja-JP)"),
    ("en-AU", "澳大利亚 (en-AU)"),
    ("en-GB", "英国 (en-GB)"),
    ("de-DE", "德国 (de-DE)"),
    ("en-NZ", "新西兰 (en-NZ)"),
    ("en-CA", "加拿大 (en-CA)"),
    ("fr-FR", "法国 (fr-FR)"),
    ("it-IT", "意大利 (it-IT)"),
    ("es-ES", "西班牙 (es-ES)"),
    ("pt-BR", "巴西 (pt-BR)"),
    ("ko-KR", "韩国 (ko-KR)"),
    ("en-IN", "印度 (en-IN)"),
    ("ru-RU", "俄罗斯 (ru-RU)"),
    ("zh-HK", "中国香港 (zh-HK)"),
    ("zh-TW", "中国台湾 (zh-TW)"),
)


def language_subtag(code: str) -> str:
    """Language part of a region code (`en-GB` -> `en`), lower-cased."""

    return code.replace("_", "-").split("-", 1)[0].strip().lower()
