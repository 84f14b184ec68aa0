# Copyright (c) Syntropy Systems
"""Human-readable identifiers and short-sha version identifiers."""
from __future__ import annotations

import functools
import re
import secrets
from dataclasses import dataclass
from typing import TYPE_CHECKING

from tailbench.errors import InvalidVersionTagError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from tailbench.rng import SeededRandom

ADJECTIVES = [
    "swift", "bright", "calm", "deep", "fresh", "bold", "keen", "pure", "wise", "warm",
    "quick", "light", "sharp", "soft", "cool", "clear", "dark", "dry", "firm", "free",
    "vast", "wild", "young", "raw", "safe", "rare", "rich", "rough", "round", "royal",
    "broad", "brave", "brief", "fair", "fine", "fleet", "glad", "grand", "great", "green",
    "prime", "proud", "real", "ripe", "sweet", "tall", "tame", "true", "nice", "plain",
    "lean", "loud", "main", "neat", "next", "pale", "pink", "flat", "gold", "good",
]

NOUNS = [
    "wolf", "hawk", "bear", "deer", "fox", "owl", "lion", "seal", "crow", "dove",
    "swan", "eagle", "whale", "tiger", "lynx", "raven", "snake", "horse", "shark", "crane",
    "duck", "elk", "frog", "goat", "hare", "kite", "lark", "mole", "moth", "mouse",
    "newt", "pike", "puma", "rail", "ram", "ray", "sage", "shrew", "skunk", "snail",
    "stork", "teal", "thrush", "toad", "trout", "vole", "wasp", "wren", "bass", "bison",
    "boar", "carp", "clam", "crab", "doe", "eel", "finch", "gull", "heron", "otter",
]

VERBS = [
    "runs", "leaps", "flies", "dives", "swims", "soars", "walks", "jumps", "glides", "moves",
    "rides", "flows", "races", "turns", "rolls", "leads", "falls", "rises", "spins", "drifts",
    "bends", "binds", "bites", "blows", "breaks", "brings", "builds", "burns", "buys", "calls",
    "casts", "comes", "costs", "deals", "does", "draws", "drinks", "drives", "eats", "feeds",
    "feels", "finds", "gains", "gets", "gives", "goes", "grows", "hangs", "hears", "helps",
    "holds", "keeps", "knows", "leaves", "lets", "lies", "lives", "reads", "sings", "waits",
]

HEX_CHARS = "0123456789abcdef"
SHORT_SHA_LENGTH = 7
SEMVER_TAG_RE = re.compile(r"^\d+\.\d+(\.\d+)?$")

_system_random = secrets.SystemRandom()


def _shuffled(words: list[str], rng: SeededRandom | None) -> list[str]:
    shuffled = list(words)
    if rng is None:
        _system_random.shuffle(shuffled)
        return shuffled
    for i in range(len(shuffled) - 1, 0, -1):
        j = int(rng.next() * (i + 1))
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def _pick(words: list[str], rng: SeededRandom | None) -> str:
    shuffled = _shuffled(words, rng)
    if rng is None:
        return secrets.choice(shuffled)
    return rng.choice(shuffled)


def generate_id(
    separator: str = "-",
    *,
    include_verb: bool = True,
    rng: SeededRandom | None = None,
) -> str:
    """Generate an adjective-noun[-verb] identifier such as ``keen-owl-dives``.

    Words come from the system CSPRNG unless a seeded stream is given.
    Collisions are not checked.
    """
    parts = [_pick(ADJECTIVES, rng), _pick(NOUNS, rng)]
    if include_verb:
        parts.append(_pick(VERBS, rng))
    return separator.join(parts)


def generate_short_sha(
    length: int = SHORT_SHA_LENGTH,
    rng: SeededRandom | None = None,
) -> str:
    """Generate a random lowercase hex string."""
    if rng is None:
        return "".join(secrets.choice(HEX_CHARS) for _ in range(length))
    return "".join(rng.choice(list(HEX_CHARS)) for _ in range(length))


def is_valid_tag(tag: str) -> bool:
    """Check a tag is ``x.y`` or ``x.y.z``."""
    return SEMVER_TAG_RE.match(tag) is not None


def generate_version_id(
    tag: str | None = None,
    length: int = SHORT_SHA_LENGTH,
    rng: SeededRandom | None = None,
) -> str:
    """Generate ``<sha>`` or ``<sha>@<tag>``.

    Raises:
        InvalidVersionTagError: if ``tag`` is not ``x.y`` or ``x.y.z``.

    """
    sha = generate_short_sha(length, rng)
    if tag:
        if not is_valid_tag(tag):
            msg = f"Invalid semantic version format '{tag}'. Use format: x.y or x.y.z"
            raise InvalidVersionTagError(msg)
        return f"{sha}@{tag}"
    return sha


@dataclass(frozen=True)
class VersionIdParts:
    """A version id split into its sha and optional tag."""

    sha: str
    tag: str | None = None


def parse_version_id(version_id: str) -> VersionIdParts:
    """Split a version id on ``@``."""
    parts = version_id.split("@")
    tag = parts[1] if len(parts) > 1 else None
    return VersionIdParts(sha=parts[0], tag=tag)


def _tag_components(tag: str) -> list[int]:
    return [int(part) if part.isdigit() else 0 for part in tag.split(".")]


def compare_version_ids(id_a: str, id_b: str) -> int:
    """Order two version ids by their numeric tag components.

    Untagged ids sort before tagged ones. Missing trailing components
    count as 0, so ``1.2`` and ``1.2.0`` compare equal.
    """
    tag_a = parse_version_id(id_a).tag
    tag_b = parse_version_id(id_b).tag

    if not tag_a and not tag_b:
        return 0
    if not tag_a:
        return -1
    if not tag_b:
        return 1

    parts_a = _tag_components(tag_a)
    parts_b = _tag_components(tag_b)
    for i in range(max(len(parts_a), len(parts_b))):
        a = parts_a[i] if i < len(parts_a) else 0
        b = parts_b[i] if i < len(parts_b) else 0
        if a != b:
            return a - b
    return 0


def sort_version_ids(version_ids: Iterable[str]) -> list[str]:
    """Sort version ids by tag, untagged first. Stable for equal tags."""
    return sorted(version_ids, key=functools.cmp_to_key(compare_version_ids))
