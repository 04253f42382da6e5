"""
Medication Matcher

Resolves spoken medication names against the user's own medication list.

Two layers:
1. Name comparison (normalize_med_name / matches_med_name): strips dosage,
   unit and trademark tokens, then accepts equality, containment or a small
   Levenshtein distance (20% of the length) for short names.
2. Transcript scanning (MedicationMatcher.find_mentions): walks the tokens of
   a transcript, tolerating recognizer errors with Jaro-Winkler similarity,
   split tokens ("suma triptan") and a negation guard ("kein ibuprofen").
"""

import logging
import math
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from rapidfuzz.distance import JaroWinkler, Levenshtein

from application.services.transcript_normalizer import normalize_umlauts
from domain.german_lexicon import GERMAN, MedicationLexicon
from domain.voice_models import UserMedication

logger = logging.getLogger(__name__)

_DOSAGE_TOKENS = re.compile(
    r"\d+(?:[.,]\d+)?\s*(?:mg|ml|g|[µμ]g|mcg|tabletten?|kapseln?|stück|stueck|st\.?|tab\.?)(?!\w)",
    re.IGNORECASE,
)
_TRADEMARKS = re.compile(r"[®™©]")
_WHITESPACE = re.compile(r"\s+")
_EDGE_PUNCTUATION = re.compile(r"^\W+|\W+$")
_STRENGTH = re.compile(
    r"^(.+?)\s*(\d+\s*(?:mg|ml|mcg|[µμ]g|g|mikrogramm|milligramm)).*$",
    re.IGNORECASE,
)

SHORT_NAME_LIMIT = 12
TYPO_TOLERANCE = 0.2


# ========================================
# Name comparison
# ========================================

def normalize_med_name(name: Optional[str]) -> str:
    """
    Canonical comparison form of a medication name.

    "Ibuprofen 400mg®" -> "ibuprofen"
    """
    if not name:
        return ""
    cleaned = name.lower()
    cleaned = _DOSAGE_TOKENS.sub("", cleaned)
    cleaned = _TRADEMARKS.sub("", cleaned)
    return _WHITESPACE.sub(" ", cleaned).strip()


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance with unit-cost insert, delete and substitute."""
    return Levenshtein.distance(a, b)


def matches_med_name(entry_name: Optional[str], search_term: Optional[str]) -> bool:
    """
    Check whether a stored medication name and a search term denote the same drug.

    Args:
        entry_name: Name as stored in the user's medication list
        search_term: Spoken or typed name to compare against

    Returns:
        True on equality, containment (the reverse direction needs at least
        4 characters) or, for names of at most 12 characters, an edit
        distance within 20% of the longer name
    """
    entry = normalize_med_name(entry_name)
    search = normalize_med_name(search_term)
    if not entry or not search:
        return False

    if entry == search:
        return True
    if search in entry:
        return True
    if entry in search and len(entry) >= 4:
        return True

    if len(entry) <= SHORT_NAME_LIMIT and len(search) <= SHORT_NAME_LIMIT:
        max_distance = math.ceil(max(len(entry), len(search)) * TYPO_TOLERANCE)
        return levenshtein_distance(entry, search) <= max_distance

    return False


def normalize_for_match(text: str) -> str:
    """Lowercase, fold umlauts and drop all whitespace."""
    return _WHITESPACE.sub("", normalize_umlauts(text or ""))


def tokenize(text: str) -> List[str]:
    """Lowercase folded tokens with edge punctuation removed; empty tokens dropped."""
    tokens = []
    for raw in normalize_umlauts(text or "").split():
        token = _EDGE_PUNCTUATION.sub("", raw)
        if token:
            tokens.append(token)
    return tokens


# ========================================
# Transcript scanning
# ========================================

@dataclass(frozen=True)
class MedicationLexiconEntry:
    """Searchable forms of one user medication."""
    canonical: str
    medication_id: Optional[str]
    forms: Tuple[str, ...]
    base_name: str
    strength: Optional[str] = None


@dataclass(frozen=True)
class MedicationMatch:
    canonical: str
    medication_id: Optional[str]
    confidence: float
    match_type: str  # exact | fuzzy | prefix | split_token
    is_uncertain: bool = False
    alternatives: Tuple[str, ...] = ()


@dataclass(frozen=True)
class MedicationMention:
    """A medication found in a transcript, with its token span (inclusive)."""
    raw: str
    match: MedicationMatch
    start_index: int
    end_index: int


def split_strength(name: str) -> Tuple[str, Optional[str]]:
    """'Sumatriptan 50 mg' -> ('Sumatriptan', '50 mg')"""
    match = _STRENGTH.match(name.strip())
    if match:
        return match.group(1).strip(), match.group(2).strip()
    return name.strip(), None


class MedicationMatcher:
    """
    Match spoken medication mentions against a user's medication list.

    The lexicon is built once per matcher; build a new matcher when the
    user's list changes.
    """

    def __init__(
        self,
        user_meds: Iterable[UserMedication] = (),
        lexicon: Optional[MedicationLexicon] = None,
    ):
        self.lexicon = lexicon or GERMAN.medication
        self.user_meds: Tuple[UserMedication, ...] = tuple(user_meds)
        self.entries: List[MedicationLexiconEntry] = []
        self.prefix_index: Dict[str, List[str]] = {}
        self._build()

    def _forms_for(self, name: str) -> List[str]:
        lower = name.lower()
        base_name, _ = split_strength(name)
        forms = [lower, base_name.lower()]

        folded = normalize_for_match(name)
        for length in (4, 5, 6):
            if len(folded) >= length:
                forms.append(folded[:length])

        for needle, variants in self.lexicon.asr_variants:
            if needle in lower:
                forms.extend(lower.replace(needle, variant) for variant in variants)
        for prefix, variants in self.lexicon.asr_prefix_variants:
            if lower.startswith(prefix):
                forms.extend(variant + lower[len(prefix):] for variant in variants)

        unique: List[str] = []
        for form in forms:
            key = normalize_for_match(form)
            if key and key not in unique:
                unique.append(key)
        return unique

    def _build(self) -> None:
        for med in self.user_meds:
            if not med.name or len(med.name.strip()) < 2:
                continue
            base_name, strength = split_strength(med.name)
            self.entries.append(MedicationLexiconEntry(
                canonical=med.name,
                medication_id=med.id,
                forms=tuple(self._forms_for(med.name)),
                base_name=base_name,
                strength=strength,
            ))
            base_key = normalize_for_match(base_name)
            if len(base_key) >= 3:
                names = self.prefix_index.setdefault(base_key[:3], [])
                if med.name not in names:
                    names.append(med.name)
        logger.debug(f"Built medication lexicon with {len(self.entries)} entries")

    def has_context(self, tokens: Sequence[str], index: int) -> bool:
        """Medication vocabulary ("genommen", "tablette", "mg", ...) near the token."""
        start = max(0, index - 3)
        end = min(len(tokens), index + 3)
        return any(
            tokens[i] in self.lexicon.context_words
            for i in range(start, end)
            if i != index
        )

    def find_best_match(self, word: str, has_context: bool = False) -> Optional[MedicationMatch]:
        """
        Find the user medication closest to a single word or joined phrase.

        Args:
            word: Token (or several tokens joined) from the transcript
            has_context: Lowers the similarity threshold when medication vocabulary is nearby

        Returns:
            MedicationMatch or None
        """
        key = normalize_for_match(word)
        if len(key) < 3 or key in self.lexicon.skip_words:
            return None

        threshold = (
            self.lexicon.similarity_threshold_with_context
            if has_context
            else self.lexicon.similarity_threshold
        )
        candidates: List[Tuple[float, MedicationLexiconEntry]] = []

        for entry in self.entries:
            if key in entry.forms:
                return MedicationMatch(
                    canonical=entry.canonical,
                    medication_id=entry.medication_id,
                    confidence=self.lexicon.exact_match_confidence,
                    match_type="exact",
                )

            best = max(JaroWinkler.similarity(key, form) for form in entry.forms)

            if len(key) >= 6:
                base_key = normalize_for_match(entry.base_name)
                distance = levenshtein_distance(key, base_key)
                if distance <= (2 if len(key) >= 8 else 1):
                    best = max(best, 1 - distance / max(len(key), len(base_key)))

            if best >= threshold:
                candidates.append((best, entry))

        if not candidates:
            names = self.prefix_index.get(key[:3], [])
            if len(names) == 1:
                entry = next(e for e in self.entries if e.canonical == names[0])
                return MedicationMatch(
                    canonical=entry.canonical,
                    medication_id=entry.medication_id,
                    confidence=self.lexicon.prefix_match_confidence,
                    match_type="prefix",
                    is_uncertain=True,
                )
            return None

        candidates.sort(key=lambda c: c[0], reverse=True)
        best_score, best_entry = candidates[0]
        uncertain = (
            len(candidates) >= 2
            and best_score - candidates[1][0] < self.lexicon.ambiguity_delta
        )
        return MedicationMatch(
            canonical=best_entry.canonical,
            medication_id=best_entry.medication_id,
            confidence=round(best_score, 4),
            match_type="fuzzy",
            is_uncertain=uncertain,
            alternatives=tuple(c[1].canonical for c in candidates[1:3]) if uncertain else (),
        )

    def _is_negated(self, tokens: Sequence[str], index: int) -> bool:
        negations = self.lexicon.negation_words
        return (
            (index >= 1 and tokens[index - 1] in negations)
            or (index >= 2 and tokens[index - 2] in negations)
        )

    def _match_split_tokens(self, tokens: Sequence[str], start: int) -> Optional[Tuple[MedicationMatch, int]]:
        for length in (2, 3):
            if start + length > len(tokens):
                break
            match = self.find_best_match("".join(tokens[start:start + length]), has_context=True)
            if match and match.confidence >= self.lexicon.split_token_threshold:
                return MedicationMatch(
                    canonical=match.canonical,
                    medication_id=match.medication_id,
                    confidence=match.confidence,
                    match_type="split_token",
                    is_uncertain=match.is_uncertain,
                    alternatives=match.alternatives,
                ), length
        return None

    def find_mentions(self, text: str) -> List[MedicationMention]:
        """
        Find every user medication mentioned in a transcript.

        Each canonical medication is reported once, at its first mention.
        Mentions preceded by a negation within two tokens are ignored.
        """
        if not self.entries or not text:
            return []

        tokens = tokenize(text)
        mentions: List[MedicationMention] = []
        found = set()

        i = 0
        while i < len(tokens):
            token = tokens[i]
            if (
                token in self.lexicon.skip_words
                or token in self.lexicon.negation_words
                or len(token) < 3
                or self._is_negated(tokens, i)
            ):
                i += 1
                continue

            single = self.find_best_match(token, self.has_context(tokens, i))
            consumed = 1
            match = single
            if single is None or single.match_type != "exact":
                split = self._match_split_tokens(tokens, i)
                if split:
                    match, consumed = split

            if match and match.canonical not in found:
                found.add(match.canonical)
                mentions.append(MedicationMention(
                    raw=" ".join(tokens[i:i + consumed]),
                    match=match,
                    start_index=i,
                    end_index=i + consumed - 1,
                ))
            i += consumed

        if mentions:
            logger.debug(f"Found medication mentions: {[m.match.canonical for m in mentions]}")
        return mentions

    def find_user_medication(self, phrase: str) -> Optional[UserMedication]:
        """Resolve a spoken phrase to one of the user's medications."""
        for med in self.user_meds:
            if matches_med_name(med.name, phrase):
                return med
        return None

    def find_in_text(self, text: str) -> Optional[UserMedication]:
        """
        First user medication whose primary word occurs in the text.

        Falls back to comparing every token of at least 4 characters with
        matches_med_name, so misheard names still resolve.
        """
        folded = normalize_umlauts(text or "")
        tokens = tokenize(text)
        for med in self.user_meds:
            full = normalize_umlauts(med.name)
            primary = full.split()[0] if full.split() else ""
            if primary and re.search(r"\b" + re.escape(primary) + r"\b", folded):
                return med
        for med in self.user_meds:
            for token in tokens:
                if len(token) >= 4 and token not in self.lexicon.skip_words and matches_med_name(med.name, token):
                    return med
        return None

    def find_canonical_synonym(self, text: str) -> Optional[str]:
        """Well-known generic named directly or by a short form ("ibu", "suma")."""
        tokens = tokenize(text)
        for canonical, synonyms in self.lexicon.canonical_synonyms:
            for token in tokens:
                if token == canonical or token in synonyms or token.startswith(canonical):
                    return canonical.capitalize()
        return None
