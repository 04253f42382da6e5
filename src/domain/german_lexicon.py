"""
German lexical rules for the voice diary pipeline.

Every table here is immutable data (frozen dataclasses of tuples). Services
receive a lexicon through their constructor, so a different locale or a test
double can be swapped in without touching module state.

Patterns that run on normalized transcripts are written in folded form
(ae/oe/ue/ss instead of umlauts), because the normalizer folds umlauts before
any extractor sees the text.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Optional, Tuple


# ========================================
# Normalizer
# ========================================

ASR_REPLACEMENTS: Tuple[Tuple[str, str], ...] = (
    # Colloquial contractions
    (r"(?<!\w)['’]?ner\s+", "einer "),
    (r"(?<!\w)['’]?nen\s+", "einen "),
    (r"(?<!\w)['’]?nem\s+", "einem "),
    (r"(?<!\w)['’]?ne\s+", "eine "),
    # Units
    (r"\b1\s*h\b", "1 stunde"),
    (r"\b(\d+)\s*h\b", r"\1 stunden"),
    (r"\b(\d+)\s*min\b", r"\1 minuten"),
    (r"\b(\d+)\s*std\b", r"\1 stunden"),
    (r"\bm\s*g\b", "mg"),
    (r"\bmilli\s*gram+\b", "milligramm"),
    (r"\bmikro\s*gram+\b", "mikrogramm"),
    # Pain scale notation
    (r"(\d+)\s*/\s*10\b", r"\1 von 10"),
    (r"(\d+)\s*von\s*zehn\b", r"\1 von 10"),
    # Drug names the recognizer keeps getting wrong
    (r"\b(?:somatriptan|zomatriptan)\b", "sumatriptan"),
    (r"\brisatriptan\b", "rizatriptan"),
    (r"\biboprofen\b", "ibuprofen"),
)

UMLAUT_FOLDS: Tuple[Tuple[str, str], ...] = (
    ("ä", "ae"),
    ("ö", "oe"),
    ("ü", "ue"),
    ("ß", "ss"),
)


@dataclass(frozen=True)
class NormalizerLexicon:
    asr_replacements: Tuple[Tuple[str, str], ...] = ASR_REPLACEMENTS
    umlaut_folds: Tuple[Tuple[str, str], ...] = UMLAUT_FOLDS


# ========================================
# Intent features
# ========================================

@dataclass(frozen=True)
class IntentLexicon:
    add_verbs: Tuple[str, ...] = (
        r"\bfuege\b",
        r"\bhinzufuegen\b",
        r"\banlegen\b",
        r"\blege\s+.+\s+an\b",
        r"\bleg\s+.+\s+an\b",
        r"\berstell",
        r"\bspeichere?\b",
        r"\bneues?\s+medikament",
        r"\bmedikament\s+hinzu",
        r"\bmedikament\s+anlegen",
    )
    explicit_new_medication: Tuple[str, ...] = (
        r"\bneues?\s+medikament\b",
        r"\bmedikament\s+(?:hinzu|anlegen)\b",
    )
    add_construction: str = r"\bfuege\s+\w+\s+(?:hinzu|an)\b"
    pain_keywords: Tuple[str, ...] = (
        r"\bschmerz",
        r"\bkopfschmerz",
        r"\bmigraene\b",
        r"\battacke\b",
        r"\banfall\b",
        r"\bstaerke\s*\d",
        r"\blevel\s*\d",
        r"\bintensitaet\b",
    )
    pain_mention: str = r"schmerz|migraene|kopf|attacke|anfall"
    analytics_keywords: Tuple[str, ...] = (
        r"wie\s*viel",
        r"wieviel",
        r"wie\s*oft",
        r"wie\s*lang",
        r"durchschnitt",
        r"statistik",
        r"auswertung",
        r"analyse\b",
        r"uebersicht\b",
        r"letzt\w*\s+\d+\s+tag",
        r"schmerzfrei",
        r"ohne\s+(?:kopf)?schmerz",
    )
    question_start: str = r"^(?:wie|was|wann|welche|wo|wieviel)\s"
    time_range: Tuple[str, ...] = (
        r"letzt\w*\s+\d+\s+(?:tag|woche|monat)",
        r"letzten?\s+(?:monat|woche)\b",
    )
    dosage: str = r"\b\d{1,4}\s*(?:mg|milligramm|mcg|mikrogramm|ml|g)\b"
    pain_level: str = r"\b(?:[0-9]|10)\s*(?:von\s*10|/10)?\b"
    update_patterns: Tuple[str, ...] = (
        r"abgesetzt",
        r"nicht\s+mehr\s+(?:nehm|einnehm)",
        r"aufgehoert",
        r"stopp\w*\s+\w+",
        r"kein\w*\s+\w+\s+mehr",
        r"nicht\s+vertragen",
        r"unvertraeglich",
        r"nebenwirkung",
    )
    effect_patterns: Tuple[str, ...] = (
        r"\b(?:hat|haben)\s+(?:gut|sehr gut|super|nicht|kaum)\s+(?:geholfen|gewirkt)",
        r"wirkung",
        r"wirksam",
        r"effektiv",
        r"besser\s+geworden",
    )
    intake_verbs: str = r"\b(?:genommen|eingenommen)\b"
    reminder_patterns: Tuple[str, ...] = (
        r"erinner",
        r"termin",
        r"arztbesuch",
        r"\bum\s+\d{1,2}\s*(?:uhr|:)",
        r"morgen\s+um",
        r"uebermorgen",
    )
    navigation_patterns: Tuple[str, ...] = (
        r"\b(?:oeffne|zeig|geh\s+zu|navigiere)\b",
        r"\btagebuch\b",
        r"\beinstellungen\b",
        r"\banalyse\b",
        r"\buebersicht\b",
        r"\bhilfe\b",
    )
    # Dosage-anchored medication name: 1-2 words before the dose, else one after
    med_name_before_dose: str = (
        r"\b([a-z]{3,}(?:\s+[a-z]{3,})?)\s+\d{1,4}\s*(?:mg|milligramm|mcg|mikrogramm|ml)\b"
    )
    med_name_after_dose: str = r"\d{1,4}\s*(?:mg|milligramm|mcg|mikrogramm|ml)\s+([a-z]{3,})"
    dose_amount: str = r"\b(\d{1,4}(?:[.,]\d+)?)\s*(mg|milligramm|mcg|mikrogramm|g|ml)\b"
    known_med_aliases: FrozenSet[str] = frozenset({
        "sumatriptan", "rizatriptan", "naratriptan", "eletriptan", "zolmitriptan",
        "almotriptan", "frovatriptan", "ibuprofen", "paracetamol", "aspirin",
        "diclofenac", "naproxen", "novalgin", "metamizol", "maxalt", "imigran",
        "relpax", "voltaren",
    })


# ========================================
# Medication matching
# ========================================

@dataclass(frozen=True)
class MedicationLexicon:
    # Canonical name -> short forms people (and recognizers) use
    canonical_synonyms: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
        ("sumatriptan", ("suma", "sumat")),
        ("ibuprofen", ("ibu", "iboprofen")),
        ("paracetamol", ("para", "paracet")),
        ("aspirin", ("ass", "asa")),
        ("diazepam", ("diaz", "valium")),
    )
    # Spelling variants added to a user medication's searchable forms
    asr_variants: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
        ("triptan", ("tryptan", "triplan")),
        ("ibuprofen", ("iboprofen", "ibuproffen")),
        ("paracetamol", ("parazitamol", "paracetamoll")),
    )
    asr_prefix_variants: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
        ("suma", ("soma", "zuma")),
    )
    context_words: FrozenSet[str] = frozenset({
        "genommen", "eingenommen", "nehme", "nehmen", "nehm",
        "tablette", "tabletten", "pille", "kapsel",
        "mg", "milligramm", "ml", "tropfen",
        "triptan", "schmerzmittel", "medikament",
        "halbe", "ganze", "viertel", "eine", "zwei",
    })
    skip_words: FrozenSet[str] = frozenset({
        "vor", "nach", "mit", "und", "oder", "bei", "wegen", "durch",
        "ich", "habe", "hab", "heute", "gestern", "jetzt", "gerade", "dann", "noch",
        "nehme", "nehmen", "nimm", "hatte", "hat", "war", "bin", "ist",
        "eine", "einen", "einer", "einem", "das", "die", "der", "den", "dem",
        "schmerz", "kopfschmerz", "kopfschmerzen", "migraene", "stark", "staerke",
        "buero", "stress", "trigger", "geschlafen", "arbeit",
        "muede", "wenig", "morgen", "schlaf", "schlecht",
        "wetter", "sport", "training", "essen", "trinken", "getrunken",
        "kaffee", "alkohol", "periode", "regel", "zyklus", "reise",
        "laerm", "erschoepft", "verspannt",
        "bildschirm", "termine", "sitzen", "autofahren", "zugfahrt",
        "gearbeitet", "ausgesetzt", "angestrengt", "ueberstunden",
        "genommen", "eingenommen", "tablette", "tabletten", "halbe", "ganze",
        "dass", "weil", "aber", "auch", "sehr", "wann", "immer", "wieder", "etwas",
    })
    negation_words: FrozenSet[str] = frozenset({
        "kein", "keine", "keinen", "keiner", "keinem", "nicht", "ohne",
    })
    similarity_threshold: float = 0.82
    similarity_threshold_with_context: float = 0.78
    split_token_threshold: float = 0.85
    ambiguity_delta: float = 0.08
    prefix_match_confidence: float = 0.75
    exact_match_confidence: float = 0.98


# ========================================
# Entity extraction (pain, time, dose)
# ========================================

@dataclass(frozen=True)
class RelativeTimeRule:
    """``vor N stunden`` style offsets. ``per_unit`` multiplies group 1, ``fixed`` is used as is."""
    pattern: str
    display: str
    per_unit: Optional[int] = None
    fixed: Optional[int] = None


@dataclass(frozen=True)
class DayPhraseRule:
    pattern: str
    days_ago: int
    display: str
    default_hour: Optional[int] = None


@dataclass(frozen=True)
class ClockRule:
    """Clock phrase. ``minutes`` None means minutes come from group 2 (or 0)."""
    pattern: str
    hour_shift: int = 0
    minutes: Optional[int] = None


@dataclass(frozen=True)
class DoseRule:
    pattern: str
    quarters: int
    text: str


@dataclass(frozen=True)
class EntityLexicon:
    number_words: Tuple[Tuple[str, int], ...] = (
        ("null", 0), ("eins", 1), ("zwei", 2), ("zwo", 2), ("drei", 3),
        ("vier", 4), ("fuenf", 5), ("sechs", 6), ("sieben", 7), ("acht", 8),
        ("neun", 9), ("zehn", 10), ("elf", 11), ("zwoelf", 12),
    )
    pain_triggers: Tuple[str, ...] = (
        "schmerzstaerke", "schmerzlevel", "schmerzwert", "schmerzintensitaet",
        "schmerzskala", "schmerzlautstaerke", "schmerzlautsaerke", "schmerzlaut",
        "schmerzstaerker", "schmerzstarke", "kopfschmerzstaerke", "migraenestaerke",
        "staerke", "level", "intensitaet", "skala",
    )
    pain_scale: Tuple[str, ...] = (
        r"\b(\d{1,2})\s*(?:von|auf|aus)\s*(?:10|zehn)\b",
        r"\b(\d{1,2})\s*/\s*10\b",
    )
    pain_context: str = r"schmerz|migraene|kopfweh|attacke|anfall"
    # Numbers that are doses, clock times or durations, not pain levels
    pain_sanitizers: Tuple[Tuple[str, str], ...] = (
        (r"\d+(?:[.,]\d+)?\s*(?:mg|milligramm|mcg|mikrogramm|ml|g)\b", " [dose] "),
        (r"\d+\s*(?:tabletten?|stueck|kapseln?|tropfen)\b", " [dose] "),
        (r"\d{1,2}[:.]\d{2}", " [time] "),
        (r"\b(?:um|gegen)\s+\d{1,2}\b(?:\s*uhr)?", " [time] "),
        (r"\b\d{1,2}\s*uhr\b", " [time] "),
        (r"\b(?:vor|seit|in)\s+\d+\s*(?:minuten?|stunden?|tagen?|wochen?|monaten?)\b", " [duration] "),
        (r"\bletzt\w*\s+\d+\s*(?:tagen?|wochen?|monaten?)\b", " [duration] "),
        (r"\b\d+\s*(?:minuten|stunden|stunde|tage|tagen|wochen|monate|monaten)\b", " [duration] "),
    )
    # Order matters: the more specific phrase is listed first
    intensity_words: Tuple[Tuple[str, int], ...] = (
        (r"\bkeine?[rnm]?\s+(?:\w+\s+)?(?:schmerz|kopfschmerz|kopfweh|migraene|attacke)", 0),
        (r"\b(?:sehr\s*stark\w*|unertraeglich\w*|extrem\w*|heftig\w*|maximal\w*|hoellisch\w*|brutal\w*|kaum\s+auszuhalten)\b", 9),
        (r"\b(?:sehr\s*leicht\w*|minimal\w*|kaum\s+spuerbar)\b", 1),
        (r"\b(?:stark(?:e|en|er|es)?|schwer(?:e|en|er|es)?|massiv\w*|richtig\s+schlimm|echt\s+schlimm)\b", 7),
        (r"\b(?:mittel(?:stark\w*)?|maessig\w*|moderat\w*|normal\w*)\b", 5),
        (r"\b(?:leicht(?:e|en|er|es)?|schwach\w*|gering\w*|wenig|dezent\w*|bisschen)\b", 3),
    )
    relative_times: Tuple[RelativeTimeRule, ...] = (
        RelativeTimeRule(r"\b(?:vor|seit)\s+(\d+)\s*(?:minute|minuten|min)\b", "vor {n} Minuten", per_unit=1),
        RelativeTimeRule(r"\b(?:vor|seit)\s+(\d+)\s*(?:stunde|stunden|std|h)\b", "vor {n} Stunden", per_unit=60),
        RelativeTimeRule(r"\b(?:vor|seit)\s+(?:einer|einem|eine)\s+halben?\s+stunde\b", "vor einer halben Stunde", fixed=30),
        RelativeTimeRule(r"\b(?:vor|seit)\s+(?:einer|eine)\s+viertel\s*stunde\b", "vor einer Viertelstunde", fixed=15),
        RelativeTimeRule(r"\b(?:vor|seit)\s+(?:einer|eine)\s+dreiviertel\s*stunde\b", "vor einer Dreiviertelstunde", fixed=45),
        RelativeTimeRule(r"\b(?:vor|seit)\s+(?:einer|einem|eine)\s+stunde\b", "vor einer Stunde", fixed=60),
        RelativeTimeRule(r"\b(?:anderthalb|eineinhalb)\s*stunden?\b", "vor anderthalb Stunden", fixed=90),
    )
    day_phrases: Tuple[DayPhraseRule, ...] = (
        DayPhraseRule(r"\bheute\s+morgen\b", 0, "heute Morgen", 7),
        DayPhraseRule(r"\bheute\s+frueh\b", 0, "heute früh", 7),
        DayPhraseRule(r"\bheute\s+vormittag\b", 0, "heute Vormittag", 10),
        DayPhraseRule(r"\bheute\s+mittag\b", 0, "heute Mittag", 12),
        DayPhraseRule(r"\bheute\s+nachmittag\b", 0, "heute Nachmittag", 15),
        DayPhraseRule(r"\bheute\s+abend\b", 0, "heute Abend", 20),
        DayPhraseRule(r"\bheute\s+nacht\b", 0, "heute Nacht", 23),
        DayPhraseRule(r"\bvorgestern\b", 2, "vorgestern"),
        DayPhraseRule(r"\bgestern\s+morgen\b", 1, "gestern Morgen", 7),
        DayPhraseRule(r"\bgestern\s+mittag\b", 1, "gestern Mittag", 12),
        DayPhraseRule(r"\bgestern\s+nachmittag\b", 1, "gestern Nachmittag", 15),
        DayPhraseRule(r"\bgestern\s+abend\b", 1, "gestern Abend", 20),
        DayPhraseRule(r"\bgestern\s+nacht\b", 1, "gestern Nacht", 23),
        DayPhraseRule(r"\bgestern\b", 1, "gestern"),
        DayPhraseRule(r"\bletzte\s+nacht\b", 0, "letzte Nacht", 3),
    )
    clock_times: Tuple[ClockRule, ...] = (
        ClockRule(r"\b(?:um|gegen)\s*(\d{1,2})[:.](\d{2})\s*(?:uhr)?\b"),
        ClockRule(r"\b(?:um|gegen)\s*(\d{1,2})\s*uhr(?:\s*(\d{1,2}))?\b"),
        ClockRule(r"\bhalb\s+(\d{1,2})\b", hour_shift=-1, minutes=30),
        ClockRule(r"\bviertel\s+nach\s+(\d{1,2})\b", minutes=15),
        ClockRule(r"\bviertel\s+vor\s+(\d{1,2})\b", hour_shift=-1, minutes=45),
        ClockRule(r"\b5\s+nach\s+(\d{1,2})\b", minutes=5),
        ClockRule(r"\b5\s+vor\s+(\d{1,2})\b", hour_shift=-1, minutes=55),
        ClockRule(r"\b(\d{1,2})[:.](\d{2})\b"),
    )
    now_words: str = r"\b(?:jetzt|gerade|sofort|eben|soeben|aktuell|momentan)\b"
    dose_rules: Tuple[DoseRule, ...] = (
        DoseRule(r"\bdrei\s*viertel\b", 3, "dreiviertel Tablette"),
        DoseRule(r"(?<![\d/])(?:3/4|0[.,]75)\b", 3, "dreiviertel Tablette"),
        DoseRule(r"\bviertel\s*(?:tablette)?\b", 1, "Viertel Tablette"),
        DoseRule(r"(?<![\d/])(?:1/4|0[.,]25)\b", 1, "Viertel Tablette"),
        DoseRule(r"\b(?:anderthalb|eineinhalb)\b", 6, "eineinhalb Tabletten"),
        DoseRule(r"(?<![\d/])1[.,]5\s*(?:tabletten?)?\b", 6, "eineinhalb Tabletten"),
        DoseRule(r"\bhalbe?\s*(?:tablette)?\b", 2, "halbe Tablette"),
        DoseRule(r"(?<![\d/])(?:1/2|0[.,]5)\b", 2, "halbe Tablette"),
        DoseRule(r"\b(?:zwei|2)\s*tabletten?\b", 8, "2 Tabletten"),
        DoseRule(r"\b(?:eine?|1)\s*tabletten?\b", 4, "1 Tablette"),
        DoseRule(r"\bganzen?\s*tablette\b", 4, "1 Tablette"),
    )
    default_dose_quarters: int = 4
    context_entry_triggers: Tuple[str, ...] = (
        r"\b(?:trigger|ausloeser)\b",
        r"\b(?:notiz|kontext|bemerkung|anmerkung)\b",
        r"\b(?:schlecht\s+geschlafen|wenig\s+geschlafen|zu\s+wenig\s+schlaf)",
        r"\b(?:stress|stressig|gestresst)\b",
        r"\b(?:wetter|wetterumschwung|foehn|gewitter)",
        r"\b(?:periode|menstruation|regel|zyklus)",
        r"\b(?:essen|gegessen|getrunken|kaffee|alkohol|wein|bier)",
        r"\b(?:sport|training|joggen|fitness)",
        r"\b(?:reise|gereist|unterwegs|flug)",
        r"\b(?:muede|erschoepft)",
        r"\b(?:viel\s+gearbeitet|lange\s+gearbeitet|ueberstunden)",
    )
    new_entry_triggers: Tuple[str, ...] = (
        r"\b(?:kopfschmerz\w*|kopfweh|migraene|schmerz\w*|attacke|anfall)\b",
        r"\b(?:genommen|eingenommen|nehme|tablette)\b",
        r"\b(?:schmerzstaerke|schmerzlautstaerke|staerke\s*\d|level\s*\d)",
        r"\b\d+\s*(?:von\s*10|/10)\b",
        r"\b(?:\w*triptan|ibuprofen|paracetamol|naproxen|aspirin|ass)\b",
        r"\bvor\s+\d+\s*(?:minute|stunde)",
    )
    # Removed from the raw transcript when it becomes the free-text note of a new entry
    note_fillers: Tuple[str, ...] = (
        r"\b(?:jetzt|gerade|sofort|eben|aktuell)\b",
        r"\b\d+\s*(?:von\s*(?:10|zehn)|/\s*10)",
        r"\b(?:schmerz|kopfschmerz|migr(?:ä|ae)ne)?\s*(?:st(?:ä|ae)rke|level|intensit(?:ä|ae)t|skala|lautst(?:ä|ae)rke)\b(?:\s*\d{1,2}\b)?",
        r"\b(?:genommen|eingenommen|tabletten?|mg|milligramm)\b",
        r"\b(?:vor|seit)\s+\S+\s+(?:halben?\s+)?(?:minuten?|stunden?|min|std|h)\b",
        r"\b(?:heute|gestern)(?:\s+(?:morgen|fr(?:ü|ue)h|vormittag|mittag|nachmittag|abend|nacht))?\b",
        r"\bvorgestern\b",
        r"\b(?:um|gegen)\s*\d{1,2}(?:[:.]\d{2})?\s*(?:uhr)?",
        r"\b\d+\s*mg\b",
        r"\b(?:halbe?|viertel|dreiviertel|ganze|eineinhalb|anderthalb)\b",
    )


# ========================================
# Segmentation
# ========================================

WEEKDAYS = r"montag|dienstag|mittwoch|donnerstag|freitag|samstag|sonntag"


@dataclass(frozen=True)
class SegmentLexicon:
    sentence_split: str = r"[.!?]+"
    conjunction_split: str = r",\s*(?=(?:und|aber|weil|da|obwohl|dass)\b)"
    min_clause_length: int = 5
    # Priority order: medication_event > symptom_course > lifestyle_factor > trigger > time_pattern
    segment_types: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
        ("medication_event", (
            r"\b(?:genommen|eingenommen|geschluckt|gespritzt|verwendet|gebraucht)\b",
            r"\b(?:sumatriptan|ibuprofen|aspirin|paracetamol|\w*triptan|ajovy|topiramat|amitriptylin|diazepam|zopiclon)\b",
            r"\b\d+\s*(?:mg|tabletten?|spritzen?)\b",
        )),
        ("symptom_course", (
            r"\b(?:migraene|kopfschmerz\w*|attacke|anfall|schmerz\w*)\b",
            r"\b(?:aufgewacht|angefangen|begonnen|nachgelassen|verschwunden|besser|schlimmer)\b",
            r"\b(?:am naechsten morgen|wieder|erneut|immer noch)\b",
            r"\b(?:uebelkeit|uebel|erbrechen|erbrochen|schwindel\w*|aura|sehstoerung\w*|lichtempfindlich\w*|geraeuschempfindlich\w*|flimmern)\b",
        )),
        ("lifestyle_factor", (
            r"\b(?:geschlafen|schlaf|muede|ausgeruht|wach)\b",
            r"\b(?:gegessen|essen|getrunken|kaffee|alkohol|wasser|mahlzeit)\b",
            r"\b(?:sport|training|yoga|spazieren|bewegung)\b",
            r"\b(?:stress|entspannt|hektisch|ruhig)\b",
        )),
        ("trigger", (
            r"\b(?:trigger|ausgeloest|verursacht|durch)\b",
            r"\b(?:wetter|luftdruck|foehn|gewitter)\b",
            r"\b(?:licht|laerm|geruch|bildschirm)\b",
            r"\b(?:periode|menstruation|zyklus|regel)\b",
        )),
        ("time_pattern", (
            r"\b(?:" + WEEKDAYS + r")\b",
            r"\b(?:in folge|wieder|jedes mal|immer|regelmaessig)\b",
            r"\b(?:morgens?|abends?|mittags?|nachts?)\b",
            r"\b(?:wochenende|werktag|arbeitstag)\b",
        )),
    )
    # Most specific rating first, so "sehr gut" is not read as "gut"
    effect_ratings: Tuple[Tuple[str, str], ...] = (
        ("keine_wirkung", r"\b(?:gar nicht|ueberhaupt nicht|keine wirkung|nichts gebracht|nicht geholfen|nicht gewirkt)\b"),
        ("sehr_gut", r"\b(?:sehr gut|super|perfekt|komplett weg|voellig weg|voellig)\b"),
        ("verschlechterung", r"\b(?:schlimmer|verschlimmert|verschlechtert|verstaerkt)\b"),
        ("teilweise", r"\b(?:teilweise|ein bisschen|etwas|minimal|kaum)\b"),
        ("gut", r"\b(?:gut|geholfen|gewirkt|besser)\b"),
    )
    factor_types: Tuple[Tuple[str, str], ...] = (
        ("schlaf", r"\b(?:schlaf\w*|geschlafen|ausgeschlafen|muede|ausgeruht|wach|insomnie)\b"),
        ("stress", r"\b(?:stress\w*|gestresst|hektisch|angespannt|entspannt|ueberfordert)\b"),
        ("ernaehrung", r"\b(?:gegessen|essen|mahlzeit|hunger|nuechtern|fasten|fruehstueck)\b"),
        ("koffein", r"\b(?:kaffee|koffein|espresso|cola|energy)\b"),
        ("alkohol", r"\b(?:alkohol|wein|bier|sekt|getrunken)\b"),
        ("menstruation", r"\b(?:periode|menstruation|zyklus|regel|pms)\b"),
        ("wetter", r"\b(?:wetter\w*|luftdruck|foehn|gewitter|kalt|warm|hitze)\b"),
        ("sport", r"\b(?:sport|training|yoga|laufen|joggen|fitness|bewegung)\b"),
    )
    factor_values: Tuple[Tuple[str, Tuple[Tuple[str, str], ...]], ...] = (
        ("schlaf", (
            (r"schlecht\s+geschlafen|wenig\s+geschlafen|kaum\s+geschlafen|nicht\s+geschlafen", "wenig_schlaf"),
            (r"gut\s+geschlafen|ausgeschlafen|erholt", "gut_geschlafen"),
        )),
        ("koffein", (
            (r"viel\s+kaffee|literweise\s+kaffee|zu\s+viel\s+kaffee", "viel_kaffee"),
            (r"kein\s+kaffee|ohne\s+kaffee", "kein_kaffee"),
        )),
        ("ernaehrung", (
            (r"nichts\s+gegessen|nicht\s+gegessen|nuechtern|kein\s+fruehstueck", "nichts_gegessen"),
            (r"unregelmaessig\s+gegessen", "unregelmaessig"),
        )),
        ("stress", (
            (r"viel\s+stress|sehr\s+stressig|unter\s+druck", "hoher_stress"),
            (r"entspannt|relaxed|ruhig", "entspannt"),
        )),
    )
    medication_roles: Tuple[Tuple[str, str], ...] = (
        ("akut", r"\b(?:akut|bei anfall|bei schmerzen|gegen die attacke)\b"),
        ("rescue", r"\b(?:rescue|notfall|wenn.*nicht hilft|zusaetzlich)\b"),
        ("prophylaxe", r"\b(?:prophylaxe|vorbeugend|taeglich|regelmaessig|dauerhaft)\b"),
        ("begleit", r"\b(?:dazu|ausserdem|begleitend)\b"),
    )
    time_references: Tuple[Tuple[str, str], ...] = (
        ("zweiter_wochentag_in_folge", r"\bzweite[rn]?\s+(?:" + WEEKDAYS + r")\s+in\s+folge\b"),
        ("heute_tageszeit", r"\bheute\s+(?:morgen|abend|mittag|nacht)\b"),
        ("gestern_tageszeit", r"\bgestern\s+(?:morgen|abend|mittag|nacht)\b"),
        ("naechster_morgen", r"\bam\s+naechsten\s+morgen\b"),
        ("wiederkehrend", r"\bjede[rns]?\s+(?:woche|monat|tag)\b"),
        ("wiederkehrend_wochentag", r"\bimmer\s+(?:" + WEEKDAYS + r")s?\b"),
    )
    timing_relations: Tuple[Tuple[str, str], ...] = (
        ("naechster_morgen", r"\bam\s+naechsten\s+morgen\b"),
        ("nach_auftreten", r"\bdanach\b"),
    )
    dose: str = r"(\d+)\s*(?:mg|tabletten?|stueck|spritzen?)\b"


# ========================================
# Reminders
# ========================================

@dataclass(frozen=True)
class ReminderLexicon:
    triggers: Tuple[str, ...] = (
        r"erinner(?:e|ung)",
        r"remind(?:er)?",
        r"alarm",
        r"benachrichtig",
        r"nicht\s+vergessen",
    )
    medication_patterns: Tuple[str, ...] = (
        r"medikament",
        r"tablette",
        r"\b(?:nehmen|einnehmen)\b",
        r"dosis",
    )
    appointment_patterns: Tuple[str, ...] = (
        r"termin",
        r"arzt",
        r"meeting",
        r"besprechung",
        r"krankenhaus",
        r"praxis",
        r"physiotherapie",
    )
    # (time of day, pattern, default clock time)
    time_of_day: Tuple[Tuple[str, str, str], ...] = (
        ("morning", r"\b(?:morgens|frueh|vormittags?|heute\s+morgen)\b", "08:00"),
        ("noon", r"\b(?:mittags?)\b", "12:00"),
        ("evening", r"\b(?:abends?)\b", "18:00"),
        ("night", r"\b(?:nachts?)\b", "22:00"),
    )
    # An explicit clock needs "um", "uhr" or a colon, so "in 3 tagen" is not 03:00
    explicit_time: Tuple[str, ...] = (
        r"\b(\d{1,2}):(\d{2})\b(?:\s*uhr)?",
        # Dotted clock times only with "um" or "uhr"; "12.05." is a date
        r"\bum\s+(\d{1,2})\.(\d{2})\b(?!\.)",
        r"\b(\d{1,2})\.(\d{2})\s*uhr\b",
        r"\b(\d{1,2})\s*uhr\b(?:\s*(\d{1,2})\b)?",
        r"\bum\s+(\d{1,2})\b(?![:.]\d)",
    )
    # (pattern, days from today); uebermorgen must precede morgen
    relative_dates: Tuple[Tuple[str, Optional[int]], ...] = (
        (r"\buebermorgen\b", 2),
        (r"\bheute\s+morgen\b", 0),
        (r"\bmorgen\b", 1),
        (r"\bheute\b", 0),
        (r"\bin\s+(\d+)\s+tagen?\b", None),
        (r"\bnaechste\s+woche\b", 7),
    )
    repeats: Tuple[Tuple[str, str], ...] = (
        ("daily", r"\b(?:taeglich|jeden\s+tag|alle\s+tage)\b"),
        ("weekly", r"\b(?:woechentlich|jede\s+woche)\b"),
        ("monthly", r"\b(?:monatlich|jeden\s+monat)\b"),
    )
    # Stripped from the raw text when building titles and notes
    strip_triggers: str = r"erinner(?:e|ung)|reminder|nicht\s+vergessen|benachrichtig\w*|alarm"
    strip_times: Tuple[str, ...] = (
        r"\b\d{1,2}(?:[:.]\d{2})?\s*(?:uhr)?\b",
        r"\b(?:morgens?|mittags?|abends?|nachts?|fr(?:ü|ue)h)\b",
        r"\b(?:(?:ü|ue)bermorgen|heute|morgen|in\s+\d+\s+tagen?|n(?:ä|ae)chste\s+woche)\b",
        r"\b(?:t(?:ä|ae)glich|w(?:ö|oe)chentlich|monatlich|jeden\s+tag|jede\s+woche|jeden\s+monat)\b",
    )
    strip_fillers: str = r"\b(?:an|um|mich|bitte)\b"
    default_time: str = "08:00"
    title_max_length: int = 50
    appointment_title: str = "Termin"
    generic_title: str = "Erinnerung"


@dataclass(frozen=True)
class GermanLexicon:
    """All German rule tables bundled for injection into the services."""
    normalizer: NormalizerLexicon = field(default_factory=NormalizerLexicon)
    intent: IntentLexicon = field(default_factory=IntentLexicon)
    medication: MedicationLexicon = field(default_factory=MedicationLexicon)
    entity: EntityLexicon = field(default_factory=EntityLexicon)
    segment: SegmentLexicon = field(default_factory=SegmentLexicon)
    reminder: ReminderLexicon = field(default_factory=ReminderLexicon)


GERMAN = GermanLexicon()
