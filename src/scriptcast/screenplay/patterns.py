"""Regex catalogs for screenplay structure.

Each catalog is an ordered table of ``(pattern, label)`` rules evaluated
first-match-wins, so individual rules can be extended and tested on their
own. The scene-heading check always runs before any character matching.
"""

from __future__ import annotations

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class Rule:
    pattern: re.Pattern[str]
    label: str


def _rule(pattern: str, label: str, flags: int = re.IGNORECASE) -> Rule:
    return Rule(re.compile(pattern, flags), label)


# INT. / EXT. / INT./EXT. / EXT./INT. / I/E, optionally after a scene number ("12 INT.", "4A. EXT.")
SCENE_HEADING_RE = re.compile(
    r"^\s*(?:\d+[A-Z]?[.)]?\s+)?"
    r"(?:INT\.?\s*/\s*EXT\.?|EXT\.?\s*/\s*INT\.?|INT\.?|EXT\.?|I/E\.?)\s+",
    re.IGNORECASE,
)

# Whole-line transitions, as the tokenizer classifies them
TRANSITION_RE = re.compile(
    r"^\s*(?:CUT TO:|FADE (?:IN|OUT|TO BLACK)[.:]?|DISSOLVE TO:|SMASH CUT TO:|MATCH CUT TO:"
    r"|JUMP CUT TO:|WIPE TO:|TIME CUT:|IRIS (?:IN|OUT)[.:]?|BACK TO:)\s*$",
    re.IGNORECASE,
)

TIMECODE_LINE_RE = re.compile(r"^\s*(\d{1,2}:\d{2}:\d{2}(?::\d{2})?)\s*$")
PARENTHETICAL_LINE_RE = re.compile(r"^\s*\(.*\)\s*$")


# Screenplay elements that look like ALL-CAPS cues but never name a speaker.
STRUCTURAL_EXCLUSIONS: tuple[Rule, ...] = (
    _rule(
        r"^(?:FADE\s*(?:IN|OUT|TO)|CUT\s*TO|DISSOLVE|SMASH\s*CUT|MATCH\s*CUT|JUMP\s*CUT"
        r"|WIPE\s*TO|TIME\s*CUT|IRIS\s*(?:IN|OUT)|BACK\s+TO\b|HARD\s+CUT|QUICK\s+CUT)",
        "transition",
    ),
    _rule(
        r"^(?:THE\s+END|END\s+OF\s+(?:ACT|EPISODE|SCENE|SHOW|PART|SEQUENCE)|TO\s+BE\s+CONTINUED"
        r"|\(?CONTINUED\)?:?$)",
        "end_marker",
    ),
    _rule(r"^\(?(?:MORE|CONT['’]?D|CONTINUED)\)?:?$", "continuation"),
    _rule(
        r"^(?:ANGLE\s+ON|CLOSE\s*(?:ON|UP|SHOT)|CLOSEUP|EXTREME\s+CLOSE|EXTREME\s+WIDE"
        r"|WIDE\s+(?:ON|SHOT|ANGLE)|MEDIUM\s+(?:SHOT|CLOSE)|LONG\s+SHOT|TWO[\s-]SHOT"
        r"|POV\b|P\.O\.V\.|REVERSE\s+(?:ANGLE|SHOT)|OVER\s+THE\s+SHOULDER|TRACKING\s+SHOT"
        r"|PAN\s+(?:TO|LEFT|RIGHT|UP|DOWN)|ZOOM\s+(?:IN|OUT|TO)|AERIAL\s+(?:SHOT|VIEW)"
        r"|ESTABLISHING\s+SHOT|HIGH\s+ANGLE|LOW\s+ANGLE|MOVING\s+SHOT|SPLIT\s+SCREEN"
        r"|FREEZE\s+FRAME|SLOW\s+MOTION|STOCK\s+SHOT|UNDERWATER\s+SHOT"
        r"|ON\s+(?:SCREEN|TV|THE\s+TV|MONITOR)\b"
        r"|CAMERA\s+\w+|WE\s+SEE|WE\s+HEAR)",
        "camera",
    ),
    _rule(
        r"^(?:MONTAGE|END\s+(?:OF\s+)?MONTAGE|SERIES\s+OF\s+SHOTS|END\s+SERIES"
        r"|FLASHBACK|END\s+(?:OF\s+)?FLASHBACK"
        r"|BACK\s+TO\s+(?:PRESENT|SCENE)|INTERCUT|END\s+INTERCUT"
        r"|DREAM\s+SEQUENCE|FANTASY\s+SEQUENCE"
        r"|MOMENTS?\s+LATER|LATER|CONTINUOUS|SAME\s+TIME|MEANWHILE|SIMULTANEOUSLY)\b",
        "sequence",
    ),
    _rule(
        r"^(?:SUPER(?:IMPOSE)?|TITLE(?:\s+CARD)?|CHYRON|CAPTION|SUBTITLES?|INSERT|CARD"
        r"|TEXT\s+ON\s+SCREEN)\s*(?::|-|—|$)",
        "super",
    ),
    _rule(
        r"^(?:(?:OPENING|END|MAIN|CLOSING)\s+)?(?:CREDITS?|TITLES)$"
        r"|^(?:BLACK(?:\s+SCREEN)?|BLACKOUT|WHITE\s+SCREEN|LOGO|ON\s+SCREEN)[.:]?$",
        "super",
    ),
    _rule(
        r"^(?:ACT\s+(?:[IVXLC]+|\d+|ONE|TWO|THREE|FOUR|FIVE|SIX)|SCENE\s+\d+|TEASER|COLD\s+OPEN"
        r"|TAG|PROLOGUE|EPILOGUE|INTERMISSION|PART\s+(?:[IVX]+|\d+|ONE|TWO|THREE)|EPISODE\s+\d+)\b",
        "act_marker",
    ),
    _rule(
        r"^(?:DAY|NIGHT|MORNING|EVENING|AFTERNOON|DAWN|DUSK|NOON|MIDNIGHT|SUNSET|SUNRISE)$",
        "time_of_day",
    ),
    _rule(r"^\d+[A-Z]?[.)]\s", "scene_number"),
    _rule(r"^\d+[A-Z]?\s+(?:INT|EXT|I/E)\b", "scene_number"),
    _rule(r"^\d+\.?$", "page_number"),
    _rule(r"^(?:PAGE|P\.)\s*\d+", "page_number"),
)


def match_structural(line: str) -> str | None:
    """Return the label of the first structural rule matching *line*, if any."""
    for rule in STRUCTURAL_EXCLUSIONS:
        if rule.pattern.match(line):
            return rule.label
    return None


# Parenthetical extensions stripped from character names during normalization.
EXTENSION_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(r"\s*\((?:" + body + r")\)", re.IGNORECASE)
    for body in (
        r"V\.?\s*O\.?",
        r"O\.?\s*S\.?",
        r"O\.?\s*C\.?",
        r"CONT['’]?D",
        r"CONT\.?",
        r"CONTINUING",
        r"SUBTITLED",
        r"FILTERED",
        r"ON (?:THE )?(?:TV|RADIO|PHONE|SCREEN|SPEAKER|INTERCOM|MONITOR|COMMS?)",
        r"(?:INTO|OVER|ON) (?:THE )?(?:PHONE|RADIO|WALKIE|INTERCOM)",
        r"PRE-?LAP",
        r"WHISPER(?:ING|S|ED)?",
        r"SINGING|SINGS|SUNG",
        r"SHOUT(?:ING|S)?|YELL(?:ING|S)?|SCREAM(?:ING|S)?",
        r"LAUGH(?:ING|S)?|CRY(?:ING)?|SOBBING|GASPING",
        r"THROUGH (?:THE )?(?:DOOR|WALL|WINDOW)",
        r"MUFFLED|DISTORTED|ECHO(?:ING)?",
        r"OFF(?:-?SCREEN)?",
        r"INTERCUT",
        r"IN (?:ENGLISH|HEBREW|FRENCH|SPANISH|GERMAN|RUSSIAN|ARABIC|ITALIAN|CHINESE|JAPANESE)",
        r"NARRATION|NARRATOR",
        r"SOTTO(?: VOCE)?",
        r"BEAT|MORE",
        r"ALL|TOGETHER|IN UNISON|UNISON",
        r"RECORDED|RECORDING|TAPE|VIDEO",
        r"TRANSLATED|TRANSLATION",
        r"CONT['’]?D ON (?:PHONE|RADIO|TV)",
    )
)

# Parentheticals that mark a variant of a base character; kept in the normalized key.
VARIANT_MARKER_RE = re.compile(
    r"\((?:YOUNG|YOUNGER|OLD|OLDER|CHILD|KID|ADULT|TEEN|TEENAGER|ELDERLY|BABY|AGE\s*\d+|\d+"
    r"|FLASHBACK|DREAM|FANTASY|MEMORY|NARRATING)\)",
    re.IGNORECASE,
)

TRAILING_PARENTHETICAL_RE = re.compile(r"\s*\([^()]*\)\s*$")
HASH_SUFFIX_RE = re.compile(r"\s*#\s*\d+\s*$")

# Ordered variant patterns; ``base`` names the parent character.
VARIANT_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(
        r"^(?:YOUNG|YOUNGER|OLD|OLDER|LITTLE|ADULT|TEEN|TEENAGE|TEENAGED|BABY|ELDERLY)"
        r"\s+(?P<base>.+)$",
        re.IGNORECASE,
    ),
    re.compile(
        r"^(?P<base>.+?)\s*\((?:YOUNG|YOUNGER|OLD|OLDER|CHILD|KID|ADULT|TEEN|TEENAGER|ELDERLY|BABY"
        r"|AGE\s*\d+|\d+)\)$",
        re.IGNORECASE,
    ),
    re.compile(r"^(?P<base>.+?)\s+(?:YOUNG|OLD|OLDER|YOUNGER)$", re.IGNORECASE),
    re.compile(r"^(?P<base>.+?)\s*['’]S\s+VOICE$", re.IGNORECASE),
    re.compile(r"^VOICE\s+OF\s+(?P<base>.+)$", re.IGNORECASE),
    re.compile(
        r"^(?P<base>.+?)\s*\((?:FLASHBACK|DREAM|FANTASY|MEMORY|NARRATING)\)$",
        re.IGNORECASE,
    ),
)

# Collective nouns and ensemble markers.
GROUP_INDICATORS: tuple[re.Pattern[str], ...] = (
    re.compile(
        r"^(?:ALL|EVERYONE|EVERYBODY|CROWD|GROUP|CHORUS|SOLDIERS|GUARDS|CHILDREN|KIDS|PEOPLE"
        r"|VOICES?|OTHERS?|BOTH|AUDIENCE|STUDENTS|VILLAGERS|MEN|WOMEN|BOYS|GIRLS|TWINS"
        r"|FAMILY|BAND|TEAM|COPS|POLICE|REPORTERS|NEIGHBOURS|NEIGHBORS|PASSENGERS|GUESTS)$",
        re.IGNORECASE,
    ),
    re.compile(r"\((?:ALL|GROUP|CHORUS|TOGETHER|IN UNISON|UNISON)\)", re.IGNORECASE),
    re.compile(
        r"^(?:\d+|TWO|THREE|FOUR|FIVE|SIX|SEVERAL|SOME|MANY|VARIOUS)\s*"
        r"(?:SOLDIERS|GUARDS|PEOPLE|VOICES|MEN|WOMEN|KIDS|CHILDREN|BOYS|GIRLS|COPS|OFFICERS"
        r"|STUDENTS|VILLAGERS|REPORTERS|GUESTS|PASSENGERS)\b",
        re.IGNORECASE,
    ),
    re.compile(r"\b(?:CROWD|CHORUS|MOB|ENSEMBLE)\b", re.IGNORECASE),
)

# Name particles allowed in lowercase inside a cue ("LUDWIG van BEETHOVEN").
NAME_PARTICLES = frozenset({"von", "van", "de", "la", "del", "der", "di", "da", "du", "le"})

# Short words that look like cues but are usually prose; only accepted with context.
COMMON_WORDS = frozenset({
    "THE", "AND", "BUT", "FOR", "NOT", "YOU", "ALL", "CAN", "HAD", "HER", "WAS", "ONE",
    "OUR", "OUT", "END", "DAY", "MAN", "BOY", "NO", "YES", "OK", "OH", "AH", "HEY", "WHO",
    "WHY", "HOW", "GO", "UP", "ON", "IN", "IT", "IS", "OF", "TO", "SO", "WE", "HE", "SHE",
    "HIM", "HIS", "ITS", "ARE", "NOW", "NEW", "BIG", "RUN", "AS", "AT", "BY", "OR", "IF",
})

# Cue body: caps, digits and name punctuation; Mc/Mac prefixes and particles allowed.
_PARTICLE_ALT = "|".join(sorted(NAME_PARTICLES))
_NAME_START = r"(?:Ma?c(?=[A-Z])|[A-Z])"
_NAME_BODY = (
    r"(?:[A-Z0-9\s\-'’.,#/&]"
    r"|(?<=\s)Ma?c(?=[A-Z])"
    r"|(?<=\s)(?:" + _PARTICLE_ALT + r")(?=\s))"
)
_EXTENSIONS = r"(?P<ext>(?:\s*\([^)]*\))*)"


@dataclass(frozen=True)
class CueShape:
    pattern: re.Pattern[str]
    label: str
    use_raw_line: bool = False


# Five cue shapes, tried in order; the first match wins.
CUE_SHAPES: tuple[CueShape, ...] = (
    CueShape(
        re.compile(r"^(?P<name>" + _NAME_START + _NAME_BODY + r"*?)" + _EXTENSIONS + r"$"),
        "plain",
    ),
    CueShape(
        re.compile(r"^(?P<name>[A-Z][A-Z0-9\s\-'’.]*?)(?P<ext>\s*\([^)]*\))?\s*:\s*$"),
        "colon",
    ),
    CueShape(
        re.compile(r"^\t+(?P<name>[A-Z][A-Z0-9\s\-'’.]*?)(?P<ext>\s*\([^)]*\))?\s*$"),
        "tab",
        use_raw_line=True,
    ),
    CueShape(
        re.compile(r"^(?P<name>[A-Z][A-Z\s\-'’.]*?\s*#?\d+)(?P<ext>\s*\([^)]*\))?$"),
        "numbered",
    ),
    CueShape(
        re.compile(
            r"^(?P<name>\d+(?:ST|ND|RD|TH)?\s+[A-Z][A-Z0-9\s\-'’.]*?)(?P<ext>\s*\([^)]*\))?$"
        ),
        "generic_numbered",
    ),
)

LOWERCASE_WORD_RE = re.compile(r"^[a-z]")
CONTINUATION_PUNCTUATION = ("...", "…", "-", "—", "–", "'", '"', ",")
