"""Read-only nickname and title indices for character-name matching.

The tables are plain module constants; ``nickname_index`` builds the
reverse lookup once and hands out an immutable mapping, so callers can
only query, never mutate.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from functools import lru_cache
from types import MappingProxyType

# Formal first name -> common short forms
NICKNAME_GROUPS: Mapping[str, tuple[str, ...]] = MappingProxyType({
    "ALEXANDER": ("ALEX", "AL", "SASHA", "XANDER"),
    "ALEXANDRA": ("ALEX", "SASHA", "LEXI", "SANDRA"),
    "ANDREW": ("ANDY", "DREW"),
    "ANTHONY": ("TONY",),
    "BENJAMIN": ("BEN", "BENNY", "BENJI"),
    "CATHERINE": ("CATHY", "KATE", "KATIE", "CAT"),
    "CHARLES": ("CHARLIE", "CHUCK", "CHAS"),
    "CHRISTOPHER": ("CHRIS", "KIT", "TOPHER"),
    "DANIEL": ("DAN", "DANNY"),
    "DAVID": ("DAVE", "DAVEY"),
    "DEBORAH": ("DEB", "DEBBIE"),
    "EDWARD": ("ED", "EDDIE", "NED", "TED"),
    "ELIZABETH": ("LIZ", "LIZZIE", "BETH", "BETTY", "ELIZA", "LIBBY"),
    "FREDERICK": ("FRED", "FREDDIE", "FREDDY"),
    "GABRIEL": ("GABE",),
    "GREGORY": ("GREG",),
    "HENRY": ("HANK", "HARRY"),
    "JACOB": ("JAKE", "JAKEY"),
    "JAMES": ("JIM", "JIMMY", "JAMIE"),
    "JENNIFER": ("JEN", "JENNY"),
    "JONATHAN": ("JON", "JONNY"),
    "JOHN": ("JACK", "JOHNNY"),
    "JOSEPH": ("JOE", "JOEY"),
    "JOSHUA": ("JOSH",),
    "KATHERINE": ("KATE", "KATHY", "KATIE", "KAT"),
    "LAWRENCE": ("LARRY",),
    "LEONARD": ("LEO", "LEN", "LENNY"),
    "MARGARET": ("MAGGIE", "MEG", "PEGGY", "MARGE"),
    "MATTHEW": ("MATT", "MATTY"),
    "MICHAEL": ("MIKE", "MICKEY", "MIKEY"),
    "NATHANIEL": ("NATE", "NAT", "NATHAN"),
    "NICHOLAS": ("NICK", "NICKY"),
    "PATRICIA": ("PAT", "PATTY", "TRISH"),
    "PATRICK": ("PAT", "PADDY"),
    "PETER": ("PETE",),
    "REBECCA": ("BECKY", "BECCA"),
    "RICHARD": ("RICK", "RICKY", "DICK", "RICH"),
    "ROBERT": ("BOB", "BOBBY", "ROB", "ROBBIE", "BERT"),
    "SAMANTHA": ("SAM", "SAMMY"),
    "SAMUEL": ("SAM", "SAMMY"),
    "STEPHEN": ("STEVE", "STEVIE"),
    "STEVEN": ("STEVE", "STEVIE"),
    "SUSAN": ("SUE", "SUSIE"),
    "THEODORE": ("TED", "TEDDY", "THEO"),
    "THOMAS": ("TOM", "TOMMY"),
    "TIMOTHY": ("TIM", "TIMMY"),
    "VICTORIA": ("VICKY", "TORI"),
    "WILLIAM": ("BILL", "BILLY", "WILL", "WILLIE", "LIAM"),
    "ZACHARY": ("ZACH", "ZACK"),
})

TITLES: frozenset[str] = frozenset({
    "MR", "MRS", "MS", "MISS", "DR", "PROF", "SIR", "LADY", "LORD",
    "CAPTAIN", "CAPT", "LT", "SGT", "CPL", "OFFICER", "DETECTIVE", "AGENT",
    "FATHER", "SISTER", "UNCLE", "AUNT", "KING", "QUEEN", "PRINCE", "PRINCESS",
})

TITLE_SPLIT_RE = re.compile(r"[\s.]+")


@lru_cache(maxsize=1)
def nickname_index() -> Mapping[str, frozenset[str]]:
    """Name -> the formal names it belongs to (a formal name maps to itself)."""
    index: dict[str, set[str]] = {}
    for formal, nicknames in NICKNAME_GROUPS.items():
        index.setdefault(formal, set()).add(formal)
        for nickname in nicknames:
            index.setdefault(nickname, set()).add(formal)
    return MappingProxyType({name: frozenset(formals) for name, formals in index.items()})


def are_nicknames(first: str, second: str) -> bool:
    """True when two different first names belong to the same formal name."""
    a, b = first.strip().upper(), second.strip().upper()
    if not a or not b or a == b:
        return False
    index = nickname_index()
    return bool(index.get(a, frozenset()) & index.get(b, frozenset()))


def _words(name: str) -> list[str]:
    return [word for word in TITLE_SPLIT_RE.split(name.strip()) if word]


def has_title(name: str) -> bool:
    return any(word.upper() in TITLES for word in _words(name))


def strip_titles(name: str) -> str:
    """Drop honorifics and ranks: ``DR. SMITH`` -> ``SMITH``."""
    return " ".join(word for word in _words(name) if word.upper() not in TITLES)
