"""Numeric constants shared with the duel core: locations, messages, flags."""

from enum import IntEnum, IntFlag

OCG_VERSION_MAJOR = 9
OCG_VERSION_MINOR = 0

DUEL_RELAY = 0x80


class Location(IntFlag):
    """Card locations on the field."""

    DECK = 0x01
    HAND = 0x02
    MZONE = 0x04
    SZONE = 0x08
    GRAVE = 0x10
    REMOVED = 0x20
    EXTRA = 0x40
    OVERLAY = 0x80
    ONFIELD = 0x0C
    FZONE = 0x100
    PZONE = 0x200
    ALL = 0x3FF


class MsgType(IntEnum):
    """Core message identifiers (first byte of every core message)."""

    RETRY = 1
    HINT = 2
    WAITING = 3
    START = 4
    WIN = 5
    UPDATE_DATA = 6
    UPDATE_CARD = 7
    SELECT_BATTLECMD = 10
    SELECT_IDLECMD = 11
    SELECT_EFFECTYN = 12
    SELECT_YESNO = 13
    SELECT_OPTION = 14
    SELECT_CARD = 15
    SELECT_CHAIN = 16
    SELECT_PLACE = 18
    SELECT_POSITION = 19
    SELECT_TRIBUTE = 20
    SORT_CHAIN = 21
    SELECT_COUNTER = 22
    SELECT_SUM = 23
    SELECT_DISFIELD = 24
    SORT_CARD = 25
    SELECT_UNSELECT_CARD = 26
    CONFIRM_DECKTOP = 30
    CONFIRM_CARDS = 31
    SHUFFLE_DECK = 32
    SHUFFLE_HAND = 33
    SWAP_GRAVE_DECK = 35
    SHUFFLE_SET_CARD = 36
    REVERSE_DECK = 37
    DECK_TOP = 38
    SHUFFLE_EXTRA = 39
    NEW_TURN = 40
    NEW_PHASE = 41
    CONFIRM_EXTRATOP = 42
    MOVE = 50
    POS_CHANGE = 53
    SET = 54
    SWAP = 55
    FIELD_DISABLED = 56
    SUMMONING = 60
    SUMMONED = 61
    SPSUMMONING = 62
    SPSUMMONED = 63
    FLIPSUMMONING = 64
    FLIPSUMMONED = 65
    CHAINING = 70
    CHAINED = 71
    CHAIN_SOLVING = 72
    CHAIN_SOLVED = 73
    CHAIN_END = 74
    CHAIN_NEGATED = 75
    CHAIN_DISABLED = 76
    RANDOM_SELECTED = 81
    BECOME_TARGET = 83
    DRAW = 90
    DAMAGE = 91
    RECOVER = 92
    EQUIP = 93
    LPUPDATE = 94
    CARD_TARGET = 96
    CANCEL_TARGET = 97
    PAY_LPCOST = 100
    ADD_COUNTER = 101
    REMOVE_COUNTER = 102
    ATTACK = 110
    BATTLE = 111
    ATTACK_DISABLED = 112
    DAMAGE_STEP_START = 113
    DAMAGE_STEP_END = 114
    MISSED_EFFECT = 120
    TOSS_COIN = 130
    TOSS_DICE = 131
    ROCK_PAPER_SCISSORS = 132
    HAND_RES = 133
    ANNOUNCE_RACE = 140
    ANNOUNCE_ATTRIB = 141
    ANNOUNCE_CARD = 142
    ANNOUNCE_NUMBER = 143
    ANNOUNCE_CARD_FILTER = 144
    CARD_HINT = 160
    TAG_SWAP = 161
    RELOAD_FIELD = 162
    PLAYER_HINT = 165
    MATCH_KILL = 170


class Position(IntFlag):
    """Battle positions of a card."""

    FACEUP_ATTACK = 0x1
    FACEDOWN_ATTACK = 0x2
    FACEUP_DEFENSE = 0x4
    FACEDOWN_DEFENSE = 0x8
    FACEUP = 0x5
    FACEDOWN = 0xA
    ATTACK = 0x3
    DEFENSE = 0xC


class Scope(IntFlag):
    """Card pools a card belongs to."""

    OCG = 0x1
    TCG = 0x2
    ANIME = 0x4
    ILLEGAL = 0x8
    VIDEO_GAME = 0x10
    CUSTOM = 0x20
    SPEED = 0x40
    PRERELEASE = 0x100
    RUSH = 0x200
    LEGEND = 0x400
    HIDDEN = 0x1000
    OCG_TCG = 0x3
    OFFICIAL = 0x103


class QueryFlag(IntFlag):
    """Fields that a card query may carry."""

    CODE = 0x1
    POSITION = 0x2
    ALIAS = 0x4
    TYPE = 0x8
    LEVEL = 0x10
    RANK = 0x20
    ATTRIBUTE = 0x40
    RACE = 0x80
    ATTACK = 0x100
    DEFENSE = 0x200
    BASE_ATTACK = 0x400
    BASE_DEFENSE = 0x800
    REASON = 0x1000
    REASON_CARD = 0x2000
    EQUIP_CARD = 0x4000
    TARGET_CARD = 0x8000
    OVERLAY_CARD = 0x10000
    COUNTERS = 0x20000
    OWNER = 0x40000
    STATUS = 0x80000
    IS_PUBLIC = 0x100000
    LSCALE = 0x200000
    RSCALE = 0x400000
    LINK = 0x800000
    IS_HIDDEN = 0x1000000
    COVER = 0x2000000
    END = 0x80000000


class CardType(IntFlag):
    """Card type bits."""

    MONSTER = 0x1
    SPELL = 0x2
    TRAP = 0x4
    NORMAL = 0x10
    EFFECT = 0x20
    FUSION = 0x40
    RITUAL = 0x80
    TRAPMONSTER = 0x100
    SPIRIT = 0x200
    UNION = 0x400
    GEMINI = 0x800
    TUNER = 0x1000
    SYNCHRO = 0x2000
    TOKEN = 0x4000
    QUICKPLAY = 0x10000
    CONTINUOUS = 0x20000
    EQUIP = 0x40000
    FIELD = 0x80000
    COUNTER = 0x100000
    FLIP = 0x200000
    TOON = 0x400000
    XYZ = 0x800000
    PENDULUM = 0x1000000
    SPSUMMON = 0x2000000
    LINK = 0x4000000
    SKILL = 0x8000000


class WinReason(IntEnum):
    """Reasons a duel may be won."""

    SURRENDERED = 0x00
    TIMED_OUT = 0x03
    CONNECTION_LOST = 0x04
    WRONG_RESPONSE = 0x05
    INTERNAL_ERROR = 0x06


class LogType(IntEnum):
    """Kinds of log messages emitted by the core."""

    ERROR = 0
    FROM_SCRIPT = 1
    FOR_DEBUG = 2
    UNDEFINED = 3


class DuelCreationStatus(IntEnum):
    """Outcome of creating a duel in the core."""

    SUCCESS = 0
    NO_OUTPUT = 1
    NOT_CREATED = 2
    NULL_DATA_READER = 3
    NULL_SCRIPT_READER = 4


class DuelStatus(IntEnum):
    """Status returned when the core processes a duel."""

    END = 0
    AWAITING = 1
    CONTINUE = 2