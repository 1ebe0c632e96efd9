# multirole

Building blocks for a YGOPro duel-room server, in plain Python.

The package covers the parts of a room server that do not need the duel
engine itself:

- **Wire protocol**: `multirole.ctos.CTOSMsg` parses client-to-server
  packets (`rps_choice()`, `player_info()`, `create_game()`, `join_game()`
  and the rest). `multirole.stoc.STOCMsg` is an encoded server-to-client
  packet, and `multirole.stoc_factory.STOCMsgFactory` builds every kind the
  room sends: chat, player changes, RPS, time limits, replays and errors.
- **Shared structures**: `multirole.common` has `HostInfo`,
  `ClientVersion` and `DeckLimits` with `pack()` / `unpack()`, and the
  `SERVER_VERSION` and `SERVER_HANDSHAKE` values.
- **Core messages**: `multirole.messages` splits engine output into
  messages (`split_to_msgs`), tells who receives each one
  (`get_message_distribution_type`, `get_message_receiving_team`), hides
  what a team must not see (`strip_message_for_team`) and lists the field
  queries to refresh before and after distribution. `multirole.query`
  reads and writes card query buffers.
- **Constants**: `multirole.constants` has locations, message types,
  positions, scopes, query flags and card types as enums.
- **Game data**: `multirole.banlist.parse_banlists` reads banlist text
  into `Banlist` objects keyed by hash. `multirole.carddb.CardDatabase`
  merges SQLite card databases and answers lookups by card code.
  `multirole.deck.Deck` holds main, extra and side decks.
- **Randomness**: `multirole.rng.SplitMix64` and
  `multirole.rng.Xoshiro256StarStar`, 64-bit generators that are callable
  and iterable.
- **Services**: `BanlistProvider`, `DataProvider` and `ScriptProvider`
  load files whose names match a regular expression when told about a
  repository (`on_add`) or its changes (`on_diff`, with a
  `multirole.observer.GitDiff`). `ReplayManager` stores replays as
  `<id>.yrpX` and hands out ids, safe across threads and processes.
  `LogHandler` routes records to file, stdout, stderr or Discord webhook
  sinks and creates per-room loggers.

## Installation

```
pip install multirole
```

## Examples

Parse a banlist and look it up by hash:

```python
from multirole.banlist import parse_banlists

banlists = parse_banlists([
    "!2024.01 TCG",
    "12345678 0",
    "87654321 1",
])
for banlist_hash, banlist in banlists.items():
    print(banlist_hash, banlist.whitelist, dict(banlist.entries))
```

Build a server packet:

```python
from multirole.stoc_factory import ChatMsgType, STOCMsgFactory

msg = STOCMsgFactory.make_system_chat(ChatMsgType.INFO, "Welcome!")
packet = bytes(msg)   # length prefix, type byte, payload
```

Draw values from a seeded generator:

```python
from multirole.rng import Xoshiro256StarStar

rng = Xoshiro256StarStar([1, 2, 3, 4])
first = rng()
```

Look up card data:

```python
from multirole.carddb import CardDatabase

with CardDatabase() as db:
    if db.merge("cards.cdb"):
        data = db.data_from_code(89631139)
        print(data.attack, data.defense, data.setcodes)
```

Set up logging:

```python
from multirole.loghandler import LogHandler
from multirole.logformat import Level, ServiceType

stdout = {"type": "stdout", "properties": {}}
config = {
    "roomLogging": {"enabled": False, "path": "rooms"},
    "serviceSinks": {key: stdout for key in (
        "gitRepo", "multirole", "banlistProvider", "coreProvider",
        "dataProvider", "logHandler", "replayManager", "scriptProvider",
    )},
    "ecSinks": {key: stdout for key in (
        "core", "official", "speed", "rush", "other",
    )},
}
handler = LogHandler(config)
handler.log(ServiceType.MULTIROLE, Level.INFO, "Started with {} rooms", 0)
```

Sink types are `file` (property `path`), `stdout`, `stderr`, `null` and
`discordWebhook` (properties `uri` and optionally `ridFormat`).

## What it does not do

The package has no duel engine and does not load one, so it cannot run a
duel. It has no network server, lobby or room state machine: it encodes
and decodes packets but does not accept connections. It does not clone or
pull repositories; the providers only react to the file lists they are
given through `on_add` and `on_diff`. There is no command-line program.

## Running the tests

```
pip install multirole[test]
pytest
```