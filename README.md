# aelira

An audio node that keeps client sessions over a WebSocket, resolves tracks
from local files and plays WebM/Opus files into voice channels as encrypted
Opus over UDP. Clients drive it through a versioned HTTP API served with
aiohttp.

## Installation

    pip install .

For running the test suite:

    pip install ".[test]"
    pytest

## Configuration

The node reads a TOML file, `config.toml` in the working directory unless
another path is given:

    [server]
    host = "127.0.0.1"
    port = 2333
    password = "password"

    [cluster]
    workers = 0

- `server.host` must be an IP address literal; a host name is refused with
  `Invalid address`.
- `server.port` must be an integer from 0 to 65535.
- `server.password` is optional. When set, clients must send it as the
  `Authorization` header.
- `cluster` is optional. `cluster.workers` must be a non-negative integer;
  `Config.worker_count()` returns it, or the CPU count when it is missing or
  `0`. The server itself runs on one asyncio event loop and does not use this
  value.

Invalid or unreadable configuration raises `aelira.config.ConfigError`.

## Running

    aelira
    aelira --config path/to/config.toml --manifest path/to/pyproject.toml

The node's version is taken from the first line starting with `version = `
in the manifest file (`pyproject.toml` in the working directory by default);
the command exits if that file cannot be read. Once started, the node logs
the address it listens on and broadcasts a `stats` message to every session
straight away and then once a second, followed by a `playerUpdate` message
for each player that has a track loaded.

## HTTP API

| Method | Path | Purpose |
| ------ | ---- | ------- |
| GET    | `/version` | Node version as plain text |
| GET    | `/v4/info` | Version, runtime platform and enabled sources |
| GET    | `/v4/stats` | Player counts, uptime, memory and CPU load (requires auth) |
| GET    | `/v4/loadtracks?identifier=...` | Resolve a file path or `local:`/`file:` identifier |
| GET    | `/v4/decodetrack?encodedTrack=...` | Decode one encoded track |
| POST   | `/v4/decodetracks` | Decode a JSON list of encoded tracks |
| GET    | `/v4/encodetrack?track=...` | Encode track info given as JSON |
| POST   | `/v4/encodetracks` | Encode a JSON list of track infos |
| PATCH  | `/v4/sessions/{sessionId}` | Echo back `resuming` (default `false`) and `timeout` (default `60`) |
| GET    | `/v4/sessions/{sessionId}/players` | List players of a session |
| GET    | `/v4/sessions/{sessionId}/players/{guildId}` | Get or create a player |
| PATCH  | `/v4/sessions/{sessionId}/players/{guildId}` | Set voice state, track, volume or pause |
| DELETE | `/v4/sessions/{sessionId}/players/{guildId}` | Remove a player |
| GET    | `/v4/routeplanner/status` | Route planner status, or 204 when nothing is failing |
| POST   | `/v4/routeplanner/free/address` | Unmark one failing address (`{"address": "..."}`) |
| POST   | `/v4/routeplanner/free/all` | Unmark every failing address |

Only `/v4/stats` checks the password on HTTP. Decoding and encoding failures
answer 400 with a JSON body holding `timestamp`, `status`, `error`,
`message` and `path`. Unknown paths answer 404 `Not Found`, a wrong password
401 `Unauthorized`, and any other failure 500 `Internal Server Error`.

`loadtracks` looks for an existing file first, then for a `local:` or
`file:` prefix, and otherwise searches every source. Local files are
recognised as WAV, FLAC, WebM/Matroska, Ogg, MP4 or MP3; the track length is
read from WAV and FLAC headers in whole seconds and is `0` for the others.

## WebSocket

Connect to `/v4/websocket` with these headers:

- `Authorization`: required; must equal the configured password when one is set
- `User-Id`: the numeric user id
- `Client-Name`: a name for the client
- `Session-Id`: optional, to resume an existing session

The node first replies with:

    {"op":"ready","resumed":false,"sessionId":"..."}

and then forwards every queued message for the session until the client
closes the connection.

## Using the library

Tracks are carried between client and node in a compact base64 form:

    from aelira.encoding import DecodedInfo, encode_track, decode_track

    info = DecodedInfo(
        title="song.webm",
        author="unknown",
        length=0,
        identifier="/music/song.webm",
        is_stream=False,
        uri="/music/song.webm",
        artwork_url=None,
        isrc=None,
        source_name="local",
        position=0,
    )
    encoded = encode_track(info)
    assert decode_track(encoded).info == info

`decode_track` raises `aelira.encoding.TrackDecodeError` on bad input.

WebM files are split into Opus packets with `aelira.playback.webm.iter_packets`
or fed piece by piece into a `WebmOpusDemuxer` (`feed()`, then `packets()`).
`aelira.playback.processor.AudioProcessor` wraps this as an async iterator.

The voice side lives in `aelira.voice`: `VoiceConnection` speaks to the
voice gateway, `VoiceUdp` sends RTP packets encrypted by `VoiceCrypto`
(AES-256-GCM), and `AudioStream` paces frames at one every 20 ms.

## What it does not do

- Only WebM/Opus files are played. Other formats can be loaded as tracks but
  produce no audio, since there is no Opus encoder.
- Volume, pause and filters are not applied to the audio; `volume` and
  `paused` are only stored and reported. Player `position` is not advanced.
- The only track source is the local filesystem.
- Session settings sent with `PATCH /v4/sessions/{sessionId}` are not kept,
  and sessions are not removed when their socket closes.
- Nothing marks addresses as failing; the route planner endpoints only
  report and clear such marks.