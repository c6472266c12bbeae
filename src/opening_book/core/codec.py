"""
Binary codec for PositionStats records.

Layout (version 1, big-endian):

    u8   version
    u64  total_games
    u16  move count
    then per move, in notation order:
        u8   notation length
        ...  notation bytes (UTF-8)
        u32  white_wins
        u32  black_wins
        u32  draws
"""

from __future__ import annotations

import struct

from opening_book.core.errors import EncodingError
from opening_book.core.types import MoveStat, PositionStats

CODEC_VERSION = 1

_HEADER = struct.Struct(">BQH")
_COUNTS = struct.Struct(">III")
_U32_MAX = 0xFFFFFFFF
_U64_MAX = 0xFFFFFFFFFFFFFFFF


def encode_stats(stats: PositionStats) -> bytes:
    """Serialize a record. Raises EncodingError if a field does not fit."""
    if not 0 <= stats.total_games <= _U64_MAX:
        raise EncodingError(f"total_games out of range: {stats.total_games}")
    if len(stats.moves) > 0xFFFF:
        raise EncodingError(f"too many moves: {len(stats.moves)}")

    parts = [_HEADER.pack(CODEC_VERSION, stats.total_games, len(stats.moves))]
    for notation in sorted(stats.moves):
        m = stats.moves[notation]
        if m.move != notation:
            raise EncodingError(f"move entry {m.move!r} filed under {notation!r}")
        raw = notation.encode("utf-8")
        if not 0 < len(raw) <= 0xFF:
            raise EncodingError(f"bad notation length for {notation!r}")
        counts = (m.white_wins, m.black_wins, m.draws)
        if any(not 0 <= c <= _U32_MAX for c in counts):
            raise EncodingError(f"counter out of range for {notation!r}: {counts}")
        parts.append(bytes((len(raw),)))
        parts.append(raw)
        parts.append(_COUNTS.pack(*counts))
    return b"".join(parts)


def decode_stats(data: bytes) -> PositionStats:
    """Deserialize a record. Raises EncodingError on any corruption."""
    data = bytes(data)
    if len(data) < _HEADER.size:
        raise EncodingError(f"record too short ({len(data)} bytes)")

    version, total_games, count = _HEADER.unpack_from(data, 0)
    if version != CODEC_VERSION:
        raise EncodingError(f"unsupported record version {version}")

    offset = _HEADER.size
    stats = PositionStats(total_games)
    for _ in range(count):
        if offset >= len(data):
            raise EncodingError("truncated move entry")
        length = data[offset]
        offset += 1
        end = offset + length
        if length == 0 or end + _COUNTS.size > len(data):
            raise EncodingError("truncated move entry")
        try:
            notation = data[offset:end].decode("utf-8")
        except UnicodeDecodeError as e:
            raise EncodingError(f"invalid move notation bytes: {e}") from e
        if notation in stats.moves:
            raise EncodingError(f"duplicate move {notation!r}")
        white, black, draws = _COUNTS.unpack_from(data, end)
        stats.moves[notation] = MoveStat(notation, white, black, draws)
        offset = end + _COUNTS.size

    if offset != len(data):
        raise EncodingError(f"{len(data) - offset} trailing bytes after record")
    return stats
