# Copyright 2020-2022 Josh Bailey (josh@vandervecken.com)

## Permission is hereby granted, free of charge, to any person obtaining a copy of this software and associated documentation files (the "Software"), to deal in the Software without restriction, including without limitation the rights to use, copy, modify, merge, publish, distribute, sublicense, and/or sell copies of the Software, and to permit persons to whom the Software is furnished to do so, subject to the following conditions:

## The above copyright notice and this permission notice shall be included in all copies or substantial portions of the Software.

# PSYM: a header, then one record per sample, to be sent to the chip at
# rate Hz. Each record is the number of registers to set, then a
# (register, value) byte pair for each.

import ast
import logging
import struct
from psymconv.fileio import atomic_write
from psymconv.psymlib import psym_timing, snapshots2samples, valid_clock, valid_rate, write_samples_log

PSYM_MAGIC = b'PSYM1'
PSYM_HEADERS = (
        # +00    STRING magic: 'PSYM1'
        ('magic', '5s'),
        # +05    LONGWORD clock
        ('clock', 'I'),
        # +09    BYTE rate
        ('rate', 'B'),
        # +0A    QUADWORD num
        ('num', 'Q'),
)
PSYM_HEADER_FORMAT = '<' + ''.join((field_type for _, field_type in PSYM_HEADERS))
PSYM_HEADER_LEN = struct.calcsize(PSYM_HEADER_FORMAT)

SONG_INFO = 'SongInfo'
SONG = 'Song'
PY_LINE_PAIRS = 10


def check_timing(clock, rate):
    if not valid_clock(clock):
        raise ValueError('clock %s does not fit PSYM header' % clock)
    if not valid_rate(rate):
        raise ValueError('rate %s does not fit PSYM header' % rate)


def encode_psym(samples, clock, rate):
    check_timing(clock, rate)
    data = bytearray(struct.pack(PSYM_HEADER_FORMAT, PSYM_MAGIC, clock, rate, len(samples)))
    for sample in samples:
        data.append(len(sample))
        for reg, val in sample:
            data.extend((reg, val))
    return bytes(data)


def decode_psym(data):
    if len(data) < PSYM_HEADER_LEN:
        raise ValueError('PSYM too short for header (%u bytes)' % len(data))
    header = dict(zip(
        (field for field, _ in PSYM_HEADERS),
        struct.unpack_from(PSYM_HEADER_FORMAT, data)))
    if header['magic'] != PSYM_MAGIC:
        raise ValueError('bad PSYM magic %r' % header['magic'])
    header['magic'] = header['magic'].decode('ascii')
    check_timing(header['clock'], header['rate'])
    samples = []
    offset = PSYM_HEADER_LEN
    for i in range(header['num']):
        if offset >= len(data):
            raise ValueError('PSYM truncated at sample %u of %u' % (i, header['num']))
        count = data[offset]
        offset += 1
        pairs = data[offset:offset + count * 2]
        if len(pairs) != count * 2:
            raise ValueError('PSYM truncated in sample %u' % i)
        offset += count * 2
        samples.append(tuple(zip(pairs[::2], pairs[1::2])))
    if offset != len(data):
        raise ValueError('%u trailing bytes after %u PSYM samples' % (len(data) - offset, header['num']))
    return header, samples


def read_psym(psym_name):
    with open(psym_name, 'rb') as f:
        data = f.read()
    return decode_psym(data)


def encode_py(samples, clock, rate):
    check_timing(clock, rate)
    lines = [
        "%s = {'clock': %u, 'rate': %u, 'num': %u}\n" % (SONG_INFO, clock, rate, len(samples)),
        '%s = [\n' % SONG]
    line_pairs = 0
    for sample in samples:
        if not line_pairs:
            lines.append('\t')
        lines.append('[%s],' % ','.join(('(%u,%u)' % (reg, val) for reg, val in sample)))
        line_pairs += len(sample)
        if line_pairs > PY_LINE_PAIRS:
            line_pairs = 0
            lines.append('\n')
    lines.append(']\n')
    return ''.join(lines)


def decode_py(text):
    """Parse a listing made by encode_py, without executing it."""
    bindings = {}
    for node in ast.parse(text).body:
        if isinstance(node, ast.Assign) and len(node.targets) == 1 and isinstance(node.targets[0], ast.Name):
            bindings[node.targets[0].id] = ast.literal_eval(node.value)
    for name in (SONG_INFO, SONG):
        if name not in bindings:
            raise ValueError('listing has no %s' % name)
    samples = [tuple(tuple(pair) for pair in sample) for sample in bindings[SONG]]
    return bindings[SONG_INFO], samples


def write_samples(out_name, samples, clock, rate, python=False):
    if python:
        data = encode_py(samples, clock, rate).encode('ascii')
    else:
        data = encode_psym(samples, clock, rate)
    logging.debug('writing %u bytes to %s', len(data), out_name)
    atomic_write(out_name, data)


def convert_snapshots(args, snapshots, info=None):
    """Collect samples from snapshots and write them as args (see psym_args) ask.

    Returns the number of samples written.
    """
    clock, rate = psym_timing(args, info)
    check_timing(clock, rate)
    samples = snapshots2samples(snapshots, dedup=args.dedup)
    logging.info('collected %u samples (clock %u Hz, rate %u Hz)', len(samples), clock, rate)
    if args.logfile:
        write_samples_log(args.logfile, samples)
    write_samples(args.outfile, samples, clock, rate, python=args.python)
    return len(samples)
